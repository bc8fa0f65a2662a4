"""Handlebars prompt templates for every LLM stage.

Stages and the output each template asks for:

  obstacle   {"title", "description", "kind"}
  obstacles  {"obstacles": [{"title", "description", "kind"} x count]}
  card       a bare 1-5 word action summary for one member
  cards      one "<id>|<summary>" line per living member
  resolve    {"success", "vignette", "deathTag", "deathSummary"}

Free text coming from models or rosters is rendered with triple-stash so
Handlebars does not HTML-escape it.
"""

from collections.abc import Callable
from typing import Any

import pybars

from llmings.models import ENCOUNTER_COUNT, ActionCard, Obstacle, PartyMember

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


# ── Custom Handlebars helpers ────────────────────────────


def _helper_inc(this, value):
    """{{inc n}} — render a 0-based index as 1-based."""
    return str(int(value) + 1)


_HELPERS: dict[str, Callable] = {
    "inc": _helper_inc,
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context, helpers=_HELPERS)).strip()
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


# ── Templates ────────────────────────────────────────────

_TONE_RULES = """\
- The party always progresses after the obstacle is resolved (success or failure is handled elsewhere).
- Avoid explicit gore or real-world tragedies; keep deaths cartoonish if implied.
- Each description must be EXACTLY ONE simple sentence, maximum 18 words.
- Do NOT describe how an obstacle can be solved, bypassed, tricked, disarmed, or outwitted.
- Do NOT talk about what the party "must" do, "needs" to do, or "can" do.
- Only state what the obstacle is and what it currently does or threatens, in one punchy line."""

OBSTACLE_PROMPT = """\
You are the dungeon architect for a lighthearted text-based adventure game.

Create a single, vivid obstacle for a party of five adventurers traversing a fantasy dungeon.

Rules:
- The tone is playful, absurd, and slightly comedic, not grimdark.
""" + _TONE_RULES + """

This is obstacle number {{inc index}} out of {{total}} in today's dungeon.

Respond ONLY with strict JSON in this shape (no extra text):
{"title": "<short obstacle title>", "description": "<1 short sentence>", \
"kind": "<one of: trap | monster | hazard | puzzle | weird>"}"""

OBSTACLES_PROMPT = """\
You are the dungeon architect for a lighthearted text-based adventure game.

Create a full run of {{count}} distinct, vivid obstacles for a party of five adventurers traversing a fantasy dungeon.

Global rules:
- Across the obstacles, explore a wide variety of ideas, tones, and threat types.
- Each obstacle should feel like it belongs in the same strange dungeon, but none should be a palette-swapped copy.
- The tone is adventurous and cinematic with room for eccentricity, not grimdark.
""" + _TONE_RULES + """

Variety rules:
- Never repeat the same central gimmick (no multiple gongs, bridges, doors, etc.).
- Avoid plain portcullises, generic locked doors, simple bridges over chasms, standard spike pits and lone levers.
- Prefer eccentric concepts: opinionated architecture, cursed emotions, dungeon bureaucracy, \
impossible geometry, weaponized etiquette, dangerous food, musical hazards, lethal party dynamics.

Respond ONLY with strict JSON in this exact shape, with exactly {{count}} objects \
in the array (no commentary, no code fences):
{"obstacles":[
  {"title": "<short obstacle title>", "description": "<1 short sentence>", \
"kind": "<trap|monster|hazard|puzzle|weird>"},
  ...
]}"""

_MEMBER_BLOCK = """\
- Name: {{{member.name}}}
- Personality: {{member.personality}}
- Class: {{member.character_class}}
- Trait: {{member.trait}}
- Voice: {{member.voice}}"""

_OBSTACLE_BLOCK = """\
Obstacle:
- Title: {{{obstacle.title}}}
- Kind: {{obstacle.kind}}
- Description: {{{obstacle.description}}}"""

_CLASS_RULES = """\
- The *style* of an idea is driven primarily by CLASS:
  - barbarians favor direct, physical, smash-or-charge actions.
  - wizards use spells, runes, illusions, or arcane tricks.
  - thieves/rogues lean on stealth, sabotage, traps, and nimble maneuvers.
  - druids call on nature, animals, plants, or shapeshifting.
  - paladins protect, shield, bless, or confront with righteous bravado.
- Personality and trait affect the *tone and riskiness*, not the class-based style.
- Keep every action summary extremely short and punchy: 1-5 words."""

CARD_PROMPT = """\
You are a single adventurer in a lighthearted fantasy dungeon crawler.

Your job is to propose ONE action card idea for how YOU will try to handle the current obstacle.

You are:
""" + _MEMBER_BLOCK + """
- Recent history: {{#if last_attempt}}Last time you {{#if last_attempt.succeeded}}succeeded{{else}}died{{/if}} \
attempting "{{{last_attempt.chosen_action_summary}}}" at obstacle {{inc last_attempt.obstacle_index}}.\
{{else}}You have no prior attempts yet in this run.{{/if}}

""" + _OBSTACLE_BLOCK + """

Rules for your card idea:
""" + _CLASS_RULES + """
- Do NOT explain your reasoning or add narration.

Output format (no extra text, no bullets, no JSON, no code fences):
- Respond with ONLY your 1-5 word action summary, nothing else."""

CARDS_PROMPT = """\
You are the party voice for a lighthearted fantasy dungeon crawler.

Propose ONE action card per living adventurer for the current obstacle.

""" + _OBSTACLE_BLOCK + """

Living adventurers:
{{#each members}}
- id {{id}}: {{{name}}}, {{personality}} {{character_class}}, {{trait}}
{{/each}}

Rules:
""" + _CLASS_RULES + """

Output format (no extra text, no JSON, no code fences), exactly one line per adventurer:
<id>|<1-5 word action summary>"""

RESOLVE_PROMPT = """\
You are the outcome judge and narrator for a comedic fantasy dungeon crawler.

The player has chosen ONE character's idea to attempt at the current obstacle.
Your job:
1) Decide whether the attempt is a SUCCESS or a FAILURE.
2) Write a very short vignette describing what happens, in the chosen character's voice.

Target difficulty: on average about 3-4 out of 5 obstacles in a run should be SUCCESS.

""" + _OBSTACLE_BLOCK + """

Chosen character:
""" + _MEMBER_BLOCK + """

Their proposed action:
- Summary: {{{card.summary}}}
- Detail: {{#if card.detail}}{{{card.detail}}}{{else}}(no extra detail){{/if}}

This character's prior attempts in THIS run:
{{#each member.history}}
- Obstacle {{inc obstacle_index}}: {{#if succeeded}}succeeded{{else}}died{{/if}} attempting "{{{chosen_action_summary}}}".
{{else}}
(none yet)
{{/each}}

Whole party's track record so far:
{{#each track_record}}
- {{{name}}}: {{successes}} successes, {{deaths}} deaths so far in this run.
{{else}}
(no prior outcomes yet)
{{/each}}

Rules for your ruling:
- Brave characters do slightly better with bold, front-line actions.
- Cowardly characters do better when their plans are evasive.
- Precise characters do better with technical, puzzle-like ideas.
- Chaotic characters swing wildly; Lucky characters get a small boost in ambiguous cases.
- There are only two outcomes: full SUCCESS (the character lives) or full FAILURE (the character dies).
- Deaths are tragicomic rather than gruesome. Keep the vignette under 25 words.

Respond ONLY with strict JSON in this shape (no extra text):
{"success": <true|false>, "vignette": "<1 punchy sentence>", \
"deathTag": "<two lowercase words naming the death, or null on success>", \
"deathSummary": "<one sentence on how they died, or null on success>"}"""


# ── Context builders ─────────────────────────────────────


def _member_ctx(member: PartyMember) -> dict[str, Any]:
    ctx = member.model_dump()
    for entry in ctx["history"]:
        entry["succeeded"] = entry["outcome"] == "success"
    return ctx


def obstacle_prompt(index: int, total: int = ENCOUNTER_COUNT) -> str:
    return render_prompt(OBSTACLE_PROMPT, {"index": index, "total": total})


def obstacles_prompt(count: int = ENCOUNTER_COUNT) -> str:
    return render_prompt(OBSTACLES_PROMPT, {"count": count})


def member_card_prompt(obstacle: Obstacle, member: PartyMember) -> str:
    ctx = _member_ctx(member)
    return render_prompt(CARD_PROMPT, {
        "member": ctx,
        "obstacle": obstacle.model_dump(),
        "last_attempt": ctx["history"][-1] if ctx["history"] else None,
    })


def cards_prompt(obstacle: Obstacle, party: list[PartyMember]) -> str:
    return render_prompt(CARDS_PROMPT, {
        "obstacle": obstacle.model_dump(),
        "members": [m.model_dump() for m in party if m.alive],
    })


def resolve_prompt(
    obstacle: Obstacle,
    member: PartyMember,
    card: ActionCard,
    party: list[PartyMember],
) -> str:
    track_record = []
    for p in party:
        successes = sum(1 for h in p.history if h.outcome == "success")
        deaths = sum(1 for h in p.history if h.outcome == "failure")
        if successes or deaths:
            track_record.append({"name": p.name, "successes": successes, "deaths": deaths})
    return render_prompt(RESOLVE_PROMPT, {
        "obstacle": obstacle.model_dump(),
        "member": _member_ctx(member),
        "card": card.model_dump(),
        "track_record": track_record,
    })
