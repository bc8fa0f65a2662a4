"""Pipeline orchestrator — runs one encounter step at a time.

Encounter flow:
  1. generate_dungeon  → "obstacles" LLM call → parse_obstacles → mark every
                         encounter that has no obstacle yet.
  2. prepare_obstacle  → "obstacle" LLM call for one encounter still missing
                         an obstacle (fallback when the batch came up short).
  3. draw_cards        → one "card" call per living member, or one "cards"
                         call for the whole party → set_cards.
  4. resolve_card      → "resolve" call for the chosen card → parse_resolution
                         → apply_result (party mortality + status resolved).
  5. advance           → move the cursor to the next encounter.

Every step awaits at most one LLM call at a time and only mutates the run
after all of its output has parsed. RequestFailure and ParseFailure therefore
propagate with the last persisted state intact; the caller may
reset_encounter() and try again.
"""

from __future__ import annotations

import logging
from typing import Literal

from llmings import prompts
from llmings.llm import LLM
from llmings.models import ActionCard, Encounter, EncounterResult, Obstacle, RunState
from llmings.parsers import (
    parse_cards,
    parse_member_card,
    parse_obstacle,
    parse_obstacles,
    parse_resolution,
)
from llmings.sequencer import Sequencer

logger = logging.getLogger(__name__)

CardStrategy = Literal["per_member", "batch"]


def _encounter(seq: Sequencer, index: int | None) -> Encounter:
    """Return encounter `index`, defaulting to the one under the cursor."""
    state = seq.state
    if index is None:
        encounter = seq.current()
        if encounter is None:
            raise ValueError("Run is complete")
        return encounter
    if not 0 <= index < len(state.encounters):
        raise IndexError(f"Encounter index {index} out of range")
    return state.encounters[index]


# ---------------------------------------------------------------------------
# Obstacles
# ---------------------------------------------------------------------------

async def generate_dungeon(seq: Sequencer, llm: LLM) -> RunState:
    """Generate every obstacle of the run in one call, for variety.

    Encounters that already have an obstacle, or are resolved, keep theirs.
    """
    count = len(seq.state.encounters)
    raw = await llm("obstacles", prompts.obstacles_prompt(count))
    obstacles = parse_obstacles(raw, count)

    for obstacle in obstacles:
        encounter = seq.state.encounters[obstacle.index]
        if encounter.obstacle is not None or encounter.status == "resolved":
            continue
        seq.mark_obstacle(obstacle.index, obstacle)

    if len(obstacles) < count:
        logger.warning("Dungeon batch covered %d of %d encounters", len(obstacles), count)
    return seq.state


async def prepare_obstacle(seq: Sequencer, llm: LLM, index: int | None = None) -> Obstacle:
    """Make sure an encounter has an obstacle, generating a single one if not."""
    encounter = _encounter(seq, index)
    if encounter.obstacle is not None:
        return encounter.obstacle

    raw = await llm("obstacle", prompts.obstacle_prompt(encounter.index, len(seq.state.encounters)))
    obstacle = parse_obstacle(raw, encounter.index)
    seq.mark_obstacle(encounter.index, obstacle)
    return obstacle


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------

async def draw_cards(
    seq: Sequencer,
    llm: LLM,
    strategy: CardStrategy = "per_member",
    index: int | None = None,
) -> list[ActionCard]:
    """Ask the living party for action cards and store them on the encounter.

    "per_member" prompts each survivor in turn; any empty answer aborts the
    whole draw with ParseFailure rather than leaving someone without a card.
    """
    encounter = _encounter(seq, index)
    if encounter.obstacle is None:
        raise ValueError(f"Encounter {encounter.index} has no obstacle yet")
    if encounter.status == "resolved":
        raise ValueError(f"Encounter {encounter.index} is already resolved")

    living = seq.state.living
    if not living:
        raise ValueError("No living members left to act")

    if strategy == "batch":
        raw = await llm("cards", prompts.cards_prompt(encounter.obstacle, seq.state.party))
        cards = parse_cards(raw, seq.state.party)
    else:
        cards = []
        for member in living:
            raw = await llm("card", prompts.member_card_prompt(encounter.obstacle, member))
            cards.append(parse_member_card(raw, member))

    seq.set_cards(encounter.index, cards)
    return cards


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

async def resolve_card(
    seq: Sequencer,
    llm: LLM,
    owner_id: int,
    index: int | None = None,
) -> EncounterResult:
    """Adjudicate the card played by `owner_id` and record the outcome."""
    encounter = _encounter(seq, index)
    if encounter.status == "resolved":
        raise ValueError(f"Encounter {encounter.index} is already resolved")
    if encounter.obstacle is None or not encounter.cards:
        raise ValueError(f"Encounter {encounter.index} has no cards to play")

    card = next((c for c in encounter.cards if c.owner_id == owner_id), None)
    if card is None:
        raise ValueError(f"No card offered for member {owner_id}")
    member = seq.state.member(owner_id)
    if member is None or not member.alive:
        raise ValueError(f"Member {owner_id} cannot act")

    raw = await llm(
        "resolve",
        prompts.resolve_prompt(encounter.obstacle, member, card, seq.state.party),
    )
    verdict = parse_resolution(raw)

    result = EncounterResult(
        obstacle_index=encounter.index,
        owner_id=owner_id,
        card=card,
        success=verdict.success,
        narrative=verdict.vignette,
        death_tag=verdict.death_tag,
        death_summary=verdict.death_summary,
    )
    seq.apply_result(encounter.index, result)
    return result
