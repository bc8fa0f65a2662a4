"""RunState store — create, revive, persist and reset runs.

One run is persisted per mode and date under the key
"run-<mode>-<date_key>". Persisted blobs may come from older releases, so
revive_state() rebuilds a RunState field by field and never rejects a blob
for being partially shaped. The defaults are:

  mode            unknown → "daily"; legacy "debug-random" → "ad-hoc"
  date_key, seed  missing → today's date key
  member enums    unknown/missing → positional fallback list below
  alive           missing → True
  death_tag       missing → None
  history         missing → []; malformed entries dropped
  encounter index always its position in the list
  status          unknown → "pending"
  encounters      padded with pending encounters / cut to ENCOUNTER_COUNT
  cursor          missing → 0, clamped to 0..ENCOUNTER_COUNT

Legacy blobs used camelCase keys (llmingId, characterClass, deathTag,
cardSummary, vignette, currentEncounterIndex, ...); both spellings are read.
"""

from __future__ import annotations

import logging
import math
import secrets
import string
from collections.abc import Callable
from datetime import date
from typing import Any

from pydantic import ValidationError

from llmings.models import (
    ENCOUNTER_COUNT,
    OBSTACLE_KINDS,
    PARTY_SIZE,
    ActionCard,
    Encounter,
    EncounterResult,
    GameMode,
    HistoryEntry,
    Obstacle,
    PartyMember,
    RunState,
)
from llmings.party import CLASSES, PERSONALITIES, TRAITS, VOICES, generate_party
from llmings.storage import Storage

logger = logging.getLogger(__name__)

# Fallbacks for members whose stored enum value is missing or unknown,
# picked by member position (idx % len). Kept separate from the canonical
# value lists in llmings.party so reordering those never changes how old
# runs revive.
LEGACY_CLASS_FALLBACK = ("Barbarian", "Wizard", "Thief", "Rogue", "Druid", "Paladin")
LEGACY_PERSONALITY_FALLBACK = (
    "Reckless", "Nervous", "Analytical", "Dramatic", "Deadpan",
    "Chaotic", "Heroic", "Naive", "Disgruntled",
)
LEGACY_TRAIT_FALLBACK = ("Brave", "Cowardly", "Precise", "Chaotic", "Lucky")
LEGACY_VOICE_FALLBACK = (
    "excitable stage directions",
    "overwritten fantasy prose",
    "dry technical commentary",
    "deadpan one-liners",
    "dramatic internal monologue",
)

_MODE_ALIASES = {"daily": "daily", "ad-hoc": "ad-hoc", "debug-random": "ad-hoc"}
_STATUSES = ("pending", "in_progress", "resolved")


def today_key() -> str:
    return date.today().isoformat()


def run_key(mode: str, date_key: str) -> str:
    return f"run-{mode}-{date_key}"


def new_seed(mode: GameMode, date_key: str) -> str:
    """Daily runs are seeded by date; ad-hoc runs get a random suffix."""
    if mode == "daily":
        return date_key
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(8))
    return f"{date_key}-debug-{suffix}"


def empty_encounters(count: int = ENCOUNTER_COUNT) -> list[Encounter]:
    return [Encounter(index=i) for i in range(count)]


def create_run(mode: GameMode, date_key: str, seed: str) -> RunState:
    return RunState(
        mode=mode,
        date_key=date_key,
        seed=seed,
        party=generate_party(seed, PARTY_SIZE),
        encounters=empty_encounters(),
        cursor=0,
    )


# ---------------------------------------------------------------------------
# Revival
# ---------------------------------------------------------------------------

def _pick(raw: dict, *keys: str) -> Any:
    """Return the first present value among `keys` (new name first)."""
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _enum(value: Any, allowed: tuple[str, ...], fallback: tuple[str, ...], idx: int) -> str:
    if isinstance(value, str):
        for option in allowed:
            if option.lower() == value.strip().lower():
                return option
    return fallback[idx % len(fallback)]


def _int(value: Any, default: int) -> int:
    """Integral value of a JSON number; non-numbers, NaN and infinities are `default`."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    return int(value)


def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _revive_history(raw: Any) -> list[HistoryEntry]:
    if not isinstance(raw, list):
        return []
    entries = []
    for h in raw:
        if not isinstance(h, dict):
            continue
        outcome = h.get("outcome")
        if outcome not in ("success", "failure"):
            continue
        entries.append(HistoryEntry(
            obstacle_index=_int(_pick(h, "obstacle_index", "obstacleIndex"), 0),
            obstacle_title=str(_pick(h, "obstacle_title", "obstacleTitle") or ""),
            outcome=outcome,
            chosen_action_summary=str(
                _pick(h, "chosen_action_summary", "cardSummary", "chosenActionSummary") or ""
            ),
        ))
    return entries


def _revive_member(raw: Any, idx: int) -> PartyMember:
    p = raw if isinstance(raw, dict) else {}
    name = p.get("name")
    return PartyMember(
        id=_int(p.get("id"), idx),
        name=name if isinstance(name, str) and name else f"LLMing-{idx + 1}",
        personality=_enum(p.get("personality"), PERSONALITIES,
                          LEGACY_PERSONALITY_FALLBACK, idx),
        trait=_enum(p.get("trait"), TRAITS, LEGACY_TRAIT_FALLBACK, idx),
        character_class=_enum(_pick(p, "character_class", "characterClass"),
                              CLASSES, LEGACY_CLASS_FALLBACK, idx),
        voice=_enum(p.get("voice"), VOICES, LEGACY_VOICE_FALLBACK, idx),
        alive=p["alive"] if isinstance(p.get("alive"), bool) else True,
        death_tag=_opt_str(_pick(p, "death_tag", "deathTag")),
        history=_revive_history(p.get("history")),
    )


def _revive_obstacle(raw: Any, idx: int) -> Obstacle | None:
    if not isinstance(raw, dict):
        return None
    kind = raw.get("kind")
    return Obstacle(
        index=idx,
        title=str(raw.get("title") or ""),
        description=str(raw.get("description") or ""),
        kind=kind if kind in OBSTACLE_KINDS else "weird",
    )


def _revive_card(raw: Any) -> ActionCard | None:
    if not isinstance(raw, dict):
        return None
    owner = _int(_pick(raw, "owner_id", "llmingId", "ownerId"), -1)
    if owner < 0:
        return None
    return ActionCard(
        owner_id=owner,
        summary=str(raw.get("summary") or ""),
        detail=_opt_str(raw.get("detail")),
    )


def _revive_result(raw: Any, idx: int) -> EncounterResult | None:
    if not isinstance(raw, dict):
        return None
    card = _revive_card(raw.get("card"))
    if card is None:
        return None
    success = raw.get("success")
    return EncounterResult(
        obstacle_index=idx,
        owner_id=_int(_pick(raw, "owner_id", "llmingId", "ownerId"), card.owner_id),
        card=card,
        success=success if isinstance(success, bool) else False,
        narrative=str(_pick(raw, "narrative", "vignette") or ""),
        death_tag=_opt_str(_pick(raw, "death_tag", "deathTag")),
        death_summary=_opt_str(_pick(raw, "death_summary", "deathSummary")),
    )


def _revive_encounter(raw: Any, idx: int) -> Encounter:
    e = raw if isinstance(raw, dict) else {}
    status = e.get("status")
    cards = e.get("cards")
    revived_cards = None
    if isinstance(cards, list):
        revived_cards = [c for c in (_revive_card(c) for c in cards) if c is not None]
    return Encounter(
        index=idx,
        status=status if status in _STATUSES else "pending",
        obstacle=_revive_obstacle(e.get("obstacle"), idx),
        cards=revived_cards,
        result=_revive_result(e.get("result"), idx),
    )


def revive_state(raw: Any, today: str | None = None) -> RunState | None:
    """Rebuild a RunState from a persisted blob, defaulting what is missing.

    Returns None only when the blob is not an object or lacks the party and
    encounter arrays altogether.
    """
    if not isinstance(raw, dict):
        return None
    party_raw = raw.get("party")
    encounters_raw = raw.get("encounters")
    if not isinstance(party_raw, list) or not isinstance(encounters_raw, list):
        return None

    today = today or today_key()
    date_key = _pick(raw, "date_key", "dateKey")
    seed = raw.get("seed")

    encounters = [_revive_encounter(e, i) for i, e in enumerate(encounters_raw[:ENCOUNTER_COUNT])]
    encounters.extend(Encounter(index=i) for i in range(len(encounters), ENCOUNTER_COUNT))

    cursor = _int(_pick(raw, "cursor", "currentEncounterIndex"), 0)
    mode = raw.get("mode")

    try:
        return RunState(
            mode=_MODE_ALIASES.get(mode, "daily") if isinstance(mode, str) else "daily",
            date_key=date_key if isinstance(date_key, str) else today,
            seed=seed if isinstance(seed, str) else today,
            party=[_revive_member(p, i) for i, p in enumerate(party_raw)],
            encounters=encounters,
            cursor=max(0, min(cursor, ENCOUNTER_COUNT)),
        )
    except ValidationError as e:
        logger.warning("Persisted run could not be revived: %s", e)
        return None


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class RunStore:
    """Loads, creates and persists runs through a Storage substrate.

    `today` returns the current date key; tests inject a fixed clock.
    """

    def __init__(self, storage: Storage, today: Callable[[], str] = today_key) -> None:
        self._storage = storage
        self._today = today

    def today(self) -> str:
        return self._today()

    def load(self, mode: GameMode = "daily") -> RunState | None:
        """Return today's persisted run for `mode`, or None if there is no
        compatible one (absent, unrevivable, wrong mode or stale date)."""
        today = self._today()
        state = revive_state(self._storage.load(run_key(mode, today)), today)
        if state is None:
            return None
        if state.mode != mode or state.date_key != today:
            logger.info("Ignoring stored %s run for %s", state.mode, state.date_key)
            return None
        return state

    def create(self, mode: GameMode = "daily", seed: str | None = None) -> RunState:
        """Build and persist a fresh run."""
        today = self._today()
        state = create_run(mode, today, seed or new_seed(mode, today))
        self.persist(state)
        logger.info("Created %s run seed=%s", mode, state.seed)
        return state

    def persist(self, state: RunState) -> None:
        self._storage.save(run_key(state.mode, state.date_key), state.model_dump(mode="json"))

    def load_or_create(self, mode: GameMode = "daily") -> RunState:
        return self.load(mode) or self.create(mode)

    def reset(self, mode: GameMode = "daily") -> RunState:
        """Replace the run for `mode` wholesale with a fresh one."""
        return self.create(mode)
