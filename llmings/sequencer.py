"""Encounter sequencer — the only mutation path into a RunState.

Each operation exists twice:

  - a pure transition `op(state, ...) -> RunState` that never touches its
    input, and
  - a `Sequencer` method that applies the transition to the current state,
    persists the result through the RunStore and only then returns it.

Status only moves pending → in_progress (obstacle set) → resolved (result
set); reset_encounter() is the one way back to pending. The cursor only
moves forward, except through reset_encounter().
"""

from __future__ import annotations

import logging

from llmings.models import ActionCard, Encounter, EncounterResult, Obstacle, RunState
from llmings.outcome import apply_outcome
from llmings.run_state import RunStore

logger = logging.getLogger(__name__)


def _check_index(state: RunState, index: int) -> None:
    if not 0 <= index < len(state.encounters):
        raise IndexError(f"Encounter index {index} out of range")


def _replace_encounter(state: RunState, index: int, encounter: Encounter) -> RunState:
    encounters = list(state.encounters)
    encounters[index] = encounter
    return state.model_copy(update={"encounters": encounters})


# ---------------------------------------------------------------------------
# Pure transitions
# ---------------------------------------------------------------------------

def current(state: RunState) -> Encounter | None:
    if state.cursor >= len(state.encounters):
        return None
    return state.encounters[state.cursor]


def mark_obstacle(state: RunState, index: int, obstacle: Obstacle) -> RunState:
    """Set the obstacle for `index`; a pending encounter becomes in_progress.

    Calling again overwrites the obstacle but never regresses the status.
    """
    _check_index(state, index)
    encounter = state.encounters[index]
    status = "in_progress" if encounter.status == "pending" else encounter.status
    return _replace_encounter(state, index, encounter.model_copy(update={
        "obstacle": obstacle.model_copy(update={"index": index}),
        "status": status,
    }))


def set_cards(state: RunState, index: int, cards: list[ActionCard]) -> RunState:
    """Store `cards` verbatim; the parsers already enforced ownership."""
    _check_index(state, index)
    encounter = state.encounters[index]
    return _replace_encounter(state, index, encounter.model_copy(update={"cards": list(cards)}))


def apply_result(state: RunState, index: int, result: EncounterResult) -> RunState:
    _check_index(state, index)
    state = apply_outcome(state, index, result)
    encounter = state.encounters[index]
    return _replace_encounter(state, index, encounter.model_copy(update={"status": "resolved"}))


def advance(state: RunState) -> RunState:
    cursor = min(state.cursor + 1, len(state.encounters))
    if cursor == state.cursor:
        return state
    return state.model_copy(update={"cursor": cursor})


def reset_encounter(state: RunState, index: int) -> RunState:
    """Replace encounter `index` with a fresh pending one.

    The cursor is pulled back to `index` if it had moved past it. Party
    mortality recorded by an earlier resolution of this encounter is not
    rolled back.
    """
    _check_index(state, index)
    if state.encounters[index].result is not None:
        logger.warning("Resetting encounter %d after it was resolved; party effects stay", index)
    state = _replace_encounter(state, index, Encounter(index=index))
    return state.model_copy(update={"cursor": min(state.cursor, index)})


# ---------------------------------------------------------------------------
# Sequencer: owns the current value, persists every transition
# ---------------------------------------------------------------------------

class Sequencer:
    def __init__(self, store: RunStore, state: RunState) -> None:
        self._store = store
        self._state = state

    @property
    def state(self) -> RunState:
        return self._state

    def _commit(self, state: RunState) -> RunState:
        self._store.persist(state)
        self._state = state
        return state

    def current(self) -> Encounter | None:
        return current(self._state)

    def mark_obstacle(self, index: int, obstacle: Obstacle) -> RunState:
        logger.debug("mark_obstacle %d %r", index, obstacle.title)
        return self._commit(mark_obstacle(self._state, index, obstacle))

    def set_cards(self, index: int, cards: list[ActionCard]) -> RunState:
        logger.debug("set_cards %d count=%d", index, len(cards))
        return self._commit(set_cards(self._state, index, cards))

    def apply_result(self, index: int, result: EncounterResult) -> RunState:
        logger.info(
            "encounter %d resolved: member %d %s",
            index, result.owner_id, "success" if result.success else "failure",
        )
        return self._commit(apply_result(self._state, index, result))

    def advance(self) -> RunState:
        state = self._commit(advance(self._state))
        logger.info("cursor at %d/%d", state.cursor, len(state.encounters))
        return state

    def reset_encounter(self, index: int) -> RunState:
        logger.info("reset encounter %d", index)
        return self._commit(reset_encounter(self._state, index))
