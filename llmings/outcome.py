"""Outcome applier — merges a resolved encounter result into the party.

apply_outcome() is a pure transition: it returns a new RunState and leaves
its input untouched. Mortality rules:

  - every result appends one history entry to its owner;
  - a failure flips `alive` to False, and it never flips back;
  - the death tag is written once, at the encounter where the member dies,
    and is kept as-is by any later result.
"""

from __future__ import annotations

import logging

from llmings.models import EncounterResult, HistoryEntry, PartyMember, RunState

logger = logging.getLogger(__name__)


def _apply_to_member(member: PartyMember, entry: HistoryEntry, result: EncounterResult) -> PartyMember:
    update: dict = {"history": [*member.history, entry]}
    if not result.success:
        if member.alive:
            update["alive"] = False
            update["death_tag"] = result.death_tag or member.death_tag or None
            logger.info("member %d (%s) died: %s", member.id, member.name, update["death_tag"])
        # Already dead: the first death tag stands.
    return member.model_copy(update=update)


def apply_outcome(state: RunState, index: int, result: EncounterResult) -> RunState:
    """Record `result` on encounter `index` and on the member who acted.

    Raises IndexError for an unknown encounter and ValueError when the
    result's owner is not in the party.
    """
    if not 0 <= index < len(state.encounters):
        raise IndexError(f"Encounter index {index} out of range")
    if state.member(result.owner_id) is None:
        raise ValueError(f"Result owner {result.owner_id} is not in the party")

    encounter = state.encounters[index]
    entry = HistoryEntry(
        obstacle_index=result.obstacle_index,
        obstacle_title=encounter.obstacle.title if encounter.obstacle else "",
        outcome="success" if result.success else "failure",
        chosen_action_summary=result.card.summary,
    )

    party = [
        _apply_to_member(m, entry, result) if m.id == result.owner_id else m
        for m in state.party
    ]
    encounters = list(state.encounters)
    encounters[index] = encounter.model_copy(update={"result": result})
    return state.model_copy(update={"party": party, "encounters": encounters})
