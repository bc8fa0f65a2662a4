"""Tests for llmings.models."""

import pytest
from pydantic import ValidationError

from llmings.models import (
    ActionCard,
    Encounter,
    EncounterResult,
    Obstacle,
    PartyMember,
    RunState,
)


def _member(id: int = 0, alive: bool = True) -> PartyMember:
    return PartyMember(
        id=id,
        name=f"M{id}",
        personality="Nervous",
        trait="Lucky",
        character_class="Wizard",
        voice="deadpan one-liners",
        alive=alive,
    )


class TestPartyMember:
    def test_defaults(self) -> None:
        m = _member()
        assert m.alive is True
        assert m.death_tag is None
        assert m.history == []

    def test_rejects_unknown_class(self) -> None:
        with pytest.raises(ValidationError):
            PartyMember(
                id=0, name="X", personality="Nervous", trait="Lucky",
                character_class="Bard", voice="deadpan one-liners",
            )


class TestObstacle:
    def test_kind_defaults_to_weird(self) -> None:
        assert Obstacle(index=0, title="t", description="d").kind == "weird"

    def test_rejects_unknown_kind(self) -> None:
        with pytest.raises(ValidationError):
            Obstacle(index=0, title="t", description="d", kind="dragon")


class TestEncounterResult:
    def test_success_clears_death_fields(self) -> None:
        result = EncounterResult(
            obstacle_index=0,
            owner_id=1,
            card=ActionCard(owner_id=1, summary="Zap it"),
            success=True,
            narrative="It worked.",
            death_tag="red mist",
            death_summary="Exploded.",
        )
        assert result.death_tag is None
        assert result.death_summary is None

    def test_failure_keeps_death_fields(self) -> None:
        result = EncounterResult(
            obstacle_index=0,
            owner_id=1,
            card=ActionCard(owner_id=1, summary="Zap it"),
            success=False,
            narrative="It did not work.",
            death_tag="red mist",
        )
        assert result.death_tag == "red mist"


class TestRunState:
    def _state(self, cursor: int = 0) -> RunState:
        return RunState(
            mode="daily",
            date_key="2026-10-19",
            seed="2026-10-19",
            party=[_member(0), _member(1, alive=False), _member(2)],
            encounters=[Encounter(index=i) for i in range(5)],
            cursor=cursor,
        )

    def test_living_and_survivors(self) -> None:
        state = self._state()
        assert [m.id for m in state.living] == [0, 2]
        assert state.survivors == 2

    def test_is_complete_at_cursor_n(self) -> None:
        assert not self._state(4).is_complete
        assert self._state(5).is_complete

    def test_member_lookup(self) -> None:
        state = self._state()
        assert state.member(1).name == "M1"
        assert state.member(9) is None

    def test_round_trips_through_json(self) -> None:
        state = self._state(2)
        assert RunState.model_validate(state.model_dump(mode="json")) == state
