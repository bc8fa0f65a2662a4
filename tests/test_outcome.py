"""Tests for llmings.outcome — party mortality and history."""

import pytest

from llmings.models import ActionCard, EncounterResult, Obstacle, RunState
from llmings.outcome import apply_outcome
from llmings.sequencer import mark_obstacle


def _result(index: int, owner_id: int, success: bool, death_tag: str | None = None) -> EncounterResult:
    return EncounterResult(
        obstacle_index=index,
        owner_id=owner_id,
        card=ActionCard(owner_id=owner_id, summary=f"Try thing {index}"),
        success=success,
        narrative="Something happens.",
        death_tag=death_tag,
    )


@pytest.fixture
def staged(state: RunState) -> RunState:
    for i in range(5):
        state = mark_obstacle(
            state, i, Obstacle(index=i, title=f"Obstacle {i}", description="d", kind="hazard")
        )
    return state


class TestApplyOutcome:
    def test_success_appends_history(self, staged: RunState) -> None:
        after = apply_outcome(staged, 0, _result(0, 1, True))
        member = after.member(1)
        assert member.alive is True
        assert len(member.history) == 1
        entry = member.history[0]
        assert entry.outcome == "success"
        assert entry.obstacle_title == "Obstacle 0"
        assert entry.chosen_action_summary == "Try thing 0"

    def test_other_members_untouched(self, staged: RunState) -> None:
        after = apply_outcome(staged, 0, _result(0, 1, False, "soggy end"))
        for i in (0, 2, 3, 4):
            assert after.member(i) == staged.member(i)

    def test_failure_kills_with_tag(self, staged: RunState) -> None:
        after = apply_outcome(staged, 0, _result(0, 1, False, "soggy end"))
        assert after.member(1).alive is False
        assert after.member(1).death_tag == "soggy end"

    def test_failure_without_tag(self, staged: RunState) -> None:
        after = apply_outcome(staged, 0, _result(0, 1, False))
        assert after.member(1).alive is False
        assert after.member(1).death_tag is None

    def test_stores_result_on_encounter(self, staged: RunState) -> None:
        result = _result(2, 3, True)
        after = apply_outcome(staged, 2, result)
        assert after.encounters[2].result == result

    def test_input_untouched(self, staged: RunState) -> None:
        apply_outcome(staged, 0, _result(0, 1, False, "soggy end"))
        assert staged.member(1).alive is True
        assert staged.member(1).history == []
        assert staged.encounters[0].result is None

    def test_alive_never_flips_back(self, staged: RunState) -> None:
        state = apply_outcome(staged, 0, _result(0, 1, False, "soggy end"))
        state = apply_outcome(state, 1, _result(1, 2, True))
        state = apply_outcome(state, 2, _result(2, 1, True))
        state = apply_outcome(state, 3, _result(3, 4, False, "lost hat"))
        assert state.member(1).alive is False
        assert state.member(2).alive is True
        assert state.member(4).alive is False

    def test_death_tag_set_once(self, staged: RunState) -> None:
        state = apply_outcome(staged, 0, _result(0, 1, False, "soggy end"))
        state = apply_outcome(state, 1, _result(1, 1, False, "second death"))
        assert state.member(1).death_tag == "soggy end"

    def test_history_tracks_resolutions(self, staged: RunState) -> None:
        state = staged
        for i, success in enumerate([True, True, False]):
            state = apply_outcome(state, i, _result(i, 0, success, None if success else "x y"))
        assert [h.outcome for h in state.member(0).history] == ["success", "success", "failure"]
        assert [h.obstacle_index for h in state.member(0).history] == [0, 1, 2]

    def test_missing_obstacle_title_is_empty(self, state: RunState) -> None:
        after = apply_outcome(state, 0, _result(0, 0, True))
        assert after.member(0).history[0].obstacle_title == ""

    def test_unknown_owner(self, staged: RunState) -> None:
        with pytest.raises(ValueError, match="not in the party"):
            apply_outcome(staged, 0, _result(0, 42, True))

    def test_bad_index(self, staged: RunState) -> None:
        with pytest.raises(IndexError):
            apply_outcome(staged, 5, _result(5, 0, True))
