"""Tests for llmings.summary."""

from llmings import sequencer
from llmings.models import ActionCard, EncounterResult, Obstacle, RunState
from llmings.summary import summarize_run


def _play(state: RunState, index: int, owner_id: int, success: bool, **death) -> RunState:
    state = sequencer.mark_obstacle(
        state, index, Obstacle(index=index, title=f"Room {index}", description="d")
    )
    state = sequencer.apply_result(state, index, EncounterResult(
        obstacle_index=index,
        owner_id=owner_id,
        card=ActionCard(owner_id=owner_id, summary="Poke it"),
        success=success,
        narrative=f"Vignette {index}",
        **death,
    ))
    return sequencer.advance(state)


def test_fresh_run(state: RunState) -> None:
    summary = summarize_run(state)
    assert summary.complete is False
    assert summary.survivors == 5
    assert summary.party_size == 5
    assert all(e.owner_id is None and e.title is None for e in summary.encounters)


def test_completed_run(state: RunState) -> None:
    state = _play(state, 0, 0, True)
    state = _play(state, 1, 1, False, death_tag="soggy end", death_summary="Drowned in soup.")
    state = _play(state, 2, 2, False)
    state = _play(state, 3, 0, True)
    state = _play(state, 4, 3, True)

    summary = summarize_run(state)
    assert summary.complete is True
    assert summary.survivors == 3
    assert summary.seed == state.seed

    fates = {m.id: m for m in summary.members}
    assert fates[0].successes == 2 and fates[0].failures == 0
    assert fates[1].alive is False
    assert fates[1].death_tag == "soggy end"
    assert fates[1].death_summary == "Drowned in soup."
    assert fates[2].death_tag == "fallen soul"
    assert fates[2].death_summary is None
    assert fates[4].successes == 0 and fates[4].alive is True

    assert [e.title for e in summary.encounters] == [f"Room {i}" for i in range(5)]
    assert summary.encounters[1].success is False
    assert summary.encounters[1].narrative == "Vignette 1"
    assert summary.encounters[1].action == "Poke it"
