"""Tests for llmings.prompts — Handlebars rendering of every stage prompt."""

import pytest

from llmings import prompts
from llmings.models import ActionCard, HistoryEntry, Obstacle, RunState
from llmings.prompts import PromptError, render_prompt

OBSTACLE = Obstacle(
    index=2,
    title="The <Gilded> Gong",
    description='It hums "menacingly" & loudly.',
    kind="trap",
)


class TestRenderPrompt:
    def test_simple_substitution(self) -> None:
        assert render_prompt("Hello {{name}}", {"name": "Chunk"}) == "Hello Chunk"

    def test_inc_helper(self) -> None:
        assert render_prompt("#{{inc n}}", {"n": 0}) == "#1"

    def test_output_stripped(self) -> None:
        assert render_prompt("\n  hi  \n", {}) == "hi"

    def test_missing_partial_raises(self) -> None:
        with pytest.raises(PromptError):
            render_prompt("{{> missing_partial}}", {})


class TestStagePrompts:
    def test_obstacle_prompt_numbers_from_one(self) -> None:
        text = prompts.obstacle_prompt(0, 5)
        assert "obstacle number 1 out of 5" in text
        assert '"kind"' in text

    def test_obstacles_prompt_asks_for_count(self) -> None:
        assert "exactly 5 objects" in prompts.obstacles_prompt(5)

    def test_member_card_prompt_without_history(self, state: RunState) -> None:
        member = state.party[0]
        text = prompts.member_card_prompt(OBSTACLE, member)
        assert member.name in text
        assert member.character_class in text
        assert "no prior attempts" in text
        # Free text is not HTML-escaped
        assert "The <Gilded> Gong" in text
        assert 'It hums "menacingly" & loudly.' in text

    def test_member_card_prompt_mentions_last_attempt(self, state: RunState) -> None:
        member = state.party[0].model_copy(update={"history": [
            HistoryEntry(obstacle_index=0, obstacle_title="Fog", outcome="success",
                         chosen_action_summary="Blow it away"),
        ]})
        text = prompts.member_card_prompt(OBSTACLE, member)
        assert 'Last time you succeeded attempting "Blow it away" at obstacle 1.' in text

    def test_cards_prompt_lists_only_living(self, state: RunState) -> None:
        party = list(state.party)
        party[1] = party[1].model_copy(update={"alive": False})
        text = prompts.cards_prompt(OBSTACLE, party)
        assert f"- id 0: {party[0].name}" in text
        assert f"- id 1: {party[1].name}" not in text
        assert "<id>|<1-5 word action summary>" in text

    def test_resolve_prompt(self, state: RunState) -> None:
        member = state.party[2]
        card = ActionCard(owner_id=member.id, summary="Hum back louder")
        text = prompts.resolve_prompt(OBSTACLE, member, card, state.party)
        assert "Hum back louder" in text
        assert "(no extra detail)" in text
        assert "(none yet)" in text
        assert "(no prior outcomes yet)" in text
        assert '"deathTag"' in text

    def test_resolve_prompt_track_record(self, state: RunState) -> None:
        party = list(state.party)
        party[0] = party[0].model_copy(update={"alive": False, "history": [
            HistoryEntry(obstacle_index=0, obstacle_title="Fog", outcome="failure",
                         chosen_action_summary="Inhale it"),
        ]})
        card = ActionCard(owner_id=party[0].id, summary="x", detail="with gusto")
        text = prompts.resolve_prompt(OBSTACLE, party[0], card, party)
        assert f"- {party[0].name}:" in text
        assert "1 deaths so far in this run." in text
        assert '- Obstacle 1: died attempting "Inhale it".' in text
        assert "with gusto" in text
