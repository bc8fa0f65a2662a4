"""End-of-run tally: who made it, how the others died, what each obstacle cost."""

from llmings.models import EncounterOutcome, MemberFate, RunState, RunSummary


def summarize_run(state: RunState) -> RunSummary:
    death_summaries: dict[int, str] = {}
    outcomes: list[EncounterOutcome] = []
    for enc in state.encounters:
        result = enc.result
        if result is not None and not result.success and result.death_summary:
            death_summaries.setdefault(result.owner_id, result.death_summary)
        outcomes.append(EncounterOutcome(
            index=enc.index,
            title=enc.obstacle.title if enc.obstacle else None,
            owner_id=result.owner_id if result else None,
            action=result.card.summary if result else None,
            success=result.success if result else None,
            narrative=result.narrative if result else None,
        ))

    members = [
        MemberFate(
            id=m.id,
            name=m.name,
            alive=m.alive,
            death_tag=None if m.alive else (m.death_tag or "fallen soul"),
            death_summary=None if m.alive else death_summaries.get(m.id),
            successes=sum(1 for h in m.history if h.outcome == "success"),
            failures=sum(1 for h in m.history if h.outcome == "failure"),
        )
        for m in state.party
    ]

    return RunSummary(
        seed=state.seed,
        complete=state.is_complete,
        survivors=state.survivors,
        party_size=len(state.party),
        members=members,
        encounters=outcomes,
    )
