"""Core domain models.

All sequencer transitions, parsers and storage functions operate on these
types. Pydantic is used for validation and serialisation at every data
boundary; the persisted run blob is `RunState.model_dump(mode="json")`.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

Personality = Literal[
    "Reckless",
    "Nervous",
    "Analytical",
    "Dramatic",
    "Deadpan",
    "Chaotic",
    "Heroic",
    "Naive",
    "Disgruntled",
]

Trait = Literal["Brave", "Cowardly", "Precise", "Chaotic", "Lucky"]

CharacterClass = Literal[
    "Barbarian",
    "Wizard",
    "Thief",
    "Rogue",
    "Druid",
    "Paladin",
]

VoiceStyle = Literal[
    "excitable stage directions",
    "overwritten fantasy prose",
    "dry technical commentary",
    "deadpan one-liners",
    "dramatic internal monologue",
]

ObstacleKind = Literal["trap", "monster", "hazard", "puzzle", "weird"]

OBSTACLE_KINDS: tuple[str, ...] = ("trap", "monster", "hazard", "puzzle", "weird")

Outcome = Literal["success", "failure"]

EncounterStatus = Literal["pending", "in_progress", "resolved"]

GameMode = Literal["daily", "ad-hoc"]

PARTY_SIZE = 5
ENCOUNTER_COUNT = 5


class HistoryEntry(BaseModel):
    """One resolved encounter in a member's append-only history."""

    obstacle_index: int
    obstacle_title: str
    outcome: Outcome
    chosen_action_summary: str


class PartyMember(BaseModel):
    """An adventurer in the run's party."""

    id: int
    name: str
    personality: Personality
    trait: Trait
    character_class: CharacterClass
    voice: VoiceStyle
    alive: bool = True
    death_tag: str | None = None  # two words, e.g. "red mist"
    history: list[HistoryEntry] = Field(default_factory=list)


class Obstacle(BaseModel):
    index: int
    title: str
    description: str
    kind: ObstacleKind = "weird"


class ActionCard(BaseModel):
    """A proposed action, owned by one living member."""

    owner_id: int
    summary: str
    detail: str | None = None


class EncounterResult(BaseModel):
    """The adjudicated outcome of playing one card against an obstacle.

    Death fields only ever accompany a failure; they are cleared on success.
    """

    obstacle_index: int
    owner_id: int
    card: ActionCard
    success: bool
    narrative: str
    death_tag: str | None = None
    death_summary: str | None = None

    @model_validator(mode="after")
    def _clear_death_on_success(self) -> EncounterResult:
        if self.success:
            self.death_tag = None
            self.death_summary = None
        return self


class Encounter(BaseModel):
    index: int
    status: EncounterStatus = "pending"
    obstacle: Obstacle | None = None
    cards: list[ActionCard] | None = None
    result: EncounterResult | None = None


class RunState(BaseModel):
    """The canonical state of one run: party, encounters and cursor."""

    mode: GameMode
    date_key: str  # YYYY-MM-DD the run belongs to
    seed: str
    party: list[PartyMember]
    encounters: list[Encounter]
    cursor: int = 0

    @property
    def is_complete(self) -> bool:
        return self.cursor >= len(self.encounters)

    @property
    def living(self) -> list[PartyMember]:
        return [m for m in self.party if m.alive]

    @property
    def survivors(self) -> int:
        return len(self.living)

    def member(self, member_id: int) -> PartyMember | None:
        for m in self.party:
            if m.id == member_id:
                return m
        return None


class MemberFate(BaseModel):
    id: int
    name: str
    alive: bool
    death_tag: str | None = None
    death_summary: str | None = None
    successes: int
    failures: int


class EncounterOutcome(BaseModel):
    index: int
    title: str | None = None
    owner_id: int | None = None
    action: str | None = None
    success: bool | None = None
    narrative: str | None = None


class RunSummary(BaseModel):
    """End-of-run tally shown once every encounter has been played."""

    seed: str
    complete: bool
    survivors: int
    party_size: int
    members: list[MemberFate]
    encounters: list[EncounterOutcome]
