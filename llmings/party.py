"""Deterministic party generation.

generate_party(seed, count) is a pure function of its arguments: the same
seed and count always yield the same roster. Daily runs use the date key as
seed, so every player meets the same party on the same day.

The generator is a 32-bit LCG seeded from a string hash (h = h*31 + c),
stepped as h = h*1664525 + 1013904223 and scaled to [0, 1].
"""

from __future__ import annotations

from typing import Sequence, TypeVar

from llmings.models import PartyMember

T = TypeVar("T")

NAME_POOL: tuple[str, ...] = (
    # Chunky, bouncy, onomatopoeic names
    "Chunk", "Blocky", "Whumps", "Clogs", "Bloopy", "Oopsy", "Plonk",
    "Clatter", "Thwip", "Plink", "Bopple", "Snork", "Glomp", "Crinkle",
    "Squidge", "Blorp", "Thunk", "Muddle", "Skitter", "Plod", "Flump",
    "Boing", "Skronk", "Crumpet", "Tumbles", "Scuff", "Splat", "Rumple",
    "Doodle", "Fidget", "Wobble", "Snaggle", "Bumble", "Clonk", "Spronk",
    "Grumble", "Swizzle", "Jumble", "Smudge",
)

PERSONALITIES: tuple[str, ...] = (
    "Reckless", "Nervous", "Analytical", "Dramatic", "Deadpan",
    "Chaotic", "Heroic", "Naive", "Disgruntled",
)

TRAITS: tuple[str, ...] = ("Brave", "Cowardly", "Precise", "Chaotic", "Lucky")

CLASSES: tuple[str, ...] = (
    "Barbarian", "Wizard", "Thief", "Rogue", "Druid", "Paladin",
)

VOICES: tuple[str, ...] = (
    "excitable stage directions",
    "overwritten fantasy prose",
    "dry technical commentary",
    "deadpan one-liners",
    "dramatic internal monologue",
)

_MASK = 0xFFFFFFFF


class SeededRNG:
    """String-seeded 32-bit LCG returning floats in [0, 1]."""

    def __init__(self, seed: str) -> None:
        h = 0
        for ch in seed:
            h = (h * 31 + ord(ch)) & _MASK
        self._state = h

    def random(self) -> float:
        self._state = (self._state * 1664525 + 1013904223) & _MASK
        return self._state / _MASK

    def index(self, length: int) -> int:
        """Return an index in [0, length); 1.0 maps to the last slot."""
        return min(int(self.random() * length), length - 1)

    def choice(self, seq: Sequence[T]) -> T:
        return seq[self.index(len(seq))]


def generate_party(seed: str, count: int) -> list[PartyMember]:
    """Build `count` members with ids 0..count-1 and no repeated names."""
    rng = SeededRNG(seed)
    available = list(NAME_POOL)

    party: list[PartyMember] = []
    for i in range(count):
        if available:
            name = available.pop(rng.index(len(available)))
        else:
            rng.random()
            name = f"LLMing-{i + 1}"

        party.append(PartyMember(
            id=i,
            name=name,
            personality=rng.choice(PERSONALITIES),
            trait=rng.choice(TRAITS),
            character_class=rng.choice(CLASSES),
            voice=rng.choice(VOICES),
        ))

    return party
