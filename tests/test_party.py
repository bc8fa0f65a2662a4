"""Tests for llmings.party — deterministic roster generation."""

from llmings.party import NAME_POOL, SeededRNG, generate_party


class TestSeededRNG:
    def test_same_seed_same_sequence(self) -> None:
        a, b = SeededRNG("2026-10-19"), SeededRNG("2026-10-19")
        assert [a.random() for _ in range(20)] == [b.random() for _ in range(20)]

    def test_different_seed_different_sequence(self) -> None:
        a, b = SeededRNG("2026-10-19"), SeededRNG("2026-10-20")
        assert [a.random() for _ in range(5)] != [b.random() for _ in range(5)]

    def test_values_in_unit_interval(self) -> None:
        rng = SeededRNG("x")
        for _ in range(200):
            assert 0.0 <= rng.random() <= 1.0

    def test_index_in_range(self) -> None:
        rng = SeededRNG("y")
        for _ in range(200):
            assert 0 <= rng.index(7) < 7


class TestGenerateParty:
    def test_deterministic(self) -> None:
        assert generate_party("2026-10-19", 5) == generate_party("2026-10-19", 5)

    def test_ids_are_positional(self) -> None:
        party = generate_party("seed", 5)
        assert [m.id for m in party] == [0, 1, 2, 3, 4]

    def test_names_unique(self) -> None:
        party = generate_party("seed", 20)
        names = [m.name for m in party]
        assert len(set(names)) == len(names)

    def test_everyone_starts_alive(self) -> None:
        party = generate_party("seed", 5)
        assert all(m.alive and m.death_tag is None and m.history == [] for m in party)

    def test_falls_back_when_pool_exhausted(self) -> None:
        count = len(NAME_POOL) + 2
        party = generate_party("seed", count)
        assert party[-1].name == f"LLMing-{count}"
        assert party[-2].name == f"LLMing-{count - 1}"

    def test_seed_changes_roster(self) -> None:
        assert generate_party("2026-10-19", 5) != generate_party("2026-10-20", 5)
