"""Tests for the seeded random source."""

import pytest

from narrative.rng import SeededRNG


def test_same_seed_same_stream():
    a = SeededRNG("career-1")
    b = SeededRNG("career-1")
    assert [a.next() for _ in range(20)] == [b.next() for _ in range(20)]


def test_different_seeds_diverge():
    a = SeededRNG("career-1")
    b = SeededRNG("career-2")
    assert [a.next() for _ in range(5)] != [b.next() for _ in range(5)]


def test_next_is_unit_interval():
    rng = SeededRNG(7)
    for _ in range(500):
        value = rng.next()
        assert 0.0 <= value < 1.0


def test_chance_extremes():
    rng = SeededRNG(1)
    assert not any(rng.chance(0.0) for _ in range(100))
    assert all(rng.chance(1.0) for _ in range(100))


@pytest.mark.parametrize("probability", [-0.1, 1.01, 5])
def test_chance_rejects_invalid_probability(probability):
    with pytest.raises(ValueError):
        SeededRNG(1).chance(probability)


def test_next_int_is_inclusive():
    rng = SeededRNG("ints")
    seen = {rng.next_int(3, 5) for _ in range(300)}
    assert seen == {3, 4, 5}
    assert rng.next_int(9, 9) == 9


def test_next_int_rejects_inverted_range():
    with pytest.raises(ValueError):
        SeededRNG(1).next_int(5, 4)


def test_pick_returns_member_and_rejects_empty():
    rng = SeededRNG(3)
    items = ["a", "b", "c"]
    for _ in range(50):
        assert rng.pick(items) in items
    with pytest.raises(ValueError):
        rng.pick([])


def test_pick_weighted_ignores_zero_weights():
    rng = SeededRNG(11)
    for _ in range(100):
        assert rng.pick_weighted([("never", 0), ("always", 2.5), ("nope", 0)]) == "always"


@pytest.mark.parametrize(
    "items",
    [
        [],
        [("a", 0), ("b", 0)],
        [("a", 1), ("b", -1)],
    ],
)
def test_pick_weighted_rejects_bad_weights(items):
    with pytest.raises(ValueError):
        SeededRNG(1).pick_weighted(items)
