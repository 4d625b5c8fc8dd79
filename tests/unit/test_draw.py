"""
Unit tests for the weighted prize draw
"""

import random
from collections import Counter
from uuid import uuid4

import pytest

from prizewheel.core.errors import NoPrizesAvailableError
from prizewheel.models.prize import Prize
from prizewheel.services.draw import draw_prize, eligible_candidates, weighted_choice


def make_prize(name, basic=0, gold=0, vip=0):
    return Prize(id=uuid4(), name=name, emoji="🎁", fulfillment_type="automatic", active=True,
                 position=0, weight_basic=basic, weight_gold=gold, weight_vip=vip)


class FixedRandom:
    """Returns the same value from random() every time."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class TestWeightedChoice:
    """Selection probabilities follow weight / total weight"""

    def test_frequencies_follow_weights(self):
        a = make_prize("A", basic=3)
        b = make_prize("B", basic=1)
        rng = random.Random(42)

        counts = Counter(weighted_choice([a, b], "basic", rng).name for _ in range(4000))

        assert counts["A"] / 4000 == pytest.approx(0.75, abs=0.04)
        assert counts["B"] / 4000 == pytest.approx(0.25, abs=0.04)

    def test_zero_weight_prize_is_never_drawn(self):
        a = make_prize("A", basic=10)
        b = make_prize("B", basic=0)
        rng = random.Random(3)

        drawn = {weighted_choice([b, a], "basic", rng).name for _ in range(500)}

        assert drawn == {"A"}

    def test_uses_the_requested_tier_weights(self):
        a = make_prize("A", basic=5, vip=0)
        b = make_prize("B", basic=0, vip=5)
        rng = random.Random(11)

        assert {weighted_choice([a, b], "vip", rng).name for _ in range(200)} == {"B"}

    def test_lowest_draw_picks_first_positive_weight_candidate(self):
        zero = make_prize("Zero", basic=0)
        first = make_prize("First", basic=2)
        second = make_prize("Second", basic=2)

        assert weighted_choice([zero, first, second], "basic", FixedRandom(0.0)) is first

    def test_highest_draw_picks_last_candidate(self):
        first = make_prize("First", basic=1)
        second = make_prize("Second", basic=1)

        assert weighted_choice([first, second], "basic", FixedRandom(0.999999)) is second

    def test_same_seed_same_sequence(self):
        prizes = [make_prize(f"P{i}", gold=i + 1) for i in range(5)]

        rng_a, rng_b = random.Random(99), random.Random(99)
        seq_a = [weighted_choice(prizes, "gold", rng_a).name for _ in range(50)]
        seq_b = [weighted_choice(prizes, "gold", rng_b).name for _ in range(50)]

        assert seq_a == seq_b

    def test_empty_candidates_raise(self):
        with pytest.raises(NoPrizesAvailableError):
            weighted_choice([], "basic")

    def test_all_zero_weights_raise(self):
        with pytest.raises(NoPrizesAvailableError):
            weighted_choice([make_prize("A"), make_prize("B")], "gold")

    def test_negative_weight_is_rejected(self):
        with pytest.raises(ValueError):
            weighted_choice([make_prize("A", basic=-1), make_prize("B", basic=2)], "basic")

    def test_default_source_returns_a_candidate(self):
        a = make_prize("A", vip=1)
        assert weighted_choice([a], "vip") is a


class TestAlreadyWonFilter:
    """Won prizes are excluded until nothing drawable is left"""

    def test_won_prizes_are_excluded(self):
        a = make_prize("A", basic=5)
        b = make_prize("B", basic=5)

        assert eligible_candidates([a, b], "basic", {a.id}) == [b]

    def test_catalog_resets_when_every_prize_was_won(self):
        a = make_prize("A", basic=5)
        b = make_prize("B", basic=5)

        assert eligible_candidates([a, b], "basic", {a.id, b.id}) == [a, b]

    def test_reset_when_only_zero_weight_prizes_remain(self):
        a = make_prize("A", basic=5)
        b = make_prize("B", basic=0)

        assert eligible_candidates([a, b], "basic", {a.id}) == [a, b]

    def test_no_history_keeps_everything(self):
        prizes = [make_prize("A", basic=1), make_prize("B", basic=1)]
        assert eligible_candidates(prizes, "basic", set()) == prizes

    def test_draw_prize_skips_won_prize(self):
        a = make_prize("A", gold=50)
        b = make_prize("B", gold=1)
        rng = random.Random(5)

        assert {draw_prize([a, b], "gold", {a.id}, rng).name for _ in range(100)} == {"B"}
