"""
Weighted random prize draw
"""

import random
from typing import Iterable, List, Optional, Sequence, Set
from uuid import UUID

from prizewheel.core.errors import NoPrizesAvailableError
from prizewheel.models.prize import Prize

_system_random = random.SystemRandom()


def weighted_choice(candidates: Sequence[Prize], tier: str, rng: Optional[random.Random] = None) -> Prize:
    """
    Pick one candidate with probability weight / total weight for the tier.

    Draws r uniformly in [0, total) and walks the candidates in order,
    subtracting each weight; the first candidate that brings r to <= 0 wins.
    Zero-weight candidates are skipped and can never be returned.

    Args:
        candidates: Ordered prizes to draw from
        tier: basic, gold or vip
        rng: Random source (defaults to SystemRandom)

    Returns:
        The selected prize

    Raises:
        NoPrizesAvailableError: if there are no candidates or the weights sum to zero
        ValueError: if a candidate has a negative weight
    """
    weighted = []
    for prize in candidates:
        weight = prize.weight_for(tier)
        if weight < 0:
            raise ValueError(f"Prize {prize.id} has negative {tier} weight {weight}")
        if weight > 0:
            weighted.append((prize, weight))

    total = sum(weight for _, weight in weighted)
    if not weighted or total <= 0:
        raise NoPrizesAvailableError()

    rng = rng or _system_random
    remaining = rng.random() * total
    for prize, weight in weighted:
        remaining -= weight
        if remaining <= 0:
            return prize

    # float leftovers: never return "no selection"
    return weighted[-1][0]


def eligible_candidates(prizes: Iterable[Prize], tier: str, won_prize_ids: Set[UUID]) -> List[Prize]:
    """
    Drop prizes the user already won, unless that leaves nothing drawable
    for the tier, in which case the whole catalog is eligible again.
    """
    prizes = list(prizes)
    if not won_prize_ids:
        return prizes

    remaining = [p for p in prizes if p.id not in won_prize_ids]
    if any(p.weight_for(tier) > 0 for p in remaining):
        return remaining
    return prizes


def draw_prize(prizes: Iterable[Prize], tier: str, won_prize_ids: Set[UUID], rng: Optional[random.Random] = None) -> Prize:
    """Apply the already-won filter and draw."""
    return weighted_choice(eligible_candidates(prizes, tier, won_prize_ids), tier, rng)
