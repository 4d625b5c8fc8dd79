"""
Prize catalog repository
"""

from typing import Dict, List, Optional
from uuid import UUID
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from prizewheel.core.errors import CatalogValidationError
from prizewheel.models.prize import Prize, PrizeDelivery
from prizewheel.models.enums import FulfillmentType, TIERS

# Configure logging
logger = logging.getLogger(__name__)

_PRIZE_FIELDS = ("name", "emoji", "fulfillment_type", "active", "position",
                 "weight_basic", "weight_gold", "weight_vip")
_DELIVERY_FIELDS = ("is_tier_specific", "delivery_content", "delivery_content_basic",
                    "delivery_content_gold", "delivery_content_vip")


async def get_active_prizes(session: AsyncSession) -> List[Prize]:
    """
    Get active prizes in wheel order.

    Args:
        session: Database session

    Returns:
        Active prizes ordered by position, created_at, then name
    """
    result = await session.execute(
        select(Prize)
        .where(Prize.active.is_(True))
        .order_by(Prize.position, Prize.created_at, Prize.name)
    )
    return list(result.scalars().all())


async def get_all_prizes(session: AsyncSession) -> List[Prize]:
    result = await session.execute(
        select(Prize).order_by(Prize.position, Prize.created_at, Prize.name)
    )
    return list(result.scalars().all())


async def get_prize_by_id(session: AsyncSession, prize_id: UUID) -> Optional[Prize]:
    """
    Get prize by ID.

    Args:
        session: Database session
        prize_id: Prize UUID

    Returns:
        Prize instance or None if not found
    """
    result = await session.execute(
        select(Prize).where(Prize.id == prize_id)
    )
    return result.scalar_one_or_none()


async def get_delivery_for_prize(session: AsyncSession, prize_id: UUID) -> Optional[PrizeDelivery]:
    result = await session.execute(
        select(PrizeDelivery).where(PrizeDelivery.prize_id == prize_id)
    )
    return result.scalar_one_or_none()


def resolve_delivery_content(delivery: Optional[PrizeDelivery], tier: str) -> Optional[str]:
    """Payload for a tier, or None when the prize has nothing configured."""
    if delivery is None:
        return None
    return delivery.content_for(tier)


def check_prize(prize: Prize, delivery: Optional[PrizeDelivery]) -> List[str]:
    """
    Problems with a single prize and its delivery payloads.

    Weights must be non-negative integers; an active automatic prize that
    can be drawn in a tier needs a payload for that tier.
    """
    problems = []
    label = prize.name or str(prize.id)

    if prize.fulfillment_type not in (FulfillmentType.AUTOMATIC.value, FulfillmentType.MANUAL.value):
        problems.append(f"{label}: unknown fulfillment type {prize.fulfillment_type!r}")

    for tier in TIERS:
        weight = prize.weight_for(tier)
        if not isinstance(weight, int) or isinstance(weight, bool) or weight < 0:
            problems.append(f"{label}: weight_{tier} must be a non-negative integer")
            continue
        if not prize.active or weight == 0 or prize.is_manual:
            continue
        if resolve_delivery_content(delivery, tier) is None:
            problems.append(f"{label}: no delivery content for {tier} tier")

    return problems


def check_tier_totals(prizes: List[Prize]) -> List[str]:
    """
    Tiers whose active weights sum to zero while the active catalog is non-empty.
    """
    problems = []
    active = [p for p in prizes if p.active]
    if not active:
        return problems
    for tier in TIERS:
        if sum(p.weight_for(tier) for p in active) <= 0:
            problems.append(f"{tier} tier: active weights sum to zero")
    return problems


async def _prospective_catalog(session: AsyncSession, prize: Prize) -> List[Prize]:
    """Active catalog as it would look once the edited prize is saved."""
    with session.no_autoflush:
        current = await get_active_prizes(session)
    others = [p for p in current if p.id != prize.id]
    return others + [prize] if prize.active else others


async def validate_catalog(session: AsyncSession) -> List[str]:
    """
    Check the live catalog against its invariants.

    Args:
        session: Database session

    Returns:
        List of human readable problems, empty when the catalog is usable
    """
    problems = []
    prizes = await get_active_prizes(session)

    for prize in prizes:
        delivery = await get_delivery_for_prize(session, prize.id)
        problems.extend(check_prize(prize, delivery))

    problems.extend(check_tier_totals(prizes))
    return problems


def _apply(target, values: Dict, fields) -> None:
    for field in fields:
        if field in values:
            setattr(target, field, values[field])


async def create_prize(session: AsyncSession, values: Dict) -> Prize:
    """
    Create a prize with its delivery payloads.

    Args:
        session: Database session
        values: Prize and delivery fields

    Returns:
        Created Prize instance

    Raises:
        CatalogValidationError: if the prize would break a catalog invariant
    """
    prize = Prize(
        fulfillment_type=FulfillmentType.AUTOMATIC.value,
        active=True,
        position=0,
        weight_basic=0,
        weight_gold=0,
        weight_vip=0,
    )
    _apply(prize, values, _PRIZE_FIELDS)
    delivery = PrizeDelivery(is_tier_specific=False)
    _apply(delivery, values, _DELIVERY_FIELDS)

    problems = check_prize(prize, delivery) or check_tier_totals(await _prospective_catalog(session, prize))
    if problems:
        raise CatalogValidationError(problems)

    session.add(prize)
    await session.flush()
    delivery.prize_id = prize.id
    session.add(delivery)
    await session.commit()
    await session.refresh(prize)

    logger.info(f"Created prize {prize.id} ({prize.name})")
    return prize


async def update_prize(session: AsyncSession, prize_id: UUID, values: Dict) -> Optional[Prize]:
    """
    Update a prize and its delivery payloads.

    Args:
        session: Database session
        prize_id: Prize UUID
        values: Fields to change

    Returns:
        Updated Prize instance or None if not found

    Raises:
        CatalogValidationError: if the change would break a catalog invariant
    """
    prize = await get_prize_by_id(session, prize_id)
    if not prize:
        return None

    delivery = await get_delivery_for_prize(session, prize_id)
    if delivery is None:
        delivery = PrizeDelivery(prize_id=prize.id, is_tier_specific=False)
        session.add(delivery)

    _apply(prize, values, _PRIZE_FIELDS)
    _apply(delivery, values, _DELIVERY_FIELDS)

    problems = check_prize(prize, delivery) or check_tier_totals(await _prospective_catalog(session, prize))
    if problems:
        await session.rollback()
        raise CatalogValidationError(problems)

    await session.commit()
    await session.refresh(prize)

    logger.info(f"Updated prize {prize.id} ({prize.name}): {sorted(values)}")
    return prize
