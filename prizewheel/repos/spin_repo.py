"""
Spin repository
"""

from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple
from uuid import UUID
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, func

from prizewheel.models.spin import Spin
from prizewheel.models.prize import Prize, PrizeDelivery
from prizewheel.models.enums import FulfillmentStatus, FulfillmentType, TIERS


async def create_spin(
    session: AsyncSession,
    email: str,
    prize_id: UUID,
    tier: str,
    amount_paid: Decimal,
    token_hash: str,
    user_id: Optional[UUID] = None,
    stripe_payment_id: Optional[str] = None
) -> Spin:
    """
    Insert a spin row. Flushes but does not commit.

    Args:
        session: Database session
        email: Winner email
        prize_id: Drawn prize
        tier: Tier spun
        amount_paid: Cost of the spin
        token_hash: Uniqueness token (unique across all spins)
        user_id: Wallet owner for wallet spins (optional)
        stripe_payment_id: Payment reference for token spins (optional)

    Returns:
        Created Spin instance

    Raises:
        IntegrityError: if token_hash is already used
    """
    spin = Spin(
        user_id=user_id,
        email=email,
        prize_id=prize_id,
        tier=tier,
        amount_paid=amount_paid,
        token_hash=token_hash,
        stripe_payment_id=stripe_payment_id,
        fulfillment_status=FulfillmentStatus.PENDING.value
    )
    session.add(spin)
    await session.flush()
    return spin


async def get_spin_by_id(session: AsyncSession, spin_id: UUID) -> Optional[Spin]:
    result = await session.execute(
        select(Spin).where(Spin.id == spin_id)
    )
    return result.scalar_one_or_none()


async def get_spin_by_token_hash(session: AsyncSession, token_hash: str) -> Optional[Spin]:
    result = await session.execute(
        select(Spin).where(Spin.token_hash == token_hash)
    )
    return result.scalar_one_or_none()


async def get_won_prize_ids(session: AsyncSession, email: str) -> Set[UUID]:
    """
    Prize IDs already won by an email, across all tiers.

    Args:
        session: Database session
        email: Winner email

    Returns:
        Set of prize UUIDs
    """
    result = await session.execute(
        select(Spin.prize_id).where(Spin.email == email).distinct()
    )
    return set(result.scalars().all())


async def get_spins_for_user(
    session: AsyncSession,
    user_id: UUID,
    limit: int = 50,
    offset: int = 0
) -> List[Spin]:
    result = await session.execute(
        select(Spin)
        .where(Spin.user_id == user_id)
        .order_by(desc(Spin.created_at))
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def get_pending_manual_spins(
    session: AsyncSession
) -> List[Tuple[Spin, Prize, Optional[PrizeDelivery]]]:
    """
    Pending spins whose prize needs manual fulfillment, oldest first.

    Args:
        session: Database session

    Returns:
        List of (spin, prize, delivery) tuples; delivery may be None
    """
    result = await session.execute(
        select(Spin, Prize, PrizeDelivery)
        .join(Prize, Spin.prize_id == Prize.id)
        .outerjoin(PrizeDelivery, PrizeDelivery.prize_id == Prize.id)
        .where(
            Spin.fulfillment_status == FulfillmentStatus.PENDING.value,
            Prize.fulfillment_type == FulfillmentType.MANUAL.value
        )
        .order_by(Spin.created_at.asc())
    )
    return [tuple(row) for row in result.all()]


def _spin_filters(query, tier: Optional[str] = None, status: Optional[str] = None,
                  email: Optional[str] = None, since: Optional[datetime] = None):
    if tier:
        query = query.where(Spin.tier == tier)
    if status:
        query = query.where(Spin.fulfillment_status == status)
    if email:
        query = query.where(Spin.email == email)
    if since:
        query = query.where(Spin.created_at >= since)
    return query


async def list_spins(
    session: AsyncSession,
    tier: Optional[str] = None,
    status: Optional[str] = None,
    email: Optional[str] = None,
    since: Optional[datetime] = None,
    limit: int = 50,
    offset: int = 0
) -> List[Tuple[Spin, Optional[str]]]:
    """
    Spin history for the admin console, newest first.

    Args:
        session: Database session
        tier: Filter by tier
        status: Filter by fulfillment status
        email: Filter by winner email
        since: Only spins created at or after this time
        limit: Maximum number of spins to return
        offset: Number of spins to skip

    Returns:
        List of (spin, prize name) tuples
    """
    query = _spin_filters(
        select(Spin, Prize.name).outerjoin(Prize, Spin.prize_id == Prize.id),
        tier=tier, status=status, email=email, since=since
    )
    result = await session.execute(
        query.order_by(desc(Spin.created_at)).limit(limit).offset(offset)
    )
    return [tuple(row) for row in result.all()]


async def get_spin_stats(session: AsyncSession, since: Optional[datetime] = None) -> Dict[str, Dict]:
    """Spin count and revenue per tier; tiers without spins report zeros."""
    query = _spin_filters(
        select(Spin.tier, func.count(Spin.id), func.coalesce(func.sum(Spin.amount_paid), 0)),
        since=since
    ).group_by(Spin.tier)
    result = await session.execute(query)

    stats = {tier: {"spins": 0, "revenue": Decimal("0")} for tier in TIERS}
    for tier, count, revenue in result.all():
        stats[tier] = {"spins": count, "revenue": Decimal(str(revenue))}
    return stats


async def get_revenue_by_date(session: AsyncSession, since: Optional[datetime] = None) -> List[Dict]:
    """Spins and revenue per calendar day, oldest first."""
    day = func.date(Spin.created_at)
    query = _spin_filters(
        select(day, func.count(Spin.id), func.coalesce(func.sum(Spin.amount_paid), 0)),
        since=since
    ).group_by(day).order_by(day)
    result = await session.execute(query)
    return [
        {"date": str(date), "spins": count, "revenue": Decimal(str(revenue))}
        for date, count, revenue in result.all()
    ]


async def get_spend_by_email(session: AsyncSession, limit: int = 50, offset: int = 0) -> List[Dict]:
    """
    Players derived from spin history, biggest spenders first.

    Args:
        session: Database session
        limit: Maximum number of players to return
        offset: Number of players to skip

    Returns:
        List of {"email", "total_spins", "total_spent", "last_spin_at"} dicts
    """
    total = func.coalesce(func.sum(Spin.amount_paid), 0)
    result = await session.execute(
        select(Spin.email, func.count(Spin.id), total, func.max(Spin.created_at))
        .group_by(Spin.email)
        .order_by(desc(total), Spin.email)
        .limit(limit)
        .offset(offset)
    )
    return [
        {"email": email, "total_spins": count, "total_spent": Decimal(str(spent)), "last_spin_at": last}
        for email, count, spent, last in result.all()
    ]
