"""
Tier pricing repository
"""

from typing import Dict, List, Optional
from uuid import UUID
from decimal import Decimal
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc

from prizewheel.core.config import settings
from prizewheel.models.pricing import PricingConfig, PricingHistory
from prizewheel.models.enums import TIERS

# Configure logging
logger = logging.getLogger(__name__)


def default_prices() -> Dict[str, Decimal]:
    return {
        "basic": Decimal(settings.price_basic),
        "gold": Decimal(settings.price_gold),
        "vip": Decimal(settings.price_vip),
    }


async def get_pricing_config(session: AsyncSession, tier: str) -> Optional[PricingConfig]:
    result = await session.execute(
        select(PricingConfig).where(PricingConfig.tier == tier)
    )
    return result.scalar_one_or_none()


async def get_spin_cost(session: AsyncSession, tier: str) -> Decimal:
    """
    Cost of one spin for a tier.

    Args:
        session: Database session
        tier: basic, gold or vip

    Returns:
        Active configured price, else the default from settings
    """
    config = await get_pricing_config(session, tier)
    if config and config.active:
        return Decimal(config.price)
    return default_prices()[tier]


async def get_all_pricing(session: AsyncSession) -> List[Dict]:
    """
    Current price of every tier, configured rows first, defaults otherwise.

    Args:
        session: Database session

    Returns:
        One dict per tier with tier, price, stripe_price_id and source
    """
    result = await session.execute(select(PricingConfig))
    configs = {c.tier: c for c in result.scalars().all()}
    defaults = default_prices()

    pricing = []
    for tier in TIERS:
        config = configs.get(tier)
        if config and config.active:
            pricing.append({
                "tier": tier,
                "price": float(config.price),
                "stripe_price_id": config.stripe_price_id,
                "source": "config",
            })
        else:
            pricing.append({
                "tier": tier,
                "price": float(defaults[tier]),
                "stripe_price_id": None,
                "source": "default",
            })
    return pricing


async def update_price(
    session: AsyncSession,
    tier: str,
    price: Decimal,
    stripe_price_id: str,
    changed_by: Optional[UUID] = None,
    reason: Optional[str] = None
) -> PricingConfig:
    """
    Set a tier's price and record the change in pricing history.

    Args:
        session: Database session
        tier: basic, gold or vip
        price: New price (must be positive)
        stripe_price_id: Gateway price ID for checkout
        changed_by: Admin user ID (optional)
        reason: Reason for the change (optional)

    Returns:
        Updated PricingConfig instance

    Raises:
        ValueError: on unknown tier, non-positive price or empty price ID
    """
    if tier not in TIERS:
        raise ValueError(f"Invalid tier: {tier}")
    if price <= 0:
        raise ValueError("Price must be positive")
    if not stripe_price_id:
        raise ValueError("stripe_price_id is required")

    config = await get_pricing_config(session, tier)
    old_price = Decimal(config.price) if config else default_prices()[tier]
    if config is None:
        config = PricingConfig(tier=tier, price=price, stripe_price_id=stripe_price_id, active=True)
        session.add(config)
    else:
        config.price = price
        config.stripe_price_id = stripe_price_id
        config.active = True

    session.add(PricingHistory(
        tier=tier,
        old_price=old_price,
        new_price=price,
        stripe_price_id=stripe_price_id,
        reason=reason,
        changed_by=changed_by
    ))
    await session.commit()
    await session.refresh(config)

    logger.info(f"Price for {tier} changed from {old_price} to {price} by {changed_by}")
    return config


async def get_pricing_history(session: AsyncSession, tier: Optional[str] = None, limit: int = 50) -> List[PricingHistory]:
    query = select(PricingHistory).order_by(desc(PricingHistory.created_at))
    if tier:
        query = query.where(PricingHistory.tier == tier)
    result = await session.execute(query.limit(limit))
    return list(result.scalars().all())
