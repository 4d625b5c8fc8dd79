"""
Public pricing API endpoints
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from prizewheel.core.config import settings
from prizewheel.db.session import get_db
from prizewheel.repos.pricing_repo import get_all_pricing

router = APIRouter()


@router.get("")
async def get_pricing(session: AsyncSession = Depends(get_db)):
    """
    Current spin price for every tier.
    """
    return {
        "currency": settings.currency,
        "pricing": await get_all_pricing(session)
    }
