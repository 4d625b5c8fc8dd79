"""
Spin API endpoints
"""

import logging
import random
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from prizewheel.api.deps import get_dispatcher, get_rng
from prizewheel.core.auth import CurrentUser, get_current_user, security
from prizewheel.core.errors import SpinAuthenticationError, SpinError, SpinFailedError
from prizewheel.db.session import get_db
from prizewheel.repos.spin_repo import get_spins_for_user
from prizewheel.services.delivery import DeliveryDispatcher
from prizewheel.services.spin import spin_with_wallet, spin_with_token

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()


class SpinRequest(BaseModel):
    """Wallet spin request model; the tier is checked by the spin service"""
    tier: Optional[Any] = Field(None, description="basic, gold or vip")


class TokenSpinRequest(BaseModel):
    """Token spin request model"""
    token: Optional[Any] = Field(None, description="Signed spin token from payment verification")
    tier: Optional[Any] = Field(None, description="Tier the token was issued for")


class PrizeResult(BaseModel):
    """Drawn prize"""
    id: str
    name: str
    emoji: str
    type: str
    delivery_content: Optional[str] = None


class SpinResponse(BaseModel):
    """Wallet spin response model"""
    prize: PrizeResult
    newBalance: float


class TokenSpinResponse(BaseModel):
    """Token spin response model"""
    prize: PrizeResult


async def get_spin_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> CurrentUser:
    """Caller identity for spin routes, rejected with the {error} body."""
    try:
        return await get_current_user(credentials)
    except HTTPException as e:
        raise SpinAuthenticationError(str(e.detail))


@router.post("", response_model=SpinResponse)
async def spin(
    request: SpinRequest,
    current_user: CurrentUser = Depends(get_spin_user),
    session: AsyncSession = Depends(get_db),
    dispatcher: DeliveryDispatcher = Depends(get_dispatcher),
    rng: Optional[random.Random] = Depends(get_rng)
):
    """
    Spend wallet balance on a spin.

    Errors come back as {"error", "balance"?, "required"?}.
    """
    try:
        return await spin_with_wallet(session, current_user, request.tier, dispatcher, rng)
    except SpinError:
        raise
    except Exception as e:
        logger.error(f"Spin failed for user {current_user.id}: {e}")
        raise SpinFailedError()


@router.post("/token", response_model=TokenSpinResponse)
async def spin_token(
    request: TokenSpinRequest,
    session: AsyncSession = Depends(get_db),
    dispatcher: DeliveryDispatcher = Depends(get_dispatcher),
    rng: Optional[random.Random] = Depends(get_rng)
):
    """
    Redeem a single-use spin token from a paid checkout session.
    """
    try:
        return await spin_with_token(session, request.token, request.tier, dispatcher, rng)
    except SpinError:
        raise
    except Exception as e:
        logger.error(f"Token spin failed: {e}")
        raise SpinFailedError()


@router.get("/history")
async def spin_history(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: CurrentUser = Depends(get_spin_user),
    session: AsyncSession = Depends(get_db)
):
    """The caller's wallet spins, newest first."""
    spins = await get_spins_for_user(session, current_user.id, limit=limit, offset=offset)
    return {
        "spins": [spin.to_dict() for spin in spins],
        "limit": limit,
        "offset": offset,
    }
