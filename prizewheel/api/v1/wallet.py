"""
Wallet API endpoints
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from prizewheel.core.auth import CurrentUser, get_current_user
from prizewheel.core.config import settings
from prizewheel.db.session import get_db
from prizewheel.repos.wallet_repo import get_or_create_wallet
from prizewheel.repos.ledger_repo import get_ledger_for_user

router = APIRouter()


class WalletBalance(BaseModel):
    """Wallet balance response model"""
    wallet_id: str
    balance: str
    currency: str


@router.get("/", response_model=WalletBalance)
async def get_wallet_balance(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db)
):
    """
    Get current user's wallet balance, creating an empty wallet on first use.
    """
    wallet = await get_or_create_wallet(session, current_user.id)
    return WalletBalance(
        wallet_id=str(wallet.id),
        balance=str(wallet.balance),
        currency=settings.currency
    )


@router.get("/transactions")
async def get_wallet_transactions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db)
):
    """
    Get user's wallet ledger, newest first.
    """
    entries = await get_ledger_for_user(session, current_user.id, limit=limit, offset=offset)
    return {
        "transactions": [entry.to_dict() for entry in entries],
        "limit": limit,
        "offset": offset
    }
