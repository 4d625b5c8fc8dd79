"""
Wallet repository with atomic balance operations
"""

from typing import Optional, Tuple
from uuid import UUID
from decimal import Decimal
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, update
from sqlalchemy.sql import func
from prizewheel.models.wallet import Wallet

# Configure logging
logger = logging.getLogger(__name__)


async def get_wallet_for_user(session: AsyncSession, user_id: UUID) -> Optional[Wallet]:
    """
    Get wallet for a specific user.

    Args:
        session: Database session
        user_id: User UUID

    Returns:
        Wallet instance or None if not found
    """
    result = await session.execute(
        select(Wallet)
        .where(Wallet.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_or_create_wallet(session: AsyncSession, user_id: UUID) -> Wallet:
    """
    Get a user's wallet, creating a zero-balance one on first use.

    A concurrent request that inserts the same user's wallet first wins the
    unique constraint; the loser re-reads that row.

    Args:
        session: Database session
        user_id: User UUID

    Returns:
        Wallet instance
    """
    existing_wallet = await get_wallet_for_user(session, user_id)
    if existing_wallet:
        return existing_wallet

    wallet = Wallet(user_id=user_id, balance=Decimal('0'))
    session.add(wallet)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.info(f"Wallet for user {user_id} created concurrently, re-reading")
        existing_wallet = await get_wallet_for_user(session, user_id)
        if existing_wallet is None:
            raise
        return existing_wallet

    await session.refresh(wallet)
    logger.info(f"Created wallet {wallet.id} for user {user_id}")
    return wallet


async def _read_balance(session: AsyncSession, user_id: UUID) -> Optional[Decimal]:
    result = await session.execute(
        select(Wallet.balance).where(Wallet.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def debit_wallet_atomic(
    session: AsyncSession,
    user_id: UUID,
    amount: Decimal
) -> Tuple[bool, Optional[str], Optional[Decimal]]:
    """
    Atomically debit a wallet with a conditional decrement.

    The UPDATE only matches when the balance covers the amount, so two
    concurrent debits can never both pass a stale balance check. Does not
    commit; the caller owns the transaction.

    Args:
        session: Database session
        user_id: User UUID
        amount: Amount to debit (must be positive)

    Returns:
        Tuple of (success: bool, error_message: Optional[str], new_balance: Optional[Decimal])
    """
    if amount <= 0:
        return False, "Amount must be positive", None

    result = await session.execute(
        update(Wallet)
        .where(Wallet.user_id == user_id, Wallet.balance >= amount)
        .values(balance=Wallet.balance - amount, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        current = await _read_balance(session, user_id)
        if current is None:
            return False, "Wallet not found", None
        logger.warning(f"Debit of {amount} rejected for user {user_id}: balance {current}")
        return False, "Insufficient balance", current

    new_balance = await _read_balance(session, user_id)
    logger.info(f"Debited {amount} from user {user_id}. New balance: {new_balance}")
    return True, None, new_balance


async def credit_wallet_atomic(
    session: AsyncSession,
    user_id: UUID,
    amount: Decimal
) -> Tuple[bool, Optional[str], Optional[Decimal]]:
    """
    Atomically credit a wallet. Does not commit; the caller owns the transaction.

    Args:
        session: Database session
        user_id: User UUID
        amount: Amount to credit (must be positive)

    Returns:
        Tuple of (success: bool, error_message: Optional[str], new_balance: Optional[Decimal])
    """
    if amount <= 0:
        return False, "Amount must be positive", None

    result = await session.execute(
        update(Wallet)
        .where(Wallet.user_id == user_id)
        .values(balance=Wallet.balance + amount, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False, "Wallet not found", None

    new_balance = await _read_balance(session, user_id)
    logger.info(f"Credited {amount} to user {user_id}. New balance: {new_balance}")
    return True, None, new_balance
