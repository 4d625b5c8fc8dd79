"""
Legacy paid-session transaction repository
"""

from typing import List, Optional
from decimal import Decimal
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from prizewheel.models.transaction import Transaction
from prizewheel.models.enums import PaymentStatus

# Configure logging
logger = logging.getLogger(__name__)


async def get_transaction_by_session(
    session: AsyncSession,
    stripe_session_id: str
) -> Optional[Transaction]:
    """
    Get transaction by checkout session ID.

    Args:
        session: Database session
        stripe_session_id: Checkout session ID

    Returns:
        Transaction instance or None if not found
    """
    result = await session.execute(
        select(Transaction).where(Transaction.stripe_session_id == stripe_session_id)
    )
    return result.scalar_one_or_none()


async def get_paid_transaction(
    session: AsyncSession,
    stripe_session_id: str,
    tier: str
) -> Optional[Transaction]:
    """
    Get the paid transaction for a session and tier.

    Args:
        session: Database session
        stripe_session_id: Checkout session ID
        tier: Purchased tier

    Returns:
        Transaction instance or None when no paid purchase matches
    """
    result = await session.execute(
        select(Transaction).where(
            Transaction.stripe_session_id == stripe_session_id,
            Transaction.tier == tier,
            Transaction.status == PaymentStatus.PAID.value
        )
    )
    return result.scalar_one_or_none()


async def record_paid_transaction(
    session: AsyncSession,
    stripe_session_id: str,
    email: str,
    tier: str,
    amount: Decimal
) -> Transaction:
    """
    Record a paid tier purchase, returning the existing row when the session
    was already verified.

    Args:
        session: Database session
        stripe_session_id: Checkout session ID
        email: Payer email
        tier: Purchased tier
        amount: Amount paid

    Returns:
        Transaction instance
    """
    existing = await get_transaction_by_session(session, stripe_session_id)
    if existing:
        return existing

    transaction = Transaction(
        stripe_session_id=stripe_session_id,
        email=email,
        tier=tier,
        amount=amount,
        status=PaymentStatus.PAID.value
    )
    session.add(transaction)
    await session.commit()
    await session.refresh(transaction)

    logger.info(f"Recorded paid {tier} transaction for session {stripe_session_id}")
    return transaction


async def list_transactions(
    session: AsyncSession,
    status: Optional[str] = None,
    tier: Optional[str] = None,
    limit: int = 50,
    offset: int = 0
) -> List[Transaction]:
    """
    Legacy tier purchases, newest first.

    Args:
        session: Database session
        status: Filter by payment status
        tier: Filter by purchased tier
        limit: Maximum number of transactions to return
        offset: Number of transactions to skip

    Returns:
        List of Transaction instances
    """
    query = select(Transaction).order_by(desc(Transaction.created_at))
    if status:
        query = query.where(Transaction.status == status)
    if tier:
        query = query.where(Transaction.tier == tier)

    result = await session.execute(query.limit(limit).offset(offset))
    return list(result.scalars().all())
