"""
Wallet ledger repository - append-only wallet transactions
"""

from typing import List, Optional
from uuid import UUID
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc

from prizewheel.models.wallet import WalletTransaction
from prizewheel.models.enums import LedgerEntryType


async def create_ledger_entry(
    session: AsyncSession,
    wallet_id: UUID,
    user_id: UUID,
    amount: Decimal,
    tx_type: LedgerEntryType,
    description: str,
    stripe_payment_id: Optional[str] = None,
    spin_id: Optional[UUID] = None
) -> WalletTransaction:
    """
    Append a ledger entry. Flushes but does not commit, so the entry lands
    in the same transaction as the balance change it records.

    Args:
        session: Database session
        wallet_id: Wallet UUID
        user_id: User UUID
        amount: Signed amount (negative for debits)
        tx_type: credit or debit
        description: Human readable description
        stripe_payment_id: Payment reference for top-ups (optional)
        spin_id: Spin paid for by a debit (optional)

    Returns:
        Created WalletTransaction instance
    """
    entry = WalletTransaction(
        wallet_id=wallet_id,
        user_id=user_id,
        amount=amount,
        tx_type=tx_type.value if isinstance(tx_type, LedgerEntryType) else tx_type,
        description=description,
        stripe_payment_id=stripe_payment_id,
        spin_id=spin_id
    )
    session.add(entry)
    await session.flush()
    return entry


async def get_ledger_for_user(
    session: AsyncSession,
    user_id: UUID,
    limit: int = 50,
    offset: int = 0
) -> List[WalletTransaction]:
    """
    Get a user's ledger entries, newest first.

    Args:
        session: Database session
        user_id: User UUID
        limit: Maximum number of entries to return
        offset: Number of entries to skip

    Returns:
        List of WalletTransaction instances
    """
    result = await session.execute(
        select(WalletTransaction)
        .where(WalletTransaction.user_id == user_id)
        .order_by(desc(WalletTransaction.created_at))
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def get_ledger_entry_by_payment(
    session: AsyncSession,
    stripe_payment_id: str
) -> Optional[WalletTransaction]:
    result = await session.execute(
        select(WalletTransaction).where(WalletTransaction.stripe_payment_id == stripe_payment_id)
    )
    return result.scalar_one_or_none()


async def get_debits_for_spin(session: AsyncSession, spin_id: UUID) -> List[WalletTransaction]:
    result = await session.execute(
        select(WalletTransaction).where(
            WalletTransaction.spin_id == spin_id,
            WalletTransaction.tx_type == LedgerEntryType.DEBIT.value
        )
    )
    return list(result.scalars().all())
