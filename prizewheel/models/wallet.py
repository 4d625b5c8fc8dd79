"""
Wallet and wallet ledger models
"""

from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.sql import func
from prizewheel.db.base import Base
import uuid


class Wallet(Base):
    """Wallet model - one stored-value balance per user"""
    __tablename__ = "wallets"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, unique=True)
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    # Constraints
    __table_args__ = (
        CheckConstraint('balance >= 0', name='chk_balance_nonneg'),
    )

    def __repr__(self):
        return f"<Wallet(id={self.id}, user_id={self.user_id}, balance={self.balance})>"


class WalletTransaction(Base):
    """Append-only ledger entry, one per wallet mutation"""
    __tablename__ = "wallet_transactions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    wallet_id = Column(Uuid(as_uuid=True), ForeignKey("wallets.id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    tx_type = Column('type', String(16), nullable=False)
    description = Column(String(255), nullable=False)
    stripe_payment_id = Column(String(255), nullable=True, unique=True)
    spin_id = Column(Uuid(as_uuid=True), ForeignKey("spins.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<WalletTransaction(id={self.id}, user_id={self.user_id}, type={self.tx_type}, amount={self.amount})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "wallet_id": str(self.wallet_id),
            "type": self.tx_type,
            "amount": str(self.amount),
            "description": self.description,
            "stripe_payment_id": self.stripe_payment_id,
            "spin_id": str(self.spin_id) if self.spin_id else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
