"""
Legacy paid-session transaction model
"""

from sqlalchemy import Column, String, Numeric, DateTime, Uuid
from sqlalchemy.sql import func
from prizewheel.db.base import Base
from prizewheel.models.enums import PaymentStatus
import uuid


class Transaction(Base):
    """A tier purchased directly through checkout, redeemable for one token spin"""
    __tablename__ = "transactions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    stripe_session_id = Column(String(255), nullable=False, unique=True)
    email = Column(String(255), nullable=False)
    tier = Column(String(16), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(16), nullable=False, default=PaymentStatus.PAID.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Transaction(id={self.id}, session={self.stripe_session_id}, tier={self.tier}, amount={self.amount})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "stripe_session_id": self.stripe_session_id,
            "email": self.email,
            "tier": self.tier,
            "amount": str(self.amount),
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
