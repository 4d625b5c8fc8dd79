"""
Spin model - one row per completed draw
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String, Numeric, DateTime, Text, ForeignKey, Index, Uuid
from sqlalchemy.sql import func
from prizewheel.db.base import Base
from prizewheel.models.enums import FulfillmentStatus
import uuid

# Allowed forward moves of fulfillment_status
_TRANSITIONS = {
    FulfillmentStatus.PENDING.value: {FulfillmentStatus.DELIVERED.value, FulfillmentStatus.COMPLETED.value},
    FulfillmentStatus.DELIVERED.value: set(),
    FulfillmentStatus.COMPLETED.value: set(),
}


class Spin(Base):
    """Spin model - the drawn prize, what was paid and how fulfillment is going"""
    __tablename__ = "spins"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    prize_id = Column(Uuid(as_uuid=True), ForeignKey("prizes.id"), nullable=False)
    tier = Column(String(16), nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False)
    token_hash = Column(String(128), nullable=False, unique=True)
    stripe_payment_id = Column(String(255), nullable=True)
    fulfillment_status = Column(String(16), nullable=False, default=FulfillmentStatus.PENDING.value)
    fulfillment_link = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    fulfilled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_spins_status_created", "fulfillment_status", "created_at"),
    )

    def advance_status(self, new_status: FulfillmentStatus) -> None:
        """Move fulfillment forward; backward or sideways moves raise ValueError."""
        target = new_status.value if isinstance(new_status, FulfillmentStatus) else str(new_status)
        current = self.fulfillment_status or FulfillmentStatus.PENDING.value
        if target == current:
            return
        if target not in _TRANSITIONS.get(current, set()):
            raise ValueError(f"Cannot move spin {self.id} from {current} to {target}")

        self.fulfillment_status = target
        now = datetime.now(timezone.utc)
        if target == FulfillmentStatus.DELIVERED.value:
            self.delivered_at = now
        elif target == FulfillmentStatus.COMPLETED.value:
            self.fulfilled_at = now

    @property
    def transaction_reference(self) -> str:
        return f"TX-{str(self.id)[:8]}"

    def __repr__(self):
        return f"<Spin(id={self.id}, email={self.email}, prize_id={self.prize_id}, tier={self.tier}, status={self.fulfillment_status})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "user_id": str(self.user_id) if self.user_id else None,
            "email": self.email,
            "prize_id": str(self.prize_id),
            "tier": self.tier,
            "amount_paid": str(self.amount_paid),
            "fulfillment_status": self.fulfillment_status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "delivered_at": self.delivered_at.isoformat() if self.delivered_at else None,
            "fulfilled_at": self.fulfilled_at.isoformat() if self.fulfilled_at else None,
        }
