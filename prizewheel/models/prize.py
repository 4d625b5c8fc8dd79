"""
Prize catalog models
"""

from typing import Optional

from sqlalchemy import (
    Column,
    String,
    Integer,
    Boolean,
    Text,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Uuid,
)
from sqlalchemy.sql import func
from prizewheel.db.base import Base
from prizewheel.models.enums import FulfillmentType, Tier
import uuid


class Prize(Base):
    """Prize model - one wheel segment with a weight per tier"""
    __tablename__ = "prizes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(128), nullable=False)
    emoji = Column(String(16), nullable=False, default="🎁")
    fulfillment_type = Column(String(16), nullable=False, default=FulfillmentType.AUTOMATIC.value)
    active = Column(Boolean, nullable=False, default=True)
    position = Column(Integer, nullable=False, default=0)
    weight_basic = Column(Integer, nullable=False, default=0)
    weight_gold = Column(Integer, nullable=False, default=0)
    weight_vip = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('weight_basic >= 0', name='chk_weight_basic_nonneg'),
        CheckConstraint('weight_gold >= 0', name='chk_weight_gold_nonneg'),
        CheckConstraint('weight_vip >= 0', name='chk_weight_vip_nonneg'),
    )

    def weight_for(self, tier) -> int:
        """Weight of this prize for a tier ('basic', 'gold', 'vip')."""
        tier_value = tier.value if isinstance(tier, Tier) else str(tier)
        return getattr(self, f"weight_{tier_value}") or 0

    @property
    def is_manual(self) -> bool:
        return self.fulfillment_type == FulfillmentType.MANUAL.value

    def __repr__(self):
        return f"<Prize(id={self.id}, name={self.name}, type={self.fulfillment_type}, active={self.active})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "name": self.name,
            "emoji": self.emoji,
            "type": self.fulfillment_type,
            "active": self.active,
            "position": self.position,
            "weight_basic": self.weight_basic,
            "weight_gold": self.weight_gold,
            "weight_vip": self.weight_vip,
        }


class PrizeDelivery(Base):
    """Delivery payloads for a prize - kept apart from the public catalog"""
    __tablename__ = "prize_delivery"

    prize_id = Column(Uuid(as_uuid=True), ForeignKey("prizes.id", ondelete="CASCADE"), primary_key=True)
    is_tier_specific = Column(Boolean, nullable=False, default=False)
    delivery_content = Column(Text, nullable=True)
    delivery_content_basic = Column(Text, nullable=True)
    delivery_content_gold = Column(Text, nullable=True)
    delivery_content_vip = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def content_for(self, tier) -> Optional[str]:
        """
        Payload for a tier.

        Tier-specific rows use the tier column only. Shared rows use the
        shared payload and fall back to the basic column.
        """
        tier_value = tier.value if isinstance(tier, Tier) else str(tier)
        if self.is_tier_specific:
            content = getattr(self, f"delivery_content_{tier_value}", None)
        else:
            content = self.delivery_content or self.delivery_content_basic
        if content is None or not content.strip():
            return None
        return content

    def __repr__(self):
        return f"<PrizeDelivery(prize_id={self.prize_id}, tier_specific={self.is_tier_specific})>"
