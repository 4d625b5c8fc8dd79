"""
Tier pricing models
"""

from sqlalchemy import Column, String, Numeric, Boolean, Text, DateTime, Uuid
from sqlalchemy.sql import func
from prizewheel.db.base import Base
import uuid


class PricingConfig(Base):
    """Current spin price for a tier"""
    __tablename__ = "pricing_config"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tier = Column(String(16), nullable=False, unique=True)
    price = Column(Numeric(12, 2), nullable=False)
    stripe_price_id = Column(String(255), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<PricingConfig(tier={self.tier}, price={self.price}, active={self.active})>"


class PricingHistory(Base):
    """One row per admin price change"""
    __tablename__ = "pricing_history"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tier = Column(String(16), nullable=False, index=True)
    old_price = Column(Numeric(12, 2), nullable=True)
    new_price = Column(Numeric(12, 2), nullable=False)
    stripe_price_id = Column(String(255), nullable=True)
    reason = Column(Text, nullable=True)
    changed_by = Column(Uuid(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<PricingHistory(tier={self.tier}, {self.old_price} -> {self.new_price})>"
