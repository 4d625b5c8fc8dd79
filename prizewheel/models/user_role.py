"""
User role model
"""

from sqlalchemy import Column, String, DateTime, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from prizewheel.db.base import Base
import uuid


class UserRole(Base):
    """Role assignment for an auth-provider user id"""
    __tablename__ = "user_roles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    app_role = Column(String(32), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint('user_id', 'app_role', name='uq_user_role'),
    )

    def __repr__(self):
        return f"<UserRole(user_id={self.user_id}, role={self.app_role})>"

    def to_dict(self):
        return {
            "user_id": str(self.user_id),
            "role": self.app_role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
