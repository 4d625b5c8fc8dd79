"""
Admin notification and delivery log models
"""

from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, JSON, Uuid
from sqlalchemy.sql import func
from prizewheel.db.base import Base
from prizewheel.models.enums import NotificationStatus
import uuid


class AdminNotification(Base):
    """Human workflow record raised when a manual prize is won"""
    __tablename__ = "admin_notifications"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    spin_id = Column(Uuid(as_uuid=True), ForeignKey("spins.id"), nullable=False, index=True)
    notification_type = Column(String(64), nullable=False, default="manual_prize")
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default=NotificationStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<AdminNotification(id={self.id}, spin_id={self.spin_id}, status={self.status})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "spin_id": str(self.spin_id),
            "type": self.notification_type,
            "title": self.title,
            "message": self.message,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }


class EmailLog(Base):
    """Outcome of one email send (after retries)"""
    __tablename__ = "email_logs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_email = Column(String(255), nullable=False)
    spin_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    email_type = Column(String(64), nullable=False)
    status = Column(String(16), nullable=False)
    attempts = Column(Integer, nullable=False, default=1)
    provider_message_id = Column(String(255), nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<EmailLog(spin_id={self.spin_id}, type={self.email_type}, status={self.status})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "spin_id": str(self.spin_id) if self.spin_id else None,
            "user_email": self.user_email,
            "type": self.email_type,
            "status": self.status,
            "attempts": self.attempts,
            "provider_message_id": self.provider_message_id,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class WebhookLog(Base):
    """Outcome of one workflow webhook post (after retries)"""
    __tablename__ = "webhook_logs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    spin_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    webhook_url = Column(Text, nullable=True)
    payload = Column(JSON, nullable=True)
    status = Column(String(16), nullable=False)
    response_code = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<WebhookLog(spin_id={self.spin_id}, status={self.status}, code={self.response_code})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "spin_id": str(self.spin_id) if self.spin_id else None,
            "webhook_url": self.webhook_url,
            "status": self.status,
            "response_code": self.response_code,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
