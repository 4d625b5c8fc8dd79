"""
Admin notification and delivery log repository
"""

from typing import List, Optional
from uuid import UUID
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc, update

from prizewheel.models.notification import AdminNotification, EmailLog, WebhookLog
from prizewheel.models.enums import NotificationStatus


async def create_admin_notification(
    session: AsyncSession,
    spin_id: UUID,
    title: str,
    message: Optional[str] = None,
    notification_type: str = "manual_prize"
) -> AdminNotification:
    """
    Create a pending admin notification.

    Args:
        session: Database session
        spin_id: Spin that needs attention
        title: Short title shown to admins
        message: Longer description (optional)
        notification_type: Notification kind

    Returns:
        Created AdminNotification instance
    """
    notification = AdminNotification(
        spin_id=spin_id,
        notification_type=notification_type,
        title=title,
        message=message,
        status=NotificationStatus.PENDING.value
    )
    session.add(notification)
    await session.commit()
    await session.refresh(notification)
    return notification


async def get_notifications(
    session: AsyncSession,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0
) -> List[AdminNotification]:
    query = select(AdminNotification).order_by(desc(AdminNotification.created_at))
    if status:
        query = query.where(AdminNotification.status == status)
    result = await session.execute(query.limit(limit).offset(offset))
    return list(result.scalars().all())


async def get_notification_by_id(session: AsyncSession, notification_id: UUID) -> Optional[AdminNotification]:
    result = await session.execute(
        select(AdminNotification).where(AdminNotification.id == notification_id)
    )
    return result.scalar_one_or_none()


async def set_notification_status(
    session: AsyncSession,
    notification: AdminNotification,
    status: NotificationStatus
) -> AdminNotification:
    notification.status = status.value
    notification.resolved_at = datetime.now(timezone.utc) if status != NotificationStatus.PENDING else None
    await session.commit()
    await session.refresh(notification)
    return notification


async def complete_notifications_for_spin(session: AsyncSession, spin_id: UUID) -> int:
    """
    Mark a spin's pending notifications completed. Does not commit.

    Returns:
        Number of notifications changed
    """
    result = await session.execute(
        update(AdminNotification)
        .where(
            AdminNotification.spin_id == spin_id,
            AdminNotification.status == NotificationStatus.PENDING.value
        )
        .values(status=NotificationStatus.COMPLETED.value, resolved_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def create_email_log(
    session: AsyncSession,
    user_email: str,
    email_type: str,
    status: str,
    spin_id: Optional[UUID] = None,
    attempts: int = 1,
    provider_message_id: Optional[str] = None,
    error_message: Optional[str] = None
) -> EmailLog:
    log = EmailLog(
        user_email=user_email,
        spin_id=spin_id,
        email_type=email_type,
        status=status,
        attempts=attempts,
        provider_message_id=provider_message_id,
        error_message=error_message
    )
    session.add(log)
    await session.commit()
    return log


async def create_webhook_log(
    session: AsyncSession,
    spin_id: Optional[UUID],
    webhook_url: Optional[str],
    payload: dict,
    status: str,
    response_code: Optional[int] = None,
    error_message: Optional[str] = None
) -> WebhookLog:
    log = WebhookLog(
        spin_id=spin_id,
        webhook_url=webhook_url,
        payload=payload,
        status=status,
        response_code=response_code,
        error_message=error_message
    )
    session.add(log)
    await session.commit()
    return log


async def get_email_logs_for_spin(session: AsyncSession, spin_id: UUID) -> List[EmailLog]:
    result = await session.execute(
        select(EmailLog).where(EmailLog.spin_id == spin_id).order_by(EmailLog.created_at)
    )
    return list(result.scalars().all())


async def get_webhook_logs_for_spin(session: AsyncSession, spin_id: UUID) -> List[WebhookLog]:
    result = await session.execute(
        select(WebhookLog).where(WebhookLog.spin_id == spin_id).order_by(WebhookLog.created_at)
    )
    return list(result.scalars().all())
