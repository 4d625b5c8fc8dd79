"""
Admin fulfillment of manual prizes
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from prizewheel.core.auth import CurrentUser
from prizewheel.core.errors import FulfillmentError, RetryExhaustedError
from prizewheel.core.metrics import FULFILLMENT_COUNT
from prizewheel.models.enums import FulfillmentStatus, NotificationStatus
from prizewheel.repos.audit_log_repo import create_audit_log
from prizewheel.repos.notification_repo import (
    complete_notifications_for_spin,
    create_email_log,
    get_notification_by_id,
    set_notification_status,
)
from prizewheel.repos.prize_repo import get_prize_by_id
from prizewheel.repos.spin_repo import get_pending_manual_spins, get_spin_by_id
from prizewheel.services.delivery import NO_INSTRUCTIONS, user_name_from_email
from prizewheel.services.email import EmailClient
from prizewheel.services.email_templates import fulfillment_complete_email
from prizewheel.services.retry import RetryPolicy, call_with_retry

# Configure logging
logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_time_elapsed(won_at: Optional[datetime], now: Optional[datetime] = None) -> str:
    """'3h ago' for an hour or more, otherwise '12m ago'."""
    if won_at is None:
        return "0m ago"
    now = now or datetime.now(timezone.utc)
    minutes = max(int((_as_utc(now) - _as_utc(won_at)).total_seconds() // 60), 0)
    if minutes >= 60:
        return f"{minutes // 60}h ago"
    return f"{minutes}m ago"


async def list_pending_prizes(session: AsyncSession, now: Optional[datetime] = None) -> List[Dict]:
    """
    Manual prizes waiting for an admin, oldest first.

    Args:
        session: Database session
        now: Reference time for time_elapsed (optional)

    Returns:
        List of pending prize dicts
    """
    pending = []
    for spin, prize, delivery in await get_pending_manual_spins(session):
        instructions = (delivery.delivery_content if delivery else None) or NO_INSTRUCTIONS
        pending.append({
            "spinId": str(spin.id),
            "userEmail": spin.email,
            "prizeName": prize.name,
            "prizeEmoji": prize.emoji,
            "tier": spin.tier,
            "amountPaid": float(spin.amount_paid),
            "wonAt": _as_utc(spin.created_at).isoformat() if spin.created_at else None,
            "timeElapsed": format_time_elapsed(spin.created_at, now),
            "fulfillmentInstructions": instructions,
            "transactionId": spin.transaction_reference,
        })
    return pending


async def fulfill_manual_prize(
    session: AsyncSession,
    spin_id: UUID,
    prize_link: str,
    admin: CurrentUser,
    email_client: EmailClient,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
) -> Dict:
    """
    Send the completion email for a manual prize and mark the spin completed.

    Args:
        session: Database session
        spin_id: Spin to fulfill
        prize_link: Link to the prepared prize
        admin: Admin performing the fulfillment
        email_client: Email provider
        policy: Retry policy for the email (optional)
        sleep: Awaitable sleep, replaced in tests

    Returns:
        Result dict with success, spinId and fulfilledAt

    Raises:
        FulfillmentError: 400 bad link, 404 missing spin/prize, 409 wrong state, 502 email failure
    """
    prize_link = (prize_link or "").strip()
    if not prize_link:
        raise FulfillmentError("prizeLink is required", status_code=400)

    spin = await get_spin_by_id(session, spin_id)
    if not spin:
        raise FulfillmentError("Spin not found", status_code=404)

    prize = await get_prize_by_id(session, spin.prize_id)
    if not prize:
        raise FulfillmentError("Prize not found", status_code=404)
    if not prize.is_manual:
        raise FulfillmentError("Prize is not a manual fulfillment prize", status_code=409)
    if spin.fulfillment_status != FulfillmentStatus.PENDING.value:
        raise FulfillmentError(f"Spin is already {spin.fulfillment_status}", status_code=409)

    message = fulfillment_complete_email(
        prize.name, prize.emoji, user_name_from_email(spin.email), prize_link, spin.transaction_reference
    )
    try:
        message_id, attempts = await call_with_retry(
            lambda: email_client.send(spin.email, message.subject, message.html, message.text,
                                      to_name=user_name_from_email(spin.email)),
            policy or RetryPolicy.from_settings(),
            sleep=sleep,
            label=f"completion email for spin {spin.id}",
        )
    except RetryExhaustedError as e:
        logger.error(f"Completion email for spin {spin.id} failed after {e.attempts} attempts: {e.last_error}")
        await create_email_log(
            session,
            user_email=spin.email,
            email_type="prize_manual_complete",
            status="failed",
            spin_id=spin.id,
            attempts=e.attempts,
            error_message=str(e.last_error),
        )
        FULFILLMENT_COUNT.labels(status="failed").inc()
        raise FulfillmentError(f"Failed to send completion email: {e.last_error}", status_code=502)

    spin.advance_status(FulfillmentStatus.COMPLETED)
    spin.fulfillment_link = prize_link
    resolved = await complete_notifications_for_spin(session, spin.id)
    await session.commit()

    await create_email_log(
        session,
        user_email=spin.email,
        email_type="prize_manual_complete",
        status="sent",
        spin_id=spin.id,
        attempts=attempts,
        provider_message_id=message_id,
    )
    await create_audit_log(
        session,
        admin_id=admin.id,
        action="manual_prize_fulfilled",
        resource_type="spin",
        resource_id=spin.id,
        details={"prize_id": str(prize.id), "prize_link": prize_link, "notifications_resolved": resolved},
    )

    FULFILLMENT_COUNT.labels(status="completed").inc()
    logger.info(f"Admin {admin.id} fulfilled spin {spin.id} ({prize.name})")
    return {
        "success": True,
        "spinId": str(spin.id),
        "fulfilledAt": _as_utc(spin.fulfilled_at).isoformat(),
    }


async def update_notification_status(
    session: AsyncSession,
    notification_id: UUID,
    status: NotificationStatus,
    admin: CurrentUser
) -> Dict:
    """
    Move an admin notification to completed or dismissed.

    Raises:
        FulfillmentError: 404 missing notification, 400 invalid target status
    """
    if status == NotificationStatus.PENDING:
        raise FulfillmentError("Notifications can only be completed or dismissed", status_code=400)

    notification = await get_notification_by_id(session, notification_id)
    if not notification:
        raise FulfillmentError("Notification not found", status_code=404)

    notification = await set_notification_status(session, notification, status)
    logger.info(f"Admin {admin.id} marked notification {notification.id} {status.value}")
    return notification.to_dict()
