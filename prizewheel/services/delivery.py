"""
Prize delivery dispatcher

Automatic prizes are emailed straight away; manual prizes get an interim
email, an admin notification and a workflow webhook event. Delivery is
best-effort: failures are logged and recorded, never raised to the spin.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from prizewheel.core.config import settings
from prizewheel.core.errors import RetryExhaustedError
from prizewheel.core.metrics import DELIVERY_COUNT
from prizewheel.models.enums import FulfillmentStatus
from prizewheel.models.prize import Prize
from prizewheel.models.spin import Spin
from prizewheel.repos.audit_log_repo import create_audit_log
from prizewheel.repos.notification_repo import create_admin_notification, create_email_log, create_webhook_log
from prizewheel.services.email import EmailClient
from prizewheel.services.email_templates import prize_email, manual_pending_email
from prizewheel.services.retry import RetryPolicy, call_with_retry
from prizewheel.services.workflow import WorkflowWebhookClient

# Configure logging
logger = logging.getLogger(__name__)

NO_INSTRUCTIONS = "No instructions provided"


@dataclass
class DeliveryResult:
    channel: str
    status: str
    error: Optional[str] = None


def user_name_from_email(email: str) -> str:
    return email.split("@")[0] if email else "there"


class DeliveryDispatcher:
    """Routes a won prize to the automatic or manual delivery path"""

    def __init__(self, email_client: EmailClient, webhook_client: WorkflowWebhookClient,
                 policy: Optional[RetryPolicy] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.email_client = email_client
        self.webhook_client = webhook_client
        self.policy = policy or RetryPolicy.from_settings()
        self.sleep = sleep

    async def dispatch(self, session: AsyncSession, spin: Spin, prize: Prize, content: Optional[str]) -> DeliveryResult:
        """
        Deliver a prize for a committed spin. Never raises.

        Args:
            session: Database session
            spin: The spin that won the prize
            prize: The drawn prize
            content: Resolved delivery payload for the spin's tier (may be None)

        Returns:
            DeliveryResult describing what happened
        """
        channel = "manual" if prize.is_manual else "email"
        spin_id = spin.id
        try:
            if prize.is_manual:
                return await self.notify_manual(session, spin, prize, content)
            return await self.deliver_automatic(session, spin, prize, content)
        except Exception as e:
            logger.exception(f"Unexpected delivery error for spin {spin_id}: {e}")
            DELIVERY_COUNT.labels(channel=channel, status="error").inc()
            try:
                await session.rollback()
            except Exception as rollback_error:
                logger.error(f"Rollback after delivery error failed for spin {spin_id}: {rollback_error}")
            return DeliveryResult(channel=channel, status="failed", error=str(e))

    async def _record_failure(self, session: AsyncSession, spin: Spin, email_type: str,
                              error: str, attempts: int) -> None:
        await create_email_log(
            session,
            user_email=spin.email,
            email_type=email_type,
            status="failed",
            spin_id=spin.id,
            attempts=attempts,
            error_message=error,
        )
        await create_audit_log(
            session,
            admin_id=None,
            action="prize_delivery_failed",
            resource_type="spin",
            resource_id=spin.id,
            details={"email_type": email_type, "error": error, "attempts": attempts},
            actor="system",
        )

    async def _send_with_retry(self, spin: Spin, message, label: str):
        return await call_with_retry(
            lambda: self.email_client.send(
                spin.email, message.subject, message.html, message.text,
                to_name=user_name_from_email(spin.email),
            ),
            self.policy,
            sleep=self.sleep,
            label=f"{label} for spin {spin.id}",
        )

    async def deliver_automatic(self, session: AsyncSession, spin: Spin, prize: Prize,
                                content: Optional[str]) -> DeliveryResult:
        """Email the payload; success marks the spin delivered."""
        if content is None:
            error = f"No delivery content configured for prize {prize.id} ({spin.tier} tier)"
            logger.error(f"Data integrity error on spin {spin.id}: {error}")
            await self._record_failure(session, spin, "prize_delivery", error, attempts=0)
            DELIVERY_COUNT.labels(channel="email", status="failed").inc()
            return DeliveryResult(channel="email", status="failed", error=error)

        message = prize_email(prize.name, prize.emoji, spin.tier, content)
        try:
            message_id, attempts = await self._send_with_retry(spin, message, "prize email")
        except RetryExhaustedError as e:
            logger.error(f"Prize email for spin {spin.id} failed after {e.attempts} attempts: {e.last_error}")
            await self._record_failure(session, spin, "prize_delivery", str(e.last_error), e.attempts)
            DELIVERY_COUNT.labels(channel="email", status="failed").inc()
            return DeliveryResult(channel="email", status="failed", error=str(e.last_error))

        spin.advance_status(FulfillmentStatus.DELIVERED)
        await session.commit()
        await create_email_log(
            session,
            user_email=spin.email,
            email_type="prize_delivery",
            status="sent",
            spin_id=spin.id,
            attempts=attempts,
            provider_message_id=message_id,
        )
        DELIVERY_COUNT.labels(channel="email", status="delivered").inc()
        logger.info(f"Prize {prize.id} delivered for spin {spin.id}")
        return DeliveryResult(channel="email", status="delivered")

    def webhook_payload(self, spin: Spin, prize: Prize, instructions: str) -> dict:
        won_at = spin.created_at or datetime.now(timezone.utc)
        return {
            "event": "manual_prize_won",
            "user_email": spin.email,
            "user_name": user_name_from_email(spin.email),
            "prize_id": str(prize.id),
            "prize_name": prize.name,
            "prize_emoji": prize.emoji,
            "spin_id": str(spin.id),
            "transaction_id": spin.transaction_reference,
            "won_at": won_at.isoformat(),
            "tier": spin.tier,
            "amount_paid": float(spin.amount_paid),
            "fulfillment_instructions": instructions,
            "admin_fulfill_url": f"{settings.public_site_url.rstrip('/')}/admin/fulfill/{spin.id}",
        }

    async def notify_manual(self, session: AsyncSession, spin: Spin, prize: Prize,
                            content: Optional[str]) -> DeliveryResult:
        """Interim email, admin notification and workflow event; the spin stays pending."""
        instructions = content or NO_INSTRUCTIONS
        won_at = spin.created_at or datetime.now(timezone.utc)
        errors = []

        message = manual_pending_email(prize.name, prize.emoji, user_name_from_email(spin.email),
                                       spin.transaction_reference, won_at)
        try:
            message_id, attempts = await self._send_with_retry(spin, message, "manual prize email")
            await create_email_log(
                session,
                user_email=spin.email,
                email_type="prize_manual_pending",
                status="sent",
                spin_id=spin.id,
                attempts=attempts,
                provider_message_id=message_id,
            )
        except RetryExhaustedError as e:
            logger.error(f"Manual prize email for spin {spin.id} failed after {e.attempts} attempts: {e.last_error}")
            await self._record_failure(session, spin, "prize_manual_pending", str(e.last_error), e.attempts)
            errors.append(f"email: {e.last_error}")

        await create_admin_notification(
            session,
            spin_id=spin.id,
            title=f"Manual prize won: {prize.emoji} {prize.name}",
            message=f"{spin.email} won {prize.name} ({spin.tier} tier). Instructions: {instructions}",
        )

        payload = self.webhook_payload(spin, prize, instructions)
        if not self.webhook_client.configured:
            logger.warning(f"Workflow webhook not configured, skipping event for spin {spin.id}")
        else:
            try:
                status_code, _ = await call_with_retry(
                    lambda: self.webhook_client.post_event(payload),
                    self.policy,
                    sleep=self.sleep,
                    label=f"workflow webhook for spin {spin.id}",
                )
                await create_webhook_log(session, spin.id, self.webhook_client.url, payload,
                                         status="success", response_code=status_code)
            except RetryExhaustedError as e:
                logger.error(f"Workflow webhook for spin {spin.id} failed after {e.attempts} attempts: {e.last_error}")
                await create_webhook_log(session, spin.id, self.webhook_client.url, payload,
                                         status="failed",
                                         response_code=getattr(e.last_error, "status_code", None),
                                         error_message=str(e.last_error))
                errors.append(f"webhook: {e.last_error}")

        status = "pending" if not errors else "partial"
        DELIVERY_COUNT.labels(channel="manual", status=status).inc()
        logger.info(f"Manual prize {prize.id} queued for fulfillment on spin {spin.id}")
        return DeliveryResult(channel="manual", status="pending", error="; ".join(errors) or None)
