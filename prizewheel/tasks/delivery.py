"""
Celery tasks for prize delivery
"""

import asyncio
import logging
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from prizewheel.celery_app import celery
from prizewheel.db.session import AsyncSessionLocal
from prizewheel.models.enums import FulfillmentStatus
from prizewheel.repos.prize_repo import get_prize_by_id, get_delivery_for_prize, resolve_delivery_content
from prizewheel.repos.spin_repo import get_spin_by_id
from prizewheel.services.delivery import DeliveryDispatcher
from prizewheel.services.email import SendGridEmailClient
from prizewheel.services.workflow import WorkflowWebhookClient

# Configure logging
logger = logging.getLogger(__name__)


async def redeliver_spin(session: AsyncSession, spin_id: UUID,
                         dispatcher: Optional[DeliveryDispatcher] = None) -> Dict:
    """
    Re-run automatic delivery for a spin that is still pending.

    Args:
        session: Database session
        spin_id: Spin UUID
        dispatcher: Delivery dispatcher (optional, built from settings)

    Returns:
        Dict with spin_id and the delivery status or the reason it was skipped
    """
    spin = await get_spin_by_id(session, spin_id)
    if not spin:
        logger.error(f"Redelivery requested for unknown spin {spin_id}")
        return {"spin_id": str(spin_id), "status": "not_found"}

    if spin.fulfillment_status != FulfillmentStatus.PENDING.value:
        logger.info(f"Spin {spin_id} already {spin.fulfillment_status}, skipping redelivery")
        return {"spin_id": str(spin_id), "status": "skipped"}

    prize = await get_prize_by_id(session, spin.prize_id)
    if prize is None or prize.is_manual:
        logger.info(f"Spin {spin_id} has no automatic prize, skipping redelivery")
        return {"spin_id": str(spin_id), "status": "skipped"}

    content = resolve_delivery_content(await get_delivery_for_prize(session, prize.id), spin.tier)
    dispatcher = dispatcher or DeliveryDispatcher(SendGridEmailClient(), WorkflowWebhookClient())
    result = await dispatcher.deliver_automatic(session, spin, prize, content)
    return {"spin_id": str(spin_id), "status": result.status, "error": result.error}


@celery.task(bind=True, max_retries=3, default_retry_delay=60)
def redeliver_prize(self, spin_id: str):
    """
    Re-send the prize email for a pending spin.

    Args:
        spin_id: Spin UUID as string
    """
    try:
        logger.info(f"Redelivering prize for spin {spin_id}")

        async def _process():
            async with AsyncSessionLocal() as session:
                return await redeliver_spin(session, UUID(spin_id))

        return asyncio.run(_process())

    except Exception as exc:
        logger.error(f"Error redelivering prize for spin {spin_id}: {str(exc)}")
        raise self.retry(exc=exc)
