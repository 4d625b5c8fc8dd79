"""
Shared FastAPI dependencies for external clients and draw randomness
"""

import random
from typing import Optional

from fastapi import Depends

from prizewheel.services.delivery import DeliveryDispatcher
from prizewheel.services.email import EmailClient, SendGridEmailClient
from prizewheel.services.payments import StripeClient
from prizewheel.services.retry import RetryPolicy
from prizewheel.services.workflow import WorkflowWebhookClient


def get_email_client() -> EmailClient:
    return SendGridEmailClient()


def get_webhook_client() -> WorkflowWebhookClient:
    return WorkflowWebhookClient()


def get_payment_gateway() -> StripeClient:
    return StripeClient()


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy.from_settings()


def get_rng() -> Optional[random.Random]:
    """Random source for draws; None selects SystemRandom."""
    return None


def get_dispatcher(
    email_client: EmailClient = Depends(get_email_client),
    webhook_client: WorkflowWebhookClient = Depends(get_webhook_client),
    policy: RetryPolicy = Depends(get_retry_policy)
) -> DeliveryDispatcher:
    return DeliveryDispatcher(email_client, webhook_client, policy)
