"""
Workflow automation webhook (n8n) client
"""

import logging
from typing import Optional

import httpx

from prizewheel.core.config import settings
from prizewheel.core.errors import WorkflowWebhookError

# Configure logging
logger = logging.getLogger(__name__)


class WorkflowWebhookClient:
    """Posts JSON events to the workflow webhook with basic auth"""

    def __init__(self, url: Optional[str] = None, username: Optional[str] = None,
                 password: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url if url is not None else settings.workflow_webhook_url
        self.username = username if username is not None else settings.workflow_webhook_user
        self.password = password if password is not None else settings.workflow_webhook_password
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.url)

    async def post_event(self, payload: dict) -> int:
        """
        Post one event.

        Returns:
            HTTP status code of the webhook response

        Raises:
            WorkflowWebhookError: if the webhook is unconfigured, unreachable or returns an error status
        """
        if not self.url:
            raise WorkflowWebhookError("Workflow webhook not configured")

        auth = httpx.BasicAuth(self.username, self.password) if self.username else None
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload, auth=auth)
        except httpx.HTTPError as e:
            raise WorkflowWebhookError(f"Webhook request failed: {e}") from e

        if response.status_code >= 400:
            raise WorkflowWebhookError(
                f"Webhook returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        logger.info(f"Workflow event {payload.get('event')} posted ({response.status_code})")
        return response.status_code
