"""
Transactional email provider (SendGrid v3 API)
"""

import logging
from typing import Optional

import httpx

from prizewheel.core.config import settings
from prizewheel.core.errors import EmailDeliveryError

# Configure logging
logger = logging.getLogger(__name__)


class EmailClient:
    """Base email provider interface"""

    async def send(self, to_email: str, subject: str, html: str, text: Optional[str] = None,
                   to_name: Optional[str] = None) -> Optional[str]:
        """
        Send one email.

        Returns:
            Provider message ID, if the provider returns one

        Raises:
            EmailDeliveryError: if the provider rejects the message or is unreachable
        """
        raise NotImplementedError


class SendGridEmailClient(EmailClient):
    """SendGrid v3 mail/send client"""

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None,
                 from_name: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else settings.sendgrid_api_key
        self.from_email = from_email or settings.sendgrid_from_email
        self.from_name = from_name or settings.sendgrid_from_name
        self.base_url = (base_url or settings.sendgrid_base_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    def _payload(self, to_email: str, subject: str, html: str, text: Optional[str], to_name: Optional[str]) -> dict:
        recipient = {"email": to_email}
        if to_name:
            recipient["name"] = to_name
        content = []
        if text:
            content.append({"type": "text/plain", "value": text})
        content.append({"type": "text/html", "value": html})

        payload = {
            "personalizations": [{"to": [recipient], "subject": subject}],
            "from": {"email": self.from_email, "name": self.from_name},
            "content": content,
        }
        if settings.sendgrid_unsubscribe_group_id:
            payload["asm"] = {"group_id": settings.sendgrid_unsubscribe_group_id}
        return payload

    async def send(self, to_email: str, subject: str, html: str, text: Optional[str] = None,
                   to_name: Optional[str] = None) -> Optional[str]:
        if not self.api_key:
            raise EmailDeliveryError("Email service not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/v3/mail/send",
                    json=self._payload(to_email, subject, html, text, to_name),
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"SendGrid request failed: {e}") from e

        if response.status_code >= 400:
            raise EmailDeliveryError(
                f"SendGrid returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        message_id = response.headers.get("x-message-id")
        logger.info(f"Email '{subject}' sent to {to_email} (message id {message_id})")
        return message_id
