import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import httpx

from membership.core import get_settings

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class EmailServiceError(Exception):
    """Raised when the email service fails or returns an unexpected response."""


class EmailConfigError(EmailServiceError):
    """Raised when email configuration is missing or invalid."""


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    text: str
    html: str | None = None
    reply_to: str | None = None


class SendGridProvider:
    def __init__(self, api_key: str, from_email: str, from_name: str | None = None):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name

    @property
    def sender_address(self) -> str:
        """Address recorded as from_address in the email log."""
        return self.from_email

    def _payload(self, message: OutgoingEmail) -> dict[str, Any]:
        content: list[dict[str, Any]] = [{"type": "text/plain", "value": message.text}]
        if message.html:
            content.append({"type": "text/html", "value": message.html})
        sender: dict[str, Any] = {"email": self.from_email}
        if self.from_name:
            sender["name"] = self.from_name
        payload: dict[str, Any] = {
            "personalizations": [{"to": [{"email": message.to}], "subject": message.subject}],
            "from": sender,
            "content": content,
        }
        if message.reply_to:
            payload["reply_to"] = {"email": message.reply_to}
        return payload

    async def send(self, message: OutgoingEmail) -> str | None:
        """Deliver one email; returns SendGrid's message id when the API reports one."""
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                r = await client.post(SENDGRID_SEND_URL, json=self._payload(message), headers=headers)
                r.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = getattr(e.response, "text", None) or ""
            if body:
                logger.warning("SendGrid error %s: %s", e.response.status_code, body[:500])
            raise EmailServiceError("Email service returned an error.") from e
        except httpx.RequestError as e:
            raise EmailServiceError("Email service unavailable.") from e
        return r.headers.get("X-Message-Id")


@lru_cache
def get_email_provider() -> SendGridProvider:
    s = get_settings()
    if not (s.sendgrid_api_key and s.sendgrid_from_email):
        raise EmailConfigError("Email service not configured.")
    return SendGridProvider(
        api_key=s.sendgrid_api_key,
        from_email=s.sendgrid_from_email,
        from_name=s.sendgrid_from_name,
    )
