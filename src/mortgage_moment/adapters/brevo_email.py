# src/mortgage_moment/adapters/brevo_email.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from mortgage_moment.adapters.config import config
from mortgage_moment.adapters.logging_utils import get_logger

logger = get_logger(__name__)


class EmailConfigError(RuntimeError):
    pass


class EmailDeliveryError(RuntimeError):
    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.details = details


@dataclass(frozen=True)
class BrevoEmailClient:
    api_key: str
    url: str = "https://api.brevo.com/v3/smtp/email"
    sender_name: str = "Mortgage Moment"
    sender_email: str = "info@mortgagemoment.com"
    timeout_s: float = 10.0

    def send(self, *, to_email: str, to_name: str, subject: str, html: str) -> dict[str, Any]:
        body = {
            "sender": {"name": self.sender_name, "email": self.sender_email},
            "to": [{"email": to_email, "name": to_name or "User"}],
            "subject": subject,
            "htmlContent": html,
        }
        headers = {
            "accept": "application/json",
            "api-key": self.api_key,  # per Brevo docs
            "content-type": "application/json",
        }

        try:
            resp = requests.post(self.url, json=body, headers=headers, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise EmailDeliveryError(f"Brevo request failed: {e!r}") from e

        if resp.status_code >= 400:
            try:
                details = resp.json()
            except ValueError:
                details = resp.text[:500]
            raise EmailDeliveryError(f"Brevo HTTP {resp.status_code}", details=details)

        try:
            data = resp.json()
        except ValueError:
            data = {}

        logger.info("email_sent", extra={"context": {"to": to_email, "subject": subject}})
        return data if isinstance(data, dict) else {"response": data}


def make_brevo_client() -> BrevoEmailClient:
    if not config.BREVO_API_KEY:
        raise EmailConfigError(
            "Missing MM_BREVO_API_KEY. Set it in your environment before sending email."
        )
    return BrevoEmailClient(
        api_key=config.BREVO_API_KEY,
        url=config.BREVO_URL,
        sender_name=config.SENDER_NAME,
        sender_email=config.SENDER_EMAIL,
        timeout_s=config.EMAIL_TIMEOUT_S,
    )
