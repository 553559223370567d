import logging
import re
from functools import lru_cache
from typing import Optional

import requests

from app.config import settings

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


def is_valid_email(email):
    if isinstance(email, list):
        return all(is_valid_email(e) for e in email)

    if not email:
        return False

    return re.match(r"[^@]+@[^@]+\.[^@]+", email) is not None


class EmailDeliveryError(Exception):
    pass


class BrevoMailer:
    """Transactional email over the Brevo HTTP API."""

    def __init__(
        self,
        api_key: Optional[str],
        sender_email: str,
        sender_name: str,
        api_url: str = BREVO_API_URL,
        timeout: int = 10,
    ):
        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.api_url = api_url
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str) -> None:
        """Send one email; raises EmailDeliveryError on any failure."""
        if not self.api_key:
            raise EmailDeliveryError("Missing BREVO_API_KEY")

        if not is_valid_email(to):
            raise EmailDeliveryError(f"Invalid recipient: {to}")

        payload = {
            "sender": {
                "email": self.sender_email,
                "name": self.sender_name,
            },
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html,
        }

        headers = {
            "api-key": self.api_key,
            "Content-Type": "application/json",
        }

        try:
            response = requests.post(
                self.api_url,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise EmailDeliveryError(f"Brevo request failed: {e}") from e

        if response.status_code >= 400:
            raise EmailDeliveryError(
                f"Brevo email failed ({response.status_code}): {response.text}"
            )

        logger.info(f"Brevo email sent to {to}")


@lru_cache()
def _default_mailer() -> BrevoMailer:
    return BrevoMailer(
        api_key=settings.BREVO_API_KEY,
        sender_email=settings.MAIL_FROM,
        sender_name=settings.STORE_NAME,
    )


def get_mailer() -> BrevoMailer:
    return _default_mailer()
