# societyguard/services/email_service.py
"""
Outbound email through the provider's HTTP JSON API.
Fire-and-forget: failures are logged and reported as False, never raised.
"""

import requests
from typing import Optional
from societyguard.config import settings
from societyguard.utils.logger import get_logger

logger = get_logger(__name__)


def build_email_payload(to: str, subject: str, html_body: str, to_name: Optional[str] = None) -> dict:
    recipient = {"email": to}
    if to_name:
        recipient["name"] = to_name
    return {
        "sender": {"email": settings.EMAIL_FROM, "name": settings.EMAIL_FROM_NAME},
        "to": [recipient],
        "subject": subject,
        "htmlContent": html_body,
    }


def send_email(to: str, subject: str, html_body: str, to_name: Optional[str] = None) -> bool:
    """POST one email to the provider. Returns True when it was accepted."""
    if not settings.EMAIL_API_KEY:
        logger.warning(f"[EMAIL] EMAIL_API_KEY not set, not sending '{subject}' to {to}")
        return False

    try:
        resp = requests.post(
            settings.EMAIL_API_URL,
            json=build_email_payload(to, subject, html_body, to_name),
            headers={"api-key": settings.EMAIL_API_KEY, "accept": "application/json"},
            timeout=settings.EMAIL_TIMEOUT_SECONDS,
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"[EMAIL] Provider unreachable for {to}: {e}")
        return False

    if resp.status_code >= 300:
        logger.error(f"[EMAIL] Provider rejected mail to {to}: HTTP {resp.status_code} {resp.text[:200]}")
        return False

    logger.info(f"[EMAIL] Sent '{subject}' to {to}")
    return True
