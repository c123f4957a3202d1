"""Outbound portal email through the Resend HTTP API."""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass
class PortalEmail:
    to: Union[str, List[str]]
    subject: str
    html: str
    text: str


@dataclass
class EmailResult:
    ok: bool
    error: Optional[str] = None


async def send_portal_email(
    message: PortalEmail,
    client: Optional[httpx.AsyncClient] = None,
) -> EmailResult:
    """Send one email. Provider failures are logged and returned, never raised."""
    if not settings.resend_api_key or not settings.portal_from_email:
        logger.warning("Email skipped, provider not configured (to=%s, subject=%s)", message.to, message.subject)
        return EmailResult(ok=False, error="Email provider not configured")

    payload = {
        "from": settings.portal_from_email,
        "to": message.to,
        "subject": message.subject,
        "html": message.html,
        "text": message.text,
    }
    headers = {"Authorization": f"Bearer {settings.resend_api_key}"}
    try:
        if client is not None:
            response = await client.post(RESEND_API_URL, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=10.0) as own_client:
                response = await own_client.post(RESEND_API_URL, json=payload, headers=headers)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("Email send failed (to=%s, subject=%s): %s", message.to, message.subject, exc)
        return EmailResult(ok=False, error=str(exc) or "Unknown email error")
    return EmailResult(ok=True)


async def send_portal_emails(messages: Sequence[PortalEmail]) -> List[EmailResult]:
    """Send a batch; each send settles on its own and failures are only logged."""
    if not messages:
        return []
    async with httpx.AsyncClient(timeout=10.0) as client:
        outcomes = await asyncio.gather(
            *(send_portal_email(message, client) for message in messages),
            return_exceptions=True,
        )
    results: List[EmailResult] = []
    for message, outcome in zip(messages, outcomes):
        if isinstance(outcome, BaseException):
            logger.error("Batch email send raised (to=%s): %s", message.to, outcome)
            results.append(EmailResult(ok=False, error=str(outcome)))
        else:
            results.append(outcome)
    return results
