import html
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from slowapi.util import get_remote_address

from app.core.config import settings
from app.core.email import PortalEmail, send_portal_email
from app.core.rate_limit import RateLimitStore, get_rate_limit_store, rate_limit

from .schemas import FeedbackCreate, FeedbackResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/feedback", tags=["feedback"])


def _client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    ip = forwarded.split(",")[0].strip() or get_remote_address(request)
    return f"feedback:{ip}"


@router.post("", response_model=FeedbackResponse, status_code=status.HTTP_202_ACCEPTED)
async def submit_feedback(
    payload: FeedbackCreate,
    request: Request,
    store: RateLimitStore = Depends(get_rate_limit_store),
) -> FeedbackResponse:
    """Anonymous bug report / feedback form. Rate limited per client address."""
    limit = rate_limit(
        store,
        _client_key(request),
        settings.feedback_rate_limit,
        settings.feedback_rate_window_seconds,
    )
    if not limit.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many submissions. Please try again later.",
        )

    if not settings.admin_notification_email:
        logger.warning("Feedback received but ADMIN_NOTIFICATION_EMAIL is not set")
        return FeedbackResponse(ok=True, delivered=False)

    sender = payload.name or "Anonymous"
    text = f"From: {sender} <{payload.email or 'n/a'}>\nPage: {payload.page_url or 'n/a'}\n\n{payload.message}"
    result = await send_portal_email(
        PortalEmail(
            to=settings.admin_notification_email,
            subject=f"Portal feedback from {sender}",
            html=f"<pre>{html.escape(text)}</pre>",
            text=text,
        )
    )
    return FeedbackResponse(ok=True, delivered=result.ok)
