from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import Unauthorized
from app.db.session import get_db

from .service import ReminderRunResult, send_class_reminders

router = APIRouter(prefix="/api/v1/cron", tags=["cron"])


async def require_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    secret = (settings.cron_secret or "").strip()
    if not secret or authorization != f"Bearer {secret}":
        raise Unauthorized()


@router.post(
    "/class-reminders",
    response_model=ReminderRunResult,
    dependencies=[Depends(require_cron_secret)],
)
async def run_class_reminders(db: AsyncSession = Depends(get_db)) -> ReminderRunResult:
    """Send due 1-day and 1-hour class reminders. Safe to call repeatedly; each reminder goes out once."""
    return await send_class_reminders(db)
