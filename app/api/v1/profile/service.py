from typing import Any, Dict
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import Profile
from app.core.notification_preferences import (
    CLASS_REMINDERS_KEY,
    GENERAL_UPDATES_KEY,
    class_reminder_preference,
    normalize_class_reminder_value,
)
from app.core.session_time import is_valid_timezone

from .schemas import PreferencesResponse, PreferencesUpdate, TimezoneResponse

RESERVED_KEYS = (CLASS_REMINDERS_KEY, GENERAL_UPDATES_KEY)


async def _get_profile(db: AsyncSession, user_id: UUID) -> Profile:
    profile = await db.get(Profile, user_id)
    if not profile:
        raise NotFoundError("Profile not found")
    return profile


async def update_preferences(db: AsyncSession, user_id: UUID, payload: PreferencesUpdate) -> PreferencesResponse:
    """Merge into the stored blob. Whatever was stored before, malformed or not, is kept only if it is a dict."""
    profile = await _get_profile(db, user_id)
    current = profile.notification_preferences
    merged: Dict[str, Any] = dict(current) if isinstance(current, dict) else {}
    # Free-form flags never touch the typed keys
    merged.update({k: v for k, v in payload.flags.items() if k not in RESERVED_KEYS})

    if payload.class_reminders is not None:
        value = normalize_class_reminder_value(payload.class_reminders)
        if value is None:
            raise ValidationError(f"Invalid class_reminders value: {payload.class_reminders}")
        merged[CLASS_REMINDERS_KEY] = value.value
    if payload.general_updates is not None:
        merged[GENERAL_UPDATES_KEY] = payload.general_updates

    profile.notification_preferences = merged
    await db.commit()
    return PreferencesResponse(
        notification_preferences=merged,
        class_reminders=class_reminder_preference(merged).value,
    )


async def update_timezone(db: AsyncSession, user_id: UUID, timezone_name: str) -> TimezoneResponse:
    value = timezone_name.strip()
    if not is_valid_timezone(value):
        raise ValidationError("Invalid timezone.")
    profile = await _get_profile(db, user_id)
    profile.timezone = value
    await db.commit()
    return TimezoneResponse(timezone=value)
