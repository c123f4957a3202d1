"""
Reading the schema-less notification preference blob stored on a profile.

Whatever is stored (nothing, null, a list, a malformed value) must never stop a
notification from being dispatched: every branch falls back to a documented default.
Unrecognised class reminder values resolve to "both" so reminders are never silenced by
a value this code does not understand.
"""

from typing import Any, Mapping, Optional

from app.core.enums import ClassReminderPreference

CLASS_REMINDERS_KEY = "class_reminders"
GENERAL_UPDATES_KEY = "general_updates"

_REMINDER_ALIASES = {
    "both": ClassReminderPreference.BOTH,
    "none": ClassReminderPreference.NONE,
    "1day": ClassReminderPreference.ONE_DAY,
    "day_before": ClassReminderPreference.ONE_DAY,
    "1hour": ClassReminderPreference.ONE_HOUR,
    "hour_before": ClassReminderPreference.ONE_HOUR,
}


def _as_mapping(preferences: Any) -> Optional[Mapping[str, Any]]:
    if not preferences or not isinstance(preferences, Mapping):
        return None
    return preferences


def should_send(preferences: Any, key: str, default: bool = True) -> bool:
    record = _as_mapping(preferences)
    if record is None:
        return default
    value = record.get(key)
    if not isinstance(value, bool):
        return default
    return value


def normalize_class_reminder_value(value: Any) -> Optional[ClassReminderPreference]:
    """Canonical reminder value, or None when value is not a recognised encoding."""
    if not isinstance(value, str):
        return None
    return _REMINDER_ALIASES.get(value)


def class_reminder_preference(preferences: Any) -> ClassReminderPreference:
    record = _as_mapping(preferences)
    value = record.get(CLASS_REMINDERS_KEY) if record is not None else None
    return normalize_class_reminder_value(value) or ClassReminderPreference.BOTH


def allows_reminder(preferences: Any, reminder_type: str) -> bool:
    preference = class_reminder_preference(preferences)
    if preference is ClassReminderPreference.NONE:
        return False
    if preference is ClassReminderPreference.BOTH:
        return True
    return preference.value == getattr(reminder_type, "value", reminder_type)


def reads_general_updates(preferences: Any) -> bool:
    return should_send(preferences, GENERAL_UPDATES_KEY, True)
