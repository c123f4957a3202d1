"""
Timezone resolution for class sessions.

Class schedules are wall-clock times in the class's own IANA zone. Anything shown to a
person goes through a UTC instant first and is then rendered in that person's zone.
Term boundaries are calendar days and are compared on the UTC date only.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from app.core.config import settings

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "%Y-%m-%d %H:%M %Z"

WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

DateLike = Union[date, datetime, str]
TimeLike = Union[time, str]


def is_valid_timezone(value: Optional[str]) -> bool:
    """True if value names a zone the tz database knows."""
    if not value or not isinstance(value, str):
        return False
    try:
        ZoneInfo(value)
    except Exception as exc:  # ZoneInfoNotFoundError, ValueError on malformed keys
        logger.debug("Rejected timezone %r: %s", value, exc)
        return False
    return True


def resolve_timezone(value: Optional[str], fallback: Optional[str] = None) -> str:
    """Return value when it is a valid zone, otherwise the configured default."""
    if is_valid_timezone(value):
        return value  # type: ignore[return-value]
    return fallback or settings.default_timezone


def _as_utc(value: Union[datetime, str]) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return _as_utc(value).date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return _as_utc(text).date()


def _as_time(value: TimeLike) -> time:
    if isinstance(value, time):
        return value
    return time.fromisoformat(value.strip())


def _weekday_key(value) -> str:
    raw = getattr(value, "value", value)
    return str(raw).strip().lower()[:3]


def _now(now: Optional[datetime]) -> datetime:
    return _as_utc(now) if now is not None else datetime.now(timezone.utc)


def is_session_date_in_term_range(term, when: DateLike) -> bool:
    """
    True if the UTC calendar day of `when` lies in [term.start_date, term.end_date].

    Both ends are inclusive. Time of day and viewer zone play no part.
    """
    day = _as_date(when)
    return _as_date(term.start_date) <= day <= _as_date(term.end_date)


def is_class_scheduled_today(schedule_day, class_timezone: str, now: Optional[datetime] = None) -> bool:
    """Compare the class's weekday with today's weekday as seen in the class's own zone."""
    local = _now(now).astimezone(ZoneInfo(class_timezone))
    return WEEKDAYS[local.weekday()] == _weekday_key(schedule_day)


def resolve_session_calendar_date(class_timezone: str, now: Optional[datetime] = None) -> date:
    """Today's date in the class's zone; keys per-day check-ins and attendance."""
    return _now(now).astimezone(ZoneInfo(class_timezone)).date()


def format_instant_for_viewer(
    utc_instant: Union[datetime, str],
    viewer_timezone: str,
    pattern: str = DEFAULT_PATTERN,
) -> str:
    return _as_utc(utc_instant).astimezone(ZoneInfo(viewer_timezone)).strftime(pattern)


def session_instant(session_date: DateLike, wall_time: TimeLike, source_timezone: str) -> datetime:
    """Interpret date + wall-clock time in source_timezone and return the UTC instant."""
    local = datetime.combine(_as_date(session_date), _as_time(wall_time), tzinfo=ZoneInfo(source_timezone))
    return local.astimezone(timezone.utc)


def format_session_time_for_viewer(
    session_date: DateLike,
    wall_time: TimeLike,
    source_timezone: str,
    viewer_timezone: str,
    pattern: str = DEFAULT_PATTERN,
) -> str:
    instant = session_instant(session_date, wall_time, source_timezone)
    return format_instant_for_viewer(instant, viewer_timezone, pattern)


def format_session_range_for_recipient(
    session_date: DateLike,
    start_time: TimeLike,
    end_time: TimeLike,
    source_timezone: str,
    recipient_timezone: str,
) -> str:
    """
    Render a class session in the recipient's local time, e.g. "2024-06-11 09:00-10:00 CST".

    Start and end are each converted source wall-clock -> UTC instant -> recipient wall-clock.
    An end time at or before the start time belongs to the following day.
    """
    start = session_instant(session_date, start_time, source_timezone)
    end = session_instant(session_date, end_time, source_timezone)
    if end <= start:
        end = session_instant(_as_date(session_date) + timedelta(days=1), end_time, source_timezone)
    start_text = format_instant_for_viewer(start, recipient_timezone, "%Y-%m-%d %H:%M")
    end_text = format_instant_for_viewer(end, recipient_timezone, "%H:%M %Z")
    return f"{start_text}-{end_text}"
