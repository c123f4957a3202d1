import pytest

from app.core.enums import ClassReminderPreference
from app.core.notification_preferences import (
    allows_reminder,
    class_reminder_preference,
    normalize_class_reminder_value,
    reads_general_updates,
    should_send,
)


@pytest.mark.parametrize(
    "stored, day, hour",
    [
        ("both", True, True),
        ("1day", True, False),
        ("day_before", True, False),
        ("1hour", False, True),
        ("hour_before", False, True),
        ("none", False, False),
    ],
)
def test_reminder_matrix(stored: str, day: bool, hour: bool) -> None:
    prefs = {"class_reminders": stored}
    assert allows_reminder(prefs, "1day") is day
    assert allows_reminder(prefs, "1hour") is hour


@pytest.mark.parametrize("blob", [None, {}, [], "both", 42, {"class_reminders": "weekly"}, {"class_reminders": 1}])
def test_malformed_blob_means_both(blob) -> None:
    assert class_reminder_preference(blob) is ClassReminderPreference.BOTH
    assert allows_reminder(blob, "1day")
    assert allows_reminder(blob, "1hour")


def test_should_send_defaults() -> None:
    assert should_send(None, "general_updates") is True
    assert should_send({"general_updates": "no"}, "general_updates") is True
    assert should_send({"general_updates": False}, "general_updates") is False
    assert should_send([], "anything", default=False) is False


def test_general_updates() -> None:
    assert reads_general_updates({})
    assert not reads_general_updates({"general_updates": False})


def test_normalize_class_reminder_value() -> None:
    assert normalize_class_reminder_value("hour_before") is ClassReminderPreference.ONE_HOUR
    assert normalize_class_reminder_value("BOTH") is None
    assert normalize_class_reminder_value(None) is None
