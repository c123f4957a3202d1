import uuid
from datetime import date, datetime, time, timezone
from types import SimpleNamespace

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from app.api.v1.reminders import service as reminder_service
from app.core.email import EmailResult
from app.core.models import Enrollment, NotificationLog, ParentStudentLink, Profile, SchoolClass, Term

# Sunday 18:30 in Vancouver, a day before the Monday 18:00 class
DAY_BEFORE = datetime(2024, 6, 10, 1, 30, tzinfo=timezone.utc)
# Monday 17:15 in Vancouver
HOUR_BEFORE = datetime(2024, 6, 11, 0, 15, tzinfo=timezone.utc)


def test_reminder_type_windows() -> None:
    assert reminder_service.reminder_type_for(45) == "1hour"
    assert reminder_service.reminder_type_for(60) == "1hour"
    assert reminder_service.reminder_type_for(0) is None
    assert reminder_service.reminder_type_for(61) is None
    assert reminder_service.reminder_type_for(23 * 60 + 30) == "1day"
    assert reminder_service.reminder_type_for(25 * 60) is None


def test_candidate_session_date_respects_term_end() -> None:
    slot = SimpleNamespace(schedule_day="mon", timezone="America/Vancouver")
    term = SimpleNamespace(start_date=date(2024, 4, 1), end_date=date(2024, 6, 30))
    assert reminder_service.candidate_session_date(slot, term, DAY_BEFORE) == date(2024, 6, 10)
    ended = SimpleNamespace(start_date=date(2024, 4, 1), end_date=date(2024, 6, 9))
    assert reminder_service.candidate_session_date(slot, ended, DAY_BEFORE) is None


@pytest.fixture()
def outbox(monkeypatch):
    sent = []

    async def fake_send(messages):
        sent.extend(messages)
        return [EmailResult(ok=True) for _ in messages]

    monkeypatch.setattr(reminder_service, "send_portal_emails", fake_send)
    return sent


async def _seed_class(db_session, make_profile):
    term = Term(id=uuid.uuid4(), name="Spring 2024", start_date=date(2024, 4, 1), end_date=date(2024, 6, 30))
    school_class = SchoolClass(
        id=uuid.uuid4(),
        name="Novice Debate",
        class_type="novice_debate",
        schedule_day="mon",
        schedule_start_time=time(18, 0),
        schedule_end_time=time(19, 0),
        timezone="America/Vancouver",
        term_id=term.id,
    )
    db_session.add_all([term, school_class])
    await db_session.commit()

    students = {
        "default": await make_profile(timezone="Asia/Shanghai", email="default@example.com"),
        "hour_only": await make_profile(notification_preferences={"class_reminders": "1hour"}, email="hour@example.com"),
        "opted_out": await make_profile(notification_preferences={"class_reminders": "none"}, email="none@example.com"),
    }
    for student in students.values():
        db_session.add(Enrollment(class_id=school_class.id, student_id=student.id, status="active"))
    await db_session.commit()
    return school_class.id, {key: s.email for key, s in students.items()}


@pytest.mark.asyncio
async def test_day_before_reminder_respects_preferences(db_session, make_profile, outbox) -> None:
    _, emails = await _seed_class(db_session, make_profile)

    result = await reminder_service.send_class_reminders(db_session, now=DAY_BEFORE)

    assert result.sent == 1
    assert [m.to for m in outbox] == [emails["default"]]
    assert "2024-06-11 09:00-10:00 CST" in outbox[0].text
    assert "tomorrow" in outbox[0].subject


@pytest.mark.asyncio
async def test_hour_before_reminder(db_session, make_profile, outbox) -> None:
    _, emails = await _seed_class(db_session, make_profile)

    result = await reminder_service.send_class_reminders(db_session, now=HOUR_BEFORE)

    assert result.sent == 2
    assert sorted(m.to for m in outbox) == sorted([emails["default"], emails["hour_only"]])
    vancouver = next(m for m in outbox if m.to == emails["hour_only"])
    assert "2024-06-10 18:00-19:00 PDT" in vancouver.text


@pytest.mark.asyncio
async def test_reminder_sent_once_across_runs(db_session, make_profile, outbox) -> None:
    await _seed_class(db_session, make_profile)

    first = await reminder_service.send_class_reminders(db_session, now=DAY_BEFORE)
    second = await reminder_service.send_class_reminders(db_session, now=DAY_BEFORE)

    assert first.sent == 1
    assert second.sent == 0
    assert len(outbox) == 1
    logged = await db_session.scalar(select(func.count()).select_from(NotificationLog))
    assert logged == 1


@pytest.mark.asyncio
async def test_no_active_term(db_session, outbox) -> None:
    result = await reminder_service.send_class_reminders(db_session, now=DAY_BEFORE)
    assert result.reason == "no_active_term"
    assert outbox == []


@pytest.mark.asyncio
async def test_cron_endpoint_requires_secret(client: AsyncClient, outbox) -> None:
    denied = await client.post("/api/v1/cron/class-reminders")
    assert denied.status_code == 401
    wrong = await client.post("/api/v1/cron/class-reminders", headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 401
    allowed = await client.post(
        "/api/v1/cron/class-reminders",
        headers={"Authorization": "Bearer test-cron-secret"},
    )
    assert allowed.status_code == 200


@pytest.mark.asyncio
async def test_failed_send_is_retried_next_run(db_session, make_profile, monkeypatch) -> None:
    await _seed_class(db_session, make_profile)
    attempts = []

    async def flaky_send(messages):
        attempts.append([m.to for m in messages])
        ok = len(attempts) > 1
        return [EmailResult(ok=ok, error=None if ok else "provider down") for _ in messages]

    monkeypatch.setattr(reminder_service, "send_portal_emails", flaky_send)

    first = await reminder_service.send_class_reminders(db_session, now=DAY_BEFORE)
    assert first.sent == 0
    assert first.failed == 1
    assert await db_session.scalar(select(func.count()).select_from(NotificationLog)) == 0

    second = await reminder_service.send_class_reminders(db_session, now=DAY_BEFORE)
    assert second.sent == 1
    assert attempts[0] == attempts[1] == ["default@example.com"]
    assert await db_session.scalar(select(func.count()).select_from(NotificationLog)) == 1


@pytest.mark.asyncio
async def test_linked_parents_are_reminded(db_session, make_profile, outbox) -> None:
    await _seed_class(db_session, make_profile)
    default_student = await db_session.scalar(
        select(Enrollment.student_id).join(Profile, Profile.id == Enrollment.student_id).where(
            Profile.email == "default@example.com"
        )
    )
    parent = await make_profile(role="parent", timezone="Europe/London", email="parent@example.com")
    quiet_parent = await make_profile(
        role="parent", email="quiet@example.com", notification_preferences={"class_reminders": "1hour"}
    )
    db_session.add_all(
        [
            ParentStudentLink(parent_id=parent.id, student_id=default_student),
            ParentStudentLink(parent_id=quiet_parent.id, student_id=default_student),
        ]
    )
    await db_session.commit()

    result = await reminder_service.send_class_reminders(db_session, now=DAY_BEFORE)

    assert result.sent == 2
    assert sorted(m.to for m in outbox) == ["default@example.com", "parent@example.com"]
    to_parent = next(m for m in outbox if m.to == "parent@example.com")
    assert "2024-06-11 02:00-03:00 BST" in to_parent.text

    again = await reminder_service.send_class_reminders(db_session, now=DAY_BEFORE)
    assert again.sent == 0


@pytest.mark.asyncio
async def test_reminder_html_is_escaped(db_session, make_profile, outbox) -> None:
    await _seed_class(db_session, make_profile)
    school_class = (await db_session.execute(select(SchoolClass))).scalar_one()
    school_class.name = "Debate <b>& Rhetoric</b>"
    await db_session.commit()

    await reminder_service.send_class_reminders(db_session, now=DAY_BEFORE)

    message = outbox[0]
    assert "Debate &lt;b&gt;&amp; Rhetoric&lt;/b&gt;" in message.html
    assert "<b>" not in message.html
    assert "Debate <b>& Rhetoric</b>" in message.text
