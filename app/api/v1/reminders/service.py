"""
Class reminder dispatch, run by cron a few times an hour.

For each class in the current term, find its next session (in the class's own zone),
decide whether a 1-day or 1-hour reminder is due, and email every enrolled student or
linked parent who has not opted out, with the session time shown in that person's zone.
A reminder is logged before sending and the log entry is dropped if the send fails.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from html import escape
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.email import PortalEmail, send_portal_emails
from app.core.models import Enrollment, NotificationLog, ParentStudentLink, Profile, SchoolClass, Term
from app.core.notification_preferences import allows_reminder
from app.core.session_time import (
    format_session_range_for_recipient,
    is_class_scheduled_today,
    is_session_date_in_term_range,
    resolve_session_calendar_date,
    resolve_timezone,
    session_instant,
)

logger = logging.getLogger(__name__)

ONE_DAY = "1day"
ONE_HOUR = "1hour"


@dataclass(frozen=True)
class TermWindow:
    id: UUID
    start_date: date
    end_date: date


@dataclass(frozen=True)
class ClassSlot:
    id: UUID
    name: str
    schedule_day: str
    schedule_start_time: time
    schedule_end_time: time
    timezone: str

    @classmethod
    def from_row(cls, row: SchoolClass) -> "ClassSlot":
        return cls(
            id=row.id,
            name=row.name,
            schedule_day=row.schedule_day,
            schedule_start_time=row.schedule_start_time,
            schedule_end_time=row.schedule_end_time,
            timezone=row.timezone,
        )


@dataclass(frozen=True)
class Recipient:
    id: UUID
    email: str
    display_name: Optional[str]
    timezone: Optional[str]
    notification_preferences: Any

    @classmethod
    def from_row(cls, row: Profile) -> "Recipient":
        return cls(
            id=row.id,
            email=row.email,
            display_name=row.display_name,
            timezone=row.timezone,
            notification_preferences=row.notification_preferences,
        )


class ReminderRunResult(BaseModel):
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    reason: Optional[str] = None


def reminder_type_for(minutes_until_start: int) -> Optional[str]:
    if 0 < minutes_until_start <= 60:
        return ONE_HOUR
    if 23 * 60 <= minutes_until_start <= 24 * 60:
        return ONE_DAY
    return None


def candidate_session_date(school_class, term, now: datetime) -> Optional[date]:
    """Next session date (today or within two days, class zone) that falls inside the term."""
    for offset in range(3):
        moment = now + timedelta(days=offset)
        if not is_class_scheduled_today(school_class.schedule_day, school_class.timezone, moment):
            continue
        local_day = resolve_session_calendar_date(school_class.timezone, moment)
        if is_session_date_in_term_range(term, local_day):
            return local_day
    return None


async def _current_term(db: AsyncSession, today: date) -> Optional[TermWindow]:
    result = await db.execute(
        select(Term)
        .where(Term.start_date <= today, Term.end_date >= today)
        .order_by(Term.start_date.desc())
        .limit(1)
    )
    term = result.scalar_one_or_none()
    if term is None:
        return None
    return TermWindow(id=term.id, start_date=term.start_date, end_date=term.end_date)


async def _claim_notification(db: AsyncSession, recipient_id, notification_type: str, reference_id: str) -> bool:
    """Record the send first; a unique violation means an earlier run already sent it."""
    db.add(NotificationLog(recipient_id=recipient_id, notification_type=notification_type, reference_id=reference_id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return False
    return True


async def _release_notification(db: AsyncSession, recipient_id, notification_type: str, reference_id: str) -> None:
    """Drop the claim of a failed send so the next run tries again."""
    await db.execute(
        delete(NotificationLog).where(
            NotificationLog.recipient_id == recipient_id,
            NotificationLog.notification_type == notification_type,
            NotificationLog.reference_id == reference_id,
        )
    )


def _reminder_email(recipient: "Recipient", school_class: "ClassSlot", when: str, reminder_type: str) -> PortalEmail:
    lead = "tomorrow" if reminder_type == ONE_DAY else "in one hour"
    name = recipient.display_name or recipient.email
    link = f"{settings.portal_app_url.rstrip('/')}/portal/classes"
    subject = f"Reminder: {school_class.name} starts {lead}"
    text = f"Hi {name},\n\n{school_class.name} starts {lead}: {when}.\n\nView your classes: {link}\n"
    html = (
        f"<p>Hi {escape(name)},</p>"
        f"<p><strong>{escape(school_class.name)}</strong> starts {lead}: {escape(when)}.</p>"
        f'<p><a href="{escape(link, quote=True)}">View your classes</a></p>'
    )
    return PortalEmail(to=recipient.email, subject=subject, html=html, text=text)


async def send_class_reminders(db: AsyncSession, now: Optional[datetime] = None) -> ReminderRunResult:
    now = now or datetime.now(timezone.utc)
    term = await _current_term(db, now.date())
    if not term:
        return ReminderRunResult(reason="no_active_term")

    # Plain copies: a rolled-back notification claim expires every ORM instance in the session
    classes = [
        ClassSlot.from_row(row)
        for row in (await db.execute(select(SchoolClass).where(SchoolClass.term_id == term.id))).scalars().all()
    ]
    if not classes:
        return ReminderRunResult(reason="no_classes")

    enrollments = (
        await db.execute(
            select(Enrollment.class_id, Enrollment.student_id).where(
                Enrollment.class_id.in_([c.id for c in classes]),
                Enrollment.status == "active",
            )
        )
    ).all()
    students_by_class: Dict[UUID, List[UUID]] = {}
    for class_id, student_id in enrollments:
        students_by_class.setdefault(class_id, []).append(student_id)
    student_ids = list({student_id for _, student_id in enrollments})

    parents_by_student: Dict[UUID, List[UUID]] = {}
    if student_ids:
        links = (
            await db.execute(
                select(ParentStudentLink.parent_id, ParentStudentLink.student_id).where(
                    ParentStudentLink.student_id.in_(student_ids)
                )
            )
        ).all()
        for parent_id, student_id in links:
            parents_by_student.setdefault(student_id, []).append(parent_id)

    recipient_ids = set(student_ids)
    for parent_ids in parents_by_student.values():
        recipient_ids.update(parent_ids)
    profiles: Dict[UUID, Recipient] = {}
    if recipient_ids:
        profiles = {
            p.id: Recipient.from_row(p)
            for p in (await db.execute(select(Profile).where(Profile.id.in_(list(recipient_ids))))).scalars().all()
        }

    result = ReminderRunResult()
    outgoing: List[PortalEmail] = []
    claims: List[Tuple[UUID, str, str]] = []
    for school_class in classes:
        session_date = candidate_session_date(school_class, term, now)
        if session_date is None:
            result.skipped += 1
            continue
        start = session_instant(session_date, school_class.schedule_start_time, school_class.timezone)
        reminder_type = reminder_type_for(int((start - now).total_seconds() // 60))
        if reminder_type is None:
            result.skipped += 1
            continue

        # Students first, then their linked parents; each person once per class
        class_recipients: List[UUID] = []
        for student_id in students_by_class.get(school_class.id, []):
            for person_id in [student_id] + parents_by_student.get(student_id, []):
                if person_id not in class_recipients:
                    class_recipients.append(person_id)

        reference_id = f"{school_class.id}_{session_date.isoformat()}"
        notification_type = f"class_reminder_{reminder_type}"
        for person_id in class_recipients:
            recipient = profiles.get(person_id)
            if not recipient or not recipient.email:
                result.skipped += 1
                continue
            if not allows_reminder(recipient.notification_preferences, reminder_type):
                result.skipped += 1
                continue
            if not await _claim_notification(db, recipient.id, notification_type, reference_id):
                result.skipped += 1
                continue
            when = format_session_range_for_recipient(
                session_date,
                school_class.schedule_start_time,
                school_class.schedule_end_time,
                school_class.timezone,
                resolve_timezone(recipient.timezone),
            )
            outgoing.append(_reminder_email(recipient, school_class, when, reminder_type))
            claims.append((recipient.id, notification_type, reference_id))

    outcomes = await send_portal_emails(outgoing)
    released = False
    for claim, outcome in zip(claims, outcomes):
        if outcome.ok:
            result.sent += 1
            continue
        result.failed += 1
        await _release_notification(db, *claim)
        released = True
    if released:
        await db.commit()
    logger.info("Class reminders: sent=%d skipped=%d failed=%d", result.sent, result.skipped, result.failed)
    return result
