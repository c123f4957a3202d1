"""Payroll: coach check-ins and completed private sessions over a date range, summarised per coach."""

import io
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple, Union
from uuid import UUID

from openpyxl import Workbook
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import PrivateSessionStatus
from app.core.exceptions import InvalidDateRange
from app.core.models import CoachCheckin, CoachProfile, PrivateSession, Profile, SchoolClass
from app.core.session_time import session_instant

from .schemas import (
    PayrollCoach,
    PayrollDataset,
    PayrollSessionRow,
    PayrollSummaryRow,
    PayrollTotals,
)

LATE_GRACE = timedelta(minutes=10)
MAX_RANGE_DAYS = 366

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

SESSIONS_SHEET_NAME = "Sessions"
SUMMARY_SHEET_NAME = "Summary"


def _round2(value: float) -> float:
    return round(value + 0.0, 2)


def _parse_day(value: str, label: str) -> date:
    text = value.strip()
    if not _DATE_RE.match(text):
        raise InvalidDateRange(f"{label} date must be in YYYY-MM-DD format.")
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise InvalidDateRange(f"{label} date is not a valid calendar date.")


def parse_payroll_date_range(
    start: Optional[str],
    end: Optional[str],
    today: Optional[date] = None,
) -> Tuple[date, date]:
    """
    Validate a payroll range. Missing values default to the first of the current month
    and today (UTC). Start must not be after end and the span is capped at one year.
    """
    today = today or datetime.now(timezone.utc).date()
    start_day = _parse_day(start, "Start") if start else today.replace(day=1)
    end_day = _parse_day(end, "End") if end else today
    if start_day > end_day:
        raise InvalidDateRange("Start date must be before end date.")
    if (end_day - start_day).days > MAX_RANGE_DAYS:
        raise InvalidDateRange("Date range cannot exceed 1 year.")
    return start_day, end_day


def _minutes(value: Union[time, str]) -> int:
    if isinstance(value, str):
        parts = value.split(":")
        return int(parts[0] or 0) * 60 + int(parts[1] if len(parts) > 1 else 0)
    return value.hour * 60 + value.minute


def scheduled_duration_hours(start_time: Union[time, str], end_time: Union[time, str]) -> float:
    """Scheduled length in hours; an end at or before the start runs past midnight."""
    minutes = _minutes(end_time) - _minutes(start_time)
    if minutes <= 0:
        minutes += 24 * 60
    return minutes / 60


def _aware(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def is_late_checkin(
    checked_in_at: datetime,
    session_date: date,
    class_start_time: Union[time, str],
    class_timezone: str,
) -> bool:
    """Late means checked in more than 10 minutes after the scheduled start in the class's zone."""
    scheduled = session_instant(session_date, class_start_time, class_timezone)
    return _aware(checked_in_at) > scheduled + LATE_GRACE


def aggregate_payroll(
    coaches: Iterable[PayrollCoach],
    sessions: Iterable[PayrollSessionRow],
    start: date,
    end: date,
) -> PayrollDataset:
    """
    Summarise sessions per coach.

    A session counts once, for its own coach, when its date is within [start, end].
    Totals are the sums of the per-coach summaries.
    """
    summary_map: Dict[UUID, PayrollSummaryRow] = {}
    for coach in coaches:
        summary_map[coach.coach_id] = PayrollSummaryRow(
            coach_id=coach.coach_id,
            coach_name=coach.coach_name,
            coach_email=coach.coach_email,
            coach_tiers=list(coach.coach_tiers),
            is_ta=coach.is_ta,
            hourly_rate=coach.hourly_rate,
            calculated_pay=None if coach.hourly_rate is None else 0.0,
        )

    counted: List[PayrollSessionRow] = []
    seen = set()
    for row in sessions:
        if row.id in seen or not (start <= row.session_date <= end):
            continue
        item = summary_map.get(row.coach_id)
        if item is None:
            continue
        seen.add(row.id)
        counted.append(row)
        item.sessions += 1
        item.total_hours += row.duration_hours
        if row.late:
            item.late_count += 1
        if item.hourly_rate is not None:
            item.calculated_pay = (item.calculated_pay or 0.0) + row.duration_hours * item.hourly_rate

    summary = []
    for item in summary_map.values():
        item.total_hours = _round2(item.total_hours)
        if item.calculated_pay is not None:
            item.calculated_pay = _round2(item.calculated_pay)
        summary.append(item)
    summary.sort(key=lambda r: r.coach_name.lower())

    totals = PayrollTotals()
    for item in summary:
        totals.sessions += item.sessions
        totals.total_hours += item.total_hours
        totals.late_count += item.late_count
        if item.calculated_pay is not None:
            totals.calculated_pay += item.calculated_pay
    totals.total_hours = _round2(totals.total_hours)
    totals.calculated_pay = _round2(totals.calculated_pay)

    counted.sort(key=lambda r: (r.session_date, r.class_start_time))
    return PayrollDataset(start=start, end=end, sessions=counted, summary=summary, totals=totals)


def _display_name(profile: Profile) -> str:
    return profile.display_name or profile.email


async def fetch_payroll_dataset(
    db: AsyncSession,
    start: date,
    end: date,
    coach_id: Optional[UUID] = None,
) -> PayrollDataset:
    coach_stmt = select(CoachProfile)
    if coach_id:
        coach_stmt = coach_stmt.where(CoachProfile.coach_id == coach_id)
    coach_profiles = (await db.execute(coach_stmt)).scalars().all()
    coach_ids = [cp.coach_id for cp in coach_profiles]
    if not coach_ids:
        return aggregate_payroll([], [], start, end)

    profiles = {
        p.id: p
        for p in (await db.execute(select(Profile).where(Profile.id.in_(coach_ids)))).scalars().all()
    }
    coaches: Dict[UUID, PayrollCoach] = {}
    for cp in coach_profiles:
        profile = profiles.get(cp.coach_id)
        if not profile:
            continue
        coaches[cp.coach_id] = PayrollCoach(
            coach_id=cp.coach_id,
            coach_name=_display_name(profile),
            coach_email=profile.email,
            coach_tiers=[cp.tier] if cp.tier else [],
            is_ta=bool(cp.is_ta),
            hourly_rate=None if cp.hourly_rate is None else float(cp.hourly_rate),
        )

    checkins = (
        await db.execute(
            select(CoachCheckin)
            .where(
                CoachCheckin.coach_id.in_(coach_ids),
                CoachCheckin.session_date >= start,
                CoachCheckin.session_date <= end,
            )
            .order_by(CoachCheckin.session_date.asc(), CoachCheckin.checked_in_at.asc())
        )
    ).scalars().all()
    class_ids = list({c.class_id for c in checkins})
    classes = {}
    if class_ids:
        classes = {
            c.id: c
            for c in (await db.execute(select(SchoolClass).where(SchoolClass.id.in_(class_ids)))).scalars().all()
        }

    private_sessions = (
        await db.execute(
            select(PrivateSession).where(
                PrivateSession.status == PrivateSessionStatus.completed.value,
                PrivateSession.coach_id.in_(coach_ids),
                PrivateSession.requested_date >= start,
                PrivateSession.requested_date <= end,
            )
        )
    ).scalars().all()
    student_ids = list({ps.student_id for ps in private_sessions})
    students = {}
    if student_ids:
        students = {
            p.id: p
            for p in (await db.execute(select(Profile).where(Profile.id.in_(student_ids)))).scalars().all()
        }

    rows: List[PayrollSessionRow] = []
    for checkin in checkins:
        school_class = classes.get(checkin.class_id)
        coach = coaches.get(checkin.coach_id)
        if not school_class or not coach:
            continue
        rows.append(
            PayrollSessionRow(
                id=str(checkin.id),
                coach_id=coach.coach_id,
                coach_name=coach.coach_name,
                coach_email=coach.coach_email,
                coach_tiers=coach.coach_tiers,
                is_ta=coach.is_ta,
                class_id=str(school_class.id),
                class_name=school_class.name,
                session_date=checkin.session_date,
                checked_in_at=_aware(checkin.checked_in_at),
                class_start_time=school_class.schedule_start_time,
                class_end_time=school_class.schedule_end_time,
                class_timezone=school_class.timezone,
                duration_hours=scheduled_duration_hours(
                    school_class.schedule_start_time, school_class.schedule_end_time
                ),
                late=is_late_checkin(
                    checkin.checked_in_at,
                    checkin.session_date,
                    school_class.schedule_start_time,
                    school_class.timezone,
                ),
            )
        )

    for ps in private_sessions:
        coach = coaches.get(ps.coach_id)
        if not coach:
            continue
        student = students.get(ps.student_id)
        student_name = _display_name(student) if student else str(ps.student_id)
        checked_in_at = (
            _aware(ps.completed_at)
            if ps.completed_at
            else session_instant(ps.requested_date, ps.requested_start_time, ps.timezone)
        )
        rows.append(
            PayrollSessionRow(
                id=str(ps.id),
                coach_id=coach.coach_id,
                coach_name=coach.coach_name,
                coach_email=coach.coach_email,
                coach_tiers=coach.coach_tiers,
                is_ta=coach.is_ta,
                class_id=f"private:{ps.id}",
                class_name=f"Private Session - {student_name}",
                session_date=ps.requested_date,
                checked_in_at=checked_in_at,
                class_start_time=ps.requested_start_time,
                class_end_time=ps.requested_end_time,
                class_timezone=ps.timezone,
                duration_hours=scheduled_duration_hours(ps.requested_start_time, ps.requested_end_time),
                is_private_session=True,
                student_name=student_name,
                price_cad=None if ps.price_cad is None else float(ps.price_cad),
            )
        )

    return aggregate_payroll(coaches.values(), rows, start, end)


def build_payroll_workbook(dataset: PayrollDataset) -> bytes:
    """Excel export with a per-coach Summary sheet and a Sessions sheet."""
    wb = Workbook()

    ws_summary = wb.active
    ws_summary.title = SUMMARY_SHEET_NAME
    ws_summary.append(["coach", "email", "ta", "sessions", "hours", "late", "hourly_rate", "pay"])
    for row in dataset.summary:
        ws_summary.append([
            row.coach_name,
            row.coach_email,
            "yes" if row.is_ta else "no",
            row.sessions,
            row.total_hours,
            row.late_count,
            row.hourly_rate,
            row.calculated_pay,
        ])
    ws_summary.append([])
    ws_summary.append([
        "TOTAL", None, None,
        dataset.totals.sessions,
        dataset.totals.total_hours,
        dataset.totals.late_count,
        None,
        dataset.totals.calculated_pay,
    ])

    ws_sessions = wb.create_sheet(SESSIONS_SHEET_NAME)
    ws_sessions.append(["date", "coach", "class", "start", "end", "timezone", "hours", "late", "private"])
    for row in dataset.sessions:
        ws_sessions.append([
            row.session_date.isoformat(),
            row.coach_name,
            row.class_name,
            row.class_start_time.strftime("%H:%M"),
            row.class_end_time.strftime("%H:%M"),
            row.class_timezone,
            row.duration_hours,
            "yes" if row.late else "no",
            "yes" if row.is_private_session else "no",
        ])

    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()
