"""Report card uploads, submission and review. Status changes are guarded updates on the current status."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import PortalSession
from app.core.config import settings
from app.core.enums import PortalRole, ReportCardStatus
from app.core.exceptions import NotFoundError, ServiceError, ValidationError
from app.core.models import ReportCard
from app.core.report_cards import (
    REVIEWABLE_STATUSES,
    SUBMITTABLE_STATUSES,
    build_report_card_storage_path,
    can_review,
    can_submit,
    is_pdf_file,
    last_activity_timestamp,
)
from app.core.storage import bucket_for, create_signed_url

from .schemas import ReportCardCreate, ReportCardResponse, SignedUrlResponse

logger = logging.getLogger(__name__)


def _to_response(card: ReportCard) -> ReportCardResponse:
    return ReportCardResponse(
        id=card.id,
        term_id=card.term_id,
        class_id=card.class_id,
        student_id=card.student_id,
        coach_id=card.coach_id,
        status=card.status,
        file_path=card.file_path,
        created_at=card.created_at,
        submitted_at=card.submitted_at,
        reviewed_at=card.reviewed_at,
        review_notes=card.review_notes,
        last_activity_at=last_activity_timestamp(card),
    )


def validate_report_card_upload(filename: str, content_type: Optional[str], size_bytes: int) -> None:
    if not is_pdf_file(filename, content_type):
        raise ValidationError("Report cards must be PDF files.")
    if size_bytes > settings.report_card_max_file_bytes:
        limit_mb = settings.report_card_max_file_bytes // (1024 * 1024)
        raise ValidationError(f"File is too large (max {limit_mb} MB).")


async def _get_card(db: AsyncSession, report_card_id: UUID) -> ReportCard:
    card = await db.get(ReportCard, report_card_id, populate_existing=True)
    if not card:
        raise NotFoundError("Report card not found")
    return card


def _is_admin(session: PortalSession) -> bool:
    return session.profile.role == PortalRole.ADMIN.value


def _ensure_can_edit(card: ReportCard, session: PortalSession) -> None:
    if _is_admin(session):
        return
    if card.coach_id != session.user_id:
        raise ServiceError("You can only manage report cards you uploaded", status.HTTP_403_FORBIDDEN)


async def create_report_card(
    db: AsyncSession,
    session: PortalSession,
    payload: ReportCardCreate,
) -> ReportCardResponse:
    """Record a draft; the PDF goes to storage under the returned file_path."""
    validate_report_card_upload(payload.filename, payload.content_type, payload.size_bytes)
    card_id = uuid.uuid4()
    card = ReportCard(
        id=card_id,
        term_id=payload.term_id,
        class_id=payload.class_id,
        student_id=payload.student_id,
        coach_id=session.user_id,
        status=ReportCardStatus.draft.value,
        file_path=build_report_card_storage_path(payload.term_id, payload.class_id, payload.student_id, card_id),
    )
    db.add(card)
    await db.commit()
    await db.refresh(card)
    return _to_response(card)


async def _transition(
    db: AsyncSession,
    report_card_id: UUID,
    allowed_from: Iterable[str],
    values: dict,
) -> bool:
    result = await db.execute(
        update(ReportCard)
        .where(ReportCard.id == report_card_id, ReportCard.status.in_(list(allowed_from)))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount == 1


async def submit_report_card(db: AsyncSession, session: PortalSession, report_card_id: UUID) -> ReportCardResponse:
    card = await _get_card(db, report_card_id)
    _ensure_can_edit(card, session)
    if not can_submit(card.status):
        raise ValidationError(f"Cannot submit a report card that is {card.status}.", status.HTTP_409_CONFLICT)

    moved = await _transition(
        db,
        report_card_id,
        SUBMITTABLE_STATUSES,
        {"status": ReportCardStatus.submitted.value, "submitted_at": datetime.now(timezone.utc)},
    )
    await db.refresh(card)
    if not moved:
        raise ValidationError(f"Cannot submit a report card that is {card.status}.", status.HTTP_409_CONFLICT)
    logger.info("Report card %s submitted by %s", report_card_id, session.user_id)
    return _to_response(card)


async def review_report_card(
    db: AsyncSession,
    session: PortalSession,
    report_card_id: UUID,
    decision: str,
    notes: Optional[str] = None,
) -> ReportCardResponse:
    """Approve or reject a submitted card. Anything not awaiting review is refused."""
    if decision not in (ReportCardStatus.approved.value, ReportCardStatus.rejected.value):
        raise ValidationError(f"Invalid review decision: {decision}")
    card = await _get_card(db, report_card_id)
    if not can_review(card.status):
        raise ValidationError(f"Report card is {card.status}, not awaiting review.", status.HTTP_409_CONFLICT)

    moved = await _transition(
        db,
        report_card_id,
        REVIEWABLE_STATUSES,
        {
            "status": decision,
            "reviewed_at": datetime.now(timezone.utc),
            "reviewed_by": session.user_id,
            "review_notes": notes,
        },
    )
    await db.refresh(card)
    if not moved:
        raise ValidationError(f"Report card is {card.status}, not awaiting review.", status.HTTP_409_CONFLICT)
    logger.info("Report card %s %s by %s", report_card_id, decision, session.user_id)
    return _to_response(card)


async def list_report_cards(
    db: AsyncSession,
    session: PortalSession,
    status_filter: Optional[str] = None,
) -> List[ReportCardResponse]:
    """Admins see every card, coaches their own uploads, students their own cards. Newest activity first."""
    stmt = select(ReportCard)
    role = session.profile.role
    if role in (PortalRole.COACH.value, PortalRole.TA.value):
        stmt = stmt.where(ReportCard.coach_id == session.user_id)
    elif role == PortalRole.STUDENT.value:
        stmt = stmt.where(
            ReportCard.student_id == session.user_id,
            ReportCard.status == ReportCardStatus.approved.value,
        )
    elif not _is_admin(session):
        return []
    if status_filter:
        stmt = stmt.where(ReportCard.status == status_filter)
    result = await db.execute(stmt)
    cards = [_to_response(card) for card in result.scalars().all()]
    return sorted(cards, key=lambda c: c.last_activity_at, reverse=True)


async def get_report_card_signed_url(
    db: AsyncSession,
    session: PortalSession,
    report_card_id: UUID,
) -> SignedUrlResponse:
    card = await _get_card(db, report_card_id)
    role = session.profile.role
    allowed = (
        _is_admin(session)
        or card.coach_id == session.user_id
        or (
            role == PortalRole.STUDENT.value
            and card.student_id == session.user_id
            and card.status == ReportCardStatus.approved.value
        )
    )
    if not allowed:
        raise ServiceError("Not allowed to view this report card", status.HTTP_403_FORBIDDEN)
    if not card.file_path:
        raise NotFoundError("Report card file not uploaded")

    url = await create_signed_url(bucket_for("report_cards"), card.file_path)
    return SignedUrlResponse(url=url, expires_in=settings.signed_url_ttl_seconds)
