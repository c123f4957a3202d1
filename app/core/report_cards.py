"""
Report card status workflow: draft -> submitted -> approved | rejected, rejected -> submitted.
Only the transitions checked here are legal; services reject everything else.
"""

from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from app.core.enums import ReportCardStatus

SUBMITTABLE_STATUSES = frozenset({ReportCardStatus.draft.value, ReportCardStatus.rejected.value})
REVIEWABLE_STATUSES = frozenset({ReportCardStatus.submitted.value})
REVIEWED_STATUSES = frozenset({ReportCardStatus.approved.value, ReportCardStatus.rejected.value})

StatusLike = Union[ReportCardStatus, str]


def _value(status: StatusLike) -> str:
    return getattr(status, "value", status)


def can_submit(status: StatusLike) -> bool:
    return _value(status) in SUBMITTABLE_STATUSES


def can_review(status: StatusLike) -> bool:
    return _value(status) in REVIEWABLE_STATUSES


def last_activity_timestamp(row) -> datetime:
    """reviewed_at for a reviewed card that has one, otherwise created_at."""
    reviewed_at = getattr(row, "reviewed_at", None)
    if _value(row.status) in REVIEWED_STATUSES and reviewed_at is not None:
        return reviewed_at
    return row.created_at


def is_pdf_file(filename: Optional[str], content_type: Optional[str]) -> bool:
    return content_type == "application/pdf" or (filename or "").lower().endswith(".pdf")


def build_report_card_storage_path(term_id: UUID, class_id: UUID, student_id: UUID, report_card_id: UUID) -> str:
    return f"term/{term_id}/class/{class_id}/student/{student_id}/{report_card_id}.pdf"
