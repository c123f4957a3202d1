from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_role
from app.auth.schemas import PortalSession
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import ReportCardCreate, ReportCardResponse, ReportCardReview, SignedUrlResponse
from . import service

router = APIRouter(prefix="/api/v1/report-cards", tags=["report-cards"])

STAFF_ROLES = ["admin", "coach", "ta"]


@router.get("", response_model=List[ReportCardResponse])
async def list_report_cards(
    status_filter: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(["admin", "coach", "ta", "student"])),
) -> List[ReportCardResponse]:
    return await service.list_report_cards(db, session, status_filter)


@router.post("", response_model=ReportCardResponse, status_code=status.HTTP_201_CREATED)
async def create_report_card(
    payload: ReportCardCreate,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(STAFF_ROLES)),
) -> ReportCardResponse:
    """Create a draft report card and the storage path its PDF must be uploaded to."""
    try:
        return await service.create_report_card(db, session, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{report_card_id}/submit", response_model=ReportCardResponse)
async def submit_report_card(
    report_card_id: UUID,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(STAFF_ROLES)),
) -> ReportCardResponse:
    try:
        return await service.submit_report_card(db, session, report_card_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{report_card_id}/review", response_model=ReportCardResponse)
async def review_report_card(
    report_card_id: UUID,
    payload: ReportCardReview,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(["admin"])),
) -> ReportCardResponse:
    try:
        return await service.review_report_card(db, session, report_card_id, payload.decision, payload.notes)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{report_card_id}/signed-url", response_model=SignedUrlResponse)
async def report_card_signed_url(
    report_card_id: UUID,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(["admin", "coach", "ta", "student"])),
) -> SignedUrlResponse:
    try:
        return await service.get_report_card_signed_url(db, session, report_card_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
