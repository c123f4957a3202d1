from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_role
from app.auth.schemas import PortalSession
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import (
    ConvertReferralRequest,
    ConvertReferralResponse,
    IssueCreditRequest,
    IssueCreditResponse,
    ManualReferralCreate,
    ReferralCodeResponse,
    ReferralDashboard,
    ReferralResponse,
    ReferralSignup,
)
from . import service

router = APIRouter(prefix="/api/v1/referrals", tags=["referrals"])


@router.get("/code", response_model=ReferralCodeResponse)
async def get_my_code(
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(["student", "parent"])),
) -> ReferralCodeResponse:
    """Return the caller's permanent referral code, creating it on first request."""
    try:
        code = await service.issue_or_get_code(db, session.user_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ReferralCodeResponse(code=code, share_url=service.share_url(code))


@router.get("/me", response_model=ReferralDashboard)
async def get_my_referrals(
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(["student", "parent"])),
) -> ReferralDashboard:
    try:
        return await service.get_referral_dashboard(db, session.user_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/signup", response_model=ReferralResponse, status_code=status.HTTP_201_CREATED)
async def record_signup(
    payload: ReferralSignup,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(["student", "parent"])),
) -> ReferralResponse:
    """Called after a referred person finishes registration with a share-link code."""
    try:
        return await service.record_referral_signup(db, session, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/create-manual", response_model=ReferralResponse, status_code=status.HTTP_201_CREATED)
async def create_manual(
    payload: ManualReferralCreate,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(["admin"])),
) -> ReferralResponse:
    try:
        return await service.create_manual_referral(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/convert", response_model=ConvertReferralResponse)
async def convert_referral(
    payload: ConvertReferralRequest,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(["admin"])),
) -> ConvertReferralResponse:
    """Convert the oldest registered referral among profiles that just enrolled. No match is not an error."""
    referral_id = await service.convert_oldest_registered_referral(db, payload.candidate_profile_ids)
    return ConvertReferralResponse(converted=referral_id is not None, referral_id=referral_id)


@router.post("/issue-credit", response_model=IssueCreditResponse)
async def issue_credit(
    payload: IssueCreditRequest,
    db: AsyncSession = Depends(get_db),
    session: PortalSession = Depends(require_role(["admin"])),
) -> IssueCreditResponse:
    try:
        return await service.issue_credit(db, payload.referral_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
