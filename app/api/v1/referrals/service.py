"""
Referral ledger: permanent referral codes and the registered -> converted -> credited lifecycle.

Requests run in independent processes, so nothing here locks in memory. Code issuance
relies on the unique constraints of referral_codes; every status change is an UPDATE
guarded by the status the row is expected to be in, and only a row count of one means
this request made the transition.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.referral_code import (
    generate_referral_code,
    is_well_formed_referral_code,
    normalize_referral_code,
)
from app.auth.schemas import PortalSession
from app.core.config import settings
from app.core.enums import PortalRole, ReferralStatus
from app.core.exceptions import CodeIssuanceFailed, NotFoundError, ValidationError
from app.core.models import Profile, Referral, ReferralCode

from .schemas import (
    IssueCreditResponse,
    ManualReferralCreate,
    ReferralDashboard,
    ReferralResponse,
    ReferralSignup,
)

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 5

REFERRER_ROLES = (PortalRole.STUDENT.value, PortalRole.PARENT.value)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def share_url(code: str) -> str:
    return f"{settings.portal_app_url.rstrip('/')}/refer/{code}"


# ----- Codes -----
async def _find_code(db: AsyncSession, user_id: UUID) -> Optional[str]:
    result = await db.execute(select(ReferralCode.code).where(ReferralCode.user_id == user_id))
    return result.scalar_one_or_none()


async def issue_or_get_code(db: AsyncSession, user_id: UUID, max_attempts: int = MAX_CODE_ATTEMPTS) -> str:
    """
    Return the user's referral code, creating it on first use.

    An insert can fail for two reasons: a concurrent request already stored this user's
    code (the user_id key), or the random candidate belongs to someone else (the code key).
    After every failure the user's code is looked up again; only when it is still missing
    is a fresh candidate tried.
    """
    existing = await _find_code(db, user_id)
    if existing:
        return existing

    for attempt in range(1, max_attempts + 1):
        candidate = generate_referral_code()
        db.add(ReferralCode(user_id=user_id, code=candidate))
        try:
            await db.commit()
            logger.info("Issued referral code %s to user %s", candidate, user_id)
            return candidate
        except IntegrityError:
            await db.rollback()

        existing = await _find_code(db, user_id)
        if existing:
            return existing
        logger.warning("Referral code candidate collided (user=%s, attempt=%d)", user_id, attempt)

    logger.error("Could not issue referral code for user %s after %d attempts", user_id, max_attempts)
    raise CodeIssuanceFailed("Failed to create referral code.")


async def get_code_owner(db: AsyncSession, code: str) -> Optional[UUID]:
    result = await db.execute(
        select(ReferralCode.user_id).where(ReferralCode.code == normalize_referral_code(code))
    )
    return result.scalar_one_or_none()


# ----- Conversion -----
async def _claim_registered_referral(db: AsyncSession, referral_id: UUID) -> bool:
    """registered -> converted, only if the row is still registered. True if this call converted it."""
    result = await db.execute(
        update(Referral)
        .where(
            Referral.id == referral_id,
            Referral.status == ReferralStatus.registered.value,
        )
        .values(
            status=ReferralStatus.converted.value,
            credit_amount_cad=settings.referral_credit_amount_cad,
            converted_at=_now(),
        )
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount == 1


async def convert_oldest_registered_referral(
    db: AsyncSession,
    candidate_profile_ids: Iterable[Optional[UUID]],
) -> Optional[UUID]:
    """
    Convert at most one referral for profiles that just qualified (e.g. enrolled).

    Candidates are tried in order; for each, the oldest referral still registered against
    that profile is claimed. Returns the converted referral's id, or None when no candidate
    has an eligible referral. Finding nothing is normal and not an error.
    """
    candidates = list(dict.fromkeys(pid for pid in candidate_profile_ids if pid))

    for profile_id in candidates:
        result = await db.execute(
            select(Referral.id)
            .where(
                Referral.referred_student_id == profile_id,
                Referral.status == ReferralStatus.registered.value,
            )
            .order_by(Referral.created_at.asc())
            .limit(1)
        )
        referral_id = result.scalar_one_or_none()
        if referral_id is None:
            continue
        if await _claim_registered_referral(db, referral_id):
            logger.info("Referral %s converted for profile %s", referral_id, profile_id)
            return referral_id
        logger.info("Referral %s already claimed by a concurrent request", referral_id)

    return None


# ----- Creating referrals -----
async def _find_student_by_email(db: AsyncSession, email: str) -> Optional[UUID]:
    result = await db.execute(
        select(Profile.id).where(
            Profile.email == email,
            Profile.role == PortalRole.STUDENT.value,
        )
    )
    return result.scalar_one_or_none()


async def create_manual_referral(db: AsyncSession, payload: ManualReferralCreate) -> ReferralResponse:
    """Admin-entered referral. The referrer gets a code if they have none yet."""
    referrer = await db.get(Profile, payload.referrer_id)
    if not referrer or referrer.role not in REFERRER_ROLES:
        raise ValidationError("Referrer must be a student or parent.")

    referrer_id = referrer.id
    # Issuance may roll back the session, which expires loaded rows
    await issue_or_get_code(db, referrer_id)

    email = str(payload.referred_email).strip().lower()
    now = _now()
    reached_registration = payload.status in (ReferralStatus.registered.value, ReferralStatus.converted.value)
    converted = payload.status == ReferralStatus.converted.value
    referral = Referral(
        referrer_id=referrer_id,
        referred_email=email,
        referred_student_id=await _find_student_by_email(db, email),
        status=payload.status,
        credit_amount_cad=settings.referral_credit_amount_cad if converted else 0,
        registered_at=now if reached_registration else None,
        converted_at=now if converted else None,
    )
    db.add(referral)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationError("Could not record referral.")
    await db.refresh(referral)
    return ReferralResponse.model_validate(referral)


ACTIVE_REFERRAL_STATUSES = (
    ReferralStatus.pending.value,
    ReferralStatus.registered.value,
    ReferralStatus.converted.value,
    ReferralStatus.credited.value,
)


async def _has_active_referral(db: AsyncSession, profile_id: UUID, email: str) -> bool:
    result = await db.execute(
        select(Referral.id)
        .where(
            or_(Referral.referred_student_id == profile_id, Referral.referred_email == email),
            Referral.status.in_(ACTIVE_REFERRAL_STATUSES),
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def record_referral_signup(
    db: AsyncSession,
    session: PortalSession,
    payload: ReferralSignup,
) -> ReferralResponse:
    """
    The caller registered through a share link: store the referral as registered.

    The referred profile and email are the caller's own. A person can be referred once;
    an existing pending, registered, converted or credited referral for the same profile
    or email is a 409.
    """
    if not is_well_formed_referral_code(payload.code):
        raise NotFoundError("Referral code not found.")
    referrer_id = await get_code_owner(db, payload.code)
    if referrer_id is None:
        raise NotFoundError("Referral code not found.")
    if referrer_id == session.user_id:
        raise ValidationError("You cannot refer yourself.")

    email = session.profile.email.strip().lower()
    if await _has_active_referral(db, session.user_id, email):
        raise ValidationError("This account has already been referred.", status.HTTP_409_CONFLICT)

    referral = Referral(
        referrer_id=referrer_id,
        referred_email=email,
        referred_student_id=session.user_id,
        status=ReferralStatus.registered.value,
        credit_amount_cad=0,
        registered_at=_now(),
    )
    db.add(referral)
    await db.commit()
    await db.refresh(referral)
    logger.info("Referral signup recorded for %s (referrer %s)", session.user_id, referrer_id)
    return ReferralResponse.model_validate(referral)


# ----- Dashboard and credits -----
async def get_referral_dashboard(db: AsyncSession, user_id: UUID) -> ReferralDashboard:
    code = await issue_or_get_code(db, user_id)
    result = await db.execute(
        select(Referral)
        .where(Referral.referrer_id == user_id)
        .order_by(Referral.created_at.desc())
        .execution_options(populate_existing=True)
    )
    rows = result.scalars().all()
    referrals = [ReferralResponse.model_validate(r) for r in rows]
    return ReferralDashboard(
        code=code,
        share_url=share_url(code),
        referrals=referrals,
        registered_count=sum(1 for r in rows if r.status == ReferralStatus.registered.value),
        converted_count=sum(1 for r in rows if r.status == ReferralStatus.converted.value),
        pending_credit_cad=sum(r.credit_amount_cad or 0 for r in rows if r.status == ReferralStatus.converted.value),
        credited_total_cad=sum(r.credit_amount_cad or 0 for r in rows if r.status == ReferralStatus.credited.value),
    )


async def issue_credit(db: AsyncSession, referral_id: UUID) -> IssueCreditResponse:
    """
    Mark every converted referral of the selected referral's referrer as credited.

    Each row moves converted -> credited under a status guard, so a credit is counted
    once even if two admins issue it at the same time.
    """
    selected = await db.get(Referral, referral_id, populate_existing=True)
    if not selected or selected.status != ReferralStatus.converted.value:
        raise NotFoundError("Referral not found or not ready for credit issuance.")

    result = await db.execute(
        select(Referral.id, Referral.credit_amount_cad).where(
            Referral.referrer_id == selected.referrer_id,
            Referral.status == ReferralStatus.converted.value,
        )
    )
    pending = result.all()

    credited_ids: List[UUID] = []
    total = 0
    now = _now()
    for row_id, amount in pending:
        claimed = await db.execute(
            update(Referral)
            .where(Referral.id == row_id, Referral.status == ReferralStatus.converted.value)
            .values(status=ReferralStatus.credited.value, credited_at=now)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 1:
            credited_ids.append(row_id)
            total += amount or 0
    await db.commit()

    if not credited_ids:
        raise ValidationError("No converted referrals available for this referrer.", status.HTTP_409_CONFLICT)
    logger.info("Credited %d referral(s) totalling %d CAD to %s", len(credited_ids), total, selected.referrer_id)
    return IssueCreditResponse(
        referrer_id=selected.referrer_id,
        credited_referral_ids=credited_ids,
        total_credit_cad=total,
    )
