from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class ReferralCodeResponse(BaseModel):
    code: str
    share_url: str


class ReferralResponse(BaseModel):
    id: UUID
    referrer_id: UUID
    referred_email: str
    referred_student_id: Optional[UUID] = None
    status: str
    credit_amount_cad: Optional[int] = None
    created_at: datetime
    registered_at: Optional[datetime] = None
    converted_at: Optional[datetime] = None
    credited_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReferralDashboard(BaseModel):
    code: str
    share_url: str
    referrals: List[ReferralResponse]
    registered_count: int = 0
    converted_count: int = 0
    pending_credit_cad: int = 0
    credited_total_cad: int = 0


class ManualReferralCreate(BaseModel):
    """Admin records a referral that happened outside the share link."""

    referrer_id: UUID
    referred_email: EmailStr
    status: Literal["pending", "registered", "converted"] = "registered"


class ReferralSignup(BaseModel):
    """The referred person is the caller; only the share-link code comes from the body."""

    code: str = Field(..., min_length=4, max_length=20)


class ConvertReferralRequest(BaseModel):
    candidate_profile_ids: List[UUID] = Field(..., min_length=1)


class ConvertReferralResponse(BaseModel):
    converted: bool
    referral_id: Optional[UUID] = None


class IssueCreditRequest(BaseModel):
    referral_id: UUID


class IssueCreditResponse(BaseModel):
    referrer_id: UUID
    credited_referral_ids: List[UUID]
    total_credit_cad: int
