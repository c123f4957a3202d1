from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ReportCardCreate(BaseModel):
    term_id: UUID
    class_id: UUID
    student_id: UUID
    filename: str = Field(..., max_length=255)
    content_type: Optional[str] = None
    size_bytes: int = Field(..., gt=0)


class ReportCardReview(BaseModel):
    decision: Literal["approved", "rejected"]
    notes: Optional[str] = Field(None, max_length=2000)


class ReportCardResponse(BaseModel):
    id: UUID
    term_id: UUID
    class_id: UUID
    student_id: UUID
    coach_id: Optional[UUID] = None
    status: str
    file_path: Optional[str] = None
    created_at: datetime
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    last_activity_at: datetime


class SignedUrlResponse(BaseModel):
    url: str
    expires_in: int
