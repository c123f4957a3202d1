from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class FeedbackCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    message: str = Field(..., min_length=5, max_length=5000)
    page_url: Optional[str] = Field(None, max_length=500)


class FeedbackResponse(BaseModel):
    ok: bool
    delivered: bool
