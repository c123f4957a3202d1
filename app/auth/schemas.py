from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class SessionProfile(BaseModel):
    role: str
    timezone: str
    locale: str = "en"
    display_name: Optional[str] = None
    email: str


class PortalSession(BaseModel):
    """Authenticated caller as seen by route handlers."""

    user_id: UUID
    profile: SessionProfile
