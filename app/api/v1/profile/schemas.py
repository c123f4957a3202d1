from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PreferencesUpdate(BaseModel):
    class_reminders: Optional[str] = None
    general_updates: Optional[bool] = None
    # Other boolean switches (e.g. report_card_updates) are stored as given
    flags: Dict[str, bool] = Field(default_factory=dict)


class PreferencesResponse(BaseModel):
    notification_preferences: Dict[str, Any]
    class_reminders: str


class TimezoneUpdate(BaseModel):
    timezone: str = Field(..., max_length=100)


class TimezoneResponse(BaseModel):
    timezone: str
