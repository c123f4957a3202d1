from datetime import date, datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class PayrollCoach(BaseModel):
    coach_id: UUID
    coach_name: str
    coach_email: str
    coach_tiers: List[str] = Field(default_factory=list)
    is_ta: bool = False
    hourly_rate: Optional[float] = None


class PayrollSessionRow(BaseModel):
    """One paid session: a class check-in or a completed private session."""

    id: str
    coach_id: UUID
    coach_name: str
    coach_email: str
    coach_tiers: List[str] = Field(default_factory=list)
    is_ta: bool = False
    class_id: str
    class_name: str
    session_date: date
    checked_in_at: datetime
    class_start_time: time
    class_end_time: time
    class_timezone: str
    duration_hours: float
    late: bool = False
    is_private_session: bool = False
    student_name: Optional[str] = None
    price_cad: Optional[float] = None


class PayrollSummaryRow(BaseModel):
    coach_id: UUID
    coach_name: str
    coach_email: str
    coach_tiers: List[str] = Field(default_factory=list)
    is_ta: bool = False
    sessions: int = 0
    total_hours: float = 0
    late_count: int = 0
    hourly_rate: Optional[float] = None
    calculated_pay: Optional[float] = None


class PayrollTotals(BaseModel):
    sessions: int = 0
    total_hours: float = 0
    calculated_pay: float = 0
    late_count: int = 0


class PayrollDataset(BaseModel):
    start: date
    end: date
    sessions: List[PayrollSessionRow]
    summary: List[PayrollSummaryRow]
    totals: PayrollTotals
