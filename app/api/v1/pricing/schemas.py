from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class PriceQuote(BaseModel):
    class_type: str
    tier: str
    term_id: UUID
    term_end_date: date
    total_weeks: int
    weeks_remaining: int
    full_price_cad: int
    prorated_price_cad: int
    display_currency: str = "CAD"
    display_amount: Optional[float] = None
