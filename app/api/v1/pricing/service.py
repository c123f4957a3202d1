"""Tuition quotes for joining a class part-way through a term."""

from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import Term
from app.core.pricing import (
    SUPPORTED_CURRENCIES,
    convert_cad_price,
    prorated_price,
    tier_for_class_category,
    total_weeks_in_term,
    weeks_remaining_in_term,
)

from .schemas import PriceQuote


async def quote_class_price(
    db: AsyncSession,
    class_type: str,
    term_id: UUID,
    currency: str = "CAD",
    as_of: Optional[date] = None,
) -> PriceQuote:
    if currency not in SUPPORTED_CURRENCIES:
        raise ValidationError(f"Unsupported currency: {currency}")
    term = await db.get(Term, term_id)
    if not term:
        raise NotFoundError("Term not found")

    tier = tier_for_class_category(class_type)
    total_weeks = term.total_weeks or total_weeks_in_term(term.start_date, term.end_date)
    remaining = weeks_remaining_in_term(term.end_date, as_of)
    price = prorated_price(tier.base_cad_price, total_weeks, remaining)
    return PriceQuote(
        class_type=class_type,
        tier=tier.key,
        term_id=term.id,
        term_end_date=term.end_date,
        total_weeks=total_weeks,
        weeks_remaining=min(remaining, total_weeks),
        full_price_cad=tier.base_cad_price,
        prorated_price_cad=price,
        display_currency=currency,
        display_amount=round(convert_cad_price(price, currency), 2),
    )
