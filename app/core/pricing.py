"""
Group class tuition: class type -> tier price, prorated by weeks left in the term.
Prices are whole CAD.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Union

from app.core.enums import ClassType
from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

SUPPORTED_CURRENCIES = ("CAD", "USD", "RMB")

BASE_FX_FALLBACK: Dict[str, float] = {
    "CAD": 1.0,
    "USD": 0.73,
    "RMB": 5.05,
}


@dataclass(frozen=True)
class PricingTier:
    key: str
    base_cad_price: int


NOVICE_INTERMEDIATE = PricingTier("noviceIntermediate", 30)
PUBLIC_SPEAKING = PricingTier("publicSpeaking", 30)
WSC = PricingTier("wsc", 40)
ADVANCED = PricingTier("advanced", 50)

GROUP_TIERS = (NOVICE_INTERMEDIATE, PUBLIC_SPEAKING, WSC, ADVANCED)

_TIER_BY_CLASS_TYPE: Dict[str, PricingTier] = {
    ClassType.NOVICE_DEBATE.value: NOVICE_INTERMEDIATE,
    ClassType.INTERMEDIATE_DEBATE.value: NOVICE_INTERMEDIATE,
    ClassType.PUBLIC_SPEAKING.value: PUBLIC_SPEAKING,
    ClassType.WSC.value: WSC,
    ClassType.ADVANCED_DEBATE.value: ADVANCED,
}


def tier_for_class_category(category: Union[ClassType, str]) -> PricingTier:
    """
    Map a class type to its pricing tier.

    Every known class type is listed explicitly. Anything else is priced at the advanced
    tier as the final fallback.
    """
    key = getattr(category, "value", category)
    tier = _TIER_BY_CLASS_TYPE.get(key)
    if tier is None:
        logger.warning("No pricing tier for class type %r; using %s", key, ADVANCED.key)
        return ADVANCED
    return tier


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _as_date(value: Union[date, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def weeks_remaining_in_term(term_end_date: Union[date, str], as_of: Optional[date] = None) -> int:
    """Whole weeks from as_of (default: today UTC) to the end of term, never negative."""
    days = (_as_date(term_end_date) - (_as_date(as_of) if as_of else _today())).days
    if days <= 0:
        return 0
    return days // 7


def total_weeks_in_term(start_date: Union[date, str], end_date: Union[date, str]) -> int:
    days = (_as_date(end_date) - _as_date(start_date)).days
    return max(1, days // 7)


def prorated_price(full_price: int, total_weeks: int, remaining_weeks: int) -> int:
    """
    Scale full_price by remaining_weeks / total_weeks, rounded half-up to whole CAD.

    Joining with the whole term ahead (or more, under clock skew) pays the full price.
    The result is always within [0, full_price].
    """
    if total_weeks <= 0:
        raise ValidationError("total_weeks must be greater than zero")
    if remaining_weeks >= total_weeks:
        return full_price
    if remaining_weeks <= 0:
        return 0
    scaled = (Decimal(full_price) * remaining_weeks / total_weeks).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(0, min(int(scaled), full_price))


def prorated_price_for_class(
    category: Union[ClassType, str],
    term_end_date: Union[date, str],
    total_weeks: int,
    as_of: Optional[date] = None,
) -> int:
    full_price = tier_for_class_category(category).base_cad_price
    remaining = weeks_remaining_in_term(term_end_date, as_of)
    return prorated_price(full_price, total_weeks, remaining)


def convert_cad_price(cad_amount: float, currency: str, rates: Optional[Dict[str, float]] = None) -> float:
    """Convert a CAD amount for display. Unknown currencies pass through at 1:1."""
    table = rates or BASE_FX_FALLBACK
    return cad_amount * table.get(currency, 1.0)
