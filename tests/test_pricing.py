from datetime import date

import pytest

from app.core.enums import ClassType
from app.core.exceptions import ValidationError
from app.core.pricing import (
    ADVANCED,
    NOVICE_INTERMEDIATE,
    PUBLIC_SPEAKING,
    WSC,
    convert_cad_price,
    prorated_price,
    prorated_price_for_class,
    tier_for_class_category,
    total_weeks_in_term,
    weeks_remaining_in_term,
)


def test_prorated_price_half_up() -> None:
    # 300 * 4 / 11 = 109.09
    assert prorated_price(300, 11, 4) == 109
    # 50 * 1 / 4 = 12.5 rounds up
    assert prorated_price(50, 4, 1) == 13


def test_full_term_ahead_pays_full_price() -> None:
    assert prorated_price(300, 11, 11) == 300
    assert prorated_price(300, 11, 15) == 300


def test_nothing_left_is_free() -> None:
    assert prorated_price(300, 11, 0) == 0
    assert prorated_price(300, 11, -3) == 0


@pytest.mark.parametrize("remaining", range(0, 12))
def test_prorated_price_within_bounds(remaining: int) -> None:
    price = prorated_price(50, 11, remaining)
    assert 0 <= price <= 50


def test_zero_total_weeks_rejected() -> None:
    with pytest.raises(ValidationError):
        prorated_price(300, 0, 0)


def test_tier_mapping() -> None:
    assert tier_for_class_category(ClassType.NOVICE_DEBATE) is NOVICE_INTERMEDIATE
    assert tier_for_class_category("intermediate_debate") is NOVICE_INTERMEDIATE
    assert tier_for_class_category("public_speaking") is PUBLIC_SPEAKING
    assert tier_for_class_category("wsc") is WSC
    assert tier_for_class_category("advanced_debate") is ADVANCED


def test_unknown_class_type_uses_advanced_tier() -> None:
    assert tier_for_class_category("private_coaching") is ADVANCED


def test_weeks_remaining() -> None:
    end = date(2024, 12, 15)
    assert weeks_remaining_in_term(end, date(2024, 11, 17)) == 4
    assert weeks_remaining_in_term(end, date(2024, 12, 14)) == 0
    assert weeks_remaining_in_term(end, date(2025, 1, 1)) == 0
    assert weeks_remaining_in_term("2024-12-15", "2024-11-10") == 5


def test_total_weeks_never_below_one() -> None:
    assert total_weeks_in_term(date(2024, 9, 1), date(2024, 9, 3)) == 1
    assert total_weeks_in_term("2024-09-01", "2024-11-17") == 11


def test_prorated_price_for_class() -> None:
    # advanced tier is 50 CAD; 4 of 11 weeks left -> 18.18
    assert prorated_price_for_class("advanced_debate", date(2024, 12, 15), 11, date(2024, 11, 17)) == 18


def test_convert_cad_price() -> None:
    assert convert_cad_price(100, "CAD") == 100
    assert convert_cad_price(100, "USD") == pytest.approx(73)
    assert convert_cad_price(100, "EUR") == 100
    assert convert_cad_price(100, "USD", {"USD": 0.5}) == 50
