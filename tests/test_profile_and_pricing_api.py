import uuid
from datetime import date

import pytest
from httpx import AsyncClient

from app.api.v1.pricing.service import quote_class_price
from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import Term


@pytest.mark.asyncio
async def test_preferences_are_merged(client: AsyncClient, make_profile, auth_headers) -> None:
    student = await make_profile(notification_preferences={"general_updates": False, "report_card_updates": True})
    response = await client.put(
        "/api/v1/profile/preferences",
        json={"class_reminders": "day_before"},
        headers=auth_headers(student),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["class_reminders"] == "1day"
    assert body["notification_preferences"] == {
        "general_updates": False,
        "report_card_updates": True,
        "class_reminders": "1day",
    }


@pytest.mark.asyncio
async def test_preferences_replace_malformed_blob(client: AsyncClient, make_profile, auth_headers) -> None:
    student = await make_profile(notification_preferences=["garbage"])
    response = await client.put(
        "/api/v1/profile/preferences",
        json={"general_updates": True},
        headers=auth_headers(student),
    )
    assert response.status_code == 200
    assert response.json() == {"notification_preferences": {"general_updates": True}, "class_reminders": "both"}


@pytest.mark.asyncio
async def test_flags_cannot_overwrite_typed_keys(client: AsyncClient, make_profile, auth_headers) -> None:
    student = await make_profile(notification_preferences={"class_reminders": "none", "general_updates": True})
    response = await client.put(
        "/api/v1/profile/preferences",
        json={"flags": {"class_reminders": True, "general_updates": False, "report_card_updates": False}},
        headers=auth_headers(student),
    )
    assert response.status_code == 200
    assert response.json() == {
        "notification_preferences": {"class_reminders": "none", "general_updates": True, "report_card_updates": False},
        "class_reminders": "none",
    }

    response = await client.put(
        "/api/v1/profile/preferences",
        json={"class_reminders": "1hour", "flags": {"class_reminders": True}},
        headers=auth_headers(student),
    )
    assert response.json()["notification_preferences"]["class_reminders"] == "1hour"


@pytest.mark.asyncio
async def test_unknown_reminder_value_rejected(client: AsyncClient, make_profile, auth_headers) -> None:
    student = await make_profile()
    response = await client.put(
        "/api/v1/profile/preferences",
        json={"class_reminders": "weekly"},
        headers=auth_headers(student),
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_timezone_update(client: AsyncClient, make_profile, auth_headers) -> None:
    student = await make_profile()
    ok = await client.put("/api/v1/profile/timezone", json={"timezone": "Asia/Shanghai"}, headers=auth_headers(student))
    assert ok.json() == {"timezone": "Asia/Shanghai"}
    bad = await client.put("/api/v1/profile/timezone", json={"timezone": "Mars/Olympus"}, headers=auth_headers(student))
    assert bad.status_code == 400


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client: AsyncClient) -> None:
    response = await client.put("/api/v1/profile/timezone", json={"timezone": "UTC"})
    assert response.status_code == 401
    forged = await client.put(
        "/api/v1/profile/timezone",
        json={"timezone": "UTC"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert forged.status_code == 401


@pytest.mark.asyncio
async def test_quote_class_price(db_session) -> None:
    term = Term(id=uuid.uuid4(), name="Fall 2024", start_date=date(2024, 9, 1), end_date=date(2024, 11, 17))
    db_session.add(term)
    await db_session.commit()

    quote = await quote_class_price(db_session, "advanced_debate", term.id, "USD", as_of=date(2024, 10, 20))
    assert quote.total_weeks == 11
    assert quote.weeks_remaining == 4
    assert quote.full_price_cad == 50
    assert quote.prorated_price_cad == 18
    assert quote.display_amount == pytest.approx(13.14)


@pytest.mark.asyncio
async def test_quote_errors(db_session) -> None:
    with pytest.raises(NotFoundError):
        await quote_class_price(db_session, "wsc", uuid.uuid4())
    with pytest.raises(ValidationError):
        await quote_class_price(db_session, "wsc", uuid.uuid4(), "GBP")


@pytest.mark.asyncio
async def test_quote_endpoint(client: AsyncClient, db_session, make_profile, auth_headers) -> None:
    parent = await make_profile(role="parent")
    term = Term(id=uuid.uuid4(), name="Past", start_date=date(2020, 1, 1), end_date=date(2020, 3, 1))
    db_session.add(term)
    await db_session.commit()

    response = await client.get(
        "/api/v1/pricing/quote",
        params={"class_type": "wsc", "term_id": str(term.id)},
        headers=auth_headers(parent),
    )
    assert response.status_code == 200
    assert response.json()["prorated_price_cad"] == 0
