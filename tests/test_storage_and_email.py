import json

import httpx
import pytest

from app.core import email as email_module
from app.core import storage
from app.core.config import settings
from app.core.exceptions import UpstreamFailure


@pytest.fixture()
def storage_configured(monkeypatch):
    monkeypatch.setattr(settings, "storage_url", "https://storage.test/")
    monkeypatch.setattr(settings, "storage_service_key", "service-key")


def test_bucket_for_known_asset_classes() -> None:
    assert storage.bucket_for("report_cards") == "report-cards"
    assert storage.bucket_for("legal_documents") == "legal-documents"
    with pytest.raises(ValueError):
        storage.bucket_for("avatars")


@pytest.mark.asyncio
async def test_signed_url_built_from_relative_path(storage_configured) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"signedURL": "/object/sign/resources/a.pdf?token=t"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        url = await storage.create_signed_url("resources", "a.pdf", client=client)

    assert url == "https://storage.test/storage/v1/object/sign/resources/a.pdf?token=t"
    assert seen["url"] == "https://storage.test/storage/v1/object/sign/resources/a.pdf"
    assert seen["body"] == {"expiresIn": 900}
    assert seen["auth"] == "Bearer service-key"


@pytest.mark.asyncio
async def test_signed_url_provider_error_carries_message(storage_configured) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Object not found"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(UpstreamFailure) as exc_info:
            await storage.create_signed_url("resources", "missing.pdf", ttl_seconds=60, client=client)

    assert exc_info.value.message == "Object not found"
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_signed_url_requires_configuration(monkeypatch) -> None:
    monkeypatch.setattr(settings, "storage_url", None)
    with pytest.raises(UpstreamFailure) as exc_info:
        await storage.create_signed_url("resources", "a.pdf")
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_email_skipped_when_not_configured(monkeypatch) -> None:
    monkeypatch.setattr(settings, "resend_api_key", None)
    result = await email_module.send_portal_email(
        email_module.PortalEmail(to="a@example.com", subject="Hi", html="<p>Hi</p>", text="Hi")
    )
    assert not result.ok


@pytest.mark.asyncio
async def test_email_failure_is_returned_not_raised(monkeypatch) -> None:
    monkeypatch.setattr(settings, "resend_api_key", "re_test")
    monkeypatch.setattr(settings, "portal_from_email", "portal@example.com")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"message": "boom"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        result = await email_module.send_portal_email(
            email_module.PortalEmail(to="a@example.com", subject="Hi", html="<p>Hi</p>", text="Hi"),
            client=client,
        )
    assert not result.ok
    assert result.error
