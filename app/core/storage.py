"""Signed URLs for private objects in blob storage (legal documents, resources, signatures, report cards)."""

import logging
from typing import Optional
from urllib.parse import quote

import httpx
from fastapi import status

from app.core.config import settings
from app.core.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)

ASSET_CLASSES = ("legal_documents", "resources", "signatures", "report_cards")


def bucket_for(asset_class: str) -> str:
    """Bucket name for an asset class; each is overridable through settings."""
    if asset_class not in ASSET_CLASSES:
        raise ValueError(f"Unknown asset class: {asset_class}")
    return getattr(settings, f"{asset_class}_bucket")


async def create_signed_url(
    bucket: str,
    path: str,
    ttl_seconds: Optional[int] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """Ask the storage API for a time-limited read URL. Default TTL is SIGNED_URL_TTL_SECONDS (15 minutes)."""
    if not settings.storage_url or not settings.storage_service_key:
        raise UpstreamFailure("Storage provider not configured", status.HTTP_500_INTERNAL_SERVER_ERROR)

    base = settings.storage_url.rstrip("/")
    endpoint = f"{base}/storage/v1/object/sign/{quote(bucket)}/{quote(path)}"
    body = {"expiresIn": ttl_seconds or settings.signed_url_ttl_seconds}
    headers = {
        "Authorization": f"Bearer {settings.storage_service_key}",
        "apikey": settings.storage_service_key,
    }
    try:
        if client is not None:
            response = await client.post(endpoint, json=body, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=10.0) as own_client:
                response = await own_client.post(endpoint, json=body, headers=headers)
    except httpx.HTTPError as exc:
        logger.error("Signed URL request failed for %s/%s: %s", bucket, path, exc)
        raise UpstreamFailure(str(exc) or "Storage request failed")

    if response.status_code >= 400:
        message = _error_message(response)
        logger.error("Signed URL rejected for %s/%s: %s", bucket, path, message)
        code = status.HTTP_400_BAD_REQUEST if response.status_code < 500 else status.HTTP_502_BAD_GATEWAY
        raise UpstreamFailure(message, code)

    data = response.json()
    signed = data.get("signedURL") or data.get("signedUrl")
    if not signed:
        raise UpstreamFailure("Storage provider returned no signed URL")
    if signed.startswith("http"):
        return signed
    return f"{base}/storage/v1{signed}"


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"Storage error {response.status_code}"
    return data.get("message") or data.get("error") or f"Storage error {response.status_code}"
