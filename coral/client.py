"""
HTTP client for a deployed coral API.
"""
from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from coral.exceptions import UnknownFileType
from coral.gallery import imaging

DEFAULT_HOST = "http://localhost:3000"
JSON = "application/json"


class ClientError(Exception):
    """Raised when the API answers with an unexpected status."""


def _assert_bytes(value: Any, name: str = "value") -> None:
    if not value or not isinstance(value, (bytes, bytearray)):
        raise TypeError(f"{name} must be a non-empty bytes buffer")


def _assert_non_empty_string(value: Any, name: str = "value") -> None:
    if not value or not isinstance(value, str) or not value.strip():
        raise TypeError(f"{name} must be a non-empty string")


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("error", {}).get("message", "unknown error")
    except ValueError:
        return "unknown error"


async def upload(
    image: bytes,
    gallery: str,
    *,
    host: str = DEFAULT_HOST,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """Upload an image buffer to a gallery. Returns the staged file's metadata."""
    _assert_bytes(image, "image")
    _assert_non_empty_string(gallery, "gallery")

    try:
        content_type = imaging.sniff(bytes(image)).mime
    except UnknownFileType as exc:
        raise ClientError("#upload: unknown file type") from exc

    async with httpx.AsyncClient(base_url=host, transport=transport) as client:
        response = await client.post(
            f"/galleries/{quote(gallery, safe='')}/images",
            content=bytes(image),
            headers={"accept": JSON, "content-type": content_type},
        )

    if response.status_code != 201:
        raise ClientError(f"#upload-{response.status_code}: {_error_message(response)}")
    return response.json()


async def publish(
    image: str,
    gallery: str,
    *,
    host: str = DEFAULT_HOST,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """Publish a staged image into the gallery."""
    _assert_non_empty_string(image, "image")
    _assert_non_empty_string(gallery, "gallery")

    async with httpx.AsyncClient(base_url=host, transport=transport) as client:
        response = await client.put(
            f"/galleries/{quote(gallery, safe='')}/images/{quote(image, safe='')}/publish",
            headers={"accept": JSON, "content-type": JSON},
        )

    if response.status_code != 202:
        raise ClientError(f"#publish-{response.status_code}: {_error_message(response)}")
    return response.json()
