"""
Lambda handler — Upload

Invoked with ``{"file": <base64 image>, "repo": <gallery>}``.
Stages the decoded bytes in STAGING_BUCKET.
"""
from __future__ import annotations

import asyncio
import base64
import binascii

from coral.config import get_settings
from coral.gallery.upload import upload_image
from coral.logging_config import setup_logging
from coral.results import Err, ErrorKind, InvocationContext
from coral.s3 import S3BlobStore


def _decode(file: str | None) -> bytes | None:
    if not file:
        return None
    return base64.b64decode(file, validate=True)


def handler(event: dict, context: object) -> dict:
    """Lambda entry point — stages an uploaded image."""
    settings = get_settings()
    setup_logging(settings.effective_log_level)

    try:
        body = _decode(event.get("file"))
    except (binascii.Error, ValueError):
        return Err(ErrorKind.CLIENT_ERROR, 400, "file must be base64 encoded").to_dict()

    outcome = asyncio.run(upload_image(
        body,
        event.get("repo"),
        store=S3BlobStore(settings),
        settings=settings,
        context=InvocationContext.from_lambda(context),
    ))
    return outcome.to_dict()
