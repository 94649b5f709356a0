"""
Lambda handler — Resize

Triggered by S3 ObjectCreated/ObjectCopied events (direct or via SQS) on
published images. Writes breakpoint variants and `_meta/` descriptors.
"""
from __future__ import annotations

import asyncio

from coral.config import get_settings
from coral.events import parse_object_refs
from coral.gallery.resize import resize_images
from coral.logging_config import setup_logging
from coral.results import InvocationContext
from coral.s3 import S3BlobStore


def handler(event: dict, context: object) -> dict:
    """Lambda entry point — resizes every image in the event batch."""
    settings = get_settings()
    setup_logging(settings.effective_log_level)

    outcome = asyncio.run(resize_images(
        parse_object_refs(event),
        store=S3BlobStore(settings),
        settings=settings,
        context=InvocationContext.from_lambda(context),
    ))
    return outcome.to_dict()
