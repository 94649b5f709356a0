"""
Lambda handler — Build index

Triggered by S3 ObjectCreated events on the `_meta/` prefix. Rebuilds the
`index.json` of the directory holding the new descriptor.
"""
from __future__ import annotations

import asyncio

from coral.config import get_settings
from coral.events import parse_object_refs
from coral.gallery.index import build_index
from coral.logging_config import setup_logging
from coral.results import InvocationContext
from coral.s3 import S3BlobStore


def handler(event: dict, context: object) -> dict:
    """Lambda entry point — indexes the directory of the first record."""
    settings = get_settings()
    setup_logging(settings.effective_log_level)

    refs = parse_object_refs(event)
    outcome = asyncio.run(build_index(
        refs[0] if refs else None,
        store=S3BlobStore(settings),
        settings=settings,
        context=InvocationContext.from_lambda(context),
    ))
    return outcome.to_dict()
