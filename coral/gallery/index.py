"""
Index stage — aggregate the metadata descriptors of one directory.

The index is rebuilt from scratch on every invocation, so running it twice
over unchanged descriptors writes byte-identical content.
"""
from __future__ import annotations

import asyncio
import json
import logging
import posixpath
from typing import Any

from coral.config import Settings
from coral.events import ObjectRef
from coral.exceptions import InvalidMetadataKey, MissingParameter
from coral.gallery.constants import JSON_CONTENT_TYPE
from coral.gallery.keys import index_key, is_metadata_key
from coral.logging_config import request_logger
from coral.results import InvocationContext, Ok, Outcome, run_stage
from coral.s3 import BlobStore

logger = logging.getLogger(__name__)


def descriptor_keys(keys: list[str], directory: str) -> list[str]:
    """JSON keys sitting directly in `directory`, in a stable order."""
    return sorted(
        key for key in keys
        if key.lower().endswith(".json") and posixpath.dirname(key) == directory
    )


async def read_descriptors(
    keys: list[str],
    bucket: str,
    store: BlobStore,
    log: logging.Logger | logging.LoggerAdapter = logger,
) -> list[dict[str, Any]]:
    """Read and parse descriptors; unreadable or malformed ones are dropped."""

    async def _read(key: str) -> dict[str, Any] | None:
        try:
            parsed = json.loads((await store.get(key, bucket)).decode("utf-8"))
        except Exception as exc:
            log.error("unable to read file body %s: %s", key, exc)
            return None
        if not isinstance(parsed, dict):
            log.error("ignoring %s: expected a JSON object", key)
            return None
        return parsed

    files = await asyncio.gather(*(_read(key) for key in keys))
    return [f for f in files if f is not None]


async def build_index(
    ref: ObjectRef | None,
    *,
    store: BlobStore,
    settings: Settings,
    context: InvocationContext,
) -> Outcome:
    """Write `<directory>/index.json` for the descriptor directory of `ref`. 201."""
    log = request_logger(logger, context.request_id)

    async def _run() -> Outcome:
        if ref is None:
            raise MissingParameter("key")
        if not is_metadata_key(ref.key):
            raise InvalidMetadataKey(ref.key)

        directory = posixpath.dirname(ref.key)
        log.debug("building index for s3://%s/%s", ref.bucket, directory)

        listed = await store.list(f"{directory}/", ref.bucket, settings.index_page_size)
        contents = await read_descriptors(descriptor_keys(listed, directory), ref.bucket, store, log)

        target = index_key(directory)
        log.info("built index of %d images from %s; writing %s", len(contents), directory, target)
        await store.put(target, json.dumps(contents).encode("utf-8"), ref.bucket, JSON_CONTENT_TYPE)

        return Ok(201, contents)

    return await run_stage("build_index", _run, log)
