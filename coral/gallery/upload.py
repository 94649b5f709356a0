"""
Upload stage — stage raw image bytes under a fresh unique key.
"""
from __future__ import annotations

import logging
import uuid

from coral.config import Settings
from coral.exceptions import MissingParameter
from coral.gallery import imaging
from coral.gallery.keys import staged_key
from coral.gallery.schemas import UploadedFile, UploadResult
from coral.logging_config import request_logger
from coral.results import InvocationContext, Ok, Outcome, run_stage
from coral.s3 import BlobStore

logger = logging.getLogger(__name__)


def describe_upload(body: bytes) -> UploadedFile:
    """Sniff the buffer and assign it a new identity.

    The content type comes from the bytes themselves, never from a filename
    or header supplied by the caller.
    """
    sniffed = imaging.sniff(body)
    file_id = str(uuid.uuid4())
    return UploadedFile(
        id=file_id,
        size=len(body),
        type=sniffed.mime,
        name=f"{file_id}.{sniffed.ext}",
    )


async def upload_image(
    body: bytes | None,
    repo: str | None,
    *,
    store: BlobStore,
    settings: Settings,
    context: InvocationContext,
) -> Outcome:
    """Write an image to the staging bucket. 201 with the staged file's metadata."""
    log = request_logger(logger, context.request_id)

    async def _run() -> Outcome:
        if not body:
            raise MissingParameter("file")
        if not repo or not repo.strip():
            raise MissingParameter("repo")

        log.debug("received request to upload %d bytes to %s", len(body), repo)
        uploaded = describe_upload(body)
        path = staged_key(settings.namespace, repo.strip(), uploaded.name)

        await store.put(path, body, settings.staging_bucket, uploaded.type)
        log.info("uploaded %s (%s, %d bytes) to %s", uploaded.name, uploaded.type, uploaded.size, path)

        result = UploadResult(path=path, **uploaded.model_dump())
        return Ok(201, result.model_dump())

    return await run_stage("upload", _run, log)
