"""
Resize stage — derive responsive variants of newly created images.

Flow for each object reference in the trigger batch:
  1. Read the original (a missing object is skipped: stale or duplicate
     notification).
  2. Read its intrinsic size and orientation.
  3. Resize to every breakpoint concurrently; a failed variant is logged and
     dropped.
  4. Write the metadata descriptor under `_meta/` built from the surviving
     variants.

References are processed concurrently and fail independently.
"""
from __future__ import annotations

import asyncio
import json
import logging

from coral.config import Settings
from coral.events import ObjectRef
from coral.exceptions import BlobNotFound, ResizeFailed
from coral.gallery import imaging
from coral.gallery.constants import JSON_CONTENT_TYPE
from coral.gallery.keys import FileDescriptor, is_metadata_key, is_variant_key
from coral.gallery.schemas import GalleryImage, ProcessedImage, ResizedVariant
from coral.logging_config import request_logger
from coral.results import InvocationContext, Ok, Outcome, run_stage
from coral.s3 import BlobStore

logger = logging.getLogger(__name__)


def should_skip(key: str, settings: Settings) -> bool:
    """Keys written by the pipeline itself never get processed again."""
    return is_metadata_key(key) or is_variant_key(key, settings.breakpoints)


async def _render_variant(
    body: bytes,
    descriptor: FileDescriptor,
    breakpoint: int,
    size: tuple[int, int],
    bucket: str,
    store: BlobStore,
    log: logging.LoggerAdapter,
) -> ResizedVariant | None:
    derived_key = descriptor.variant_key(breakpoint)
    try:
        # Pillow is CPU-bound: offload to the default thread pool
        loop = asyncio.get_running_loop()
        data, content_type = await loop.run_in_executor(None, imaging.resize, body, size)
        await store.put(derived_key, data, bucket, content_type)
    except Exception:
        log.exception("failed to write %dpx variant %s", breakpoint, derived_key)
        return None
    log.debug("wrote %dpx variant %s (%dx%d)", breakpoint, derived_key, *size)
    return ResizedVariant(breakpoint_width=breakpoint, derived_key=derived_key)


def build_metadata(
    key: str,
    width: int,
    height: int,
    variants: list[ResizedVariant],
    settings: Settings,
) -> GalleryImage:
    """Gallery descriptor for one image; `variants` must be non-empty."""
    ordered = sorted(variants, key=lambda v: v.breakpoint_width)
    return GalleryImage(
        src=settings.public_ref(ordered[0].derived_key),
        src_set=[f"{settings.public_ref(v.derived_key)} {v.breakpoint_width}w" for v in ordered],
        width=width,
        height=height,
        link_to=settings.public_ref(key),
    )


async def process_image(
    ref: ObjectRef,
    *,
    store: BlobStore,
    settings: Settings,
    log: logging.LoggerAdapter,
) -> ProcessedImage | None:
    """Resize one image and write its metadata. None when there is nothing to do."""
    if should_skip(ref.key, settings):
        log.debug("skipping derived object %s", ref.key)
        return None

    try:
        body = await store.get(ref.key, ref.bucket)
    except BlobNotFound:
        log.info("s3://%s/%s no longer exists; nothing to do", ref.bucket, ref.key)
        return None

    descriptor = FileDescriptor.from_key(ref.key)
    width, height = imaging.dimensions(body)
    log.debug(
        "resizing %s (%dx%d, %s)",
        ref.key, width, height, "portrait" if imaging.is_portrait(width, height) else "landscape",
    )

    rendered = await asyncio.gather(*(
        _render_variant(
            body,
            descriptor,
            bp,
            imaging.target_size(width, height, bp),
            ref.bucket,
            store,
            log,
        )
        for bp in settings.breakpoints
    ))
    variants = [v for v in rendered if v is not None]
    if not variants:
        raise ResizeFailed(ref.key)
    if len(variants) < len(settings.breakpoints):
        log.warning(
            "%s: %d of %d variants written",
            ref.key, len(variants), len(settings.breakpoints),
        )

    payload = build_metadata(ref.key, width, height, variants, settings)
    meta_key = descriptor.metadata_key()
    body_json = json.dumps(payload.model_dump(by_alias=True)).encode("utf-8")
    await store.put(meta_key, body_json, ref.bucket, JSON_CONTENT_TYPE)
    log.info("wrote metadata %s for %s", meta_key, ref.key)

    return ProcessedImage(
        filename=descriptor.filename,
        directory=descriptor.directory,
        bucket=ref.bucket,
        payload=payload,
    )


async def resize_images(
    refs: list[ObjectRef],
    *,
    store: BlobStore,
    settings: Settings,
    context: InvocationContext,
) -> Outcome:
    """Process a batch of object references. 200 with the processed images.

    A failed reference is logged and left out of the result. When every
    attempted reference fails, the first failure is reported so that the
    trigger source can retry the batch.
    """
    log = request_logger(logger, context.request_id)

    async def _run() -> Outcome:
        log.debug("processing %d images", len(refs))
        results = await asyncio.gather(
            *(process_image(ref, store=store, settings=settings, log=log) for ref in refs),
            return_exceptions=True,
        )

        processed: list[ProcessedImage] = []
        failures: list[Exception] = []
        for ref, result in zip(refs, results):
            if isinstance(result, Exception):
                log.error("problem processing s3://%s/%s: %s", ref.bucket, ref.key, result)
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            elif result is not None:
                processed.append(result)

        if failures and not processed:
            raise failures[0]

        log.info("processed %d images (%d failed)", len(processed), len(failures))
        return Ok(200, [p.model_dump(by_alias=True) for p in processed])

    return await run_stage("resize", _run, log)
