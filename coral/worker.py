"""
ARQ worker — deferred promotion of staged assets.

Runs as a SEPARATE process from the API and the Lambda handlers.
Consumes `promote_asset` jobs queued by the publish stage when
`PROMOTION_STRATEGY=queue`.

Start:  arq coral.worker.WorkerSettings
"""
from __future__ import annotations

import logging
from typing import Any

from coral.config import Settings, get_settings
from coral.exceptions import BlobNotFound
from coral.logging_config import setup_logging
from coral.s3 import BlobStore, S3BlobStore
from coral.task_queue import redis_settings_from_url

logger = logging.getLogger("coral.worker")


async def startup(ctx: dict[str, Any]) -> None:
    """Called once when the worker process starts."""
    settings = get_settings()
    setup_logging(settings.effective_log_level)
    ctx["settings"] = settings
    ctx["store"] = S3BlobStore(settings)
    logger.info("Worker started — publishing into %s", settings.cdn_bucket)


async def shutdown(ctx: dict[str, Any]) -> None:
    logger.info("Worker shutting down")


async def promote_asset(ctx: dict[str, Any], key: str, bucket: str) -> str:
    """
    Move a staged asset from `bucket` into the CDN bucket.

    Safe to re-run: when the staged copy is already gone but the asset is
    in the CDN bucket the job is a no-op.
    """
    settings: Settings = ctx["settings"]
    store: BlobStore = ctx["store"]

    try:
        await store.move(key, bucket, settings.cdn_bucket)
    except BlobNotFound:
        if await store.exists(key, settings.cdn_bucket):
            logger.info("%s already promoted; nothing to do", key)
            return "noop"
        logger.error("%s is missing from both %s and %s", key, bucket, settings.cdn_bucket)
        raise

    logger.info("promoted %s to %s", key, settings.cdn_bucket)
    return "ok"


class WorkerSettings:
    """ARQ reads this class to configure the worker process."""
    functions = [promote_asset]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = redis_settings_from_url(get_settings().redis_url)
    queue_name = get_settings().publish_queue
    max_jobs = 20
    max_tries = 3
    keep_result = 3600
