"""
ARQ task queue — hands publish jobs to Redis.

`QueuePromoter` pushes one promotion job per published asset; the
coral worker (coral.worker) pops them and moves the staged blob into the
CDN bucket. The pool is process-wide: the FastAPI lifespan and the publish
Lambda handler open it and close it.
"""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

from arq import ArqRedis, create_pool
from arq.connections import RedisSettings

logger = logging.getLogger(__name__)

_pool: ArqRedis | None = None


def redis_settings_from_url(url: str) -> RedisSettings:
    """redis://[:password@]host[:port][/db] as ARQ RedisSettings."""
    parsed = urlparse(url)
    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(parsed.path.lstrip("/") or 0),
        password=parsed.password,
    )


async def init_pool(redis_url: str, queue_name: str) -> None:
    """Connect the publish queue `queue_name`."""
    global _pool
    _pool = await create_pool(redis_settings_from_url(redis_url), default_queue_name=queue_name)
    logger.info("Publish queue %s connected", queue_name)


async def close_pool() -> None:
    global _pool
    if _pool:
        await _pool.aclose()
        _pool = None
        logger.info("Publish queue disconnected")


async def enqueue(job: str, *args: Any, **kwargs: Any) -> str | None:
    """
    Push a publish job. Returns its id, or None when the queue is not
    connected or Redis refused the job; the caller reports that as a
    failed publication.
    """
    if _pool is None:
        logger.error("Publish queue not connected; dropping %s%s", job, args)
        return None
    try:
        queued = await _pool.enqueue_job(job, *args, **kwargs)
    except Exception:
        logger.exception("Could not push %s%s onto the publish queue", job, args)
        return None
    if queued is None:
        # arq returns None when a job with the same id is already queued
        logger.warning("%s%s is already queued", job, args)
        return None
    logger.info("Queued %s%s as job %s", job, args, queued.job_id)
    return queued.job_id
