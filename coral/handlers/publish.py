"""
Lambda handler — Publish

Invoked with ``{"name": <file name>, "repo": <gallery>}``. Promotes the
staged file with the strategy chosen by PROMOTION_STRATEGY.
"""
from __future__ import annotations

import asyncio
import logging

from coral import task_queue
from coral.config import Settings, get_settings
from coral.gallery.constants import PromotionStrategy
from coral.gallery.promoters import build_promoter
from coral.gallery.publish import publish_image
from coral.logging_config import setup_logging
from coral.results import Err, ErrorKind, InvocationContext, Outcome
from coral.s3 import S3BlobStore

logger = logging.getLogger(__name__)


async def _publish(event: dict, settings: Settings, context: InvocationContext) -> Outcome:
    store = S3BlobStore(settings)
    queued = settings.promotion_strategy is PromotionStrategy.QUEUE
    if queued:
        try:
            await task_queue.init_pool(settings.redis_url, settings.publish_queue)
        except Exception:
            logger.exception("could not connect to the publish queue")
            return Err(ErrorKind.INTERNAL_ERROR, 503, "publish queue unavailable")
    try:
        return await publish_image(
            event.get("name"),
            event.get("repo"),
            store=store,
            promoter=build_promoter(settings, store),
            settings=settings,
            context=context,
        )
    finally:
        if queued:
            await task_queue.close_pool()


def handler(event: dict, context: object) -> dict:
    """Lambda entry point — publishes a staged image."""
    settings = get_settings()
    setup_logging(settings.effective_log_level)

    outcome = asyncio.run(_publish(event, settings, InvocationContext.from_lambda(context)))
    return outcome.to_dict()
