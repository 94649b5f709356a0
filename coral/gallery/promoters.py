"""
Promoters — make a staged asset publicly servable.

Contract shared by every implementation:
  * `promote(key)` is called only after the key was found in staging.
  * Re-running a promotion for the same key converges on the same end
    state (asset in the CDN bucket, gone from staging): copies overwrite,
    and deleting an already-deleted staging object succeeds.
  * Promotion is not atomic. If the copy succeeds and the delete fails, the
    asset exists in BOTH buckets until a later run removes the staged copy;
    this is reported as `PromotionFault`.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from coral.config import Settings
from coral.exceptions import EnqueueFailed, PromotionFault, StorageFault
from coral.gallery.constants import PromotionStrategy
from coral.gallery.keys import asset_id
from coral.gallery.schemas import PublishedAsset, QueuedPublication
from coral.s3 import BlobStore

logger = logging.getLogger(__name__)

PROMOTE_JOB = "promote_asset"

Enqueue = Callable[..., Awaitable[str | None]]


class Promoter(Protocol):
    async def promote(self, key: str) -> dict[str, Any]: ...


class DirectMovePromoter:
    """Copy the staged blob into the CDN bucket, then delete the staged copy."""

    def __init__(self, store: BlobStore, settings: Settings) -> None:
        self._store = store
        self._settings = settings

    async def promote(self, key: str) -> dict[str, Any]:
        staging = self._settings.staging_bucket
        await self._store.copy(key, staging, self._settings.cdn_bucket)
        try:
            await self._store.delete(key, staging)
        except StorageFault as exc:
            logger.error("%s copied to %s but still present in %s", key, self._settings.cdn_bucket, staging)
            raise PromotionFault(key) from exc

        published = PublishedAsset(id=asset_id(key), href=self._settings.public_ref(key))
        return published.model_dump()


class QueuePromoter:
    """Hand the move off to the worker through the task queue."""

    def __init__(self, enqueue: Enqueue, settings: Settings) -> None:
        self._enqueue = enqueue
        self._settings = settings

    async def promote(self, key: str) -> dict[str, Any]:
        job_id = await self._enqueue(PROMOTE_JOB, key, self._settings.staging_bucket)
        if not job_id:
            raise EnqueueFailed(key)
        return QueuedPublication(message_id=job_id).model_dump(by_alias=True)


def build_promoter(settings: Settings, store: BlobStore) -> Promoter:
    """The promoter for this process; one strategy is used for every call."""
    if settings.promotion_strategy is PromotionStrategy.QUEUE:
        from coral import task_queue

        return QueuePromoter(task_queue.enqueue, settings)
    return DirectMovePromoter(store, settings)
