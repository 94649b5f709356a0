"""
Publish stage — verify a staged asset exists and promote it.
"""
from __future__ import annotations

import logging

from coral.config import Settings
from coral.exceptions import MissingParameter, StagedAssetNotFound
from coral.gallery.keys import staged_key
from coral.gallery.promoters import Promoter
from coral.logging_config import request_logger
from coral.results import InvocationContext, Ok, Outcome, run_stage
from coral.s3 import BlobStore

logger = logging.getLogger(__name__)


async def publish_image(
    name: str | None,
    repo: str | None,
    *,
    store: BlobStore,
    promoter: Promoter,
    settings: Settings,
    context: InvocationContext,
) -> Outcome:
    """Promote `<namespace>/<repo>/<name>` out of staging. 202 on success.

    A key missing from staging is a 404 and nothing is mutated.
    """
    log = request_logger(logger, context.request_id)

    async def _run() -> Outcome:
        if not name:
            raise MissingParameter("name")
        if not repo:
            raise MissingParameter("repo")

        key = staged_key(settings.namespace, repo, name)
        if not await store.exists(key, settings.staging_bucket):
            raise StagedAssetNotFound(key)
        log.debug('verified that file "%s" exists', key)

        result = await promoter.promote(key)
        log.info('successfully published "%s"', key)
        return Ok(202, result)

    return await run_stage("publish", _run, log)
