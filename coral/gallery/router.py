"""
Gallery routes — HTTP front end over the upload and publish stages.

Used for running the pipeline locally; production invokes the stages
through `coral.handlers`.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from coral.config import Settings
from coral.gallery.promoters import Promoter, build_promoter
from coral.gallery.publish import publish_image
from coral.gallery.upload import upload_image
from coral.middleware import err_response
from coral.results import Err, InvocationContext, Outcome
from coral.s3 import BlobStore

router = APIRouter(prefix="/galleries", tags=["galleries"])


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> BlobStore:
    return request.app.state.store


def get_promoter(
    store: BlobStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> Promoter:
    return build_promoter(settings, store)


def _context(request: Request) -> InvocationContext:
    request_id = getattr(request.state, "request_id", None)
    return InvocationContext(request_id=request_id) if request_id else InvocationContext()


def _respond(request: Request, outcome: Outcome) -> JSONResponse:
    if isinstance(outcome, Err):
        return err_response(request, outcome)
    return JSONResponse(status_code=outcome.status, content=outcome.result)


@router.post(
    "/{repo}/images",
    status_code=status.HTTP_201_CREATED,
    summary="Upload an image to a gallery's staging area",
)
async def upload(
    repo: str,
    request: Request,
    store: BlobStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    body = await request.body()
    outcome = await upload_image(
        body, repo, store=store, settings=settings, context=_context(request),
    )
    return _respond(request, outcome)


@router.put(
    "/{repo}/images/{name}/publish",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Publish a staged image to the CDN",
)
async def publish(
    repo: str,
    name: str,
    request: Request,
    store: BlobStore = Depends(get_store),
    promoter: Promoter = Depends(get_promoter),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    outcome = await publish_image(
        name, repo, store=store, promoter=promoter, settings=settings, context=_context(request),
    )
    return _respond(request, outcome)
