"""
Local development server.

Not intended for production, which invokes the stages through the Lambda
entry points in `coral.handlers`.

Run:  uvicorn coral.main:app --reload   (or `python -m coral.main`)
"""
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from coral.config import Settings, get_settings
from coral.gallery.constants import PromotionStrategy
from coral.gallery.router import router as gallery_router
from coral.logging_config import setup_logging
from coral.middleware import error_envelope_middleware, request_id_middleware
from coral.s3 import BlobStore, S3BlobStore


_DESCRIPTION = """
## Coral gallery pipeline

* **Upload** — raw image bytes are sniffed, given a unique id and staged.
* **Publish** — a staged image is moved (or queued for moving) to the CDN bucket.

Resizing and indexing run from storage notifications, not HTTP.

### Error shape
```json
{ "error": { "code": "client_error", "message": "..." }, "request_id": "..." }
```
"""


class HealthResponse(BaseModel):
    status: str
    service: str


def create_app(settings: Settings | None = None, store: BlobStore | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.effective_log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from coral import task_queue

        queued = settings.promotion_strategy is PromotionStrategy.QUEUE
        if queued:
            await task_queue.init_pool(settings.redis_url, settings.publish_queue)
        yield
        if queued:
            await task_queue.close_pool()

    app = FastAPI(
        title="Coral",
        version="1.0.0",
        description=_DESCRIPTION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store or S3BlobStore(settings)

    # Middleware (applied in reverse-registration order: last added = outermost)
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    app.include_router(gallery_router)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="coral")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3000")))
