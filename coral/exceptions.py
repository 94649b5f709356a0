"""
Coral — domain-specific exceptions.

HTTP-facing exceptions use preset status codes and detail messages so that
callers never need to specify these at the call site. `coral.results`
turns them into `Err` outcomes, and the FastAPI error envelope middleware
wraps them for HTTP clients.
"""
from fastapi import HTTPException, status


# ── Blob store ───────────────────────────────────────────────────────────────

class BlobNotFound(Exception):
    """Raised by a blob store when a key does not exist in a bucket."""

    def __init__(self, key: str, bucket: str) -> None:
        super().__init__(f"s3://{bucket}/{key} does not exist")
        self.key = key
        self.bucket = bucket


class StorageFault(HTTPException):
    def __init__(self, operation: str, key: str, bucket: str) -> None:
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Storage {operation} failed for s3://{bucket}/{key}.",
        )
        self.operation = operation


# ── Requests ─────────────────────────────────────────────────────────────────

class MissingParameter(HTTPException):
    def __init__(self, name: str) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"missing required parameter: {name}",
        )


class UnknownFileType(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="unable to determine file type",
        )


class ImageTooLarge(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="image exceeds the maximum pixel count",
        )


class InvalidMetadataKey(HTTPException):
    def __init__(self, key: str) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"key {key} is not a metadata descriptor",
        )


class StagedAssetNotFound(HTTPException):
    def __init__(self, key: str) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"file {key} does not exist",
        )


# ── Processing ───────────────────────────────────────────────────────────────

class ResizeFailed(HTTPException):
    def __init__(self, key: str) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"no variants could be produced for {key}",
        )


class PromotionFault(HTTPException):
    """Copy succeeded but the staged blob could not be removed.

    The asset is then present in both the staging and the CDN bucket.
    """

    def __init__(self, key: str) -> None:
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"file {key} was copied to the CDN bucket but not removed from staging",
        )


# ── Task queue ───────────────────────────────────────────────────────────────

class EnqueueFailed(HTTPException):
    def __init__(self, key: str) -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"could not queue {key} for publishing. Please try again.",
        )
