"""
Stage outcomes.

Every pipeline stage returns either ``Ok(status, result)`` or
``Err(kind, status, message)``; exceptions never escape a stage.
"""
from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Union

from starlette.exceptions import HTTPException

from coral.exceptions import BlobNotFound, StorageFault

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    CLIENT_ERROR = "client_error"
    STORAGE_FAULT = "storage_fault"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class InvocationContext:
    """Per-invocation context handed to every stage."""
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_lambda(cls, context: object) -> InvocationContext:
        request_id = getattr(context, "aws_request_id", None)
        return cls(request_id=request_id) if request_id else cls()


@dataclass(frozen=True)
class Ok:
    status: int
    result: Any

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "result": self.result}


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    status: int
    message: str

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "error": {"kind": self.kind.value, "message": self.message},
        }


Outcome = Union[Ok, Err]


def error_from_exception(exc: BaseException) -> Err:
    """Classify an exception into one of the error kinds."""
    if isinstance(exc, StorageFault):
        return Err(ErrorKind.STORAGE_FAULT, exc.status_code, str(exc.detail))
    if isinstance(exc, HTTPException):
        kind = ErrorKind.CLIENT_ERROR if exc.status_code < 500 else ErrorKind.INTERNAL_ERROR
        return Err(kind, exc.status_code, str(exc.detail))
    if isinstance(exc, BlobNotFound):
        return Err(ErrorKind.CLIENT_ERROR, 404, str(exc))
    return Err(ErrorKind.INTERNAL_ERROR, 500, "An unexpected error occurred")


async def run_stage(
    name: str,
    body: Callable[[], Awaitable[Outcome]],
    log: logging.Logger | logging.LoggerAdapter = logger,
) -> Outcome:
    """Run a stage body, converting any raised exception into an ``Err``."""
    try:
        return await body()
    except HTTPException as exc:
        outcome = error_from_exception(exc)
        if outcome.kind is ErrorKind.CLIENT_ERROR:
            log.warning("%s rejected (%s): %s", name, outcome.status, outcome.message)
        else:
            log.error("%s failed (%s): %s", name, outcome.kind.value, outcome.message)
        return outcome
    except Exception as exc:
        log.exception("%s failed unexpectedly", name)
        return error_from_exception(exc)
