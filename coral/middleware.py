import logging
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from coral.results import Err, ErrorKind, error_from_exception

logger = logging.getLogger(__name__)


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def error_response(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {"code": code, "message": message},
            "request_id": getattr(request.state, "request_id", None),
        },
    )


def err_response(request: Request, outcome: Err) -> JSONResponse:
    return error_response(request, outcome.status, outcome.kind.value, outcome.message)


async def error_envelope_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    try:
        return await call_next(request)
    except StarletteHTTPException as exc:
        return err_response(request, error_from_exception(exc))
    except Exception:
        logger.exception("Unhandled exception")
        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorKind.INTERNAL_ERROR.value,
            "An unexpected error occurred",
        )
