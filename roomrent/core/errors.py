"""Error envelope shared by every router.

Handlers raise ``ApiError`` with a short ``error`` label and a human readable
``message``; the exception handlers registered in ``roomrent.main`` turn it
into ``{"error": ..., "message": ..., "details": ...}``.
"""

import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    def __init__(
        self,
        status_code: int,
        error: str,
        message: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=error)
        self.error = error
        self.message = message
        self.details = details


def not_found(entity: str) -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, f"{entity} not found", f"{entity} does not exist")


def conflict(error: str, message: str | None = None, details: Any = None) -> ApiError:
    return ApiError(status.HTTP_409_CONFLICT, error, message, details)


def bad_request(error: str, message: str | None = None, details: Any = None) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, error, message, details)


# ─── Exception handlers ──────────────────────────────────────────────────────

async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    body: dict[str, Any] = {"error": exc.error}
    if exc.message:
        body["message"] = exc.message
    if exc.details is not None:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if isinstance(exc, ApiError):
        return await api_error_handler(request, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


def _field_path(loc: tuple) -> str:
    # drop the "body"/"query"/"path" prefix FastAPI adds
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": _field_path(tuple(err.get("loc", ()))), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )
