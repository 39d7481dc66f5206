"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Every failure leaves the
proxy in the same envelope the UI reads:
{"ok": false, "error": {"message", "detail"}, "status": "failure"}.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from workdesk.core.config import get_settings
from workdesk.domain.exceptions import WorkdeskException
from workdesk.shared.telemetry import get_trace_id, set_span_error

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status
_ERROR_CODE_STATUS: dict[str, int] = {
    "NOT_AUTHENTICATED": 401,
    "INVALID_CREDENTIALS": 401,
    "VALIDATION_ERROR": 400,
    "RESOURCE_NOT_FOUND": 404,
    "UPSTREAM_ERROR": 502,
    "ACTIVITY_FETCH_FAILED": 502,
    "UPDATE_FAILED": 502,
    "REQUEST_CANCELLED": 499,
    "SESSION_STORE_UNAVAILABLE": 503,
}


def failure_body(message: str, detail: Any = None, **extra: Any) -> dict[str, Any]:
    """Envelope for a failed request."""
    error: dict[str, Any] = {"message": message, "detail": detail if detail is not None else message}
    error.update(extra)
    return {"ok": False, "error": error, "status": "failure"}


def _workdesk_exception_handler(request: Request, exc: WorkdeskException) -> JSONResponse:
    status = _ERROR_CODE_STATUS.get(exc.error_code, 400)
    payload = exc.to_dict()
    if status >= 500:
        set_span_error(exc)
        logger.warning(
            "%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail
        )
    message = payload.pop("message")
    detail = payload.pop("detail")
    return JSONResponse(status_code=status, content=failure_body(message, detail, **payload))


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=failure_body(
            "Request validation failed", _jsonable_errors(exc), code="VALIDATION_ERROR"
        ),
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=failure_body(str(exc.detail), code="HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content=failure_body("Too many requests", f"Rate limit exceeded: {exc.detail}"),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    detail: Any = str(exc) if get_settings().debug else "Internal server error"
    extra: dict[str, Any] = {"code": "INTERNAL_ERROR"}
    trace_id = get_trace_id()
    if trace_id:
        extra["trace_id"] = trace_id
    return JSONResponse(
        status_code=500,
        content=failure_body("Internal server error", detail, **extra),
    )


def _jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    # ctx may hold exception instances, which are not JSON serializable
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Handlers: WorkdeskException (and subclasses), RequestValidationError,
    StarletteHTTPException, RateLimitExceeded, generic Exception.
    """
    app.add_exception_handler(WorkdeskException, _workdesk_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
