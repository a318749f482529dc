"""Request correlation, request logging, and error-to-response translation.

Every response leaves with an ``X-Request-Id`` header. Error bodies share one
shape::

    {"error": "<message>", "details": [...], "request_id": "<id>"}

``details`` is only present for validation failures. Domain exceptions raised by
the services (``TaskValidationError``, ``TaskNotFoundError``, ``TaskDomainError``)
are mapped here so routers never build error responses themselves.
"""

from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import status
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers, MutableHeaders
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskboard.core.config import settings
from taskboard.core.exceptions import (
    TaskDomainError,
    TaskNotFoundError,
    TaskValidationError,
    issues_from_errors,
)
from taskboard.core.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = "X-Request-Id"
HEALTH_PATHS = frozenset({"/health", "/healthz", "/readyz"})
VALIDATION_ERROR_MESSAGE = "Validation error"
INTERNAL_ERROR_MESSAGE = "Internal Server Error"
ROUTE_NOT_FOUND_MESSAGE = "Route not found"
_REQUEST_LOCATIONS = ("body", "query", "path", "header", "cookie")

logger = get_logger(__name__)


def _json_safe(value: object) -> object:
    """Coerce arbitrary error payload values into JSON-serializable data."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(item) for item in value]
    return str(value)


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return None


def _error_payload(
    *,
    error: object,
    request_id: str | None,
    details: list[dict[str, Any]] | None = None,
    **extra: object,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": _json_safe(error)}
    if details is not None:
        payload["details"] = details
    for key, value in extra.items():
        payload[key] = _json_safe(value)
    if request_id is not None:
        payload["request_id"] = request_id
    return payload


def _json_error(
    request: Request,
    *,
    status_code: int,
    error: object,
    details: list[dict[str, Any]] | None = None,
    **extra: object,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(
            error=error,
            request_id=_get_request_id(request),
            details=details,
            **extra,
        ),
    )


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        msg = "Expected RequestValidationError"
        raise TypeError(msg)
    issues = issues_from_errors(exc.errors(), strip_prefix=_REQUEST_LOCATIONS)
    return _json_error(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        error=VALIDATION_ERROR_MESSAGE,
        details=[issue.as_dict() for issue in issues],
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, ResponseValidationError):
        msg = "Expected ResponseValidationError"
        raise TypeError(msg)
    logger.error(
        "http.response.invalid",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "errors": _json_safe(exc.errors()),
        },
    )
    return _json_error(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error=INTERNAL_ERROR_MESSAGE,
    )


async def _http_exception_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        msg = "Expected StarletteHTTPException"
        raise TypeError(msg)
    headers = dict(exc.headers) if exc.headers else None
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        response = _json_error(
            request,
            status_code=exc.status_code,
            error=ROUTE_NOT_FOUND_MESSAGE,
            path=request.url.path,
            method=request.method,
        )
    else:
        response = _json_error(request, status_code=exc.status_code, error=exc.detail)
    if headers:
        response.headers.update(headers)
    return response


async def _task_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, TaskValidationError):
        msg = "Expected TaskValidationError"
        raise TypeError(msg)
    return _json_error(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        error=VALIDATION_ERROR_MESSAGE,
        details=[issue.as_dict() for issue in exc.issues],
    )


async def _task_not_found_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, TaskNotFoundError):
        msg = "Expected TaskNotFoundError"
        raise TypeError(msg)
    return _json_error(request, status_code=status.HTTP_404_NOT_FOUND, error=str(exc))


async def _task_domain_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, TaskDomainError):
        msg = "Expected TaskDomainError"
        raise TypeError(msg)
    return _json_error(request, status_code=status.HTTP_400_BAD_REQUEST, error=str(exc))


class RequestContextMiddleware:
    """Assign request ids, log request timing, and turn unhandled errors into 500s."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = (Headers(scope=scope).get(REQUEST_ID_HEADER) or "").strip()
        request_id = incoming or uuid4().hex
        scope.setdefault("state", {})["request_id"] = request_id

        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        response_started = False

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code, response_started
            if message["type"] == "http.response.start":
                response_started = True
                status_code = message["status"]
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
            await send(message)

        started = perf_counter()
        try:
            await self.app(scope, receive, send_with_request_id)
        except Exception:
            logger.exception(
                "http.request.unhandled",
                extra={
                    "request_id": request_id,
                    "method": scope.get("method"),
                    "path": scope.get("path"),
                },
            )
            if response_started:
                raise
            response = JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=_error_payload(error=INTERNAL_ERROR_MESSAGE, request_id=request_id),
            )
            await response(scope, receive, send_with_request_id)
        finally:
            duration_ms = (perf_counter() - started) * 1000
            _log_request(
                method=str(scope.get("method", "")),
                path=str(scope.get("path", "")),
                status_code=status_code,
                duration_ms=duration_ms,
                request_id=request_id,
            )


def _log_request(
    *,
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    request_id: str,
) -> None:
    if path in HEALTH_PATHS and not settings.request_log_include_health:
        return
    extra = {
        "method": method,
        "path": path,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
        "request_id": request_id,
    }
    slow_threshold_ms = settings.request_log_slow_ms
    if slow_threshold_ms and duration_ms >= slow_threshold_ms:
        logger.warning(
            "http.request.slow",
            extra={**extra, "slow_threshold_ms": slow_threshold_ms},
        )
        return
    logger.info("http.request", extra=extra)


def install_error_handling(app: FastAPI) -> None:
    """Register exception handlers and the request-context middleware on *app*."""
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(TaskValidationError, _task_validation_exception_handler)
    app.add_exception_handler(TaskNotFoundError, _task_not_found_exception_handler)
    app.add_exception_handler(TaskDomainError, _task_domain_exception_handler)
    app.add_middleware(RequestContextMiddleware)
