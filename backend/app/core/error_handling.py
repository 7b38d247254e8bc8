"""Request-id propagation, request logging, and JSON error responses."""

from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import status
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.datastructures import MutableHeaders
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.logging import get_logger
from app.db.errors import StorageUnavailableError

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"
_HEALTH_PATHS = frozenset({"/health", "/healthz", "/readyz"})
_INTERNAL_ERROR_DETAIL = "Internal Server Error"


class RequestContextMiddleware:
    """Assign a request id, echo it in responses, and log request timing."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _request_id_from_headers(scope) or uuid4().hex
        scope.setdefault("state", {})["request_id"] = request_id
        path = str(scope.get("path", ""))
        method = str(scope.get("method", ""))
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        started = perf_counter()

        async def _send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
                headers = MutableHeaders(scope=message)
                if REQUEST_ID_HEADER not in headers:
                    headers.append(REQUEST_ID_HEADER, request_id)
            await send(message)

        try:
            await self.app(scope, receive, _send)
        finally:
            _log_request(
                method=method,
                path=path,
                status_code=status_code,
                request_id=request_id,
                duration_ms=(perf_counter() - started) * 1000,
            )


def _request_id_from_headers(scope: Scope) -> str | None:
    wanted = REQUEST_ID_HEADER.lower().encode("latin-1")
    for key, value in scope.get("headers", []):
        if key.lower() == wanted:
            cleaned = value.decode("latin-1").strip()
            return cleaned or None
    return None


def _log_request(
    *,
    method: str,
    path: str,
    status_code: int,
    request_id: str,
    duration_ms: float,
) -> None:
    if path in _HEALTH_PATHS and not settings.request_log_include_health:
        return
    extra = {
        "method": method,
        "path": path,
        "status_code": status_code,
        "request_id": request_id,
        "duration_ms": round(duration_ms, 2),
    }
    threshold = settings.request_log_slow_ms
    if threshold and duration_ms >= threshold:
        logger.warning("http.request.slow", extra={**extra, "slow_threshold_ms": threshold})
        return
    logger.info("http.request.completed", extra=extra)


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return None


def _json_safe(value: object) -> object:
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_json_safe(item) for item in value]
    if value is None or isinstance(value, str | int | float | bool):
        return value
    return str(value)


def _error_payload(
    *,
    detail: object,
    request_id: str | None,
    code: str | None = None,
    retryable: bool | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"detail": detail}
    if code is None and isinstance(detail, dict):
        detail_code = detail.get("code")
        if isinstance(detail_code, str):
            code = detail_code
    if code is not None:
        payload["code"] = code
    if retryable is not None:
        payload["retryable"] = retryable
    if request_id is not None:
        payload["request_id"] = request_id
    return payload


def _json_response(
    request: Request,
    *,
    status_code: int,
    detail: object,
    code: str | None = None,
    retryable: bool | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = _get_request_id(request)
    response_headers = dict(headers or {})
    if request_id is not None:
        response_headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(
            detail=detail,
            request_id=request_id,
            code=code,
            retryable=retryable,
        ),
        headers=response_headers,
    )


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        msg = "Expected RequestValidationError"
        raise TypeError(msg)
    errors = _json_safe(exc.errors())
    return _json_response(
        request,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=errors,
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, ResponseValidationError):
        msg = "Expected ResponseValidationError"
        raise TypeError(msg)
    logger.error(
        "http.response.validation_failed",
        extra={"request_id": _get_request_id(request), "error_count": len(exc.errors())},
    )
    return _json_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=_INTERNAL_ERROR_DETAIL,
    )


async def _http_exception_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        msg = "Expected StarletteHTTPException"
        raise TypeError(msg)
    return _json_response(
        request,
        status_code=exc.status_code,
        detail=_json_safe(exc.detail),
        headers=dict(exc.headers) if exc.headers else None,
    )


async def _storage_unavailable_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, StorageUnavailableError):
        msg = "Expected StorageUnavailableError"
        raise TypeError(msg)
    return _json_response(
        request,
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"code": exc.code, "message": exc.message},
        retryable=True,
    )


async def _unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.exception(
        "http.request.unhandled_error",
        extra={"request_id": _get_request_id(request), "error_type": type(exc).__name__},
    )
    return _json_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=_INTERNAL_ERROR_DETAIL,
    )


def install_error_handling(app: FastAPI) -> None:
    """Register request-context middleware and JSON error handlers on `app`."""
    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(StorageUnavailableError, _storage_unavailable_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
