from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pythonjsonlogger import jsonlogger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ..domain.errors import AccountServiceError, ErrorKind


ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.CLIENT_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.AUTH: status.HTTP_403_FORBIDDEN,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.BACKEND: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

INTERNAL_ERROR_MESSAGE = "internal server error"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a JSON handler to the access and application loggers once."""
    formatter = jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    for name in ("api.access", "bank_services"):
        logger = logging.getLogger(name)
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(level)
    return logging.getLogger("api.access")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cache-Control", "no-store")
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: FastAPI, logger: logging.Logger, *, service_name: str):
        super().__init__(app)
        self._logger = logger
        self._service_name = service_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:  # pragma: no cover - delegated to exception handler
            self._log(request, None, time.perf_counter() - start, exc=exc)
            raise
        self._log(request, response, time.perf_counter() - start)
        return response

    def _log(
        self,
        request: Request,
        response: Response | None,
        duration: float,
        *,
        exc: Exception | None = None,
    ) -> None:
        payload: dict[str, Any] = {
            "event": "http_request",
            "method": request.method,
            "path": request.url.path,
            "status_code": getattr(response, "status_code", 500),
            "duration_ms": round(duration * 1000, 3),
            "request_id": getattr(request.state, "request_id", None),
            "client": request.client.host if request.client else None,
            "service": self._service_name,
        }
        if exc:
            payload["error"] = str(exc)
            self._logger.error("request_failed", extra=payload)
        else:
            self._logger.info("request_completed", extra=payload)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages) or "invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    logger = logging.getLogger("api.access")

    @app.exception_handler(AccountServiceError)
    async def account_service_error_handler(
        request: Request, exc: AccountServiceError
    ) -> JSONResponse:
        status_code = ERROR_STATUS[exc.kind]
        if exc.kind is ErrorKind.BACKEND:
            logger.error(
                "backend_error",
                extra={
                    "path": request.url.path,
                    "request_id": getattr(request.state, "request_id", None),
                    "error": exc.message,
                },
            )
            return error_response(status_code, INTERNAL_ERROR_MESSAGE)
        return error_response(status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        response = error_response(exc.status_code, str(exc.detail or "HTTP Error"))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(
            "validation_error",
            extra={
                "errors": exc.errors(),
                "path": request.url.path,
                "request_id": getattr(request.state, "request_id", None),
            },
        )
        return error_response(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            extra={
                "path": request.url.path,
                "request_id": getattr(request.state, "request_id", None),
            },
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def setup_middleware(app: FastAPI, *, log_level: str = "INFO") -> None:
    logger = configure_logging(log_level)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(AccessLogMiddleware, logger=logger, service_name=app.title)
    app.add_middleware(SecurityHeadersMiddleware)
    register_exception_handlers(app)
