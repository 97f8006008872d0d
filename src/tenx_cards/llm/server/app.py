"""FastAPI HTTP gateway for the 10x Cards LLM SDK."""

import json
import logging
import os
import secrets
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.types import ASGIApp, Receive, Scope, Send

from tenx_cards.llm.client import OpenRouterClient
from tenx_cards.llm.config import get_settings
from tenx_cards.llm.errors import (
    AuthError,
    LLMServiceError,
    ModelError,
    RateLimitError,
    ValidationError,
    user_message,
)
from tenx_cards.llm.observability import flush_traces, init_observability, is_enabled
from tenx_cards.llm.server.models import ErrorDetail, ErrorResponse
from tenx_cards.llm.server.routes import router

REQUEST_ID_PREFIX = "req_"

# Structured fields the client attaches via ``extra=``
_EXTRA_FIELDS = ("endpoint", "method", "model", "attempt", "status_code", "error_code", "delay")

logger = logging.getLogger(__name__)


# --- Structured JSON logging ---
class _JSONFormatter(logging.Formatter):
    """Structured JSON log formatter with required observability fields."""

    def __init__(
        self,
        service: str = "tenx-cards-llm",
        environment: str = "development",
    ) -> None:
        super().__init__()
        self.service = service
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname.lower(),
            "message": record.getMessage(),
            "service": self.service,
            "environment": self.environment,
            "logger": record.name,
        }
        if hasattr(record, "request_id"):
            log_data["requestId"] = record.request_id
        for field in _EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value
        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def _configure_logging() -> None:
    """Configure structured JSON logging for the server."""
    settings = get_settings()
    handler = logging.StreamHandler()
    handler.setFormatter(_JSONFormatter(settings.service_name, settings.service_environment))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: logging, client and observability. Shutdown: close client, flush traces."""
    _configure_logging()
    try:
        app.state.client = OpenRouterClient.from_settings()
    except ValidationError as exc:
        app.state.client = None
        logger.error("OpenRouter client not configured: %s", exc.message)
    try:
        init_observability()
        logger.info("Langfuse observability initialized")
    except ValueError as exc:
        logger.warning("Observability not initialized: %s", exc)
    yield
    if app.state.client is not None:
        await app.state.client.aclose()
    if is_enabled():
        flush_traces()


app = FastAPI(title="10x Cards LLM Gateway", lifespan=lifespan)

# --- CORS ---
cors_origins = os.getenv("LLM_CORS_ORIGINS", "*").split(",")
# cast() needed because ty cannot match Starlette middleware classes to the
# _MiddlewareFactory[P] ParamSpec protocol used by add_middleware.
app.add_middleware(
    cast(Any, CORSMiddleware),
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-request-id", "Retry-After"],
)


# --- Request ID middleware (raw ASGI) ---
class RequestIDMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = f"{REQUEST_ID_PREFIX}{secrets.token_urlsafe(16)}"
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_request_id(message: Any) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_with_request_id)


app.add_middleware(cast(Any, RequestIDMiddleware))


# --- Exception handlers ---
def _get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _error_response(
    status_code: int,
    code: str,
    message: str,
    request: Request,
    *,
    retry_after: int | None = None,
) -> JSONResponse:
    """Build a standard error response."""
    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=code,
                message=message,
                request_id=_get_request_id(request),
                retry_after=retry_after,
            )
        ).model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


def _http_status(exc: LLMServiceError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, AuthError):
        return 500
    if isinstance(exc, RateLimitError):
        return 429
    if isinstance(exc, ModelError):
        return 400
    return 502


@app.exception_handler(LLMServiceError)
async def llm_error_handler(request: Request, exc: LLMServiceError) -> JSONResponse:
    status_code = _http_status(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "LLM request failed: %s",
        exc.message,
        extra={
            "request_id": _get_request_id(request),
            "error_code": str(exc.code),
            "status_code": exc.status_code,
        },
    )
    # Caller defects are echoed back; everything else gets host-facing guidance
    message = exc.message if isinstance(exc, ValidationError) else user_message(exc)
    retry_after = exc.retry_after if isinstance(exc, RateLimitError) else None
    return _error_response(status_code, str(exc.code), message, request, retry_after=retry_after)


@app.exception_handler(PydanticValidationError)
async def validation_error_handler(request: Request, exc: PydanticValidationError) -> JSONResponse:
    return _error_response(422, "VALIDATION_ERROR", str(exc), request)


@app.exception_handler(Exception)
async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"request_id": _get_request_id(request)})
    return _error_response(500, "INTERNAL_SERVER_ERROR", "Internal server error", request)


# --- Routes ---
app.include_router(router)
