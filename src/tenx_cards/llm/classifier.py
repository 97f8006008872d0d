"""
Map a failed exchange to exactly one typed error.

| Condition                              | Error           | Retryable |
|----------------------------------------|-----------------|-----------|
| 401 / 403                              | AuthError       | no        |
| 400 mentioning the model               | ModelError      | no        |
| 429                                    | RateLimitError  | yes       |
| other status in the retryable set      | APIError        | yes       |
| other status                           | APIError        | no        |
| transport failure or timeout           | NetworkError    | yes       |
"""

import json
from collections.abc import Collection, Mapping
from typing import Any

import httpx

from tenx_cards.llm.errors import (
    APIError,
    AuthError,
    LLMServiceError,
    ModelError,
    NetworkError,
    RateLimitError,
)

REDACTED = "[REDACTED]"


def scrub(value: Any, secret: str | None) -> Any:
    """Replace every occurrence of ``secret`` in strings nested inside ``value``."""
    if not secret:
        return value
    if isinstance(value, str):
        return value.replace(secret, REDACTED)
    if isinstance(value, Mapping):
        return {k: scrub(v, secret) for k, v in value.items()}
    if isinstance(value, list):
        return [scrub(v, secret) for v in value]
    return value


def parse_retry_after(headers: Mapping[str, str] | None) -> int | None:
    """Integer seconds from a ``Retry-After`` header, or None when absent or not numeric."""
    if not headers:
        return None
    raw = headers.get("Retry-After") or headers.get("retry-after")
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def extract_error_message(body: str) -> tuple[str, Any]:
    """
    Pull ``(message, details)`` out of a failure body.

    JSON bodies use ``error.message`` then top-level ``message``; anything
    else falls back to the raw text.
    """
    try:
        data = json.loads(body) if body else None
    except ValueError:
        data = None

    if isinstance(data, Mapping):
        error = data.get("error")
        message = None
        if isinstance(error, Mapping):
            message = error.get("message")
        elif isinstance(error, str):
            message = error
        message = message or data.get("message")
        return (str(message) if message else "Unknown error"), data

    return (body or "Unknown error"), body


def classify_response(
    status_code: int,
    body: str,
    headers: Mapping[str, str] | None = None,
    *,
    retryable_statuses: Collection[int] = (),
    model: str | None = None,
    secret: str | None = None,
) -> LLMServiceError:
    """
    Classify a non-2xx response.

    Args:
        status_code: HTTP status of the response
        body: Raw response text
        headers: Response headers (for ``Retry-After``)
        retryable_statuses: Statuses the retry policy treats as transient
        model: Model id that was requested, attached to ModelError
        secret: API key to scrub from the message and payload

    Returns:
        The classified error (not raised)
    """
    message, details = extract_error_message(body)
    message = scrub(message, secret)
    details = scrub(details, secret)

    if status_code in (401, 403):
        return AuthError(message, status_code=status_code, details=details)

    if status_code == 400 and "model" in message.lower():
        return ModelError(message, model_id=model, details=details)

    if status_code == 429:
        return RateLimitError(message, retry_after=parse_retry_after(headers), details=details)

    return APIError(
        message,
        status_code,
        details,
        retryable=status_code in retryable_statuses,
    )


def classify_exception(exc: BaseException, *, secret: str | None = None) -> NetworkError:
    """Wrap a transport-level failure (connection error, timeout) as a NetworkError."""
    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return NetworkError("Request timeout")
    detail = scrub(str(exc), secret) or type(exc).__name__
    return NetworkError(f"Network error: {detail}")
