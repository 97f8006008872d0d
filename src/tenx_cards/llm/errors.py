"""
Typed error taxonomy for the OpenRouter client.

Every failure leaving the client is one of the classes below. Callers branch
on the class (or on ``code``) instead of parsing messages.
"""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Machine-readable error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    MODEL_ERROR = "MODEL_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    API_ERROR = "API_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    PARSE_ERROR = "PARSE_ERROR"


class LLMServiceError(Exception):
    """
    Base class for all client errors.

    Attributes:
        code: Machine-readable error code
        message: Human-readable message (never contains the API key)
        status_code: HTTP status of the failed exchange, if any
        details: Raw diagnostic payload (provider body, offending index, ...)
        retryable: Whether the retry policy may attempt the call again
    """

    code: ErrorCode = ErrorCode.API_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details
        if retryable is not None:
            self.retryable = retryable

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!s}, message={self.message!r}, "
            f"status_code={self.status_code!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and API error envelopes."""
        data: dict[str, Any] = {"code": str(self.code), "message": self.message}
        if self.status_code is not None:
            data["status_code"] = self.status_code
        return data


class ValidationError(LLMServiceError):
    """Caller defect detected before any network call. Never retried."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, status_code=400, details=details, retryable=False)


class AuthError(LLMServiceError):
    """Invalid or unauthorized API key (401/403)."""

    code = ErrorCode.AUTH_ERROR

    def __init__(
        self,
        message: str = "Invalid API key",
        *,
        status_code: int = 401,
        details: Any = None,
    ) -> None:
        super().__init__(message, status_code=status_code, details=details, retryable=False)


class ModelError(LLMServiceError):
    """Unknown or unavailable model (400 mentioning the model)."""

    code = ErrorCode.MODEL_ERROR

    def __init__(
        self,
        message: str,
        *,
        model_id: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message, status_code=400, details=details, retryable=False)
        self.model_id = model_id


class RateLimitError(LLMServiceError):
    """Provider rate limit (429). ``retry_after`` is the provider hint in seconds."""

    code = ErrorCode.RATE_LIMIT_ERROR

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message, status_code=429, details=details, retryable=True)
        self.retry_after = retry_after

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.retry_after is not None:
            data["retry_after"] = self.retry_after
        return data


class APIError(LLMServiceError):
    """Any other non-2xx provider response."""

    code = ErrorCode.API_ERROR

    def __init__(
        self,
        message: str,
        status_code: int,
        details: Any = None,
        *,
        retryable: bool = False,
    ) -> None:
        super().__init__(message, status_code=status_code, details=details, retryable=retryable)


class NetworkError(LLMServiceError):
    """Connection failure or per-attempt timeout."""

    code = ErrorCode.NETWORK_ERROR

    def __init__(self, message: str = "Network error or timeout", *, details: Any = None) -> None:
        super().__init__(message, details=details, retryable=True)


class ParseError(LLMServiceError):
    """Malformed success envelope. Never retried."""

    code = ErrorCode.PARSE_ERROR

    def __init__(
        self,
        message: str,
        *,
        raw_response: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, details=raw_response, retryable=False)
        self.raw_response = raw_response


_USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_ERROR: "The request was invalid.",
    ErrorCode.AUTH_ERROR: "AI service configuration error.",
    ErrorCode.MODEL_ERROR: "AI request configuration error. Please check the selected model.",
    ErrorCode.RATE_LIMIT_ERROR: "AI service rate limit exceeded. Please try again later.",
    ErrorCode.API_ERROR: "The AI service returned an error. Please try again later.",
    ErrorCode.NETWORK_ERROR: "Failed to communicate with the AI service. Please try again.",
    ErrorCode.PARSE_ERROR: "The AI service returned an unexpected response.",
}


def user_message(error: LLMServiceError) -> str:
    """
    Map an error to text that is safe to show an end user.

    Auth and model errors map to generic configuration messages; the raw
    provider message is for server-side logs only.

    Example:
        >>> user_message(RateLimitError(retry_after=5))
        'AI service rate limit exceeded. Please try again later.'
    """
    return _USER_MESSAGES.get(error.code, "Unexpected AI service error.")
