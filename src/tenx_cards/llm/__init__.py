"""
10x Cards LLM SDK

Resilient OpenRouter chat-completion client including:
- Request validation before any network cost
- Per-attempt timeouts with exponential backoff and jitter
- A closed, typed error taxonomy
- Strict structured outputs with Pydantic validation
- LLM observability with Langfuse
"""

__version__ = "0.1.0"

from tenx_cards.llm.client import OpenRouterClient, complete
from tenx_cards.llm.config import (
    AppInfo,
    LLMSettings,
    RetryConfig,
    ServiceConfig,
    configure,
    get_settings,
    reset_settings,
    set_settings,
)
from tenx_cards.llm.errors import (
    APIError,
    AuthError,
    ErrorCode,
    LLMServiceError,
    ModelError,
    NetworkError,
    ParseError,
    RateLimitError,
    ValidationError,
    user_message,
)
from tenx_cards.llm.observability import (
    add_trace_metadata,
    flush_traces,
    init_observability,
    set_trace_session,
    set_trace_user,
    trace,
)
from tenx_cards.llm.schemas import (
    ChatMessage,
    ChatResult,
    JsonSchemaSpec,
    ModelInfo,
    RequestParams,
    ResponseFormat,
    UsageStats,
)
from tenx_cards.llm.structured import extract, response_format_for

__all__ = [
    # Version
    "__version__",
    # Client
    "OpenRouterClient",
    "complete",
    # Structured output
    "extract",
    "response_format_for",
    # Types
    "ChatMessage",
    "ChatResult",
    "JsonSchemaSpec",
    "ModelInfo",
    "RequestParams",
    "ResponseFormat",
    "UsageStats",
    # Errors
    "LLMServiceError",
    "ErrorCode",
    "ValidationError",
    "AuthError",
    "ModelError",
    "RateLimitError",
    "APIError",
    "NetworkError",
    "ParseError",
    "user_message",
    # Observability
    "init_observability",
    "trace",
    "add_trace_metadata",
    "set_trace_user",
    "set_trace_session",
    "flush_traces",
    # Config
    "get_settings",
    "configure",
    "reset_settings",
    "set_settings",
    "LLMSettings",
    "ServiceConfig",
    "RetryConfig",
    "AppInfo",
]
