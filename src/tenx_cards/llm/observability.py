"""
Langfuse observability integration for chat completions.

Provides trace contexts, metadata tracking, and generation usage reporting.
"""

import logging
import os
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar, overload

from langfuse.decorators import langfuse_context, observe

from tenx_cards.llm.schemas import ChatResult

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

_enabled = False


def init_observability() -> None:
    """
    Initialize Langfuse observability for chat completions.

    Once enabled, every successful chat call records its model, token usage
    and finish reason on the current Langfuse observation.

    Requires environment variables:
        LANGFUSE_PUBLIC_KEY: Your Langfuse public key
        LANGFUSE_SECRET_KEY: Your Langfuse secret key
        LANGFUSE_HOST: Optional, defaults to Langfuse cloud

    Raises:
        ValueError: If required environment variables are not set

    Example:
        >>> from tenx_cards.llm import init_observability
        >>> init_observability()  # Call once at app startup
    """
    global _enabled
    if not os.getenv("LANGFUSE_PUBLIC_KEY"):
        raise ValueError("LANGFUSE_PUBLIC_KEY environment variable required")
    if not os.getenv("LANGFUSE_SECRET_KEY"):
        raise ValueError("LANGFUSE_SECRET_KEY environment variable required")

    _enabled = True


def is_enabled() -> bool:
    return _enabled


def disable_observability() -> None:
    """Stop reporting generations (mainly for tests)."""
    global _enabled
    _enabled = False


def record_generation(result: ChatResult) -> None:
    """
    Attach model, usage and finish reason of a completion to the current observation.

    No-op unless init_observability() has been called. chat() does not open an
    observation of its own: usage lands on the enclosing ``@trace`` (or
    ``@observe``) span, and is skipped with a debug log when there is none.
    Reporting failures are logged and never affect the completion.
    """
    if not _enabled:
        return
    try:
        if langfuse_context.get_current_observation_id() is None:
            logger.debug("No active Langfuse observation, generation %s not recorded", result.id)
            return
        langfuse_context.update_current_observation(
            model=result.model,
            usage={
                "input": result.usage.prompt_tokens,
                "output": result.usage.completion_tokens,
                "total": result.usage.total_tokens,
                "unit": "TOKENS",
            },
            metadata={"finish_reason": result.finish_reason, "completion_id": result.id},
        )
    except Exception:
        logger.warning("Failed to record generation in Langfuse", exc_info=True)


@overload
def trace(
    func: Callable[P, Awaitable[R]],
) -> Callable[P, Awaitable[R]]: ...


@overload
def trace(
    func: None = None,
    *,
    name: str | None = None,
    metadata: dict | None = None,
    user_id: str | None = None,
    session_id: str | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]: ...


def trace(
    func: Callable[P, Awaitable[R]] | None = None,
    *,
    name: str | None = None,
    metadata: dict | None = None,
    user_id: str | None = None,
    session_id: str | None = None,
) -> Callable[P, Awaitable[R]] | Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """
    Decorator to create a trace context for chat operations.

    Groups all chat calls within the decorated function under a single trace
    in Langfuse. Supports both @trace and @trace(...) syntax.

    Args:
        func: The function to wrap (when used without parentheses)
        name: Trace name (defaults to function name)
        metadata: Custom metadata dict to attach to the trace
        user_id: Optional user identifier for the trace
        session_id: Optional session identifier for the trace

    Example:
        >>> @trace(name="generate_flashcards", metadata={"source": "paste"})
        ... async def generate(text: str) -> ChatResult:
        ...     return await client.chat([{"role": "user", "content": text}])
    """

    def decorator(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        fn_name = getattr(fn, "__name__", "unknown")

        @wraps(fn)
        @observe(name=name or fn_name)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            if metadata:
                langfuse_context.update_current_observation(metadata=metadata)
            if user_id:
                langfuse_context.update_current_trace(user_id=user_id)
            if session_id:
                langfuse_context.update_current_trace(session_id=session_id)

            return await fn(*args, **kwargs)

        return wrapper

    if func is not None:
        return decorator(func)

    return decorator


def add_trace_metadata(metadata: dict) -> None:
    """Add metadata to the current trace context."""
    langfuse_context.update_current_observation(metadata=metadata)


def set_trace_user(user_id: str) -> None:
    """Set the user ID for the current trace."""
    langfuse_context.update_current_trace(user_id=user_id)


def set_trace_session(session_id: str) -> None:
    """Set the session ID for the current trace."""
    langfuse_context.update_current_trace(session_id=session_id)


def flush_traces() -> None:
    """
    Flush all pending traces to Langfuse.

    Call before shutdown of short-lived scripts or serverless functions.
    """
    langfuse_context.flush()
