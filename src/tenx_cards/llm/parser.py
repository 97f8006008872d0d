"""Parse provider success envelopes into caller-facing results."""

import json
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from tenx_cards.llm.errors import ParseError
from tenx_cards.llm.schemas import ChatResult, ModelInfo, UsageStats


def _dump(envelope: Any) -> str:
    try:
        return json.dumps(envelope, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(envelope)


def decode_json(text: str, *, status_code: int | None = None) -> Any:
    """Decode a 2xx body; undecodable JSON is a ParseError, not a transport failure."""
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ParseError(
            "Invalid JSON in response", raw_response=text, status_code=status_code
        ) from exc


def _count(usage: Mapping[str, Any], key: str) -> int:
    value = usage.get(key)
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _timestamp(value: Any) -> int:
    """Unix seconds from a numeric or numeric-string ``created``, else 0."""
    if isinstance(value, bool):
        return 0
    try:
        return int(float(value)) if isinstance(value, str) else int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def parse_usage(usage: Any) -> UsageStats:
    """Usage counters, zero for anything absent."""
    if not isinstance(usage, Mapping):
        return UsageStats()
    return UsageStats(
        prompt_tokens=_count(usage, "prompt_tokens"),
        completion_tokens=_count(usage, "completion_tokens"),
        total_tokens=_count(usage, "total_tokens"),
    )


def parse_chat_response(envelope: Any) -> ChatResult:
    """
    Extract the first choice of a chat completion envelope.

    Raises:
        ParseError: If there are no choices or the first choice has no content
    """
    if not isinstance(envelope, Mapping):
        raise ParseError("Response is not a JSON object", raw_response=_dump(envelope))

    choices = envelope.get("choices")
    if not isinstance(choices, list) or not choices:
        raise ParseError("No choices in response", raw_response=_dump(envelope))

    choice = choices[0] if isinstance(choices[0], Mapping) else {}
    message = choice.get("message")
    content = message.get("content") if isinstance(message, Mapping) else None
    if not isinstance(content, str) or not content:
        raise ParseError("No content in response", raw_response=_dump(envelope))

    finish_reason = choice.get("finish_reason")

    return ChatResult(
        id=str(envelope.get("id") or ""),
        model=str(envelope.get("model") or ""),
        content=content,
        finish_reason="" if finish_reason is None else str(finish_reason),
        usage=parse_usage(envelope.get("usage")),
        created=_timestamp(envelope.get("created")),
    )


def parse_models_response(envelope: Any) -> list[ModelInfo]:
    """
    Parse a ``GET /models`` listing.

    Raises:
        ParseError: If ``data`` is missing or an entry is malformed
    """
    data = envelope.get("data") if isinstance(envelope, Mapping) else None
    if not isinstance(data, list):
        raise ParseError("No model data in response", raw_response=_dump(envelope))
    try:
        return [ModelInfo.model_validate(item) for item in data]
    except PydanticValidationError as exc:
        raise ParseError(f"Malformed model entry: {exc}", raw_response=_dump(envelope)) from exc
