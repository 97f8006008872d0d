"""Pure transforms from caller intent and static config to a provider request."""

from collections.abc import Mapping
from typing import Any

from tenx_cards.llm.config import ServiceConfig
from tenx_cards.llm.errors import ValidationError
from tenx_cards.llm.schemas import ChatMessage, ChatRequest, RequestParams
from tenx_cards.llm.validation import response_format_to_dict


def resolve_model(request: ChatRequest, config: ServiceConfig) -> str:
    """Request model, else the configured default."""
    model = request.model or config.default_model
    if not model:
        raise ValidationError("Model must be specified in request or as default in config")
    return model


def merge_params(
    defaults: Mapping[str, Any],
    params: RequestParams | Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Overlay request params on config defaults, key by key. ``None`` values are dropped."""
    merged = {k: v for k, v in defaults.items() if v is not None}
    if isinstance(params, RequestParams):
        overrides = params.model_dump(exclude_none=True)
    else:
        overrides = {k: v for k, v in (params or {}).items() if v is not None}
    merged.update(overrides)
    return merged


def _wire_message(message: ChatMessage | Mapping[str, Any]) -> dict[str, str]:
    if isinstance(message, ChatMessage):
        return {"role": message.role, "content": message.content}
    return {"role": message["role"], "content": message["content"]}


def build_payload(request: ChatRequest, config: ServiceConfig) -> dict[str, Any]:
    """
    Build the JSON body for ``POST /chat/completions``.

    Pure: identical (request, config) pairs always yield equal payloads, and
    neither input is mutated.

    Example:
        >>> build_payload(
        ...     ChatRequest(messages=[{"role": "user", "content": "Hi"}], params={"temperature": 0.2}),
        ...     ServiceConfig(api_key="sk", default_model="openai/gpt-4o-mini"),
        ... )
        {'model': 'openai/gpt-4o-mini', 'messages': [{'role': 'user', 'content': 'Hi'}], 'temperature': 0.2}
    """
    body: dict[str, Any] = {
        "model": resolve_model(request, config),
        "messages": [_wire_message(m) for m in request.messages],
    }
    for key, value in merge_params(config.default_params, request.params).items():
        # Params never override the core fields
        if key not in ("model", "messages", "response_format"):
            body[key] = value

    if request.response_format is not None:
        body["response_format"] = response_format_to_dict(request.response_format)

    return body


def build_headers(config: ServiceConfig) -> dict[str, str]:
    """Request headers. Contains the bearer token: never log the result."""
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config.api_key.get_secret_value()}",
    }
    if config.app_info is not None:
        headers["HTTP-Referer"] = config.app_info.referer
        headers["X-Title"] = config.app_info.title
    return headers
