"""Pydantic request/response models for the HTTP gateway."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that serializes to camelCase for API responses."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class UsageResponse(CamelModel):
    """Token usage statistics."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatRequestBody(CamelModel):
    # Loosely typed: the client's validator reports defects with the offending index
    messages: list[Any]
    model: str | None = None
    params: dict[str, Any] | None = None
    response_format: dict[str, Any] | None = None


class ChatResponse(CamelModel):
    id: str
    model: str
    content: str
    finish_reason: str
    usage: UsageResponse
    created: int


class ModelsResponse(CamelModel):
    data: list[dict[str, Any]]


class ErrorDetail(CamelModel):
    """Nested error object."""

    code: str
    message: str
    request_id: str | None = None
    retry_after: int | None = None


class ErrorResponse(CamelModel):
    """Standard error envelope."""

    error: ErrorDetail
