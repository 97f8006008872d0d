"""
Request and response types for the OpenRouter chat API.

Caller-facing models are pydantic; request models accept loosely typed values
so that the request validator, not pydantic, reports caller defects with the
offending index.
"""

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]
VALID_ROLES: frozenset[str] = frozenset({"system", "user", "assistant"})


class ChatMessage(BaseModel):
    """A single conversation turn."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class RequestParams(BaseModel):
    """Optional sampling parameters. Unknown provider knobs are passed through."""

    model_config = ConfigDict(extra="allow")

    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    stop: list[str] | None = None
    top_k: int | None = None
    repetition_penalty: float | None = None
    seed: int | None = None


class JsonSchemaSpec(BaseModel):
    """The ``json_schema`` block of a structured-output response format."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    strict: bool | None = True
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")
    description: str | None = None


class ResponseFormat(BaseModel):
    """
    Structured-output descriptor sent as ``response_format``.

    Example:
        >>> ResponseFormat(
        ...     json_schema=JsonSchemaSpec(
        ...         name="flashcards",
        ...         schema={"type": "object", "properties": {"front": {"type": "string"}}},
        ...     )
        ... )
    """

    model_config = ConfigDict(populate_by_name=True)

    type: str = "json_schema"
    json_schema: JsonSchemaSpec

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the provider's wire shape."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class ChatRequest:
    """Caller intent for one chat completion."""

    messages: list[Any]
    model: str | None = None
    params: RequestParams | dict[str, Any] | None = None
    response_format: ResponseFormat | dict[str, Any] | None = None


class UsageStats(BaseModel):
    """Token usage statistics from a completion response."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResult(BaseModel):
    """Parsed chat completion."""

    id: str
    model: str
    content: str
    finish_reason: str
    usage: UsageStats = UsageStats()
    created: int


class ModelPricing(BaseModel):
    model_config = ConfigDict(extra="allow")

    prompt: str = "0"
    completion: str = "0"


class ModelInfo(BaseModel):
    """One entry from the models listing."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    description: str | None = None
    pricing: ModelPricing = ModelPricing()
    context_length: int | None = None
    architecture: dict[str, Any] | None = None
    top_provider: dict[str, Any] | None = None
