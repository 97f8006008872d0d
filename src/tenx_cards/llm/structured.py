"""
Structured output extraction with Pydantic validation.

Derives a strict JSON-schema response format from a Pydantic model, sends it
with the chat request, and validates the returned content against the model.
"""

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tenx_cards.llm.client import Message, OpenRouterClient
from tenx_cards.llm.errors import ParseError, ValidationError
from tenx_cards.llm.schemas import JsonSchemaSpec, RequestParams, ResponseFormat

T = TypeVar("T", bound=BaseModel)


def _inline_refs(node: Any, defs: Mapping[str, Any], seen: frozenset[str] = frozenset()) -> Any:
    if isinstance(node, list):
        return [_inline_refs(item, defs, seen) for item in node]
    if not isinstance(node, Mapping):
        return node

    ref = node.get("$ref")
    if isinstance(ref, str) and ref.startswith("#/$defs/"):
        key = ref.removeprefix("#/$defs/")
        if key in seen:
            raise ValidationError(f"Recursive model {key!r} cannot be used as a strict schema")
        return _inline_refs(defs[key], defs, seen | {key})

    out: dict[str, Any] = {}
    for k, v in node.items():
        if k in ("$defs", "title"):
            continue
        if k == "properties" and isinstance(v, Mapping):
            # Property names are data, not schema keywords
            out[k] = {name: _inline_refs(prop, defs, seen) for name, prop in v.items()}
        else:
            out[k] = _inline_refs(v, defs, seen)
    if isinstance(out.get("properties"), Mapping):
        out["required"] = list(out["properties"])
        out["additionalProperties"] = False
    return out


def strict_schema(model_cls: type[BaseModel]) -> dict[str, Any]:
    """
    JSON schema for ``model_cls`` suitable for strict structured outputs.

    ``$ref``s are inlined, titles dropped, every property is required and
    additional properties are forbidden.
    """
    schema = model_cls.model_json_schema()
    return _inline_refs(schema, schema.get("$defs", {}))


def response_format_for(
    model_cls: type[BaseModel],
    *,
    name: str | None = None,
    description: str | None = None,
) -> ResponseFormat:
    """
    Build a strict ResponseFormat from a Pydantic model.

    Example:
        >>> class Flashcard(BaseModel):
        ...     front: str
        ...     back: str
        >>> response_format_for(Flashcard).json_schema.name
        'Flashcard'
    """
    return ResponseFormat(
        json_schema=JsonSchemaSpec(
            name=name or model_cls.__name__,
            strict=True,
            schema=strict_schema(model_cls),
            description=description,
        )
    )


async def extract(
    response_model: type[T],
    *,
    client: OpenRouterClient,
    messages: Sequence[Message] | None = None,
    prompt: str | None = None,
    model: str | None = None,
    params: RequestParams | Mapping[str, Any] | None = None,
) -> T:
    """
    Extract structured data from an LLM response.

    Args:
        response_model: Pydantic model class defining the output schema
        client: Client used for the request
        messages: Optional message list (mutually exclusive with prompt)
        prompt: Optional simple prompt string (converted to user message)
        model: Model override
        params: Sampling parameters

    Returns:
        Instance of response_model with extracted data

    Raises:
        ValidationError: If neither messages nor prompt is provided
        ParseError: If the returned content does not match the schema.
            Not retried: re-querying the model is the caller's decision.

    Example:
        >>> class Flashcards(BaseModel):
        ...     cards: list[Flashcard]
        >>> deck = await extract(Flashcards, client=client, prompt="Photosynthesis ...")
    """
    if prompt and not messages:
        messages = [{"role": "user", "content": prompt}]

    if not messages:
        raise ValidationError("Either messages or prompt must be provided")

    result = await client.chat(
        messages,
        model=model,
        params=params,
        response_format=response_format_for(response_model),
    )
    try:
        return response_model.model_validate_json(result.content)
    except PydanticValidationError as exc:
        raise ParseError(
            f"Response does not match {response_model.__name__}: {exc.error_count()} errors",
            raw_response=result.content,
        ) from exc
