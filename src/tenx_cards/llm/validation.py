"""
Request validation.

All checks run before any network activity, so a caller defect costs zero
attempts and is never retried.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from tenx_cards.llm.errors import ValidationError
from tenx_cards.llm.schemas import VALID_ROLES, ChatMessage, ChatRequest, ResponseFormat

MAX_SCHEMA_DEPTH = 5


# --- Schema tree ---


@dataclass(frozen=True)
class ScalarSchema:
    """Leaf schema (string, number, enum, ...)."""

    @property
    def depth(self) -> int:
        return 0


@dataclass(frozen=True)
class ArraySchema:
    """Schema with ``items``."""

    items: "SchemaNode"

    @property
    def depth(self) -> int:
        return 1 + self.items.depth


@dataclass(frozen=True)
class ObjectSchema:
    """Schema with ``properties`` (and possibly ``items`` alongside)."""

    properties: dict[str, "SchemaNode"]
    items: "SchemaNode | None" = None

    @property
    def depth(self) -> int:
        depth = max((1 + child.depth for child in self.properties.values()), default=0)
        if self.items is not None:
            depth = max(depth, 1 + self.items.depth)
        return depth


SchemaNode = ScalarSchema | ArraySchema | ObjectSchema


def parse_schema(schema: Any) -> SchemaNode:
    """
    Read a JSON schema dict into a tagged tree.

    Only ``properties`` and ``items`` are followed; ``$ref`` and combinators
    are treated as leaves.

    Example:
        >>> parse_schema({"type": "array", "items": {"type": "string"}}).depth
        1
    """
    if not isinstance(schema, Mapping):
        return ScalarSchema()

    properties = schema.get("properties")
    items = schema.get("items")
    items_node = parse_schema(items) if items else None

    if isinstance(properties, Mapping) and properties:
        return ObjectSchema(
            properties={str(k): parse_schema(v) for k, v in properties.items()},
            items=items_node,
        )
    if items_node is not None:
        return ArraySchema(items=items_node)
    return ScalarSchema()


def schema_depth(schema: Any) -> int:
    """Nesting depth of a JSON schema, counting each properties/items step."""
    return parse_schema(schema).depth


# --- Messages ---


def _message_fields(message: Any) -> tuple[Any, Any] | None:
    if isinstance(message, ChatMessage):
        return message.role, message.content
    if isinstance(message, Mapping):
        return message.get("role"), message.get("content")
    return None


def validate_messages(messages: Sequence[Any] | None) -> None:
    """
    Validate a conversation.

    Raises:
        ValidationError: If the list is empty, any message has an invalid role
            or blank content (message and ``details`` name the index), or the
            conversation starts with an assistant turn
    """
    if not messages or isinstance(messages, (str, bytes)):
        raise ValidationError("Messages array cannot be empty")

    for i, message in enumerate(messages):
        fields = _message_fields(message)
        if fields is None:
            raise ValidationError(f"Invalid message at index {i}", details={"index": i})
        role, content = fields

        if role not in VALID_ROLES:
            raise ValidationError(
                f"Invalid role at message {i}: {role}",
                details={"index": i, "role": role},
            )
        if not isinstance(content, str) or not content:
            raise ValidationError(
                f"Invalid content at message {i}: content must be a non-empty string",
                details={"index": i},
            )
        if not content.strip():
            raise ValidationError(f"Empty content at message {i}", details={"index": i})

    first_role, _ = _message_fields(messages[0]) or (None, None)
    if first_role == "assistant":
        raise ValidationError('First message must have role "system" or "user"')


# --- Response format ---


def response_format_to_dict(response_format: ResponseFormat | Mapping[str, Any]) -> dict[str, Any]:
    """Wire-shaped dict for a typed or plain response format."""
    if isinstance(response_format, ResponseFormat):
        return response_format.to_wire()
    if isinstance(response_format, Mapping):
        return dict(response_format)
    raise ValidationError("response_format must be a ResponseFormat or a mapping")


def validate_response_format(response_format: ResponseFormat | Mapping[str, Any]) -> None:
    """
    Validate a structured-output descriptor.

    Strict mode is mandatory: a schema with ``strict`` other than ``True`` is
    rejected rather than sent in best-effort mode.

    Raises:
        ValidationError: On any malformed field or nesting depth above 5
    """
    data = response_format_to_dict(response_format)

    if data.get("type") != "json_schema":
        raise ValidationError('Only "json_schema" response format is supported')

    json_schema = data.get("json_schema")
    if not isinstance(json_schema, Mapping):
        raise ValidationError("response_format.json_schema is required")

    name = json_schema.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("response_format.json_schema.name is required")

    if json_schema.get("strict") is not True:
        raise ValidationError(
            "response_format.json_schema.strict must be true for structured outputs"
        )

    schema = json_schema.get("schema")
    if not isinstance(schema, Mapping):
        raise ValidationError("response_format.json_schema.schema is required")

    if schema.get("type") != "object":
        raise ValidationError('response_format.json_schema.schema.type must be "object"')

    if not schema.get("properties"):
        raise ValidationError("response_format.json_schema.schema must have properties")

    depth = schema_depth(schema)
    if depth > MAX_SCHEMA_DEPTH:
        raise ValidationError(
            f"Schema nesting depth ({depth}) exceeds maximum allowed ({MAX_SCHEMA_DEPTH})",
            details={"depth": depth, "max_depth": MAX_SCHEMA_DEPTH},
        )


def validate_request(request: ChatRequest) -> None:
    """Validate messages and, when present, the response format."""
    validate_messages(request.messages)
    if request.response_format is not None:
        validate_response_format(request.response_format)
