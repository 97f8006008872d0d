"""Tests for payload and header construction."""

import copy

import pytest

from tenx_cards.llm.builder import build_headers, build_payload, merge_params, resolve_model
from tenx_cards.llm.config import AppInfo, ServiceConfig
from tenx_cards.llm.errors import ValidationError
from tenx_cards.llm.schemas import (
    ChatMessage,
    ChatRequest,
    JsonSchemaSpec,
    RequestParams,
    ResponseFormat,
)

MESSAGES = [{"role": "user", "content": "Hi"}]


class TestResolveModel:
    def test_request_model_wins(self, config):
        request = ChatRequest(messages=MESSAGES, model="anthropic/claude-3.5-haiku")
        assert resolve_model(request, config) == "anthropic/claude-3.5-haiku"

    def test_falls_back_to_default(self, config):
        assert resolve_model(ChatRequest(messages=MESSAGES), config) == "openai/gpt-4o-mini"

    def test_no_model_anywhere(self):
        config = ServiceConfig(api_key="sk-test")
        with pytest.raises(ValidationError, match="Model must be specified"):
            resolve_model(ChatRequest(messages=MESSAGES), config)


class TestMergeParams:
    def test_request_overrides_key_by_key(self):
        merged = merge_params({"temperature": 0.7, "max_tokens": 1000}, {"temperature": 0.2})
        assert merged == {"temperature": 0.2, "max_tokens": 1000}

    def test_typed_params(self):
        merged = merge_params({"max_tokens": 1000}, RequestParams(top_p=0.9))
        assert merged == {"max_tokens": 1000, "top_p": 0.9}

    def test_none_values_dropped(self):
        assert merge_params({"temperature": None}, {"max_tokens": None}) == {}

    def test_extra_params_pass_through(self):
        assert merge_params({}, RequestParams(min_p=0.1)) == {"min_p": 0.1}


class TestBuildPayload:
    def test_basic_payload(self, config):
        payload = build_payload(
            ChatRequest(messages=[ChatMessage(role="user", content="Hi")]), config
        )
        assert payload == {"model": "openai/gpt-4o-mini", "messages": MESSAGES}

    def test_defaults_merged(self):
        config = ServiceConfig(
            api_key="sk-test",
            default_model="openai/gpt-4o-mini",
            default_params={"temperature": 0.7, "max_tokens": 1000},
        )
        payload = build_payload(
            ChatRequest(messages=MESSAGES, params={"temperature": 0.2}), config
        )
        assert payload["temperature"] == 0.2
        assert payload["max_tokens"] == 1000

    def test_params_cannot_override_core_fields(self, config):
        payload = build_payload(
            ChatRequest(messages=MESSAGES, params={"model": "other", "messages": []}), config
        )
        assert payload["model"] == "openai/gpt-4o-mini"
        assert payload["messages"] == MESSAGES

    def test_response_format_wire_shape(self, config):
        schema = {"type": "object", "properties": {"front": {"type": "string"}}}
        request = ChatRequest(
            messages=MESSAGES,
            response_format=ResponseFormat(json_schema=JsonSchemaSpec(name="card", schema=schema)),
        )
        payload = build_payload(request, config)
        assert payload["response_format"] == {
            "type": "json_schema",
            "json_schema": {"name": "card", "strict": True, "schema": schema},
        }

    def test_pure(self, config):
        request = ChatRequest(messages=MESSAGES, params={"temperature": 0.3})
        before = copy.deepcopy(request)
        assert build_payload(request, config) == build_payload(request, config)
        assert request == before


class TestBuildHeaders:
    def test_auth_and_content_type(self, config):
        headers = build_headers(config)
        assert headers["Authorization"] == f"Bearer {config.api_key.get_secret_value()}"
        assert headers["Content-Type"] == "application/json"
        assert "HTTP-Referer" not in headers
        assert "X-Title" not in headers

    def test_app_info(self):
        config = ServiceConfig(
            api_key="sk-test",
            app_info=AppInfo(referer="https://10xcards.app", title="10x Cards"),
        )
        headers = build_headers(config)
        assert headers["HTTP-Referer"] == "https://10xcards.app"
        assert headers["X-Title"] == "10x Cards"
