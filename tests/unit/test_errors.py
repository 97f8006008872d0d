"""Tests for the error taxonomy."""

import pytest

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


@pytest.mark.parametrize(
    ("error", "code", "retryable"),
    [
        (ValidationError("bad"), ErrorCode.VALIDATION_ERROR, False),
        (AuthError(), ErrorCode.AUTH_ERROR, False),
        (ModelError("unknown model", model_id="x/y"), ErrorCode.MODEL_ERROR, False),
        (RateLimitError(), ErrorCode.RATE_LIMIT_ERROR, True),
        (APIError("boom", 500, retryable=True), ErrorCode.API_ERROR, True),
        (APIError("teapot", 418), ErrorCode.API_ERROR, False),
        (NetworkError(), ErrorCode.NETWORK_ERROR, True),
        (ParseError("No choices in response"), ErrorCode.PARSE_ERROR, False),
    ],
)
def test_codes_and_retryability(error, code, retryable):
    assert isinstance(error, LLMServiceError)
    assert error.code == code
    assert error.retryable is retryable


class TestLLMServiceError:
    def test_str_is_message(self):
        assert str(AuthError("Invalid API key")) == "Invalid API key"

    def test_to_dict(self):
        assert APIError("boom", 502).to_dict() == {
            "code": "API_ERROR",
            "message": "boom",
            "status_code": 502,
        }

    def test_rate_limit_to_dict_includes_retry_after(self):
        data = RateLimitError(retry_after=7).to_dict()
        assert data["retry_after"] == 7
        assert data["status_code"] == 429

    def test_network_error_has_no_status(self):
        assert "status_code" not in NetworkError().to_dict()

    def test_repr(self):
        assert repr(AuthError()) == (
            "AuthError(code=AUTH_ERROR, message='Invalid API key', status_code=401)"
        )

    def test_parse_error_keeps_raw_response(self):
        error = ParseError("Invalid JSON in response", raw_response="<html>")
        assert error.raw_response == "<html>"
        assert error.details == "<html>"


class TestUserMessage:
    def test_auth_is_configuration_error(self):
        assert user_message(AuthError("Key sk-123 revoked")) == "AI service configuration error."

    def test_rate_limit(self):
        assert "rate limit" in user_message(RateLimitError()).lower()

    def test_model(self):
        assert "model" in user_message(ModelError("nope")).lower()

    def test_every_code_has_message(self):
        for code in ErrorCode:
            error = LLMServiceError("x")
            error.code = code
            assert user_message(error) != "Unexpected AI service error."
