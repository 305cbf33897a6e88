"""Unit tests for error classification and mapping."""

import logging

import httpx

from relay_llm_sdk.observability.logging import ProviderLogger
from relay_llm_sdk.providers.base import ContextLengthExceeded, ProviderFault, RateLimited, Unsupported
from relay_llm_sdk.providers.errors import ErrorMapper
from relay_llm_sdk.reliability import ErrorCategory, ErrorClassifier
from tests.helpers.mock_exceptions import (
    MockAnthropicServerError,
    MockAnthropicVisionError,
    MockAuthenticationError,
    MockBadRequestError,
    MockContextLengthError,
    MockInternalServerError,
    MockRateLimitError,
)


def http_status_error(status_code, body):
    request = httpx.Request("POST", "http://127.0.0.1:11434/api/chat")
    response = httpx.Response(status_code, text=body, request=request)
    return httpx.HTTPStatusError(f"Server error '{status_code}'", request=request, response=response)


class TestErrorClassifier:
    """Test provider-agnostic classification."""

    def test_context_length_code(self):
        classification = ErrorClassifier.classify_error(MockContextLengthError())
        assert classification.category == ErrorCategory.CONTEXT_LENGTH
        assert not classification.is_retryable

    def test_context_length_message_beats_bad_request(self):
        error = MockBadRequestError("Please reduce the length of the messages.")
        assert ErrorClassifier.classify_error(error).category == ErrorCategory.CONTEXT_LENGTH

    def test_vision_message(self):
        error = MockAnthropicVisionError()
        assert ErrorClassifier.classify_error(error).category == ErrorCategory.VISION_UNSUPPORTED

    def test_rate_limit_with_retry_after(self):
        classification = ErrorClassifier.classify_error(MockRateLimitError(retry_after=30))
        assert classification.category == ErrorCategory.RATE_LIMIT
        assert classification.is_retryable
        assert classification.suggested_delay == 30.0

    def test_status_codes(self):
        assert ErrorClassifier.classify_error(MockAuthenticationError()).category == ErrorCategory.AUTHENTICATION
        assert ErrorClassifier.classify_error(MockInternalServerError()).category == ErrorCategory.SERVER_ERROR

    def test_payload_too_large(self):
        error = http_status_error(413, "Request Entity Too Large")
        assert ErrorClassifier.classify_error(error).category == ErrorCategory.CONTEXT_LENGTH

    def test_overloaded_pattern(self):
        classification = ErrorClassifier.classify_error(MockAnthropicServerError())
        assert classification.category == ErrorCategory.SERVER_ERROR
        assert classification.is_retryable

    def test_unknown(self):
        classification = ErrorClassifier.classify_error(RuntimeError("weird"))
        assert classification.category == ErrorCategory.UNKNOWN
        assert not classification.is_retryable


class TestErrorMapper:
    """Test mapping into the ProviderError taxonomy."""

    def test_context_length_maps_to_overflow(self):
        error = ErrorMapper.map_error(MockContextLengthError(), "openai")

        assert isinstance(error, ContextLengthExceeded)
        assert error.status_code == 400
        assert error.provider == "openai"
        assert error.message.startswith("openai API error:")
        assert error.category == ErrorCategory.CONTEXT_LENGTH

    def test_rate_limit_maps_to_rate_limited(self):
        error = ErrorMapper.map_error(MockRateLimitError(retry_after=12), "groq")

        assert isinstance(error, RateLimited)
        assert error.is_retryable
        assert error.retry_after == 12.0
        assert isinstance(error.original_error, MockRateLimitError)

    def test_vision_maps_to_fault_with_category(self):
        error = ErrorMapper.map_error(MockAnthropicVisionError(), "anthropic")

        assert isinstance(error, ProviderFault)
        assert error.category == ErrorCategory.VISION_UNSUPPORTED

    def test_other_errors_map_to_fault(self):
        error = ErrorMapper.map_error(MockAuthenticationError(), "openai")
        assert isinstance(error, ProviderFault)
        assert not error.is_retryable

    def test_http_status_error_reads_body(self):
        body = '{"error": "prompt is too long for this model"}'
        error = ErrorMapper.map_error(http_status_error(400, body), "ollama")

        assert isinstance(error, ContextLengthExceeded)
        assert error.status_code == 400

    def test_http_status_error_rate_limit(self):
        error = ErrorMapper.map_error(http_status_error(429, "slow down"), "replicate")
        assert isinstance(error, RateLimited)
        assert error.status_code == 429

    def test_connect_error(self):
        error = ErrorMapper.map_error(httpx.ConnectError("Connection refused"), "ollama")

        assert isinstance(error, ProviderFault)
        assert error.category == ErrorCategory.NETWORK
        assert error.is_retryable

    def test_provider_errors_pass_through(self):
        original = Unsupported("no vision", provider="hyperbolic")
        assert ErrorMapper.map_error(original, "hyperbolic") is original

    def test_classification_details(self):
        error = ErrorMapper.map_error(MockRateLimitError(), "openai")
        details = ErrorMapper.get_error_classification(error)

        assert details["category"] == "rate_limit"
        assert details["error_type"] == "MockRateLimitError"
        assert details["provider"] == "openai"

    def test_map_and_log_records_category(self, caplog):
        logger = ProviderLogger("groq")

        with caplog.at_level(logging.DEBUG, logger="relay_llm_sdk.providers.groq"):
            error = ErrorMapper.map_and_log(MockRateLimitError(), logger, model="llama-3.3-70b")

        assert isinstance(error, RateLimited)
        assert error.provider == "groq"
        assert "[provider=groq model=llama-3.3-70b" in caplog.text
        assert "category=rate_limit" in caplog.text
