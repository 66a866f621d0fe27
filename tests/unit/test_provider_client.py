"""
Unit tests for the Provider Client.

Tests prompt construction, request dialects, response parsing and the
mapping of HTTP failures to provider error codes.
"""

import asyncio

import httpx
import pytest
from unittest.mock import AsyncMock

from fitcoach.models import ApiFormat, Category, ProviderConfig
from fitcoach.provider_client import ProviderClient, ProviderError


OPENAI_URL = "https://api.groq.com/openai/v1/chat/completions"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/gemini-1.5-flash:generateContent"


@pytest.fixture
def openai_provider():
    """Create an OpenAI-compatible provider."""
    return ProviderConfig(
        name="Groq",
        base_url="https://api.groq.com/openai/v1/",
        model="llama-3.1-8b-instant",
        api_key="gsk-test",
        quota_per_day=1000,
        timeout_seconds=15.0
    )


@pytest.fixture
def gemini_provider():
    """Create a Google generateContent provider."""
    return ProviderConfig(
        name="GoogleAI",
        base_url="https://generativelanguage.googleapis.com/v1beta",
        model="gemini-1.5-flash",
        api_key="AIza-test",
        quota_per_day=1500,
        api_format=ApiFormat.GEMINI
    )


@pytest.fixture
def mock_http():
    """Create a mock httpx client."""
    return AsyncMock(spec=httpx.AsyncClient)


def json_response(url, payload, status_code=200):
    return httpx.Response(status_code, json=payload, request=httpx.Request("POST", url))


class TestPromptConstruction:
    """Test cases for create_prompt."""

    def test_prompt_contains_question_and_focus(self, mock_http):
        """Test the prompt folds in the intent focus line."""
        client = ProviderClient(mock_http)
        prompt = client.create_prompt(Category.NUTRITION, "What should I eat before running?")

        assert "fitness coach" in prompt
        assert "User question: What should I eat before running?" in prompt
        assert "nutrition science" in prompt

    def test_each_intent_has_focus(self, mock_http):
        """Test every category produces a distinct focus line."""
        client = ProviderClient(mock_http)
        prompts = {client.create_prompt(category, "q") for category in Category}

        assert len(prompts) == len(Category)


class TestOpenAIDialect:
    """Test cases for the OpenAI-compatible dialect."""

    @pytest.mark.asyncio
    async def test_successful_completion(self, mock_http, openai_provider):
        """Test request shape and reply extraction."""
        mock_http.post.return_value = json_response(
            OPENAI_URL,
            {"choices": [{"message": {"content": "Do 3 sets of 8."}}]}
        )
        client = ProviderClient(mock_http, max_tokens=500)

        reply = await client.complete(openai_provider, "prompt text", "user-42")

        assert reply == "Do 3 sets of 8."
        args, kwargs = mock_http.post.call_args
        assert args[0] == OPENAI_URL
        assert kwargs['headers']['Authorization'] == "Bearer gsk-test"
        assert kwargs['json'] == {
            "model": "llama-3.1-8b-instant",
            "messages": [{"role": "user", "content": "prompt text"}],
            "max_tokens": 500,
            "temperature": 0.7,
            "user": "user-42",
        }
        assert kwargs['timeout'] == 15.0

    @pytest.mark.asyncio
    async def test_http_error_status(self, mock_http, openai_provider):
        """Test non-success status maps to provider_http_<status>."""
        mock_http.post.return_value = json_response(OPENAI_URL, {"error": "busy"}, status_code=503)
        client = ProviderClient(mock_http)

        with pytest.raises(ProviderError) as exc_info:
            await client.complete(openai_provider, "prompt")

        assert exc_info.value.error_code == "provider_http_503"

    @pytest.mark.asyncio
    async def test_timeout(self, mock_http, openai_provider):
        """Test timeouts map to provider_timeout."""
        mock_http.post.side_effect = httpx.ReadTimeout("timed out")
        client = ProviderClient(mock_http)

        with pytest.raises(ProviderError) as exc_info:
            await client.complete(openai_provider, "prompt")

        assert exc_info.value.error_code == "provider_timeout"

    @pytest.mark.asyncio
    async def test_transport_error(self, mock_http, openai_provider):
        """Test connection failures map to provider_transport."""
        mock_http.post.side_effect = httpx.ConnectError("connection refused")
        client = ProviderClient(mock_http)

        with pytest.raises(ProviderError) as exc_info:
            await client.complete(openai_provider, "prompt")

        assert exc_info.value.error_code == "provider_transport"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {},
        {"choices": []},
        {"choices": [{"message": {"content": "   "}}]},
        {"choices": [{"message": {"content": None}}]},
    ])
    async def test_bad_response_shape(self, mock_http, openai_provider, payload):
        """Test malformed bodies map to provider_bad_response."""
        mock_http.post.return_value = json_response(OPENAI_URL, payload)
        client = ProviderClient(mock_http)

        with pytest.raises(ProviderError) as exc_info:
            await client.complete(openai_provider, "prompt")

        assert exc_info.value.error_code == "provider_bad_response"

    @pytest.mark.asyncio
    async def test_invalid_json(self, mock_http, openai_provider):
        """Test non-JSON bodies map to provider_bad_response."""
        mock_http.post.return_value = httpx.Response(
            200, content=b"<html>oops</html>", request=httpx.Request("POST", OPENAI_URL)
        )
        client = ProviderClient(mock_http)

        with pytest.raises(ProviderError) as exc_info:
            await client.complete(openai_provider, "prompt")

        assert exc_info.value.error_code == "provider_bad_response"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, mock_http, openai_provider):
        """Test cancelling the caller is not turned into a ProviderError."""
        mock_http.post.side_effect = asyncio.CancelledError()
        client = ProviderClient(mock_http)

        with pytest.raises(asyncio.CancelledError):
            await client.complete(openai_provider, "prompt")


class TestGeminiDialect:
    """Test cases for the Google generateContent dialect."""

    @pytest.mark.asyncio
    async def test_successful_completion(self, mock_http, gemini_provider):
        """Test request shape and reply extraction."""
        mock_http.post.return_value = json_response(
            GEMINI_URL,
            {"candidates": [{"content": {"parts": [{"text": "Drink water."}]}}]}
        )
        client = ProviderClient(mock_http, max_tokens=256)

        reply = await client.complete(gemini_provider, "prompt text")

        assert reply == "Drink water."
        args, kwargs = mock_http.post.call_args
        assert args[0] == GEMINI_URL
        assert kwargs['headers']['x-goog-api-key'] == "AIza-test"
        assert "Authorization" not in kwargs['headers']
        assert kwargs['json']['contents'] == [{"parts": [{"text": "prompt text"}]}]
        assert kwargs['json']['generationConfig']['maxOutputTokens'] == 256

    @pytest.mark.asyncio
    async def test_bad_response_shape(self, mock_http, gemini_provider):
        """Test a missing candidates list maps to provider_bad_response."""
        mock_http.post.return_value = json_response(GEMINI_URL, {"promptFeedback": {}})
        client = ProviderClient(mock_http)

        with pytest.raises(ProviderError) as exc_info:
            await client.complete(gemini_provider, "prompt")

        assert exc_info.value.error_code == "provider_bad_response"


class TestClientLifecycle:
    """Test cases for closing the HTTP client."""

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self, mock_http):
        """Test a shared client is left open."""
        client = ProviderClient(mock_http)
        await client.aclose()

        mock_http.aclose.assert_not_called()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        """Test a client created internally is closed."""
        client = ProviderClient()
        await client.aclose()

        assert client._client.is_closed
