"""
External provider client for AI chat completions using httpx.

This module provides the ProviderClient class that turns a classified
message into a coach prompt and sends it to one external provider. It
speaks the OpenAI-compatible chat completions dialect and Google's
generateContent dialect, bounds every call with the provider's timeout,
and reports every failure as a ProviderError carrying a short error code.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from .models import ApiFormat, Category, ProviderConfig


logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when an external provider call fails."""

    def __init__(self, error_code: str, message: Optional[str] = None):
        super().__init__(message or error_code)
        self.error_code = error_code


SYSTEM_PERSONA = (
    "You are an expert fitness coach with deep knowledge of exercise science, "
    "nutrition, and motivation. Provide helpful, safe, and evidence-based advice. "
    "Keep responses practical and actionable. Never give medical diagnoses."
)

INTENT_FOCUS = {
    Category.EXERCISE: "Focus on exercise technique, programming, and safety.",
    Category.NUTRITION: "Focus on nutrition science and practical meal planning.",
    Category.MOTIVATION: "Provide encouraging and motivational guidance.",
    Category.PLANNING: "Help create structured workout plans and routines.",
    Category.SAFETY: "Prioritize safety and provide immediate guidance.",
    Category.GENERAL: "Provide comprehensive fitness guidance.",
}


class ProviderClient:
    """
    Async client for external chat-completion providers.

    The underlying httpx.AsyncClient is shared across requests, so
    concurrent calls do not block each other. Cancelling the awaiting task
    cancels the in-flight HTTP request.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7
    ):
        """
        Initialize the provider client.

        Args:
            http_client: Shared async HTTP client; one is created if omitted.
            max_tokens: Maximum tokens to request from the provider.
            temperature: Sampling temperature.
        """
        self._client = http_client if http_client is not None else httpx.AsyncClient()
        self._owns_client = http_client is None
        self.max_tokens = max_tokens
        self.temperature = temperature

    def create_prompt(self, intent: Category, message: str) -> str:
        """
        Fold the classified intent into a coach prompt.

        Args:
            intent: Classified message intent.
            message: Original user message.

        Returns:
            str: Prompt text.
        """
        focus = INTENT_FOCUS.get(intent, INTENT_FOCUS[Category.GENERAL])
        return f"{SYSTEM_PERSONA}\n\nUser question: {message}\n\n{focus}"

    def _build_request(
        self,
        provider: ProviderConfig,
        prompt: str,
        user_id: str
    ) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        """
        Build URL, headers and JSON body for the provider's dialect.

        Args:
            provider: Target provider.
            prompt: Prompt text.
            user_id: Caller identifier, forwarded where supported.

        Returns:
            Tuple of (url, headers, body).
        """
        base_url = provider.base_url.rstrip("/")

        if provider.api_format == ApiFormat.GEMINI:
            url = f"{base_url}/models/{provider.model}:generateContent"
            headers = {
                "Content-Type": "application/json",
                "x-goog-api-key": provider.api_key,
            }
            body = {
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {
                    "maxOutputTokens": self.max_tokens,
                    "temperature": self.temperature,
                },
            }
            return url, headers, body

        url = f"{base_url}/chat/completions"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {provider.api_key}",
        }
        body = {
            "model": provider.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "user": user_id,
        }
        return url, headers, body

    def _parse_content(self, provider: ProviderConfig, data: Dict[str, Any]) -> str:
        """
        Extract the reply text from a provider response body.

        Raises:
            ProviderError: If the body does not have the expected shape.
        """
        try:
            if provider.api_format == ApiFormat.GEMINI:
                content = data["candidates"][0]["content"]["parts"][0]["text"]
            else:
                content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("provider_bad_response", f"Unexpected response shape: {e}") from e

        if not isinstance(content, str) or not content.strip():
            raise ProviderError("provider_bad_response", "Empty response content")
        return content

    async def complete(
        self,
        provider: ProviderConfig,
        prompt: str,
        user_id: str = "default"
    ) -> str:
        """
        Send a prompt to a provider and return its reply text.

        Args:
            provider: Target provider.
            prompt: Prompt text.
            user_id: Caller identifier.

        Returns:
            str: Reply content.

        Raises:
            ProviderError: On timeout, non-success status, transport failure
                or malformed response.
        """
        url, headers, body = self._build_request(provider, prompt, user_id)

        try:
            logger.debug(f"Calling provider {provider.name}: {url}")
            response = await self._client.post(
                url,
                headers=headers,
                json=body,
                timeout=provider.timeout_seconds
            )
            response.raise_for_status()
            data = response.json()

        except httpx.TimeoutException as e:
            raise ProviderError("provider_timeout", f"{provider.name} timed out") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise ProviderError(f"provider_http_{status}", f"{provider.name} returned {status}") from e
        except httpx.HTTPError as e:
            raise ProviderError("provider_transport", f"{provider.name} transport error: {e}") from e
        except ValueError as e:
            raise ProviderError("provider_bad_response", f"{provider.name} returned invalid JSON") from e

        return self._parse_content(provider, data)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
