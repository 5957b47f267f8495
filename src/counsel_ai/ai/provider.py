"""Completion provider interface and its Gemini binding.

The provider is the only place that knows the remote API. It maps
chat-style messages onto the SDK, enforces the transport timeout, and
translates SDK failures into the ``ProviderError`` family so callers
can classify them without importing the SDK.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol, TypedDict

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from counsel_ai.ai.errors import (
    MalformedResponseError,
    ProviderConnectionError,
    ProviderError,
    ProviderRequestError,
    ProviderServerError,
    ProviderTimeoutError,
    RateLimitedError,
)


class ChatMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


@dataclass
class CompletionUsage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class CompletionResponse:
    """Provider-neutral completion result."""

    text_blocks: list[str]
    model: str
    usage: CompletionUsage = field(default_factory=CompletionUsage)
    stop_reason: str | None = None


class CompletionProvider(Protocol):
    async def invoke(
        self,
        model_id: str,
        messages: list[ChatMessage],
        *,
        max_tokens: int,
        temperature: float | None = None,
        top_p: float | None = None,
        system: str | None = None,
    ) -> CompletionResponse: ...


def create_client(api_key: str, timeout_seconds: float) -> genai.Client:
    """Create a Gemini API client with a transport-level request timeout.

    Args:
        api_key: Google AI Studio API key.
        timeout_seconds: Per-request timeout; the SDK expects milliseconds.

    Returns:
        Configured genai.Client instance.
    """
    return genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
    )


def translate_api_error(error: genai_errors.APIError) -> ProviderError:
    """Map an SDK API error onto the provider error family by HTTP status."""
    status = error.code
    message = error.message or str(error)
    if status == 429:
        return RateLimitedError(message)
    if status is not None and status >= 500:
        return ProviderServerError(message, status_code=status)
    return ProviderRequestError(message, status_code=status)


class GeminiProvider:
    """``CompletionProvider`` backed by the google-genai async client."""

    def __init__(self, client: genai.Client) -> None:
        self._client = client

    async def invoke(
        self,
        model_id: str,
        messages: list[ChatMessage],
        *,
        max_tokens: int,
        temperature: float | None = None,
        top_p: float | None = None,
        system: str | None = None,
    ) -> CompletionResponse:
        contents = [
            types.Content(
                role="model" if m["role"] == "assistant" else "user",
                parts=[types.Part(text=m["content"])],
            )
            for m in messages
            if m["role"] != "system"
        ]
        config = types.GenerateContentConfig(
            system_instruction=system,
            temperature=temperature,
            top_p=top_p,
            max_output_tokens=max_tokens,
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=model_id,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            raise translate_api_error(e) from e
        except (httpx.TimeoutException, TimeoutError) as e:
            raise ProviderTimeoutError(f"Provider request timeout: {e}") from e
        except httpx.ConnectError as e:
            raise ProviderConnectionError(str(e), code="ECONNREFUSED") from e
        except httpx.TransportError as e:
            raise ProviderConnectionError(str(e)) from e

        if response.candidates is None:
            raise MalformedResponseError(f"Response from {model_id} has no candidates")

        candidate = response.candidates[0] if response.candidates else None
        parts = (candidate.content.parts if candidate and candidate.content else None) or []
        text_blocks = [p.text for p in parts if p.text]

        usage = response.usage_metadata
        return CompletionResponse(
            text_blocks=text_blocks,
            model=model_id,
            usage=CompletionUsage(
                input_tokens=getattr(usage, "prompt_token_count", 0) or 0,
                output_tokens=getattr(usage, "candidates_token_count", 0) or 0,
            ),
            stop_reason=str(candidate.finish_reason) if candidate and candidate.finish_reason else None,
        )
