"""Uniform chat / JSON completion over a remote model provider.

The gateway is retry-agnostic: callers wrap gateway calls in
``counsel_ai.resilience.retry.execute`` when (and how) they want retries.
Crisis detection, for example, deliberately calls it without retry.
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from counsel_ai.ai.config import GatewayConfig, ModelTier
from counsel_ai.ai.errors import EmptyResponseError
from counsel_ai.ai.json_extract import parse_json_response
from counsel_ai.ai.provider import (
    ChatMessage,
    CompletionProvider,
    CompletionResponse,
    CompletionUsage,
)

logger = structlog.get_logger()

JSON_ONLY_INSTRUCTION = (
    "You MUST respond with valid JSON only. No other text before or after the JSON."
)

UsageCallback = Callable[[str, str, CompletionUsage], Awaitable[None]]


def _split_system(messages: list[ChatMessage]) -> tuple[str | None, list[ChatMessage]]:
    """Fold the first system message out of the conversation."""
    system = next((m["content"] for m in messages if m["role"] == "system"), None)
    rest = [m for m in messages if m["role"] != "system"]
    return system, rest


class ModelGateway:
    """Chat and JSON-mode completions addressed by model tier."""

    def __init__(
        self,
        provider: CompletionProvider,
        config: GatewayConfig | None = None,
        usage_callback: UsageCallback | None = None,
    ) -> None:
        self.provider = provider
        self.config = config or GatewayConfig()
        self.usage_callback = usage_callback

    async def _invoke(
        self,
        tier: ModelTier | str,
        messages: list[ChatMessage],
        system: str | None,
        max_tokens: int | None,
        temperature: float | None,
        top_p: float | None,
        operation: str,
    ) -> str:
        model_id = self.config.model_for(tier)
        response: CompletionResponse = await self.provider.invoke(
            model_id,
            messages,
            max_tokens=max_tokens or self.config.default_max_tokens,
            temperature=temperature,
            top_p=top_p,
            system=system,
        )

        logger.debug(
            "model_call_complete",
            operation=operation,
            model=model_id,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        await self._record_usage(operation, model_id, response.usage)

        if not response.text_blocks:
            raise EmptyResponseError(model_id)
        return response.text_blocks[0]

    async def _record_usage(
        self, operation: str, model_id: str, usage: CompletionUsage
    ) -> None:
        if self.usage_callback is None:
            return
        try:
            await self.usage_callback(operation, model_id, usage)
        except Exception as e:
            # Accounting must never fail the model call itself
            logger.warning("usage_record_failed", operation=operation, error=str(e))

    async def chat_completion(
        self,
        tier: ModelTier | str,
        messages: list[ChatMessage],
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
        operation: str = "chat",
    ) -> str:
        """Return the first text block of the model's reply.

        Raises:
            EmptyResponseError: if the reply carries no text block.
            ProviderError: on transport or provider failure.
        """
        system, conversation = _split_system(messages)
        return await self._invoke(
            tier, conversation, system, max_tokens, temperature, top_p, operation
        )

    async def json_completion(
        self,
        tier: ModelTier | str,
        messages: list[ChatMessage],
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
        operation: str = "json",
    ) -> Any:
        """Ask for a JSON-only reply and return the parsed value.

        Temperature defaults to 0 unless given.

        Raises:
            InvalidJsonResponseError: if no valid JSON can be extracted.
            EmptyResponseError: if the reply carries no text block.
            ProviderError: on transport or provider failure.
        """
        system, conversation = _split_system(messages)
        system = f"{system}\n\nIMPORTANT: {JSON_ONLY_INSTRUCTION}" if system else JSON_ONLY_INSTRUCTION

        text = await self._invoke(
            tier,
            conversation,
            system,
            max_tokens,
            0 if temperature is None else temperature,
            top_p,
            operation,
        )
        return parse_json_response(text)
