"""Claude API wrapper with async support."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import anthropic

from career_pilot.errors import BackendError, ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-haiku-4-5-20251001"


@dataclass
class LLMResponse:
    """Response from the LLM including usage metadata."""

    text: str
    input_tokens: int
    output_tokens: int


class LLMClient:
    """Async Claude API client.

    The SDK client is created lazily so a missing API key surfaces as a
    ConfigurationError on the first generation attempt, before any request
    is issued, rather than when the app starts.
    """

    def __init__(self, api_key: str | None = None, timeout: float | None = None):
        self.api_key = api_key
        self.timeout = timeout
        self._client: anthropic.AsyncAnthropic | None = None
        self._token_log: list[tuple[str, int, int]] = []  # (model, input_tokens, output_tokens)

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            key = self.api_key or os.environ.get("ANTHROPIC_API_KEY")
            if not key:
                raise ConfigurationError(
                    "Anthropic API key is not configured. "
                    "Please add ANTHROPIC_API_KEY to your .env file."
                )
            kwargs: dict = {"api_key": key}
            if self.timeout is not None:
                kwargs["timeout"] = self.timeout
            # Retries are disabled: a failed call goes straight back to the user.
            self._client = anthropic.AsyncAnthropic(max_retries=0, **kwargs)
        return self._client

    async def generate(
        self,
        prompt: str,
        system: str = "",
        model: str = DEFAULT_MODEL,
        temperature: float = 0.0,
        max_tokens: int = 4096,
    ) -> LLMResponse:
        """Send a prompt to Claude and return the text response with usage."""
        client = self.client
        kwargs: dict = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        logger.debug("LLM call: model=%s", model)
        try:
            message = await client.messages.create(**kwargs)
        except anthropic.APIError as e:
            logger.error("LLM call failed", exc_info=True)
            raise BackendError(f"AI service request failed: {e}") from e

        if not message.content:
            raise BackendError("AI service returned an empty response")

        input_tokens = message.usage.input_tokens
        output_tokens = message.usage.output_tokens
        logger.debug("LLM response: %d input, %d output tokens", input_tokens, output_tokens)
        self._token_log.append((model, input_tokens, output_tokens))
        return LLMResponse(
            text=message.content[0].text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    def get_token_summary(self) -> dict:
        """Return accumulated token usage and reset the log."""
        summary = {
            "input": sum(t[1] for t in self._token_log),
            "output": sum(t[2] for t in self._token_log),
            "calls": list(self._token_log),
        }
        self._token_log.clear()
        return summary
