"""Wrapper around the Anthropic Claude SDK."""

from __future__ import annotations

import logging

from anthropic import APIStatusError, Anthropic, AuthenticationError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from pundit.config import Settings

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL_TYPE = "web_search_20250305"


def _is_retryable(exc: BaseException) -> bool:
    """Return True only for transient API errors (rate-limits, server errors).

    Authentication errors (401) and bad-request errors (400) should NOT be
    retried; they fail the same way until the config changes.
    """
    if isinstance(exc, AuthenticationError):
        return False
    if isinstance(exc, APIStatusError) and exc.status_code < 500:
        # 4xx errors other than 429 (rate limit) are not retryable
        return exc.status_code == 429
    return True


class ClaudeClient:
    """Thin wrapper providing retry logic, token tracking and web search."""

    def __init__(self, settings: Settings) -> None:
        self._client = Anthropic(api_key=settings.anthropic_api_key)
        self._model = settings.model
        self._max_tokens = settings.max_tokens
        self._temperature = settings.temperature
        self._web_search_enabled = settings.web_search_enabled
        self._web_search_max_uses = settings.web_search_max_uses
        self._total_input_tokens = 0
        self._total_output_tokens = 0

    @retry(
        retry=retry_if_exception(_is_retryable),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
    )
    def generate(
        self,
        system: str,
        messages: list[dict],
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        web_search: bool = False,
    ) -> str:
        """Send a message to Claude and return the text response.

        With ``web_search`` the web search server tool is offered to the
        model (when enabled in settings). The reply then interleaves search
        blocks with text blocks; only the text is returned.
        """
        kwargs: dict = {
            "model": self._model,
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": temperature if temperature is not None else self._temperature,
            "system": system,
            "messages": messages,
        }
        if web_search and self._web_search_enabled:
            kwargs["tools"] = [self.web_search_tool]

        response = self._client.messages.create(**kwargs)
        self._total_input_tokens += response.usage.input_tokens
        self._total_output_tokens += response.usage.output_tokens
        logger.debug(
            "claude %s: %d in / %d out tokens",
            self._model,
            response.usage.input_tokens,
            response.usage.output_tokens,
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )

    @property
    def web_search_tool(self) -> dict:
        return {
            "type": WEB_SEARCH_TOOL_TYPE,
            "name": "web_search",
            "max_uses": self._web_search_max_uses,
        }

    @property
    def usage_summary(self) -> dict:
        return {
            "total_input_tokens": self._total_input_tokens,
            "total_output_tokens": self._total_output_tokens,
        }
