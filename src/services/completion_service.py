"""Chat completion client for fallback conversational replies."""

import time
from typing import Any

import httpx
import logfire

from src.config import get_settings
from src.constants import (
    COMPLETION_FALLBACK_REPLY,
    COMPLETION_MAX_TOKENS,
    COMPLETION_TEMPERATURE,
    LOGGED_RESPONSE_BODY_CHARS,
    OPENAI_CHAT_COMPLETIONS_URL,
    PLACEHOLDER_NAME,
)

SYSTEM_PROMPT_TEMPLATE = """
You are a cute, flirty but SFW Bengali-English mixed chatbot.
Style: playful, sweet, romantic hints, emojis. Never explicit or adult.
Always keep replies short (1–3 sentences) and positive.
If user asks your name, say: "আমি SweetMix Bot 💖".
User's name: {name}.
Use Bangla base with a little English spice.
"""


def build_system_prompt(name: str | None = None) -> str:
    """Render the persona preamble for a user."""
    return SYSTEM_PROMPT_TEMPLATE.format(name=name or PLACEHOLDER_NAME)


def _extract_content(data: Any) -> str | None:
    """Pull choices[0].message.content out of a completion response."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str):
        return None
    return content.strip() or None


class CompletionClient:
    """Client for an OpenAI-compatible chat completions endpoint.

    Every failure (transport error, non-2xx status, malformed body, empty
    content) resolves to a fixed fallback phrase. One attempt per call.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        url: str = OPENAI_CHAT_COMPLETIONS_URL,
        timeout: float | None = None,
    ):
        """
        Initialize the completion client.

        Args:
            api_key: Bearer token; defaults to settings.openai_api_key
            model: Model id; defaults to settings.openai_model
            url: Chat completions endpoint
            timeout: Request timeout in seconds
        """
        if api_key is None or model is None or timeout is None:
            settings = get_settings()
            api_key = api_key if api_key is not None else settings.openai_api_key
            model = model or settings.openai_model
            timeout = timeout if timeout is not None else settings.completion_timeout_seconds
        self._api_key = api_key
        self.model = model
        self.url = url
        self.timeout = timeout

    def build_request(self, text: str, name: str | None) -> dict[str, Any]:
        """Build the single-turn completion request body."""
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": build_system_prompt(name)},
                {"role": "user", "content": text},
            ],
            "max_tokens": COMPLETION_MAX_TOKENS,
            "temperature": COMPLETION_TEMPERATURE,
        }

    async def complete(self, text: str, name: str | None = None) -> str:
        """Return a reply to the user's text, or the fallback phrase."""
        start_time = time.time()
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        body = self.build_request(text, name)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, headers=headers, json=body)
        except httpx.RequestError as e:
            logfire.error(
                "Completion request error",
                model=self.model,
                error=str(e),
                error_type=type(e).__name__,
                response_time_ms=(time.time() - start_time) * 1000,
            )
            return COMPLETION_FALLBACK_REPLY

        elapsed_ms = (time.time() - start_time) * 1000

        if not response.is_success:
            logfire.error(
                "Completion request failed",
                model=self.model,
                status_code=response.status_code,
                response_body=response.text[:LOGGED_RESPONSE_BODY_CHARS],
                response_time_ms=elapsed_ms,
            )
            return COMPLETION_FALLBACK_REPLY

        try:
            data = response.json()
        except ValueError:
            data = None

        content = _extract_content(data)
        if content is None:
            logfire.warning(
                "Completion response had no usable content",
                model=self.model,
                status_code=response.status_code,
                response_time_ms=elapsed_ms,
            )
            return COMPLETION_FALLBACK_REPLY

        logfire.info(
            "Completion received",
            model=self.model,
            reply_length=len(content),
            response_time_ms=elapsed_ms,
        )
        return content


_completion_client: CompletionClient | None = None


def get_completion_client() -> CompletionClient:
    """Get the process-wide completion client."""
    global _completion_client
    if _completion_client is None:
        _completion_client = CompletionClient()
    return _completion_client


def reset_completion_client() -> None:
    """Reset the global completion client (primarily for testing)."""
    global _completion_client
    _completion_client = None
