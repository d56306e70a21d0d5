# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Chat client for OpenAI-compatible endpoints."""

import logging
from collections.abc import Iterator
from urllib.parse import urlparse

from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    InternalServerError,
    NotFoundError,
    OpenAI,
    OpenAIError,
    PermissionDeniedError,
    RateLimitError,
)

from refactor_prompt.llm_client import ChatError, ChatMessage

logger = logging.getLogger(__name__)

DEEPSEEK_CHAT_MODEL: str = "deepseek-chat"
DEEPSEEK_BASE_URL: str = "https://api.deepseek.com"
OPENAI_DEFAULT_BASE_URL: str = "https://api.openai.com/v1"

_REQUEST_ERRORS = (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    InternalServerError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    AttributeError,
    OSError,
    ValueError,
)


class OpenAIChatClient:
    """Run chat completions against an OpenAI-compatible API."""

    def __init__(
        self,
        provider_url: str = DEEPSEEK_BASE_URL,
        model: str = DEEPSEEK_CHAT_MODEL,
        api_key: str | None = None,
        temperature: float = 1.0,
        max_tokens: int = 8192,
    ) -> None:
        """Initialize client configuration.

        Args:
            provider_url: Endpoint base URL or a known provider alias.
            model: Model identifier used for completions.
            api_key: API key; the SDK environment lookup applies when ``None``.
            temperature: Sampling temperature.
            max_tokens: Upper bound on generated tokens per request.
        """
        self._provider_url = provider_url
        self._model = model
        self._api_key = api_key
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client: OpenAI | None = None

    def chat(self, messages: list[ChatMessage], stream: bool = True) -> Iterator[str] | str:
        """Send messages to the chat completions API.

        Args:
            messages: Ordered role/content messages.
            stream: Whether to return a lazy iterator of content fragments.

        Returns:
            Iterator of text fragments when streaming, else the full response text.

        Raises:
            ChatError: If the request fails or the response has no content.
        """
        if stream:
            return self._stream(messages)

        client = self._get_client()
        try:
            completion = client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except _REQUEST_ERRORS as exc:
            logger.warning(
                f"Chat request failed (provider_url={self._provider_url} "
                f"model={self._model} error={exc})"
            )
            raise ChatError(str(exc)) from exc

        content = _extract_message_content(completion)
        if not content:
            logger.warning(
                f"Chat response did not contain content "
                f"(provider_url={self._provider_url} model={self._model} response={completion!r})"
            )
            raise ChatError("Chat response does not contain message content.")
        return content

    def _stream(self, messages: list[ChatMessage]) -> Iterator[str]:
        """Yield content fragments of a streamed completion.

        Raises:
            ChatError: If the request or the stream fails.
        """
        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                stream=True,
            )
            for chunk in response:
                content = _extract_delta_content(chunk)
                if content:
                    yield content
        except _REQUEST_ERRORS as exc:
            logger.warning(
                f"Chat stream failed (provider_url={self._provider_url} "
                f"model={self._model} error={exc})"
            )
            raise ChatError(str(exc)) from exc

    def _get_client(self) -> OpenAI:
        """Get or initialize OpenAI SDK client.

        Returns:
            Initialized OpenAI SDK client.

        Raises:
            ChatError: If client initialization fails.
        """
        if self._client is not None:
            return self._client
        try:
            self._client = OpenAI(
                base_url=normalize_provider_url(self._provider_url),
                api_key=self._api_key,
            )
        except (OpenAIError, OSError, ValueError) as exc:
            logger.warning(
                f"OpenAI client initialization failed (provider_url={self._provider_url} "
                f"model={self._model} error={exc})"
            )
            raise ChatError(str(exc)) from exc
        return self._client


def normalize_provider_url(provider_url: str) -> str:
    """Normalize a provider URL or alias to a valid base URL.

    Args:
        provider_url: User-provided provider URL or alias.

    Returns:
        Normalized base URL suitable for the OpenAI Python client.

    Raises:
        ValueError: If provider URL is invalid.
    """
    normalized_raw = provider_url.strip()
    if not normalized_raw:
        raise ValueError("Invalid provider URL: value is empty.")

    lowered_raw = normalized_raw.lower().rstrip("/")
    if lowered_raw in {"openai", "openai.com", "www.openai.com", "api.openai.com"}:
        return OPENAI_DEFAULT_BASE_URL
    if lowered_raw in {"deepseek", "deepseek.com", "api.deepseek.com"}:
        return DEEPSEEK_BASE_URL

    candidate = normalized_raw
    if "://" not in candidate:
        candidate = f"https://{candidate}"

    parsed = urlparse(candidate)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(
            f"Invalid provider URL: expected host URL, got '{provider_url}'."
        )

    host = parsed.netloc.lower()
    if host in {"openai.com", "www.openai.com", "api.openai.com"} and parsed.path in {"", "/"}:
        return OPENAI_DEFAULT_BASE_URL

    return candidate.rstrip("/")


def _extract_delta_content(chunk: object) -> str:
    """Extract the content fragment of one streamed chunk."""
    choices = getattr(chunk, "choices", None)
    if not choices:
        return ""
    delta = getattr(choices[0], "delta", None)
    content = getattr(delta, "content", None)
    return content if isinstance(content, str) else ""


def _extract_message_content(completion: object) -> str:
    """Extract the message content of a non-streamed completion."""
    if isinstance(completion, dict):
        choices = completion.get("choices") or []
        if choices:
            content = choices[0].get("message", {}).get("content")
            if isinstance(content, str):
                return content.strip()
        return ""
    choices = getattr(completion, "choices", None)
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    return content.strip() if isinstance(content, str) else ""
