# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Chat client for an Ollama provider endpoint."""

import logging
from collections.abc import Iterator

import ollama

from refactor_prompt.llm_client import ChatError, ChatMessage

logger = logging.getLogger(__name__)

_REQUEST_ERRORS = (ollama.RequestError, ollama.ResponseError, OSError, ValueError)


class OllamaChatClient:
    """Run chat requests against an Ollama endpoint."""

    def __init__(self, provider_url: str, model: str) -> None:
        """Initialize client configuration.

        Args:
            provider_url: Ollama endpoint base URL.
            model: Model identifier passed to Ollama.
        """
        self._provider_url = provider_url
        self._model = model
        self._client = ollama.Client(host=provider_url)

    def chat(self, messages: list[ChatMessage], stream: bool = True) -> Iterator[str] | str:
        """Send messages with the Ollama chat API.

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
        try:
            response = self._client.chat(
                model=self._model, messages=messages, stream=False
            )
        except _REQUEST_ERRORS as exc:
            logger.warning(
                f"Ollama chat request failed (provider_url={self._provider_url} "
                f"model={self._model} error={exc})"
            )
            raise ChatError(str(exc)) from exc

        content = _extract_message_content(response)
        if not content:
            logger.warning(
                f"Ollama response did not contain message content "
                f"(provider_url={self._provider_url} model={self._model} response={response!r})"
            )
            raise ChatError("Ollama response does not contain message content.")
        return content

    def _stream(self, messages: list[ChatMessage]) -> Iterator[str]:
        try:
            for chunk in self._client.chat(
                model=self._model, messages=messages, stream=True
            ):
                content = _extract_message_content(chunk, strip=False)
                if content:
                    yield content
        except _REQUEST_ERRORS as exc:
            logger.warning(
                f"Ollama chat stream failed (provider_url={self._provider_url} "
                f"model={self._model} error={exc})"
            )
            raise ChatError(str(exc)) from exc


def _extract_message_content(response: object, strip: bool = True) -> str:
    """Extract message content from an Ollama chat response.

    Args:
        response: Ollama response object or one streamed chunk, typically mapping-like.
        strip: Whether to strip surrounding whitespace.

    Returns:
        Response content string, or empty string if unavailable.
    """
    if isinstance(response, dict):
        message = response.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
    else:
        message = getattr(response, "message", None)
        content = getattr(message, "content", None)
    if not isinstance(content, str):
        return ""
    return content.strip() if strip else content
