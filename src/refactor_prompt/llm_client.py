# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Chat client abstractions."""

import logging
from collections.abc import Iterable
from typing import Literal, Protocol, TypedDict

logger = logging.getLogger(__name__)

ChatRole = Literal["system", "user", "assistant"]


class ChatMessage(TypedDict):
    """One role/content message of a chat exchange."""

    role: ChatRole
    content: str


class ChatError(RuntimeError):
    """Represent a chat request failure."""


class ChatClient(Protocol):
    """Define chat completion behavior for a provider client."""

    def chat(self, messages: list[ChatMessage], stream: bool = True) -> Iterable[str] | str:
        """Send a message exchange to the model.

        Args:
            messages: Ordered role/content messages.
            stream: Whether to yield text fragments as they arrive.

        Returns:
            A lazy, finite iterable of text fragments when streaming, otherwise
            the complete response text.

        Raises:
            ChatError: If the request fails or the response is malformed.
        """
