# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Chat client implementations for the refactor prompt tool."""

from refactor_prompt.llm.ollama_client import OllamaChatClient
from refactor_prompt.llm.openai_client import (
    DEEPSEEK_BASE_URL,
    DEEPSEEK_CHAT_MODEL,
    OpenAIChatClient,
)

__all__ = [
    "DEEPSEEK_BASE_URL",
    "DEEPSEEK_CHAT_MODEL",
    "OllamaChatClient",
    "OpenAIChatClient",
]
