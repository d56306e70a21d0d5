# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Run configuration and credential lookup."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from refactor_prompt.analyzer import DEFAULT_BATCH_DELAY_SECONDS, DEFAULT_BATCH_SIZE
from refactor_prompt.cache import DEFAULT_CACHE_TTL_SECONDS
from refactor_prompt.generator import OutputMode
from refactor_prompt.llm.openai_client import DEEPSEEK_BASE_URL, DEEPSEEK_CHAT_MODEL

logger = logging.getLogger(__name__)

ProviderName = Literal["openai", "ollama"]
PROVIDERS: tuple[ProviderName, ...] = ("openai", "ollama")

API_KEY_ENV_VAR: str = "REFACTOR_PROMPT_API_KEY"
DEFAULT_API_KEY_FILE: Path = Path("~/.config/deepseek.token")


@dataclass(frozen=True)
class RunConfig:
    """Describe all settings for one tool run.

    Attributes:
        file_path: Source file to analyze.
        custom_prompt: Optional additional analysis requirements.
        provider: Chat provider backend.
        provider_url: Provider endpoint URL or alias.
        model: Provider model identifier.
        batch_size: Functions analyzed concurrently per batch.
        batch_delay: Seconds waited between batches.
        cache_ttl: Response cache lifetime in seconds; ``0`` disables caching.
        mode: Refactor file output mode.
        api_key_file: File holding the provider API key.
    """

    file_path: Path
    custom_prompt: str | None = None
    provider: ProviderName = "openai"
    provider_url: str = DEEPSEEK_BASE_URL
    model: str = DEEPSEEK_CHAT_MODEL
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay: float = DEFAULT_BATCH_DELAY_SECONDS
    cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS
    mode: OutputMode = "consolidated"
    api_key_file: Path = DEFAULT_API_KEY_FILE


def load_api_key(key_file: Path = DEFAULT_API_KEY_FILE) -> str | None:
    """Resolve the provider API key.

    The ``REFACTOR_PROMPT_API_KEY`` environment variable wins over the key file.

    Args:
        key_file: File whose stripped content is the key.

    Returns:
        API key, or ``None`` when neither source provides one.
    """
    from_env = os.environ.get(API_KEY_ENV_VAR, "").strip()
    if from_env:
        return from_env
    path = key_file.expanduser()
    try:
        key = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        logger.debug(f"API key file not found (key_file={path})")
        return None
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(f"API key file could not be read (key_file={path} error={exc})")
        return None
    return key or None
