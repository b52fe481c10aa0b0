from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ProviderConfig:
    endpoint: str = os.getenv("LLM_ENDPOINT", "")
    api_key: str = os.getenv("LLM_API_KEY", "")
    chat_model: str = os.getenv("LLM_CHAT_MODEL", "")
    embedding_model: str = os.getenv("LLM_EMBEDDING_MODEL", "")
    timeout: float = 10.0
    max_tokens: int = 1024
    temperature: float = 0.3
    enabled: bool = _env_flag("LLM_ENABLED", True)

    @property
    def is_configured(self) -> bool:
        """All four settings present; anything partial means fallback mode."""
        return self.enabled and all(
            value.strip()
            for value in (self.endpoint, self.api_key, self.chat_model, self.embedding_model)
        )


DEFAULT_PROVIDER_CONFIG = ProviderConfig()
