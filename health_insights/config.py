from __future__ import annotations

import os
from dataclasses import dataclass


def _env_str(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def _env_float(name: str, default: float | None) -> float | None:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    provider: str = "groq"
    max_retries: int = 3
    initial_backoff_seconds: float = 1.0
    deadline_seconds: float | None = None
    cache_max_entries: int = 512
    answer_ttl_seconds: int = 5 * 60
    visualization_ttl_seconds: int = 10 * 60
    auto_visualization_ttl_seconds: int = 30 * 60
    summary_ttl_seconds: int = 30 * 60
    auto_visualization_limit: int = 3
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            provider=_env_str("AI_PROVIDER", "groq").lower(),
            max_retries=_env_int("LLM_MAX_RETRIES", 3),
            initial_backoff_seconds=_env_float("LLM_INITIAL_BACKOFF_SECONDS", 1.0) or 1.0,
            deadline_seconds=_env_float("LLM_DEADLINE_SECONDS", None),
            cache_max_entries=_env_int("CACHE_MAX_ENTRIES", 512),
            answer_ttl_seconds=_env_int("ANSWER_CACHE_TTL_SECONDS", 5 * 60),
            visualization_ttl_seconds=_env_int("VISUALIZATION_CACHE_TTL_SECONDS", 10 * 60),
            auto_visualization_ttl_seconds=_env_int("AUTO_VISUALIZATION_CACHE_TTL_SECONDS", 30 * 60),
            summary_ttl_seconds=_env_int("SUMMARY_CACHE_TTL_SECONDS", 30 * 60),
            auto_visualization_limit=_env_int("AUTO_VISUALIZATION_LIMIT", 3),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        )
