"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and .env files.
- Provide defaults for optional settings and fall back on malformed values.
- Expose typed settings (threshold, model endpoint, cache URL, DB path, etc.)
  to the composition root, which injects them into components.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from pathlib import Path

from backend_shadowstack.config.env import (
    env_int,
    env_str,
    load_shadowstack_env,
    parse_finite_float,
)
from backend_shadowstack.shadowstack_logging import get_logger

logger = get_logger(__name__)

DEFAULT_AI_THRESHOLD = 2.5
DEFAULT_HF_MODEL_URL = (
    "https://api-inference.huggingface.co/models/meta-llama/Llama-3.2-3B-Instruct"
)
DEFAULT_SUMMARY_TIMEOUT_SEC = 10.0
DEFAULT_DB_PATH = "shadowstack.db"
DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 8000


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration; read once, then passed explicitly to components."""

    ai_threshold: float = DEFAULT_AI_THRESHOLD
    hf_token: str | None = None
    """Bearer credential for the text-generation endpoint; None means fallback summaries only."""
    hf_model_url: str = DEFAULT_HF_MODEL_URL
    summary_timeout_sec: float = DEFAULT_SUMMARY_TIMEOUT_SEC
    redis_url: str | None = None
    """Baseline cache URL; None selects the in-process cache."""
    db_path: Path = Path(DEFAULT_DB_PATH)
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT

    @property
    def summaries_enabled(self) -> bool:
        return bool(self.hf_token)


def _threshold_from_env() -> float:
    """AI_THRESHOLD as a finite, non-negative float; anything else logs and uses the default."""
    raw = env_str("AI_THRESHOLD")
    if raw is None:
        return DEFAULT_AI_THRESHOLD
    threshold = parse_finite_float(raw)
    if threshold is None or threshold < 0:
        logger.warning(
            "config_invalid_threshold",
            ai_threshold=raw,
            fallback=DEFAULT_AI_THRESHOLD,
        )
        return DEFAULT_AI_THRESHOLD
    return threshold


def _timeout_from_env() -> float:
    raw = env_str("SUMMARY_TIMEOUT_SEC")
    if raw is None:
        return DEFAULT_SUMMARY_TIMEOUT_SEC
    timeout = parse_finite_float(raw)
    if timeout is None or timeout <= 0:
        logger.warning(
            "config_invalid_summary_timeout",
            summary_timeout_sec=raw,
            fallback=DEFAULT_SUMMARY_TIMEOUT_SEC,
        )
        return DEFAULT_SUMMARY_TIMEOUT_SEC
    return timeout


def load_settings() -> Settings:
    """Build Settings from the environment (and .env). Does not cache."""
    load_shadowstack_env()
    return Settings(
        ai_threshold=_threshold_from_env(),
        hf_token=env_str("HF_TOKEN"),
        hf_model_url=env_str("HF_MODEL_URL", DEFAULT_HF_MODEL_URL) or DEFAULT_HF_MODEL_URL,
        summary_timeout_sec=_timeout_from_env(),
        redis_url=env_str("REDIS_URL"),
        db_path=Path(env_str("DB_PATH", DEFAULT_DB_PATH) or DEFAULT_DB_PATH),
        api_host=env_str("API_HOST", DEFAULT_API_HOST) or DEFAULT_API_HOST,
        api_port=env_int("API_PORT", DEFAULT_API_PORT),
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the current application settings.

    Read once per process; call reset_settings_cache() to re-read (tests).
    """
    settings = load_settings()
    logger.info(
        "config_loaded",
        ai_threshold=settings.ai_threshold,
        summaries_enabled=settings.summaries_enabled,
        baseline_cache="redis" if settings.redis_url else "memory",
        db_path=str(settings.db_path),
    )
    return settings


def reset_settings_cache() -> None:
    get_settings.cache_clear()
