"""
Environment variable loading and parsing for ShadowStack.

- AI_THRESHOLD: anomaly score cutoff (default: 2.5)
- HF_TOKEN: bearer token for the text-generation endpoint (absent => fallback summaries)
- HF_MODEL_URL: inference endpoint URL
- REDIS_URL: baseline cache (absent => in-process cache)
- Loads .env from project root when available.
"""

from __future__ import annotations

import math
import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_shadowstack/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"


def load_shadowstack_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides the real environment."""
    if _ENV_PATH.is_file():
        load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str | None = None) -> str | None:
    """Return stripped env value, or default when unset or blank."""
    raw = (os.getenv(name) or "").strip()
    return raw if raw else default


def parse_finite_float(raw: str | None) -> float | None:
    """float(raw) when it is a finite number, else None (nan and inf are rejected)."""
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def env_int(name: str, default: int) -> int:
    raw = env_str(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default
