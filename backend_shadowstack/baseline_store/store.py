"""
Baseline cache: per-wallet Baseline under "baseline:<wallet_address>" with a 7-day TTL.

Writes overwrite unconditionally (last writer wins); expiry is the only way
an entry goes away. get() returns None for a missing or expired entry and
raises InfrastructureError when the cache itself fails, so callers can tell
"no baseline" apart from "cache down" in logs.
"""

from __future__ import annotations

import json
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

import redis

from backend_shadowstack.analysis_engine.models import Baseline
from backend_shadowstack.core.exceptions import InfrastructureError
from backend_shadowstack.shadowstack_logging import get_logger

logger = get_logger(__name__)

BASELINE_KEY_PREFIX = "baseline:"
BASELINE_TTL_SEC = 7 * 24 * 60 * 60  # 604800


def baseline_key(wallet_address: str) -> str:
    return f"{BASELINE_KEY_PREFIX}{wallet_address}"


def _encode(baseline: Baseline) -> str:
    return json.dumps(baseline.to_dict(), separators=(",", ":"))


def _decode(wallet_address: str, raw: str | bytes) -> Baseline:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        return Baseline.from_dict(json.loads(raw))
    except (ValueError, KeyError, TypeError) as e:
        logger.error("baseline_cache_corrupt", wallet_id=wallet_address, error=str(e))
        raise InfrastructureError(f"corrupt baseline entry for {wallet_address}") from e


class BaselineStore(ABC):
    """Abstract TTL store for baselines; implement for Redis or in-process use."""

    ttl_sec: int = BASELINE_TTL_SEC

    @abstractmethod
    def put(self, wallet_address: str, baseline: Baseline) -> None:
        """Store baseline for wallet_address with ttl_sec expiry, replacing any prior entry."""
        ...

    @abstractmethod
    def get(self, wallet_address: str) -> Baseline | None:
        """Return the stored baseline if present and unexpired, else None."""
        ...


class RedisBaselineStore(BaselineStore):
    """Redis implementation (SETEX / GET); JSON payload."""

    def __init__(self, client: Any, *, ttl_sec: int = BASELINE_TTL_SEC) -> None:
        self._client = client
        self.ttl_sec = ttl_sec

    @classmethod
    def from_url(cls, url: str, *, ttl_sec: int = BASELINE_TTL_SEC) -> RedisBaselineStore:
        return cls(redis.Redis.from_url(url, socket_timeout=5.0), ttl_sec=ttl_sec)

    def put(self, wallet_address: str, baseline: Baseline) -> None:
        key = baseline_key(wallet_address)
        try:
            self._client.setex(key, self.ttl_sec, _encode(baseline))
        except redis.RedisError as e:
            logger.error("baseline_cache_write_failed", wallet_id=wallet_address, error=str(e))
            raise InfrastructureError("baseline cache unavailable") from e
        logger.debug("baseline_cached", wallet_id=wallet_address, ttl_sec=self.ttl_sec)

    def get(self, wallet_address: str) -> Baseline | None:
        try:
            raw = self._client.get(baseline_key(wallet_address))
        except redis.RedisError as e:
            logger.error("baseline_cache_read_failed", wallet_id=wallet_address, error=str(e))
            raise InfrastructureError("baseline cache unavailable") from e
        if raw is None:
            return None
        return _decode(wallet_address, raw)


class InMemoryBaselineStore(BaselineStore):
    """
    Process-local TTL store. Entries are serialized like the Redis store so
    reads never alias a caller's Baseline object. clock is injectable for tests.
    """

    def __init__(
        self,
        *,
        ttl_sec: int = BASELINE_TTL_SEC,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_sec = ttl_sec
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}
        self._lock = threading.Lock()

    def put(self, wallet_address: str, baseline: Baseline) -> None:
        expires_at = self._clock() + self.ttl_sec
        with self._lock:
            self._entries[baseline_key(wallet_address)] = (expires_at, _encode(baseline))

    def get(self, wallet_address: str) -> Baseline | None:
        key = baseline_key(wallet_address)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, raw = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
        return _decode(wallet_address, raw)

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for expires_at, _ in self._entries.values() if now < expires_at)
