# Per-wallet baseline cache with a fixed 7-day expiry.
# Redis in production; in-process TTL map when no REDIS_URL is configured.

from backend_shadowstack.baseline_store.store import (
    BASELINE_TTL_SEC,
    BaselineStore,
    InMemoryBaselineStore,
    RedisBaselineStore,
    baseline_key,
)

__all__ = [
    "BASELINE_TTL_SEC",
    "BaselineStore",
    "InMemoryBaselineStore",
    "RedisBaselineStore",
    "baseline_key",
]
