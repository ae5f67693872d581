"""
Tests for the baseline cache: in-memory TTL store and Redis store (client mocked).
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
import redis

from backend_shadowstack.analysis_engine.models import Baseline
from backend_shadowstack.baseline_store import (
    BASELINE_TTL_SEC,
    InMemoryBaselineStore,
    RedisBaselineStore,
    baseline_key,
)
from backend_shadowstack.core.exceptions import InfrastructureError

from conftest import OTHER_WALLET, WALLET


def _baseline(avg: float = 0.125, wallet: str = WALLET) -> Baseline:
    return Baseline(
        wallet_address=wallet,
        avg_amount=avg,
        max_amount=0.2,
        min_amount=0.05,
        total_tx_count=4,
        hourly_pattern={9: 3, 21: 1},
        computed_at=1_700_000_000,
    )


def test_key_scheme():
    assert baseline_key("0xABC") == "baseline:0xABC"
    assert BASELINE_TTL_SEC == 604800


# --- In-memory ---


def test_memory_put_get(baseline_store):
    assert baseline_store.get(WALLET) is None
    baseline_store.put(WALLET, _baseline())
    got = baseline_store.get(WALLET)
    assert got == _baseline()
    assert got.hourly_pattern == {9: 3, 21: 1}
    assert baseline_store.get(OTHER_WALLET) is None


def test_memory_last_writer_wins(baseline_store):
    baseline_store.put(WALLET, _baseline(avg=0.1))
    baseline_store.put(WALLET, _baseline(avg=0.15))
    assert baseline_store.get(WALLET).avg_amount == 0.15
    assert len(baseline_store) == 1


def test_memory_entry_expires_after_seven_days(baseline_store, clock):
    """Entry readable just before TTL, gone at TTL."""
    baseline_store.put(WALLET, _baseline())
    clock.advance(BASELINE_TTL_SEC - 1)
    assert baseline_store.get(WALLET) is not None
    clock.advance(1)
    assert baseline_store.get(WALLET) is None
    assert len(baseline_store) == 0


def test_memory_rewrite_refreshes_ttl(baseline_store, clock):
    baseline_store.put(WALLET, _baseline())
    clock.advance(BASELINE_TTL_SEC - 10)
    baseline_store.put(WALLET, _baseline(avg=0.2))
    clock.advance(100)
    assert baseline_store.get(WALLET).avg_amount == 0.2


def test_memory_get_returns_copy(baseline_store):
    stored = _baseline()
    baseline_store.put(WALLET, stored)
    stored.avg_amount = 99.0
    assert baseline_store.get(WALLET).avg_amount == 0.125


# --- Redis (client mocked) ---


def test_redis_put_uses_setex_with_ttl():
    client = MagicMock()
    store = RedisBaselineStore(client)
    store.put("0xABC", _baseline(wallet="0xABC"))
    client.setex.assert_called_once()
    key, ttl, payload = client.setex.call_args.args
    assert key == "baseline:0xABC"
    assert ttl == 604800
    assert json.loads(payload)["avg_amount"] == 0.125
    assert json.loads(payload)["hourly_pattern"] == {"9": 3, "21": 1}


def test_redis_get_decodes_bytes():
    client = MagicMock()
    client.get.return_value = json.dumps(_baseline().to_dict()).encode("utf-8")
    store = RedisBaselineStore(client)
    assert store.get(WALLET) == _baseline()
    client.get.assert_called_once_with(f"baseline:{WALLET}")


def test_redis_get_missing_is_none():
    client = MagicMock()
    client.get.return_value = None
    assert RedisBaselineStore(client).get(WALLET) is None


def test_redis_errors_become_infrastructure_errors():
    client = MagicMock()
    client.get.side_effect = redis.exceptions.ConnectionError("refused")
    client.setex.side_effect = redis.exceptions.TimeoutError("slow")
    store = RedisBaselineStore(client)
    with pytest.raises(InfrastructureError):
        store.get(WALLET)
    with pytest.raises(InfrastructureError):
        store.put(WALLET, _baseline())


def test_redis_corrupt_payload_is_infrastructure_error():
    client = MagicMock()
    client.get.return_value = b"{not json"
    with pytest.raises(InfrastructureError):
        RedisBaselineStore(client).get(WALLET)
