"""
Pytest fixtures for ShadowStack tests. Uses a temporary SQLite DB, an in-memory
baseline store driven by a controllable clock, and a stub text summarizer.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from backend_shadowstack.ai_engine.summary import SummaryGenerator, TextSummarizer
from backend_shadowstack.analysis_engine.anomaly import AnomalyScorer
from backend_shadowstack.analysis_engine.models import Transaction
from backend_shadowstack.baseline_store.store import InMemoryBaselineStore
from backend_shadowstack.core.exceptions import SummaryModelError
from backend_shadowstack.database import UserProfile, get_database
from backend_shadowstack.service import AnomalyDetectionService

WALLET = "0xABC0000000000000000000000000000000000001"
OTHER_WALLET = "0xDEF0000000000000000000000000000000000002"
ENABLED_USER = "user-enabled"
DISABLED_USER = "user-disabled"

# 2023-11-14T22:13:20Z
CLOCK_START = 1_700_000_000.0


class FakeClock:
    """Callable clock; advance() moves time forward."""

    def __init__(self, start: float = CLOCK_START) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def datetime(self, minutes_ago: float = 0) -> datetime:
        return datetime.fromtimestamp(self.now, tz=timezone.utc) - timedelta(minutes=minutes_ago)


class StubSummarizer(TextSummarizer):
    """Returns a fixed completion, or raises SummaryModelError when fail=True. Records prompts."""

    def __init__(self, text: str = "Large send far above this wallet's usual amounts.", *, fail: bool = False) -> None:
        self.text = text
        self.fail = fail
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise SummaryModelError("stub failure")
        return self.text


def make_tx(amount, when: datetime, tx_type: str = "send", tx_hash: str | None = None) -> Transaction:
    return Transaction.from_dict(
        {"amount": amount, "timestamp": when.isoformat(), "type": tx_type, "hash": tx_hash}
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database with one AI-enabled and one AI-disabled user."""
    database = get_database(tmp_path / "shadowstack.db")
    database.upsert_user_profile(UserProfile(id=ENABLED_USER, ai_enabled=True))
    database.upsert_user_profile(UserProfile(id=DISABLED_USER, ai_enabled=False))
    return database


@pytest.fixture
def baseline_store(clock) -> InMemoryBaselineStore:
    return InMemoryBaselineStore(clock=clock)


@pytest.fixture
def summarizer() -> StubSummarizer:
    return StubSummarizer()


@pytest.fixture
def make_service(db, baseline_store, clock):
    """Factory: service over the temp DB; pass summarizer/threshold/collaborators to override."""

    def _make(*, summarizer: TextSummarizer | None = None, threshold: float = 2.5, **overrides):
        parts = {
            "users": db,
            "baseline_store": baseline_store,
            "history": db,
            "alert_sink": db,
        }
        parts.update(overrides)
        return AnomalyDetectionService(
            summary_generator=SummaryGenerator(summarizer),
            scorer=AnomalyScorer(threshold),
            clock=clock,
            **parts,
        )

    return _make


@pytest.fixture
def service(make_service) -> AnomalyDetectionService:
    """Service with no text model configured (template summaries)."""
    return make_service()


@pytest.fixture
def seed_history(db, clock):
    """Record amounts for a wallet, newest first, one minute apart."""

    def _seed(amounts, wallet: str = WALLET):
        for i, amount in enumerate(amounts):
            db.record_transaction(wallet, make_tx(amount, clock.datetime(minutes_ago=i + 1)))

    return _seed


@pytest.fixture
def client(service):
    """FastAPI TestClient with get_service overridden to the test service."""
    from fastapi.testclient import TestClient

    from backend_shadowstack.api_server.dependencies import get_service
    from backend_shadowstack.api_server.server import create_app

    app = create_app()
    app.dependency_overrides[get_service] = lambda: service
    return TestClient(app)
