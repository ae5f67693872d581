"""
Anomaly detection service: the request-scoped pipeline behind the API.

check_anomaly runs, strictly in order: input validation -> entitlement ->
baseline lookup (or recent-history sample) -> scoring -> severity -> summary
-> alert write. Nothing after the entitlement check runs for a user without
the AI feature, and nothing is written for a non-anomalous transaction.

build_service() is the composition root: it reads Settings once and chooses
the concrete store, summarizer, and database implementations.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from backend_shadowstack.ai_engine.summary import HuggingFaceSummarizer, SummaryGenerator
from backend_shadowstack.alerts.engine import AlertEmitter, AlertSink
from backend_shadowstack.analysis_engine.anomaly import AnomalyScorer
from backend_shadowstack.analysis_engine.baseline import calculate_baseline
from backend_shadowstack.analysis_engine.models import Baseline, Transaction
from backend_shadowstack.analysis_engine.severity import classify_severity
from backend_shadowstack.baseline_store.store import (
    BaselineStore,
    InMemoryBaselineStore,
    RedisBaselineStore,
)
from backend_shadowstack.config.settings import Settings, get_settings
from backend_shadowstack.core.exceptions import (
    AuthorizationError,
    InfrastructureError,
    InputValidationError,
)
from backend_shadowstack.database.database import (
    DEFAULT_HISTORY_LIMIT,
    TransactionHistory,
    UserDirectory,
    get_database,
)
from backend_shadowstack.shadowstack_logging import get_logger

logger = get_logger(__name__)

NORMAL_SUMMARY = "Transaction appears normal"
HISTORY_WINDOW = timedelta(days=7)


@dataclass
class AnomalyCheck:
    """Result returned to callers of check_anomaly."""

    score: float
    is_anomaly: bool
    summary: str
    threshold: float
    severity: str | None = None
    alert_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "is_anomaly": self.is_anomaly,
            "summary": self.summary,
            "threshold": self.threshold,
            "severity": self.severity,
            "alert_id": self.alert_id,
        }


@dataclass
class BaselineSummary:
    avg_amount: float
    total_tx_count: int
    computed_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "avg_amount": self.avg_amount,
            "total_tx_count": self.total_tx_count,
            "computed_at": self.computed_at,
        }


def _require(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InputValidationError(f"{name} is required")
    return value.strip()


class AnomalyDetectionService:
    def __init__(
        self,
        *,
        users: UserDirectory,
        baseline_store: BaselineStore,
        history: TransactionHistory,
        alert_sink: AlertSink,
        summary_generator: SummaryGenerator,
        scorer: AnomalyScorer,
        clock: Callable[[], float] = time.time,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self._users = users
        self._baselines = baseline_store
        self._history = history
        self._summaries = summary_generator
        self._scorer = scorer
        self._alerts = AlertEmitter(alert_sink, clock=clock)
        self._clock = clock
        self._history_limit = history_limit

    @property
    def threshold(self) -> float:
        return self._scorer.threshold

    def _ensure_ai_enabled(self, user_id: str) -> None:
        user = self._users.get_user(user_id)
        if user is None or not user.ai_enabled:
            logger.info("ai_entitlement_denied", user_id=user_id, known_user=user is not None)
            raise AuthorizationError()

    def _history_sample(self, wallet_address: str) -> list[Transaction]:
        now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        return self._history.recent_transactions(
            wallet_address,
            since=now - HISTORY_WINDOW,
            limit=self._history_limit,
        )

    def _cached_baseline(self, wallet_address: str) -> Baseline | None:
        """
        Cached baseline, or None.

        A failing cache read is logged as baseline_store_unavailable (error level,
        distinct from a plain miss) and the check continues against the recent
        sample. Only this read degrades: cache writes in compute_baseline, reads
        through get_baseline, and alert writes all propagate InfrastructureError.
        """
        try:
            return self._baselines.get(wallet_address)
        except InfrastructureError as e:
            logger.error("baseline_store_unavailable", wallet_id=wallet_address, error=e.message)
            return None

    def check_anomaly(
        self,
        wallet_address: str,
        transaction: Transaction | None,
        user_id: str,
    ) -> AnomalyCheck:
        wallet_address = _require(wallet_address, "wallet_address")
        user_id = _require(user_id, "user_id")
        if transaction is None:
            raise InputValidationError("transaction is required")
        self._ensure_ai_enabled(user_id)

        baseline = self._cached_baseline(wallet_address)
        recent: list[Transaction] = []
        if baseline is None:
            recent = self._history_sample(wallet_address)
        result = self._scorer.score(transaction, baseline=baseline, recent=recent)
        logger.info(
            "anomaly_check_scored",
            wallet_id=wallet_address,
            score=result.score,
            is_anomaly=result.is_anomaly,
            threshold=result.threshold,
            comparison="baseline" if baseline is not None else "recent",
            sample_size=baseline.total_tx_count if baseline is not None else len(recent),
        )
        if not result.is_anomaly:
            return AnomalyCheck(
                score=result.score,
                is_anomaly=False,
                summary=NORMAL_SUMMARY,
                threshold=result.threshold,
            )

        severity = classify_severity(result.score)
        summary = self._summaries.summarize(transaction, result.score)
        alert = self._alerts.emit(user_id, wallet_address, severity, summary)
        return AnomalyCheck(
            score=result.score,
            is_anomaly=True,
            summary=summary,
            threshold=result.threshold,
            severity=severity.value,
            alert_id=alert.id,
        )

    def compute_baseline(self, wallet_address: str, user_id: str) -> BaselineSummary:
        """Recompute the wallet's baseline from recent history and cache it (replacing any prior one)."""
        wallet_address = _require(wallet_address, "wallet_address")
        user_id = _require(user_id, "user_id")
        self._ensure_ai_enabled(user_id)

        sample = self._history_sample(wallet_address)
        baseline = calculate_baseline(wallet_address, sample, clock=self._clock)
        self._baselines.put(wallet_address, baseline)
        logger.info(
            "baseline_computed",
            wallet_id=wallet_address,
            avg_amount=baseline.avg_amount,
            total_tx_count=baseline.total_tx_count,
        )
        return BaselineSummary(
            avg_amount=baseline.avg_amount,
            total_tx_count=baseline.total_tx_count,
            computed_at=baseline.computed_at,
        )

    def get_baseline(self, wallet_address: str) -> Baseline | None:
        return self._baselines.get(_require(wallet_address, "wallet_address"))

    def record_transaction(self, wallet_address: str, transaction: Transaction | None) -> int:
        wallet_address = _require(wallet_address, "wallet_address")
        if transaction is None:
            raise InputValidationError("transaction is required")
        return self._history.record_transaction(wallet_address, transaction)


def build_baseline_store(settings: Settings) -> BaselineStore:
    if settings.redis_url:
        return RedisBaselineStore.from_url(settings.redis_url)
    return InMemoryBaselineStore()


def build_summary_generator(settings: Settings) -> SummaryGenerator:
    if not settings.hf_token:
        return SummaryGenerator(None)
    return SummaryGenerator(
        HuggingFaceSummarizer(
            settings.hf_model_url,
            settings.hf_token,
            timeout_sec=settings.summary_timeout_sec,
        )
    )


def build_service(settings: Settings | None = None) -> AnomalyDetectionService:
    """Wire the production service from Settings (environment by default)."""
    settings = settings or get_settings()
    db = get_database(settings.db_path)
    return AnomalyDetectionService(
        users=db,
        baseline_store=build_baseline_store(settings),
        history=db,
        alert_sink=db,
        summary_generator=build_summary_generator(settings),
        scorer=AnomalyScorer(settings.ai_threshold),
    )
