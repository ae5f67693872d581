"""
Analysis engine: baseline calculation, anomaly scoring, severity classification.

Pure, deterministic functions over transaction samples; persistence and
external calls live in the store, summary, and alert packages.
"""

from backend_shadowstack.analysis_engine.anomaly import (
    DEFAULT_THRESHOLD,
    MIN_COMPARISON_SAMPLES,
    AnomalyScorer,
)
from backend_shadowstack.analysis_engine.baseline import calculate_baseline
from backend_shadowstack.analysis_engine.models import (
    AnomalyResult,
    AnomalySeverity,
    Baseline,
    Transaction,
    TransactionType,
)
from backend_shadowstack.analysis_engine.severity import classify_severity

__all__ = [
    "DEFAULT_THRESHOLD",
    "MIN_COMPARISON_SAMPLES",
    "AnomalyResult",
    "AnomalyScorer",
    "AnomalySeverity",
    "Baseline",
    "Transaction",
    "TransactionType",
    "calculate_baseline",
    "classify_severity",
]
