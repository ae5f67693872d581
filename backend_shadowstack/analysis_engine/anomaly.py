"""
Deviation-based anomaly scoring for a candidate transaction.

Compares the candidate amount with the mean of a comparison set (a cached
baseline, or a sample of recent raw transactions) and scales the relative
deviation into a score. Fully deterministic: the result depends only on the
inputs and the threshold injected at construction time.
"""

from __future__ import annotations

import math
import statistics
from typing import Sequence

from backend_shadowstack.analysis_engine.models import (
    AnomalyResult,
    Baseline,
    Transaction,
    coerce_amount,
)

DEFAULT_THRESHOLD = 2.5
# Relative deviation -> score scale; meaningful scores fall roughly in [0, 10+]
SCORE_SCALE = 10.0
# Below this many raw comparison transactions (and no baseline) the check is not anomalous
MIN_COMPARISON_SAMPLES = 3
SCORE_DECIMALS = 2
# Upper bound on reported scores; extreme ratios (e.g. 1e308 vs 1e-300) overflow to inf otherwise
MAX_SCORE = 1_000_000.0


def relative_deviation(amount: float, avg: float) -> float:
    """|amount - avg| / avg, defined as 0 when avg is not positive."""
    if avg <= 0:
        return 0.0
    return abs(amount - avg) / avg


class AnomalyScorer:
    """
    Scores candidate transactions against a baseline or recent sample.

    threshold is fixed per instance; build a new scorer for a different cutoff.
    """

    def __init__(self, threshold: float = DEFAULT_THRESHOLD) -> None:
        self._threshold = float(threshold)

    @property
    def threshold(self) -> float:
        return self._threshold

    def score_against_mean(self, amount: float, avg: float) -> AnomalyResult:
        deviation = relative_deviation(coerce_amount(amount), coerce_amount(avg))
        scaled = deviation * SCORE_SCALE
        if math.isfinite(scaled) and scaled < MAX_SCORE:
            score = round(scaled, SCORE_DECIMALS)
        else:
            score = MAX_SCORE
        return AnomalyResult(
            score=score,
            is_anomaly=score > self._threshold,
            threshold=self._threshold,
        )

    def not_anomalous(self) -> AnomalyResult:
        return AnomalyResult(score=0.0, is_anomaly=False, threshold=self._threshold)

    def score(
        self,
        candidate: Transaction,
        *,
        baseline: Baseline | None = None,
        recent: Sequence[Transaction] | None = None,
    ) -> AnomalyResult:
        """
        Score candidate against baseline.avg_amount when a baseline is given,
        otherwise against the mean of recent. Fewer than MIN_COMPARISON_SAMPLES
        recent transactions without a baseline yields score 0, not anomalous.
        """
        if baseline is not None:
            return self.score_against_mean(candidate.amount, baseline.avg_amount)
        sample = list(recent or [])
        if len(sample) < MIN_COMPARISON_SAMPLES:
            return self.not_anomalous()
        avg = statistics.fmean(coerce_amount(tx.amount) for tx in sample)
        return self.score_against_mean(candidate.amount, avg)
