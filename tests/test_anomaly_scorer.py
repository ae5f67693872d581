"""
Tests for deviation scoring (analysis_engine.anomaly.AnomalyScorer) and
severity classification (analysis_engine.severity.classify_severity).
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from backend_shadowstack.analysis_engine.anomaly import MAX_SCORE, AnomalyScorer, relative_deviation
from backend_shadowstack.analysis_engine.models import AnomalySeverity, Baseline, SEVERITY_ORDER
from backend_shadowstack.analysis_engine.severity import classify_severity

from conftest import WALLET, make_tx

BASE = datetime(2024, 3, 1, 12, tzinfo=timezone.utc)


def _sample(amounts):
    return [make_tx(a, BASE - timedelta(minutes=i + 1)) for i, a in enumerate(amounts)]


def _candidate(amount):
    return make_tx(amount, BASE)


SCENARIO_SAMPLE = [0.1, 0.05, 0.2, 0.15]


# --- Scoring ---


def test_scenario_a_large_deviation_is_critical_anomaly():
    """avg 0.125, candidate 0.2 -> deviation 0.6 -> score 6.0 -> anomalous, critical."""
    result = AnomalyScorer().score(_candidate(0.2), recent=_sample(SCENARIO_SAMPLE))
    assert result.score == 6.0
    assert result.is_anomaly is True
    assert result.threshold == 2.5
    assert classify_severity(result.score) is AnomalySeverity.CRITICAL


def test_scenario_b_small_deviation_is_normal():
    """avg 0.125, candidate 0.13 -> deviation 0.04 -> score 0.4 -> not anomalous."""
    result = AnomalyScorer().score(_candidate(0.13), recent=_sample(SCENARIO_SAMPLE))
    assert result.score == 0.4
    assert result.is_anomaly is False


@pytest.mark.parametrize("amounts", [[], [1.0], [1.0, 1.0]])
@pytest.mark.parametrize("candidate", [0.0, 1.0, 1_000_000.0])
def test_fewer_than_three_samples_is_not_anomalous(amounts, candidate):
    """0, 1 or 2 comparison transactions and no baseline -> score 0, not anomalous."""
    result = AnomalyScorer().score(_candidate(candidate), recent=_sample(amounts))
    assert result.score == 0.0
    assert result.is_anomaly is False


def test_no_baseline_and_no_sample_is_not_anomalous():
    result = AnomalyScorer().score(_candidate(50))
    assert (result.score, result.is_anomaly) == (0.0, False)


@pytest.mark.parametrize("candidate", [0.0, 0.5, 1e9])
def test_all_zero_comparison_set_scores_zero(candidate):
    """avg == 0 -> deviation defined as 0, never a division error."""
    result = AnomalyScorer().score(_candidate(candidate), recent=_sample([0, 0, 0, 0]))
    assert result.score == 0.0
    assert result.is_anomaly is False


def test_baseline_path_uses_avg_amount():
    baseline = Baseline(
        wallet_address=WALLET,
        avg_amount=2.0,
        max_amount=3.0,
        min_amount=1.0,
        total_tx_count=2,
        hourly_pattern={12: 2},
    )
    result = AnomalyScorer().score(_candidate(3.0), baseline=baseline, recent=_sample([100, 100, 100]))
    # |3 - 2| / 2 * 10
    assert result.score == 5.0
    assert result.is_anomaly is True


def test_scoring_is_deterministic():
    scorer = AnomalyScorer(threshold=1.0)
    sample = _sample([3.2, 1.7, 9.9, 4.4, 0.3])
    results = {scorer.score(_candidate(7.7), recent=sample) for _ in range(20)}
    assert len(results) == 1


def test_score_is_monotonic_in_distance_from_mean():
    """Holding the sample fixed, moving the candidate away from avg never lowers the score."""
    scorer = AnomalyScorer()
    sample = _sample([1.0, 2.0, 3.0])  # avg 2.0
    above = [scorer.score(_candidate(2.0 + d), recent=sample).score for d in (0, 0.1, 0.5, 1, 4, 40)]
    below = [scorer.score(_candidate(2.0 - d), recent=sample).score for d in (0, 0.1, 0.5, 1, 1.9, 2)]
    assert above == sorted(above)
    assert below == sorted(below)


def test_threshold_is_strict_and_injected():
    sample = _sample([1.0, 1.0, 1.0])
    # candidate 1.25 -> score 2.5 exactly
    assert AnomalyScorer(threshold=2.5).score(_candidate(1.25), recent=sample).is_anomaly is False
    assert AnomalyScorer(threshold=2.4).score(_candidate(1.25), recent=sample).is_anomaly is True


def test_invalid_candidate_amount_is_coerced_not_raised():
    sample = _sample([1.0, 1.0, 1.0])
    result = AnomalyScorer().score(_candidate("not-a-number"), recent=sample)
    # coerced to 0 -> |0 - 1| / 1 * 10
    assert result.score == 10.0


def test_overflowing_deviation_is_capped():
    """1e308 against a 1e-300 mean overflows to inf; the score stays finite and critical."""
    result = AnomalyScorer().score(_candidate(1e308), recent=_sample([1e-300] * 3))
    assert result.score == MAX_SCORE
    assert math.isfinite(result.score)
    assert result.is_anomaly is True
    assert classify_severity(result.score) is AnomalySeverity.CRITICAL


def test_relative_deviation_guards_non_positive_mean():
    assert relative_deviation(5.0, 0.0) == 0.0
    assert relative_deviation(5.0, -1.0) == 0.0
    assert relative_deviation(3.0, 2.0) == pytest.approx(0.5)


# --- Severity ---


@pytest.mark.parametrize(
    "score,expected",
    [
        (2.6, AnomalySeverity.MEDIUM),
        (3.0, AnomalySeverity.MEDIUM),
        (3.01, AnomalySeverity.HIGH),
        (5.0, AnomalySeverity.HIGH),
        (5.01, AnomalySeverity.CRITICAL),
        (42.0, AnomalySeverity.CRITICAL),
    ],
)
def test_classify_severity_tiers(score, expected):
    assert classify_severity(score) is expected


def test_severity_never_low_and_ordered_by_score():
    scores = [2.5 + 0.25 * i for i in range(1, 40)]
    tiers = [classify_severity(s) for s in scores]
    assert AnomalySeverity.LOW not in tiers
    ranks = [SEVERITY_ORDER.index(t) for t in tiers]
    assert ranks == sorted(ranks)
