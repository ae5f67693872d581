"""
Baseline calculation from a wallet's recent transaction sample.

Pure function over its input: mean/extrema of amounts, transaction count,
and an hour-of-day activity histogram. Persistence is a separate step
performed by the caller through a BaselineStore.
"""

from __future__ import annotations

import statistics
import time
from collections import Counter
from typing import Callable, Sequence

from backend_shadowstack.analysis_engine.models import Baseline, Transaction, coerce_amount
from backend_shadowstack.core.exceptions import InsufficientHistoryError


def hourly_pattern(transactions: Sequence[Transaction]) -> dict[int, int]:
    """Count transactions per wall-clock hour of their timestamp; zero-count hours omitted."""
    counts = Counter(tx.timestamp.hour for tx in transactions)
    return dict(sorted(counts.items()))


def calculate_baseline(
    wallet_address: str,
    transactions: Sequence[Transaction],
    *,
    clock: Callable[[], float] = time.time,
) -> Baseline:
    """
    Compute a Baseline for wallet_address from a non-empty transaction sample.

    Raises InsufficientHistoryError when the sample is empty; an empty history
    never yields a zero-valued baseline.
    """
    if not transactions:
        raise InsufficientHistoryError()
    amounts = [coerce_amount(tx.amount) for tx in transactions]
    low, high = min(amounts), max(amounts)
    # float rounding can push the mean of identical amounts past the extrema
    avg = min(max(statistics.fmean(amounts), low), high)
    return Baseline(
        wallet_address=wallet_address,
        avg_amount=avg,
        max_amount=high,
        min_amount=low,
        total_tx_count=len(transactions),
        hourly_pattern=hourly_pattern(transactions),
        computed_at=int(clock()),
    )
