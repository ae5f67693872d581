"""
Data models for anomaly analysis.

Transaction (candidate or history sample), Baseline (cached per wallet),
AnomalyResult (per check), and AnomalySeverity. No ORM coupling; all
models serialize to plain dicts for the cache, the API, and logs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from backend_shadowstack.core.exceptions import InputValidationError


class TransactionType(str, Enum):
    SEND = "send"
    RECEIVE = "receive"


class AnomalySeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SEVERITY_ORDER = (
    AnomalySeverity.LOW,
    AnomalySeverity.MEDIUM,
    AnomalySeverity.HIGH,
    AnomalySeverity.CRITICAL,
)


def coerce_amount(value: Any) -> float:
    """Parse an amount; missing, non-numeric, non-finite or negative values become 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp (trailing 'Z' accepted). Raises InputValidationError."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InputValidationError("transaction timestamp is required")
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError as e:
        raise InputValidationError(f"invalid transaction timestamp: {value!r}") from e


@dataclass
class Transaction:
    """Single wallet transaction; transient, identity is whatever the caller supplies."""

    amount: float
    timestamp: datetime
    type: TransactionType = TransactionType.SEND
    hash: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transaction:
        """Build from a wire/DB dict. Amount is coerced; timestamp and type are validated."""
        if not isinstance(data, dict):
            raise InputValidationError("transaction must be an object")
        raw_type = str(data.get("type") or TransactionType.SEND.value).strip().lower()
        try:
            tx_type = TransactionType(raw_type)
        except ValueError as e:
            raise InputValidationError(f"invalid transaction type: {raw_type!r}") from e
        return cls(
            amount=coerce_amount(data.get("amount")),
            timestamp=parse_timestamp(data.get("timestamp")),
            type=tx_type,
            hash=data.get("hash") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "amount": self.amount,
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
        }
        if self.hash:
            out["hash"] = self.hash
        return out


@dataclass
class Baseline:
    """
    Statistical profile of a wallet's recent transactions.

    Invariants: min_amount <= avg_amount <= max_amount and
    total_tx_count == sum(hourly_pattern.values()). Never built from an empty sample.
    """

    wallet_address: str
    avg_amount: float
    max_amount: float
    min_amount: float
    total_tx_count: int
    hourly_pattern: dict[int, int] = field(default_factory=dict)
    """Hour of day (0-23) -> transaction count; hours without activity are absent."""
    computed_at: int = 0
    """Unix timestamp (seconds) when the baseline was computed."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet_address": self.wallet_address,
            "avg_amount": self.avg_amount,
            "max_amount": self.max_amount,
            "min_amount": self.min_amount,
            "total_tx_count": self.total_tx_count,
            "hourly_pattern": {str(h): c for h, c in sorted(self.hourly_pattern.items())},
            "computed_at": self.computed_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Baseline:
        """Inverse of to_dict; JSON object keys for hours are restored to ints."""
        return cls(
            wallet_address=str(data["wallet_address"]),
            avg_amount=float(data["avg_amount"]),
            max_amount=float(data["max_amount"]),
            min_amount=float(data["min_amount"]),
            total_tx_count=int(data["total_tx_count"]),
            hourly_pattern={
                int(h): int(c) for h, c in (data.get("hourly_pattern") or {}).items()
            },
            computed_at=int(data.get("computed_at") or 0),
        )


@dataclass(frozen=True)
class AnomalyResult:
    """Outcome of scoring one candidate transaction."""

    score: float
    is_anomaly: bool
    threshold: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "is_anomaly": self.is_anomaly,
            "threshold": self.threshold,
        }
