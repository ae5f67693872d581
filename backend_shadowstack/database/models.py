"""
Domain models for database entities.

User profiles (AI entitlement) and transaction history rows.
Used by the repository layer; no ORM coupling so backends stay swappable.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class UserProfile:
    """Entitlement view of a user; only the AI feature flag matters here."""

    id: str
    ai_enabled: bool = False


@dataclass
class HistoryRecord:
    """Single row of a wallet's transaction history."""

    id: int | None
    wallet_address: str
    amount: float
    tx_type: str
    timestamp: str
    """ISO-8601 as supplied by the caller."""
    ts_epoch: float
    """Unix seconds derived from timestamp; used for window queries."""
    tx_hash: str | None = None
    created_at: int | None = None
