"""
Database abstraction layer for user entitlements, alerts, and transaction history.

MVP uses SQLite; designed so the backend can be swapped to PostgreSQL via a
different Backend implementation. All access goes through the abstract interface;
SQL and placeholders are backend-specific (? for SQLite, %s for PostgreSQL).
sqlite3 errors surface as InfrastructureError.
"""

from __future__ import annotations

import sqlite3
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from backend_shadowstack.alerts.engine import AlertSink
from backend_shadowstack.alerts.models import AlertRecord
from backend_shadowstack.analysis_engine.models import SEVERITY_ORDER, Transaction
from backend_shadowstack.core.exceptions import InfrastructureError
from backend_shadowstack.database.models import HistoryRecord, UserProfile
from backend_shadowstack.shadowstack_logging import get_logger

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 50

# -----------------------------------------------------------------------------
# Schema (SQLite). For PostgreSQL: use SERIAL/BIGSERIAL, BOOLEAN, and %s.
# -----------------------------------------------------------------------------

SCHEMA_USER_PROFILES = """
CREATE TABLE IF NOT EXISTS user_profiles (
    id TEXT PRIMARY KEY,
    ai_enabled INTEGER NOT NULL DEFAULT 0,
    created_at INTEGER,
    updated_at INTEGER
);
"""

_SEVERITY_VALUES = ", ".join(f"'{s.value}'" for s in SEVERITY_ORDER)

SCHEMA_ALERTS = f"""
CREATE TABLE IF NOT EXISTS alerts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    target_id TEXT NOT NULL,
    severity TEXT NOT NULL CHECK (severity IN ({_SEVERITY_VALUES})),
    source_channel TEXT NOT NULL,
    message_text TEXT NOT NULL,
    is_read INTEGER NOT NULL DEFAULT 0,
    is_blocked INTEGER NOT NULL DEFAULT 0,
    created_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_alerts_user_created ON alerts(user_id, created_at);
CREATE INDEX IF NOT EXISTS ix_alerts_target ON alerts(target_id);
"""

SCHEMA_TRANSACTION_HISTORY = """
CREATE TABLE IF NOT EXISTS transaction_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    wallet_address TEXT NOT NULL,
    tx_hash TEXT,
    amount REAL NOT NULL,
    tx_type TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    ts_epoch REAL NOT NULL,
    created_at INTEGER
);
CREATE INDEX IF NOT EXISTS ix_history_wallet_ts ON transaction_history(wallet_address, ts_epoch);
"""


# -----------------------------------------------------------------------------
# Collaborator interfaces consumed by the anomaly service.
# -----------------------------------------------------------------------------


class UserDirectory(ABC):
    @abstractmethod
    def get_user(self, user_id: str) -> UserProfile | None:
        """Return the user's entitlement profile, or None if unknown."""
        ...


class TransactionHistory(ABC):
    @abstractmethod
    def record_transaction(self, wallet_address: str, transaction: Transaction) -> int:
        """Append a transaction to the wallet's history. Returns row id."""
        ...

    @abstractmethod
    def recent_transactions(
        self,
        wallet_address: str,
        *,
        since: datetime | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[Transaction]:
        """Return up to limit transactions at or after since, newest first."""
        ...


# -----------------------------------------------------------------------------
# Abstract backend: swap implementation for PostgreSQL later.
# -----------------------------------------------------------------------------


class DatabaseBackend(ABC):
    """Abstract interface for persistence; implement for SQLite or PostgreSQL."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        ...

    @abstractmethod
    def upsert_user_profile(self, profile: UserProfile) -> None:
        ...

    @abstractmethod
    def get_user_profile(self, user_id: str) -> UserProfile | None:
        ...

    @abstractmethod
    def insert_alert(self, record: AlertRecord) -> int:
        """Insert an alert row. Returns row id."""
        ...

    @abstractmethod
    def list_alerts(self, user_id: str, *, limit: int = 50) -> list[AlertRecord]:
        """Return a user's alerts, newest first."""
        ...

    @abstractmethod
    def insert_history(self, record: HistoryRecord) -> int:
        ...

    @abstractmethod
    def get_history(
        self,
        wallet_address: str,
        *,
        since_epoch: float | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[HistoryRecord]:
        """Return history rows for a wallet, newest first."""
        ...


# -----------------------------------------------------------------------------
# SQLite backend
# -----------------------------------------------------------------------------


class SQLiteBackend(DatabaseBackend):
    """SQLite implementation; single file, one connection per operation for MVP."""

    def __init__(self, path: str | Path, *, timeout_sec: float = 5.0) -> None:
        self._path = Path(path)
        self._timeout_sec = timeout_sec

    def _connect(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._path), timeout=self._timeout_sec)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise InfrastructureError("database unavailable") from e
        try:
            cur = conn.cursor()
            yield cur
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("database_operation_failed", db_path=str(self._path), error=str(e))
            raise InfrastructureError("database operation failed") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        with self._cursor() as cur:
            for stmt in (SCHEMA_USER_PROFILES, SCHEMA_ALERTS, SCHEMA_TRANSACTION_HISTORY):
                cur.executescript(stmt)

    def upsert_user_profile(self, profile: UserProfile) -> None:
        now = int(time.time())
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO user_profiles (id, ai_enabled, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    ai_enabled = excluded.ai_enabled,
                    updated_at = excluded.updated_at
                """,
                (profile.id, int(profile.ai_enabled), now, now),
            )

    def get_user_profile(self, user_id: str) -> UserProfile | None:
        with self._cursor() as cur:
            cur.execute("SELECT id, ai_enabled FROM user_profiles WHERE id = ?", (user_id,))
            row = cur.fetchone()
        if row is None:
            return None
        return UserProfile(id=row["id"], ai_enabled=bool(row["ai_enabled"]))

    def insert_alert(self, record: AlertRecord) -> int:
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO alerts (user_id, target_id, severity, source_channel, message_text,
                                    is_read, is_blocked, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.user_id,
                    record.target_id,
                    record.severity,
                    record.source_channel,
                    record.message_text,
                    int(record.is_read),
                    int(record.is_blocked),
                    record.created_at,
                ),
            )
            return cur.lastrowid or 0

    def list_alerts(self, user_id: str, *, limit: int = 50) -> list[AlertRecord]:
        with self._cursor() as cur:
            cur.execute(
                """
                SELECT id, user_id, target_id, severity, source_channel, message_text,
                       is_read, is_blocked, created_at
                FROM alerts WHERE user_id = ?
                ORDER BY created_at DESC, id DESC LIMIT ?
                """,
                (user_id, limit),
            )
            rows = cur.fetchall()
        return [
            AlertRecord(
                id=row["id"],
                user_id=row["user_id"],
                target_id=row["target_id"],
                severity=row["severity"],
                source_channel=row["source_channel"],
                message_text=row["message_text"],
                is_read=bool(row["is_read"]),
                is_blocked=bool(row["is_blocked"]),
                created_at=row["created_at"],
            )
            for row in rows
        ]

    def insert_history(self, record: HistoryRecord) -> int:
        now = int(time.time())
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO transaction_history (wallet_address, tx_hash, amount, tx_type,
                                                 timestamp, ts_epoch, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.wallet_address,
                    record.tx_hash,
                    record.amount,
                    record.tx_type,
                    record.timestamp,
                    record.ts_epoch,
                    now,
                ),
            )
            return cur.lastrowid or 0

    def get_history(
        self,
        wallet_address: str,
        *,
        since_epoch: float | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[HistoryRecord]:
        sql = """
            SELECT id, wallet_address, tx_hash, amount, tx_type, timestamp, ts_epoch, created_at
            FROM transaction_history WHERE wallet_address = ?
        """
        params: list[Any] = [wallet_address]
        if since_epoch is not None:
            sql += " AND ts_epoch >= ?"
            params.append(since_epoch)
        sql += " ORDER BY ts_epoch DESC, id DESC LIMIT ?"
        params.append(limit)
        with self._cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [
            HistoryRecord(
                id=row["id"],
                wallet_address=row["wallet_address"],
                tx_hash=row["tx_hash"],
                amount=row["amount"],
                tx_type=row["tx_type"],
                timestamp=row["timestamp"],
                ts_epoch=row["ts_epoch"],
                created_at=row["created_at"],
            )
            for row in rows
        ]


# -----------------------------------------------------------------------------
# Database facade: single entrypoint; backend is swappable.
# -----------------------------------------------------------------------------


class Database(UserDirectory, TransactionHistory, AlertSink):
    """
    Database abstraction: user entitlements, alerts, transaction history.

    Uses a Backend (SQLite for MVP); replace with PostgreSQLBackend when upgrading.
    """

    def __init__(self, backend: DatabaseBackend) -> None:
        self._backend = backend

    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        self._backend.ensure_schema()

    # --- Users ---

    def upsert_user_profile(self, profile: UserProfile) -> None:
        self._backend.upsert_user_profile(profile)

    def get_user(self, user_id: str) -> UserProfile | None:
        return self._backend.get_user_profile(user_id)

    # --- Alerts ---

    def insert_alert(self, record: AlertRecord) -> int:
        return self._backend.insert_alert(record)

    def list_alerts(self, user_id: str, *, limit: int = 50) -> list[AlertRecord]:
        return self._backend.list_alerts(user_id, limit=limit)

    # --- Transaction history ---

    def record_transaction(self, wallet_address: str, transaction: Transaction) -> int:
        return self._backend.insert_history(
            HistoryRecord(
                id=None,
                wallet_address=wallet_address,
                tx_hash=transaction.hash,
                amount=transaction.amount,
                tx_type=transaction.type.value,
                timestamp=transaction.timestamp.isoformat(),
                ts_epoch=transaction.timestamp.timestamp(),
            )
        )

    def recent_transactions(
        self,
        wallet_address: str,
        *,
        since: datetime | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[Transaction]:
        rows = self._backend.get_history(
            wallet_address,
            since_epoch=since.timestamp() if since is not None else None,
            limit=limit,
        )
        return [
            Transaction.from_dict(
                {
                    "amount": row.amount,
                    "timestamp": row.timestamp,
                    "type": row.tx_type,
                    "hash": row.tx_hash,
                }
            )
            for row in rows
        ]


def get_database(path: str | Path | None = None) -> Database:
    """
    Return a Database instance for MVP (SQLite).

    path: Path to the SQLite file (e.g. "data/shadowstack.db"). Default: "shadowstack.db" in cwd.
    For PostgreSQL later: use a different factory that builds PostgreSQLBackend from URL.
    """
    if path is None:
        path = Path("shadowstack.db")
    backend = SQLiteBackend(path)
    db = Database(backend)
    db.ensure_schema()
    return db
