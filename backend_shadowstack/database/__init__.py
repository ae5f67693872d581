"""
Database abstraction layer: user entitlements, alerts, transaction history.

MVP uses SQLite via Database and get_database(); backend is swappable for PostgreSQL.
"""

from backend_shadowstack.database.database import (
    Database,
    DatabaseBackend,
    SQLiteBackend,
    TransactionHistory,
    UserDirectory,
    get_database,
)
from backend_shadowstack.database.models import HistoryRecord, UserProfile

__all__ = [
    "Database",
    "DatabaseBackend",
    "SQLiteBackend",
    "TransactionHistory",
    "UserDirectory",
    "get_database",
    "HistoryRecord",
    "UserProfile",
]
