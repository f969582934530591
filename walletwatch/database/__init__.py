"""
Database layer: monitoring cursors, stored transactions, notifications.

SQLAlchemy-backed; any SQLAlchemy URL works, SQLite is the default.
"""

from walletwatch.database.models import (
    InsertResult,
    MonitorRecord,
    NotificationRecord,
    StoredTransaction,
)
from walletwatch.database.repositories import (
    MonitorRepository,
    NotificationRepository,
    TransactionRepository,
)
from walletwatch.database.session import Database

__all__ = [
    "Database",
    "InsertResult",
    "MonitorRecord",
    "MonitorRepository",
    "NotificationRecord",
    "NotificationRepository",
    "StoredTransaction",
    "TransactionRepository",
]
