"""
Storage adapters for Disaster Watch alerting.

This module contains the SQLite and in-memory alert stores and the
optional SQLite retry outbox.
"""

from .memory_store import InMemoryAlertStore
from .sqlite_outbox import OutboxItem, SQLiteOutbox
from .sqlite_store import SQLiteAlertStore

__all__ = ["InMemoryAlertStore", "OutboxItem", "SQLiteOutbox", "SQLiteAlertStore"]
