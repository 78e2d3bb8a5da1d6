"""Cache store implementations."""
from .memory_store import MemoryStore
from .sqlite_store import SQLiteStore

__all__ = ["MemoryStore", "SQLiteStore"]
