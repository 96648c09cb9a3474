# prooflog/storage/__init__.py
"""
Durable key/value storage backends for the proof ledger.
Each backend holds whole string values under namespaced keys; nothing is updated partially.
"""

from abc import ABC, abstractmethod
from typing import Optional
from pathlib import Path


class StorageBackend(ABC):
    """Abstract base for all persistent storage implementations."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _uri_path(raw_path: str) -> Path:
    return Path(raw_path).expanduser().resolve()


def create_storage(uri: str) -> StorageBackend:
    if uri.startswith("sqlite://"):
        from .sqlite import SQLiteStorage
        # sqlite:///abs/path.db, sqlite://rel/path.db and sqlite://~/x.db all work
        raw_path = uri[len("sqlite://"):]
        return SQLiteStorage(_uri_path(raw_path))

    elif uri.startswith("json:"):
        from .jsonfile import JSONFileStorage
        return JSONFileStorage(_uri_path(uri[len("json:"):]))

    elif uri.startswith("memory:"):
        from .memory import MemoryStorage
        return MemoryStorage()
    else:
        raise ValueError(f"Unsupported storage URI: {uri}")


from .sqlite import SQLiteStorage
from .jsonfile import JSONFileStorage
from .memory import MemoryStorage

__all__ = ["StorageBackend", "create_storage", "SQLiteStorage", "JSONFileStorage", "MemoryStorage"]
