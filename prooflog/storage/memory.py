# prooflog/storage/memory.py
from typing import Dict, Optional

from prooflog.core.errors import StorageError
from . import StorageBackend


class MemoryStorage(StorageBackend):
    """
    In-process storage. `max_bytes` caps the total UTF-8 size of all values,
    like a browser storage quota; writes over the quota raise StorageError.
    """

    def __init__(self, max_bytes: Optional[int] = None):
        self.max_bytes = max_bytes
        self._data: Optional[Dict[str, str]] = {}

    @property
    def data(self) -> Dict[str, str]:
        if self._data is None:
            raise StorageError("Storage is closed")
        return self._data

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.max_bytes is not None:
            others = sum(len(v.encode("utf-8")) for k, v in self.data.items() if k != key)
            if others + len(value.encode("utf-8")) > self.max_bytes:
                raise StorageError(f"Quota exceeded ({self.max_bytes} bytes)")
        self.data[key] = value

    def close(self) -> None:
        self._data = None
