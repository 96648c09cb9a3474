# prooflog/storage/jsonfile.py
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from prooflog.core.errors import StorageError
from . import StorageBackend


class JSONFileStorage(StorageBackend):
    """
    Single JSON object file mapping key -> string value.
    Every write rewrites the whole file through a temp file + os.replace.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._closed = False

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Unreadable storage file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Storage file {self.path} is not a JSON object")
        return data

    def _check_open(self):
        if self._closed:
            raise StorageError("Storage file is closed")

    def get(self, key: str) -> Optional[str]:
        self._check_open()
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._check_open()
        try:
            data = self._read_all()
        except StorageError:
            # an unreadable file is overwritten rather than blocking every write
            data = {}
        data[key] = value

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write {self.path}: {e}") from e

    def close(self) -> None:
        self._closed = True
