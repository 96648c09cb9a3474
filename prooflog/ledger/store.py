# prooflog/ledger/store.py
import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from prooflog.codec.document import parse_records
from prooflog.core.canon import canonical_json_str
from prooflog.core.errors import DecodeError, StorageReadCorrupt, StorageWriteFailed
from prooflog.core.types import MAX_RECORDS, ProofRecord
from prooflog.storage import StorageBackend, create_storage

logger = logging.getLogger(__name__)

STORAGE_KEY = "prooflog_proofs_v1"


@dataclass
class LedgerStore:
    """
    Owns the in-memory proof sequence (most recent first) and mirrors it,
    whole, to a storage backend after every mutation.

    Reads are self-healing: missing or corrupt content loads as an empty ledger.
    Writes are best-effort: a failed write is logged and kept on `write_warning`,
    the in-memory mutation still stands.
    """
    storage: Union[StorageBackend, str]
    key: str = STORAGE_KEY
    max_records: int = MAX_RECORDS
    _records: List[ProofRecord] = field(default_factory=list, init=False, repr=False)
    write_warning: Optional[StorageWriteFailed] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if isinstance(self.storage, str):
            self.storage = create_storage(self.storage.strip())
        if self.max_records <= 0:
            raise ValueError("max_records must be positive")
        self.load()

    @property
    def records(self) -> List[ProofRecord]:
        """Copy of the current sequence, most recent first."""
        return self._records.copy()

    @property
    def length(self) -> int:
        return len(self._records)

    def load(self) -> List[ProofRecord]:
        self._records = self._read()
        return self.records

    def _read(self) -> List[ProofRecord]:
        try:
            raw = self.storage.get(self.key)
        except Exception as e:
            logger.warning("Could not read ledger from storage: %s", e)
            return []
        if raw is None:
            logger.debug("No ledger stored under %r, starting empty", self.key)
            return []

        try:
            records = parse_records(json.loads(raw))
        except (ValueError, RecursionError, DecodeError) as e:
            corrupt = StorageReadCorrupt(f"Stored ledger under {self.key!r} is unreadable: {e}")
            logger.warning("%s; starting with an empty ledger", corrupt)
            return []

        logger.debug("Loaded %d proofs from storage", len(records))
        return records[: self.max_records]

    def _persist(self) -> None:
        try:
            payload = canonical_json_str([r.to_dict() for r in self._records])
            self.storage.set(self.key, payload)
        except Exception as e:
            self.write_warning = StorageWriteFailed(f"Failed to persist {len(self._records)} proofs: {e}")
            logger.warning("%s", self.write_warning)
            return
        self.write_warning = None

    def append(self, record: ProofRecord) -> List[ProofRecord]:
        """Prepend a record, drop the oldest beyond the cap, persist."""
        self._records = [record, *self._records][: self.max_records]
        self._persist()
        return self.records

    def clear(self) -> List[ProofRecord]:
        self._records = []
        self._persist()
        return self.records

    def replace(self, records: List[ProofRecord]) -> List[ProofRecord]:
        """Swap in a whole new sequence (import). No merge."""
        self._records = list(records)[: self.max_records]
        self._persist()
        return self.records

    def latest(self) -> Optional[ProofRecord]:
        return self._records[0] if self._records else None

    def find_by_digest(self, digest_hex: str) -> List[ProofRecord]:
        wanted = digest_hex.strip().lower()
        return [r for r in self._records if r.digest_hex == wanted]

    def close(self) -> None:
        """Release the storage backend (e.g. database connection)."""
        if self.storage:
            try:
                self.storage.close()
            except Exception as e:
                logger.warning("Error closing storage: %s", e)
