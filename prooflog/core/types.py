# prooflog/core/types.py
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

MAX_RECORDS = 500

# largest integer a JSON number (IEEE double) carries exactly
MAX_SIZE_BYTES = 2 ** 53 - 1

# wire field names, in export order
WIRE_FIELDS = ("id", "filename", "sizeBytes", "sha256Hex", "timestampIso")


def utc_iso_ms(now: datetime) -> str:
    """ISO 8601 UTC with millis and a Z suffix, e.g. 2026-10-19T12:00:00.123Z"""
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError("Timestamp must be timezone-aware")
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def text_safe(value: str) -> str:
    """
    Make a string encodable as UTF-8. Lone surrogates (undecodable bytes in an
    OS file name) become U+FFFD.
    """
    try:
        value.encode("utf-8")
        return value
    except UnicodeEncodeError:
        pass
    try:
        raw = value.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        raw = value.encode("utf-8", "surrogatepass")
    return raw.decode("utf-8", "replace")


def proof_id(digest_hex: str, filename: str, size_bytes: int) -> str:
    return f"{digest_hex}:{filename}:{size_bytes}"


@dataclass(frozen=True)
class ProofRecord:
    """Proof that this content, of this size, under this name, existed at this instant."""
    id: str                         # digest:filename:size, content-addressed
    filename: str
    size_bytes: int
    digest_hex: str                 # lowercase hex(sha256), 64 chars
    timestamp_iso: str              # ISO 8601 UTC with millis

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (export documents and persisted ledger)."""
        return {
            "id": self.id,
            "filename": self.filename,
            "sizeBytes": self.size_bytes,
            "sha256Hex": self.digest_hex,
            "timestampIso": self.timestamp_iso,
        }

    def summary(self) -> Dict[str, Any]:
        """Id-less view, as copied for the latest certification."""
        d = self.to_dict()
        del d["id"]
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProofRecord":
        # digestHex accepted as an alias of the export field name
        digest = d["sha256Hex"] if "sha256Hex" in d else d["digestHex"]
        return cls(
            id=d["id"],
            filename=d["filename"],
            size_bytes=d["sizeBytes"],
            digest_hex=digest,
            timestamp_iso=d["timestampIso"],
        )


def make_record(filename: str, size_bytes: int, digest_hex: str, now: datetime) -> ProofRecord:
    """
    Build a record for an already-computed digest.
    Nothing is checked against the actual file; the caller is trusted.
    The filename is made UTF-8 safe so the record can always be serialized.
    """
    if size_bytes < 0 or size_bytes > MAX_SIZE_BYTES:
        raise ValueError(f"size_bytes must be between 0 and {MAX_SIZE_BYTES}")
    filename = text_safe(filename)
    return ProofRecord(
        id=proof_id(digest_hex, filename, size_bytes),
        filename=filename,
        size_bytes=size_bytes,
        digest_hex=digest_hex,
        timestamp_iso=utc_iso_ms(now),
    )
