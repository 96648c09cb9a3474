# prooflog/codec/document.py
"""
Portable export documents: a pretty-printed UTF-8 JSON array of proof records.
"""

import json
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from prooflog.core.errors import DecodeError
from prooflog.core.types import MAX_SIZE_BYTES, ProofRecord, utc_iso_ms

DEFAULT_EXPORT_PREFIX = "prooflog-proofs"

# wire field -> accepted JSON types (bool is excluded from int below)
_FIELD_TYPES = {
    "id": str,
    "filename": str,
    "sizeBytes": int,
    "timestampIso": str,
}


def export_document(records: Iterable[ProofRecord]) -> bytes:
    """Serialize the full sequence, order preserved, 2-space indent."""
    payload = [r.to_dict() for r in records]
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def suggest_export_filename(prefix: str = DEFAULT_EXPORT_PREFIX, now: Optional[datetime] = None) -> str:
    """e.g. prooflog-proofs-2026-10-19T12-00-00-123Z.json"""
    stamp = utc_iso_ms(now or datetime.now(timezone.utc))
    return f"{prefix}-{stamp.replace(':', '-').replace('.', '-')}.json"


def _is_utf8_text(value: str) -> bool:
    # JSON allows escaped lone surrogates ("\ud800"), UTF-8 does not
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _parse_record(index: int, item: Any) -> ProofRecord:
    if not isinstance(item, dict):
        raise DecodeError(f"Element {index} is not an object")

    for name, expected in _FIELD_TYPES.items():
        if name not in item:
            raise DecodeError(f"Element {index} is missing '{name}'")
        value = item[name]
        if not isinstance(value, expected) or isinstance(value, bool):
            raise DecodeError(f"Element {index} field '{name}' has wrong type")

    digest = item.get("sha256Hex", item.get("digestHex"))
    if not isinstance(digest, str):
        raise DecodeError(f"Element {index} is missing 'sha256Hex'")
    if item["sizeBytes"] < 0:
        raise DecodeError(f"Element {index} has negative sizeBytes")
    if item["sizeBytes"] > MAX_SIZE_BYTES:
        raise DecodeError(f"Element {index} sizeBytes exceeds {MAX_SIZE_BYTES}")

    for name in ("id", "filename", "timestampIso"):
        if not _is_utf8_text(item[name]):
            raise DecodeError(f"Element {index} field '{name}' is not valid Unicode text")
    if not _is_utf8_text(digest):
        raise DecodeError(f"Element {index} field 'sha256Hex' is not valid Unicode text")

    return ProofRecord.from_dict(item)


def parse_records(obj: Any) -> List[ProofRecord]:
    """Shape-check an already-decoded JSON value. All-or-nothing."""
    if not isinstance(obj, list):
        raise DecodeError(f"Expected a JSON array, got {type(obj).__name__}")
    return [_parse_record(i, item) for i, item in enumerate(obj)]


def import_document(data: bytes) -> List[ProofRecord]:
    """
    Parse an export document back into records.
    Raises DecodeError for anything that is not a JSON array of proof records;
    never returns a partial result.
    """
    try:
        text = data.decode("utf-8-sig") if isinstance(data, (bytes, bytearray)) else data
        obj = json.loads(text)
    except UnicodeDecodeError as e:
        raise DecodeError(f"Document is not valid UTF-8: {e}") from e
    except (ValueError, RecursionError) as e:
        raise DecodeError(f"Document is not valid JSON: {e}") from e
    return parse_records(obj)
