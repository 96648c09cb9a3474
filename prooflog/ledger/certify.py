# prooflog/ledger/certify.py
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from prooflog.core.digest import digest, digest_file
from prooflog.core.errors import DigestUnavailable
from prooflog.core.types import ProofRecord, make_record
from prooflog.ledger.store import LedgerStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CertifyFailure:
    filename: str
    error: Exception

    @property
    def message(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


@dataclass
class CertifyReport:
    records: List[ProofRecord] = field(default_factory=list)
    failures: List[CertifyFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def __bool__(self):
        return self.ok


async def certify_bytes(
    filename: str,
    data: bytes,
    store: LedgerStore,
    clock: Optional[Clock] = None,
) -> ProofRecord:
    """digest -> record -> append (and persist). DigestUnavailable propagates."""
    hex_digest = await digest(data)
    record = make_record(filename, len(data), hex_digest, (clock or utc_now)())
    store.append(record)
    return record


async def certify_paths(
    paths: Iterable[Union[str, Path]],
    store: LedgerStore,
    clock: Optional[Clock] = None,
) -> CertifyReport:
    """
    Certify files strictly one at a time, in the given order.
    Each file is fully recorded before the next is hashed; a file that cannot
    be hashed is reported and the batch moves on.
    """
    report = CertifyReport()
    now = clock or utc_now

    for raw in paths:
        path = Path(raw)
        try:
            hex_digest, size = await digest_file(path)
            record = make_record(path.name, size, hex_digest, now())
        except (DigestUnavailable, OSError, ValueError) as e:
            logger.warning("Could not hash %s: %s", path, e)
            report.failures.append(CertifyFailure(path.name, e))
            continue

        store.append(record)
        report.records.append(record)
        logger.debug("Certified %s as %s", path.name, hex_digest)

    return report
