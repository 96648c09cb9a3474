# prooflog/core/errors.py
"""
Error taxonomy. Digest, decode and feed errors propagate to the caller;
storage read/write errors are built and logged by the ledger store, never raised past it.
"""


class ProofLogError(Exception):
    """Base class for all prooflog errors."""


class DigestUnavailable(ProofLogError):
    """The SHA-256 primitive cannot run."""


class StorageError(ProofLogError):
    """A storage backend failed (closed connection, quota exceeded, I/O)."""


class StorageReadCorrupt(ProofLogError):
    """Persisted ledger could not be decoded; the store falls back to an empty ledger."""


class StorageWriteFailed(ProofLogError):
    """Persisting the ledger failed; the in-memory ledger is still valid."""


class DecodeError(ProofLogError):
    """An import document is not a JSON array of proof records."""


class FeedTransportError(ProofLogError):
    """The event feed connection failed or was closed abnormally."""
