# prooflog/__init__.py
"""
prooflog — local proof-of-existence ledger for arbitrary files.
SHA-256 fingerprints recorded as timestamped, bounded, persistent history,
plus a synthetic certification event feed for live demos.
"""

__version__ = "0.1.0-dev"
