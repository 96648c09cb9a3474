# prooflog/config.py
"""
Settings resolution: explicit flag, then PROOFLOG_* environment variable, then default.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

ENV_PREFIX = "PROOFLOG_"

DEFAULT_FEED_INTERVAL = 1.5          # seconds between events
DEFAULT_FEED_DURATION = 5 * 60.0     # auto-close after 5 minutes
DEFAULT_FEED_URL = "http://127.0.0.1:8000/api/ticker"


def default_store_uri() -> str:
    return f"sqlite://{Path.home() / '.prooflog' / 'proofs.db'}"


def get_store_uri(store_flag: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> str:
    """Resolve storage URI in this order:
    1. --store flag
    2. PROOFLOG_STORE environment variable
    3. Default: sqlite://~/.prooflog/proofs.db

    A bare file path is treated as a SQLite database.
    """
    env = os.environ if env is None else env
    uri = store_flag or env.get(f"{ENV_PREFIX}STORE") or default_store_uri()
    uri = uri.strip()
    if not uri.startswith(("sqlite://", "json:", "memory:")):
        uri = f"sqlite://{uri}"
    return uri


@dataclass(frozen=True)
class FeedSettings:
    interval: float = DEFAULT_FEED_INTERVAL
    duration: float = DEFAULT_FEED_DURATION
    url: str = DEFAULT_FEED_URL

    def validate(self) -> None:
        if self.interval <= 0:
            raise ValueError("feed interval must be positive")
        if self.duration <= 0:
            raise ValueError("feed duration must be positive")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "FeedSettings":
        env = os.environ if env is None else env
        settings = cls(
            interval=float(env.get(f"{ENV_PREFIX}FEED_INTERVAL", DEFAULT_FEED_INTERVAL)),
            duration=float(env.get(f"{ENV_PREFIX}FEED_DURATION", DEFAULT_FEED_DURATION)),
            url=env.get(f"{ENV_PREFIX}FEED_URL", DEFAULT_FEED_URL),
        )
        settings.validate()
        return settings
