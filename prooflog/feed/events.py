# prooflog/feed/events.py
"""
Synthetic certification events. Illustrative only: the hex payloads are random,
not digests, and nothing here touches the ledger.
"""

import json
import random
import time
from typing import Any, Dict

KIND_INIT = "INIT"
KIND_CERT = "CERT"
KIND_ANCHOR = "ANCHOR"
KINDS = (KIND_INIT, KIND_CERT, KIND_ANCHOR)

INIT_HEX_BYTES = 8
EVENT_HEX_BYTES = 16


def now_ms() -> int:
    return int(time.time() * 1000)


def random_hex(rng: random.Random, n_bytes: int) -> str:
    return f"{rng.getrandbits(n_bytes * 8):0{n_bytes * 2}x}"


def make_event(counter: int, rng: random.Random, timestamp_ms: int) -> Dict[str, Any]:
    """
    Event number `counter` of a stream. Counter 0 is the INIT warmup;
    later events are CERT or ANCHOR with equal odds.
    Deterministic for a seeded `rng`.
    """
    if counter == 0:
        kind, n_bytes = KIND_INIT, INIT_HEX_BYTES
    else:
        kind = KIND_CERT if rng.random() > 0.5 else KIND_ANCHOR
        n_bytes = EVENT_HEX_BYTES

    return {
        "id": f"{timestamp_ms}-{rng.randrange(1_000_000)}",
        "ts": timestamp_ms,
        "kind": kind,
        "hex": random_hex(rng, n_bytes),
    }


def encode_sse(payload: Dict[str, Any]) -> bytes:
    """text/event-stream framing: one data line, blank line terminator."""
    data = json.dumps(payload, separators=(",", ":"))
    return f"data: {data}\n\n".encode("utf-8")
