# prooflog/feed/client.py
"""
Subscriber for the ticker event stream. Read-only; never touches the ledger.
"""

import json
import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Iterator, List, Optional

import requests

from prooflog.core.errors import FeedTransportError

logger = logging.getLogger(__name__)

MAX_EVENTS = 100


@dataclass(frozen=True)
class FeedEvent:
    id: str
    ts: int
    kind: str
    hex: str

    def render(self) -> str:
        return f"[{self.kind}] {self.hex}"


def iter_sse_data(lines: Iterable[str]) -> Iterator[str]:
    """
    Yield the data of each event in a text/event-stream.
    Multiple data lines of one event are joined with newlines; comments and
    other fields (event:, id:, retry:) are skipped.
    """
    buf: List[str] = []
    for line in lines:
        if isinstance(line, bytes):
            line = line.decode("utf-8")
        line = line.rstrip("\r")
        if not line:
            if buf:
                yield "\n".join(buf)
                buf = []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if name == "data":
            buf.append(value[1:] if value.startswith(" ") else value)
    if buf:
        yield "\n".join(buf)


def decode_event(data: str) -> Optional[FeedEvent]:
    """Decode one event payload; None if it is not a well-formed event."""
    try:
        obj = json.loads(data)
        return FeedEvent(id=str(obj["id"]), ts=int(obj["ts"]), kind=str(obj["kind"]), hex=str(obj["hex"]))
    except (ValueError, TypeError, KeyError) as e:
        logger.debug("Ignoring undecodable feed event %r: %s", data, e)
        return None


class FeedClient:
    """
    Streams events from the ticker endpoint and keeps the newest `max_events`
    rendered lines, newest first. On a transport error the connection is closed
    and FeedTransportError raised; reconnecting is up to the caller.
    """

    def __init__(self, url: str, session: Optional[requests.Session] = None,
                 max_events: int = MAX_EVENTS, timeout: float = 10.0):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.lines: Deque[str] = deque(maxlen=max_events)
        self._response = None

    def events(self) -> Iterator[FeedEvent]:
        try:
            self._response = self.session.get(
                self.url,
                stream=True,
                timeout=self.timeout,
                headers={"Accept": "text/event-stream"},
            )
            self._response.raise_for_status()
            for data in iter_sse_data(self._response.iter_lines(decode_unicode=True)):
                event = decode_event(data)
                if event is None:
                    continue
                self.lines.appendleft(event.render())
                yield event
        except requests.RequestException as e:
            raise FeedTransportError(f"Feed connection to {self.url} failed: {e}") from e
        finally:
            self.close()

    def close(self) -> None:
        if self._response is not None:
            self._response.close()
            self._response = None
