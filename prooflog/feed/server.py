# prooflog/feed/server.py
"""
Server side of the synthetic certification ticker (text/event-stream).
"""

import asyncio
import logging
import random
from typing import Callable, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import StreamingResponse

from prooflog.config import FeedSettings
from prooflog.feed.events import encode_sse, make_event, now_ms

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

_END = object()


class TickerStream:
    """
    One subscriber's event stream.

    start() queues the INIT event immediately, then a periodic task queues one
    event per `interval`, and an auto-close timer ends the stream after `duration`.
    close() ends after already-queued events; cancel() drops them.
    Both release the periodic task and the auto-close timer synchronously.
    """

    def __init__(
        self,
        settings: FeedSettings,
        rng: Optional[random.Random] = None,
        clock_ms: Callable[[], int] = now_ms,
    ):
        settings.validate()
        self.settings = settings
        self.rng = rng or random.SystemRandom()
        self.clock_ms = clock_ms
        self.counter = 0
        self.closed = False
        self._queue: asyncio.Queue = asyncio.Queue()
        self._interval_task: Optional[asyncio.Task] = None
        self._close_handle: Optional[asyncio.TimerHandle] = None

    @property
    def active_timers(self) -> int:
        """Number of timers still pending (0 once closed or cancelled)."""
        n = 0
        if self._interval_task is not None and not self._interval_task.done():
            n += 1
        if self._close_handle is not None and not self._close_handle.cancelled():
            n += 1
        return n

    def _push_next(self) -> None:
        event = make_event(self.counter, self.rng, self.clock_ms())
        self.counter += 1
        self._queue.put_nowait(event)

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self.settings.interval)
            self._push_next()

    def start(self) -> None:
        """Must be called from a running event loop."""
        if self.closed or self._interval_task is not None:
            raise RuntimeError("TickerStream already started or closed")
        loop = asyncio.get_running_loop()
        self._push_next()
        self._interval_task = loop.create_task(self._tick())
        self._close_handle = loop.call_later(self.settings.duration, self._auto_close)

    def _auto_close(self) -> None:
        logger.debug("Ticker stream auto-closing after %ss", self.settings.duration)
        self._close_handle = None
        self.close()

    def _release_timers(self) -> None:
        if self._interval_task is not None:
            self._interval_task.cancel()
            self._interval_task = None
        if self._close_handle is not None:
            self._close_handle.cancel()
            self._close_handle = None

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._release_timers()
        self._queue.put_nowait(_END)

    def cancel(self) -> None:
        """Subscriber went away: stop timers and discard anything undelivered."""
        self._release_timers()
        while not self._queue.empty():
            self._queue.get_nowait()
        self.closed = True
        self._queue.put_nowait(_END)

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        item = await self._queue.get()
        if item is _END:
            raise StopAsyncIteration
        return encode_sse(item)


router = APIRouter()


@router.get("/api/health")
async def health():
    return {"status": "ok"}


@router.get("/api/ticker")
async def ticker(request: Request):
    settings: FeedSettings = request.app.state.feed_settings
    stream = TickerStream(settings)

    async def body():
        try:
            # timers start with the first read
            stream.start()
            async for chunk in stream:
                yield chunk
        finally:
            # client disconnect or normal end
            stream.cancel()

    return StreamingResponse(body(), media_type="text/event-stream", headers=SSE_HEADERS)


def create_app(settings: Optional[FeedSettings] = None) -> FastAPI:
    app = FastAPI(title="prooflog ticker")
    app.state.feed_settings = settings or FeedSettings.from_env()
    app.include_router(router)
    return app
