# app/services/changefeed.py
"""
In-process change feed for the issues table.

Writers (sync request handlers running in the threadpool) call
``feed.publish(...)``; readers (websocket handlers on the event loop) hold a
``Subscription`` and iterate it with ``async for``. A subscription must be
closed when its consumer goes away, otherwise the feed keeps delivering to it.
"""
import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import ClassVar, Union

from app.schemas.issue import IssueOut

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Inserted:
    issue: IssueOut
    kind: ClassVar[str] = "INSERT"


@dataclass(frozen=True)
class Updated:
    issue: IssueOut
    kind: ClassVar[str] = "UPDATE"


@dataclass(frozen=True)
class Deleted:
    issue_id: str
    kind: ClassVar[str] = "DELETE"


IssueEvent = Union[Inserted, Updated, Deleted]

_CLOSED = object()


class Subscription:
    def __init__(self, feed: "ChangeFeed", loop: asyncio.AbstractEventLoop):
        self._feed = feed
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def _deliver(self, item) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, item)

    async def next(self) -> IssueEvent:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    def __aiter__(self):
        return self

    async def __anext__(self) -> IssueEvent:
        return await self.next()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._feed._remove(self)
        try:
            self._deliver(_CLOSED)
        except RuntimeError:
            # loop already gone, nobody is waiting
            pass

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: set[Subscription] = set()

    def subscribe(self) -> Subscription:
        """Must be called from inside the event loop that will consume events."""
        sub = Subscription(self, asyncio.get_running_loop())
        with self._lock:
            self._subscribers.add(sub)
        logger.debug("change feed subscriber added (%d active)", len(self._subscribers))
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            self._subscribers.discard(sub)
        logger.debug("change feed subscriber removed (%d active)", len(self._subscribers))

    def publish(self, event: IssueEvent) -> None:
        with self._lock:
            targets = list(self._subscribers)
        for sub in targets:
            try:
                sub._deliver(event)
            except RuntimeError:
                logger.warning("dropping subscriber whose event loop is closed")
                sub.closed = True
                self._remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)


feed = ChangeFeed()
