"""Bounded hand-off channel between an event producer and the poller.

The channel holds at most one item. A producer awaiting ``send`` is held
until the consumer has taken the previous item, so a fast producer can
never race ahead and lose events.
"""

import asyncio
import logging
from typing import Generic, TypeVar

from liveconf.errors import ChannelClosedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventChannel(Generic[T]):
    """Single-consumer channel with capacity 1 and explicit close."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=1)
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """Close the channel. Items already buffered can still be received."""
        if not self._closed.is_set():
            logger.debug("Event channel closed")
        self._closed.set()

    async def send(self, item: T) -> None:
        """Wait for room in the channel and put ``item`` into it.

        Raises:
            ChannelClosedError: If the channel is closed before the item is accepted.
        """
        if self.closed:
            raise ChannelClosedError()

        accepted = await self._race(asyncio.ensure_future(self._queue.put(item)))
        if not accepted:
            raise ChannelClosedError()

    async def receive(self) -> T | None:
        """Return the next item, or None once the channel is closed and drained."""
        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self.closed:
                return None

            getter = asyncio.ensure_future(self._queue.get())
            got = await self._race(getter)
            if got:
                return getter.result()

    async def _race(self, task: asyncio.Future) -> bool:
        """Wait for ``task`` until it finishes or the channel closes.

        Returns True if the task completed. An unfinished task is cancelled.
        """
        closer = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({task, closer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closer.cancel()
            completed = task.done()
            if not completed:
                task.cancel()
        return completed
