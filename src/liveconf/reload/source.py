"""Change sources: where raw file events come from.

A change source hands out subscriptions. Each subscription owns an
``EventChannel`` that yields ``ChangeEvent`` items, or exceptions when the
backend failed on a particular event. Closing the subscription closes the
channel.

``WatchdogChangeSource`` is the default backend. watchdog delivers events
on its observer thread; the handler blocks that thread until the channel
has accepted each event or been closed.
"""

import asyncio
import concurrent.futures
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Protocol

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from liveconf.errors import ChannelClosedError, SubscriptionError, WatcherError
from liveconf.reload.channel import EventChannel
from liveconf.reload.events import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)

EventItem = ChangeEvent | Exception


class Subscription:
    """A live registration with a change source."""

    def __init__(
        self,
        path: Path,
        channel: EventChannel[EventItem],
        teardown: Callable[[], Awaitable[None]] | None = None,
    ):
        self.path = path
        self.channel = channel
        self._teardown = teardown
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        """Close the channel and release the backend. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self.channel.close()
        if self._teardown is not None:
            await self._teardown()


class ChangeSource(Protocol):
    """Anything that can report file events for a path."""

    async def subscribe(self, path: Path, recursive: bool) -> Subscription:
        """Start watching ``path`` and return the subscription.

        Raises:
            SubscriptionError: If the watch could not be established.
        """
        ...


class _ForwardingHandler(FileSystemEventHandler):
    """Pushes watchdog events for one target into an event channel.

    Runs on the observer thread. Each forward waits for the channel to
    accept the item, checking every ``wait_interval`` seconds whether the
    channel was closed in the meantime, so the observer thread is never
    left waiting on an event loop that is tearing it down.
    """

    def __init__(
        self,
        target: Path,
        watch_dir: Path,
        recursive: bool,
        channel: EventChannel[EventItem],
        loop: asyncio.AbstractEventLoop,
        wait_interval: float = 0.1,
    ):
        super().__init__()
        self.target = target
        self.watch_dir = watch_dir
        self.recursive = recursive
        self.channel = channel
        self.loop = loop
        self.wait_interval = wait_interval

    def _matches(self, path: Path) -> bool:
        if self.recursive:
            return path == self.target or self.target in path.parents
        return path == self.target

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            change = ChangeEvent.from_watchdog(event)
        except (TypeError, ValueError, UnicodeDecodeError) as e:
            self._forward(WatcherError(f"could not decode watchdog event {event!r}: {e}"))
            return

        if event.is_directory:
            # Once the watched directory is gone the emitter stops for good.
            if change.kind is ChangeKind.DELETED and change.path == self.watch_dir:
                self._forward(WatcherError(f"watched directory {self.watch_dir} was deleted"))
            return

        if not self._matches(change.path):
            return

        logger.debug(f"File event: {change.kind.value} {change.path}")
        self._forward(change)

    def _forward(self, item: EventItem) -> None:
        if self.channel.closed:
            logger.debug(f"Discarding event for closed subscription on {self.target}")
            return

        try:
            future = asyncio.run_coroutine_threadsafe(self.channel.send(item), self.loop)
        except RuntimeError:
            logger.debug(f"Event loop gone, discarding event for {self.target}")
            return

        while True:
            try:
                future.result(timeout=self.wait_interval)
                return
            except TimeoutError:
                if self.loop.is_closed():
                    logger.debug(f"Event loop gone, discarding event for {self.target}")
                    return
                if self.channel.closed:
                    future.cancel()
                    logger.debug(f"Discarding event for closed subscription on {self.target}")
                    return
            except (ChannelClosedError, concurrent.futures.CancelledError):
                logger.debug(f"Discarding event for closed subscription on {self.target}")
                return


class WatchdogChangeSource:
    """Change source backed by a watchdog ``Observer``.

    A file target is watched through its parent directory and events are
    filtered down to the file itself. Only a writer closing the file counts
    as a completed write, so saves that rename a temporary file over the
    target arrive as moves and do not trigger a reload.
    """

    def __init__(self, join_timeout: float = 5.0):
        self.join_timeout = join_timeout

    async def subscribe(self, path: Path, recursive: bool) -> Subscription:
        target = Path(path).resolve()
        if not target.exists():
            raise SubscriptionError(f"cannot watch {target}: path does not exist")

        watch_dir = target if target.is_dir() else target.parent
        recursive = recursive and target.is_dir()

        channel: EventChannel[EventItem] = EventChannel()
        handler = _ForwardingHandler(
            target, watch_dir, recursive, channel, asyncio.get_running_loop()
        )
        observer = Observer()

        try:
            observer.schedule(handler, str(watch_dir), recursive=recursive)
            observer.start()
        except OSError as e:
            channel.close()
            raise SubscriptionError(f"cannot watch {target}: {e}") from e

        logger.debug(f"Watching {target} (recursive={recursive})")

        def stop_and_join() -> None:
            # stop() waits for the dispatch thread, which may be mid-forward.
            observer.stop()
            observer.join(self.join_timeout)

        async def teardown() -> None:
            await asyncio.to_thread(stop_and_join)
            if observer.is_alive():
                logger.warning(f"Observer for {target} did not stop within {self.join_timeout}s")
            else:
                logger.debug(f"Stopped watching {target}")

        return Subscription(target, channel, teardown)
