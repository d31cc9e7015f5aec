"""Broadcast signal telling listeners that the configuration was reloaded.

The signal carries no payload. A listener learns only that at least one
reload happened since it last looked, and then reads the config slot for
the actual values. Pulses that arrive while a listener is busy collapse
into a single pending change.
"""

import asyncio
import logging
import weakref

from liveconf.errors import NotifierClosedError

logger = logging.getLogger(__name__)


class ChangeListener:
    """One subscriber to a ``ChangeNotifier``."""

    def __init__(self, notifier: "ChangeNotifier"):
        self._notifier = notifier
        self._seen = notifier.version

    def has_changed(self) -> bool:
        """True if a reload was published since this listener last observed one."""
        return self._notifier.version != self._seen

    async def changed(self) -> None:
        """Wait until a reload is published, then mark it as seen.

        Returns immediately if a pulse arrived since the last call.

        Raises:
            NotifierClosedError: If the notifier is closed.
        """
        while True:
            if self._notifier.closed:
                raise NotifierClosedError()
            if self.has_changed():
                self._seen = self._notifier.version
                return
            await self._notifier.next_pulse()


class ChangeNotifier:
    """Fan-out of "config changed" pulses to any number of listeners.

    Publishing never waits on listeners and succeeds when there are none.
    It fails only after ``close()``.
    """

    def __init__(self) -> None:
        self._version = 0
        self._closed = False
        self._pulse = asyncio.Event()
        self._listeners: weakref.WeakSet[ChangeListener] = weakref.WeakSet()

    @property
    def version(self) -> int:
        """Number of pulses published so far."""
        return self._version

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def listener_count(self) -> int:
        """Number of live listeners."""
        return len(self._listeners)

    async def next_pulse(self) -> None:
        """Wait for the next publish or for the notifier to close."""
        await self._pulse.wait()

    def subscribe(self) -> ChangeListener:
        """Register a new listener. It sees only pulses published after this call."""
        listener = ChangeListener(self)
        self._listeners.add(listener)
        return listener

    def publish(self) -> None:
        """Wake every waiting listener.

        Raises:
            NotifierClosedError: If the notifier has been closed.
        """
        if self._closed:
            raise NotifierClosedError()

        self._version += 1
        logger.debug(f"Publishing change notification to {self.listener_count} listeners")
        pulse, self._pulse = self._pulse, asyncio.Event()
        pulse.set()

    def close(self) -> None:
        """Tear down the notifier and release every waiting listener."""
        self._closed = True
        self._pulse.set()
