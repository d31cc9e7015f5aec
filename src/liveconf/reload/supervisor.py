"""Keep a change-source subscription alive for the lifetime of the process.

State machine:

    IDLE -> SUBSCRIBING -> POLLING -> RESUBSCRIBING -> SUBSCRIBING -> ...
    any state -> STOPPED, on stop()

A failed subscribe or a failed poll both restart from SUBSCRIBING. The
only way out, besides ``stop()``, is the watched path disappearing.
"""

import asyncio
import contextlib
import logging
from enum import Enum
from pathlib import Path

from liveconf.errors import ConfigNotFoundError
from liveconf.reload.notify import ChangeNotifier
from liveconf.reload.poller import poll_events
from liveconf.reload.slot import ConfigSlot
from liveconf.reload.source import ChangeSource, Subscription, WatchdogChangeSource

logger = logging.getLogger(__name__)


class SupervisorState(Enum):
    """Lifecycle state of a watch supervisor."""

    IDLE = "idle"
    SUBSCRIBING = "subscribing"
    POLLING = "polling"
    RESUBSCRIBING = "resubscribing"
    STOPPED = "stopped"


class WatchSupervisor:
    """Owns the subscription for one configuration slot and restarts it on failure.

    Restarts happen immediately by default. Watcher failures are assumed to
    be rare backend hiccups, unlike the initial load which backs off. Set
    ``resubscribe_delay`` to pause between restarts instead.
    """

    def __init__(
        self,
        slot: ConfigSlot,
        source: ChangeSource | None = None,
        notifier: ChangeNotifier | None = None,
        resubscribe_delay: float = 0.0,
    ):
        self.slot = slot
        self.source = source or WatchdogChangeSource()
        self.notifier = notifier
        self.resubscribe_delay = resubscribe_delay

        self.state = SupervisorState.IDLE
        self.restarts = 0
        self._stop = asyncio.Event()
        self._subscription: Subscription | None = None

    @property
    def path(self) -> Path:
        return self.slot.path

    async def run(self) -> None:
        """Watch the slot's path until ``stop()`` is called.

        Raises:
            ConfigNotFoundError: If the watched path does not exist, at start
                or after a failed subscribe.
        """
        try:
            if not self.path.exists():
                raise ConfigNotFoundError(self.path)

            logger.info(f"Watching {self.path} for changes")
            while not self._stop.is_set():
                self.state = SupervisorState.SUBSCRIBING
                subscription = await self._subscribe()
                if subscription is None:
                    continue

                self._subscription = subscription
                if self._stop.is_set():
                    await subscription.close()
                    break

                self.state = SupervisorState.POLLING
                try:
                    await poll_events(subscription.channel, self.slot, self.notifier, self._stop)
                except Exception as e:
                    logger.warning(f"An error occurred in the watcher for {self.path}: {e}, resubscribing")
                    self._mark_restart()
                finally:
                    self._subscription = None
                    await subscription.close()

                if self.state is SupervisorState.RESUBSCRIBING:
                    await self._pause()
        finally:
            self.state = SupervisorState.STOPPED
            logger.info(f"Stopped watching {self.path}")

    async def stop(self) -> None:
        """Ask ``run()`` to return and tear down the active subscription."""
        self._stop.set()
        if self._subscription is not None:
            await self._subscription.close()

    async def _subscribe(self) -> Subscription | None:
        try:
            return await self.source.subscribe(self.path, recursive=self.path.is_dir())
        except Exception as e:
            if not self.path.exists():
                raise ConfigNotFoundError(self.path) from e
            logger.warning(f"Failed to subscribe to changes on {self.path}: {e}, retrying")
            self._mark_restart()
            await self._pause()
            return None

    def _mark_restart(self) -> None:
        self.state = SupervisorState.RESUBSCRIBING
        self.restarts += 1

    async def _pause(self) -> None:
        # Always yield once so a failing source cannot monopolize the loop.
        if self.resubscribe_delay <= 0:
            await asyncio.sleep(0)
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stop.wait(), timeout=self.resubscribe_delay)
