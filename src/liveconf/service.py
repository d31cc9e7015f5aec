"""Wire the initial load, the shared slot and the watcher together."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from pathlib import Path
from typing import Generic, Self, TypeVar

from liveconf.config.loadable import Loadable
from liveconf.reload.loader import DEFAULT_BASE_DELAY, DEFAULT_MAX_RETRIES, load_or_exit
from liveconf.reload.notify import ChangeListener, ChangeNotifier
from liveconf.reload.slot import ConfigSlot
from liveconf.reload.source import ChangeSource
from liveconf.reload.supervisor import WatchSupervisor

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=Loadable)


class LiveConfig(Generic[C]):
    """A configuration kept in sync with its file for as long as it runs.

    Usage:

        async with await LiveConfig.start(AppConfig, "APP_CONFIG", "config.yaml") as live:
            async with live.read() as config:
                ...
    """

    def __init__(self, slot: ConfigSlot[C], notifier: ChangeNotifier, supervisor: WatchSupervisor):
        self.slot = slot
        self.notifier = notifier
        self.supervisor = supervisor
        self._task: asyncio.Task[None] | None = None

    @classmethod
    async def start(
        cls,
        config_type: type[C],
        env_var: str,
        default_path: str | Path,
        source: ChangeSource | None = None,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_retries: int = DEFAULT_MAX_RETRIES,
        resubscribe_delay: float = 0.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> "LiveConfig[C]":
        """Load the configuration and start watching it.

        Raises:
            SystemExit: If the initial load fails.
        """
        config = await load_or_exit(
            config_type,
            env_var,
            default_path,
            base_delay=base_delay,
            max_retries=max_retries,
            sleep=sleep,
        )
        slot = ConfigSlot(config)
        notifier = ChangeNotifier()
        supervisor = WatchSupervisor(slot, source, notifier, resubscribe_delay=resubscribe_delay)

        live = cls(slot, notifier, supervisor)
        live._task = asyncio.create_task(supervisor.run(), name=f"liveconf-watch:{slot.path}")
        return live

    @property
    def task(self) -> "asyncio.Task[None]":
        if self._task is None:
            raise RuntimeError("LiveConfig not started. Use LiveConfig.start().")
        return self._task

    def read(self) -> AbstractAsyncContextManager[C]:
        """Shared access to the live configuration."""
        return self.slot.read()

    def subscribe(self) -> ChangeListener:
        """Listen for reloads."""
        return self.notifier.subscribe()

    async def changes(self) -> AsyncIterator[int]:
        """Yield the slot version after every reload, until the watcher ends.

        Raises whatever ended the watcher, if it failed.
        """
        listener = self.subscribe()
        while not self.task.done():
            waiter = asyncio.ensure_future(listener.changed())
            done, _ = await asyncio.wait({waiter, self.task}, return_when=asyncio.FIRST_COMPLETED)
            if waiter not in done:
                waiter.cancel()
                break
            waiter.result()
            yield self.slot.version

        if self.task.done() and not self.task.cancelled():
            self.task.result()

    async def stop(self) -> None:
        """Stop watching. The watcher goes first so no reload publishes to a closed notifier."""
        if self._task is None:
            return
        await self.supervisor.stop()
        try:
            await self._task
        finally:
            self.notifier.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
