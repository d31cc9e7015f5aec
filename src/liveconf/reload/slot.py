"""The shared slot holding the live configuration.

Readers and the single writer coordinate through a writer-preferring
readers/writer lock: any number of readers may hold the slot at once, a
writer holds it alone, and once a writer is waiting no new reader gets in
ahead of it.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Generic, TypeVar

from liveconf.config.loadable import Loadable
from liveconf.errors import ConfigError

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=Loadable)


class ReadWriteLock:
    """asyncio readers/writer lock that does not starve writers."""

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def write_locked(self) -> bool:
        return self._writer

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and self._waiting_writers == 0)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            finally:
                self._waiting_writers -= 1
                # Readers held back by this writer must re-check if it gave up.
                self._cond.notify_all()
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class ConfigSlot(Generic[C]):
    """Holds the current configuration for its watched path.

    Create one per configuration and pass it to whatever needs live
    values:

        async with slot.read() as config:
            use(config.salt)

    Only the reload pipeline should take ``write()``.
    """

    def __init__(self, config: C, path: str | Path | None = None):
        bound = path if path is not None else config.path
        if bound is None:
            raise ConfigError("a configuration slot needs a path to watch")

        # Reloads must read the file that is being watched.
        if config.path is None or Path(config.path) != Path(bound):
            config.bind_path(bound)

        self._config = config
        self._path = Path(bound)
        self._lock = ReadWriteLock()
        self._version = 0

    @property
    def path(self) -> Path:
        """The watched path. Fixed for the lifetime of the slot."""
        return self._path

    @property
    def version(self) -> int:
        """Number of completed writes since the slot was created."""
        return self._version

    @asynccontextmanager
    async def read(self) -> AsyncIterator[C]:
        """Hold shared access to the configuration."""
        async with self._lock.read():
            yield self._config

    @asynccontextmanager
    async def write(self) -> AsyncIterator[C]:
        """Hold exclusive access to the configuration.

        The version is bumped only if the block exits without an exception.
        """
        async with self._lock.write():
            yield self._config
            self._version += 1
            logger.debug(f"Config slot for {self._path} updated to version {self._version}")
