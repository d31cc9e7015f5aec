"""React to a single change event on the watched path."""

import asyncio
import logging

from liveconf.errors import ReloadError
from liveconf.reload.events import ChangeEvent
from liveconf.reload.notify import ChangeNotifier
from liveconf.reload.slot import ConfigSlot

logger = logging.getLogger(__name__)


async def react(
    event: ChangeEvent,
    slot: ConfigSlot,
    notifier: ChangeNotifier | None = None,
) -> bool:
    """Reload the slot if ``event`` is a completed write.

    The reload runs in a worker thread while the slot's write lock is held,
    and listeners are notified only after the lock is released.

    Args:
        event: The raw change event.
        slot: The shared configuration slot to reload.
        notifier: Optional fan-out to publish to after a successful reload.

    Returns:
        True if a reload happened, False if the event was ignored.

    Raises:
        ReloadError: If the configuration could not be reloaded. The slot
            keeps its previous value and nothing is published.
        NotifierClosedError: If the notifier has been torn down.
    """
    if not event.is_completed_write:
        return False

    logger.debug(f"File changed: {event.kind.value} {event.path}")

    async with slot.write() as config:
        reload_task = asyncio.ensure_future(asyncio.to_thread(config.reload))
        try:
            await asyncio.shield(reload_task)
        except asyncio.CancelledError:
            # The worker thread cannot be interrupted; keep the lock until it finishes.
            await _finish_after_cancel(reload_task, slot)
            raise
        except Exception as e:
            logger.error(f"Failed to reload config {slot.path}: {e}")
            raise ReloadError(slot.path, str(e)) from e

    logger.info(f"Reloaded config from {slot.path} (version {slot.version})")

    if notifier is not None:
        notifier.publish()
    return True


async def _finish_after_cancel(reload_task: asyncio.Future, slot: ConfigSlot) -> None:
    """Wait out a reload whose caller was cancelled, logging how it ended."""
    while not reload_task.done():
        try:
            await asyncio.shield(reload_task)
        except asyncio.CancelledError:
            continue
        except Exception:
            break

    if reload_task.cancelled():
        return
    error = reload_task.exception()
    if error is not None:
        logger.error(f"Reload of {slot.path} failed after cancellation: {error}")
    else:
        logger.info(f"Reload of {slot.path} finished after cancellation")
