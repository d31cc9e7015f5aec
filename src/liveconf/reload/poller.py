"""Drain an event channel into the reactor, one event at a time."""

import asyncio
import logging

from liveconf.errors import ChannelClosedError
from liveconf.reload.channel import EventChannel
from liveconf.reload.notify import ChangeNotifier
from liveconf.reload.reactor import react
from liveconf.reload.slot import ConfigSlot
from liveconf.reload.source import EventItem

logger = logging.getLogger(__name__)


async def poll_events(
    channel: EventChannel[EventItem],
    slot: ConfigSlot,
    notifier: ChangeNotifier | None = None,
    stop: asyncio.Event | None = None,
) -> None:
    """Feed every item from ``channel`` to the reactor until something fails.

    Each event is fully handled, reload included, before the next one is
    read, so reloads happen in the order events were observed.

    Returns only when the channel closes after ``stop`` was set.

    Raises:
        ChannelClosedError: If the channel closed without a stop request.
        Exception: An error item received from the channel, or any error
            raised by the reactor. The channel must not be polled again.
    """
    while True:
        item = await channel.receive()
        if item is None:
            if stop is not None and stop.is_set():
                logger.debug(f"Stopped polling events for {slot.path}")
                return
            raise ChannelClosedError()

        if isinstance(item, Exception):
            raise item

        await react(item, slot, notifier)
