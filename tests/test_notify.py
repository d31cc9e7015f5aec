"""Tests for the change notification fan-out."""

import asyncio
import contextlib
import gc

import pytest

from liveconf.errors import NotifierClosedError
from liveconf.reload import ChangeNotifier


async def test_publish_without_listeners_succeeds(notifier: ChangeNotifier) -> None:
    """Publishing with nobody listening is not an error."""
    notifier.publish()
    notifier.publish()

    assert notifier.version == 2
    assert notifier.listener_count == 0


async def test_all_listeners_are_woken(notifier: ChangeNotifier) -> None:
    """Every waiting listener sees the pulse."""
    listeners = [notifier.subscribe() for _ in range(3)]
    waiters = [asyncio.create_task(listener.changed()) for listener in listeners]
    await asyncio.sleep(0.01)
    assert not any(w.done() for w in waiters)

    notifier.publish()

    await asyncio.wait_for(asyncio.gather(*waiters), timeout=1.0)
    assert notifier.listener_count == 3


async def test_missed_pulses_collapse_into_one(notifier: ChangeNotifier) -> None:
    """A listener that was busy sees one pending change, not a backlog."""
    listener = notifier.subscribe()
    notifier.publish()
    notifier.publish()
    notifier.publish()

    assert listener.has_changed()
    await asyncio.wait_for(listener.changed(), timeout=1.0)
    assert not listener.has_changed()

    pending = asyncio.create_task(listener.changed())
    await asyncio.sleep(0.01)
    assert not pending.done()
    pending.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await pending


async def test_new_listener_ignores_earlier_pulses(notifier: ChangeNotifier) -> None:
    """Subscribing after a publish does not replay it."""
    notifier.publish()
    listener = notifier.subscribe()

    assert not listener.has_changed()


async def test_publish_after_close_raises(notifier: ChangeNotifier) -> None:
    """A torn-down notifier refuses to publish."""
    notifier.close()

    with pytest.raises(NotifierClosedError):
        notifier.publish()


async def test_close_releases_waiting_listeners(notifier: ChangeNotifier) -> None:
    """Listeners blocked in changed() fail once the notifier closes."""
    listener = notifier.subscribe()
    waiter = asyncio.create_task(listener.changed())
    await asyncio.sleep(0.01)

    notifier.close()

    with pytest.raises(NotifierClosedError):
        await asyncio.wait_for(waiter, timeout=1.0)


async def test_dropped_listeners_are_not_counted(notifier: ChangeNotifier) -> None:
    """Listeners that are garbage collected stop counting."""
    listener = notifier.subscribe()
    assert notifier.listener_count == 1

    del listener
    gc.collect()

    assert notifier.listener_count == 0


async def test_next_pulse_waits_for_publish(notifier: ChangeNotifier) -> None:
    """next_pulse() returns once something is published."""
    waiter = asyncio.create_task(notifier.next_pulse())
    await asyncio.sleep(0.01)
    assert not waiter.done()

    notifier.publish()

    await asyncio.wait_for(waiter, timeout=1.0)


async def test_next_pulse_returns_on_close(notifier: ChangeNotifier) -> None:
    """Closing the notifier releases anyone waiting for a pulse."""
    waiter = asyncio.create_task(notifier.next_pulse())
    await asyncio.sleep(0.01)

    notifier.close()

    await asyncio.wait_for(waiter, timeout=1.0)
