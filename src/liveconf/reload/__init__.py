"""Hot-reload of a configuration file into a live, shared configuration.

- Change events from a watchdog observer (or any ChangeSource)
- Reload on completed writes, under an exclusive lock
- Fan-out notification to listeners
- Supervised resubscription when the watcher fails
- Initial load with bounded, growing backoff
"""

from liveconf.reload.channel import EventChannel
from liveconf.reload.events import ChangeEvent, ChangeKind
from liveconf.reload.loader import load_initial, load_or_exit
from liveconf.reload.notify import ChangeListener, ChangeNotifier
from liveconf.reload.poller import poll_events
from liveconf.reload.reactor import react
from liveconf.reload.slot import ConfigSlot, ReadWriteLock
from liveconf.reload.source import ChangeSource, Subscription, WatchdogChangeSource
from liveconf.reload.supervisor import SupervisorState, WatchSupervisor

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "ChangeListener",
    "ChangeNotifier",
    "ChangeSource",
    "ConfigSlot",
    "EventChannel",
    "ReadWriteLock",
    "Subscription",
    "SupervisorState",
    "WatchSupervisor",
    "WatchdogChangeSource",
    "load_initial",
    "load_or_exit",
    "poll_events",
    "react",
]
