"""Tests for change events and watchdog event classification."""

from pathlib import Path

import pytest
from watchdog.events import (
    FileClosedEvent,
    FileClosedNoWriteEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileOpenedEvent,
)

from liveconf.reload import ChangeEvent, ChangeKind


@pytest.mark.parametrize(
    ("watchdog_event", "kind"),
    [
        (FileCreatedEvent("/etc/app/cfg.yaml"), ChangeKind.CREATED),
        (FileModifiedEvent("/etc/app/cfg.yaml"), ChangeKind.MODIFIED),
        (FileDeletedEvent("/etc/app/cfg.yaml"), ChangeKind.DELETED),
        (FileOpenedEvent("/etc/app/cfg.yaml"), ChangeKind.OPENED),
        (FileClosedEvent("/etc/app/cfg.yaml"), ChangeKind.CLOSED_WRITE),
        (FileClosedNoWriteEvent("/etc/app/cfg.yaml"), ChangeKind.CLOSED_NO_WRITE),
    ],
)
def test_from_watchdog_maps_kinds(watchdog_event, kind: ChangeKind) -> None:
    """Each watchdog event type maps to its change kind."""
    event = ChangeEvent.from_watchdog(watchdog_event)

    assert event.kind is kind
    assert event.path == Path("/etc/app/cfg.yaml")


def test_only_close_after_write_is_a_completed_write() -> None:
    """Only CLOSED_WRITE counts as a finished edit."""
    qualifying = {kind for kind in ChangeKind if ChangeEvent(kind, Path("cfg.yaml")).is_completed_write}

    assert qualifying == {ChangeKind.CLOSED_WRITE}


def test_moved_event_reports_destination() -> None:
    """A rename is reported against the path it was moved to."""
    event = ChangeEvent.from_watchdog(FileMovedEvent("/etc/app/.cfg.yaml.swp", "/etc/app/cfg.yaml"))

    assert event.kind is ChangeKind.MOVED
    assert event.path == Path("/etc/app/cfg.yaml")


def test_bytes_paths_are_decoded() -> None:
    """watchdog may report paths as bytes."""
    event = ChangeEvent.from_watchdog(FileClosedEvent(b"/etc/app/cfg.yaml"))

    assert event.path == Path("/etc/app/cfg.yaml")
    assert event.is_completed_write


def test_events_are_timestamped() -> None:
    """Events record when they were observed."""
    event = ChangeEvent(ChangeKind.MODIFIED, Path("cfg.yaml"))

    assert event.detected_at.tzinfo is not None
