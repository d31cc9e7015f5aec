"""Change events observed on a watched path."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CLOSED_NO_WRITE,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    EVENT_TYPE_OPENED,
    FileSystemEvent,
)


class ChangeKind(Enum):
    """What happened to a file."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"
    OPENED = "opened"
    CLOSED_WRITE = "closed_write"
    CLOSED_NO_WRITE = "closed_no_write"
    OTHER = "other"


_WATCHDOG_KINDS: dict[str, ChangeKind] = {
    EVENT_TYPE_CREATED: ChangeKind.CREATED,
    EVENT_TYPE_MODIFIED: ChangeKind.MODIFIED,
    EVENT_TYPE_DELETED: ChangeKind.DELETED,
    EVENT_TYPE_MOVED: ChangeKind.MOVED,
    EVENT_TYPE_OPENED: ChangeKind.OPENED,
    EVENT_TYPE_CLOSED: ChangeKind.CLOSED_WRITE,
    EVENT_TYPE_CLOSED_NO_WRITE: ChangeKind.CLOSED_NO_WRITE,
}


@dataclass(frozen=True)
class ChangeEvent:
    """A single action observed on a watched path."""

    kind: ChangeKind
    path: Path
    detected_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_completed_write(self) -> bool:
        """True if a writer closed the file, i.e. an edit has fully landed."""
        return self.kind is ChangeKind.CLOSED_WRITE

    @classmethod
    def from_watchdog(cls, event: FileSystemEvent) -> "ChangeEvent":
        """Convert a watchdog event. Moves are reported against their destination."""
        kind = _WATCHDOG_KINDS.get(event.event_type, ChangeKind.OTHER)
        raw_path = event.dest_path if kind is ChangeKind.MOVED and event.dest_path else event.src_path
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode()
        return cls(kind=kind, path=Path(raw_path))
