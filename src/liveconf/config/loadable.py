"""The contract a configuration type must satisfy to be hot-reloaded."""

from pathlib import Path
from typing import Protocol, Self, runtime_checkable


@runtime_checkable
class Loadable(Protocol):
    """A configuration object that can be (re)read from a file.

    Implementations are free to use any file format. ``reload`` must be
    all-or-nothing: either every field is replaced from the file, or the
    object is left untouched and an exception is raised.
    """

    @classmethod
    def default(cls) -> Self:
        """Construct an empty configuration that is not yet bound to a file."""
        ...

    @property
    def path(self) -> Path | None:
        """The file this configuration was bound to."""
        ...

    def bind_path(self, path: str | Path) -> None:
        """Bind the configuration to the file it should be read from."""
        ...

    def reload(self) -> None:
        """Replace the configuration contents from the bound file."""
        ...
