"""Exception hierarchy shared by the config and reload packages."""

from pathlib import Path


class LiveConfigError(Exception):
    """Base class for every error raised by liveconf."""


class ConfigError(LiveConfigError):
    """A configuration could not be produced."""


class ConfigNotFoundError(ConfigError):
    """The configuration path does not exist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"no file found at {path}")


class ConfigParseError(ConfigError):
    """The configuration file exists but could not be parsed or validated."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"invalid configuration in {path}: {reason}")


class InitialLoadError(ConfigError):
    """The initial load exhausted its retry budget. Startup must not continue."""

    def __init__(self, path: Path, attempts: int):
        self.path = path
        self.attempts = attempts
        super().__init__(f"failed to load config {path} after {attempts} attempts")


class ReloadError(LiveConfigError):
    """Reloading the live configuration failed; the previous value is still in place."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"failed to reload config {path}: {reason}")


class WatcherError(LiveConfigError):
    """The change source reported a failure."""


class ChannelClosedError(WatcherError):
    """The event channel was closed and no further events will arrive."""

    def __init__(self) -> None:
        super().__init__("watch channel closed")


class SubscriptionError(WatcherError):
    """Subscribing to the change source failed."""


class NotifierClosedError(LiveConfigError):
    """The change notifier was torn down and can no longer publish."""

    def __init__(self) -> None:
        super().__init__("change notifier has been closed")
