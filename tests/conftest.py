"""Pytest configuration and fixtures."""

import asyncio
import sys
import threading
import time
from pathlib import Path

import pytest
from pydantic import Field

from liveconf.config import YamlConfig
from liveconf.errors import SubscriptionError
from liveconf.reload import ChangeNotifier, ConfigSlot, EventChannel, Subscription


class SaltConfig(YamlConfig):
    """Schema used across the YAML and end-to-end tests."""

    salt: str
    salt_length: int = 16
    http: dict[str, str] = Field(default_factory=dict)
    grpc: dict[str, str] = Field(default_factory=dict)


class RecordingConfig:
    """In-memory Loadable whose reload outcomes are scripted by the test.

    ``first`` and ``second`` are always written together by a successful
    reload, so a reader that sees them differ has observed a torn value.
    """

    def __init__(self, path: Path | None = None, reload_delay: float = 0.0):
        self._path = path
        self.reload_delay = reload_delay
        self.first = "initial"
        self.second = "initial"
        self.reload_calls = 0
        self.outcomes: list[str | Exception] = []
        self.reload_threads: set[int] = set()
        self.history: list[str] = []

    @classmethod
    def default(cls) -> "RecordingConfig":
        return cls()

    @property
    def path(self) -> Path | None:
        return self._path

    def bind_path(self, path: str | Path) -> None:
        self._path = Path(path)

    def reload(self) -> None:
        self.reload_calls += 1
        self.reload_threads.add(threading.get_ident())
        outcome = self.outcomes.pop(0) if self.outcomes else f"reload-{self.reload_calls}"
        if isinstance(outcome, Exception):
            raise outcome

        self.first = outcome
        if self.reload_delay:
            time.sleep(self.reload_delay)
        self.second = outcome
        self.history.append(outcome)


class FakeChangeSource:
    """Change source whose channels are fed directly by the test."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.attempts = 0
        self.subscriptions: list[Subscription] = []
        self.recursive_flags: list[bool] = []

    async def subscribe(self, path: Path, recursive: bool) -> Subscription:
        self.attempts += 1
        self.recursive_flags.append(recursive)
        if self.failures:
            self.failures -= 1
            raise SubscriptionError("backend unavailable")

        subscription = Subscription(path, EventChannel())
        self.subscriptions.append(subscription)
        return subscription

    async def wait_for_subscription(self, count: int, timeout: float = 2.0) -> Subscription:
        """Wait until ``count`` subscriptions exist and return the latest."""
        async with asyncio.timeout(timeout):
            while len(self.subscriptions) < count:
                await asyncio.sleep(0.01)
        return self.subscriptions[count - 1]


@pytest.fixture
def salt_config_cls() -> type[SaltConfig]:
    return SaltConfig


@pytest.fixture
def salt_file(tmp_path: Path) -> Path:
    """A fresh cfg.yaml holding the test salt."""
    path = tmp_path / "cfg.yaml"
    path.write_text('salt: "test"\nsalt_length: 8\nhttp:\n  addr: "0.0.0.0:8000"\n')
    return path


@pytest.fixture
def recording_config(tmp_path: Path) -> RecordingConfig:
    path = tmp_path / "recording.yaml"
    path.write_text("placeholder: true\n")
    return RecordingConfig(path)


@pytest.fixture
def slot(recording_config: RecordingConfig) -> ConfigSlot[RecordingConfig]:
    return ConfigSlot(recording_config)


@pytest.fixture
def notifier() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture
def fake_source() -> FakeChangeSource:
    return FakeChangeSource()


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "inotify: mark test as requiring inotify close-write events (Linux only)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip inotify tests on platforms that do not report close-write events."""
    if sys.platform.startswith("linux"):
        return

    skip_inotify = pytest.mark.skip(reason="close-write events need inotify (Linux)")
    for item in items:
        if "inotify" in item.keywords:
            item.add_marker(skip_inotify)
