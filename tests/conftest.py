"""Shared test fixtures for beecli.

Provides isolated config environments, a controllable clock, a
cancellation token that records sleeps instead of blocking, file-backed
secret storage under ``tmp_path``, and a CLI runner. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest

from beecli.auth.cancel import CancellationToken
from beecli.auth.secret_store import FileSecretStore
from beecli.exceptions import CancelledError
from beecli.models import EnvironmentConfig
from beecli.output import OutputFormat, OutputManager, reset_output, set_output


START = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Time and cancellation doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingToken(CancellationToken):
    """Cancellation token whose sleeps return at once and advance *clock*.

    With *cancel_after* set, the token fires during that many-th sleep, the
    way a Ctrl-C arriving mid-wait would.
    """

    def __init__(
        self,
        clock: Optional[FakeClock] = None,
        cancel_after: Optional[int] = None,
    ) -> None:
        super().__init__()
        self.sleeps: list[float] = []
        self._clock = clock
        self._cancel_after = cancel_after

    def sleep(self, seconds: float) -> None:
        self.raise_if_cancelled()
        self.sleeps.append(seconds)
        if self._clock is not None:
            self._clock.advance(seconds)
        if self._cancel_after is not None and len(self.sleeps) >= self._cancel_after:
            self.cancel()
            raise CancelledError("Cancelled.")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cancel(clock: FakeClock) -> RecordingToken:
    return RecordingToken(clock)


@pytest.fixture
def make_token(clock: FakeClock):
    """Factory for extra recording tokens sharing the test clock."""

    def _make(cancel_after: Optional[int] = None) -> RecordingToken:
        return RecordingToken(clock, cancel_after=cancel_after)

    return _make


# ---------------------------------------------------------------------------
# Environment and storage fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def environment() -> EnvironmentConfig:
    """A test environment with a single pairing base URL."""
    return EnvironmentConfig(
        name="test",
        label="test",
        api_url="https://api.bee.test",
        pairing_urls=["https://pair.bee.test"],
        app_id="test-app",
        connect_host="bee.test",
    )


@pytest.fixture
def secrets(tmp_path: Path) -> FileSecretStore:
    """A file secret store rooted in tmp_path."""
    return FileSecretStore(tmp_path / "secrets")


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config or secrets. Clears all BEE_* environment variables and
    changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["BEE_ENV", "BEE_SECRET_BACKEND", "BEE_EMOJI_HASH"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a PLAIN-format OutputManager with colour disabled."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
