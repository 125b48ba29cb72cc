"""Shared test fixtures for diaglog test suite."""

import io
import os
from unittest.mock import patch

import pytest

from diaglog.lib.log_lib import LogManager, LogSettings
from diaglog.lib.log_lib import manager as _manager_mod


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "slow: multi-threaded or timing-dependent tests")


# ---------------------------------------------------------------------------
# Singleton isolation
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _reset_manager():
    """Reset the LogManager singleton between tests.

    Managers created by init_output() during a test are closed so their
    log files are released before tmp_path is cleaned up.
    """
    old = _manager_mod._manager
    _manager_mod._manager = None
    yield
    current = _manager_mod._manager
    if current is not None and current is not old:
        current.close()
    _manager_mod._manager = old


# ---------------------------------------------------------------------------
# Temporary directory fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def tmp_config_home(tmp_path):
    """Provide a temporary home directory for ~/.diaglog/config.json."""
    home = tmp_path / "home"
    home.mkdir()
    with patch.dict(os.environ, {"HOME": str(home), "USERPROFILE": str(home)}):
        with patch("pathlib.Path.home", return_value=home):
            yield home


@pytest.fixture
def clean_env():
    """Remove DIAGLOG_* variables for the duration of a test."""
    saved = {k: v for k, v in os.environ.items() if k.startswith("DIAGLOG_")}
    for key in saved:
        del os.environ[key]
    yield
    os.environ.update(saved)


# ---------------------------------------------------------------------------
# Manager fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def buf():
    """A StringIO buffer standing in for the console."""
    return io.StringIO()


@pytest.fixture
def settings():
    """Settings without timestamps so lines can be compared exactly."""
    return LogSettings(log_time=False, user_log_time=False)


@pytest.fixture
def out(buf, settings):
    """A LogManager writing to a buffer (level 0)."""
    mgr = LogManager(settings=settings, file=buf)
    yield mgr
    mgr.close()


class RecordingSink:
    """Redirection target collecting messages per method."""

    def __init__(self):
        self.lines = []
        self.errors = []

    def write(self, message):
        self.lines.append(message)

    def on_error(self, message):
        self.errors.append(message)

    def broken(self, message):
        raise RuntimeError("sink is gone")

    def two_args(self, message, level):
        self.lines.append((message, level))

    not_a_method = "plain attribute"


@pytest.fixture
def sink():
    return RecordingSink()
