"""
Pytest configuration and shared fixtures for the oneliner test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the oneliner project.
"""

import shutil
import sys
import tempfile
import time
from pathlib import Path
from typing import List
from unittest.mock import Mock

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from oneliner.models import RunnerConfig  # noqa: E402

SLEEPER = Path(__file__).parent.parent / "tools" / "sleeper.py"


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fast_config():
    """Runner configuration with short bounds so failures surface quickly."""
    return RunnerConfig(
        kill_confirmation_timeout=10.0,
        exit_code_max_retries=2,
        exit_code_retry_backoff=0.05,
        termination_poll_interval=0.01,
        monitor_poll_interval=0.01,
        monitor_grace_period=0.05,
        monitor_grace_period_cancelable=0.05,
        io_priority_timeout=5.0,
    )


@pytest.fixture
def sleeper_argv():
    """Build the argv for the busy-spin helper."""
    def _build(seconds) -> List[str]:
        return [sys.executable, str(SLEEPER), str(seconds)]
    return _build


@pytest.fixture
def python_argv():
    """Build an argv running a snippet with the current interpreter."""
    def _build(code: str) -> List[str]:
        return [sys.executable, "-c", code]
    return _build


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_handle():
    """A ProcessHandle stand-in for a process that exited normally with code 0."""
    handle = Mock()
    handle.pid = 12345
    handle.name = "mock_process"
    handle.started_at = time.monotonic()
    handle.wait.return_value = True
    handle.has_exited.return_value = True
    handle.confirm_terminated.return_value = True
    handle.read_exit_code.return_value = 0
    handle.is_alive_os.return_value = False
    handle.os_process = Mock()
    return handle


@pytest.fixture
def mock_output():
    """An OutputCollector stand-in whose streams are already drained."""
    output = Mock()
    output.wait.return_value = True
    output.stdout_text = "out line\n"
    output.stderr_text = ""
    return output


@pytest.fixture
def mock_watcher():
    """A CancellationWatcher stand-in that never fired."""
    watcher = Mock()
    watcher.error = None
    watcher.killed = False
    return watcher


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    yield

    from oneliner.config import manager

    manager.clear_config_cache()
    manager._CONFIG_FILE_PATH = None
