"""
Tests for CPU and I/O priority adjustment.
"""

from unittest.mock import Mock, patch

import psutil
import pytest

from oneliner.models import CmdResult, CommandSpec, IOPriorityClass, Outcome, PriorityClass, RunnerConfig
from oneliner.system import IO_PRIORITY_LEVELS, PriorityAdjuster, io_priority_arguments, set_process_priority
from oneliner.validation import LaunchError, PriorityAdjustmentError


def make_result(exit_code=0, stderr=""):
    outcome = Outcome.SUCCESS if exit_code == 0 else Outcome.FAILED
    return CmdResult(exit_code, exit_code == 0, "", stderr, outcome, 0.01)


@pytest.mark.unit
class TestPriorityMappings:
    """Test the tier tables."""

    def test_every_io_tier_mapped(self):
        """Test that each I/O tier has a (class, level) pair."""
        assert set(IO_PRIORITY_LEVELS) == set(IOPriorityClass)

    def test_io_levels(self):
        """Test the Linux class and level of each tier."""
        assert io_priority_arguments(IOPriorityClass.IDLE) == (3, 0)
        assert io_priority_arguments(IOPriorityClass.LOW_EFFORT) == (2, 7)
        assert io_priority_arguments(IOPriorityClass.NORMAL_EFFORT) == (2, 4)
        assert io_priority_arguments(IOPriorityClass.HIGH_EFFORT) == (2, 0)
        assert io_priority_arguments(IOPriorityClass.ADMIN_REALTIME_LOW_EFFORT) == (1, 7)
        assert io_priority_arguments(IOPriorityClass.ADMIN_REALTIME_AVERAGE_EFFORT) == (1, 4)
        assert io_priority_arguments(IOPriorityClass.ADMIN_REALTIME_EXTREME_EFFORT) == (1, 0)


@pytest.mark.unit
class TestSetProcessPriority:
    """Test set_process_priority."""

    @patch("oneliner.system.priority.os")
    @patch("oneliner.system.priority.psutil.Process")
    def test_posix_nice(self, mock_process, mock_os):
        """Test that POSIX tiers map to nice values."""
        mock_os.name = "posix"

        assert set_process_priority(42, PriorityClass.IDLE)
        mock_process.assert_called_once_with(42)
        mock_process.return_value.nice.assert_called_once_with(19)

    @patch("oneliner.system.priority.psutil.Process")
    def test_failure_is_reported(self, mock_process):
        """Test that a refused change returns False instead of raising."""
        mock_process.return_value.nice.side_effect = psutil.AccessDenied(pid=42)

        assert not set_process_priority(42, PriorityClass.REALTIME)


@pytest.mark.unit
class TestPriorityAdjuster:
    """Test the external-tool I/O priority adjuster."""

    @pytest.fixture
    def runner(self):
        return Mock()

    @pytest.fixture
    def adjuster(self, runner):
        return PriorityAdjuster(runner, RunnerConfig(io_priority_timeout=7.0))

    def test_build_command(self, adjuster):
        """Test the ionice arguments for normal and idle classes."""
        assert adjuster.build_command(10, IOPriorityClass.HIGH_EFFORT) == [
            "ionice", "-c", "2", "-n", "0", "-p", "10"
        ]
        assert adjuster.build_command(10, IOPriorityClass.IDLE) == ["ionice", "-c", "3", "-p", "10"]

    @patch("oneliner.system.priority.os")
    def test_plain_attempt_succeeds(self, mock_os, adjuster, runner):
        """Test that sudo is not tried when the plain attempt works."""
        mock_os.name = "posix"
        runner.return_value = make_result(0)

        result = adjuster.set_io_priority(10, IOPriorityClass.LOW_EFFORT)

        assert result.success
        runner.assert_called_once()
        spec = runner.call_args.args[0]
        assert isinstance(spec, CommandSpec)
        assert spec.command == ("ionice", "-c", "2", "-n", "7", "-p", "10")
        assert spec.timeout == 7.0
        assert spec.collect_resource_stats is False

    @patch("oneliner.system.priority.os")
    def test_sudo_fallback(self, mock_os, adjuster, runner):
        """Test escalation through sudo after a failed plain attempt."""
        mock_os.name = "posix"
        runner.side_effect = [make_result(1, "ionice: Operation not permitted\n"), make_result(0)]

        result = adjuster.set_io_priority(10, IOPriorityClass.ADMIN_REALTIME_EXTREME_EFFORT)

        assert result.success
        elevated = runner.call_args_list[1].args[0]
        assert elevated.command[:2] == ("sudo", "-n")
        assert elevated.command[2:] == ("ionice", "-c", "1", "-n", "0", "-p", "10")

    @patch("oneliner.system.priority.os")
    def test_both_attempts_fail(self, mock_os, adjuster, runner):
        """Test that both diagnostics are reported."""
        mock_os.name = "posix"
        runner.side_effect = [
            make_result(1, "ionice: Operation not permitted\n"),
            make_result(1, "sudo: a password is required\n"),
        ]

        with pytest.raises(PriorityAdjustmentError) as exc_info:
            adjuster.set_io_priority(10, IOPriorityClass.HIGH_EFFORT)

        assert len(exc_info.value.attempts) == 2
        assert "Operation not permitted" in str(exc_info.value)
        assert "password is required" in str(exc_info.value)

    @patch("oneliner.system.priority.os")
    def test_tool_cannot_start(self, mock_os, adjuster, runner):
        """Test that launch failures count as failed attempts."""
        mock_os.name = "posix"
        runner.side_effect = [LaunchError("Executable not found: 'ionice'"), make_result(0)]

        result = adjuster.set_io_priority(10, IOPriorityClass.IDLE)

        assert result.success
        assert runner.call_count == 2

    @patch("oneliner.system.priority.os")
    def test_unsupported_platform(self, mock_os, adjuster, runner):
        """Test that non-POSIX platforms fail without running anything."""
        mock_os.name = "nt"

        with pytest.raises(PriorityAdjustmentError):
            adjuster.set_io_priority(10, IOPriorityClass.IDLE)
        runner.assert_not_called()
