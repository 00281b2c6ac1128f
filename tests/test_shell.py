"""
Unit tests for PortLens command execution.
"""

import sys

import pytest

from portlens.shell import CommandRunner, CommandTimeoutError, ToolUnavailableError

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX tools required")


class TestCommandRunner:
    """Tests for CommandRunner."""

    @pytest.fixture
    def runner(self):
        """Create a runner with a short timeout."""
        return CommandRunner(timeout=5.0)

    def test_run_captures_output(self, runner):
        """Test stdout capture and exit status."""
        result = runner.run(["sh", "-c", "echo listening; exit 3"])

        assert result.stdout == "listening\n"
        assert result.returncode == 3
        assert not result.ok

    def test_run_ok(self, runner):
        """Test a successful command."""
        assert runner.run(["true"]).ok

    def test_missing_tool(self, runner):
        """Test that a missing executable raises ToolUnavailableError."""
        with pytest.raises(ToolUnavailableError) as info:
            runner.run(["portlens-no-such-tool", "-x"])
        assert info.value.tool == "portlens-no-such-tool"

    def test_timeout(self):
        """Test that a slow command raises CommandTimeoutError."""
        runner = CommandRunner(timeout=0.2)
        with pytest.raises(CommandTimeoutError) as info:
            runner.run(["sleep", "5"])
        assert info.value.timeout == 0.2

    def test_which(self, runner):
        """Test tool lookup without running it."""
        assert runner.which("sh") is not None
        assert runner.which("portlens-no-such-tool") is None

    def test_search_path_prepended(self, monkeypatch):
        """Test that extra directories come before the inherited PATH."""
        monkeypatch.setenv("PATH", "/usr/bin")
        runner = CommandRunner(search_path="/opt/tools/bin")

        assert runner.path.split(":") == ["/opt/tools/bin", "/usr/bin"]
