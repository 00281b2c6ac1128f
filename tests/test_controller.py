"""
Unit tests for PortLens process control module.
"""

import signal
import webbrowser

import psutil
import pytest

from portlens import controller as controller_module
from portlens.controller import ProcessController, local_url


class FakeProcess:
    """Stands in for psutil.Process."""

    def __init__(self, pid, error=None, wait_error=None):
        self.pid = pid
        self.error = error
        self.wait_error = wait_error
        self.signals = []

    def send_signal(self, sig):
        if self.error is not None:
            raise self.error
        self.signals.append(sig)

    def wait(self, timeout=None):
        if self.wait_error is not None:
            raise self.wait_error
        return 0


@pytest.fixture
def controller():
    """Create a ProcessController instance."""
    return ProcessController()


def patch_process(monkeypatch, process):
    """Make psutil.Process return the given fake."""
    monkeypatch.setattr(controller_module.psutil, "Process", lambda pid: process)


class TestTerminate:
    """Tests for ProcessController.terminate."""

    def test_graceful(self, controller, monkeypatch):
        """Test that SIGTERM is the default."""
        process = FakeProcess(1234)
        patch_process(monkeypatch, process)

        assert controller.terminate(1234) is True
        assert process.signals == [signal.SIGTERM]

    def test_forceful(self, controller, monkeypatch):
        """Test that force sends SIGKILL."""
        process = FakeProcess(1234)
        patch_process(monkeypatch, process)

        assert controller.terminate(1234, forceful=True) is True
        assert process.signals == [signal.SIGKILL]

    @pytest.mark.parametrize("error", [
        psutil.NoSuchProcess(1234),
        psutil.AccessDenied(1234),
        ProcessLookupError(),
        ValueError("pid must be a positive integer (got -5)"),
    ])
    def test_failures(self, controller, monkeypatch, error):
        """Test that gone or protected processes report failure."""
        patch_process(monkeypatch, FakeProcess(1234, error=error))
        assert controller.terminate(1234) is False

    def test_process_vanished_before_lookup(self, controller, monkeypatch):
        """Test a PID that no longer exists."""
        def missing(pid):
            raise psutil.NoSuchProcess(pid)

        monkeypatch.setattr(controller_module.psutil, "Process", missing)
        assert controller.terminate(99999) is False

    def test_signal_for(self, controller):
        """Test signal selection."""
        assert controller.signal_for(False) == signal.SIGTERM
        assert controller.signal_for(True) == signal.SIGKILL


class TestWaitForExit:
    """Tests for ProcessController.wait_for_exit."""

    def test_exited(self, controller, monkeypatch):
        """Test a process that exits in time."""
        patch_process(monkeypatch, FakeProcess(1234))
        assert controller.wait_for_exit(1234, timeout=0.1) is True

    def test_already_gone(self, controller, monkeypatch):
        """Test a process that is already gone."""
        patch_process(monkeypatch, FakeProcess(1234, wait_error=psutil.NoSuchProcess(1234)))
        assert controller.wait_for_exit(1234, timeout=0.1) is True

    def test_invalid_pid(self, controller, monkeypatch):
        """Test that a PID psutil rejects is a failure, not an exception."""
        def invalid(pid):
            raise ValueError(f"pid must be a positive integer (got {pid})")

        monkeypatch.setattr(controller_module.psutil, "Process", invalid)
        assert controller.wait_for_exit(-5, timeout=0.1) is False
        assert controller.terminate(-5) is False

    def test_still_running(self, controller, monkeypatch):
        """Test a process that ignores the signal."""
        patch_process(monkeypatch, FakeProcess(1234, wait_error=psutil.TimeoutExpired(0.1, 1234)))
        assert controller.wait_for_exit(1234, timeout=0.1) is False


class TestOpenInBrowser:
    """Tests for ProcessController.open_in_browser."""

    def test_local_url(self):
        """Test URL construction."""
        assert local_url(3000) == "http://localhost:3000"

    def test_open(self, controller, monkeypatch):
        """Test handing the URL to the browser."""
        opened = []
        monkeypatch.setattr(webbrowser, "open", lambda url: opened.append(url) or True)

        assert controller.open_in_browser(5173) is True
        assert opened == ["http://localhost:5173"]

    def test_no_browser(self, controller, monkeypatch):
        """Test that a missing browser is reported."""
        def fail(url):
            raise webbrowser.Error("could not locate runnable browser")

        monkeypatch.setattr(webbrowser, "open", fail)
        assert controller.open_in_browser(5173) is False

    def test_browser_declined(self, controller, monkeypatch):
        """Test a handler that refuses the URL."""
        monkeypatch.setattr(webbrowser, "open", lambda url: False)
        assert controller.open_in_browser(5173) is False
