"""
Process control module for PortLens.

Sends termination signals to listed processes and hands local ports to
the default browser.
"""

from __future__ import annotations

import logging
import signal
import webbrowser

import psutil

logger = logging.getLogger(__name__)


def local_url(port: int) -> str:
    """Build the browser URL for a locally listening port."""
    return f"http://localhost:{port}"


class ProcessController:
    """
    Terminates processes by PID.

    A PID taken from a snapshot may already be gone, so a missing process
    is an ordinary failure, not an exception.
    """

    GRACEFUL_SIGNAL = signal.SIGTERM
    FORCEFUL_SIGNAL = signal.SIGKILL

    def signal_for(self, forceful: bool) -> int:
        """Get the signal used for a graceful or forced termination."""
        return self.FORCEFUL_SIGNAL if forceful else self.GRACEFUL_SIGNAL

    def terminate(self, pid: int, forceful: bool = False) -> bool:
        """
        Send a termination signal.

        Delivery does not prove the process exited; use wait_for_exit
        to confirm.

        Args:
            pid: Process ID
            forceful: Send SIGKILL instead of SIGTERM

        Returns:
            True if the signal was delivered
        """
        sig = self.signal_for(forceful)
        try:
            psutil.Process(pid).send_signal(sig)
        except psutil.NoSuchProcess:
            logger.warning("Cannot signal PID %d: no such process", pid)
            return False
        except psutil.AccessDenied:
            logger.warning("Cannot signal PID %d: permission denied", pid)
            return False
        except (OSError, ValueError) as e:
            logger.warning("Cannot signal PID %d: %s", pid, e)
            return False

        logger.debug("Sent %s to PID %d", signal.Signals(sig).name, pid)
        return True

    def wait_for_exit(self, pid: int, timeout: float = 3.0) -> bool:
        """
        Wait for a process to exit.

        Args:
            pid: Process ID
            timeout: Seconds to wait

        Returns:
            True if the process is gone within the timeout
        """
        try:
            psutil.Process(pid).wait(timeout=timeout)
        except psutil.NoSuchProcess:
            return True
        except psutil.TimeoutExpired:
            return False
        except ValueError as e:
            logger.warning("Cannot wait for PID %d: %s", pid, e)
            return False
        return True

    def open_in_browser(self, port: int) -> bool:
        """
        Open http://localhost:<port> with the default URL handler.

        Args:
            port: Local port

        Returns:
            True if a browser accepted the URL
        """
        url = local_url(port)
        try:
            opened = webbrowser.open(url)
        except webbrowser.Error as e:
            logger.warning("Cannot open %s: %s", url, e)
            return False
        return bool(opened)
