"""
Command execution module for PortLens.

Runs the external tools the scanner depends on (lsof, ps, docker) with a
bounded timeout and a PATH that also covers the usual package-manager
install locations.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_PATH = "/opt/homebrew/bin:/usr/local/bin:/usr/bin:/bin:/usr/sbin:/sbin"
DEFAULT_TIMEOUT = 10.0


class ToolUnavailableError(RuntimeError):
    """Raised when an external command cannot be launched at all."""

    def __init__(self, tool: str, reason: str = "") -> None:
        self.tool = tool
        message = f"Required tool '{tool}' is not available"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CommandTimeoutError(RuntimeError):
    """Raised when an external command does not finish in time."""

    def __init__(self, tool: str, timeout: float) -> None:
        self.tool = tool
        self.timeout = timeout
        super().__init__(f"'{tool}' did not finish within {timeout:g}s")


@dataclass
class CommandResult:
    """Captured outcome of one external command."""
    args: Sequence[str]
    returncode: int
    stdout: str
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """Check if the command exited with status zero."""
        return self.returncode == 0


class CommandRunner:
    """
    Runs external commands for the scanning pipeline.

    Every call blocks until the command exits or the timeout expires.
    Commands are never run through a shell; arguments are passed as a list.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        search_path: str = DEFAULT_SEARCH_PATH
    ) -> None:
        """
        Initialize the runner.

        Args:
            timeout: Seconds to wait for each command before giving up
            search_path: Directories prepended to PATH for tool lookup
        """
        self._timeout = timeout
        self._search_path = search_path

    @property
    def timeout(self) -> float:
        """Get the per-command timeout in seconds."""
        return self._timeout

    @property
    def path(self) -> str:
        """Get the effective PATH used for lookups and child processes."""
        inherited = os.environ.get("PATH", "")
        if not inherited:
            return self._search_path
        if not self._search_path:
            return inherited
        return self._search_path + os.pathsep + inherited

    def which(self, tool: str) -> Optional[str]:
        """
        Locate a tool without running it.

        Args:
            tool: Executable name

        Returns:
            Absolute path of the executable, or None if not installed
        """
        return shutil.which(tool, path=self.path)

    def run(self, args: Sequence[str]) -> CommandResult:
        """
        Run a command and capture its output.

        Args:
            args: Command and arguments

        Returns:
            CommandResult with decoded stdout/stderr

        Raises:
            ToolUnavailableError: If the executable cannot be launched
            CommandTimeoutError: If the command exceeds the timeout
        """
        tool = args[0]
        env = dict(os.environ)
        env["PATH"] = self.path
        executable = shutil.which(tool, path=env["PATH"]) or tool

        start = time.perf_counter()
        try:
            proc = subprocess.run(
                [executable, *args[1:]],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=env,
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise ToolUnavailableError(tool, "not found on PATH") from e
        except PermissionError as e:
            raise ToolUnavailableError(tool, "permission denied") from e
        except subprocess.TimeoutExpired as e:
            raise CommandTimeoutError(tool, self._timeout) from e
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.debug("[%.0fms] %s", elapsed_ms, " ".join(args))

        return CommandResult(
            args=list(args),
            returncode=proc.returncode,
            stdout=proc.stdout.decode("utf-8", errors="replace"),
            stderr=proc.stderr.decode("utf-8", errors="replace"),
        )
