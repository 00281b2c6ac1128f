"""
Process resolution module for PortLens.

Looks up names, command lines and working directories for a set of PIDs,
one batched OS call per lookup rather than one call per process.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from portlens.paths import compact_home
from portlens.shell import CommandRunner, CommandResult, CommandTimeoutError, ToolUnavailableError

logger = logging.getLogger(__name__)

# COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
CWD_MIN_COLUMNS = 9
CWD_PATH_COLUMN = 8


def join_pids(pids: Iterable[int]) -> str:
    """Format PIDs as the comma-separated list ps and lsof expect."""
    return ",".join(str(pid) for pid in sorted(set(pids)))


def parse_ps_output(output: str) -> Dict[int, str]:
    """
    Parse "ps -o pid,<column>" output into a PID mapping.

    The first line is the header. Each remaining line is split on the first
    run of whitespace; everything after the PID is the value.

    Args:
        output: Raw ps output

    Returns:
        Mapping of PID to column value
    """
    values: Dict[int, str] = {}
    for line in output.splitlines()[1:]:
        parts = line.strip().split(None, 1)
        if len(parts) < 2:
            continue
        try:
            pid = int(parts[0])
        except ValueError:
            continue
        values[pid] = parts[1].strip()
    return values


def canonical_name(command: str) -> str:
    """Strip any directory prefix from a reported command."""
    return command.split("/")[-1] or command


def parse_cwd_output(output: str, home: Optional[str] = None) -> Dict[int, str]:
    """
    Parse "lsof -a -d cwd" output into a PID to directory mapping.

    Paths may contain spaces, so every column from the NAME column onwards
    is part of the path.

    Args:
        output: Raw lsof output
        home: Home directory to abbreviate as "~" (defaults to the user's)

    Returns:
        Mapping of PID to home-relative working directory
    """
    directories: Dict[int, str] = {}
    for line in output.splitlines():
        columns = line.split()
        if len(columns) < CWD_MIN_COLUMNS:
            continue
        try:
            pid = int(columns[1])
        except ValueError:
            continue
        path = " ".join(columns[CWD_PATH_COLUMN:])
        directories[pid] = compact_home(path, home)
    return directories


class ProcessResolver:
    """
    Batched PID lookups.

    A PID missing from a result means the process exited or could not be
    inspected; callers treat it as unknown.
    """

    def __init__(
        self,
        runner: CommandRunner,
        ps_binary: str = "ps",
        lsof_binary: str = "lsof",
        home: Optional[str] = None
    ) -> None:
        """
        Initialize the resolver.

        Args:
            runner: Command runner used for every lookup
            ps_binary: Name or path of ps
            lsof_binary: Name or path of lsof
            home: Home directory for "~" abbreviation (defaults to the user's)
        """
        self._runner = runner
        self._ps = ps_binary
        self._lsof = lsof_binary
        self._home = home

    def _query(self, args: List[str]) -> Optional[CommandResult]:
        try:
            return self._runner.run(args)
        except (ToolUnavailableError, CommandTimeoutError) as e:
            logger.warning("Process lookup unavailable: %s", e)
            return None

    def resolve_names(self, pids: Iterable[int]) -> Dict[int, str]:
        """
        Get the canonical command name for each PID.

        Args:
            pids: Process IDs to resolve

        Returns:
            Mapping of PID to name without directory prefix
        """
        pid_list = join_pids(pids)
        if not pid_list:
            return {}

        result = self._query([self._ps, "-p", pid_list, "-o", "pid,comm"])
        if result is None:
            return {}

        return {
            pid: canonical_name(command)
            for pid, command in parse_ps_output(result.stdout).items()
        }

    def resolve_command_lines(self, pids: Iterable[int]) -> Dict[int, str]:
        """
        Get the full invocation for each PID.

        Args:
            pids: Process IDs to resolve

        Returns:
            Mapping of PID to command line
        """
        pid_list = join_pids(pids)
        if not pid_list:
            return {}

        result = self._query([self._ps, "-p", pid_list, "-o", "pid,args"])
        if result is None:
            return {}

        return parse_ps_output(result.stdout)

    def resolve_working_directories(self, pids: Iterable[int]) -> Dict[int, str]:
        """
        Get the current working directory for each PID.

        Args:
            pids: Process IDs to resolve

        Returns:
            Mapping of PID to working directory, home-relative where possible
        """
        pid_list = join_pids(pids)
        if not pid_list:
            return {}

        result = self._query([self._lsof, "-a", "-d", "cwd", "-p", pid_list])
        if result is None:
            return {}

        return parse_cwd_output(result.stdout, self._home)
