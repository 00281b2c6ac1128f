"""
Socket listing module for PortLens.

Enumerates listening TCP sockets with lsof and turns its tabular output
into (process label, pid, port) rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from portlens.shell import CommandRunner, CommandTimeoutError

logger = logging.getLogger(__name__)

# COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME (LISTEN)
MIN_COLUMNS = 10
LABEL_COLUMN = 0
PID_COLUMN = 1
ADDRESS_COLUMN = 8


@dataclass(frozen=True)
class RawSocketRow:
    """One listening socket as reported by the OS."""
    process_label: str
    pid: int
    port: int


def parse_port(address: str) -> Optional[int]:
    """
    Extract the port number from an lsof address field.

    Handles "host:port" as well as "host:start-end" ranges, in which case
    the start of the range is used.

    Args:
        address: Address column such as "*:3000" or "[::1]:8000-8010"

    Returns:
        Port number, or None if the field does not contain one
    """
    segment = address.split(":")[-1]
    segment = segment.split("-")[0]
    try:
        return int(segment)
    except ValueError:
        return None


def parse_row(line: str) -> Optional[RawSocketRow]:
    """
    Parse one line of lsof output.

    Args:
        line: Raw output line

    Returns:
        RawSocketRow, or None for headers and malformed lines
    """
    columns = line.split()
    if len(columns) < MIN_COLUMNS:
        return None

    try:
        pid = int(columns[PID_COLUMN])
    except ValueError:
        return None

    port = parse_port(columns[ADDRESS_COLUMN])
    if port is None:
        return None

    return RawSocketRow(process_label=columns[LABEL_COLUMN], pid=pid, port=port)


def parse_lsof_output(output: str) -> List[RawSocketRow]:
    """Parse full lsof output, skipping every line that is not a socket row."""
    rows: List[RawSocketRow] = []
    for line in output.splitlines():
        row = parse_row(line)
        if row is not None:
            rows.append(row)
    return rows


class SocketLister:
    """
    Lists listening TCP sockets.

    A missing lsof raises ToolUnavailableError from the runner, so callers
    can tell "nothing is listening" apart from "cannot look".
    """

    def __init__(self, runner: CommandRunner, lsof_binary: str = "lsof") -> None:
        self._runner = runner
        self._lsof = lsof_binary

    def command(self) -> List[str]:
        """Get the lsof invocation: numeric hosts and ports, LISTEN only."""
        return [self._lsof, "-iTCP", "-sTCP:LISTEN", "-n", "-P"]

    def list_listening_sockets(self) -> List[RawSocketRow]:
        """
        Run lsof once and parse its output.

        Returns:
            List of socket rows (empty if nothing is listening or lsof timed out)

        Raises:
            ToolUnavailableError: If lsof cannot be launched
        """
        try:
            result = self._runner.run(self.command())
        except CommandTimeoutError as e:
            logger.warning("Socket listing unavailable: %s", e)
            return []

        # lsof exits 1 when nothing matches; the output is what counts
        return parse_lsof_output(result.stdout)
