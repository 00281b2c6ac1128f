"""
Shared fixtures for PortLens tests.

External commands are replaced by FakeRunner, which answers with canned
output chosen by a substring of the command line.
"""

import logging
from typing import Dict, Iterable, List, Optional

import pytest

from portlens.shell import CommandResult

LSOF_HEADER = "COMMAND     PID   USER   FD   TYPE             DEVICE SIZE/OFF NODE NAME"
CWD_HEADER = "COMMAND   PID USER   FD   TYPE DEVICE SIZE/OFF     NODE NAME"

# Substrings identifying each command the pipeline runs
SOCKETS = "-iTCP"
NAMES = "pid,comm"
ARGS = "pid,args"
CWDS = "-d cwd"
CONTAINERS = "docker ps"


def lsof_line(label: str, pid: int, address: str) -> str:
    """Build one row of "lsof -iTCP -sTCP:LISTEN -n -P" output."""
    return f"{label:<9} {pid:>6} dev   23u  IPv4 0x1a2b3c4d5e6f7a8b      0t0  TCP {address} (LISTEN)"


def cwd_line(pid: int, path: str, label: str = "node") -> str:
    """Build one row of "lsof -a -d cwd -p" output."""
    return f"{label:<9} {pid:>5} dev  cwd    DIR   1,16      640 12345678 {path}"


def ps_output(column: str, values: Dict[int, str]) -> str:
    """Build "ps -o pid,<column>" output."""
    lines = [f"  PID {column.upper()}"]
    lines += [f"{pid:>5} {value}" for pid, value in values.items()]
    return "\n".join(lines) + "\n"


def lsof_output(rows: Iterable[str], header: str = LSOF_HEADER) -> str:
    return "\n".join([header, *rows]) + "\n"


class FakeRunner:
    """Stands in for CommandRunner."""

    def __init__(
        self,
        outputs: Optional[Dict[str, str]] = None,
        installed: Iterable[str] = ("lsof", "ps"),
        failures: Optional[Dict[str, Exception]] = None
    ) -> None:
        self.outputs = dict(outputs or {})
        self.installed = set(installed)
        self.failures = dict(failures or {})
        self.calls: List[List[str]] = []

    def which(self, tool: str) -> Optional[str]:
        return f"/usr/local/bin/{tool}" if tool in self.installed else None

    def run(self, args) -> CommandResult:
        self.calls.append(list(args))
        joined = " ".join(args)
        for needle, error in self.failures.items():
            if needle in joined:
                raise error
        for needle, output in self.outputs.items():
            if needle in joined:
                return CommandResult(args=list(args), returncode=0, stdout=output)
        return CommandResult(args=list(args), returncode=1, stdout="")

    def calls_matching(self, needle: str) -> List[List[str]]:
        return [call for call in self.calls if needle in " ".join(call)]


@pytest.fixture
def runner():
    """Create an empty FakeRunner."""
    return FakeRunner()


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo the logging setup done by CLI runs."""
    logger = logging.getLogger("portlens")
    handlers, propagate, level = list(logger.handlers), logger.propagate, logger.level
    yield
    logger.handlers[:] = handlers
    logger.propagate = propagate
    logger.setLevel(level)
