"""
PortLens - Listening port inspector with project-aware process labels.

Finds which processes listen on which TCP ports, names them after the
project they run, maps container ports to containers and can terminate
them.
"""

__version__ = "1.0.0"
__author__ = "PortLens Contributors"
__license__ = "MIT"

from portlens.config import ScanSettings, load_settings
from portlens.controller import ProcessController
from portlens.directory import ProcessDirectory, ProcessEntry, filter_dev_only, ports_by_number
from portlens.shell import CommandRunner, CommandTimeoutError, ToolUnavailableError

__all__ = [
    "CommandRunner",
    "CommandTimeoutError",
    "ProcessController",
    "ProcessDirectory",
    "ProcessEntry",
    "ScanSettings",
    "ToolUnavailableError",
    "filter_dev_only",
    "load_settings",
    "ports_by_number",
    "__version__",
]
