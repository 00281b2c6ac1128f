"""
Command-line interface for PortLens.

Parses command-line arguments and drives scanning, display, export and
process control.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from portlens import __version__
from portlens.config import ScanSettings, load_settings
from portlens.controller import ProcessController, local_url
from portlens.directory import ProcessDirectory, ports_by_number
from portlens.display import Display
from portlens.export import Exporter, ExportFormat
from portlens.shell import ToolUnavailableError

COMMANDS = {"list", "kill", "open"}
TOP_LEVEL_FLAGS = {"-h", "--help", "--version"}

LOG_FORMAT = "[portlens] %(asctime)s %(levelname)s %(message)s"


def configure_logging(verbose: bool) -> logging.Logger:
    """
    Route the package logger to stderr.

    Args:
        verbose: Log debug output, including per-command timings

    Returns:
        The configured "portlens" logger
    """
    logger = logging.getLogger("portlens")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return logger


def positive_int(value: str) -> int:
    """Parse a strictly positive integer argument."""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def positive_float(value: str) -> float:
    """Parse a strictly positive number of seconds."""
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero, got {value}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        metavar="FILE",
        help="Settings file (default: ~/.config/portlens/config.json)"
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output"
    )
    common.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output with command timings"
    )

    parser = argparse.ArgumentParser(
        prog="portlens",
        description="Show which processes listen on which TCP ports, "
                    "labelled by project rather than by binary name.",
        epilog="Without a command, 'list' is assumed.",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # list
    list_parser = subparsers.add_parser(
        "list",
        parents=[common],
        help="List listening processes"
    )
    view_group = list_parser.add_argument_group("View Options")
    views = view_group.add_mutually_exclusive_group()
    views.add_argument(
        "-a", "--all",
        action="store_true",
        help="Include system processes"
    )
    views.add_argument(
        "-d", "--dev",
        action="store_true",
        help="Show development processes only"
    )
    view_group.add_argument(
        "-p", "--by-port",
        action="store_true",
        help="Group by port instead of by process"
    )
    view_group.add_argument(
        "-c", "--commands",
        action="store_true",
        help="Show full command lines"
    )

    scan_group = list_parser.add_argument_group("Scan Options")
    scan_group.add_argument(
        "--timeout",
        type=positive_float,
        metavar="N",
        help="Timeout per OS command in seconds"
    )
    scan_group.add_argument(
        "--no-containers",
        action="store_true",
        help="Skip container port correlation"
    )

    export_group = list_parser.add_argument_group("Export Options")
    export_group.add_argument(
        "--export",
        dest="export_file",
        metavar="FILE",
        help="Export the snapshot to file (JSON or CSV)"
    )
    export_group.add_argument(
        "--export-format",
        choices=["json", "csv"],
        metavar="FMT",
        help="Snapshot format when the extension does not say"
    )

    # kill
    kill_parser = subparsers.add_parser(
        "kill",
        parents=[common],
        help="Terminate a process"
    )
    kill_parser.add_argument("pid", type=positive_int, help="Process ID")
    kill_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Send SIGKILL instead of SIGTERM"
    )
    kill_parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Do not ask for confirmation"
    )
    kill_parser.add_argument(
        "--wait",
        type=float,
        default=0.0,
        metavar="N",
        help="Wait up to N seconds and confirm the process exited"
    )

    # open
    open_parser = subparsers.add_parser(
        "open",
        parents=[common],
        help="Open http://localhost:PORT in the browser"
    )
    open_parser.add_argument("port", type=int, help="Local port")

    return parser


def normalize_argv(argv: Sequence[str]) -> List[str]:
    """Insert the default 'list' command when none is given."""
    args = list(argv)
    if not args or (args[0] not in COMMANDS and args[0] not in TOP_LEVEL_FLAGS):
        args.insert(0, "list")
    return args


def build_settings(args: argparse.Namespace) -> ScanSettings:
    """Load settings and apply command-line overrides."""
    settings = load_settings(args.config)
    if getattr(args, "timeout", None) is not None:
        settings.command_timeout = args.timeout
    if getattr(args, "no_containers", False):
        settings.include_containers = False
    return settings


def run_list(args: argparse.Namespace, display: Display) -> int:
    """Scan, filter, export and print."""
    settings = build_settings(args)
    directory = ProcessDirectory.from_settings(settings)

    exporter: Optional[Exporter] = None
    if args.export_file:
        export_format = ExportFormat(args.export_format) if args.export_format else None
        try:
            exporter = Exporter(args.export_file, export_format)
        except ValueError as e:
            display.print_error(str(e))
            return 1

    try:
        entries = directory.scan(include_system_processes=args.all)
    except ToolUnavailableError as e:
        display.print_error(f"{e}. Cannot list listening sockets.")
        return 1

    view = "all processes" if args.all else "without system processes"
    if args.dev:
        entries = directory.filter_dev_only(entries)
        view = "development processes"

    if args.by_port:
        display.print_port_index(ports_by_number(entries))
    else:
        display.print_processes(entries)
    display.print_summary(entries, view)

    if exporter:
        try:
            count = exporter.write(entries)
        except OSError as e:
            display.print_error(f"Cannot write {exporter.filename}: {e}")
            return 1
        display.print_info(f"Exported {count} processes to: {exporter.filename}")

    return 0


def run_kill(args: argparse.Namespace, display: Display) -> int:
    """Terminate one process and report the outcome."""
    controller = ProcessController()
    signal_name = "SIGKILL" if args.force else "SIGTERM"

    if not args.yes and not display.confirm(
        f"Are you sure you want to send {signal_name} to PID {args.pid}?"
    ):
        display.print_info("Cancelled.")
        return 1

    if not controller.terminate(args.pid, forceful=args.force):
        display.print_error(
            f"Failed to send {signal_name} to PID {args.pid}. "
            "The process may have exited, or you may need elevated privileges (try sudo)."
        )
        return 1

    if args.wait > 0 and not controller.wait_for_exit(args.pid, args.wait):
        display.print_warning(
            f"PID {args.pid} is still running after {args.wait:g}s. Try --force."
        )
        return 1

    display.print_success(f"Sent {signal_name} to PID {args.pid}.")
    return 0


def run_open(args: argparse.Namespace, display: Display) -> int:
    """Open a local port in the browser."""
    controller = ProcessController()
    if not controller.open_in_browser(args.port):
        display.print_error(f"No browser available to open {local_url(args.port)}.")
        return 1
    display.print_info(f"Opened {local_url(args.port)}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for PortLens CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(normalize_argv(sys.argv[1:] if argv is None else argv))

    configure_logging(args.verbose)
    display = Display(use_color=not args.no_color, show_commands=getattr(args, "commands", False))

    try:
        if args.command == "kill":
            return run_kill(args, display)
        if args.command == "open":
            return run_open(args, display)
        return run_list(args, display)
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
