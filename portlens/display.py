"""
Display module for PortLens.

Renders process snapshots in the terminal with rich tables and colored
status messages.
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple, TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table
from rich.text import Text

from portlens.controller import local_url
from portlens.services import identify_service

if TYPE_CHECKING:
    from portlens.directory import ProcessEntry


# Color scheme for label ecosystems
ECOSYSTEM_COLORS = {
    "node": "bright_green",
    "python": "bright_blue",
    "java": "bright_red",
    "docker": "cyan",
}

# Longest command line shown before truncation
MAX_COMMAND_WIDTH = 60


class Display:
    """
    Rich terminal display for PortLens.

    Prints the process table, the port-indexed view and status messages.
    """

    def __init__(self, use_color: bool = True, show_commands: bool = False) -> None:
        """
        Initialize the display.

        Args:
            use_color: Whether to use colored output
            show_commands: Whether to add a command line column
        """
        self._use_color = use_color
        self._show_commands = show_commands
        self._console = Console(color_system="auto" if use_color else None)
        self._error_console = Console(stderr=True, color_system="auto" if use_color else None)

    @property
    def console(self) -> Console:
        """Get the Rich console instance."""
        return self._console

    def format_label(self, entry: "ProcessEntry") -> Text:
        """Format a process label, colored by ecosystem."""
        color = ECOSYSTEM_COLORS.get(entry.base_name, "bright_white")
        return Text(entry.label, style=color)

    def format_ports(self, ports: Sequence[int]) -> Text:
        """Format a port list, highlighting ports with a known service."""
        text = Text()
        for i, port in enumerate(ports):
            if i > 0:
                text.append(", ", style="dim")
            style = "bold yellow" if identify_service(port) else "yellow"
            text.append(str(port), style=style)
        return text

    def format_command(self, command_line: Optional[str]) -> Text:
        """Format a command line, truncated to a readable width."""
        if not command_line:
            return Text("")
        if len(command_line) > MAX_COMMAND_WIDTH:
            command_line = command_line[:MAX_COMMAND_WIDTH - 1] + "…"
        return Text(command_line, style="dim")

    def print_processes(self, entries: Sequence["ProcessEntry"], title: str = "Listening Processes") -> None:
        """
        Print a snapshot as a table.

        Args:
            entries: Snapshot to print
            title: Table title
        """
        if not entries:
            self.print_info("No listening processes found.")
            return

        table = Table(title=title, header_style="bold", title_style="bold cyan")
        table.add_column("Process", no_wrap=True)
        table.add_column("PID", justify="right", style="dim")
        table.add_column("Ports")
        table.add_column("Directory", style="dim")
        if self._show_commands:
            table.add_column("Command", no_wrap=True)

        for entry in entries:
            row = [
                self.format_label(entry),
                Text(str(entry.pid)),
                self.format_ports(entry.ports),
                Text(entry.working_directory or ""),
            ]
            if self._show_commands:
                row.append(self.format_command(entry.command_line))
            table.add_row(*row)

        self._console.print(table)

    def print_port_index(self, index: Dict[int, Tuple["ProcessEntry", ...]]) -> None:
        """
        Print the port-indexed view.

        Args:
            index: Mapping of port to the entries listening on it
        """
        if not index:
            self.print_info("No listening ports found.")
            return

        table = Table(title="Listening Ports", header_style="bold", title_style="bold cyan")
        table.add_column("Port", justify="right", style="yellow")
        table.add_column("Service", style="dim")
        table.add_column("Processes")
        table.add_column("URL", style="blue")

        for port, entries in index.items():
            processes = Text()
            for i, entry in enumerate(entries):
                if i > 0:
                    processes.append(", ", style="dim")
                processes.append_text(self.format_label(entry))
                processes.append(f" ({entry.pid})", style="dim")
            table.add_row(
                str(port),
                identify_service(port) or "",
                processes,
                local_url(port),
            )

        self._console.print(table)

    def print_summary(self, entries: Sequence["ProcessEntry"], view: str) -> None:
        """Print a one-panel summary of the snapshot."""
        port_count = sum(len(entry.ports) for entry in entries)
        panel = Panel(
            f"[bold]{len(entries)}[/] processes listening on [bold]{port_count}[/] ports "
            f"[dim]({view})[/]",
            border_style="cyan",
        )
        self._console.print(panel)

    def confirm(self, question: str) -> bool:
        """Ask a yes/no question, defaulting to no."""
        return Confirm.ask(question, console=self._console, default=False)

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self._error_console.print(f"[bold red]Error:[/] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self._error_console.print(f"[bold yellow]Warning:[/] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self._console.print(f"[bold blue]Info:[/] {message}")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self._console.print(f"[bold green]Success:[/] {message}")
