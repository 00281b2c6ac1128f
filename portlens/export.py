"""
Export module for PortLens.

Writes a process snapshot to JSON or CSV for scripting and reporting.
"""

from __future__ import annotations

import csv
import json
import os
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, TYPE_CHECKING

from portlens import __version__

if TYPE_CHECKING:
    from portlens.directory import ProcessEntry


class ExportFormat(Enum):
    """Snapshot file formats."""
    JSON = "json"
    CSV = "csv"


EXTENSION_FORMATS = {
    ".json": ExportFormat.JSON,
    ".csv": ExportFormat.CSV,
}


def detect_format(filename: str) -> ExportFormat:
    """
    Pick the snapshot format from the file extension.

    Args:
        filename: Destination path

    Returns:
        Matching ExportFormat

    Raises:
        ValueError: For extensions other than .json and .csv
    """
    extension = os.path.splitext(filename)[1].lower()
    try:
        return EXTENSION_FORMATS[extension]
    except KeyError:
        raise ValueError(
            f"Unknown snapshot format '{extension or filename}'. "
            "Use a .json or .csv file, or pass --export-format."
        ) from None


def entry_to_dict(entry: "ProcessEntry") -> dict:
    """
    Convert a process entry to a plain dictionary.

    The icon handle is opaque and never exported.

    Args:
        entry: Process entry

    Returns:
        JSON-serializable dictionary
    """
    return {
        "label": entry.label,
        "pid": entry.pid,
        "ports": list(entry.ports),
        "working_directory": entry.working_directory,
        "command_line": entry.command_line,
        "container": entry.is_container,
    }


class Exporter:
    """
    Exports process snapshots to file.

    Format is auto-detected from the file extension unless given.
    """

    # CSV column headers
    CSV_HEADERS = [
        "label",
        "pid",
        "ports",
        "working_directory",
        "command_line",
        "container",
    ]

    def __init__(self, filename: str, format: Optional[ExportFormat] = None) -> None:
        """
        Prepare an export destination.

        Args:
            filename: Destination path
            format: Snapshot format, detected from the extension when None
        """
        self._filename = filename
        self._format = format or detect_format(filename)
        self._entry_count = 0

    @property
    def filename(self) -> str:
        """Get the export filename."""
        return self._filename

    @property
    def format(self) -> ExportFormat:
        """Get the export format."""
        return self._format

    @property
    def entry_count(self) -> int:
        """Get the number of entries written by the last export."""
        return self._entry_count

    def write(self, entries: Iterable["ProcessEntry"]) -> int:
        """
        Write a snapshot, replacing any existing file.

        Args:
            entries: Snapshot to export

        Returns:
            Number of entries written
        """
        rows = [entry_to_dict(entry) for entry in entries]
        self._entry_count = len(rows)

        with open(self._filename, "w", newline="", encoding="utf-8") as handle:
            if self._format == ExportFormat.CSV:
                self._write_csv(handle, rows)
            else:
                self._write_json(handle, rows)

        return self._entry_count

    def _write_csv(self, handle, rows: list[dict]) -> None:
        """Write rows as CSV, ports joined with semicolons."""
        writer = csv.DictWriter(handle, fieldnames=self.CSV_HEADERS, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow({
                **row,
                "ports": ";".join(str(port) for port in row["ports"]),
                "working_directory": row["working_directory"] or "",
                "command_line": row["command_line"] or "",
            })

    def _write_json(self, handle, rows: list[dict]) -> None:
        """Write rows as one JSON document with export metadata."""
        export_data = {
            "export_info": {
                "tool": "PortLens",
                "version": __version__,
                "export_time": datetime.now().isoformat(),
                "process_count": len(rows),
            },
            "processes": rows,
        }
        json.dump(export_data, handle, indent=2)
