"""
Unit tests for PortLens export module.
"""

import csv
import json

import pytest

from portlens import __version__
from portlens.directory import ProcessEntry
from portlens.export import ExportFormat, Exporter, detect_format, entry_to_dict


@pytest.fixture
def entries():
    """A small snapshot."""
    return (
        ProcessEntry(
            pid=1234,
            label="node: my-app",
            ports=(3000, 3001),
            command_line="node server.js",
            working_directory="~/code/my-app",
            icon=object(),
        ),
        ProcessEntry(pid=555, label="docker: web", ports=(8080,), is_container=True),
    )


class TestDetectFormat:
    """Tests for detect_format."""

    def test_extensions(self):
        """Test recognized extensions, case-insensitively."""
        assert detect_format("out.json") == ExportFormat.JSON
        assert detect_format("OUT.CSV") == ExportFormat.CSV

    def test_unknown_extension(self):
        """Test that unknown extensions are rejected."""
        with pytest.raises(ValueError):
            detect_format("out.txt")


class TestExporter:
    """Tests for Exporter."""

    def test_entry_to_dict(self, entries):
        """Test that the icon handle is not exported."""
        data = entry_to_dict(entries[0])

        assert data == {
            "label": "node: my-app",
            "pid": 1234,
            "ports": [3000, 3001],
            "working_directory": "~/code/my-app",
            "command_line": "node server.js",
            "container": False,
        }

    def test_json(self, entries, tmp_path):
        """Test JSON export with metadata."""
        path = tmp_path / "snapshot.json"
        exporter = Exporter(str(path))

        assert exporter.format == ExportFormat.JSON
        assert exporter.write(entries) == 2

        data = json.loads(path.read_text())
        assert data["export_info"]["tool"] == "PortLens"
        assert data["export_info"]["version"] == __version__
        assert data["export_info"]["process_count"] == 2
        assert data["processes"][1]["label"] == "docker: web"
        assert data["processes"][1]["container"] is True
        assert data["processes"][1]["command_line"] is None

    def test_csv(self, entries, tmp_path):
        """Test CSV export with joined ports."""
        path = tmp_path / "snapshot.csv"
        exporter = Exporter(str(path))
        exporter.write(entries)

        with open(path, newline="", encoding="utf-8") as handle:
            rows = list(csv.DictReader(handle))

        assert list(rows[0]) == Exporter.CSV_HEADERS
        assert rows[0]["ports"] == "3000;3001"
        assert rows[1]["working_directory"] == ""
        assert rows[1]["container"] == "True"

    def test_forced_format(self, entries, tmp_path):
        """Test that an explicit format overrides the extension."""
        path = tmp_path / "snapshot.out"
        exporter = Exporter(str(path), ExportFormat.CSV)
        exporter.write(entries)

        assert path.read_text(encoding="utf-8").startswith("label,pid,ports")
        assert exporter.entry_count == 2
