"""
Unit tests for PortLens socket listing module.
"""

import pytest

from portlens.shell import CommandTimeoutError, ToolUnavailableError
from portlens.sockets import (
    RawSocketRow,
    SocketLister,
    parse_lsof_output,
    parse_port,
    parse_row,
)

from conftest import FakeRunner, SOCKETS, lsof_line, lsof_output


class TestParsePort:
    """Tests for port extraction from address fields."""

    def test_wildcard_address(self):
        """Test "*:port" addresses."""
        assert parse_port("*:3000") == 3000

    def test_ipv4_address(self):
        """Test "ip:port" addresses."""
        assert parse_port("127.0.0.1:8080") == 8080

    def test_ipv6_address(self):
        """Test IPv6 addresses, which contain colons themselves."""
        assert parse_port("[::1]:5432") == 5432
        assert parse_port("[fe80::1%lo0]:631") == 631

    def test_port_range_uses_start(self):
        """Test that a port range yields its first port."""
        assert parse_port("*:8000-8010") == 8000
        assert parse_port("[::]:49152-49160") == 49152

    def test_invalid_port(self):
        """Test fields without a numeric port."""
        assert parse_port("*:*") is None
        assert parse_port("localhost:http") is None
        assert parse_port("") is None


class TestParseRow:
    """Tests for lsof row parsing."""

    def test_valid_row(self):
        """Test a complete LISTEN row."""
        row = parse_row(lsof_line("node", 1234, "*:3000"))
        assert row == RawSocketRow(process_label="node", pid=1234, port=3000)

    def test_header_skipped(self):
        """Test that the header's PID column does not parse."""
        assert parse_row("COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME (STATE)") is None

    def test_short_row_skipped(self):
        """Test that rows with too few columns are ignored."""
        assert parse_row("node 1234 dev 23u IPv4") is None
        assert parse_row("") is None

    def test_non_numeric_port_skipped(self):
        """Test that rows without a numeric port are ignored."""
        assert parse_row(lsof_line("node", 1234, "*:*")) is None

    def test_parse_output_mixed(self):
        """Test a full output with header, garbage and valid rows."""
        output = lsof_output([
            lsof_line("node", 1234, "*:3000"),
            "lsof: WARNING: can't stat() fuse file system",
            lsof_line("postgres", 88, "127.0.0.1:5432"),
            lsof_line("postgres", 88, "[::1]:5432"),
        ])
        rows = parse_lsof_output(output)

        assert [(r.process_label, r.pid, r.port) for r in rows] == [
            ("node", 1234, 3000),
            ("postgres", 88, 5432),
            ("postgres", 88, 5432),
        ]


class TestSocketLister:
    """Tests for SocketLister."""

    def test_command_flags(self, runner):
        """Test that lsof is asked for numeric LISTEN sockets only."""
        lister = SocketLister(runner)
        assert lister.command() == ["lsof", "-iTCP", "-sTCP:LISTEN", "-n", "-P"]

    def test_runs_lsof_once(self):
        """Test a single lsof invocation producing rows."""
        runner = FakeRunner(outputs={SOCKETS: lsof_output([lsof_line("node", 1234, "*:3000")])})
        rows = SocketLister(runner).list_listening_sockets()

        assert rows == [RawSocketRow("node", 1234, 3000)]
        assert len(runner.calls) == 1

    def test_nothing_listening(self, runner):
        """Test lsof's empty, non-zero exit when nothing matches."""
        assert SocketLister(runner).list_listening_sockets() == []

    def test_missing_tool_raises(self):
        """Test that a missing lsof is reported, not hidden as an empty list."""
        runner = FakeRunner(failures={SOCKETS: ToolUnavailableError("lsof")})
        with pytest.raises(ToolUnavailableError):
            SocketLister(runner).list_listening_sockets()

    def test_timeout_is_empty(self):
        """Test that a hung lsof degrades to no data."""
        runner = FakeRunner(failures={SOCKETS: CommandTimeoutError("lsof", 1.0)})
        assert SocketLister(runner).list_listening_sockets() == []
