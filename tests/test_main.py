"""Tests for the command-line entry point."""

import io

import pytest

from logstream.client.base import LogEvent
from logstream.client.memory import InMemoryLogsTransport
from logstream.main import main, parse_args


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ["LOGSTREAM_GROUP", "LOGSTREAM_FLUSH_INTERVAL_MS", "LOG_LEVEL"]:
        monkeypatch.delenv(name, raising=False)


def fake_stdin(monkeypatch, data):
    monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(data)))


class TestParseArgs:
    """Test argument parsing."""

    def test_write_args(self):
        """Test write subcommand flags."""
        args = parse_args(["--region", "us-west-2", "write", "--group", "app", "--stream", "web-1"])

        assert args.command == "write"
        assert args.region == "us-west-2"
        assert args.group == "app"
        assert args.stream == "web-1"
        assert args.flush_interval_ms is None

    def test_read_args(self):
        """Test read subcommand defaults."""
        args = parse_args(["read", "--stream", "web-1", "--follow"])

        assert args.command == "read"
        assert args.group is None
        assert args.follow
        assert args.poll_interval_ms == 1000

    def test_command_required(self):
        """Test a subcommand must be given."""
        with pytest.raises(SystemExit):
            parse_args([])


class TestMain:
    """Test main()."""

    def test_write_copies_stdin(self, monkeypatch):
        """Test stdin lines become events in a newly created stream."""
        transport = InMemoryLogsTransport()
        fake_stdin(monkeypatch, b"first\nsecond\r\n\nthird")

        code = main(["write", "--group", "app", "--stream", "web-1"], transport=transport)

        assert code == 0
        assert [e.message for e in transport.stream_events("app", "web-1")] == [
            "first",
            "second",
            "third",
        ]

    def test_read_prints_events(self, capsys):
        """Test read prints each message on its own line."""
        transport = InMemoryLogsTransport()
        transport.create_log_group("app")
        transport.create_log_stream("app", "web-1")
        transport.put_log_events("app", "web-1", [LogEvent("a", 1), LogEvent("b", 2)], None)

        code = main(["read", "--group", "app", "--stream", "web-1"], transport=transport)

        assert code == 0
        assert capsys.readouterr().out == "a\nb\n"

    def test_group_from_environment(self, monkeypatch):
        """Test LOGSTREAM_GROUP supplies the group."""
        monkeypatch.setenv("LOGSTREAM_GROUP", "env-group")
        transport = InMemoryLogsTransport()
        fake_stdin(monkeypatch, b"x\n")

        assert main(["write", "--stream", "web-1"], transport=transport) == 0
        assert len(transport.stream_events("env-group", "web-1")) == 1

    def test_missing_group(self):
        """Test exit code 2 without a group."""
        transport = InMemoryLogsTransport()

        assert main(["read", "--stream", "web-1"], transport=transport) == 2
        assert transport.calls == []

    def test_remote_failure_exit_code(self):
        """Test logstream errors map to exit code 1."""
        transport = InMemoryLogsTransport()

        assert main(["read", "--group", "app", "--stream", "web-1"], transport=transport) == 1
