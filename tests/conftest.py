from pathlib import Path

import pytest

from ccmupdates.config import Config
from ccmupdates.diagnostics import DiagnosticSink
from ccmupdates.exceptions import QueryError, SessionOpenError
from ccmupdates.types import Row


class FakeConnection:
    def __init__(self, hostname, protocol, rows=None, query_error=None):
        self.hostname = hostname
        self.protocol = protocol
        self.rows = rows
        self.query_error = query_error
        self.queries = []
        self.closed = False

    def query(self, namespace, wmi_class):
        self.queries.append((namespace, wmi_class))
        if self.query_error is not None:
            raise QueryError(self.query_error, self.hostname)
        return self.rows

    def close(self):
        self.closed = True


class FakeConnector:
    """
    Scripted replacement of `open_connection`.

    `plan` maps (host, Protocol) to a list of rows (success), or to
    ("session", text) / ("query", text) failures. Unplanned attempts fail
    to open a session.
    """

    def __init__(self, plan=None):
        self.plan = plan or {}
        self.calls = []
        self.connections = []

    def __call__(self, host, protocol, config):
        self.calls.append((host, protocol))
        outcome = self.plan.get((host, protocol), ("session", "unreachable"))
        if isinstance(outcome, tuple) and outcome[0] == "session":
            raise SessionOpenError(outcome[1], host)
        if isinstance(outcome, tuple):
            conn = FakeConnection(host, protocol, query_error=outcome[1])
        else:
            conn = FakeConnection(host, protocol, rows=outcome)
        self.connections.append(conn)
        return conn


class RecordingSink(DiagnosticSink):
    def __init__(self):
        self.events = []

    def progress(self, index, total, host):
        self.events.append(("progress", index, total, host))

    def verbose(self, message, *args, host=None):
        self.events.append(("verbose", message % args if args else message))

    def warning(self, message, *args, host=None):
        self.events.append(("warning", str(message)))

    def of(self, kind):
        return [e for e in self.events if e[0] == kind]


@pytest.fixture
def config(tmp_path, monkeypatch) -> Config:
    monkeypatch.delenv("CCMUPDATES_PASSWORD", raising=False)
    cfg_file: Path = tmp_path / "ccmupdates.cfg"
    cfg_file.write_text("")
    return Config(cfg_file)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def rows() -> list[Row]:
    return [
        Row("2024-01 Cumulative Update for Windows 11 (KB5034123)", 7),
        Row("Security Update for Microsoft Edge (KB5034441)", 13),
        Row("Definition Update for Microsoft Defender (KB2267602)", 42),
    ]


@pytest.fixture
def make_connector():
    return FakeConnector
