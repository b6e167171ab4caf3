"""Polling of Configuration Manager clients for pending updates.

`UpdatePoller` walks a host list strictly in order. Every host gets at
most two attempts, WS-Management first and DCOM second, and yields
either its update records or a single `ErrorRecord`. A failing host
never stops the run.
"""

from collections.abc import Callable, Iterable, Iterator
from logging import getLogger

from .config import Config
from .connection import Connection, open_connection
from .diagnostics import DiagnosticSink, NullSink
from .errorlog import ErrorLog
from .exceptions import QueryError, SessionOpenError
from .messages import AttemptFailedMessage, HostUnreachableMessage
from .states import translate
from .types import AttemptState, ErrorRecord, Protocol, Record, Row, UpdateRecord

logger = getLogger("ccmupdates.poller")

Connector = Callable[[str, Protocol, Config], Connection]


def to_records(host: str, rows: list[Row]) -> list[UpdateRecord]:
    """Normalizes query rows into update records.

    An empty result becomes the single "No updates found" record.
    """
    if not rows:
        return [UpdateRecord.empty(host)]
    return [UpdateRecord(host, translate(r.evaluation_state), r.name) for r in rows]


class UpdatePoller:
    """Queries hosts for pending updates with protocol fallback."""

    def __init__(
        self,
        config: Config,
        sink: DiagnosticSink | None = None,
        connect: Connector = open_connection,
        error_log: ErrorLog | None = None,
    ) -> None:
        """Initializes the poller.

        Args:
            config: The application configuration.
            sink: Receives progress, step and warning output.
            connect: Opens a `Connection` for a host and protocol.
            error_log: Where to append the errors of unreachable hosts.
        """
        self.config = config
        self.sink = sink or NullSink()
        self.connect = connect
        if error_log is None and config.error_log:
            error_log = ErrorLog(config.error_log)
        self.error_log = error_log

    def poll(self, host: str) -> Iterator[Record]:
        """Yields the update records of one host.

        Args:
            host: The host to query.
        """
        state = AttemptState.TRY_PRIMARY
        session_error = ""
        query_error = ""

        while state is not AttemptState.DONE:
            protocol = state.protocol
            # error texts of the last attempt go to the error log
            session_error = query_error = ""

            self.sink.verbose("%s: opening %s session", host, protocol, host=host)
            try:
                connection = self.connect(host, protocol, self.config)
            except SessionOpenError as e:
                session_error = e.reason
                self.sink.warning(
                    AttemptFailedMessage(host, protocol, e.reason), host=host
                )
                state = state.next()
                continue

            try:
                self.sink.verbose(
                    "%s: querying %s", host, self.config.wmi_class, host=host
                )
                rows = connection.query(self.config.namespace, self.config.wmi_class)
            except QueryError as e:
                query_error = e.reason
                self.sink.warning(
                    AttemptFailedMessage(host, protocol, e.reason), host=host
                )
                state = state.next()
                continue
            finally:
                self._close(connection)

            self.sink.verbose(
                "%s: %d rows over %s", host, len(rows), protocol, host=host
            )
            yield from to_records(host, rows)
            return

        self.sink.warning(HostUnreachableMessage(host), host=host)
        if self.error_log:
            self.error_log.append(host, session_error, query_error)
        yield ErrorRecord(host)

    def _close(self, connection: Connection) -> None:
        try:
            connection.close()
        except Exception as e:
            logger.debug("closing %r failed: %s", connection, e)

    def run(self, hosts: Iterable[str]) -> Iterator[Record]:
        """Yields the records of every host, in host order.

        Args:
            hosts: The hosts to query. Duplicates are polled again.
        """
        hosts = list(hosts)
        total = len(hosts)
        for index, host in enumerate(hosts, start=1):
            self.sink.progress(index, total, host)
            yield from self.poll(host)
