"""Diagnostic sinks for progress, step and warning output of a poll run.

The poller never writes to the console itself. It is handed a sink and
reports through it, so callers can silence diagnostics, send them to a
colored console logger, or to any handler that understands the
structured ``extra`` fields.
"""

import logging
from abc import ABC, abstractmethod

from .messages import ProgressMessage


class DiagnosticSink(ABC):
    """Receives advisory output of a poll run."""

    @abstractmethod
    def progress(self, index: int, total: int, host: str) -> None:
        """Announces the host about to be polled.

        Args:
            index: 1-based position of the host.
            total: Number of hosts in the run.
            host: The host name.
        """

    @abstractmethod
    def verbose(self, message: str, *args, host: str | None = None) -> None:
        """Describes a step of the poll."""

    @abstractmethod
    def warning(self, message, *args, host: str | None = None) -> None:
        """Reports a failed attempt."""


class NullSink(DiagnosticSink):
    """Discards all diagnostics."""

    def progress(self, index: int, total: int, host: str) -> None:
        pass

    def verbose(self, message: str, *args, host: str | None = None) -> None:
        pass

    def warning(self, message, *args, host: str | None = None) -> None:
        pass


class LoggerSink(DiagnosticSink):
    """Forwards diagnostics to a `logging.Logger`.

    Progress goes to INFO, steps to DEBUG and failed attempts to WARNING.
    Every record carries ``host`` (and ``index``/``total`` for progress)
    as extra attributes.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("ccmupdates.poller")

    def progress(self, index: int, total: int, host: str) -> None:
        self.logger.info(
            ProgressMessage(index, total, host),
            extra={"host": host, "index": index, "total": total},
        )

    def verbose(self, message: str, *args, host: str | None = None) -> None:
        self.logger.debug(message, *args, extra={"host": host})

    def warning(self, message, *args, host: str | None = None) -> None:
        self.logger.warning(message, *args, extra={"host": host})
