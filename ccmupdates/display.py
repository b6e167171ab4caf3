import csv
import json
from collections.abc import Iterable
from typing import IO

from .types import ErrorRecord, Record
from .types.records import EMPTY_STATE
from .utils import green, red, yellow

COLUMNS = ("ComputerName", "JobState", "Name")


class RecordDisplay:
    """Writes update records to a stream as they arrive."""

    def __init__(self, output: IO, color: bool = True) -> None:
        self.output = output
        self.color = color
        self._header = False

    def println(self, msg: str = "", eol: str = "\n") -> None:
        self.output.write(msg + eol)
        self.output.flush()

    def header(self) -> None:
        if not self._header:
            self._header = True
            self._write_header()

    def _write_header(self) -> None:
        pass

    def record(self, record: Record) -> None:
        raise NotImplementedError

    def show(self, records: Iterable[Record]) -> int:
        """Writes all records and returns the number of unreachable hosts."""
        failed = 0
        for rec in records:
            self.header()
            self.record(rec)
            if isinstance(rec, ErrorRecord):
                failed += 1
        return failed


class TableDisplay(RecordDisplay):
    widths = (24, 20)

    def _state(self, record: Record) -> str:
        state = "" if record.state is None else record.state
        padded = "{0:<{1}}".format(state, self.widths[1])
        if not self.color:
            return padded
        if record.state is None or record.state == "Error":
            return red(padded)
        if record.state == EMPTY_STATE:
            return green(padded)
        return yellow(padded)

    def _write_header(self) -> None:
        self.println(
            "{0:<{3}} {1:<{4}} {2}".format(*COLUMNS, *self.widths)
        )
        self.println(
            "{0} {1} {2}".format("-" * self.widths[0], "-" * self.widths[1], "-" * 4)
        )

    def record(self, record: Record) -> None:
        self.println(
            "{0:<{1}} {2} {3}".format(
                record.host, self.widths[0], self._state(record), record.name
            )
        )


class CsvDisplay(RecordDisplay):
    def __init__(self, output: IO, color: bool = True) -> None:
        super().__init__(output, color)
        self.writer = csv.writer(output, lineterminator="\n")

    def _write_header(self) -> None:
        self.writer.writerow(COLUMNS)

    def record(self, record: Record) -> None:
        self.writer.writerow(
            [record.host, "" if record.state is None else record.state, record.name]
        )
        self.output.flush()


class JsonDisplay(RecordDisplay):
    def record(self, record: Record) -> None:
        self.println(json.dumps(dict(zip(COLUMNS, record))))


DISPLAYS: dict[str, type[RecordDisplay]] = {
    "table": TableDisplay,
    "csv": CsvDisplay,
    "json": JsonDisplay,
}


def get_display(kind: str, output: IO, color: bool = True) -> RecordDisplay:
    """Returns the display for an output format name."""
    return DISPLAYS[kind](output, color)
