"""A logging formatter that adds color to the output."""

import logging

from .utils import COLORIZE

(BLACK, RED, GREEN, YELLOW, BLUE, MAGENTA, CYAN, WHITE) = list(range(8))

RESET_SEQ = "\033[0m"
COLOR_SEQ = "\033[1;{}m"

COLORS = {
    "WARNING": YELLOW,
    "INFO": GREEN,
    "DEBUG": BLUE,
    "CRITICAL": RED,
    "ERROR": RED,
}


class ColorFormatter(logging.Formatter):
    """A logging formatter that adds color to the level name."""

    def __init__(self, msg: str, color: bool = True) -> None:
        """Initializes the formatter.

        Args:
            msg: The format string to use.
            color: Whether to emit ANSI color sequences.
        """
        logging.Formatter.__init__(self, msg)
        self.color = color

    def formatColor(self, record: logging.LogRecord) -> str:
        """Formats the log level name of a record.

        Debug records are suffixed with the emitting logger and function
        so verbose output can be traced back to its source.

        Args:
            record: The record whose level name is formatted.

        Returns:
            The (colorized) lower-case level name.
        """
        name = record.levelname.lower()
        if self.color:
            name = COLOR_SEQ.format(30 + COLORS[record.levelname]) + name + RESET_SEQ
        if record.levelname == "DEBUG":
            name += " [{!s}:{!s}]".format(record.name, record.funcName)
        return name

    def format(self, record: logging.LogRecord) -> str:
        """Formats the log record.

        Args:
            record: The log record to format.

        Returns:
            The formatted log record as a string.
        """
        record.message = record.getMessage()
        if self._fmt and self._fmt.find("%(levelname)") >= 0:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = self.formatColor(record)

        return logging.Formatter.format(self, record)


def create_logger(name: str, level: str | int = "INFO") -> logging.Logger:
    """Creates a logger with a colorized output on stderr.

    Calling it twice for the same name does not stack handlers.

    Args:
        name: The name of the logger.
        level: The logging level.

    Returns:
        A configured `logging.Logger` instance.
    """
    out = logging.getLogger(name) if name else logging.getLogger()
    out.setLevel(level)
    for handler in list(out.handlers):
        if isinstance(handler.formatter, ColorFormatter):
            out.removeHandler(handler)
    handler = logging.StreamHandler()
    formatter = ColorFormatter("%(levelname)s: %(message)s", COLORIZE)
    handler.setFormatter(formatter)
    out.addHandler(handler)
    return out
