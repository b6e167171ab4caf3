"""Append-only log of hosts that could not be reached."""

from logging import getLogger
from pathlib import Path

logger = getLogger("ccmupdates.errorlog")


class ErrorLog:
    """Appends the raw error texts of unreachable hosts to a file.

    The file is opened in append mode for every write, no handle is kept
    between hosts.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} path={self.path}>"

    def append(self, host: str, session_error: str, query_error: str) -> None:
        """Writes the session-open and query error lines of a host.

        Both lines are always written, either may carry an empty text.

        Args:
            host: The host that failed.
            session_error: Raw text of the session-open failure.
            query_error: Raw text of the query failure.
        """
        lines = [
            "{} : {}\n".format(host, session_error),
            "{} : {}\n".format(host, query_error),
        ]
        try:
            with self.path.open("a", encoding="utf-8") as fd:
                fd.writelines(lines)
        except OSError as e:
            logger.error("failed to write error log %s: %s", self.path, e)
