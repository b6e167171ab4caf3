"""A set of classes for displaying messages to the user.

Errors caused by improper usage of the program and informational
messages about individual hosts share one base class so they can be
passed to the logger or raised alike.
"""

from abc import ABC
from pathlib import Path


class UserMessage(BaseException, ABC):
    """An abstract base class for messages to be displayed to the user."""

    def __str__(self) -> str:
        return self.message  # type: ignore

    def __eq__(self, x: object) -> bool:
        return str(self) == str(x)

    def __hash__(self) -> int:
        return hash(str(self))


class UserError(UserMessage, RuntimeError):
    """An error caused by improper usage of the program."""


class NoHostsGivenError(UserError, ValueError):
    """Raised when no host was given on the command line or in files."""

    def __init__(self) -> None:
        self.message: str = "No hosts given"


class HostFileNotFoundError(UserError):
    """Raised when a host file can't be read."""

    def __init__(self, path: Path | str, reason) -> None:
        self.path = path
        self.reason = reason
        self.message = "Can't read host file {0!s}: {1}".format(path, reason)


class InvalidHostFileError(UserError, ValueError):
    """Raised when a YAML inventory has an unexpected layout."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = path
        self.reason = reason
        self.message = "Invalid host inventory {0!s}: {1}".format(path, reason)


class AttemptFailedMessage(UserMessage):
    """A message for a failed protocol attempt on a host."""

    def __init__(self, hostname: str, protocol, reason) -> None:
        self.hostname = hostname
        self.protocol = protocol
        self.reason = reason

    def __str__(self) -> str:
        return "{0}: {1!s} attempt failed: {2}".format(
            self.hostname, self.protocol, self.reason
        )

    def __repr__(self) -> str:
        return "<{0} {1!r}:{2!s}:{3!r}>".format(
            self.__class__, self.hostname, self.protocol, self.reason
        )


class HostUnreachableMessage(UserMessage):
    """A message for a host that failed on every protocol."""

    def __init__(self, hostname: str) -> None:
        self.hostname = hostname

    def __str__(self) -> str:
        return "{0}: no connection to client".format(self.hostname)


class ProgressMessage(UserMessage):
    """A message announcing the host about to be polled."""

    def __init__(self, index: int, total: int, hostname: str) -> None:
        self.index = index
        self.total = total
        self.hostname = hostname

    def __str__(self) -> str:
        return "host {0} of {1}: {2}".format(self.index, self.total, self.hostname)
