"""Named tuples for query rows and the records emitted per host."""

from typing import NamedTuple

EMPTY_STATE = "Empty"
EMPTY_NAME = "No updates found"
NO_CONNECTION = "No connection to client"


class Row(NamedTuple):
    """A single pending update as returned by a session query.

    Attributes:
        name: The display name of the update.
        evaluation_state: The numeric evaluation state code.
    """

    name: str
    evaluation_state: int


class UpdateRecord(NamedTuple):
    """A normalized update status for one host.

    Attributes:
        host: The host the update was found on.
        state: The human readable evaluation state.
        name: The name of the update.
    """

    host: str
    state: str
    name: str

    @classmethod
    def empty(cls, host: str) -> "UpdateRecord":
        """The record emitted when a host has no pending updates."""
        return cls(host, EMPTY_STATE, EMPTY_NAME)


class ErrorRecord(NamedTuple):
    """The record emitted when a host could not be reached at all."""

    host: str
    state: None = None
    name: str = NO_CONNECTION


Record = UpdateRecord | ErrorRecord
