"""Enumerations for remote-management protocols and poll attempt states."""

from enum import Enum, StrEnum, auto


class Protocol(StrEnum):
    """A remote-management protocol used to reach a client."""

    WSMAN = "Wsman"
    DCOM = "Dcom"


class AttemptState(Enum):
    """The state of the per-host poll state machine."""

    TRY_PRIMARY = auto()
    TRY_SECONDARY = auto()
    DONE = auto()

    @property
    def protocol(self) -> Protocol:
        """The protocol used by an attempt state.

        Raises:
            ValueError: If called on the terminal state.
        """
        if self is AttemptState.TRY_PRIMARY:
            return Protocol.WSMAN
        if self is AttemptState.TRY_SECONDARY:
            return Protocol.DCOM
        raise ValueError("terminal state has no protocol")

    def next(self) -> "AttemptState":
        """Returns the state entered after a failed attempt."""
        if self is AttemptState.TRY_PRIMARY:
            return AttemptState.TRY_SECONDARY
        return AttemptState.DONE
