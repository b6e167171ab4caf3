class TransportError(Exception):
    def __init__(self, reason: str, host: str | None = None) -> None:
        self.reason: str = reason
        self.host: str | None = host

    def __str__(self) -> str:
        if self.host is None:
            return self.reason
        return "{!s}: {!s}".format(self.host, self.reason)


class SessionOpenError(TransportError):
    """A session to the host could not be established."""


class QueryError(TransportError):
    """The session was established but the query failed."""
