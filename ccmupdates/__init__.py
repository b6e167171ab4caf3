__all__ = ["main", "poller", "connection"]

__version__ = "1.2.0"
