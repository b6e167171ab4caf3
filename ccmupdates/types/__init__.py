"""This package contains the type classes for ccmupdates.

Each module in this package defines a specific type that is used
throughout the application.
"""

from .enums import AttemptState, Protocol
from .records import ErrorRecord, Record, Row, UpdateRecord

__all__ = [
    "AttemptState",
    "ErrorRecord",
    "Protocol",
    "Record",
    "Row",
    "UpdateRecord",
]
