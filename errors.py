"""Exception hierarchy for the ride-share dispatcher.

Every error here is a data or programmer error: raised where the violation
is detected and never retried.
"""
from typing import Any, Dict, Optional


class RideShareError(ValueError):
    """Base exception for all dispatcher errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidId(RideShareError):
    """Id is not a positive integer."""


class MissingAssociation(RideShareError):
    """Trip has neither an entity nor an id for its passenger or driver."""


class InvalidTimeRange(RideShareError):
    """Trip ends before it starts."""


class InvalidRating(RideShareError):
    """Rating outside 1..5."""


class DanglingReference(RideShareError):
    """Foreign key with no matching loaded entity."""


class MalformedRecord(RideShareError):
    """CSV row could not be parsed."""
