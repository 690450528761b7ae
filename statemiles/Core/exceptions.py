"""Exception hierarchy for the state mileage service."""

from typing import Any, Optional


class StateMilesError(Exception):
    """Base exception for all statemiles errors."""


class TripValidationError(StateMilesError):
    """
    User input rejected on the write path.

    Raised for missing required fields, non-increasing odometer readings
    and unknown jurisdiction codes. The message is user-facing.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Any = None,
    ) -> None:
        self.field = field
        self.value = value
        super().__init__(message)


class MileagePreconditionError(StateMilesError):
    """Aggregation input is malformed (missing state, odometer or timestamp)."""

    def __init__(self, message: str, *, index: Optional[int] = None) -> None:
        self.index = index
        super().__init__(message)


class TripStateError(StateMilesError):
    """Operation not allowed in the trip's current lifecycle state."""

    def __init__(self, message: str, *, trip_id: Optional[str] = None, status: Optional[str] = None) -> None:
        self.trip_id = trip_id
        self.status = status
        super().__init__(message)


class TripNotFoundError(StateMilesError):
    """Trip, crossing or vehicle does not exist or belongs to another user."""
