# statemiles/Services/crossing_validator.py
"""
Crossing Validation
===================
Write-path checks run before a crossing is appended to an active trip.

The aggregator trusts whatever it is given; these checks are what keep
new data monotonic. A rejected crossing is never persisted.

Functions:
- validate_jurisdiction(): Normalizes and checks a state/province code
- validate_odometer_value(): Rejects negative or non-integer readings
- validate_next_odometer(): Rejects readings not above the previous crossing
- validate_next_timestamp(): Rejects crossings not after the previous one
- validate_timestamp_not_future(): Rejects client-supplied times in the future
"""

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, Optional

from statemiles.Core.exceptions import TripValidationError
from statemiles.Core.jurisdictions import is_known_jurisdiction


def validate_jurisdiction(code: Any) -> str:
    """
    Return the upper-cased jurisdiction code or raise TripValidationError.
    """
    if not isinstance(code, str) or not is_known_jurisdiction(code.strip()):
        raise TripValidationError(f"Unknown state or province code: {code!r}.", field="state", value=code)
    return code.strip().upper()


def validate_odometer_value(odometer: Any) -> int:
    if isinstance(odometer, bool) or not isinstance(odometer, int):
        raise TripValidationError("Odometer reading must be a whole number.", field="odometer", value=odometer)
    if odometer < 0:
        raise TripValidationError("Odometer reading cannot be negative.", field="odometer", value=odometer)
    return odometer


def validate_next_odometer(previous_crossings: Sequence[Any], new_odometer: int) -> None:
    """
    Check a new reading against the most recent crossing of the trip.

    Args:
        previous_crossings: Existing crossings, ordered by timestamp
        new_odometer: Reading of the crossing being added

    Raises:
        TripValidationError: new_odometer <= last reading. The message
            names the conflicting prior value.

    Notes:
        - The first crossing of a trip has no predecessor and always passes
    """
    if not previous_crossings:
        return

    last_odometer = previous_crossings[-1].odometer
    if new_odometer <= last_odometer:
        raise TripValidationError(
            f"Odometer reading must be greater than the last reading ({last_odometer}).",
            field="odometer",
            value=last_odometer,
        )


def validate_next_timestamp(previous_crossings: Sequence[Any], new_timestamp: datetime) -> None:
    """
    A new crossing must be strictly later than the last crossing of the trip.
    """
    if not previous_crossings:
        return

    last_timestamp = previous_crossings[-1].timestamp
    if new_timestamp <= last_timestamp:
        raise TripValidationError(
            f"Crossing time must be later than the last crossing ({last_timestamp.isoformat()}).",
            field="timestamp",
            value=last_timestamp,
        )


def validate_timestamp_not_future(timestamp: datetime, now: Optional[datetime] = None) -> None:
    """
    Reject a client-supplied crossing time that lies in the future.
    """
    now = now or datetime.now(timezone.utc)
    if timestamp > now:
        raise TripValidationError(
            f"Crossing time cannot be in the future ({timestamp.isoformat()}).",
            field="timestamp",
            value=timestamp,
        )
