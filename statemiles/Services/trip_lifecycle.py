# statemiles/Services/trip_lifecycle.py
"""
Trip Lifecycle
==============
Immutable trip snapshots and the commands that move a trip through its
lifecycle.

States:
    active ──end──► completed        (one-way)
    active / completed ──delete──► (gone, crossings cascade)

Every command takes a TripSnapshot and returns a NEW snapshot; the input
is never modified. Commands do no I/O: the trip service persists the
difference between the old and new snapshot and publishes a change event.

Rules:
- start_trip: vehicle, start state, start odometer and date are required
- apply_crossing: trip must be active, odometer must exceed the last one
- remove_crossing: trip must be active, the seed crossing stays
- complete_trip: trip must be active; end_date >= start_date
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from statemiles.Core.exceptions import TripNotFoundError, TripStateError, TripValidationError
from statemiles.Core.jurisdictions import resolve_state_name
from statemiles.Services.crossing_validator import (
    validate_jurisdiction,
    validate_next_odometer,
    validate_next_timestamp,
    validate_odometer_value,
    validate_timestamp_not_future,
)
from statemiles.Services.mileage_aggregator import as_utc


class TripStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


# ==========================================================
# SNAPSHOTS
# ==========================================================

class CrossingSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    state: str
    state_name: str
    odometer: int
    crossing_date: date
    timestamp: datetime


class TripSnapshot(BaseModel):
    """
    Point-in-time view of a trip and its crossings (ordered by timestamp).
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    user_id: str
    vehicle_id: str
    status: TripStatus = TripStatus.ACTIVE
    start_date: date
    end_date: Optional[date] = None
    crossings: Tuple[CrossingSnapshot, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status == TripStatus.ACTIVE

    @property
    def seed(self) -> Optional[CrossingSnapshot]:
        return self.crossings[0] if self.crossings else None


def new_crossing(
    state: Any,
    odometer: Any,
    crossing_date: date,
    *,
    timestamp: Optional[datetime] = None,
    state_name: Optional[str] = None,
    crossing_id: Optional[str] = None,
) -> CrossingSnapshot:
    """
    Build a validated crossing. The timestamp defaults to now (UTC); a
    supplied timestamp may backdate the crossing but not lie in the future.
    """
    code = validate_jurisdiction(state)
    reading = validate_odometer_value(odometer)
    if timestamp is None:
        stamped = datetime.now(timezone.utc)
    else:
        stamped = as_utc(timestamp)
        validate_timestamp_not_future(stamped)
    return CrossingSnapshot(
        id=crossing_id,
        state=code,
        state_name=resolve_state_name(code, state_name),
        odometer=reading,
        crossing_date=crossing_date,
        timestamp=stamped,
    )


def snapshot_from_orm(trip: Any) -> TripSnapshot:
    """
    Build a snapshot from a MileageTrip row and its loaded crossings.
    """
    crossings = sorted(
        (
            CrossingSnapshot(
                id=row.id,
                state=row.state,
                state_name=row.state_name,
                odometer=row.odometer,
                crossing_date=row.crossing_date,
                timestamp=as_utc(row.timestamp),
            )
            for row in trip.crossings
        ),
        key=lambda crossing: crossing.timestamp,
    )
    return TripSnapshot(
        id=trip.id,
        user_id=trip.user_id,
        vehicle_id=trip.vehicle_id,
        status=TripStatus(trip.status),
        start_date=trip.start_date,
        end_date=trip.end_date,
        crossings=tuple(crossings),
    )


# ==========================================================
# COMMANDS
# ==========================================================

def start_trip(
    *,
    user_id: str,
    vehicle_id: Optional[str],
    start_state: Optional[str],
    start_odometer: Optional[int],
    start_date: Optional[date],
    timestamp: Optional[datetime] = None,
) -> TripSnapshot:
    """
    Create an active trip with its seed crossing.

    Raises:
        TripValidationError: A required field is missing, the state code is
            unknown or the odometer is invalid.
    """
    if not vehicle_id or not start_state or start_odometer is None or start_date is None:
        raise TripValidationError("Please fill in all required fields.")

    seed = new_crossing(start_state, start_odometer, start_date, timestamp=timestamp)
    return TripSnapshot(
        user_id=user_id,
        vehicle_id=vehicle_id,
        status=TripStatus.ACTIVE,
        start_date=start_date,
        crossings=(seed,),
    )


def _require_active(trip: TripSnapshot, action: str) -> None:
    if not trip.is_active:
        raise TripStateError(
            f"Cannot {action} on a {trip.status.value} trip.",
            trip_id=trip.id,
            status=trip.status.value,
        )


def apply_crossing(trip: TripSnapshot, crossing: CrossingSnapshot) -> TripSnapshot:
    """
    Append a crossing to an active trip.

    Raises:
        TripStateError: The trip is completed.
        TripValidationError: The odometer does not exceed the last reading
            or the crossing predates the last one. The trip is unchanged.
    """
    _require_active(trip, "add a crossing")
    validate_next_odometer(trip.crossings, crossing.odometer)
    validate_next_timestamp(trip.crossings, crossing.timestamp)
    return trip.model_copy(update={"crossings": trip.crossings + (crossing,)})


def remove_crossing(trip: TripSnapshot, crossing_id: str) -> TripSnapshot:
    """
    Remove a non-seed crossing from an active trip.

    Raises:
        TripStateError: The trip is completed, or crossing_id is the seed.
        TripNotFoundError: No crossing with that id in this trip.
    """
    _require_active(trip, "delete a crossing")

    for index, crossing in enumerate(trip.crossings):
        if crossing.id == crossing_id:
            break
    else:
        raise TripNotFoundError(f"Crossing '{crossing_id}' not found in trip '{trip.id}'.")

    if index == 0:
        raise TripStateError(
            "The starting crossing cannot be deleted; delete the trip instead.",
            trip_id=trip.id,
            status=trip.status.value,
        )

    remaining = trip.crossings[:index] + trip.crossings[index + 1:]
    return trip.model_copy(update={"crossings": remaining})


def complete_trip(trip: TripSnapshot, end_date: Optional[date] = None) -> TripSnapshot:
    """
    End an active trip. end_date defaults to today.
    """
    _require_active(trip, "end")

    end_date = end_date or date.today()
    if end_date < trip.start_date:
        raise TripValidationError(
            f"End date cannot be before the start date ({trip.start_date.isoformat()}).",
            field="end_date",
            value=trip.start_date,
        )

    return trip.model_copy(update={"status": TripStatus.COMPLETED, "end_date": end_date})
