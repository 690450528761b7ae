# statemiles/Services/mileage_aggregator.py
"""
Mileage Aggregator
==================
Turns the state crossings of a trip into per-state mileage totals.

Algorithm:
- Crossings are ordered by timestamp (stable sort, ties keep input order)
- For each adjacent pair (c[i], c[i+1]) the odometer delta is attributed
  to c[i].state: those are the miles driven inside that state before
  crossing into the next one
- Deltas are accumulated per state code; a revisited state adds to its
  existing entry
- Entries are sorted by miles, highest first; ties keep the order in
  which the states first appeared

Policy:
- A trip with fewer than 2 crossings has no interval and yields []
- Negative deltas (decreasing odometer) are summed as signed values.
  Monotonicity is enforced when a crossing is written, not here, so
  historical rows that were never validated still aggregate
- A crossing without state, odometer or timestamp raises
  MileagePreconditionError instead of being skipped

Cross-trip totals aggregate every trip on its own and then merge the
results, so the last crossing of one trip is never paired with the first
crossing of another.

Functions:
- calculate_state_mileage(): Per-state miles of one trip
- calculate_total_mileage(): Per-state miles across many trips
- merge_state_mileage(): Sum already-aggregated per-state lists
- total_miles(): Sum of an aggregated list
- as_utc(): Timestamp normalization shared with the write path and reports
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, Dict, List, NamedTuple, Union

from statemiles.Core.exceptions import MileagePreconditionError
from statemiles.Schemas.mileage import StateMileageEntry


class _Point(NamedTuple):
    state: str
    state_name: str
    odometer: int
    timestamp: datetime


def as_utc(value: datetime) -> datetime:
    """
    Normalize a timestamp to UTC. Naive values are read as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _field(crossing: Any, name: str) -> Any:
    if isinstance(crossing, Mapping):
        return crossing.get(name)
    return getattr(crossing, name, None)


def _parse_timestamp(value: Any, index: int) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise MileagePreconditionError(
                f"Crossing {index} has an invalid timestamp: {value!r}", index=index
            ) from exc
    else:
        raise MileagePreconditionError(f"Crossing {index} is missing a timestamp", index=index)

    return as_utc(parsed)


def _to_point(crossing: Any, index: int) -> _Point:
    state = _field(crossing, "state")
    if not isinstance(state, str) or not state:
        raise MileagePreconditionError(f"Crossing {index} is missing a state", index=index)

    odometer = _field(crossing, "odometer")
    if odometer is None:
        raise MileagePreconditionError(f"Crossing {index} is missing an odometer reading", index=index)
    if isinstance(odometer, bool) or not isinstance(odometer, int):
        raise MileagePreconditionError(
            f"Crossing {index} has a non-integer odometer reading: {odometer!r}", index=index
        )

    state_name = _field(crossing, "state_name") or state
    timestamp = _parse_timestamp(_field(crossing, "timestamp"), index)

    return _Point(state, state_name, odometer, timestamp)


def _ordered_points(crossings: Iterable[Any]) -> List[_Point]:
    points = [_to_point(crossing, index) for index, crossing in enumerate(crossings)]
    return sorted(points, key=lambda point: point.timestamp)


def _accumulate(points: Sequence[_Point], totals: Dict[str, List[Any]]) -> None:
    """Add the intervals of one trip to totals ({state: [state_name, miles]})."""
    for current, following in zip(points, points[1:]):
        miles_driven = following.odometer - current.odometer
        entry = totals.get(current.state)
        if entry is None:
            totals[current.state] = [current.state_name, miles_driven]
        else:
            entry[1] += miles_driven


def _sorted_entries(totals: Dict[str, List[Any]]) -> List[StateMileageEntry]:
    entries = [
        StateMileageEntry(state=state, state_name=state_name, miles=miles)
        for state, (state_name, miles) in totals.items()
    ]
    return sorted(entries, key=lambda entry: -entry.miles)


def calculate_state_mileage(crossings: Iterable[Any]) -> List[StateMileageEntry]:
    """
    Per-state mileage of a single trip.

    Args:
        crossings: Crossings of ONE trip. Dicts, ORM rows and pydantic
            models are accepted; each needs state, odometer and timestamp
            (state_name is optional and defaults to the code).

    Returns:
        list[StateMileageEntry]: One entry per state with an outgoing
            interval, sorted by miles descending.

    Raises:
        MileagePreconditionError: A crossing lacks a required field.

    Example:
        >>> calculate_state_mileage([
        ...     {"state": "TX", "odometer": 0, "timestamp": "2025-01-01T08:00:00Z"},
        ...     {"state": "OK", "odometer": 452, "timestamp": "2025-01-01T15:00:00Z"},
        ...     {"state": "AR", "odometer": 798, "timestamp": "2025-01-01T20:00:00Z"},
        ... ])
        [StateMileageEntry(state='TX', state_name='TX', miles=452),
         StateMileageEntry(state='OK', state_name='OK', miles=346)]
    """
    points = _ordered_points(crossings)
    if len(points) < 2:
        return []

    totals: Dict[str, List[Any]] = {}
    _accumulate(points, totals)
    return _sorted_entries(totals)


def calculate_total_mileage(
    crossings_by_trip: Union[Mapping[str, Iterable[Any]], Iterable[Iterable[Any]]]
) -> List[StateMileageEntry]:
    """
    Per-state mileage across many trips.

    Each trip is aggregated on its own; intervals never span two trips.

    Args:
        crossings_by_trip: {trip_id: crossings} or an iterable of
            per-trip crossing lists.

    Raises:
        MileagePreconditionError: A crossing of some trip lacks a required
            field. The message names the trip when ids are available.
    """
    if isinstance(crossings_by_trip, Mapping):
        groups = list(crossings_by_trip.items())
    else:
        groups = list(enumerate(crossings_by_trip))

    totals: Dict[str, List[Any]] = {}
    for trip_key, crossings in groups:
        try:
            points = _ordered_points(crossings)
        except MileagePreconditionError as exc:
            raise MileagePreconditionError(f"Trip {trip_key}: {exc}", index=exc.index) from exc
        _accumulate(points, totals)

    return _sorted_entries(totals)


def merge_state_mileage(groups: Iterable[Iterable[StateMileageEntry]]) -> List[StateMileageEntry]:
    """
    Sum already-aggregated per-state lists into one list.

    The first display name seen for a code is kept.
    """
    totals: Dict[str, List[Any]] = {}
    for entries in groups:
        for entry in entries:
            existing = totals.get(entry.state)
            if existing is None:
                totals[entry.state] = [entry.state_name, entry.miles]
            else:
                existing[1] += entry.miles
    return _sorted_entries(totals)


def total_miles(entries: Iterable[StateMileageEntry]) -> int:
    return sum(entry.miles for entry in entries)
