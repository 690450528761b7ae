from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from statemiles.Core.exceptions import TripNotFoundError, TripStateError, TripValidationError
from statemiles.Services import trip_lifecycle
from statemiles.Services.trip_lifecycle import TripSnapshot, TripStatus

_T0 = datetime(2025, 4, 2, 8, 0, tzinfo=timezone.utc)
_DAY = date(2025, 4, 2)


def _started() -> TripSnapshot:
    return trip_lifecycle.start_trip(
        user_id="user-1",
        vehicle_id="vehicle-1",
        start_state="tx",
        start_odometer=1000,
        start_date=_DAY,
        timestamp=_T0,
    )


def _crossing(state: str, odometer: int, hours: int, crossing_id: str | None = None):
    return trip_lifecycle.new_crossing(
        state, odometer, _DAY, timestamp=_T0 + timedelta(hours=hours), crossing_id=crossing_id
    )


def test_start_trip_creates_active_trip_with_seed() -> None:
    trip = _started()

    assert trip.status is TripStatus.ACTIVE
    assert trip.end_date is None
    assert len(trip.crossings) == 1
    assert trip.seed.state == "TX"
    assert trip.seed.state_name == "Texas"
    assert trip.seed.odometer == 1000


@pytest.mark.parametrize(
    "missing",
    ["vehicle_id", "start_state", "start_odometer", "start_date"],
)
def test_start_trip_requires_every_field(missing: str) -> None:
    fields = {
        "user_id": "user-1",
        "vehicle_id": "vehicle-1",
        "start_state": "TX",
        "start_odometer": 1000,
        "start_date": _DAY,
    }
    fields[missing] = None

    with pytest.raises(TripValidationError, match="Please fill in all required fields."):
        trip_lifecycle.start_trip(**fields)


def test_start_odometer_zero_is_allowed() -> None:
    trip = trip_lifecycle.start_trip(
        user_id="user-1", vehicle_id="vehicle-1", start_state="TX", start_odometer=0, start_date=_DAY
    )

    assert trip.seed.odometer == 0


def test_apply_crossing_returns_new_snapshot() -> None:
    trip = _started()

    updated = trip_lifecycle.apply_crossing(trip, _crossing("OK", 1452, 5))

    assert [c.state for c in updated.crossings] == ["TX", "OK"]
    # the input snapshot is untouched
    assert [c.state for c in trip.crossings] == ["TX"]


def test_rejected_crossing_leaves_trip_unchanged() -> None:
    trip = trip_lifecycle.apply_crossing(_started(), _crossing("OK", 1452, 5))

    with pytest.raises(TripValidationError, match=r"greater than the last reading \(1452\)"):
        trip_lifecycle.apply_crossing(trip, _crossing("AR", 1452, 6))

    assert [c.odometer for c in trip.crossings] == [1000, 1452]


def test_snapshots_are_frozen() -> None:
    trip = _started()

    with pytest.raises(Exception):
        trip.status = TripStatus.COMPLETED  # type: ignore[misc]


def test_remove_crossing() -> None:
    trip = trip_lifecycle.apply_crossing(_started(), _crossing("OK", 1452, 5, crossing_id="c-2"))

    updated = trip_lifecycle.remove_crossing(trip, "c-2")

    assert len(updated.crossings) == 1
    assert len(trip.crossings) == 2


def test_seed_crossing_cannot_be_removed() -> None:
    trip = _started().model_copy(
        update={"crossings": (_crossing("TX", 1000, 0, crossing_id="seed"),)}
    )

    with pytest.raises(TripStateError, match="starting crossing"):
        trip_lifecycle.remove_crossing(trip, "seed")


def test_remove_unknown_crossing_raises_not_found() -> None:
    with pytest.raises(TripNotFoundError):
        trip_lifecycle.remove_crossing(_started(), "nope")


def test_complete_trip() -> None:
    completed = trip_lifecycle.complete_trip(_started(), date(2025, 4, 4))

    assert completed.status is TripStatus.COMPLETED
    assert completed.end_date == date(2025, 4, 4)


def test_complete_trip_defaults_to_today() -> None:
    trip = trip_lifecycle.start_trip(
        user_id="user-1", vehicle_id="vehicle-1", start_state="TX", start_odometer=0, start_date=date.today()
    )

    assert trip_lifecycle.complete_trip(trip).end_date == date.today()


def test_end_date_before_start_date_is_rejected() -> None:
    with pytest.raises(TripValidationError, match="End date"):
        trip_lifecycle.complete_trip(_started(), date(2025, 4, 1))


def test_completed_trip_rejects_further_commands() -> None:
    completed = trip_lifecycle.complete_trip(_started(), _DAY)

    with pytest.raises(TripStateError):
        trip_lifecycle.complete_trip(completed, _DAY)
    with pytest.raises(TripStateError):
        trip_lifecycle.apply_crossing(completed, _crossing("OK", 2000, 5))
    with pytest.raises(TripStateError):
        trip_lifecycle.remove_crossing(completed, "anything")


def test_supplied_timestamp_is_normalized_to_utc() -> None:
    local = datetime(2025, 4, 2, 10, 0, tzinfo=timezone(timedelta(hours=-5)))

    crossing = trip_lifecycle.new_crossing("OK", 1452, _DAY, timestamp=local)

    assert crossing.timestamp == datetime(2025, 4, 2, 15, 0, tzinfo=timezone.utc)
    assert crossing.timestamp.tzinfo == timezone.utc


def test_future_timestamp_is_rejected_for_seed_and_crossings() -> None:
    tomorrow = datetime.now(timezone.utc) + timedelta(days=1)

    with pytest.raises(TripValidationError, match="future"):
        trip_lifecycle.new_crossing("OK", 1452, _DAY, timestamp=tomorrow)
    with pytest.raises(TripValidationError, match="future"):
        trip_lifecycle.start_trip(
            user_id="user-1",
            vehicle_id="vehicle-1",
            start_state="TX",
            start_odometer=0,
            start_date=_DAY,
            timestamp=tomorrow,
        )


def test_crossing_at_the_same_time_as_the_last_is_rejected() -> None:
    trip = trip_lifecycle.apply_crossing(_started(), _crossing("OK", 1452, 5))

    with pytest.raises(TripValidationError, match="must be later"):
        trip_lifecycle.apply_crossing(trip, _crossing("AR", 1800, 5))
