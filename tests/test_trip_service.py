from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session

from statemiles.Core.exceptions import TripNotFoundError, TripStateError, TripValidationError
from statemiles.Models.crossing import StateCrossing
from statemiles.Models.vehicle import Vehicle
from statemiles.Repositories import crossing as crossing_repo
from statemiles.Repositories import vehicle as vehicle_repo
from statemiles.Schemas.vehicle import Vehicle_create
from statemiles.Services.change_notifier import ChangeKind, ChangeNotifier, TripChangeEvent
from statemiles.Services.mileage_cache import MileageCache, summary_key, trip_key
from statemiles.Services.trip_service import TripService

_T0 = datetime(2025, 4, 2, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def events() -> list[TripChangeEvent]:
    return []


@pytest.fixture
def cache() -> MileageCache:
    return MileageCache()


@pytest.fixture
def service(events: list[TripChangeEvent], cache: MileageCache) -> TripService:
    notifier = ChangeNotifier()
    notifier.subscribe(cache.handle_change)
    notifier.subscribe(events.append)
    return TripService(notifier, cache)


def _start(service: TripService, db: Session, vehicle: Vehicle, odometer: int = 0, day: date = date(2025, 4, 2)):
    return service.start_trip(
        db,
        "user-1",
        vehicle_id=vehicle.vehicle_id,
        start_state="TX",
        start_odometer=odometer,
        start_date=day,
        timestamp=_T0,
    )


def _cross(service: TripService, db: Session, trip_id: str, state: str, odometer: int, hours: int):
    return service.add_crossing(
        db, "user-1", trip_id, state, odometer, date(2025, 4, 2), timestamp=_T0 + timedelta(hours=hours)
    )


def test_start_trip_persists_seed_and_notifies(
    service: TripService, db: Session, vehicle: Vehicle, events: list[TripChangeEvent]
) -> None:
    trip = _start(service, db, vehicle, odometer=1000)

    crossings = crossing_repo.get_crossings_by_trip(db, trip.id)
    assert trip.status == "active"
    assert [(c.state, c.state_name, c.odometer) for c in crossings] == [("TX", "Texas", 1000)]
    assert [e.kind for e in events] == [ChangeKind.TRIP_STARTED]


def test_start_trip_on_foreign_or_inactive_vehicle(service: TripService, db: Session, vehicle: Vehicle) -> None:
    with pytest.raises(TripNotFoundError):
        service.start_trip(
            db, "user-2", vehicle_id=vehicle.vehicle_id, start_state="TX", start_odometer=0, start_date=date(2025, 4, 2)
        )

    parked = vehicle_repo.create_vehicle(db, "user-1", Vehicle_create(name="Parked", is_active=False))
    with pytest.raises(TripValidationError, match="inactive"):
        service.start_trip(
            db, "user-1", vehicle_id=parked.vehicle_id, start_state="TX", start_odometer=0, start_date=date(2025, 4, 2)
        )


def test_missing_fields_write_nothing(service: TripService, db: Session, vehicle: Vehicle) -> None:
    with pytest.raises(TripValidationError, match="Please fill in all required fields."):
        service.start_trip(
            db, "user-1", vehicle_id=vehicle.vehicle_id, start_state=None, start_odometer=0, start_date=date(2025, 4, 2)
        )

    assert service.list_trips(db, "user-1") == []


def test_trip_mileage_example(service: TripService, db: Session, vehicle: Vehicle) -> None:
    trip = _start(service, db, vehicle)
    _cross(service, db, trip.id, "OK", 452, 5)
    _cross(service, db, trip.id, "AR", 798, 9)

    entries = service.get_trip_mileage(db, "user-1", trip.id)

    assert [(e.state, e.state_name, e.miles) for e in entries] == [
        ("TX", "Texas", 452),
        ("OK", "Oklahoma", 346),
    ]


def test_rejected_crossing_is_not_stored(
    service: TripService, db: Session, vehicle: Vehicle, events: list[TripChangeEvent]
) -> None:
    trip = _start(service, db, vehicle)
    _cross(service, db, trip.id, "OK", 452, 5)

    with pytest.raises(TripValidationError, match=r"last reading \(452\)"):
        _cross(service, db, trip.id, "AR", 400, 9)

    assert [c.odometer for c in crossing_repo.get_crossings_by_trip(db, trip.id)] == [0, 452]
    assert events[-1].kind == ChangeKind.CROSSING_ADDED


def test_adding_crossing_invalidates_cached_mileage(
    service: TripService, db: Session, vehicle: Vehicle, cache: MileageCache
) -> None:
    trip = _start(service, db, vehicle)
    _cross(service, db, trip.id, "OK", 100, 1)
    assert service.get_trip_mileage(db, "user-1", trip.id)[0].miles == 100
    assert cache.get(trip_key("user-1", trip.id)) is not None

    _cross(service, db, trip.id, "AR", 250, 2)

    assert cache.get(trip_key("user-1", trip.id)) is None
    assert [(e.state, e.miles) for e in service.get_trip_mileage(db, "user-1", trip.id)] == [
        ("OK", 150),
        ("TX", 100),
    ]


def test_delete_crossing(service: TripService, db: Session, vehicle: Vehicle, events: list[TripChangeEvent]) -> None:
    trip = _start(service, db, vehicle)
    crossing = _cross(service, db, trip.id, "OK", 100, 1)

    service.delete_crossing(db, "user-1", trip.id, crossing.id)

    assert [c.state for c in crossing_repo.get_crossings_by_trip(db, trip.id)] == ["TX"]
    assert events[-1].kind == ChangeKind.CROSSING_DELETED


def test_seed_crossing_cannot_be_deleted(service: TripService, db: Session, vehicle: Vehicle) -> None:
    trip = _start(service, db, vehicle)
    seed = crossing_repo.get_crossings_by_trip(db, trip.id)[0]

    with pytest.raises(TripStateError):
        service.delete_crossing(db, "user-1", trip.id, seed.id)


def test_completed_trip_is_read_only(service: TripService, db: Session, vehicle: Vehicle) -> None:
    trip = _start(service, db, vehicle)
    completed = service.end_trip(db, "user-1", trip.id, date(2025, 4, 3))

    assert completed.status == "completed"
    assert completed.end_date == date(2025, 4, 3)
    with pytest.raises(TripStateError):
        _cross(service, db, trip.id, "OK", 100, 1)
    with pytest.raises(TripStateError):
        service.end_trip(db, "user-1", trip.id, date(2025, 4, 3))


def test_other_users_trips_are_not_found(service: TripService, db: Session, vehicle: Vehicle) -> None:
    trip = _start(service, db, vehicle)

    with pytest.raises(TripNotFoundError):
        service.get_trip_detail(db, "user-2", trip.id)
    with pytest.raises(TripNotFoundError):
        service.delete_trip(db, "user-2", trip.id)
    with pytest.raises(TripNotFoundError):
        service.add_crossing(db, "user-2", trip.id, "OK", 10, date(2025, 4, 2))


def test_delete_trip_cascades_to_crossings(
    service: TripService, db: Session, vehicle: Vehicle, events: list[TripChangeEvent]
) -> None:
    trip = _start(service, db, vehicle)
    _cross(service, db, trip.id, "OK", 100, 1)

    service.delete_trip(db, "user-1", trip.id)

    assert db.query(StateCrossing).count() == 0
    assert events[-1].kind == ChangeKind.TRIP_DELETED
    with pytest.raises(TripNotFoundError):
        service.get_trip_detail(db, "user-1", trip.id)


def test_all_time_mileage_counts_completed_trips_only(
    service: TripService, db: Session, vehicle: Vehicle, cache: MileageCache
) -> None:
    first = _start(service, db, vehicle)
    _cross(service, db, first.id, "OK", 100, 1)
    service.end_trip(db, "user-1", first.id, date(2025, 4, 2))

    second = _start(service, db, vehicle, odometer=5000)
    _cross(service, db, second.id, "NM", 5060, 1)

    summary = service.get_all_time_mileage(db, "user-1")
    assert summary.trip_count == 1
    assert [(e.state, e.miles) for e in summary.state_mileage] == [("TX", 100)]
    assert cache.get(summary_key("user-1")) is not None

    service.end_trip(db, "user-1", second.id, date(2025, 4, 3))

    summary = service.get_all_time_mileage(db, "user-1")
    assert summary.trip_count == 2
    # the 4900 miles between the two trips belong to no state
    assert [(e.state, e.miles) for e in summary.state_mileage] == [("TX", 160)]
    assert summary.total_miles == 160


def test_quarter_mileage_selects_trips_inside_the_quarter(service: TripService, db: Session, vehicle: Vehicle) -> None:
    inside = _start(service, db, vehicle, day=date(2025, 4, 2))
    _cross(service, db, inside.id, "OK", 100, 1)
    service.end_trip(db, "user-1", inside.id, date(2025, 4, 3))

    # ends in Q3: excluded from Q2
    straddling = _start(service, db, vehicle, odometer=1000, day=date(2025, 6, 29))
    _cross(service, db, straddling.id, "KS", 1200, 1)
    service.end_trip(db, "user-1", straddling.id, date(2025, 7, 1))

    summary = service.get_quarter_mileage(db, "user-1", "2025-q2")

    assert summary.quarter == "2025-Q2"
    assert summary.trip_count == 1
    assert summary.total_miles == 100

    with pytest.raises(TripValidationError):
        service.get_quarter_mileage(db, "user-1", "2025-Q9")


def test_export_trip_csv(service: TripService, db: Session, vehicle: Vehicle) -> None:
    trip = _start(service, db, vehicle)
    _cross(service, db, trip.id, "OK", 452, 5)
    _cross(service, db, trip.id, "AR", 798, 9)

    filename, content = service.export_trip_csv(db, "user-1", trip.id)

    assert filename == "state_mileage_Truck_01_2025-04-02.csv"
    assert content.splitlines()[-1] == "TOTAL,,798.0"


def test_crossings_sharing_a_timestamp_load_in_a_stable_order(
    service: TripService, db: Session, vehicle: Vehicle
) -> None:
    trip = _start(service, db, vehicle)
    tied = _T0 + timedelta(hours=3)
    # inserted newest-first so row order alone would put them backwards
    db.add_all(
        [
            StateCrossing(
                trip_id=trip.id, state="AR", state_name="Arkansas", odometer=300,
                crossing_date=date(2025, 4, 2), timestamp=tied, created_at=_T0 + timedelta(hours=5),
            ),
            StateCrossing(
                trip_id=trip.id, state="OK", state_name="Oklahoma", odometer=200,
                crossing_date=date(2025, 4, 2), timestamp=tied, created_at=_T0 + timedelta(hours=4),
            ),
        ]
    )
    db.commit()
    db.expire_all()

    loaded = crossing_repo.get_crossings_by_trip(db, trip.id)
    grouped = crossing_repo.get_crossings_for_trips(db, [trip.id])
    relationship_order = service.get_trip_detail(db, "user-1", trip.id).crossings

    assert [c.state for c in loaded] == ["TX", "OK", "AR"]
    assert [c.state for c in grouped[trip.id]] == ["TX", "OK", "AR"]
    assert [c.state for c in relationship_order] == ["TX", "OK", "AR"]
    assert [(e.state, e.miles) for e in service.get_trip_mileage(db, "user-1", trip.id)] == [
        ("TX", 200),
        ("OK", 100),
    ]


def test_backdated_trip_accepts_backfilled_crossings(service: TripService, db: Session, vehicle: Vehicle) -> None:
    trip = _start(service, db, vehicle)

    crossing = _cross(service, db, trip.id, "OK", 452, 7)

    assert crossing.state == "OK"
    with pytest.raises(TripValidationError, match="must be later"):
        _cross(service, db, trip.id, "AR", 798, 7)
