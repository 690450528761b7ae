# statemiles/Repositories/trip.py
"""
Trip Repository - Database operations for state mileage trips.

Responsibilities:
- Insert a trip together with its seed crossing (one transaction)
- Query trips by user and status
- Complete and delete trips

Usage:
    from statemiles.Repositories import trip as trip_repo

    active = trip_repo.get_trips_by_user(db, "user-1", status="active")
"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from statemiles.Models.crossing import StateCrossing
from statemiles.Models.trip import MileageTrip

# ==========================================================
# CREATE OPERATIONS
# ==========================================================

def create_trip(DB: Session, snapshot) -> MileageTrip:
    """
    Insert an active trip and its seed crossing.

    Args:
        DB: SQLAlchemy session
        snapshot: TripSnapshot produced by trip_lifecycle.start_trip()

    Returns:
        MileageTrip: Created trip with its generated id

    Notes:
        - Trip and seed crossing are committed together; a trip is never
          visible without its starting point
    """
    new_trip = MileageTrip(
        user_id=snapshot.user_id,
        vehicle_id=snapshot.vehicle_id,
        status=snapshot.status.value,
        start_date=snapshot.start_date,
        end_date=snapshot.end_date,
    )
    DB.add(new_trip)
    DB.flush()  # assigns new_trip.id

    for crossing in snapshot.crossings:
        DB.add(StateCrossing(
            trip_id=new_trip.id,
            state=crossing.state,
            state_name=crossing.state_name,
            odometer=crossing.odometer,
            crossing_date=crossing.crossing_date,
            timestamp=crossing.timestamp,
        ))

    DB.commit()
    DB.refresh(new_trip)

    print(f"[REPO] Trip created: {new_trip.id} (vehicle: {new_trip.vehicle_id}, user: {new_trip.user_id})")

    return new_trip


# ==========================================================
# READ OPERATIONS - SINGLE TRIP
# ==========================================================

def get_trip_by_id(DB: Session, trip_id: str) -> Optional[MileageTrip]:
    return DB.query(MileageTrip).filter(MileageTrip.id == trip_id).first()


def get_trip_for_user(DB: Session, trip_id: str, user_id: str) -> Optional[MileageTrip]:
    """
    Retrieve a trip only if it belongs to user_id.

    Returns:
        MileageTrip or None: None when missing OR owned by another user,
            so callers cannot tell the two apart
    """
    return (
        DB.query(MileageTrip)
        .filter(MileageTrip.id == trip_id, MileageTrip.user_id == user_id)
        .first()
    )


# ==========================================================
# READ OPERATIONS - MULTIPLE TRIPS
# ==========================================================

def get_trips_by_user(
    DB: Session,
    user_id: str,
    status: Optional[str] = None,
    limit: Optional[int] = 100
) -> list[MileageTrip]:
    """
    Get a user's trips, optionally filtered by status.

    Ordering:
        - active trips: most recently created first
        - completed trips: most recently ended first
        - no filter: most recently created first
    """
    query = DB.query(MileageTrip).filter(MileageTrip.user_id == user_id)

    if status:
        query = query.filter(MileageTrip.status == status)

    if status == 'completed':
        query = query.order_by(MileageTrip.end_date.desc(), MileageTrip.created_at.desc())
    else:
        query = query.order_by(MileageTrip.created_at.desc())

    return query.limit(limit).all()


def get_completed_trips_in_range(
    DB: Session,
    user_id: str,
    start_date: date,
    end_date: date
) -> list[MileageTrip]:
    """
    Completed trips lying entirely inside [start_date, end_date].

    Example:
        >>> # Trips of Q1 2025
        >>> trips = get_completed_trips_in_range(db, "user-1", date(2025, 1, 1), date(2025, 3, 31))
    """
    return (
        DB.query(MileageTrip)
        .filter(
            MileageTrip.user_id == user_id,
            MileageTrip.status == 'completed',
            MileageTrip.start_date >= start_date,
            MileageTrip.end_date <= end_date,
        )
        .order_by(MileageTrip.end_date.desc())
        .all()
    )


# ==========================================================
# UPDATE OPERATIONS
# ==========================================================

def complete_trip(DB: Session, trip_id: str, end_date: date) -> Optional[MileageTrip]:
    """
    Mark a trip completed and stamp its end date.

    Returns:
        MileageTrip or None: Updated trip if found, None otherwise
    """
    db_trip = DB.query(MileageTrip).filter(MileageTrip.id == trip_id).first()

    if not db_trip:
        print(f"[REPO] Cannot complete trip - not found: {trip_id}")
        return None

    db_trip.status = 'completed'
    db_trip.end_date = end_date

    DB.commit()
    DB.refresh(db_trip)

    print(f"[REPO] Trip completed: {trip_id} (end date: {end_date.isoformat()})")

    return db_trip


# ==========================================================
# DELETE OPERATIONS
# ==========================================================

def delete_trip(DB: Session, trip_id: str, user_id: str) -> bool:
    """
    Delete a trip and all of its crossings.

    Returns:
        bool: True if deleted, False if not found or owned by another user

    Warning:
        Irreversible. The trip's mileage disappears from every summary.
    """
    db_trip = get_trip_for_user(DB, trip_id, user_id)

    if not db_trip:
        print(f"[REPO] Cannot delete - trip not found: {trip_id}")
        return False

    # ORM cascade deletes the crossings; SQLite does not enforce ON DELETE
    removed = len(db_trip.crossings)
    DB.delete(db_trip)
    DB.commit()

    print(f"[REPO] Trip deleted: {trip_id} ({removed} crossings)")

    return True
