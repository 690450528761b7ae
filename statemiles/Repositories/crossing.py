# statemiles/Repositories/crossing.py
"""
Crossing Repository - Database operations for state crossings.

All reads return crossings ordered by timestamp ascending, which is the
order the mileage aggregator expects. Rows with equal timestamps (legacy
or imported data) fall back to insertion time, then odometer, then id.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from statemiles.Core.config import settings
from statemiles.Models.crossing import StateCrossing
from statemiles.Models.trip import MileageTrip

CROSSING_ORDER = (
    StateCrossing.timestamp.asc(),
    StateCrossing.created_at.asc(),
    StateCrossing.odometer.asc(),
    StateCrossing.id.asc(),
)


def create_crossing(DB: Session, trip_id: str, crossing) -> StateCrossing:
    """
    Insert a crossing (a CrossingSnapshot already validated by the lifecycle).
    """
    new_crossing = StateCrossing(
        trip_id=trip_id,
        state=crossing.state,
        state_name=crossing.state_name,
        odometer=crossing.odometer,
        crossing_date=crossing.crossing_date,
        timestamp=crossing.timestamp,
    )
    DB.add(new_crossing)

    # touch the trip so updated_at reflects the new crossing
    DB.query(MileageTrip).filter(MileageTrip.id == trip_id).update(
        {MileageTrip.updated_at: datetime.now(timezone.utc)},
        synchronize_session=False
    )

    DB.commit()
    DB.refresh(new_crossing)

    print(f"[REPO] Crossing added: trip {trip_id} -> {new_crossing.state} @ {new_crossing.odometer}")

    return new_crossing


def get_crossings_by_trip(DB: Session, trip_id: str) -> List[StateCrossing]:
    return (
        DB.query(StateCrossing)
        .filter(StateCrossing.trip_id == trip_id)
        .order_by(*CROSSING_ORDER)
        .all()
    )


def get_crossings_for_trips(
    DB: Session,
    trip_ids: Sequence[str],
    chunk_size: Optional[int] = None
) -> Dict[str, List[StateCrossing]]:
    """
    Load the crossings of many trips, grouped by trip id.

    Args:
        DB: SQLAlchemy session
        trip_ids: Trips to load
        chunk_size: Trip ids per query (default: settings.HISTORY_CHUNK_SIZE)

    Returns:
        dict: {trip_id: [crossings ordered by timestamp]}. Every requested
            trip id is present, with an empty list if it has no crossings.
    """
    chunk_size = chunk_size or settings.HISTORY_CHUNK_SIZE
    grouped: Dict[str, List[StateCrossing]] = {trip_id: [] for trip_id in trip_ids}
    ids = list(grouped)

    for start in range(0, len(ids), chunk_size):
        chunk = ids[start:start + chunk_size]
        rows = (
            DB.query(StateCrossing)
            .filter(StateCrossing.trip_id.in_(chunk))
            .order_by(*CROSSING_ORDER)
            .all()
        )
        for row in rows:
            grouped[row.trip_id].append(row)

    return grouped


def delete_crossing(DB: Session, crossing_id: str) -> bool:
    """
    Delete one crossing. Returns False if it does not exist.

    Notes:
        - Seed protection lives in trip_lifecycle.remove_crossing(); call
          this only after that check passed
    """
    db_crossing = DB.query(StateCrossing).filter(StateCrossing.id == crossing_id).first()

    if not db_crossing:
        print(f"[REPO] Cannot delete - crossing not found: {crossing_id}")
        return False

    DB.delete(db_crossing)
    DB.commit()

    print(f"[REPO] Crossing deleted: {crossing_id}")

    return True
