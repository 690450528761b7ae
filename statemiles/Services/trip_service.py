# statemiles/Services/trip_service.py
"""
Trip Service
============
Orchestrates the state mileage workflow on top of the repositories.

Every mutation follows the same steps:
1. Load the trip (scoped to the calling user)
2. Build a TripSnapshot and run the lifecycle command on it (validation)
3. Persist the difference through the repositories
4. Publish a TripChangeEvent (cache invalidation, /changes clients)

Reads go through the mileage cache: results are computed on first read
and reused until a change event or the TTL drops them.

Errors:
- TripNotFoundError: trip/vehicle/crossing missing or owned by another user
- TripValidationError: rejected input (message is user-facing)
- TripStateError: operation not allowed in the trip's state
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from statemiles.Core import log_ws
from statemiles.Core.exceptions import TripNotFoundError, TripValidationError
from statemiles.Models.crossing import StateCrossing
from statemiles.Models.trip import MileageTrip
from statemiles.Repositories import crossing as crossing_repo
from statemiles.Repositories import trip as trip_repo
from statemiles.Repositories import vehicle as vehicle_repo
from statemiles.Schemas.mileage import MileageSummary_response, StateMileageEntry, TripReport
from statemiles.Services import trip_lifecycle
from statemiles.Services.change_notifier import ChangeKind, ChangeNotifier, TripChangeEvent, change_notifier
from statemiles.Services.ifta_reports import generate_trip_report, parse_quarter, summarize_trips
from statemiles.Services.mileage_aggregator import calculate_state_mileage
from statemiles.Services.mileage_cache import MileageCache, mileage_cache, summary_key, trip_key
from statemiles.Services.mileage_export import export_filename, export_state_mileage_csv


class TripService:
    """
    Trip workflow bound to a notifier and a cache.

    The module-level `trip_service` uses the global singletons; tests build
    their own instance with private ones.
    """

    def __init__(self, notifier: ChangeNotifier, cache: MileageCache):
        self.notifier = notifier
        self.cache = cache

    # ==========================================================
    # HELPERS
    # ==========================================================

    def _load_trip(self, db: Session, user_id: str, trip_id: str) -> MileageTrip:
        trip = trip_repo.get_trip_for_user(db, trip_id, user_id)
        if trip is None:
            raise TripNotFoundError(f"Trip '{trip_id}' not found")
        return trip

    def _publish(self, user_id: str, trip_id: str, kind: ChangeKind) -> None:
        self.notifier.publish(TripChangeEvent(user_id=user_id, trip_id=trip_id, kind=kind))

    # ==========================================================
    # COMMANDS
    # ==========================================================

    def start_trip(
        self,
        db: Session,
        user_id: str,
        vehicle_id: Optional[str],
        start_state: Optional[str],
        start_odometer: Optional[int],
        start_date: Optional[date],
        timestamp: Optional[datetime] = None,
    ) -> MileageTrip:
        """
        Create an active trip with its seed crossing.
        """
        snapshot = trip_lifecycle.start_trip(
            user_id=user_id,
            vehicle_id=vehicle_id,
            start_state=start_state,
            start_odometer=start_odometer,
            start_date=start_date,
            timestamp=timestamp,
        )

        vehicle = vehicle_repo.get_vehicle_for_user(db, vehicle_id, user_id)
        if vehicle is None:
            raise TripNotFoundError(f"Vehicle '{vehicle_id}' not found")
        if not vehicle.is_active:
            raise TripValidationError(
                "Trips cannot be started on an inactive vehicle.", field="vehicle_id", value=vehicle_id
            )

        trip = trip_repo.create_trip(db, snapshot)

        log_ws.log_from_thread(
            f"[SERVICE] Trip {trip.id} started in {snapshot.seed.state} at {snapshot.seed.odometer} mi"
        )
        self._publish(user_id, trip.id, ChangeKind.TRIP_STARTED)
        return trip

    def add_crossing(
        self,
        db: Session,
        user_id: str,
        trip_id: str,
        state: str,
        odometer: int,
        crossing_date: date,
        timestamp: Optional[datetime] = None,
        state_name: Optional[str] = None,
    ) -> StateCrossing:
        """
        Append a crossing to an active trip.

        Nothing is written when validation fails.
        """
        trip = self._load_trip(db, user_id, trip_id)
        snapshot = trip_lifecycle.snapshot_from_orm(trip)

        crossing = trip_lifecycle.new_crossing(
            state, odometer, crossing_date, timestamp=timestamp, state_name=state_name
        )
        trip_lifecycle.apply_crossing(snapshot, crossing)

        row = crossing_repo.create_crossing(db, trip.id, crossing)
        self._publish(user_id, trip.id, ChangeKind.CROSSING_ADDED)
        return row

    def delete_crossing(self, db: Session, user_id: str, trip_id: str, crossing_id: str) -> None:
        """
        Delete a non-seed crossing of an active trip.
        """
        trip = self._load_trip(db, user_id, trip_id)
        trip_lifecycle.remove_crossing(trip_lifecycle.snapshot_from_orm(trip), crossing_id)

        if not crossing_repo.delete_crossing(db, crossing_id):
            raise TripNotFoundError(f"Crossing '{crossing_id}' not found")
        self._publish(user_id, trip_id, ChangeKind.CROSSING_DELETED)

    def end_trip(self, db: Session, user_id: str, trip_id: str, end_date: Optional[date] = None) -> MileageTrip:
        """
        Complete an active trip. Its crossings become read-only history.
        """
        trip = self._load_trip(db, user_id, trip_id)
        completed = trip_lifecycle.complete_trip(trip_lifecycle.snapshot_from_orm(trip), end_date)

        updated = trip_repo.complete_trip(db, trip.id, completed.end_date)
        if updated is None:
            raise TripNotFoundError(f"Trip '{trip_id}' not found")

        log_ws.log_from_thread(f"[SERVICE] Trip {trip_id} completed on {completed.end_date.isoformat()}")
        self._publish(user_id, trip_id, ChangeKind.TRIP_COMPLETED)
        return updated

    def delete_trip(self, db: Session, user_id: str, trip_id: str) -> None:
        """
        Delete a trip in any state, with its crossings.
        """
        if not trip_repo.delete_trip(db, trip_id, user_id):
            raise TripNotFoundError("Trip not found or you do not have permission to delete it")

        log_ws.log_from_thread(f"[SERVICE] Trip {trip_id} deleted", msg_type="warning")
        self._publish(user_id, trip_id, ChangeKind.TRIP_DELETED)

    # ==========================================================
    # QUERIES
    # ==========================================================

    def get_trip_detail(self, db: Session, user_id: str, trip_id: str) -> MileageTrip:
        return self._load_trip(db, user_id, trip_id)

    def list_trips(self, db: Session, user_id: str, status: Optional[str] = None) -> List[MileageTrip]:
        return trip_repo.get_trips_by_user(db, user_id, status=status)

    def get_trip_mileage(self, db: Session, user_id: str, trip_id: str) -> List[StateMileageEntry]:
        """
        Per-state mileage of one trip (cached).
        """
        trip = self._load_trip(db, user_id, trip_id)
        return self.cache.get_or_compute(
            trip_key(user_id, trip.id),
            lambda: calculate_state_mileage(crossing_repo.get_crossings_by_trip(db, trip.id)),
        )

    def get_trip_report(self, db: Session, user_id: str, trip_id: str) -> TripReport:
        trip = self._load_trip(db, user_id, trip_id)
        return generate_trip_report(trip, crossing_repo.get_crossings_by_trip(db, trip.id))

    def export_trip_csv(self, db: Session, user_id: str, trip_id: str) -> Tuple[str, str]:
        """
        CSV export of one trip's mileage.

        Returns:
            (filename, csv_text)
        """
        trip = self._load_trip(db, user_id, trip_id)
        entries = self.get_trip_mileage(db, user_id, trip_id)

        vehicle = vehicle_repo.get_vehicle_for_user(db, trip.vehicle_id, user_id)
        filename = export_filename(vehicle.name if vehicle else "Vehicle", trip.start_date)
        return filename, export_state_mileage_csv(entries)

    def _completed_crossings(self, db: Session, trips: List[MileageTrip]) -> Dict[str, list]:
        return crossing_repo.get_crossings_for_trips(db, [trip.id for trip in trips])

    def get_all_time_mileage(self, db: Session, user_id: str) -> MileageSummary_response:
        """
        Per-state mileage over every completed trip of the user (cached).
        """
        def compute() -> MileageSummary_response:
            trips = trip_repo.get_trips_by_user(db, user_id, status='completed', limit=None)
            return summarize_trips(self._completed_crossings(db, trips))

        return self.cache.get_or_compute(summary_key(user_id, "all"), compute)

    def get_quarter_mileage(self, db: Session, user_id: str, quarter: str) -> MileageSummary_response:
        """
        Per-state mileage over the completed trips inside an IFTA quarter (cached).
        """
        period_start, period_end = parse_quarter(quarter)
        quarter = quarter.strip().upper()

        def compute() -> MileageSummary_response:
            trips = trip_repo.get_completed_trips_in_range(db, user_id, period_start, period_end)
            return summarize_trips(self._completed_crossings(db, trips), quarter=quarter)

        return self.cache.get_or_compute(summary_key(user_id, f"quarter:{quarter}"), compute)


trip_service = TripService(change_notifier, mileage_cache)
