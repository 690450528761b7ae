# statemiles/Controller/Routes/trips.py

"""
Trip Management REST API

This module exposes the trip lifecycle: a trip starts in one jurisdiction
with a seed crossing, collects crossings while active, and is completed
(or deleted) by the user.

Endpoints:
- POST   /trips/                                   Start a trip
- GET    /trips/                                   List trips (filter by status)
- GET    /trips/{trip_id}                          Trip detail with crossings
- POST   /trips/{trip_id}/crossings                Log a state crossing
- DELETE /trips/{trip_id}/crossings/{crossing_id}  Delete a crossing
- POST   /trips/{trip_id}/end                      Complete the trip
- DELETE /trips/{trip_id}                          Delete the trip

Status Codes:
- 404: Trip, crossing or vehicle not found (or owned by another user)
- 409: Operation not allowed in the trip's state (e.g. crossing on a
       completed trip, deleting the starting crossing)
- 422: Rejected input (missing fields, odometer not increasing, unknown
       jurisdiction code)

Usage:
    # In main.py
    from statemiles.Controller.Routes import trips
    app.include_router(trips.router, prefix="/trips", tags=["trips"])
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from statemiles.Controller.deps import get_DB, get_current_user_id, raise_http
from statemiles.Core.exceptions import StateMilesError
from statemiles.Schemas import crossing as crossing_schema
from statemiles.Schemas import trip as trip_schema
from statemiles.Services.trip_service import trip_service

router = APIRouter()


# ==========================================================
# 📌 Start Trip
# ==========================================================

@router.post("/", response_model=trip_schema.Trip_detail, status_code=201)
def start_trip(
    payload: trip_schema.Trip_start,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Start a trip on one of the caller's vehicles.

    The start state and odometer become the trip's first crossing.

    Example Request:
        POST /trips/
        X-User-ID: user-1

        {
            "vehicle_id": "5b7c...",
            "start_state": "TX",
            "start_odometer": 1000,
            "start_date": "2025-04-02",
            "timestamp": "2025-04-02T08:00:00Z"    # optional, defaults to now
        }

    Raises:
        404: Vehicle not found
        422: Missing fields, unknown state, future timestamp or inactive vehicle
    """
    try:
        return trip_service.start_trip(
            db,
            user_id,
            vehicle_id=payload.vehicle_id,
            start_state=payload.start_state,
            start_odometer=payload.start_odometer,
            start_date=payload.start_date,
            timestamp=payload.timestamp,
        )
    except StateMilesError as e:
        raise_http(e)


# ==========================================================
# 📌 List Trips
# ==========================================================

@router.get("/", response_model=trip_schema.Trip_list_response)
def list_trips(
    status: Optional[str] = Query(
        None,
        pattern='^(active|completed)$',
        description="Filter by trip status"
    ),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Get the caller's trips.

    Ordering:
        - ?status=completed: most recently ended first
        - otherwise: most recently created first

    Example Requests:
        GET /trips/?status=active       # Trip in progress
        GET /trips/?status=completed    # Trip history
    """
    trips = trip_service.list_trips(db, user_id, status=status)

    return {
        "trips": [trip_schema.Trip_get.model_validate(t) for t in trips],
        "total": len(trips)
    }


# ==========================================================
# 📌 Trip Detail
# ==========================================================

@router.get("/{trip_id}", response_model=trip_schema.Trip_detail)
def get_trip(
    trip_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Get a trip with its crossings ordered by timestamp.

    Raises:
        404: Trip not found
    """
    try:
        return trip_service.get_trip_detail(db, user_id, trip_id)
    except StateMilesError as e:
        raise_http(e)


# ==========================================================
# 📌 Crossings
# ==========================================================

@router.post("/{trip_id}/crossings", response_model=crossing_schema.Crossing_get, status_code=201)
def add_crossing(
    trip_id: str,
    crossing: crossing_schema.Crossing_create,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Log a state crossing on an active trip.

    Example Request:
        POST /trips/{trip_id}/crossings

        {"state": "OK", "odometer": 1452, "crossing_date": "2025-04-02"}

    Raises:
        404: Trip not found
        409: Trip is completed
        422: Unknown state, odometer not above the last reading, or a time
             not after the last crossing (or in the future)
    """
    try:
        return trip_service.add_crossing(
            db,
            user_id,
            trip_id,
            state=crossing.state,
            odometer=crossing.odometer,
            crossing_date=crossing.crossing_date,
            timestamp=crossing.timestamp,
            state_name=crossing.state_name,
        )
    except StateMilesError as e:
        raise_http(e)


@router.delete("/{trip_id}/crossings/{crossing_id}")
def delete_crossing(
    trip_id: str,
    crossing_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Delete a crossing of an active trip.

    Raises:
        404: Trip or crossing not found
        409: Starting crossing, or trip is completed
    """
    try:
        trip_service.delete_crossing(db, user_id, trip_id, crossing_id)
    except StateMilesError as e:
        raise_http(e)

    return {"crossing_id": crossing_id, "status": "deleted"}


# ==========================================================
# 📌 End / Delete Trip
# ==========================================================

@router.post("/{trip_id}/end", response_model=trip_schema.Trip_get)
def end_trip(
    trip_id: str,
    payload: Optional[trip_schema.Trip_end] = Body(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Complete an active trip. `end_date` defaults to today.

    Raises:
        404: Trip not found
        409: Trip already completed
        422: end_date before start_date
    """
    end_date = payload.end_date if payload else None

    try:
        return trip_service.end_trip(db, user_id, trip_id, end_date)
    except StateMilesError as e:
        raise_http(e)


@router.delete("/{trip_id}")
def delete_trip(
    trip_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Delete a trip (active or completed) and all of its crossings.

    Warning:
        Irreversible. The trip disappears from every mileage summary.

    Raises:
        404: Trip not found
    """
    try:
        trip_service.delete_trip(db, user_id, trip_id)
    except StateMilesError as e:
        raise_http(e)

    return {"trip_id": trip_id, "status": "deleted"}
