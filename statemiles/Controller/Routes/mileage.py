# statemiles/Controller/Routes/mileage.py

"""
State Mileage REST API

Per-state mileage derived from trip crossings. Nothing here writes to the
database; results are served from the mileage cache and recomputed after
a trip change.

Endpoints:
- GET /mileage/trips/{trip_id}          Per-state mileage of one trip
- GET /mileage/trips/{trip_id}/csv      Same, as a CSV download
- GET /mileage/trips/{trip_id}/report   IFTA report of one trip
- GET /mileage/summary                  All completed trips, merged
- GET /mileage/quarters/{quarter}       Completed trips of an IFTA quarter

Usage:
    # In main.py
    from statemiles.Controller.Routes import mileage
    app.include_router(mileage.router, prefix="/mileage", tags=["mileage"])
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from statemiles.Controller.deps import get_DB, get_current_user_id, raise_http
from statemiles.Core.exceptions import StateMilesError
from statemiles.Schemas import mileage as mileage_schema
from statemiles.Services.mileage_aggregator import total_miles
from statemiles.Services.trip_service import trip_service

router = APIRouter()


# ==========================================================
# 📌 Single Trip
# ==========================================================

@router.get("/trips/{trip_id}", response_model=mileage_schema.TripMileage_response)
def get_trip_mileage(
    trip_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Miles driven in each jurisdiction during one trip.

    Each interval between two consecutive crossings is attributed to the
    state of the earlier crossing. Entries are sorted by miles, highest
    first. A trip with only its starting crossing has no entries.

    Returns:
        {
            "trip_id": "9f1e...",
            "status": "active",
            "state_mileage": [
                {"state": "TX", "state_name": "Texas", "miles": 452},
                {"state": "OK", "state_name": "Oklahoma", "miles": 346}
            ],
            "total_miles": 798
        }

    Raises:
        404: Trip not found
    """
    try:
        trip = trip_service.get_trip_detail(db, user_id, trip_id)
        entries = trip_service.get_trip_mileage(db, user_id, trip_id)
    except StateMilesError as e:
        raise_http(e)

    return {
        "trip_id": trip.id,
        "status": trip.status,
        "state_mileage": entries,
        "total_miles": total_miles(entries)
    }


@router.get("/trips/{trip_id}/csv")
def export_trip_mileage(
    trip_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Download a trip's per-state mileage as CSV.

    Response:
        Content-Type: text/csv
        Content-Disposition: attachment; filename="state_mileage_Truck_01_2025-04-02.csv"

        State,State Name,Miles
        TX,Texas,452.0
        OK,Oklahoma,346.0
        TOTAL,,798.0

    Raises:
        404: Trip not found
    """
    try:
        filename, content = trip_service.export_trip_csv(db, user_id, trip_id)
    except StateMilesError as e:
        raise_http(e)

    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/trips/{trip_id}/report", response_model=mileage_schema.TripReport)
def get_trip_report(
    trip_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    IFTA report of one trip: metadata, per-state mileage, totals and the
    time of the first and last crossing.

    Raises:
        404: Trip not found
    """
    try:
        return trip_service.get_trip_report(db, user_id, trip_id)
    except StateMilesError as e:
        raise_http(e)


# ==========================================================
# 📌 Summaries (completed trips only)
# ==========================================================

@router.get("/summary", response_model=mileage_schema.MileageSummary_response)
def get_all_time_mileage(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Per-state mileage over every completed trip of the caller.

    Trips are aggregated independently and then merged, so the distance
    between the end of one trip and the start of the next is never counted.
    """
    try:
        return trip_service.get_all_time_mileage(db, user_id)
    except StateMilesError as e:
        raise_http(e)


@router.get("/quarters/{quarter}", response_model=mileage_schema.MileageSummary_response)
def get_quarter_mileage(
    quarter: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Per-state mileage over the completed trips lying entirely inside an
    IFTA quarter.

    Example Request:
        GET /mileage/quarters/2025-Q2

    Raises:
        422: Quarter not formatted as YYYY-QN
    """
    try:
        return trip_service.get_quarter_mileage(db, user_id, quarter)
    except StateMilesError as e:
        raise_http(e)
