# statemiles/Controller/Routes/vehicles.py

"""
Vehicle Management REST API

Endpoints:
- GET    /vehicles/               List the caller's vehicles
- POST   /vehicles/               Register a vehicle
- GET    /vehicles/{vehicle_id}   Get vehicle details

Every endpoint is scoped to the user in the X-User-ID header. A vehicle
owned by another user is reported as not found.

Usage:
    # In main.py
    from statemiles.Controller.Routes import vehicles
    app.include_router(vehicles.router, prefix="/vehicles", tags=["vehicles"])
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from statemiles.Controller.deps import get_DB, get_current_user_id
from statemiles.Repositories import vehicle as vehicle_repo
from statemiles.Schemas import vehicle as vehicle_schema

router = APIRouter()


# ==========================================================
# 📌 List Vehicles
# ==========================================================

@router.get("/", response_model=vehicle_schema.Vehicle_list_response)
def list_vehicles(
    only_active: bool = Query(False, description="Filter only active vehicles"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Get the caller's vehicles ordered by name.

    Returns:
        {
            "vehicles": [
                {
                    "vehicle_id": "5b7c...",
                    "user_id": "user-1",
                    "name": "Truck 01",
                    "license_plate": "TX-4412",
                    "is_active": true,
                    "created_at": "2025-03-01T08:00:00Z"
                }
            ],
            "total": 1,
            "active": 1
        }

    Example Requests:
        GET /vehicles/                     # All vehicles
        GET /vehicles/?only_active=true    # Vehicles a trip can start on
    """
    vehicles = vehicle_repo.get_vehicles_by_user(db, user_id, only_active=only_active)

    return {
        "vehicles": [vehicle_schema.Vehicle_get.model_validate(v) for v in vehicles],
        "total": len(vehicles),
        "active": sum(1 for v in vehicles if v.is_active)
    }


# ==========================================================
# 📌 Register Vehicle
# ==========================================================

@router.post("/", response_model=vehicle_schema.Vehicle_get, status_code=201)
def register_vehicle(
    vehicle: vehicle_schema.Vehicle_create,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Register a vehicle for the caller.

    Example Request:
        POST /vehicles/
        X-User-ID: user-1

        {"name": "Truck 01", "license_plate": "TX-4412"}

    Raises:
        422: Validation error (invalid field values)
    """
    return vehicle_repo.create_vehicle(db, user_id, vehicle)


# ==========================================================
# 📌 Get Specific Vehicle
# ==========================================================

@router.get("/{vehicle_id}", response_model=vehicle_schema.Vehicle_get)
def get_vehicle(
    vehicle_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_DB)
):
    """
    Get one of the caller's vehicles.

    Raises:
        404: Vehicle not found
    """
    vehicle = vehicle_repo.get_vehicle_for_user(db, vehicle_id, user_id)

    if vehicle is None:
        raise HTTPException(
            status_code=404,
            detail=f"Vehicle '{vehicle_id}' not found"
        )

    return vehicle
