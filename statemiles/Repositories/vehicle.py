# statemiles/Repositories/vehicle.py

"""
Vehicle Repository Module

Database access functions for the Vehicle model. Every query is scoped
to the owning user.

Usage:
    from statemiles.Repositories import vehicle as vehicle_repo

    vehicles = vehicle_repo.get_vehicles_by_user(db, "user-1", only_active=True)
"""

from typing import List, Optional
from sqlalchemy.orm import Session

from statemiles.Models.vehicle import Vehicle
from statemiles.Schemas.vehicle import Vehicle_create


def get_vehicles_by_user(db: Session, user_id: str, only_active: bool = False) -> List[Vehicle]:
    """
    Get a user's vehicles ordered by name.
    """
    query = db.query(Vehicle).filter(Vehicle.user_id == user_id)

    if only_active:
        query = query.filter(Vehicle.is_active.is_(True))

    return query.order_by(Vehicle.name).all()


def get_vehicle_for_user(db: Session, vehicle_id: str, user_id: str) -> Optional[Vehicle]:
    """
    Get a vehicle by id, or None if missing or owned by someone else.
    """
    return (
        db.query(Vehicle)
        .filter(Vehicle.vehicle_id == vehicle_id, Vehicle.user_id == user_id)
        .first()
    )


def create_vehicle(db: Session, user_id: str, vehicle: Vehicle_create) -> Vehicle:
    new_vehicle = Vehicle(user_id=user_id, **vehicle.model_dump())
    db.add(new_vehicle)
    db.commit()
    db.refresh(new_vehicle)

    print(f"[REPO] Vehicle created: {new_vehicle.vehicle_id} ({new_vehicle.name}) for user {user_id}")

    return new_vehicle
