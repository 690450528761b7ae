# statemiles/Schemas/vehicle.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional


class Vehicle_create(BaseModel):
    """
    Schema for registering a vehicle. The owner comes from the request's user.
    """
    name: str = Field(..., min_length=1, max_length=200, description="Descriptive name (e.g., 'Truck 01')")
    license_plate: Optional[str] = Field(None, max_length=20, description="License plate number")
    is_active: bool = Field(True, description="Vehicle active status")


class Vehicle_get(BaseModel):
    """
    Schema for vehicle response data including system timestamps.
    """
    model_config = ConfigDict(from_attributes=True)

    vehicle_id: str
    user_id: str
    name: str
    license_plate: Optional[str] = None
    is_active: bool
    created_at: datetime


class Vehicle_list_response(BaseModel):
    vehicles: List[Vehicle_get]
    total: int
    active: int
