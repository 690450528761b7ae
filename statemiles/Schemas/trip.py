# statemiles/Schemas/trip.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import List, Optional

from statemiles.Schemas.crossing import Crossing_get


# ============================================
# START SCHEMA
# ============================================
class Trip_start(BaseModel):
    """
    Payload for starting a new trip.

    The start state and odometer become the trip's seed crossing.
    """
    vehicle_id: str = Field(
        ...,
        min_length=1,
        max_length=36,
        description="Vehicle driven during the trip"
    )

    start_state: str = Field(
        ...,
        pattern='^[A-Za-z]{2}$',
        description="Jurisdiction code where the trip starts"
    )

    start_odometer: int = Field(
        ...,
        ge=0,
        description="Odometer reading at the start of the trip"
    )

    start_date: date = Field(
        ...,
        description="Calendar date the trip starts"
    )

    timestamp: Optional[datetime] = Field(
        None,
        description="Time of the seed crossing (defaults to now, cannot be in the future)"
    )


# ============================================
# END SCHEMA
# ============================================
class Trip_end(BaseModel):
    """
    Optional payload for ending a trip. Defaults to today.
    """
    end_date: Optional[date] = Field(
        None,
        description="Calendar date the trip ended"
    )


# ============================================
# GET SCHEMA
# ============================================
class Trip_get(BaseModel):
    """
    Trip metadata as stored.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    vehicle_id: str
    status: str = Field(..., pattern='^(active|completed)$')
    start_date: date
    end_date: Optional[date] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class Trip_detail(Trip_get):
    """
    Trip metadata plus its crossings ordered by timestamp.
    """
    crossings: List[Crossing_get] = Field(default_factory=list)


class Trip_list_response(BaseModel):
    trips: List[Trip_get]
    total: int
