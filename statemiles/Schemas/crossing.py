# statemiles/Schemas/crossing.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional


class Crossing_create(BaseModel):
    """
    Payload for logging a state crossing on an active trip.

    `timestamp` defaults to the time the request is processed. A supplied
    time backfills a crossing: it must be later than the trip's last
    crossing and not in the future.
    """
    state: str = Field(..., pattern='^[A-Za-z]{2}$', description="Jurisdiction code entered")
    state_name: Optional[str] = Field(None, max_length=100, description="Display name (resolved from the code when omitted)")
    odometer: int = Field(..., ge=0, description="Odometer reading at the crossing")
    crossing_date: date = Field(..., description="Calendar date of the crossing")
    timestamp: Optional[datetime] = Field(None, description="Event time (defaults to now, cannot be in the future)")


class Crossing_get(BaseModel):
    """
    Stored crossing.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    trip_id: str
    state: str
    state_name: str
    odometer: int
    crossing_date: date
    timestamp: datetime
