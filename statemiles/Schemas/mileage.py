# statemiles/Schemas/mileage.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import List, Optional

from statemiles.Schemas.trip import Trip_get


# ============================================
# AGGREGATION OUTPUT
# ============================================
class StateMileageEntry(BaseModel):
    """
    Miles attributed to one jurisdiction.

    Derived from crossings, never persisted. `miles` is signed: a
    decreasing odometer in historical data yields a negative interval,
    which is kept as-is.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    state: str = Field(..., description="Jurisdiction code (e.g., 'TX')")
    state_name: str = Field(..., description="Jurisdiction display name")
    miles: int = Field(..., description="Total miles driven in this jurisdiction")


# ============================================
# API RESPONSES
# ============================================
class TripMileage_response(BaseModel):
    """
    Per-state mileage of one trip.
    """
    trip_id: str
    status: str
    state_mileage: List[StateMileageEntry]
    total_miles: int


class MileageSummary_response(BaseModel):
    """
    Per-state mileage merged over several completed trips.

    Used by:
    - All-time summary (every completed trip of the user)
    - Quarter summary (completed trips inside an IFTA quarter)
    """
    trip_count: int
    state_mileage: List[StateMileageEntry]
    total_miles: int
    quarter: Optional[str] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None


class TripReport(BaseModel):
    """
    IFTA report for a single trip.
    """
    trip: Trip_get
    state_mileage: List[StateMileageEntry]
    total_miles: int
    trip_start: Optional[datetime] = None
    trip_end: Optional[datetime] = None
    generated_at: datetime
