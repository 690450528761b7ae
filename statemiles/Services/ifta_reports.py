# statemiles/Services/ifta_reports.py
"""
IFTA Reports
============
Report shapes built on top of the mileage aggregator.

IFTA returns are filed per calendar quarter, so summaries can be limited
to the completed trips that fall entirely inside one quarter
(start_date >= first day, end_date <= last day).

Functions:
- parse_quarter(): "2025-Q2" -> (2025-04-01, 2025-06-30)
- quarter_for(): Quarter label of a date
- generate_trip_report(): Per-trip report with totals and time bounds
- summarize_trips(): Cross-trip summary (all-time or one quarter)
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Mapping, Optional, Tuple

from statemiles.Core.exceptions import TripValidationError
from statemiles.Schemas.mileage import MileageSummary_response, TripReport
from statemiles.Schemas.trip import Trip_get
from statemiles.Services.mileage_aggregator import (
    as_utc,
    calculate_state_mileage,
    calculate_total_mileage,
    total_miles,
)

_QUARTER_PATTERN = re.compile(r"^(\d{4})-Q([1-4])$")


def parse_quarter(quarter: str) -> Tuple[date, date]:
    """
    First and last calendar day of an IFTA quarter.

    Raises:
        TripValidationError: quarter is not formatted as YYYY-QN.
    """
    match = _QUARTER_PATTERN.match((quarter or "").strip().upper())
    if not match:
        raise TripValidationError(
            f"Quarter must look like 2025-Q1, got {quarter!r}.", field="quarter", value=quarter
        )

    year, number = int(match.group(1)), int(match.group(2))
    start_month = (number - 1) * 3 + 1
    start = date(year, start_month, 1)
    if number == 4:
        next_start = date(year + 1, 1, 1)
    else:
        next_start = date(year, start_month + 3, 1)
    return start, next_start - timedelta(days=1)


def quarter_for(day: date) -> str:
    return f"{day.year}-Q{(day.month - 1) // 3 + 1}"


def generate_trip_report(
    trip: Any,
    crossings: Iterable[Any],
    generated_at: Optional[datetime] = None,
) -> TripReport:
    """
    Build the IFTA report of one trip.

    Args:
        trip: MileageTrip row (or anything Trip_get can validate)
        crossings: The trip's crossings ordered by timestamp
        generated_at: Report time (defaults to now, UTC)

    Returns:
        TripReport: trip metadata, per-state mileage, total miles and the
            timestamps of the first and last crossing.
    """
    crossings = list(crossings)
    state_mileage = calculate_state_mileage(crossings)

    return TripReport(
        trip=Trip_get.model_validate(trip),
        state_mileage=state_mileage,
        total_miles=total_miles(state_mileage),
        trip_start=as_utc(crossings[0].timestamp) if crossings else None,
        trip_end=as_utc(crossings[-1].timestamp) if crossings else None,
        generated_at=generated_at or datetime.now(timezone.utc),
    )


def summarize_trips(
    crossings_by_trip: Mapping[str, Iterable[Any]],
    quarter: Optional[str] = None,
) -> MileageSummary_response:
    """
    Cross-trip summary. The caller selects the trips (all completed trips,
    or those inside `quarter`); this only aggregates and labels them.
    """
    state_mileage = calculate_total_mileage(crossings_by_trip)
    period_start, period_end = parse_quarter(quarter) if quarter else (None, None)

    return MileageSummary_response(
        trip_count=len(crossings_by_trip),
        state_mileage=state_mileage,
        total_miles=total_miles(state_mileage),
        quarter=quarter,
        period_start=period_start,
        period_end=period_end,
    )
