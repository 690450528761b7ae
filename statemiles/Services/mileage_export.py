# statemiles/Services/mileage_export.py
"""
CSV export of per-state mileage.

Layout (one row per state, then a total row):

    State,State Name,Miles
    TX,Texas,452.0
    OK,Oklahoma,346.0
    TOTAL,,798.0
"""

import csv
import io
import re
from datetime import date
from typing import Iterable, Optional

from statemiles.Core.config import settings
from statemiles.Schemas.mileage import StateMileageEntry
from statemiles.Services.mileage_aggregator import total_miles

CSV_HEADER = ["State", "State Name", "Miles"]


def _format_miles(miles: float, decimals: int) -> str:
    return f"{miles:.{decimals}f}"


def export_state_mileage_csv(
    entries: Iterable[StateMileageEntry],
    decimals: Optional[int] = None,
) -> str:
    """
    Render aggregated entries as CSV text, keeping their order.
    """
    if decimals is None:
        decimals = settings.EXPORT_DECIMALS
    entries = list(entries)

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry in entries:
        writer.writerow([entry.state, entry.state_name, _format_miles(entry.miles, decimals)])
    writer.writerow(["TOTAL", "", _format_miles(total_miles(entries), decimals)])

    # no trailing newline after the TOTAL row
    return buffer.getvalue().rstrip("\n")


def export_filename(vehicle_name: str, start_date: date) -> str:
    """
    Download file name for a trip export.

    Example:
        >>> export_filename("Big Red  Truck", date(2025, 3, 14))
        'state_mileage_Big_Red_Truck_2025-03-14.csv'
    """
    safe_name = re.sub(r"\s+", "_", (vehicle_name or "Vehicle").strip())
    return f"state_mileage_{safe_name}_{start_date.isoformat()}.csv"
