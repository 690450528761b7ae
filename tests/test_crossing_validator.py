from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from statemiles.Core.exceptions import TripValidationError
from statemiles.Services.crossing_validator import (
    validate_jurisdiction,
    validate_next_odometer,
    validate_next_timestamp,
    validate_odometer_value,
    validate_timestamp_not_future,
)


def _crossing(odometer: int, hour: int = 8) -> SimpleNamespace:
    return SimpleNamespace(odometer=odometer, timestamp=datetime(2025, 4, 2, hour, tzinfo=timezone.utc))


def test_first_crossing_has_no_predecessor() -> None:
    validate_next_odometer([], 0)


def test_increasing_odometer_is_accepted() -> None:
    validate_next_odometer([_crossing(0), _crossing(452)], 453)


@pytest.mark.parametrize("odometer", [452, 451, 0])
def test_odometer_not_above_last_reading_is_rejected(odometer: int) -> None:
    with pytest.raises(TripValidationError) as exc_info:
        validate_next_odometer([_crossing(0), _crossing(452)], odometer)

    assert str(exc_info.value) == "Odometer reading must be greater than the last reading (452)."
    assert exc_info.value.field == "odometer"
    assert exc_info.value.value == 452


def test_negative_or_non_integer_odometer_is_rejected() -> None:
    with pytest.raises(TripValidationError, match="negative"):
        validate_odometer_value(-1)
    with pytest.raises(TripValidationError, match="whole number"):
        validate_odometer_value(12.5)
    with pytest.raises(TripValidationError):
        validate_odometer_value(True)


def test_jurisdiction_code_is_normalized() -> None:
    assert validate_jurisdiction(" tx ") == "TX"
    assert validate_jurisdiction("on") == "ON"


@pytest.mark.parametrize("code", ["ZZ", "", None, "Texas"])
def test_unknown_jurisdiction_is_rejected(code: object) -> None:
    with pytest.raises(TripValidationError) as exc_info:
        validate_jurisdiction(code)

    assert exc_info.value.field == "state"


def test_crossing_not_after_last_is_rejected() -> None:
    previous = [_crossing(0, hour=8), _crossing(100, hour=10)]

    validate_next_timestamp(previous, datetime(2025, 4, 2, 10, 1, tzinfo=timezone.utc))
    with pytest.raises(TripValidationError, match="must be later"):
        validate_next_timestamp(previous, datetime(2025, 4, 2, 9, tzinfo=timezone.utc))


def test_crossing_at_same_time_as_last_is_rejected() -> None:
    previous = [_crossing(0, hour=8), _crossing(100, hour=10)]

    with pytest.raises(TripValidationError) as exc_info:
        validate_next_timestamp(previous, datetime(2025, 4, 2, 10, tzinfo=timezone.utc))

    assert exc_info.value.field == "timestamp"


def test_future_crossing_time_is_rejected() -> None:
    now = datetime(2025, 4, 2, 12, tzinfo=timezone.utc)

    validate_timestamp_not_future(now, now=now)
    with pytest.raises(TripValidationError, match="future"):
        validate_timestamp_not_future(now + timedelta(seconds=1), now=now)
