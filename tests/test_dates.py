"""
Unit tests for calendar-month arithmetic.
"""
import pytest
from datetime import datetime

from app.utils.dates import add_months


@pytest.mark.parametrize("start, months, expected", [
    (datetime(2024, 1, 15, 9, 30), 1, datetime(2024, 2, 15, 9, 30)),
    (datetime(2024, 1, 31), 1, datetime(2024, 2, 29)),
    (datetime(2023, 1, 31), 1, datetime(2023, 2, 28)),
    (datetime(2024, 3, 31), 1, datetime(2024, 4, 30)),
    (datetime(2024, 8, 31), 6, datetime(2025, 2, 28)),
    (datetime(2024, 2, 29), 12, datetime(2025, 2, 28)),
    (datetime(2024, 11, 30), 3, datetime(2025, 2, 28)),
    (datetime(2024, 5, 10), 0, datetime(2024, 5, 10)),
])
def test_add_months(start, months, expected):
    assert add_months(start, months) == expected


def test_add_months_preserves_time_of_day():
    result = add_months(datetime(2024, 1, 31, 23, 59, 58), 1)
    assert (result.hour, result.minute, result.second) == (23, 59, 58)


def test_add_months_crosses_multiple_years():
    assert add_months(datetime(2024, 12, 31), 25) == datetime(2027, 1, 31)
