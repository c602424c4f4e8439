from datetime import date, datetime

import pytest

from mamatrack.dates import age_in_weeks, format_child_age, parse_date, parse_optional_date
from mamatrack.errors import InvalidDateError


def test_parse_date_variants():
    assert parse_date(date(2024, 1, 1)) == date(2024, 1, 1)
    assert parse_date(datetime(2024, 1, 1, 23, 59)) == date(2024, 1, 1)
    assert parse_date('2024-01-01') == date(2024, 1, 1)
    assert parse_date(' 2024-01-01T08:00:00.000Z ') == date(2024, 1, 1)


@pytest.mark.parametrize("bad", ['', '   ', '2024-13-01', 'yesterday', None, 20240101,
                                 '2024', '2024-02', '2024-W05', '2024-1-5'])
def test_parse_date_rejects(bad):
    with pytest.raises(InvalidDateError):
        parse_date(bad)


def test_invalid_date_is_value_error():
    with pytest.raises(ValueError):
        parse_date('2024-02-30')


def test_optional_date():
    assert parse_optional_date(None) is None
    assert parse_optional_date('') is None
    assert parse_optional_date('2024-05-05') == date(2024, 5, 5)


@pytest.mark.parametrize("today,expected", [
    (date(2024, 1, 1), "0 months"),
    (date(2024, 7, 31), "6 months"),
    (date(2024, 12, 31), "11 months"),
    (date(2025, 1, 1), "1 years"),
    (date(2026, 4, 15), "2 years, 3 months"),
])
def test_format_child_age(today, expected):
    assert format_child_age(date(2024, 1, 1), today) == expected


def test_age_in_weeks():
    assert age_in_weeks('2024-01-01', '2024-02-12') == 6
    assert age_in_weeks('2024-01-01', '2024-02-11') == 5
