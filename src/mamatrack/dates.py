# src/mamatrack/dates.py
import re
from datetime import date, datetime
from typing import Union

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from .errors import InvalidDateError

DateLike = Union[date, datetime, str]

# year, month and day must all be present; isoparse alone accepts "2024" or "2024-02"
_FULL_DATE = re.compile(r"\d{4}-\d{2}-\d{2}(?!\d)")


def parse_date(value: DateLike) -> date:
    """
    Read a calendar date from a date, datetime or ISO-8601 string.
    Timestamps like '2024-01-01T00:00:00.000Z' are cut down to their date part.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(value, "expected date or ISO string")
    text = value.strip()
    if not text:
        raise InvalidDateError(value, "empty")
    if not _FULL_DATE.match(text):
        raise InvalidDateError(value, "expected YYYY-MM-DD")
    try:
        return isoparse(text).date()
    except (ValueError, OverflowError) as e:
        raise InvalidDateError(value, str(e)) from e


def parse_optional_date(value) -> Union[date, None]:
    if value is None or value == "":
        return None
    return parse_date(value)


def format_child_age(date_of_birth: DateLike, today: DateLike) -> str:
    """'7 months', '2 years' or '2 years, 3 months' (complete months only)."""
    dob = parse_date(date_of_birth)
    now = parse_date(today)
    delta = relativedelta(now, dob)
    months = max(delta.years * 12 + delta.months, 0)
    if months < 12:
        return f"{months} months"
    years, rest = divmod(months, 12)
    return f"{years} years, {rest} months" if rest else f"{years} years"


def age_in_weeks(date_of_birth: DateLike, today: DateLike) -> int:
    return (parse_date(today) - parse_date(date_of_birth)).days // 7
