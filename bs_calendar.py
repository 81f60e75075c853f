"""Bikram Sambat date helpers.

Dates are kept as ``YYYY-MM-DD`` strings in the BS calendar. This is not a
real calendar implementation: BS month lengths vary year to year, so ranges
are enumerated by day number with a hard ceiling of 32 days per month.
"""
import re
from typing import List, Tuple

import config

MAX_DAYS_PER_MONTH = 32

BS_MONTHS = [
    'बैशाख', 'जेठ', 'असार', 'साउन', 'भदौ', 'असोज',
    'कार्तिक', 'मंसिर', 'पुष', 'माघ', 'फागुन', 'चैत'
]

BS_MONTHS_EN = [
    'Baishakh', 'Jestha', 'Asar', 'Shrawan', 'Bhadra', 'Ashwin',
    'Kartik', 'Mangsir', 'Poush', 'Magh', 'Falgun', 'Chaitra'
]

_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


def parse_date(date_str: str) -> Tuple[int, int, int]:
    """Split a BS date string into (year, month, day)."""
    match = _DATE_RE.match(date_str.strip())
    if not match:
        raise ValueError(f"Invalid BS date: {date_str!r}")
    return tuple(int(part) for part in match.groups())


def format_date(year: int, month: int, day: int) -> str:
    return f"{year}-{month:02d}-{day:02d}"


def normalise(date_str: str) -> str:
    """Zero-pad month and day, e.g. '2081-1-5' -> '2081-01-05'."""
    return format_date(*parse_date(date_str))


def is_valid_date_string(date_str: str) -> bool:
    try:
        _, month, day = parse_date(date_str)
    except (ValueError, AttributeError):
        return False
    return 1 <= month <= 12 and 1 <= day <= MAX_DAYS_PER_MONTH


def month_name(month: int, nepali: bool = False) -> str:
    """Name of BS month 1-12, in Devanagari when ``nepali`` is set."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be 1-12, got {month}")
    return BS_MONTHS[month - 1] if nepali else BS_MONTHS_EN[month - 1]


def format_display(date_str: str) -> str:
    year, month, day = parse_date(date_str)
    return f"{year} {month_name(month)} {day}"


def format_nepali(date_str: str) -> str:
    year, month, day = parse_date(date_str)
    return f"{year} {month_name(month, nepali=True)} {day}"


def _next_month(year: int, month: int) -> Tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


class BSCalendar:
    """Calendar provider used by the report and entry screens."""

    def __init__(self, today: str = None):
        self._today = normalise(today or config.TODAY)

    def today(self) -> str:
        return self._today

    def range_inclusive(self, start_date: str, end_date: str) -> List[str]:
        """Every date from ``start_date`` to ``end_date``, both included.

        Within one month the days run start..end. Across months the first
        month runs to day 32, months in between run 1..32 and the last
        month runs 1..end. An empty list is returned when start > end.
        """
        start_year, start_month, start_day = parse_date(start_date)
        end_year, end_month, end_day = parse_date(end_date)

        if (start_year, start_month, start_day) > (end_year, end_month, end_day):
            return []

        dates = []
        year, month = start_year, start_month
        first_day = start_day
        while (year, month) <= (end_year, end_month):
            if (year, month) == (end_year, end_month):
                last_day = end_day
            else:
                last_day = MAX_DAYS_PER_MONTH
            for day in range(first_day, last_day + 1):
                dates.append(format_date(year, month, day))
            year, month = _next_month(year, month)
            first_day = 1
        return dates

    def month_name(self, month: int, nepali: bool = False) -> str:
        return month_name(month, nepali)
