"""Utility functions for time-sheet calculations."""

from __future__ import annotations

import re
from calendar import monthrange
from datetime import date

GRID_DAYS = 31
SLOTS_PER_DAY = 3
GRID_COLUMNS = SLOTS_PER_DAY * 2

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time(value: str | None) -> tuple[int, int] | None:
    """Parse 'H:MM' or 'HH:MM' into (hours, minutes), or None if invalid."""
    if not value or not value.strip():
        return None
    match = _TIME_RE.match(value.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if 0 <= hours <= 23 and 0 <= minutes <= 59:
        return hours, minutes
    return None


def calculate_minutes(von: str | None, bis: str | None) -> int:
    """Minutes between two times; a 'bis' before 'von' ends on the next day."""
    start = parse_time(von)
    end = parse_time(bis)
    if not start or not end:
        return 0

    start_min = start[0] * 60 + start[1]
    end_min = end[0] * 60 + end[1]

    if end_min >= start_min:
        return end_min - start_min
    # Overnight
    return (24 * 60 - start_min) + end_min


def cell_position(col: int) -> tuple[int, str] | None:
    """Map a grid column to (slot_index, field).

    Columns: 0=von1, 1=bis1, 2=von2, 3=bis2, 4=von3, 5=bis3.
    """
    if col < 0 or col >= GRID_COLUMNS:
        return None
    return col // 2, "von" if col % 2 == 0 else "bis"


def format_hours_minutes(total_minutes: int) -> str:
    """Format minutes as H:MM."""
    return f"{total_minutes // 60}:{total_minutes % 60:02d}"


def export_filename(jahr: str, monat: str) -> str:
    return f"Stundenrapport_{jahr}_{monat}.pdf"


MONTHS = [
    ("1", "Januar"),
    ("2", "Februar"),
    ("3", "März"),
    ("4", "April"),
    ("5", "Mai"),
    ("6", "Juni"),
    ("7", "Juli"),
    ("8", "August"),
    ("9", "September"),
    ("10", "Oktober"),
    ("11", "November"),
    ("12", "Dezember"),
]


def month_label(monat: str) -> str:
    """German month name for a month number string, or '' if unknown."""
    return next((label for value, label in MONTHS if value == str(monat).strip()), "")


def get_public_holidays(year: int, month: int, country: str = "CH") -> dict[int, str]:
    """Get public holidays in a month as {day_of_month: name}."""
    import holidays

    if not 1 <= month <= 12:
        return {}
    try:
        country_holidays = holidays.country_holidays(country, years=year)
    except NotImplementedError:
        return {}
    last_day = monthrange(year, month)[1]
    return {
        d.day: name
        for d, name in country_holidays.items()
        if date(year, month, 1) <= d <= date(year, month, last_day)
    }
