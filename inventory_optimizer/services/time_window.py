"""
Time Window Resolver

Computes the calendar-aligned 12-month reporting windows used by every
overview: the trailing twelve months ending in the current UTC month, or a
specific calendar year. All boundaries are plain dates (no time-of-day) so
that timezone offsets can never move a sale into a neighbouring month.

Author: TM3
Date: 2025-11-04
"""
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from inventory_optimizer.core.exceptions import InputValidationError

WINDOW_MONTHS = 12
MIN_YEAR = 1900
MAX_YEAR = 9999


class ReportingMode(str, Enum):
    """Supported reporting window definitions"""
    TRAILING_12 = "trailing12"
    CALENDAR_YEAR = "calendar_year"


# Aliases accepted from query strings
_MODE_ALIASES = {
    "trailing12": ReportingMode.TRAILING_12,
    "last12": ReportingMode.TRAILING_12,
    "calendar_year": ReportingMode.CALENDAR_YEAR,
    "year": ReportingMode.CALENDAR_YEAR,
}


@dataclass(frozen=True)
class TimeWindow:
    """12 month-start keys (oldest first) plus the inclusive date range"""
    mode: ReportingMode
    month_keys: Tuple[date, ...]
    start_date: date
    end_date: date
    label: str

    def month_index(self, day: date) -> Optional[int]:
        """Offset 0..11 of the month containing ``day``, or None if outside"""
        if day < self.start_date or day > self.end_date:
            return None
        first = self.month_keys[0]
        return (day.year - first.year) * 12 + (day.month - first.month)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "label": self.label,
            "start": self.start_date.isoformat(),
            "end": self.end_date.isoformat(),
            "months": [m.isoformat() for m in self.month_keys],
        }


def utc_today() -> date:
    """Current date in UTC"""
    return datetime.now(timezone.utc).date()


def month_key_of(day: date) -> date:
    """First day of the month containing ``day``"""
    return day.replace(day=1)


def _month_keys_ending_at(anchor: date, count: int = WINDOW_MONTHS) -> List[date]:
    return [anchor - relativedelta(months=offset) for offset in range(count - 1, -1, -1)]


def validate_anchor(day: date) -> date:
    """
    Reject anchors whose trailing window cannot be represented.

    The year must lie in MIN_YEAR..MAX_YEAR, and December of MAX_YEAR has
    no following month to close its range.
    """
    if not MIN_YEAR <= day.year <= MAX_YEAR:
        raise InputValidationError("as_of", f"year must be between {MIN_YEAR} and {MAX_YEAR}, got {day.year}")
    if day.year == MAX_YEAR and day.month == 12:
        raise InputValidationError("as_of", f"must be before {MAX_YEAR}-12-01, got {day.isoformat()}")
    return day


def trailing_window(as_of: Optional[date] = None) -> TimeWindow:
    """Trailing twelve months ending with the month of ``as_of`` (default: today UTC)"""
    anchor = month_key_of(validate_anchor(as_of or utc_today()))
    keys = _month_keys_ending_at(anchor)
    end = anchor + relativedelta(months=1) - relativedelta(days=1)
    return TimeWindow(
        mode=ReportingMode.TRAILING_12,
        month_keys=tuple(keys),
        start_date=keys[0],
        end_date=end,
        label="last12",
    )


def calendar_year_window(year: int) -> TimeWindow:
    """January to December of ``year``"""
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InputValidationError("year", f"must be between {MIN_YEAR} and {MAX_YEAR}, got {year}")

    keys = [date(year, month, 1) for month in range(1, WINDOW_MONTHS + 1)]
    return TimeWindow(
        mode=ReportingMode.CALENDAR_YEAR,
        month_keys=tuple(keys),
        start_date=keys[0],
        end_date=date(year, 12, 31),
        label=str(year),
    )


def resolve_window(
    mode: ReportingMode,
    year: Optional[int] = None,
    as_of: Optional[date] = None
) -> TimeWindow:
    """
    Resolve a reporting window.

    Args:
        mode: TRAILING_12 or CALENDAR_YEAR
        year: Required for CALENDAR_YEAR, ignored otherwise
        as_of: Anchor date for TRAILING_12 (defaults to today in UTC)

    Raises:
        InputValidationError: calendar year mode without a valid year
    """
    if mode == ReportingMode.CALENDAR_YEAR:
        if year is None:
            raise InputValidationError("year", "required for calendar_year mode")
        return calendar_year_window(year)
    return trailing_window(as_of)


def parse_mode(raw_mode: Optional[str], raw_year=None) -> Tuple[ReportingMode, Optional[int]]:
    """
    Validate mode/year request parameters.

    Returns:
        (mode, year) with year set only for calendar-year mode
    """
    key = (raw_mode or ReportingMode.TRAILING_12.value).strip().lower()
    mode = _MODE_ALIASES.get(key)
    if mode is None:
        raise InputValidationError("mode", f"expected one of {sorted(_MODE_ALIASES)}, got {raw_mode!r}")

    if mode == ReportingMode.TRAILING_12:
        return mode, None

    if raw_year is None or (isinstance(raw_year, str) and not raw_year.strip()):
        raise InputValidationError("year", "required for calendar_year mode")
    if isinstance(raw_year, bool):
        raise InputValidationError("year", f"not an integer: {raw_year!r}")
    try:
        year = int(str(raw_year).strip())
    except ValueError:
        raise InputValidationError("year", f"not an integer: {raw_year!r}")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InputValidationError("year", f"must be between {MIN_YEAR} and {MAX_YEAR}, got {year}")
    return mode, year


def parse_as_of(raw: Optional[str]) -> Optional[date]:
    """Validate an optional ISO date request parameter"""
    if raw is None or not str(raw).strip():
        return None
    try:
        day = date.fromisoformat(str(raw).strip())
    except ValueError:
        raise InputValidationError("as_of", f"expected YYYY-MM-DD, got {raw!r}")
    return validate_anchor(day)
