"""Date parsing and formatting utilities for resume documents.

Documents store month-picker dates. Values arrive as ``date`` objects from
the editor, as ISO-8601 strings from autosave and exported files (including
the ``2020-01-01T00:00:00.000Z`` shape browsers produce), or occasionally as
human-written dates in hand-edited files.
"""

import re
from datetime import date, datetime

from dateutil import parser

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

MONTH_NAMES = ["January", "February", "March", "April", "May", "June",
               "July", "August", "September", "October", "November", "December"]

DATE_RANGE_SEPARATOR = " – "

# Parsed values fill missing components from this default, so "Jan 2020"
# lands on the first of the month instead of today's day number.
_DEFAULT_COMPONENTS = datetime(2000, 1, 1)

_MM_YYYY = re.compile(r"^(\d{1,2})/(\d{4})$")


def parse_document_date(value: date | datetime | str | None) -> date | None:
    """Coerce a date-like value to the canonical ``date`` type.

    Args:
        value: ``date``, ``datetime``, date string, or None

    Returns:
        date object, or None for null and blank values

    Raises:
        ValueError: If a string cannot be parsed as a date

    Examples:
        >>> parse_document_date("2020-05-01")
        date(2020, 5, 1)
        >>> parse_document_date("2020-05-01T00:00:00.000Z")
        date(2020, 5, 1)
        >>> parse_document_date("May 2020")
        date(2020, 5, 1)
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Cannot parse date from {type(value).__name__}")

    text = value.strip()
    if not text:
        return None

    # Strategy 1: strict ISO-8601 (what we write ourselves)
    try:
        return parser.isoparse(text).date()
    except (ValueError, OverflowError):
        pass

    # Strategy 2: "MM/YYYY"
    match = _MM_YYYY.match(text)
    if match:
        month, year = map(int, match.groups())
        try:
            return date(year, month, 1)
        except ValueError:
            raise ValueError(f"Cannot parse date: '{value}'")

    # Strategy 3: textual dates ("Jan 2020", "March 3, 2021"), never fuzzy
    try:
        return parser.parse(text, default=_DEFAULT_COMPONENTS).date()
    except (ValueError, OverflowError, parser.ParserError):
        raise ValueError(f"Cannot parse date: '{value}'")


def format_month_year(value: date) -> str:
    """Format a date as ``"Jan 2020"``."""
    return f"{MONTHS[value.month - 1]} {value.year}"


def format_long_date(value: date) -> str:
    """Format a date as ``"January 5, 2020"``."""
    return f"{MONTH_NAMES[value.month - 1]} {value.day}, {value.year}"


def format_date_range(start_date: date | None, end_date: date | None) -> str:
    """Format date range for resume display.

    Args:
        start_date: Start date (None renders as "N/A")
        end_date: End date (None renders as "Present")

    Returns:
        Formatted date range string

    Examples:
        >>> format_date_range(date(2022, 6, 1), date(2023, 12, 1))
        "Jun 2022 – Dec 2023"
        >>> format_date_range(date(2024, 1, 1), None)
        "Jan 2024 – Present"
        >>> format_date_range(None, None)
        "N/A – Present"
    """
    start_str = format_month_year(start_date) if start_date else "N/A"
    end_str = format_month_year(end_date) if end_date else "Present"
    return f"{start_str}{DATE_RANGE_SEPARATOR}{end_str}"
