"""
Formatting helpers for template binding.

Pure functions that turn raw CV fields into display strings. Every helper is
total: malformed input degrades to an empty or default value instead of
raising, because user input is free-form at the edges. The template registry
exposes these to Jinja2 as globals and filters.
"""

from collections.abc import Mapping, Sized
from typing import Any, List, Optional, Tuple

from safira.contexts.intake.cv_data_structure import MonthYear

# Fixed English abbreviations so output does not depend on the process locale
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

DATE_RANGE_SEPARATOR = " – "
PRESENT_LABEL = "Present"

# Ordinal used for dot indicators; skills and language proficiencies share one scale
VISUAL_LEVELS = {
    "expert": 5,
    "native": 5,
    "fluent": 5,
    "advanced": 4,
    "intermediate": 3,
    "beginner": 2,
    "basic": 2,
}
DEFAULT_VISUAL_LEVEL = 3
MAX_VISUAL_LEVEL = 5

FILLED_GLYPH = "●"
EMPTY_GLYPH = "○"


def format_month_year(date: Any) -> str:
    """
    Format a date as short month and year.

    Args:
        date: MonthYear, a {"month", "year"} mapping, a legacy scalar, or None

    Returns:
        "Mar 2021" for structured dates, "2021" when the month is missing or
        invalid, the scalar unchanged for legacy data, "" for None

    Examples:
        >>> format_month_year(MonthYear(month=3, year=2021))
        'Mar 2021'
        >>> format_month_year("Spring 2019")
        'Spring 2019'
    """
    if date is None:
        return ""

    if isinstance(date, MonthYear):
        month, year = date.month, date.year
    elif isinstance(date, Mapping):
        month, year = date.get("month"), date.get("year")
    else:
        return str(date)

    try:
        year = int(year)
    except (TypeError, ValueError, OverflowError):
        return ""
    try:
        month = int(month)
    except (TypeError, ValueError, OverflowError):
        month = 0

    if 1 <= month <= 12:
        return f"{MONTH_ABBREVIATIONS[month - 1]} {year}"
    return str(year)


def format_date_range(start: Any, end: Any, is_current: Any) -> str:
    """
    Build "<start> – <end>" for an entry.

    When is_current is truthy the end date is never consulted, even if a
    stale value is still present. A missing end date also reads "Present".

    Args:
        start: Start date (any value accepted by format_month_year)
        end: End date (ignored when is_current)
        is_current: Whether the entry is ongoing

    Returns:
        Date range string; just the end part when there is no start date
    """
    if is_current:
        end_text = PRESENT_LABEL
    else:
        end_text = format_month_year(end) or PRESENT_LABEL

    start_text = format_month_year(start)
    if not start_text:
        return end_text
    return f"{start_text}{DATE_RANGE_SEPARATOR}{end_text}"


def proficiency_to_visual_level(level: Any) -> int:
    """
    Map a skill level or language proficiency to a 1-5 ordinal.

    Unknown or missing values fall back to the mid-tier default (3).
    """
    if not isinstance(level, str):
        return DEFAULT_VISUAL_LEVEL
    return VISUAL_LEVELS.get(level.strip().lower(), DEFAULT_VISUAL_LEVEL)


def visual_indicator(level: Any) -> str:
    """Render a level as filled and empty dots, e.g. "●●●●○" for advanced."""
    filled = proficiency_to_visual_level(level)
    return FILLED_GLYPH * filled + EMPTY_GLYPH * (MAX_VISUAL_LEVEL - filled)


def proficiency_to_percent(level: Any) -> int:
    """Bar width for sidebar skill meters (20% per visual level)."""
    return proficiency_to_visual_level(level) * 100 // MAX_VISUAL_LEVEL


def has_items(collection: Any) -> bool:
    """True iff collection is not None and has length > 0."""
    if collection is None or not isinstance(collection, Sized):
        return False
    return len(collection) > 0


def truncate_list(items: Optional[List[Any]], n: int) -> Tuple[List[Any], int]:
    """
    Split a list into the first n items and a count of the rest.

    Args:
        items: Sequence to truncate (None is treated as empty)
        n: Number of visible items (negative values are treated as 0)

    Returns:
        (visible items, overflow count) for "first N, +K more" displays
    """
    if not has_items(items):
        return [], 0
    try:
        n = max(int(n), 0)
    except (TypeError, ValueError):
        n = 0
    items = list(items)
    return items[:n], max(len(items) - n, 0)


def join_nonempty(parts: Any, separator: str = " • ") -> str:
    """Join the non-blank string parts, used for one-line contact and detail rows."""
    if not parts:
        return ""
    return separator.join(str(p).strip() for p in parts if p is not None and str(p).strip())
