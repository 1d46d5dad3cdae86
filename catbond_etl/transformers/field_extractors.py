"""
catbond_etl/transformers/field_extractors.py

Pattern-rule parsers that turn the free text scraped from Artemis tables into
typed values. Every function here is pure: malformed input maps to ``None``
(or the "Other"/"USD 0M" fallbacks) instead of raising.
"""

import math
import re
from datetime import date
from enum import Enum
from typing import Any, Optional

import numpy as np
import pandas as pd


class EventType(str, Enum):
    HURRICANE = "Hurricane"
    EARTHQUAKE = "Earthquake"
    WILDFIRE = "Wildfire"
    FLOOD = "Flood"
    STORM = "Storm"
    WINTER_STORM = "Winter Storm"
    OTHER = "Other"


# First match wins, so order matters
EVENT_TYPE_KEYWORDS = [
    (EventType.HURRICANE, ('hurricane', 'cyclone')),
    (EventType.EARTHQUAKE, ('earthquake',)),
    (EventType.WILDFIRE, ('wildfire', 'fire')),
    (EventType.FLOOD, ('flood',)),
    (EventType.STORM, ('storm', 'convective')),
    (EventType.WINTER_STORM, ('winter',)),
]

LOSS_KEYWORDS = ('principal', 'loss', 'reduced', 'zero', 'affected')

MONTHS = {
    'january': 1, 'february': 2, 'march': 3, 'april': 4, 'may': 5, 'june': 6,
    'july': 7, 'august': 8, 'september': 9, 'october': 10, 'november': 11, 'december': 12,
}
MONTHS.update({name[:3]: number for name, number in list(MONTHS.items())})
MONTHS['sept'] = 9

# unit -> (multiplier for "$Xm", multiplier for "$Xb")
MONEY_UNITS = {
    'millions': (1.0, 1000.0),
    'dollars': (1e6, 1e9),
}

_MILLIONS_PATTERN = re.compile(r'\$([0-9.]+)\s*m', re.IGNORECASE)
_BILLIONS_PATTERN = re.compile(r'\$([0-9.]+)\s*b', re.IGNORECASE)
_NON_NUMERIC = re.compile(r'[^0-9.]')
_MONTH_YEAR_PATTERN = re.compile(r'^\s*([A-Za-z]+)\.?,?\s+(\d{4})\s*$')
_YEAR_PATTERN = re.compile(r'(?<!\d)(20\d{2})(?!\d)')
_PERIOD_PATTERN = re.compile(r'(?<!\d)(20\d{2})\s*/\s*(20\d{2})(?!\d)')


def _as_text(value: Any) -> Optional[str]:
    """Return ``value`` as a string, or None for None/NaN/NA and non-scalars"""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return None
    return str(value)


def _to_float(text: str) -> Optional[float]:
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_money(text: Any, unit: str = 'millions') -> Optional[float]:
    """
    Parse an Artemis size string such as "$300m" or "$1.2b" into ``unit``

    Falls back to the bare number left after stripping everything except
    digits and dots, taken as already being in ``unit``.
    """
    million_factor, billion_factor = MONEY_UNITS[unit]
    text = _as_text(text)
    if text is None:
        return None

    match = _MILLIONS_PATTERN.search(text)
    if match:
        number = _to_float(match.group(1))
        return None if number is None else number * million_factor

    match = _BILLIONS_PATTERN.search(text)
    if match:
        number = _to_float(match.group(1))
        return None if number is None else number * billion_factor

    digits = _NON_NUMERIC.sub('', text)
    if not digits:
        return None
    return _to_float(digits)


def parse_money_millions(text: Any) -> Optional[float]:
    """Money string in USD millions, e.g. "$1.2b" -> 1200.0"""
    return parse_money(text, unit='millions')


def parse_money_usd(text: Any) -> Optional[float]:
    """Money string in US dollars, e.g. "$300m" -> 300000000.0"""
    return parse_money(text, unit='dollars')


def parse_month_year(text: Any) -> Optional[date]:
    """Parse "Oct 2025" / "October 2025" as the first day of that month"""
    text = _as_text(text)
    if text is None:
        return None

    match = _MONTH_YEAR_PATTERN.match(text)
    if not match:
        return None

    month = MONTHS.get(match.group(1).lower())
    if month is None:
        return None
    return date(int(match.group(2)), month, 1)


def extract_year(text: Any) -> Optional[int]:
    """
    Extract the event year from a date-of-loss field

    "January 2025" -> 2025, "2024 / 2025 risk period" -> 2025 (the later year
    of a period), "no year here" -> None.
    """
    text = _as_text(text)
    if text is None:
        return None

    period = _PERIOD_PATTERN.search(text)
    if period:
        return int(period.group(2))

    match = _YEAR_PATTERN.search(text)
    return int(match.group(1)) if match else None


def classify_event_type(text: Any) -> EventType:
    """Map a cause-of-loss description onto the fixed event type list"""
    text = _as_text(text)
    if not text:
        return EventType.OTHER

    lowered = text.lower()
    for event_type, keywords in EVENT_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return event_type
    return EventType.OTHER


def has_loss_keyword(text: Any) -> bool:
    text = _as_text(text)
    if not text:
        return False
    lowered = text.lower()
    return any(keyword in lowered for keyword in LOSS_KEYWORDS)


def _format_one(value: Any) -> str:
    if value is None or isinstance(value, (str, bytes)):
        return "USD 0M"
    try:
        number = float(value)
    except (TypeError, ValueError):
        return "USD 0M"
    if not math.isfinite(number):
        return "USD 0M"

    # Bucket on the displayed value so that 999.7 reads "USD 1.0B", not "USD 1000M"
    if round(number) >= 1000:
        return f"USD {number / 1000:.1f}B"
    return f"USD {number:.0f}M"


def currency_format(value_millions: Any):
    """
    Format a value in USD millions for display

    Accepts a scalar (returns a string), a pandas Series (returns a Series on
    the same index) or any other sequence (returns a list).

    Values that round to 1000 or more are shown in billions, so 999.7 is
    "USD 1.0B" rather than "USD 1000M".
    """
    if isinstance(value_millions, pd.Series):
        return value_millions.map(_format_one)
    if isinstance(value_millions, (list, tuple, np.ndarray, pd.Index)):
        return [_format_one(value) for value in value_millions]
    return _format_one(value_millions)
