# utils/time_slots.py
"""
Session time helpers.

Bookings have historically stored their time either as the bare start time
('19:30') or as the full range ('19:30-21:30'). New bookings always use the
canonical range form; lookups match both forms until legacy rows have been
rewritten by the canonicalise-session-times command.
"""

import re
from datetime import date, datetime, time

# Indexed by date.weekday()
WEEKDAY_NAMES = [
    'Monday',
    'Tuesday',
    'Wednesday',
    'Thursday',
    'Friday',
    'Saturday',
    'Sunday',
]

_HHMM = re.compile(r'^(\d{1,2})[:.](\d{2})$')


def normalize_session_time(session_time):
    """
    Normalize session time format for consistent parsing.
    Example: '19:30 – 21:30' -> '19:30-21:30'
    """
    if not session_time:
        return ""

    session_time = str(session_time).strip()

    # en/em dashes and spacing around the separator
    session_time = session_time.replace('–', '-').replace('—', '-')
    session_time = re.sub(r'\s*-\s*', '-', session_time)

    return session_time


def parse_hhmm(value):
    """Parse 'HH:MM' (or 'H:MM') into a time. Raises ValueError."""
    if isinstance(value, time):
        return value

    match = _HHMM.match(str(value or '').strip())
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")

    return time(hours, minutes)


def format_hhmm(value):
    return value.strftime('%H:%M')


def parse_session_time(value):
    """
    Parse a stored or submitted session time.

    Returns:
        tuple: (start, end) as time objects; end is None for the bare form
    """
    normalized = normalize_session_time(value)
    if not normalized:
        raise ValueError("Session time is required")

    if '-' in normalized:
        start_str, _, end_str = normalized.partition('-')
        start, end = parse_hhmm(start_str), parse_hhmm(end_str)
        if end <= start:
            raise ValueError(f"Session '{value}' ends before it starts")
        return start, end

    return parse_hhmm(normalized), None


def canonical_range(start, end):
    """Canonical stored form: 'HH:MM-HH:MM'."""
    return f"{format_hhmm(parse_hhmm(start))}-{format_hhmm(parse_hhmm(end))}"


def matching_forms(start, end):
    """Every stored representation that refers to the given time range."""
    start_str = format_hhmm(parse_hhmm(start))
    return [canonical_range(start, end), start_str]


def parse_iso_date(value):
    """Parse 'YYYY-MM-DD' into a date. Raises ValueError."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value or '').strip(), '%Y-%m-%d').date()


def weekday_name(value):
    return WEEKDAY_NAMES[value.weekday()]


def normalize_day_name(value):
    """Return the canonical day name for 'friday', 'FRI', etc. Raises ValueError."""
    cleaned = str(value or '').strip().lower()
    for name in WEEKDAY_NAMES:
        if cleaned in (name.lower(), name[:3].lower()):
            return name
    raise ValueError(f"Invalid day of week '{value}'")
