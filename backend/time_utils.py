"""
Day Planner - Time Utilities
Minutes-since-midnight arithmetic, clock helpers and display formatting.
"""

from datetime import datetime, date, timedelta
from typing import Optional


MINUTES_PER_DAY = 24 * 60
LAST_MINUTE = MINUTES_PER_DAY - 1
DATE_FORMAT = "%Y-%m-%d"


# ============================================
# TIME CONVERSION
# ============================================

def time_to_minutes(time_str: Optional[str]) -> int:
    """Convert "HH:MM" to minutes since midnight. Malformed input gives 0."""
    if not isinstance(time_str, str):
        return 0
    parts = time_str.strip().split(":")
    if len(parts) != 2:
        return 0
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return 0
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to zero-padded "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def current_time_minutes(offset: int = 0, now: Optional[datetime] = None) -> int:
    """Wall-clock minutes since midnight plus a caller-supplied offset."""
    now = now or datetime.now()
    return now.hour * 60 + now.minute + offset


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


# ============================================
# DATE HELPERS
# ============================================

def today_str(today: Optional[date] = None) -> str:
    """Today's local date as YYYY-MM-DD."""
    return (today or date.today()).strftime(DATE_FORMAT)


def parse_date(date_str: str) -> Optional[date]:
    try:
        return datetime.strptime(date_str, DATE_FORMAT).date()
    except (TypeError, ValueError):
        return None


def add_days(date_str: str, days: int) -> str:
    """Shift a YYYY-MM-DD string by whole days. Unparseable input is returned as-is."""
    parsed = parse_date(date_str)
    if parsed is None:
        return date_str
    return (parsed + timedelta(days=days)).strftime(DATE_FORMAT)


def days_between(start_str: str, end_str: str) -> int:
    start, end = parse_date(start_str), parse_date(end_str)
    if start is None or end is None:
        return 0
    return (end - start).days


# ============================================
# DISPLAY FORMATTING
# ============================================

def _split_hm(time_str: str) -> Optional[tuple]:
    parts = time_str.split(":") if isinstance(time_str, str) else []
    if len(parts) != 2:
        return None
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None


def _display_hour(hours: int) -> int:
    if hours > 12:
        return hours - 12
    return 12 if hours == 0 else hours


def format_time(time_str: str) -> str:
    """Format "HH:MM" (24h) as "H:MM AM/PM"."""
    hm = _split_hm(time_str)
    if hm is None:
        return time_str
    hours, minutes = hm
    period = "PM" if hours >= 12 else "AM"
    return f"{_display_hour(hours)}:{minutes:02d} {period}"


def format_elapsed(minutes: int) -> str:
    """Human duration: "45m", "2h" or "2h 30m"."""
    if minutes >= 60:
        h, m = divmod(minutes, 60)
        return f"{h}h {m}m" if m > 0 else f"{h}h"
    return f"{minutes}m"


def format_block_time_range(start_str: str, end_str: str, is_task: bool = False) -> str:
    """
    Calendar block label such as "9:00–10:30am".

    The start's am/pm is only shown when it differs from the end's.
    Task ranges are wrapped in parentheses.
    """
    start_hm, end_hm = _split_hm(start_str), _split_hm(end_str)
    if start_hm is None or end_hm is None:
        return ""

    start_h, start_m = start_hm
    end_h, end_m = end_hm
    start_period = "pm" if start_h >= 12 else "am"
    end_period = "pm" if end_h >= 12 else "am"

    start_time = f"{_display_hour(start_h)}:{start_m:02d}"
    end_time = f"{_display_hour(end_h)}:{end_m:02d}{end_period}"

    if start_period == end_period:
        label = f"{start_time}–{end_time}"
    else:
        label = f"{start_time}{start_period}–{end_time}"

    return f"({label})" if is_task else label
