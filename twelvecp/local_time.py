"""
Calendar helpers for the Alberta market clock.

All timezone and date arithmetic used by the optimizer and the peak
models lives here. Peak archives store UTC timestamps; the grid operates
on Mountain time (MST -7h, MDT -6h from the second Sunday in March to the
first Sunday in November).
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import List
from zoneinfo import ZoneInfo

from twelvecp.constants import DAY_NAMES, MONTH_NAMES, MARKET_TIMEZONE

MARKET_TZ = ZoneInfo(MARKET_TIMEZONE)


def parse_utc(timestamp: str) -> datetime:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    text = timestamp.strip().replace('Z', '+00:00')
    if ' ' in text and 'T' not in text:
        text = text.replace(' ', 'T', 1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_local(timestamp: str) -> datetime:
    """Convert a UTC timestamp to local market time (DST aware)."""
    return parse_utc(timestamp).astimezone(MARKET_TZ)


def is_dst(moment: datetime) -> bool:
    local = moment.astimezone(MARKET_TZ)
    return bool(local.dst() and local.dst() != timedelta(0))


def utc_offset_hours(moment: datetime) -> int:
    """-7 in winter, -6 in summer."""
    return int(moment.astimezone(MARKET_TZ).utcoffset().total_seconds() // 3600)


def month_index(date_str: str) -> int:
    """Zero-based month (0 = January) of a YYYY-MM-DD date string."""
    return int(date_str[5:7]) - 1


def day_name(day: date) -> str:
    return DAY_NAMES[day.weekday()]


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def month_dates(year: int, month: int, first_day: int = 1, last_day: int = 31) -> List[date]:
    """Dates of a month between first_day and last_day, clipped to the month length."""
    days_in_month = calendar.monthrange(year, month)[1]
    start = max(1, first_day)
    end = min(days_in_month, last_day)
    return [date(year, month, d) for d in range(start, end + 1)]


def local_instant(day: date, hour: int, minute: int = 0) -> datetime:
    """Aware local datetime; hour 24 rolls over to midnight of the next day."""
    base = datetime(day.year, day.month, day.day, tzinfo=MARKET_TZ)
    return base + timedelta(hours=hour, minutes=minute)


def format_display_date(day: date) -> str:
    """e.g. 'Friday, December 11, 2026'"""
    return f"{day_name(day)}, {MONTH_NAMES[day.month - 1]} {day.day}, {day.year}"


def hour_label(hour: int) -> str:
    """Hour of day (0-23) as a 12-hour clock label."""
    if hour == 0:
        return '12 AM'
    if hour == 12:
        return '12 PM'
    return f'{hour} AM' if hour < 12 else f'{hour - 12} PM'
