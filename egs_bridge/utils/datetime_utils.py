from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo


def naive_utc_now() -> datetime:
    """
    Get current UTC datetime as a naive datetime (no timezone info).
    pymongo stores and returns naive UTC datetimes, so every stored
    timestamp goes through this or to_naive_utc.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """
    Convert a datetime object to naive UTC (no timezone info).
    Naive input is assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def local_date(now: Optional[datetime], zone: ZoneInfo) -> date:
    """Calendar date in the given zone for a naive-UTC (or aware) instant."""
    if now is None:
        now = naive_utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(zone).date()


def local_day_window(day: date, zone: ZoneInfo) -> Tuple[datetime, datetime]:
    """
    Midnight-to-midnight window of a local calendar day, as naive UTC.

    Returns (start, end) where start is inclusive and end exclusive.
    """
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return to_naive_utc(start), to_naive_utc(end)
