from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from egs_bridge.utils.datetime_utils import local_date, local_day_window, to_naive_utc

IST = ZoneInfo("Asia/Kolkata")


def test_local_date_crosses_midnight_before_utc():
    # 20:00 UTC is already 01:30 the next day in India
    assert local_date(datetime(2026, 10, 18, 20, 0), IST) == date(2026, 10, 19)
    assert local_date(datetime(2026, 10, 18, 4, 0), IST) == date(2026, 10, 18)


def test_local_day_window_is_naive_utc():
    start, end = local_day_window(date(2026, 10, 19), IST)

    assert start == datetime(2026, 10, 18, 18, 30)
    assert end == datetime(2026, 10, 19, 18, 30)
    assert start.tzinfo is None and end - start == timedelta(days=1)


def test_to_naive_utc():
    aware = datetime(2026, 10, 19, 12, 0, tzinfo=timezone(timedelta(hours=5, minutes=30)))
    assert to_naive_utc(aware) == datetime(2026, 10, 19, 6, 30)
    naive = datetime(2026, 10, 19, 12, 0)
    assert to_naive_utc(naive) is naive
