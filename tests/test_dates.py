from datetime import date, datetime, timezone

from eventfeed.utils.dates import LOCAL_TZ, day_bounds, today_bounds


def test_day_bounds_cover_whole_day():
    start, end = day_bounds(date(2026, 10, 16))
    assert start == datetime(2026, 10, 16, 0, 0, tzinfo=LOCAL_TZ)
    assert (end.hour, end.minute, end.second, end.microsecond) == (23, 59, 59, 999000)


def test_today_uses_local_day_not_utc():
    # 23:30 UTC on the 16th is already the 17th in Zurich
    late_utc = datetime(2026, 10, 16, 23, 30, tzinfo=timezone.utc)
    start, _ = today_bounds(late_utc)
    assert start.date() == date(2026, 10, 17)
