"""Date manipulation utilities"""

import math
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from dispute_reporter.domain.models import ReportWindow


def last_completed_week(now: datetime, tz: tzinfo = timezone.utc) -> ReportWindow:
    """
    Most recently completed Monday-Sunday week before `now`, in `tz`.

    Example (UTC): now = Wednesday 2025-07-02 → 2025-06-23 00:00:00.000 to
    2025-06-29 23:59:59.999. A Sunday still belongs to the current week, so
    it reports the week before.
    """
    local_today = now.astimezone(tz).date()
    this_monday = local_today - timedelta(days=local_today.weekday())
    start = datetime.combine(this_monday - timedelta(days=7), time.min, tzinfo=tz)
    end = datetime.combine(this_monday, time.min, tzinfo=tz) - timedelta(milliseconds=1)
    return ReportWindow(start=start, end=end)


def to_unix_seconds(moment: datetime) -> int:
    """Floor a datetime to whole Unix seconds"""
    return math.floor(moment.timestamp())


def from_unix_seconds(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def format_date(moment: datetime | date) -> str:
    """YYYY-MM-DD"""
    return moment.strftime("%Y-%m-%d")


def format_minute_utc(moment: datetime) -> str:
    """YYYY-MM-DD HH:MM in UTC"""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M")
