from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current time as a timezone-aware datetime in the local zone."""
    return datetime.now().astimezone()


def zone_clock(tz_name: str | None = None) -> Clock:
    """
    Clock for an IANA zone name (e.g. "Europe/Berlin").

    Without a name, falls back to local_now and the system zone.
    """
    if not tz_name:
        return local_now
    zone = ZoneInfo(tz_name)
    return lambda: datetime.now(zone)


def add_days(moment: datetime, days: int) -> datetime:
    """
    Move `moment` by whole calendar days, keeping its wall-clock time.

    ZoneInfo datetimes already do this under `+`. A fixed offset that
    matches the system zone (what local_now returns) is re-resolved on the
    target day, so a DST change in between does not shift the hour.
    """
    shifted = moment + timedelta(days=days)
    system_offset = moment.astimezone().utcoffset()
    if isinstance(moment.tzinfo, timezone) and moment.utcoffset() == system_offset:
        return shifted.replace(tzinfo=None).astimezone()
    return shifted


def end_of_day(moment: datetime) -> datetime:
    """Last representable millisecond of `moment`'s calendar day (23:59:59.999)."""
    return moment.replace(hour=23, minute=59, second=59, microsecond=999000)


def same_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()
