from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo
from .config import settings


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_local() -> datetime:
    if settings.timezone:
        return now_utc().astimezone(ZoneInfo(settings.timezone))
    return now_utc().astimezone()


def local_noon(day: date) -> datetime:
    """Noon on ``day`` carrying the UTC offset in effect on that date, DST included."""
    noon = datetime.combine(day, time(12, 0))
    if settings.timezone:
        return noon.replace(tzinfo=ZoneInfo(settings.timezone))
    # Naive wall-clock time is read in the host zone for that date
    return noon.astimezone()
