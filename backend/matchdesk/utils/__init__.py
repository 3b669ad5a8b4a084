from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from matchdesk.config import settings


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Make a naive datetime timezone-aware (UTC). Already-aware datetimes pass through.

    MongoDB stores datetimes without tzinfo (naive). Wrap values read back from
    a document before comparing them with utcnow() or local day bounds.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def parse_utc(value: str | datetime) -> datetime:
    """Parse a date string or datetime into a tz-aware UTC datetime.

    Strings without an offset are read as local wall-clock time, which is how
    the admin UI submits `YYYY-MM-DDTHH:MM` values.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=local_tz())
    return parsed.astimezone(timezone.utc)


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.LOCAL_TIMEZONE)


def local_today() -> date:
    return datetime.now(local_tz()).date()


def coerce_day(value: str | date | datetime) -> date:
    """Accept a date, a datetime, `YYYY-MM-DD`, or the aliases `today` / `0`."""
    if isinstance(value, datetime):
        return ensure_utc(value).astimezone(local_tz()).date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if text in {"today", "0"}:
        return local_today()
    return date.fromisoformat(text)


def local_day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC instants of local midnight for `day` and the following day."""
    start = datetime.combine(day, time.min, tzinfo=local_tz())
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def local_date_of(dt: datetime) -> date:
    return ensure_utc(dt).astimezone(local_tz()).date()


def local_hhmm(epoch_seconds: float) -> str:
    dt = datetime.fromtimestamp(epoch_seconds, tz=local_tz())
    return f"{dt.hour:02d}:{dt.minute:02d}"


def local_to_utc(value: str | datetime) -> datetime:
    """Admin form values: naive means local wall-clock time."""
    if isinstance(value, str):
        return parse_utc(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=local_tz())
    return value.astimezone(timezone.utc)
