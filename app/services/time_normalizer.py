from datetime import datetime, timezone, tzinfo
from typing import Any, Optional

from pydantic import BaseModel

from app.core.config_loader import WEEKDAYS
from app.core.exceptions import ValidationError

INVALID_DATE = "Invalid date"


class NormalizedTime(BaseModel):
    iso: Optional[str] = None
    date: str
    time: str

    @property
    def is_valid(self) -> bool:
        return self.iso is not None


INVALID = NormalizedTime(iso=None, date=INVALID_DATE, time="")


def parse_instant(raw: Any, default_tz: tzinfo) -> datetime:
    """
    Parses a datetime or an ISO-like string into an aware datetime.

    "2024-01-01 13:05" is read as "2024-01-01T13:05". Naive values are
    taken to be in `default_tz`. Raises ValidationError for anything else.
    """
    if isinstance(raw, datetime):
        dt = raw
    elif isinstance(raw, str) and raw.strip():
        text = raw.strip().replace(" ", "T", 1)
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(INVALID_DATE)
    else:
        raise ValidationError(INVALID_DATE)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=default_tz)

    try:
        # Out-of-range offsets only surface on conversion
        dt.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        raise ValidationError(INVALID_DATE)
    return dt


def format_time_of_day(dt: datetime) -> str:
    hour = dt.hour % 12 or 12
    suffix = "PM" if dt.hour >= 12 else "AM"
    return f"{hour}:{dt.minute:02d} {suffix}"


def to_utc_iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat()


def normalize(raw: Any, tz: tzinfo, default_tz: Optional[tzinfo] = None) -> NormalizedTime:
    """
    Returns the UTC instant plus display date ("YYYY-MM-DD") and time ("h:mm AM")
    in `tz`. Naive input is read in `default_tz` (falls back to `tz`).
    Never raises: unusable input gives the "Invalid date" sentinel.
    """
    try:
        dt = parse_instant(raw, default_tz or tz)
    except ValidationError:
        return INVALID

    local = dt.astimezone(tz)
    return NormalizedTime(
        iso=to_utc_iso(dt),
        date=local.strftime("%Y-%m-%d"),
        time=format_time_of_day(local),
    )


def weekday_name(dt: datetime, tz: tzinfo) -> str:
    return WEEKDAYS[dt.astimezone(tz).weekday()]
