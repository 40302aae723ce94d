from datetime import date, datetime
from typing import Optional, Union


def clock_hm(dt: datetime) -> str:
    """Wall-clock time as ``H:MM`` (24h, no leading zero on the hour)."""
    return f"{dt.hour}:{dt.minute:02d}"


def to_24h(hour: int, minute: int, period: Optional[str] = None) -> str:
    if period:
        period = period.lower()
        if period == "pm" and hour < 12:
            hour += 12
        elif period == "am" and hour == 12:
            hour = 0
    return f"{hour}:{minute:02d}"


def iso_date(value: Union[str, date, datetime]) -> str:
    """Normalize a form date to the backend's ``YYYY-MM-DD``."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    ss = str(value).strip()
    # Accept full ISO timestamps as well as plain dates
    try:
        return datetime.fromisoformat(ss.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return date.fromisoformat(ss[:10]).isoformat()
