"""Timestamp parsing for record-source date fields.

The record source returns ISO-8601 strings ("2024-03-01",
"2024-03-01T14:05:00.000Z"). Everything is normalized to timezone-aware
UTC datetimes so entries from both tables compare and sort together.
"""

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> datetime | None:
    """Parse a date/datetime/ISO string. Returns None if absent or unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def age_from_birthdate(value, today: date | None = None) -> int | None:
    """Whole years between a date of birth and today. None if unparseable."""
    born = parse_timestamp(value)
    if born is None:
        return None
    today = today or utcnow().date()
    born_day = born.date()
    years = today.year - born_day.year - ((today.month, today.day) < (born_day.month, born_day.day))
    return years if 0 <= years < 130 else None
