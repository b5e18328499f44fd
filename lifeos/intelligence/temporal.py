"""
Datetime helpers shared by detectors and the pattern learner.

Every timestamp inside the pipeline is a naive datetime in UTC. Records
arrive from several integrations with mixed formats (ISO strings with or
without offsets, date-only strings, datetime objects), so everything is
normalized here before comparison.
"""

from datetime import UTC, date, datetime, timedelta


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def parse_datetime(value) -> datetime | None:
    """
    Parse a record timestamp into a naive UTC datetime.

    Date-only values resolve to midnight. Anything unparseable returns None
    so callers can treat the field as "not applicable".
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC).replace(tzinfo=None)
    return dt


def parse_date(value) -> date | None:
    """Parse a record date (or datetime) into a calendar date."""
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    dt = parse_datetime(value)
    return dt.date() if dt else None


def to_iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def week_start(now: datetime) -> date:
    """Monday of the week containing ``now``."""
    today = now.date()
    return today - timedelta(days=today.weekday())


def format_hhmm(dt: datetime) -> str:
    return f"{dt.hour:02d}:{dt.minute:02d}"


def days_between(start: date, end: date) -> int:
    """Whole-day offset from ``start`` to ``end`` (negative when end is earlier)."""
    return (end - start).days
