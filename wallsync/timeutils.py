"""Time helpers shared by sync and recommendation code."""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def week_number(day: date | datetime | None = None) -> int:
    """Return the comparable week key ``iso_year * 100 + iso_week``.

    Args:
        day: Date to key, defaults to today (UTC)

    Returns:
        Integer such as 202642
    """
    if day is None:
        day = utc_now()
    iso_year, iso_week, _ = day.isocalendar()
    return iso_year * 100 + iso_week


def parse_timestamp(value: str | None, fmt: str | None = None) -> datetime | None:
    """Parse a provider timestamp into an aware UTC datetime.

    Args:
        value: ISO-8601 string, or a string in ``fmt`` when given
        fmt: Optional ``strptime`` format for non-ISO providers

    Returns:
        Parsed datetime, or None when missing or unparseable
    """
    if not value:
        return None
    try:
        if fmt:
            parsed = datetime.strptime(value, fmt)
        else:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return ensure_utc(parsed).astimezone(timezone.utc)
