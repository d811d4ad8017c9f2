"""Calendar-day bucketing in the viewer's local time zone.

Stored timestamps are UTC instants, but day keys, streaks and the
trailing-week windows follow the calendar the viewer sees.  Every helper
takes an explicit ``tz`` (``None`` meaning the process' local zone) so
callers and tests can pin the zone instead of relying on ambient state.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo

from checkin_validation import to_iso_instant
from checkin_words import resolve_locale

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# weekday abbreviations (Monday first) and the day/month pattern per locale
DAY_LABEL_FORMATS: dict[str, tuple[tuple[str, ...], str]] = {
    "en": (
        ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"),
        "{weekday}, {month:02d}/{day:02d}",
    ),
    "pl": (
        ("pon.", "wt.", "śr.", "czw.", "pt.", "sob.", "niedz."),
        "{weekday}, {day:02d}.{month:02d}",
    ),
}

# days to step back from today for each word cloud window
_WINDOW_OFFSETS = {"today": 0, "week": 6, "month": 29}
CLOUD_WINDOWS = ("today", "week", "month", "all-time")


def parse_timestamp(value: object) -> datetime | None:
    """Leniently parse a stored ISO timestamp into an aware datetime.

    Accepts a trailing ``Z``, explicit offsets and naive strings (read as
    UTC).  Returns None instead of raising so aggregation can skip the
    record.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_now(now: datetime | None = None) -> datetime:
    """Return *now* as an aware datetime, reading the clock only if omitted."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def to_local(dt: datetime, tz: tzinfo | None = None) -> datetime:
    """Convert an instant to the viewer's zone (naive input is UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def local_midnight(day: date, tz: tzinfo | None = None) -> datetime:
    """Return the aware local midnight that starts calendar day *day*."""
    if tz is None:
        return datetime.combine(day, time()).astimezone()
    return datetime.combine(day, time(), tzinfo=tz)


def start_of_day(dt: datetime, tz: tzinfo | None = None) -> datetime:
    """Truncate *dt* to local midnight (not UTC midnight)."""
    return local_midnight(to_local(dt, tz).date(), tz)


def day_key(dt: date) -> str:
    """Format the local calendar day of *dt* as ``YYYY-MM-DD``."""
    return f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"


def day_label(dt: date, locale: str | None) -> str:
    """Short human label for a day, e.g. ``Mon, 02/23`` or ``pon., 23.02``."""
    weekdays, pattern = DAY_LABEL_FORMATS[resolve_locale(locale, DAY_LABEL_FORMATS)]
    return pattern.format(weekday=weekdays[dt.weekday()], day=dt.day, month=dt.month)


def last_days(
    now: datetime | None = None,
    count: int = 7,
    tz: tzinfo | None = None,
) -> list[datetime]:
    """Return the trailing *count* local midnights ending today, oldest first.

    Steps by calendar day rather than 24h so a DST change still yields
    one entry per day.
    """
    today = to_local(resolve_now(now), tz).date()
    return [local_midnight(today - timedelta(days=offset), tz) for offset in range(count - 1, -1, -1)]


def word_cloud_window_range(
    window: str,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> tuple[str, str]:
    """Return the (from_iso, to_iso) query range for a word cloud window.

    Args:
        window: One of "today", "week" (today and the 6 days before),
            "month" (today and the 29 days before) or "all-time".
        now: Reference instant; the upper bound of the range.
        tz: Viewer time zone for the lower bound's midnight.

    Returns:
        Canonical ISO instant strings suitable for a store ``list`` call.

    Raises:
        ValueError: If *window* is not a known window name.
    """
    now = resolve_now(now)
    if window == "all-time":
        start = EPOCH
    elif window in _WINDOW_OFFSETS:
        today = to_local(now, tz).date()
        start = local_midnight(today - timedelta(days=_WINDOW_OFFSETS[window]), tz)
    else:
        raise ValueError(f"Unknown word cloud window: {window!r}")
    return to_iso_instant(start), to_iso_instant(now)
