"""Write-side validation for check-in and rating records.

A record that fails here must never reach storage.  Each validator is a
pure check returning ``None`` for a valid record or a short rejection
reason string that the writer can hand back to its caller.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

INTENSITY_KEYS = ("energy", "stress", "anxiety", "joy")

INTENSITY_MIN = 0
INTENSITY_MAX = 10
RATING_MIN = 1
RATING_MAX = 10

_ISO_INSTANT_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class InvalidRecordError(ValueError):
    """Raised when a record is refused before it is written."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def to_iso_instant(dt: datetime) -> str:
    """Serialise *dt* as a UTC instant with millisecond precision.

    Naive datetimes are taken to already be in UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}T"
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}.{dt.microsecond // 1000:03d}Z"
    )


def is_iso_instant(value: Any) -> bool:
    """Return True if *value* survives a parse/serialise round trip unchanged.

    Only the canonical ``YYYY-MM-DDTHH:MM:SS.sssZ`` form passes.  Other
    precisions, offset forms and impossible dates (``2026-02-30``) fail.

    Args:
        value: Candidate timestamp.  Non-strings are rejected.

    Returns:
        True when *value* is a canonical UTC instant string.
    """
    if not isinstance(value, str) or not _ISO_INSTANT_RE.match(value):
        return False
    try:
        parsed = datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%fZ")
    except ValueError:
        return False
    return to_iso_instant(parsed) == value


def _is_whole_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _validate_intensity(intensity: Any) -> str | None:
    if intensity is None:
        return None
    if not isinstance(intensity, dict):
        return "invalid_intensity"
    for key, value in intensity.items():
        if key not in INTENSITY_KEYS:
            return "invalid_intensity"
        if value is None:
            continue
        if not _is_whole_number(value) or not INTENSITY_MIN <= value <= INTENSITY_MAX:
            return "invalid_intensity"
    return None


def validate_check_in(check_in: Any) -> str | None:
    """Check a single check-in dict before it is persisted.

    Args:
        check_in: Candidate record with keys timestamp, words,
            suggested_words_used, intensity and context_tags.  The list
            fields and intensity may be missing; intensity values may be
            None (no response for that dimension).

    Returns:
        None when the record is valid, otherwise one of
        "invalid_record", "invalid_timestamp", "invalid_intensity",
        "invalid_words", "invalid_suggested_words",
        "invalid_context_tags".
    """
    if not isinstance(check_in, dict):
        return "invalid_record"
    if not is_iso_instant(check_in.get("timestamp")):
        return "invalid_timestamp"

    reason = _validate_intensity(check_in.get("intensity"))
    if reason:
        return reason

    for field, reason in (
        ("words", "invalid_words"),
        ("suggested_words_used", "invalid_suggested_words"),
        ("context_tags", "invalid_context_tags"),
    ):
        value = check_in.get(field)
        if value is not None and not _is_string_list(value):
            return reason
    return None


def validate_rating(rating: Any) -> str | None:
    """Check a single daily rating dict (timestamp + whole number 1-10)."""
    if not isinstance(rating, dict):
        return "invalid_record"
    if not is_iso_instant(rating.get("timestamp")):
        return "invalid_timestamp"
    value = rating.get("rating")
    if not _is_whole_number(value) or not RATING_MIN <= value <= RATING_MAX:
        return "invalid_rating"
    return None


def ensure_valid_check_in(check_in: Any) -> None:
    """Raise InvalidRecordError if *check_in* must not be stored."""
    reason = validate_check_in(check_in)
    if reason:
        raise InvalidRecordError(reason)


def ensure_valid_rating(rating: Any) -> None:
    """Raise InvalidRecordError if *rating* must not be stored."""
    reason = validate_rating(rating)
    if reason:
        raise InvalidRecordError(reason)


def parse_intensity_input(raw_value: str) -> int | None:
    """Parse a raw form field into an intensity value.

    Args:
        raw_value: Text as typed by the user, surrounding whitespace allowed.

    Returns:
        The integer in [0, 10], or None for blank, fractional,
        out-of-range or non-numeric input.
    """
    try:
        value = float(raw_value.strip())
    except (AttributeError, ValueError):
        return None
    if not value.is_integer() or not INTENSITY_MIN <= value <= INTENSITY_MAX:
        return None
    return int(value)
