"""Shared test helpers for checkin_stats tests.

Regular functions (not fixtures) that can be imported by any test module.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

NOW = datetime(2026, 2, 24, 12, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    """Canonical ``YYYY-MM-DDTHH:MM:SS.sssZ`` form of an aware datetime."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def make_check_in(
    timestamp: str,
    words: list[str] | None = None,
    suggested: list[str] | None = None,
    tags: list[str] | None = None,
    energy: int | None = None,
    stress: int | None = None,
    anxiety: int | None = None,
    joy: int | None = None,
) -> dict:
    """Build a check-in dict; unset intensity dimensions are None."""
    return {
        "timestamp": timestamp,
        "words": words or [],
        "suggested_words_used": suggested or [],
        "intensity": {"energy": energy, "stress": stress, "anxiety": anxiety, "joy": joy},
        "context_tags": tags or [],
    }


def check_ins_on_days(days_ago: list[int], now: datetime = NOW) -> list[dict]:
    """One check-in per entry, placed *days_ago* days before *now* (UTC)."""
    return [make_check_in(iso(now - timedelta(days=d)), words=["calm"]) for d in days_ago]


def make_rating(timestamp: str, rating: float) -> dict:
    return {"timestamp": timestamp, "rating": rating}
