"""Core analytics over wellbeing check-ins and daily ratings.

Turns raw check-in and rating records into the aggregates the dashboard
renders: an intensity-weighted word cloud, a multi-metric insights
summary and a trailing-week rating series.  Every builder is a pure
function of its inputs plus an explicit ``now``/``tz``, so identical
arguments always produce identical output.

Used by both the CLIs (checkin_summary.py, checkin_viz.py) and the web
service (app.py).
"""

from __future__ import annotations

import csv
import json
import logging
import math
import os
from datetime import datetime, timedelta, tzinfo
from typing import Any, Iterable

from checkin_dates import (
    CLOUD_WINDOWS,
    day_key,
    day_label,
    last_days,
    parse_timestamp,
    resolve_now,
    to_local,
    word_cloud_window_range,
)
from checkin_validation import INTENSITY_KEYS, to_iso_instant
from checkin_words import normalize_word, normalize_words_for_cloud

logger = logging.getLogger(__name__)

TOP_FREQUENCY_LIMIT = 8
WEEK_LENGTH = 7


def _round_to_one(value: float) -> float:
    """Round half up to one decimal place (2.25 -> 2.3, not banker's 2.2)."""
    return math.floor(value * 10 + 0.5) / 10


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _present_intensities(check_in: dict) -> list[float]:
    """Return the intensity values the user actually answered, in key order."""
    intensity = check_in.get("intensity")
    if not isinstance(intensity, dict):
        return []
    return [intensity[key] for key in INTENSITY_KEYS if _is_number(intensity.get(key))]


def _intensity_weight(check_in: dict) -> float:
    """Word cloud weight of a check-in: 1 + mean present intensity / 10.

    A check-in with no intensity answers weighs exactly 1.
    """
    values = _present_intensities(check_in)
    average = sum(values) / len(values) if values else 0
    return 1 + average / 10


# ---------------------------------------------------------------------------
# Word cloud
# ---------------------------------------------------------------------------

def build_word_cloud(
    check_ins: list[dict],
    locale: str | None,
    limit: int | None = None,
) -> list[dict]:
    """Aggregate intensity-weighted word scores across check-ins.

    Each normalized, non-stopword entry of a check-in's ``words`` adds the
    check-in's weight (see ``_intensity_weight``) to that word's score, so
    words written during stronger emotional states rank higher.

    Args:
        check_ins: Check-in dicts; only ``words`` and ``intensity`` are read.
        locale: Viewer locale selecting the stopword set.
        limit: Optional cap on the number of words returned.

    Returns:
        List of ``{"word", "score"}`` dicts sorted by descending score,
        ties broken by ascending word.
    """
    scores: dict[str, float] = {}
    for check_in in check_ins:
        if not isinstance(check_in, dict):
            continue
        words = check_in.get("words")
        if not isinstance(words, list):
            continue
        weight = _intensity_weight(check_in)
        for word in normalize_words_for_cloud((w for w in words if isinstance(w, str)), locale):
            scores[word] = scores.get(word, 0.0) + weight

    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    if limit is not None:
        ranked = ranked[:limit]
    return [{"word": word, "score": score} for word, score in ranked]


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

def _init_intensity_sums() -> dict[str, dict[str, float]]:
    return {key: {"total": 0.0, "count": 0} for key in INTENSITY_KEYS}


def _accumulate_intensity(sums: dict[str, dict[str, float]], check_in: dict) -> None:
    """Add a check-in's answered intensity values to the running sums."""
    intensity = check_in.get("intensity")
    if not isinstance(intensity, dict):
        return
    for key in INTENSITY_KEYS:
        value = intensity.get(key)
        if not _is_number(value):
            continue
        sums[key]["total"] += value
        sums[key]["count"] += 1


def _summarize_intensity(sums: dict[str, dict[str, float]]) -> list[dict]:
    """Turn running sums into per-dimension summaries.

    A dimension nobody answered reports ``average: None`` and
    ``sample_count: 0``; a real zero average stays 0.0.
    """
    summaries = []
    for key in INTENSITY_KEYS:
        count = sums[key]["count"]
        if count == 0:
            summaries.append({"key": key, "average": None, "sample_count": 0})
        else:
            summaries.append(
                {
                    "key": key,
                    "average": _round_to_one(sums[key]["total"] / count),
                    "sample_count": count,
                }
            )
    return summaries


def compute_current_streak(
    day_buckets: dict[str, int],
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> int:
    """Count consecutive populated days ending today (inclusive).

    Args:
        day_buckets: Mapping of ``YYYY-MM-DD`` day keys to check-in counts.
        now: Reference instant defining "today".
        tz: Viewer time zone.

    Returns:
        Number of consecutive days, walking back from today, that have a
        bucket.  0 when today itself has none.
    """
    day = to_local(resolve_now(now), tz).date()
    streak = 0
    while day_key(day) in day_buckets:
        streak += 1
        day -= timedelta(days=1)
    return streak


def _build_daily_volume(
    day_buckets: dict[str, int],
    locale: str | None,
    now: datetime,
    tz: tzinfo | None,
) -> list[dict]:
    """Return the trailing week of per-day check-in counts, oldest first."""
    points = []
    for day in last_days(now, WEEK_LENGTH, tz):
        key = day_key(day)
        points.append(
            {
                "day_key": key,
                "day_label": day_label(day, locale),
                "count": day_buckets.get(key, 0),
            }
        )
    return points


def compute_top_frequencies(values: Iterable[str], limit: int = TOP_FREQUENCY_LIMIT) -> list[dict]:
    """Count normalized values and return the most frequent ones.

    Values are normalized with ``normalize_word`` only (tags are not free
    text, so no stopword filtering); values that normalize to "" are
    dropped.

    Args:
        values: Raw tag or suggested-word strings.
        limit: Maximum number of entries to return.

    Returns:
        List of ``{"value", "count"}`` dicts sorted by descending count,
        ties broken by ascending value.
    """
    counts: dict[str, int] = {}
    for raw in values:
        if not isinstance(raw, str):
            continue
        value = normalize_word(raw)
        if not value:
            continue
        counts[value] = counts.get(value, 0) + 1

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [{"value": value, "count": count} for value, count in ranked[:limit]]


def _flatten(check_ins: list[dict], field: str) -> list[str]:
    values: list[str] = []
    for check_in in check_ins:
        if not isinstance(check_in, dict):
            continue
        field_values = check_in.get(field)
        if isinstance(field_values, list):
            values.extend(field_values)
    return values


def build_check_in_insights(
    check_ins: list[dict],
    locale: str | None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> dict[str, Any]:
    """Compute the insights summary over a collection of check-ins.

    Check-ins whose timestamp does not parse are skipped for day
    bucketing and intensity averages but still count toward
    ``total_check_ins``.

    Args:
        check_ins: Check-in dicts as read from the store.
        locale: Viewer locale for day labels.
        now: Reference instant defining "today".  Read from the clock
            once when omitted.
        tz: Viewer time zone; None means the process' local zone.

    Returns:
        Dict with keys:
            - total_check_ins: int, every supplied record.
            - active_days: int, distinct local days with a check-in.
            - current_streak: int, consecutive populated days ending today.
            - intensity: list of 4 ``{"key", "average", "sample_count"}``
              dicts in energy/stress/anxiety/joy order.
            - daily_volume: list of 7 ``{"day_key", "day_label", "count"}``
              dicts, oldest first, ending today.
            - top_context_tags: up to 8 ``{"value", "count"}`` dicts.
            - top_suggested_words: up to 8 ``{"value", "count"}`` dicts.
    """
    now = resolve_now(now)
    day_buckets: dict[str, int] = {}
    intensity_sums = _init_intensity_sums()
    parsed = 0

    for check_in in check_ins:
        if not isinstance(check_in, dict):
            continue
        timestamp = parse_timestamp(check_in.get("timestamp"))
        if timestamp is None:
            continue
        parsed += 1
        key = day_key(to_local(timestamp, tz))
        day_buckets[key] = day_buckets.get(key, 0) + 1
        _accumulate_intensity(intensity_sums, check_in)

    if check_ins and not parsed:
        logger.warning(
            "Received %d check-ins but none had a parseable timestamp.",
            len(check_ins),
        )

    return {
        "total_check_ins": len(check_ins),
        "active_days": len(day_buckets),
        "current_streak": compute_current_streak(day_buckets, now, tz),
        "intensity": _summarize_intensity(intensity_sums),
        "daily_volume": _build_daily_volume(day_buckets, locale, now, tz),
        "top_context_tags": compute_top_frequencies(_flatten(check_ins, "context_tags")),
        "top_suggested_words": compute_top_frequencies(_flatten(check_ins, "suggested_words_used")),
    }


# ---------------------------------------------------------------------------
# Weekly rating series
# ---------------------------------------------------------------------------

def build_last_week_series(
    ratings: list[dict],
    locale: str | None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[dict]:
    """Average daily ratings over the trailing 7 local days.

    Ratings with an unparseable timestamp, a non-numeric rating or a day
    outside ``[today - 6, today]`` are ignored.

    Args:
        ratings: Dicts with "timestamp" and "rating".
        locale: Viewer locale for day labels.
        now: Reference instant defining "today".
        tz: Viewer time zone.

    Returns:
        Exactly 7 ``{"day_key", "day_label", "value"}`` dicts, oldest
        first.  ``value`` is the day's mean rounded to one decimal, or
        None when the day has no ratings (a gap, not a zero).
    """
    days = last_days(now, WEEK_LENGTH, tz)
    window_start, window_end = days[0].date(), days[-1].date()
    buckets: dict[str, list[float]] = {}

    for row in ratings:
        if not isinstance(row, dict):
            continue
        timestamp = parse_timestamp(row.get("timestamp"))
        value = row.get("rating")
        if timestamp is None or not _is_number(value):
            continue
        local_day = to_local(timestamp, tz).date()
        if local_day < window_start or local_day > window_end:
            continue
        buckets.setdefault(day_key(local_day), []).append(value)

    points = []
    for day in days:
        key = day_key(day)
        values = buckets.get(key)
        points.append(
            {
                "day_key": key,
                "day_label": day_label(day, locale),
                "value": _round_to_one(sum(values) / len(values)) if values else None,
            }
        )
    return points


# ---------------------------------------------------------------------------
# Dashboard payload
# ---------------------------------------------------------------------------

def filter_by_range(records: list[dict], from_iso: str, to_iso: str) -> list[dict]:
    """Keep records whose timestamp lies in the inclusive [from, to] range."""
    start = parse_timestamp(from_iso)
    end = parse_timestamp(to_iso)
    if start is None or end is None:
        raise ValueError(f"Invalid range: {from_iso!r} - {to_iso!r}")
    kept = []
    for record in records:
        if not isinstance(record, dict):
            continue
        timestamp = parse_timestamp(record.get("timestamp"))
        if timestamp is not None and start <= timestamp <= end:
            kept.append(record)
    return kept


def build_dashboard_payload(
    check_ins: list[dict],
    ratings: list[dict],
    locale: str | None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> dict[str, Any]:
    """Build the full dashboard payload for one viewer.

    Args:
        check_ins: All check-ins available to the viewer.
        ratings: All daily ratings available to the viewer.
        locale: Viewer locale.
        now: Reference instant, shared by every section.
        tz: Viewer time zone.

    Returns:
        Dict with keys generated_at, locale, insights, word_cloud (one
        cloud per window in CLOUD_WINDOWS) and week (the rating series).
    """
    now = resolve_now(now)
    clouds = {}
    for window in CLOUD_WINDOWS:
        from_iso, to_iso = word_cloud_window_range(window, now, tz)
        clouds[window] = build_word_cloud(filter_by_range(check_ins, from_iso, to_iso), locale)

    return {
        "generated_at": to_iso_instant(now),
        "locale": locale,
        "insights": build_check_in_insights(check_ins, locale, now, tz),
        "word_cloud": clouds,
        "week": build_last_week_series(ratings, locale, now, tz),
    }


# ---------------------------------------------------------------------------
# CLI helpers (used by checkin_summary.py)
# ---------------------------------------------------------------------------

def save_insights_files(
    insights: dict[str, Any],
    cloud: list[dict],
    output_dir: str = "checkin_analytics",
) -> None:
    """Write insights.json and word_cloud.csv to *output_dir*.

    Args:
        insights: Dict from ``build_check_in_insights``.
        cloud: List from ``build_word_cloud``.
        output_dir: Directory path for output files.  Created if it
            doesn't exist.
    """
    os.makedirs(output_dir, exist_ok=True)

    with open(f"{output_dir}/insights.json", "w", encoding="utf-8") as f:
        json.dump(insights, f, indent=2, ensure_ascii=False)

    with open(f"{output_dir}/word_cloud.csv", "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=["word", "score"])
        writer.writeheader()
        writer.writerows(cloud)


def print_insights_report(insights: dict[str, Any], cloud: list[dict]) -> None:
    """Print a human-readable insights report to stdout."""
    print(f"\n{'=' * 60}")
    print("Check-in Summary")
    print(f"{'=' * 60}")
    print(f"Total Check-ins: {insights['total_check_ins']:,}")
    print(f"Active Days: {insights['active_days']:,}")
    print(f"Current Streak: {insights['current_streak']} day(s)")

    print("\nAverage Intensity:")
    for metric in insights["intensity"]:
        if metric["average"] is None:
            print(f"  {metric['key']:<8} no answers")
        else:
            print(f"  {metric['key']:<8} {metric['average']:.1f} ({metric['sample_count']} answers)")

    print("\nLast 7 Days:")
    for point in insights["daily_volume"]:
        print(f"  {point['day_label']:<14} {point['count']}")

    if insights["top_context_tags"]:
        print("\nTop Context Tags:")
        for item in insights["top_context_tags"]:
            print(f"  {item['value']}: {item['count']}")

    if insights["top_suggested_words"]:
        print("\nTop Suggested Words:")
        for item in insights["top_suggested_words"]:
            print(f"  {item['value']}: {item['count']}")

    if cloud:
        print("\nWord Cloud (top 10):")
        for item in cloud[:10]:
            print(f"  {item['word']:<20} {item['score']:.2f}")

    print(f"{'=' * 60}")
