"""Tests for checkin_dates.py (local-calendar bucketing)."""

from datetime import date, datetime, timedelta, timezone

import pytest

from checkin_dates import (
    day_key,
    day_label,
    last_days,
    parse_timestamp,
    resolve_now,
    start_of_day,
    word_cloud_window_range,
)

UTC = timezone.utc
NEW_YORK_WINTER = timezone(timedelta(hours=-5))
TOKYO = timezone(timedelta(hours=9))


class TestParseTimestamp:
    def test_z_suffix(self):
        assert parse_timestamp("2026-02-23T08:30:00.000Z") == datetime(2026, 2, 23, 8, 30, tzinfo=UTC)

    def test_offset_form(self):
        parsed = parse_timestamp("2026-02-23T09:30:00+01:00")
        assert parsed == datetime(2026, 2, 23, 8, 30, tzinfo=UTC)

    def test_naive_is_utc(self):
        assert parse_timestamp("2026-02-23T08:30:00").tzinfo == UTC

    @pytest.mark.parametrize("value", ["bad", "", None, 12345, "2026-13-01T00:00:00Z"])
    def test_unparseable_returns_none(self, value):
        assert parse_timestamp(value) is None


class TestStartOfDay:
    def test_truncates_in_viewer_zone_not_utc(self):
        # 03:00 UTC is still the previous evening in New York
        instant = datetime(2026, 2, 24, 3, 0, tzinfo=UTC)
        local = start_of_day(instant, NEW_YORK_WINTER)
        assert day_key(local) == "2026-02-23"
        assert (local.hour, local.minute) == (0, 0)
        assert local.utcoffset() == timedelta(hours=-5)

    def test_same_instant_different_viewers(self):
        instant = datetime(2026, 2, 23, 20, 0, tzinfo=UTC)
        assert day_key(start_of_day(instant, UTC)) == "2026-02-23"
        assert day_key(start_of_day(instant, TOKYO)) == "2026-02-24"

    def test_local_zone_default(self):
        instant = datetime(2026, 2, 23, 12, 0, tzinfo=UTC)
        local = start_of_day(instant)
        assert local.tzinfo is not None
        assert (local.hour, local.minute, local.second) == (0, 0, 0)


class TestDayKeyAndLabel:
    def test_day_key_zero_pads(self):
        assert day_key(date(2026, 3, 5)) == "2026-03-05"

    def test_english_label(self):
        assert day_label(date(2026, 2, 23), "en") == "Mon, 02/23"

    def test_polish_label(self):
        assert day_label(date(2026, 2, 23), "pl") == "pon., 23.02"

    def test_regional_locale(self):
        assert day_label(date(2026, 2, 22), "en-US") == "Sun, 02/22"


class TestLastDays:
    def test_seven_days_oldest_first(self):
        now = datetime(2026, 2, 24, 12, 0, tzinfo=UTC)
        days = last_days(now, 7, UTC)
        assert [day_key(d) for d in days] == [
            "2026-02-18",
            "2026-02-19",
            "2026-02-20",
            "2026-02-21",
            "2026-02-22",
            "2026-02-23",
            "2026-02-24",
        ]

    def test_crosses_month_boundary(self):
        now = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)
        assert day_key(last_days(now, 7, UTC)[0]) == "2026-02-24"

    def test_naive_now_read_as_utc(self):
        assert resolve_now(datetime(2026, 2, 24)).tzinfo == UTC


class TestWordCloudWindowRange:
    NOW = datetime(2026, 2, 24, 12, 0, tzinfo=UTC)

    def test_today(self):
        assert word_cloud_window_range("today", self.NOW, UTC) == (
            "2026-02-24T00:00:00.000Z",
            "2026-02-24T12:00:00.000Z",
        )

    def test_week(self):
        assert word_cloud_window_range("week", self.NOW, UTC)[0] == "2026-02-18T00:00:00.000Z"

    def test_month(self):
        assert word_cloud_window_range("month", self.NOW, UTC)[0] == "2026-01-26T00:00:00.000Z"

    def test_all_time(self):
        assert word_cloud_window_range("all-time", self.NOW, UTC)[0] == "1970-01-01T00:00:00.000Z"

    def test_lower_bound_uses_viewer_midnight(self):
        from_iso, _ = word_cloud_window_range("today", self.NOW, TOKYO)
        assert from_iso == "2026-02-23T15:00:00.000Z"

    def test_unknown_window(self):
        with pytest.raises(ValueError):
            word_cloud_window_range("year", self.NOW, UTC)
