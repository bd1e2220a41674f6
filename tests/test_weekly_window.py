"""Tests for weekly window evaluation and the idempotency guard."""

from datetime import datetime, timedelta, timezone

import pytest

from weekly_window import PT, is_in_weekly_window, local_time, should_run, window_id


class TestIsInWeeklyWindow:
    @pytest.mark.parametrize("minute", [0, 1, 5, 9, 10])
    def test_inside_window(self, minute):
        assert is_in_weekly_window(datetime(2026, 10, 18, 16, minute, tzinfo=PT))

    @pytest.mark.parametrize(
        "when",
        [
            datetime(2026, 10, 18, 16, 11, tzinfo=PT),  # past the window
            datetime(2026, 10, 18, 15, 59, tzinfo=PT),  # just before
            datetime(2026, 10, 18, 17, 0, tzinfo=PT),   # next hour
            datetime(2026, 10, 17, 16, 5, tzinfo=PT),   # Saturday
            datetime(2026, 10, 19, 16, 5, tzinfo=PT),   # Monday
        ],
    )
    def test_outside_window(self, when):
        assert not is_in_weekly_window(when)

    def test_no_instant_outside_the_window_matches(self):
        start = datetime(2026, 10, 12, 0, 0, tzinfo=PT)
        hits = []
        for i in range(7 * 24 * 60):
            when = start + timedelta(minutes=i)
            if is_in_weekly_window(when):
                hits.append(when)
        assert len(hits) == 11
        assert all(h.weekday() == 6 and h.hour == 16 and h.minute <= 10 for h in hits)

    def test_custom_window(self):
        wednesday_9pm = datetime(2026, 10, 21, 21, 2, tzinfo=PT)
        assert is_in_weekly_window(wednesday_9pm, weekday=2, start_hour=21, window_minutes=5)
        assert not is_in_weekly_window(wednesday_9pm, weekday=2, start_hour=21, window_minutes=1)

    def test_follows_daylight_saving(self):
        # 16:00 Pacific is 23:00 UTC in summer but 00:00 UTC (next day) in winter
        summer = datetime(2026, 10, 18, 23, 0, tzinfo=timezone.utc)
        winter = datetime(2026, 1, 19, 0, 0, tzinfo=timezone.utc)
        winter_wrong = datetime(2026, 1, 18, 23, 0, tzinfo=timezone.utc)

        assert is_in_weekly_window(summer)
        assert is_in_weekly_window(winter)
        assert not is_in_weekly_window(winter_wrong)

    def test_naive_datetime_is_utc(self):
        assert is_in_weekly_window(datetime(2026, 10, 18, 23, 4))

    def test_timezone_by_name(self):
        when = datetime(2026, 10, 18, 19, 5, tzinfo=timezone.utc)  # 3:05pm ET
        assert is_in_weekly_window(when, "America/New_York", start_hour=15)


class TestWindowId:
    def test_format(self):
        when = datetime(2026, 10, 18, 16, 7, tzinfo=PT)
        assert window_id("auto-auction", when) == "auto-auction-2026-10-18-1600PT"

    def test_stable_within_window(self):
        first = datetime(2026, 10, 18, 16, 0, tzinfo=PT)
        last = datetime(2026, 10, 18, 16, 10, 59, tzinfo=PT)
        assert window_id("auto-weekly", first) == window_id("auto-weekly", last)

    def test_differs_a_week_apart(self):
        this_week = datetime(2026, 10, 18, 16, 2, tzinfo=PT)
        next_week = this_week + timedelta(days=7)
        assert window_id("auto-weekly", this_week) != window_id("auto-weekly", next_week)

    def test_uses_local_date(self):
        # 00:05 UTC Monday is still Sunday afternoon in Pacific winter time
        when = datetime(2026, 1, 19, 0, 5, tzinfo=timezone.utc)
        assert local_time(when).day == 18
        assert window_id("auto-weekly", when) == "auto-weekly-2026-01-18-1600PT"

    def test_zero_padded_fields(self):
        when = datetime(2026, 3, 1, 9, 4, tzinfo=PT)
        assert window_id("p", when) == "p-2026-03-01-0900PT"


class TestShouldRun:
    def test_same_marker_does_not_run(self):
        assert not should_run("auto-auction-2026-10-18-1600PT", "auto-auction-2026-10-18-1600PT")

    def test_new_window_runs(self):
        assert should_run("auto-auction-2026-10-11-1600PT", "auto-auction-2026-10-18-1600PT")

    def test_no_marker_runs(self):
        assert should_run(None, "auto-auction-2026-10-18-1600PT")
