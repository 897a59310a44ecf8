"""Tests for temporal heatmap, peak hours and rush hour metrics."""

from datetime import UTC, datetime

import pytest

from journey_analytics import (
    AnalyticsConfig,
    hourly_distribution,
    peak_hours,
    rush_hour_impact,
    summarize_temporal,
    temporal_heatmap,
    temporal_metrics,
    weekday_weekend,
)
from journey_canon import empty_journey_frame
from tests.fixtures import create_journey_record, journeys_frame

MONDAY_8AM = datetime(2024, 1, 15, 8, 0, tzinfo=UTC)
SATURDAY_6PM = datetime(2024, 1, 20, 18, 0, tzinfo=UTC)


class TestTemporalHeatmap:
    """Trips per weekday and hour."""

    def test_always_168_rows(self):
        """The grid is complete even for empty input."""
        assert len(temporal_heatmap(empty_journey_frame())) == 168
        df = journeys_frame(create_journey_record())
        assert len(temporal_heatmap(df)) == 168

    def test_cell_counts_and_intensity(self):
        """Busiest cell has intensity 100; others are relative to it."""
        df = journeys_frame(
            create_journey_record(timestamp=MONDAY_8AM),
            create_journey_record(timestamp=MONDAY_8AM),
            create_journey_record(timestamp=SATURDAY_6PM),
        )
        heatmap = temporal_heatmap(df)

        monday = heatmap.filter(day="Mon", hour=8).row(0, named=True)
        assert monday["trips"] == 2
        assert monday["intensity"] == 100

        saturday = heatmap.filter(day="Sat", hour=18).row(0, named=True)
        assert saturday["day_index"] == 5
        assert saturday["trips"] == 1
        assert saturday["intensity"] == 50

        assert heatmap["trips"].sum() == 3

    def test_ordered_monday_first(self):
        """Rows run Monday 00:00 to Sunday 23:00."""
        heatmap = temporal_heatmap(empty_journey_frame())
        assert heatmap.row(0, named=True)["day"] == "Mon"
        assert heatmap.row(0, named=True)["hour"] == 0
        assert heatmap.row(167, named=True)["day"] == "Sun"
        assert heatmap.row(167, named=True)["hour"] == 23
        assert heatmap["intensity"].sum() == 0

    def test_missing_timestamp_excluded(self):
        """Untimed journeys are not placed on the grid."""
        df = journeys_frame(
            create_journey_record(timestamp=MONDAY_8AM),
            create_journey_record(timestamp=None),
        )
        assert temporal_heatmap(df)["trips"].sum() == 1

    def test_timezone(self):
        """Hours are reported in the configured timezone."""
        config = AnalyticsConfig(timezone="Asia/Kolkata")
        df = journeys_frame(create_journey_record(timestamp=MONDAY_8AM))
        heatmap = temporal_heatmap(df, config)
        # 08:00 UTC is 13:30 IST
        assert heatmap.filter(day="Mon", hour=13)["trips"].item() == 1


class TestPeakHours:
    """Trips and average duration per hour."""

    def test_average_duration(self):
        """Average covers positive durations, rounded half up."""
        df = journeys_frame(
            create_journey_record(timestamp=MONDAY_8AM, duration=20),
            create_journey_record(timestamp=MONDAY_8AM, duration=25),
            create_journey_record(timestamp=MONDAY_8AM, duration=0),
        )
        row = peak_hours(df).filter(hour_num=8).row(0, named=True)
        assert row["hour"] == "08:00"
        assert row["trips"] == 3
        assert row["avg_duration"] == 23

    def test_default_duration_for_empty_hours(self):
        """Hours without durations report the configured default."""
        result = peak_hours(empty_journey_frame())
        assert len(result) == 24
        assert set(result["avg_duration"].to_list()) == {25}
        assert result["trips"].sum() == 0


class TestWeekdayWeekend:
    """Weekday/weekend split per hour."""

    def test_split(self):
        """Saturday trips count as weekend."""
        df = journeys_frame(
            create_journey_record(timestamp=MONDAY_8AM),
            create_journey_record(timestamp=SATURDAY_6PM),
        )
        result = weekday_weekend(df)
        assert result.filter(hour_num=8)["weekday"].item() == 1
        assert result.filter(hour_num=8)["weekend"].item() == 0
        assert result.filter(hour_num=18)["weekend"].item() == 1
        assert len(result) == 24


class TestRushHourImpact:
    """Rush hour average over off-peak average."""

    def test_no_trips(self):
        """No off-peak trips gives 0."""
        assert rush_hour_impact([0] * 24, {7, 8, 9}) == 0

    def test_divides_by_actual_hour_counts(self):
        """Each average uses the number of hours in its set."""
        counts = [1] * 24
        for hour in (7, 8, 9, 17, 18, 19):
            counts[hour] = 3
        # Rush average 3, off-peak average 1
        rush_hours = AnalyticsConfig().rush_hours
        assert rush_hour_impact(counts, rush_hours) == 200

    def test_fixed_off_peak_divisor(self):
        """A fixed divisor reproduces the legacy 15-hour off-peak average."""
        counts = [1] * 24
        for hour in (7, 8, 9, 17, 18, 19):
            counts[hour] = 3
        rush_hours = AnalyticsConfig().rush_hours
        # Off-peak average 18 / 15 = 1.2
        assert rush_hour_impact(counts, rush_hours, 15) == 150

    def test_divisor_from_config(self):
        """temporal_metrics passes the configured divisor through."""
        df = journeys_frame(
            create_journey_record(timestamp=MONDAY_8AM),
            create_journey_record(
                timestamp=datetime(2024, 1, 15, 12, 0, tzinfo=UTC)
            ),
        )
        actual = temporal_metrics(df)
        legacy = temporal_metrics(df, AnalyticsConfig(off_peak_divisor=15))
        # Rush average 1/6; off-peak average 1/18 or 1/15
        assert actual["rush_hour_impact"] == 200
        assert legacy["rush_hour_impact"] == 150

    def test_invalid_rush_window(self):
        """Windows outside 0-23 are rejected."""
        with pytest.raises(ValueError, match="rush window"):
            AnalyticsConfig(rush_windows=[(20, 25)])


class TestTemporalMetrics:
    """Headline temporal metrics."""

    def test_metrics(self):
        """Totals include untimed journeys; peak is the busiest hour."""
        df = journeys_frame(
            create_journey_record(timestamp=MONDAY_8AM, duration=30),
            create_journey_record(timestamp=MONDAY_8AM, duration=40),
            create_journey_record(timestamp=SATURDAY_6PM, duration=None),
            create_journey_record(timestamp=None, duration=20),
        )
        metrics = temporal_metrics(df)
        assert metrics["total_trips"] == 4
        assert metrics["peak_hour"] == "08:00"
        assert metrics["peak_hour_trips"] == 2
        assert metrics["avg_duration"] == 30

    def test_empty(self):
        """Empty input gives zeroed metrics."""
        metrics = temporal_metrics(empty_journey_frame())
        assert metrics == {
            "total_trips": 0,
            "peak_hour": "08:00",
            "peak_hour_trips": 0,
            "avg_duration": 0,
            "rush_hour_impact": 0,
        }

    def test_default_peak_hour_without_timestamps(self):
        """Without timestamped journeys the configured peak is reported."""
        df = journeys_frame(create_journey_record(timestamp=None))
        config = AnalyticsConfig(default_peak_hour=17)
        metrics = temporal_metrics(df, config)
        assert metrics["peak_hour"] == "17:00"
        assert metrics["peak_hour_trips"] == 0

    def test_hourly_distribution(self):
        """24 rows with the trip count per hour."""
        df = journeys_frame(create_journey_record(timestamp=MONDAY_8AM))
        result = hourly_distribution(df)
        assert result["trips"].to_list()[8] == 1
        assert result["trips"].sum() == 1

    def test_summarize_temporal(self):
        """The step returns tables plus the metrics dict."""
        result = summarize_temporal(journeys_frame(create_journey_record()))
        assert len(result["temporal_heatmap"]) == 168
        assert isinstance(result["temporal_metrics"], dict)
