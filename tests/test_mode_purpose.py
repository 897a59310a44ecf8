"""Tests for share tables and shared aggregation helpers."""

import math

from journey_analytics import (
    AnalyticsConfig,
    mode_share,
    purpose_share,
    satisfaction_share,
    summarize_mode_purpose,
)
from journey_analytics.configs import DefaultsPolicy
from journey_analytics.utils import percentage, round_half_up
from journey_canon import empty_journey_frame
from tests.fixtures import create_journey_record, journeys_frame


class TestRounding:
    """Half-up rounding used for reported percentages."""

    def test_half_rounds_up(self):
        """2.5 rounds to 3, unlike round()."""
        assert round_half_up(2.5) == 3
        assert round_half_up(0.125, 2) == 0.13

    def test_percentage(self):
        """Percentages have one decimal and 0 for an empty total."""
        assert percentage(2, 3) == 66.7
        assert percentage(1, 3) == 33.3
        assert percentage(1, 0) == 0.0


class TestModeShare:
    """Share of trips by transport mode."""

    def test_bus_bus_metro(self):
        """[Bus, Bus, Metro] gives Bus 2 (66.7%) and Metro 1 (33.3%)."""
        df = journeys_frame(
            create_journey_record(transport_mode="Bus"),
            create_journey_record(transport_mode="Bus"),
            create_journey_record(transport_mode="Metro"),
        )
        result = mode_share(df)

        assert result["mode"].to_list() == ["Bus", "Metro"]
        assert result["trips"].to_list() == [2, 1]
        assert result["percentage"].to_list() == [66.7, 33.3]
        assert result["color"][0] == "#10b981"

    def test_percentages_sum_to_100(self):
        """Shares of a breakdown sum to 100 within rounding."""
        modes = ["Bus", "Metro", "Car", "Walking", "Bus", "Train", "Bike"]
        df = journeys_frame(
            *[create_journey_record(transport_mode=m) for m in modes]
        )
        total = mode_share(df)["percentage"].sum()
        assert math.isclose(total, 100, abs_tol=0.1 * len(set(modes)))

    def test_missing_mode_counted_as_unknown(self):
        """A record without a mode is counted under the placeholder."""
        df = journeys_frame(
            create_journey_record(transport_mode="Bus"),
            create_journey_record(transport_mode=None),
        )
        result = mode_share(df)
        assert sorted(result["mode"].to_list()) == ["Bus", "Unknown"]
        assert result["percentage"].to_list() == [50.0, 50.0]

    def test_missing_mode_dropped_when_not_counting_defaults(self):
        """With count_defaulted off, missing modes leave the denominator."""
        config = AnalyticsConfig(
            defaults=DefaultsPolicy(count_defaulted=False)
        )
        df = journeys_frame(
            create_journey_record(transport_mode="Bus"),
            create_journey_record(transport_mode=None),
        )
        result = mode_share(df, config)
        assert result["mode"].to_list() == ["Bus"]
        assert result["percentage"].to_list() == [100.0]

    def test_ties_sorted_by_label(self):
        """Equal counts are ordered alphabetically."""
        df = journeys_frame(
            create_journey_record(transport_mode="Metro"),
            create_journey_record(transport_mode="Car"),
        )
        assert mode_share(df)["mode"].to_list() == ["Car", "Metro"]

    def test_empty(self):
        """Empty input gives an empty table."""
        result = mode_share(empty_journey_frame())
        assert result.is_empty()
        assert result.columns == ["mode", "trips", "percentage", "color"]

    def test_idempotent(self):
        """Running twice gives the same table."""
        df = journeys_frame(
            create_journey_record(transport_mode="Bus"),
            create_journey_record(transport_mode="Car"),
        )
        assert mode_share(df).equals(mode_share(df))


class TestPurposeAndSatisfaction:
    """Purpose and satisfaction shares."""

    def test_purpose_share(self):
        """Purposes are tallied like modes."""
        df = journeys_frame(
            create_journey_record(journey_purpose="Shopping"),
            create_journey_record(journey_purpose="Work/Office"),
            create_journey_record(journey_purpose="Work/Office"),
            create_journey_record(journey_purpose="Education"),
        )
        result = purpose_share(df)
        assert result["purpose"].to_list() == [
            "Work/Office",
            "Education",
            "Shopping",
        ]
        assert result["percentage"].to_list() == [50.0, 25.0, 25.0]

    def test_satisfaction_share_skips_unrated(self):
        """Unrated trips are left out and scores are attached."""
        df = journeys_frame(
            create_journey_record(satisfaction="Very Satisfied"),
            create_journey_record(satisfaction="Neutral"),
            create_journey_record(satisfaction=None),
        )
        result = satisfaction_share(df)
        assert result["trips"].sum() == 2
        scores = dict(
            zip(result["satisfaction"], result["score"], strict=True)
        )
        assert scores == {"Very Satisfied": 5.0, "Neutral": 3.0}

    def test_summarize_mode_purpose(self):
        """The step returns all three share tables."""
        df = journeys_frame(create_journey_record())
        result = summarize_mode_purpose(df)
        assert set(result) == {
            "mode_share",
            "purpose_share",
            "satisfaction_share",
        }
