"""Repeated aggregation over one frame gives identical results.

Every function runs twice on the same journey frame. Both results must be
equal and the frame must be left untouched.
"""

from datetime import UTC, datetime

import polars as pl
import pytest

from journey_analytics import (
    age_groups,
    gender_distribution,
    heatmap_points,
    income_levels,
    journey_overview,
    mode_share,
    occupation_kpis,
    od_flows,
    od_matrix,
    peak_hours,
    purpose_share,
    satisfaction_share,
    temporal_heatmap,
    temporal_metrics,
    top_corridors,
    weekday_weekend,
)
from tests.fixtures import (
    INFOPARK,
    KOCHI,
    KOZHIKODE,
    TRIVANDRUM,
    create_journey_record,
    journeys_frame,
)

AGGREGATIONS = {
    "mode_share": mode_share,
    "purpose_share": purpose_share,
    "satisfaction_share": satisfaction_share,
    "temporal_heatmap": temporal_heatmap,
    "peak_hours": peak_hours,
    "weekday_weekend": weekday_weekend,
    "temporal_metrics": temporal_metrics,
    "heatmap_points": heatmap_points,
    "od_flows": od_flows,
    "od_matrix": od_matrix,
    "top_corridors": lambda df: top_corridors(od_matrix(df)),
    "occupation_kpis": occupation_kpis,
    "age_groups": age_groups,
    "income_levels": income_levels,
    "gender_distribution": gender_distribution,
    "journey_overview": journey_overview,
}


@pytest.fixture
def mixed_journeys():
    """Journeys with varied labels, times and missing fields."""
    return journeys_frame(
        create_journey_record(journey_id="T1"),
        create_journey_record(
            journey_id="T2",
            user_id="user-2",
            age=52,
            gender="Female",
            occupation="Student",
            income="High Income",
            transport_mode="Metro",
            journey_purpose="Education",
            satisfaction="Neutral",
            timestamp=datetime(2024, 1, 20, 18, 30, tzinfo=UTC),
            start=TRIVANDRUM,
            start_address="Technopark",
            end=KOCHI,
            end_address="Marine Drive, Kochi",
            distance=200.0,
        ),
        create_journey_record(
            journey_id="T3",
            user_id=None,
            age=None,
            gender=None,
            occupation=None,
            income=None,
            transport_mode=None,
            satisfaction=None,
            timestamp=None,
            start=KOZHIKODE,
            start_address=None,
            end=INFOPARK,
            duration=None,
        ),
        create_journey_record(
            journey_id="T4",
            transport_mode="Auto/Taxi",
            start=None,
            start_address=None,
        ),
    )


def same_result(first, second):
    """Compare frames with equals() and anything else with ==."""
    if isinstance(first, pl.DataFrame):
        return first.equals(second)
    return first == second


class TestIdempotence:
    """No hidden state between calls."""

    @pytest.mark.parametrize("name", sorted(AGGREGATIONS))
    def test_repeat_call_gives_same_result(self, name, mixed_journeys):
        """Two calls on the same frame return equal results."""
        aggregate = AGGREGATIONS[name]
        first = aggregate(mixed_journeys)
        second = aggregate(mixed_journeys)
        assert same_result(first, second)

    @pytest.mark.parametrize("name", sorted(AGGREGATIONS))
    def test_input_frame_not_mutated(self, name, mixed_journeys):
        """The journey frame is unchanged after aggregating."""
        before = mixed_journeys.clone()
        AGGREGATIONS[name](mixed_journeys)
        assert mixed_journeys.equals(before)
        assert mixed_journeys.schema == before.schema
