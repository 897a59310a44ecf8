"""Dashboard overview: headline counts and averages over all journeys."""

import logging
from collections import Counter
from typing import Any

import polars as pl

from journey_canon.codebook.demographics import AgeCategory
from journey_canon.codebook.satisfaction import satisfaction_score
from journey_canon.normalize import age_category

from .configs import AnalyticsConfig
from .decoration import step
from .utils import (
    DAY_NAMES,
    format_hour,
    haversine_distance,
    hourly_counts,
    round_half_up,
    with_local_time,
)
from .zones import ZoneGazetteer

logger = logging.getLogger(__name__)

UNKNOWN_GENDER = "unknown"


def _tally(
    values: list[str | None],
    placeholder: str,
    count_defaulted: bool,
) -> dict[str, int]:
    if count_defaulted:
        values = [v if v is not None else placeholder for v in values]
    return dict(Counter(v for v in values if v is not None))


def journey_distance(
    distance: float | None,
    start_lat: float | None,
    start_lng: float | None,
    end_lat: float | None,
    end_lng: float | None,
) -> float:
    """Recorded distance when positive, else great-circle distance.

    Returns 0 when there is neither a recorded distance nor a full set of
    non-zero endpoint coordinates.
    """
    if distance is not None and distance > 0:
        return distance
    if not (start_lat and start_lng and end_lat and end_lng):
        return 0.0
    return haversine_distance(start_lat, start_lng, end_lat, end_lng)


def journey_overview(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
    gazetteer: ZoneGazetteer | None = None,
) -> dict[str, Any]:
    """Headline figures for the dashboard.

    Args:
        journeys: Canonical journey frame
        config: Analytics configuration (defaults policy)
        gazetteer: Zone gazetteer used to name start and end cities

    Returns:
        Dict with total_journeys, unique_users, age_groups (young, middle,
        senior), gender_distribution (raw labels), transport_counts,
        purpose_counts, start_cities, end_cities, avg_distance (km, two
        decimals), avg_duration (minutes) and avg_satisfaction (one decimal)
    """
    config = config or AnalyticsConfig()
    gazetteer = gazetteer or ZoneGazetteer.from_config(config)
    defaults = config.defaults

    ages = journeys["age"].to_list()
    if not defaults.count_defaulted:
        ages = [age for age in ages if age is not None]
    age_counts = Counter(age_category(age or defaults.age) for age in ages)

    start_cities = Counter(
        gazetteer.city_for_address(address)
        for address in journeys["start_address"].drop_nulls()
    )
    end_cities = Counter(
        gazetteer.city_for_address(address)
        for address in journeys["end_address"].drop_nulls()
    )

    distances = [
        journey_distance(*row)
        for row in journeys.select(
            "distance", "start_lat", "start_lng", "end_lat", "end_lng"
        ).iter_rows()
    ]
    distances = [d for d in distances if d > 0]

    durations = [d for d in journeys["duration"].drop_nulls() if d > 0]

    scores = [
        score
        for score in map(satisfaction_score, journeys["satisfaction"])
        if score is not None
    ]

    return {
        "total_journeys": len(journeys),
        "unique_users": journeys["user_id"].drop_nulls().n_unique(),
        "age_groups": {
            str(category): age_counts.get(category, 0)
            for category in AgeCategory
        },
        "gender_distribution": _tally(
            journeys["gender"].to_list(),
            UNKNOWN_GENDER,
            defaults.count_defaulted,
        ),
        "transport_counts": _tally(
            journeys["transport_mode"].to_list(),
            defaults.transport_mode,
            defaults.count_defaulted,
        ),
        "purpose_counts": _tally(
            journeys["journey_purpose"].to_list(),
            defaults.journey_purpose,
            defaults.count_defaulted,
        ),
        "start_cities": dict(start_cities),
        "end_cities": dict(end_cities),
        "avg_distance": (
            round_half_up(sum(distances) / len(distances), 2)
            if distances
            else 0.0
        ),
        "avg_duration": (
            int(round_half_up(sum(durations) / len(durations)))
            if durations
            else 0
        ),
        "avg_satisfaction": (
            round_half_up(sum(scores) / len(scores), 1) if scores else 0.0
        ),
    }


def hourly_traffic(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Trips per hour of day for the traffic line chart."""
    config = config or AnalyticsConfig()
    counts = hourly_counts(journeys, config.timezone)
    return pl.DataFrame(
        {
            "hour": [format_hour(h) for h in range(24)],
            "hour_num": list(range(24)),
            "traffic": counts,
        },
        schema={"hour": pl.String, "hour_num": pl.Int64, "traffic": pl.Int64},
    )


def daily_trips(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Trips and distinct riders per weekday (Mon to Sun)."""
    config = config or AnalyticsConfig()
    per_day = (
        with_local_time(journeys, config.timezone)
        .filter(pl.col("day_index").is_not_null())
        .group_by("day_index")
        .agg(
            pl.len().cast(pl.Int64).alias("trips"),
            pl.col("user_id").drop_nulls().n_unique().cast(pl.Int64)
            .alias("users"),
        )
    )
    days = pl.DataFrame(
        {"day": DAY_NAMES, "day_index": list(range(len(DAY_NAMES)))},
        schema={"day": pl.String, "day_index": pl.Int64},
    )
    return (
        days.join(per_day, on="day_index", how="left")
        .sort("day_index")
        .with_columns(
            pl.col("trips").fill_null(0),
            pl.col("users").fill_null(0),
        )
    )


@step()
def summarize_dashboard(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
    gazetteer: ZoneGazetteer | None = None,
) -> dict[str, Any]:
    """Build the dashboard overview and traffic tables."""
    overview = journey_overview(journeys, config, gazetteer)
    logger.info(
        "Dashboard: %d journeys from %d users",
        overview["total_journeys"],
        overview["unique_users"],
    )
    return {
        "dashboard_overview": overview,
        "hourly_traffic": hourly_traffic(journeys, config),
        "daily_trips": daily_trips(journeys, config),
    }
