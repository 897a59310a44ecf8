"""Temporal patterns: weekly heatmap, peak hours and rush hour metrics.

Hours and weekdays are taken from the trip timestamp converted to the
configured timezone. Journeys without a timestamp are left out of every
table here but still count in ``temporal_metrics()["total_trips"]``.
"""

import logging
from typing import Any

import polars as pl

from .configs import AnalyticsConfig
from .decoration import step
from .utils import (
    DAY_NAMES,
    format_hour,
    hourly_counts,
    round_half_up,
    with_local_time,
)

logger = logging.getLogger(__name__)

HOURS = list(range(24))
WEEKEND_DAY_INDEXES = [5, 6]


def _timestamped(
    journeys: pl.DataFrame, config: AnalyticsConfig
) -> pl.DataFrame:
    return with_local_time(journeys, config.timezone).filter(
        pl.col("hour").is_not_null()
    )


def _hour_frame() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "hour": [format_hour(h) for h in HOURS],
            "hour_num": HOURS,
        },
        schema={"hour": pl.String, "hour_num": pl.Int64},
    )


def temporal_heatmap(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Trips per weekday and hour over a full 7 x 24 grid.

    Args:
        journeys: Canonical journey frame
        config: Analytics configuration (timezone)

    Returns:
        168 rows (Monday 00:00 first) with day, hour, day_index, trips and
        intensity, the cell's trips as a rounded percentage of the busiest
        cell (0 for an empty grid)
    """
    config = config or AnalyticsConfig()
    counts = (
        _timestamped(journeys, config)
        .group_by(["day_index", "hour"])
        .agg(pl.len().cast(pl.Int64).alias("trips"))
    )

    grid = pl.DataFrame(
        {
            "day": [day for day in DAY_NAMES for _ in HOURS],
            "day_index": [i for i in range(len(DAY_NAMES)) for _ in HOURS],
            "hour": HOURS * len(DAY_NAMES),
        },
        schema={"day": pl.String, "day_index": pl.Int64, "hour": pl.Int64},
    )

    heatmap = (
        grid.join(counts, on=["day_index", "hour"], how="left")
        .with_columns(pl.col("trips").fill_null(0))
        .sort(["day_index", "hour"])
    )

    max_trips = heatmap["trips"].max() or 0
    if max_trips > 0:
        intensity = (
            (pl.col("trips") / max_trips * 100 + 0.5).floor().cast(pl.Int64)
        )
    else:
        intensity = pl.lit(0, dtype=pl.Int64)

    return heatmap.with_columns(intensity.alias("intensity"))


def peak_hours(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Trips and average duration for each hour of the day.

    The average covers positive durations only and is rounded to whole
    minutes. Hours without any duration report
    ``config.default_avg_duration``.
    """
    config = config or AnalyticsConfig()
    per_hour = (
        _timestamped(journeys, config)
        .group_by("hour")
        .agg(
            pl.len().cast(pl.Int64).alias("trips"),
            pl.col("duration")
            .filter(pl.col("duration") > 0)
            .mean()
            .alias("mean_duration"),
        )
        .rename({"hour": "hour_num"})
    )

    return (
        _hour_frame()
        .join(per_hour, on="hour_num", how="left")
        .sort("hour_num")
        .with_columns(
            pl.col("trips").fill_null(0),
            pl.when(pl.col("mean_duration").is_not_null())
            .then((pl.col("mean_duration") + 0.5).floor())
            .otherwise(config.default_avg_duration)
            .cast(pl.Int64)
            .alias("avg_duration"),
        )
        .drop("mean_duration")
    )


def weekday_weekend(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Trips per hour split into weekdays and weekends (Sat/Sun)."""
    config = config or AnalyticsConfig()
    per_hour = (
        _timestamped(journeys, config)
        .with_columns(
            pl.col("day_index").is_in(WEEKEND_DAY_INDEXES).alias("is_weekend")
        )
        .group_by("hour")
        .agg(
            (~pl.col("is_weekend")).sum().cast(pl.Int64).alias("weekday"),
            pl.col("is_weekend").sum().cast(pl.Int64).alias("weekend"),
        )
        .rename({"hour": "hour_num"})
    )

    return (
        _hour_frame()
        .join(per_hour, on="hour_num", how="left")
        .sort("hour_num")
        .with_columns(
            pl.col("weekday").fill_null(0),
            pl.col("weekend").fill_null(0),
        )
    )


def hourly_distribution(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Trips per hour of the day (24 rows)."""
    config = config or AnalyticsConfig()
    counts = hourly_counts(journeys, config.timezone)
    return pl.DataFrame(
        {"hour_num": HOURS, "trips": counts},
        schema={"hour_num": pl.Int64, "trips": pl.Int64},
    )


def rush_hour_impact(
    counts: list[int],
    rush_hours: set[int],
    off_peak_divisor: int | None = None,
) -> int:
    """Percent by which the average rush hour exceeds the off-peak hour.

    Both averages are taken over the number of hours actually in each set,
    unless ``off_peak_divisor`` fixes the off-peak denominator. Returns 0
    when there are no off-peak trips.
    """
    rush = [counts[h] for h in HOURS if h in rush_hours]
    off_peak = [counts[h] for h in HOURS if h not in rush_hours]
    if not rush or not off_peak:
        return 0

    off_peak_avg = sum(off_peak) / (off_peak_divisor or len(off_peak))
    if off_peak_avg == 0:
        return 0
    rush_avg = sum(rush) / len(rush)
    return int(round_half_up((rush_avg / off_peak_avg - 1) * 100))


def temporal_metrics(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> dict[str, Any]:
    """Headline temporal metrics.

    Returns:
        Dict with total_trips (all journeys, timestamped or not), peak_hour
        (HH:00, earliest hour on ties, config.default_peak_hour
        when no journey has a timestamp), peak_hour_trips, avg_duration
        (rounded mean of positive durations, 0 if none) and
        rush_hour_impact (percent)
    """
    config = config or AnalyticsConfig()
    counts = hourly_counts(journeys, config.timezone)

    peak_trips = max(counts)
    # No timestamped journeys: report the configured default peak
    peak = counts.index(peak_trips) if peak_trips else config.default_peak_hour

    durations = journeys["duration"].drop_nulls()
    durations = durations.filter(durations > 0)
    avg_duration = (
        int(round_half_up(durations.mean())) if len(durations) > 0 else 0
    )

    return {
        "total_trips": len(journeys),
        "peak_hour": format_hour(peak),
        "peak_hour_trips": peak_trips,
        "avg_duration": avg_duration,
        "rush_hour_impact": rush_hour_impact(
            counts, config.rush_hours, config.off_peak_divisor
        ),
    }


@step()
def summarize_temporal(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> dict[str, Any]:
    """Build the temporal tables and headline metrics."""
    logger.info("Summarizing temporal patterns for %d journeys", len(journeys))
    n_untimed = journeys["timestamp"].null_count()
    if n_untimed:
        logger.info(
            "%d journeys without timestamp left out of temporal tables",
            n_untimed,
        )

    metrics = temporal_metrics(journeys, config)
    logger.info(
        "Peak hour %s with %d trips",
        metrics["peak_hour"],
        metrics["peak_hour_trips"],
    )
    return {
        "temporal_heatmap": temporal_heatmap(journeys, config),
        "peak_hours": peak_hours(journeys, config),
        "weekday_weekend": weekday_weekend(journeys, config),
        "hourly_distribution": hourly_distribution(journeys, config),
        "temporal_metrics": metrics,
    }
