"""Geospatial heatmap points and coordinate-level flows."""

import logging
import random
from typing import Any

import polars as pl

from .configs import AnalyticsConfig
from .decoration import step
from .utils import expr_haversine, with_local_time

logger = logging.getLogger(__name__)

HEATMAP_SCHEMA = {
    "lat": pl.Float64,
    "lng": pl.Float64,
    "trips": pl.Int64,
    "origins": pl.Int64,
    "destinations": pl.Int64,
    "users": pl.Int64,
    "intensity": pl.Float64,
}

JITTER_RANGE = (0.7, 1.3)
FLOW_KEYS = ["origin_lat", "origin_lng", "dest_lat", "dest_lng", "hour"]


def _valid(column: str) -> pl.Expr:
    return pl.col(column).is_not_null() & (pl.col(column) != 0)


def with_valid_endpoints(journeys: pl.DataFrame) -> pl.DataFrame:
    """Journeys with all four endpoint coordinates present and non-zero."""
    return journeys.filter(
        _valid("start_lat")
        & _valid("start_lng")
        & _valid("end_lat")
        & _valid("end_lng")
    )


def heatmap_points(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Trip endpoints aggregated into heatmap points.

    Only journeys with valid start and end coordinates contribute; each
    emits an origin point and a destination point. Points are grouped on
    coordinates rounded to ``config.heatmap_precision`` decimals.

    Args:
        journeys: Canonical journey frame
        config: Analytics configuration (precision, jitter)

    Returns:
        DataFrame with lat, lng, trips, origins, destinations, users
        (distinct known riders) and intensity, sorted by trips descending.
        Intensity equals trips unless jitter is enabled, in which case it is
        trips scaled by a random factor in [0.7, 1.3].
    """
    config = config or AnalyticsConfig()
    precision = config.heatmap_precision
    valid = with_valid_endpoints(journeys)

    def endpoints(prefix: str, kind: str) -> pl.DataFrame:
        return valid.select(
            pl.col(f"{prefix}_lat").round(precision).alias("lat"),
            pl.col(f"{prefix}_lng").round(precision).alias("lng"),
            pl.col("user_id"),
            pl.lit(kind).alias("kind"),
        )

    points = (
        pl.concat(
            [endpoints("start", "origin"), endpoints("end", "destination")]
        )
        .group_by(["lat", "lng"])
        .agg(
            pl.len().cast(pl.Int64).alias("trips"),
            (pl.col("kind") == "origin").sum().cast(pl.Int64).alias("origins"),
            (pl.col("kind") == "destination")
            .sum()
            .cast(pl.Int64)
            .alias("destinations"),
            pl.col("user_id").drop_nulls().n_unique().cast(pl.Int64)
            .alias("users"),
        )
        .sort(["trips", "lat", "lng"], descending=[True, False, False])
    )

    if config.heatmap_jitter:
        rng = random.Random(config.heatmap_seed)  # noqa: S311
        intensity = pl.Series(
            [trips * rng.uniform(*JITTER_RANGE) for trips in points["trips"]],
            dtype=pl.Float64,
        )
    else:
        intensity = points["trips"].cast(pl.Float64)

    return points.with_columns(intensity.alias("intensity")).select(
        list(HEATMAP_SCHEMA)
    )


def od_flows(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
    min_trips: int = 1,
) -> pl.DataFrame:
    """Coordinate-level origin-destination flows by hour of departure.

    Journeys with valid endpoints are grouped on rounded origin and
    destination coordinates plus local departure hour (null when the
    journey has no timestamp).

    Returns:
        DataFrame with origin_lat, origin_lng, dest_lat, dest_lng, hour,
        trips, users and distance_km (great-circle), keeping flows with at
        least ``min_trips`` trips
    """
    config = config or AnalyticsConfig()
    precision = config.heatmap_precision
    valid = with_local_time(with_valid_endpoints(journeys), config.timezone)

    return (
        valid.select(
            pl.col("start_lat").round(precision).alias("origin_lat"),
            pl.col("start_lng").round(precision).alias("origin_lng"),
            pl.col("end_lat").round(precision).alias("dest_lat"),
            pl.col("end_lng").round(precision).alias("dest_lng"),
            pl.col("hour"),
            pl.col("user_id"),
        )
        .group_by(FLOW_KEYS)
        .agg(
            pl.len().cast(pl.Int64).alias("trips"),
            pl.col("user_id").drop_nulls().n_unique().cast(pl.Int64)
            .alias("users"),
        )
        .filter(pl.col("trips") >= min_trips)
        .with_columns(
            expr_haversine(
                pl.col("origin_lat"),
                pl.col("origin_lng"),
                pl.col("dest_lat"),
                pl.col("dest_lng"),
                units="km",
            ).alias("distance_km")
        )
        .sort(
            ["trips", *FLOW_KEYS],
            descending=[True, False, False, False, False, False],
            nulls_last=True,
        )
    )


@step()
def summarize_geospatial(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> dict[str, Any]:
    """Build the heatmap points and coordinate flows."""
    n_valid = len(with_valid_endpoints(journeys))
    n_skipped = len(journeys) - n_valid
    if n_skipped:
        logger.info(
            "%d of %d journeys lack valid start/end coordinates, skipped",
            n_skipped,
            len(journeys),
        )

    points = heatmap_points(journeys, config)
    logger.info("Built %d heatmap points", len(points))
    return {
        "heatmap_points": points,
        "od_flows": od_flows(journeys, config),
        "geospatial_summary": {
            "total_points": len(points),
            "journeys_with_coordinates": n_valid,
            "journeys_skipped": n_skipped,
        },
    }
