"""Utility functions shared by the aggregation modules."""

import logging
import math

import polars as pl

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round half away from negative infinity, like JavaScript Math.round.

    Python's round() uses banker's rounding, so round(2.5) == 2. Shares and
    intensities are reported with halves rounded up instead.
    """
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def percentage(count: int, total: int, ndigits: int = 1) -> float:
    """Return count as a percentage of total, 0 when total is 0."""
    if total <= 0:
        return 0.0
    return round_half_up(count / total * 100, ndigits)


def format_hour(hour: int) -> str:
    """Format an hour of day as HH:00."""
    return f"{hour:02d}:00"


def haversine_distance(
    lat1: float | None,
    lng1: float | None,
    lat2: float | None,
    lng2: float | None,
) -> float:
    """Great-circle distance in kilometres between two points.

    Returns 0 when any coordinate is missing.
    """
    if lat1 is None or lng1 is None or lat2 is None or lng2 is None:
        return 0.0

    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def expr_haversine(
    lat1: pl.Expr,
    lon1: pl.Expr,
    lat2: pl.Expr,
    lon2: pl.Expr,
    units: str = "kilometers",
) -> pl.Expr:
    """Return a Polars expression for Haversine distance.

    Rows with a null coordinate evaluate to 0.
    """
    r = EARTH_RADIUS_KM * 1000.0  # meters
    dlat = lat2.radians() - lat1.radians()
    dlon = lon2.radians() - lon1.radians()
    a = (dlat / 2).sin().pow(
        2
    ) + lat1.radians().cos() * lat2.radians().cos() * (dlon / 2).sin().pow(2)

    distance = 2 * r * a.sqrt().arcsin()

    if units in ["kilometers", "km"]:
        distance = distance / 1000.0
    elif units in ["miles", "mi"]:
        distance = distance / 1609.344

    return distance.fill_null(0.0)


def with_local_time(
    journeys: pl.DataFrame,
    timezone: str = "UTC",
) -> pl.DataFrame:
    """Add ``hour`` and ``day_index`` (0 = Monday) columns in a local zone.

    Timestamps are stored as naive UTC. Rows without a timestamp get null
    hour and day_index.
    """
    local = (
        pl.col("timestamp")
        .dt.replace_time_zone("UTC")
        .dt.convert_time_zone(timezone)
    )
    return journeys.with_columns(
        local.dt.hour().cast(pl.Int64).alias("hour"),
        (local.dt.weekday().cast(pl.Int64) - 1).alias("day_index"),
    )


def hourly_counts(
    journeys: pl.DataFrame,
    timezone: str = "UTC",
) -> list[int]:
    """Trips per hour of day (24 buckets) for timestamped journeys."""
    counts = [0] * 24
    hours = (
        with_local_time(journeys, timezone)
        .filter(pl.col("hour").is_not_null())
        .group_by("hour")
        .agg(pl.len().cast(pl.Int64).alias("trips"))
    )
    for hour, trips in hours.iter_rows():
        counts[hour] = trips
    return counts


def count_labels(
    values: pl.Series,
) -> list[tuple[str, int]]:
    """Tally labels, sorted by count descending then label ascending."""
    counts = (
        values.to_frame("label")
        .group_by("label")
        .agg(pl.len().cast(pl.Int64).alias("trips"))
        .sort(["trips", "label"], descending=[True, False])
    )
    return list(counts.iter_rows())
