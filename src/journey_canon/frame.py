"""Flattening of journey records into a typed polars frame."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import polars as pl

from .models import JourneyModel, LocationModel, parse_journeys

logger = logging.getLogger(__name__)

JOURNEY_SCHEMA: dict[str, pl.DataType] = {
    "journey_id": pl.String(),
    "user_id": pl.String(),
    "age": pl.Int64(),
    "gender": pl.String(),
    "occupation": pl.String(),
    "income": pl.String(),
    "transport_mode": pl.String(),
    "journey_purpose": pl.String(),
    "satisfaction": pl.String(),
    "time_of_day": pl.String(),
    "travel_companions": pl.String(),
    "timestamp": pl.Datetime("us"),
    "duration": pl.Float64(),
    "distance": pl.Float64(),
    "has_start": pl.Boolean(),
    "start_lat": pl.Float64(),
    "start_lng": pl.Float64(),
    "start_address": pl.String(),
    "has_end": pl.Boolean(),
    "end_lat": pl.Float64(),
    "end_lng": pl.Float64(),
    "end_address": pl.String(),
}


def _location_columns(
    prefix: str, location: LocationModel | None
) -> dict[str, Any]:
    if location is None:
        return {
            f"has_{prefix}": False,
            f"{prefix}_lat": None,
            f"{prefix}_lng": None,
            f"{prefix}_address": None,
        }
    return {
        f"has_{prefix}": True,
        f"{prefix}_lat": location.lat,
        f"{prefix}_lng": location.lng,
        f"{prefix}_address": location.address,
    }


def journey_to_row(journey: JourneyModel) -> dict[str, Any]:
    """Flatten one parsed journey into a row matching JOURNEY_SCHEMA."""
    trip = journey.trip_data
    return {
        "journey_id": journey.journey_id,
        "user_id": journey.user_id,
        "age": journey.age,
        "gender": journey.gender,
        "occupation": journey.occupation,
        "income": journey.income,
        "transport_mode": trip.transport_mode,
        "journey_purpose": trip.journey_purpose,
        "satisfaction": trip.satisfaction,
        "time_of_day": trip.time_of_day,
        "travel_companions": trip.travel_companions,
        "timestamp": trip.timestamp,
        "duration": trip.duration,
        "distance": trip.distance,
        **_location_columns("start", trip.start_location),
        **_location_columns("end", trip.end_location),
    }


def empty_journey_frame() -> pl.DataFrame:
    """Return an empty journey frame with the canonical schema."""
    return pl.DataFrame(schema=JOURNEY_SCHEMA)


def journeys_to_frame(
    records: Iterable[Mapping[str, Any] | JourneyModel | None],
) -> pl.DataFrame:
    """Parse raw journey records and flatten them into a polars DataFrame.

    Args:
        records: Raw journey records as returned by the API, or parsed
            JourneyModel instances

    Returns:
        DataFrame with one row per record and the JOURNEY_SCHEMA columns
    """
    rows = [journey_to_row(journey) for journey in parse_journeys(records)]
    if not rows:
        return empty_journey_frame()

    df = pl.DataFrame(rows, schema=JOURNEY_SCHEMA)
    logger.debug("Flattened %d journey records", len(df))
    return df
