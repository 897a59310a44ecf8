"""Origin-destination matrix and corridor analysis over gazetteer zones."""

import logging
from typing import Any

import polars as pl

from .configs import AnalyticsConfig
from .decoration import step
from .utils import DAY_NAMES, with_local_time
from .zones import ZoneGazetteer

logger = logging.getLogger(__name__)

ZONE_SCHEMA = {
    "zone_id": pl.String,
    "name": pl.String,
    "lat": pl.Float64,
    "lng": pl.Float64,
}
MATRIX_SCHEMA = {
    "origin": pl.String,
    "destination": pl.String,
    "trips": pl.Int64,
}


def assign_zones(
    journeys: pl.DataFrame,
    gazetteer: ZoneGazetteer | None = None,
) -> pl.DataFrame:
    """Add origin_zone and destination_zone columns.

    A zone is null when the journey has no start (or end) location object.
    """
    gazetteer = gazetteer or ZoneGazetteer.from_config(None)

    def locate(prefix: str) -> list[str | None]:
        locations = journeys.select(
            f"has_{prefix}",
            f"{prefix}_lat",
            f"{prefix}_lng",
            f"{prefix}_address",
        )
        return [
            gazetteer.locate(lat, lng, address).id if has_location else None
            for has_location, lat, lng, address in locations.iter_rows()
        ]

    return journeys.with_columns(
        pl.Series("origin_zone", locate("start"), dtype=pl.String),
        pl.Series("destination_zone", locate("end"), dtype=pl.String),
    )


def extract_zones(
    journeys: pl.DataFrame,
    gazetteer: ZoneGazetteer | None = None,
) -> pl.DataFrame:
    """Zones seen in the journeys, in order of first appearance.

    Each journey contributes its start zone then its end zone. The
    coordinates are those of the first location seen in the zone (0 when
    that location had none).
    """
    gazetteer = gazetteer or ZoneGazetteer.from_config(None)
    seen: dict[str, dict[str, Any]] = {}

    cols = [
        "has_start", "start_lat", "start_lng", "start_address",
        "has_end", "end_lat", "end_lng", "end_address",
    ]
    for row in journeys.select(cols).iter_rows():
        for has_location, lat, lng, address in (row[:4], row[4:]):
            if not has_location:
                continue
            zone = gazetteer.locate(lat, lng, address)
            if zone.id not in seen:
                seen[zone.id] = {
                    "zone_id": zone.id,
                    "name": zone.name,
                    "lat": lat or 0.0,
                    "lng": lng or 0.0,
                }

    return pl.DataFrame(list(seen.values()), schema=ZONE_SCHEMA)


def od_matrix(
    journeys: pl.DataFrame,
    gazetteer: ZoneGazetteer | None = None,
    zones: pl.DataFrame | None = None,
) -> pl.DataFrame:
    """Square origin-destination matrix in long form.

    Every (origin, destination) pair over the extracted zones is present,
    with zeros for pairs without trips, ordered origin-major in zone order.
    Only journeys with both location objects are counted.

    Args:
        journeys: Canonical journey frame
        gazetteer: Zone gazetteer (default: bundled)
        zones: Precomputed extract_zones() result

    Returns:
        DataFrame with origin, destination and trips
    """
    gazetteer = gazetteer or ZoneGazetteer.from_config(None)
    if zones is None:
        zones = extract_zones(journeys, gazetteer)

    zone_ids = zones["zone_id"].to_list()
    pairs = pl.DataFrame(
        {
            "origin": [o for o in zone_ids for _ in zone_ids],
            "destination": zone_ids * len(zone_ids),
            "order": list(range(len(zone_ids) ** 2)),
        },
        schema={
            "origin": pl.String,
            "destination": pl.String,
            "order": pl.Int64,
        },
    )

    counts = (
        assign_zones(journeys, gazetteer)
        .filter(pl.col("has_start") & pl.col("has_end"))
        .group_by(
            pl.col("origin_zone").alias("origin"),
            pl.col("destination_zone").alias("destination"),
        )
        .agg(pl.len().cast(pl.Int64).alias("trips"))
    )

    return (
        pairs.join(counts, on=["origin", "destination"], how="left")
        .sort("order")
        .with_columns(pl.col("trips").fill_null(0))
        .select(list(MATRIX_SCHEMA))
    )


def od_matrix_to_dict(matrix: pl.DataFrame) -> dict[str, dict[str, int]]:
    """Convert a long-form matrix to nested {origin: {destination: trips}}."""
    nested: dict[str, dict[str, int]] = {}
    for origin, destination, trips in matrix.select(
        list(MATRIX_SCHEMA)
    ).iter_rows():
        nested.setdefault(origin, {})[destination] = trips
    return nested


def top_corridors(
    matrix: pl.DataFrame,
    gazetteer: ZoneGazetteer | None = None,
    limit: int = 10,
) -> pl.DataFrame:
    """Busiest origin-destination pairs.

    Non-zero cells sorted by trips descending; ties keep matrix order.
    """
    gazetteer = gazetteer or ZoneGazetteer.from_config(None)
    corridors = (
        matrix.filter(pl.col("trips") > 0)
        .sort("trips", descending=True, maintain_order=True)
        .head(limit)
    )
    return corridors.with_columns(
        pl.col("origin")
        .map_elements(gazetteer.zone_name, return_dtype=pl.String)
        .alias("origin_name"),
        pl.col("destination")
        .map_elements(gazetteer.zone_name, return_dtype=pl.String)
        .alias("destination_name"),
    )


def corridor_analysis(
    journeys: pl.DataFrame,
    origin: str,
    destination: str,
    gazetteer: ZoneGazetteer | None = None,
    config: AnalyticsConfig | None = None,
) -> dict[str, pl.DataFrame]:
    """Mode mix and timing of the trips along one corridor.

    Trips in either direction between the two zones are included.

    Args:
        journeys: Canonical journey frame
        origin: Zone id at one end of the corridor
        destination: Zone id at the other end
        gazetteer: Zone gazetteer (default: bundled)
        config: Analytics configuration (timezone, defaults)

    Returns:
        Dict with mode_data (mode, trips), peak_hours (hour, trips; 24 rows)
        and daily_trips (day, trips; Mon to Sun)

    Raises:
        ValueError: If either zone id is unknown
    """
    config = config or AnalyticsConfig()
    gazetteer = gazetteer or ZoneGazetteer.from_config(config)
    gazetteer.zone(origin)
    gazetteer.zone(destination)

    corridor = (
        assign_zones(journeys, gazetteer)
        .filter(pl.col("has_start") & pl.col("has_end"))
        .filter(
            (
                (pl.col("origin_zone") == origin)
                & (pl.col("destination_zone") == destination)
            )
            | (
                (pl.col("origin_zone") == destination)
                & (pl.col("destination_zone") == origin)
            )
        )
    )
    logger.debug(
        "Corridor %s <-> %s has %d trips", origin, destination, len(corridor)
    )

    mode_data = (
        corridor.select(
            pl.col("transport_mode")
            .fill_null(config.defaults.transport_mode)
            .map_elements(_capitalize, return_dtype=pl.String)
            .alias("mode")
        )
        .group_by("mode")
        .agg(pl.len().cast(pl.Int64).alias("trips"))
        .sort(["trips", "mode"], descending=[True, False])
    )

    timed = with_local_time(corridor, config.timezone).filter(
        pl.col("hour").is_not_null()
    )
    hourly = dict(timed.group_by("hour").agg(pl.len()).iter_rows())
    daily = dict(timed.group_by("day_index").agg(pl.len()).iter_rows())

    peak_hours = pl.DataFrame(
        {
            "hour": list(range(24)),
            "trips": [hourly.get(h, 0) for h in range(24)],
        },
        schema={"hour": pl.Int64, "trips": pl.Int64},
    )
    daily_trips = pl.DataFrame(
        {
            "day": DAY_NAMES,
            "trips": [daily.get(i, 0) for i in range(len(DAY_NAMES))],
        },
        schema={"day": pl.String, "trips": pl.Int64},
    )

    return {
        "mode_data": mode_data,
        "peak_hours": peak_hours,
        "daily_trips": daily_trips,
    }


def _capitalize(label: str) -> str:
    return label[:1].upper() + label[1:]


@step()
def summarize_od_matrix(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
    gazetteer: ZoneGazetteer | None = None,
) -> dict[str, pl.DataFrame]:
    """Build the zone list, OD matrix and top corridors."""
    config = config or AnalyticsConfig()
    gazetteer = gazetteer or ZoneGazetteer.from_config(config)

    zones = extract_zones(journeys, gazetteer)
    matrix = od_matrix(journeys, gazetteer, zones)
    corridors = top_corridors(matrix, gazetteer, config.top_corridor_limit)
    logger.info(
        "OD matrix over %d zones, %d trips between zones",
        len(zones),
        matrix["trips"].sum(),
    )
    return {
        "zones": zones,
        "od_matrix": matrix,
        "top_corridors": corridors,
    }
