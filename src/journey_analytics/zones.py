"""Zone gazetteer: maps trip locations to named zones.

The gazetteer is loaded from a YAML file (the bundled ``kerala_zones.yaml``
unless a path is configured) and validated with Pydantic. Besides the zones
used by the OD matrix it carries the static equity zone and transport stop
layers shown next to the demographic breakdowns.
"""

import functools
import logging
from pathlib import Path

import polars as pl
import yaml
from pydantic import BaseModel, Field

from .configs import AnalyticsConfig

logger = logging.getLogger(__name__)

DEFAULT_GAZETTEER_PATH = Path(__file__).parent / "data" / "kerala_zones.yaml"


# Gazetteer Models ---------------------------------------------------------

class Bounds(BaseModel):
    """Inclusive latitude/longitude bounding box."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        """Check whether a point lies inside the box (edges included)."""
        return (
            self.min_lat <= lat <= self.max_lat
            and self.min_lng <= lng <= self.max_lng
        )


class Zone(BaseModel):
    """A named zone with address aliases and an optional bounding box."""

    id: str
    name: str
    aliases: list[str] = Field(default_factory=list)
    bounds: Bounds | None = None


class EquityZone(BaseModel):
    """Area flagged for limited public transport access."""

    id: int
    name: str
    coordinates: list[tuple[float, float]]
    avg_income: str
    public_transport_access: str
    issues: list[str] = Field(default_factory=list)
    population: int
    color: str


class TransportStop(BaseModel):
    """Major transport hub."""

    id: int
    name: str
    lat: float
    lng: float
    type: str


class GazetteerFile(BaseModel):
    """Top-level layout of a gazetteer YAML file."""

    default_zone: Zone
    zones: list[Zone]
    equity_zones: list[EquityZone] = Field(default_factory=list)
    transport_stops: list[TransportStop] = Field(default_factory=list)


# Gazetteer ----------------------------------------------------------------

class ZoneGazetteer:
    """Lookup of zones by address alias and coordinates."""

    def __init__(self, data: GazetteerFile) -> None:
        """Initialize the gazetteer from validated file contents."""
        self.data = data
        self.default_zone = data.default_zone
        self.zones = data.zones
        self._by_id = {zone.id: zone for zone in data.zones}
        self._by_id[data.default_zone.id] = data.default_zone
        # (casefolded alias, zone) in file order
        self._aliases = [
            (alias.casefold(), zone)
            for zone in data.zones
            for alias in zone.aliases
        ]

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> "ZoneGazetteer":
        """Load and validate a gazetteer YAML file.

        Args:
            path: YAML file (default: the bundled Kerala gazetteer)

        Returns:
            ZoneGazetteer instance
        """
        path = Path(path) if path is not None else DEFAULT_GAZETTEER_PATH
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)

        gazetteer = cls(GazetteerFile.model_validate(raw))
        logger.debug("Loaded %d zones from %s", len(gazetteer.zones), path)
        return gazetteer

    @classmethod
    def from_config(cls, config: AnalyticsConfig | None) -> "ZoneGazetteer":
        """Load the gazetteer configured for an analytics run."""
        if config is not None and config.gazetteer_path is not None:
            return cls.from_yaml(config.gazetteer_path)
        return default_gazetteer()

    def zone(self, zone_id: str) -> Zone:
        """Return the zone with the given id.

        Raises:
            ValueError: If the id is not in the gazetteer
        """
        try:
            return self._by_id[zone_id]
        except KeyError:
            msg = f"Unknown zone id '{zone_id}'"
            raise ValueError(msg) from None

    def zone_name(self, zone_id: str) -> str:
        """Return the zone's name, or the id itself when unknown."""
        zone = self._by_id.get(zone_id)
        return zone.name if zone is not None else zone_id

    def match_address(self, address: str | None) -> Zone | None:
        """Return the first zone with an alias contained in the address."""
        if not address:
            return None
        text = address.casefold()
        for alias, zone in self._aliases:
            if alias in text:
                return zone
        return None

    def match_coordinates(
        self, lat: float | None, lng: float | None
    ) -> Zone | None:
        """Return the first zone whose bounding box holds the point.

        Missing or zero coordinates never match.
        """
        if not lat or not lng:
            return None
        for zone in self.zones:
            if zone.bounds is not None and zone.bounds.contains(lat, lng):
                return zone
        return None

    def locate(
        self,
        lat: float | None,
        lng: float | None,
        address: str | None,
    ) -> Zone:
        """Resolve a location to a zone.

        Tries the address aliases first, then the bounding boxes, and
        falls back to the default zone.
        """
        return (
            self.match_address(address)
            or self.match_coordinates(lat, lng)
            or self.default_zone
        )

    def city_for_address(self, address: str) -> str:
        """Return the zone name for an address, default zone if unmatched."""
        zone = self.match_address(address) or self.default_zone
        return zone.name

    def equity_zones(self) -> pl.DataFrame:
        """Equity zone layer as a DataFrame."""
        rows = [
            {
                **zone.model_dump(exclude={"coordinates"}),
                "coordinates": [list(point) for point in zone.coordinates],
            }
            for zone in self.data.equity_zones
        ]
        schema = {
            "id": pl.Int64,
            "name": pl.String,
            "avg_income": pl.String,
            "public_transport_access": pl.String,
            "issues": pl.List(pl.String),
            "population": pl.Int64,
            "color": pl.String,
            "coordinates": pl.List(pl.List(pl.Float64)),
        }
        return pl.DataFrame(rows, schema=schema)

    def transport_stops(self) -> pl.DataFrame:
        """Transport stop layer as a DataFrame."""
        schema = {
            "id": pl.Int64,
            "name": pl.String,
            "lat": pl.Float64,
            "lng": pl.Float64,
            "type": pl.String,
        }
        return pl.DataFrame(
            [stop.model_dump() for stop in self.data.transport_stops],
            schema=schema,
        )


@functools.cache
def default_gazetteer() -> ZoneGazetteer:
    """Return the bundled gazetteer, loaded once per process."""
    return ZoneGazetteer.from_yaml(DEFAULT_GAZETTEER_PATH)
