"""Data models for journey records served by the backend.

This module uses Pydantic for parsing. Models represent individual records
(one logged trip each) as returned by ``/journeys/scientist-data``.

Parsing is deliberately lenient: a malformed value (a non-numeric age, an
unparsable timestamp, a ``tripData`` that is not an object) becomes None
instead of raising, and the aggregation layer applies its defaulting policy
to it later. Both the camelCase wire names and snake_case names are
accepted.
"""

import logging
import math
import re
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
)

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


# Lenient coercion ------------------------------------------------------------

def _to_str(value: Any) -> str | None:  # noqa: ANN401
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int | float):
        return str(value) if math.isfinite(value) else None
    if isinstance(value, Mapping):
        # Populated references such as {"_id": "...", "name": "..."}
        return _to_str(value.get("_id", value.get("id")))
    return None


def _to_float(value: Any) -> float | None:  # noqa: ANN401
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> int | None:  # noqa: ANN401
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _to_datetime(value: Any) -> datetime | None:  # noqa: ANN401
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int | float):
        # Epoch milliseconds, as serialized by JavaScript Date
        try:
            return _to_naive_utc(datetime.fromtimestamp(value / 1000, tz=UTC))
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return _to_naive_utc(datetime.fromisoformat(text))
        except ValueError:
            pass
        if text.lstrip("-").isdigit():
            return _to_datetime(int(text))
    return None


def _to_mapping(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, Mapping | BaseModel):
        return value
    return {}


def _to_mapping_or_none(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, Mapping | BaseModel):
        return value
    return None


LenientStr = Annotated[str | None, BeforeValidator(_to_str)]
LenientFloat = Annotated[float | None, BeforeValidator(_to_float)]
LenientInt = Annotated[int | None, BeforeValidator(_to_int)]
LenientDatetime = Annotated[datetime | None, BeforeValidator(_to_datetime)]


# Data Models -----------------------------------------------------------------

class LocationModel(BaseModel):
    """Start or end point of a trip."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    lat: LenientFloat = Field(
        default=None, validation_alias=AliasChoices("lat", "latitude")
    )
    lng: LenientFloat = Field(
        default=None,
        validation_alias=AliasChoices("lng", "longitude", "lon"),
    )
    address: LenientStr = None
    timestamp: LenientDatetime = None

    @property
    def has_valid_coordinates(self) -> bool:
        """True when both coordinates are present and non-zero."""
        return bool(self.lat) and bool(self.lng)


class TripDataModel(BaseModel):
    """Nested trip payload of a journey record."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    start_location: Annotated[
        LocationModel | None, BeforeValidator(_to_mapping_or_none)
    ] = Field(
        default=None,
        validation_alias=AliasChoices("startLocation", "start_location"),
    )
    end_location: Annotated[
        LocationModel | None, BeforeValidator(_to_mapping_or_none)
    ] = Field(
        default=None,
        validation_alias=AliasChoices("endLocation", "end_location"),
    )
    distance: LenientFloat = None
    duration: LenientFloat = Field(
        default=None,
        validation_alias=AliasChoices("duration", "actualDuration"),
    )
    transport_mode: LenientStr = Field(
        default=None,
        validation_alias=AliasChoices("transportMode", "transport_mode"),
    )
    journey_purpose: LenientStr = Field(
        default=None,
        validation_alias=AliasChoices(
            "journeyPurpose", "journey_purpose", "purpose"
        ),
    )
    satisfaction: LenientStr = Field(
        default=None,
        validation_alias=AliasChoices("routeSatisfaction", "satisfaction"),
    )
    time_of_day: LenientStr = Field(
        default=None, validation_alias=AliasChoices("timeOfDay", "time_of_day")
    )
    travel_companions: LenientStr = Field(
        default=None,
        validation_alias=AliasChoices(
            "travelCompanions", "travel_companions"
        ),
    )
    timestamp: LenientDatetime = None


class JourneyModel(BaseModel):
    """One logged trip with the rider's demographic profile."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    journey_id: LenientStr = Field(
        default=None,
        validation_alias=AliasChoices("id", "tripId", "journey_id"),
    )
    user_id: LenientStr = Field(
        default=None, validation_alias=AliasChoices("userId", "user_id")
    )
    name: LenientStr = None
    email: LenientStr = None
    age: LenientInt = None
    gender: LenientStr = None
    occupation: LenientStr = None
    income: LenientStr = None
    trip_data: Annotated[TripDataModel, BeforeValidator(_to_mapping)] = Field(
        default_factory=TripDataModel,
        validation_alias=AliasChoices("tripData", "trip_data"),
    )


class ApiEnvelope(BaseModel):
    """Response envelope shared by the journey endpoints."""

    model_config = ConfigDict(extra="allow")

    success: bool = False
    data: Any = None
    message: str | None = None
    metadata: dict[str, Any] | None = None


def parse_journeys(
    records: Iterable[Mapping[str, Any] | JourneyModel | None],
) -> list[JourneyModel]:
    """Parse raw journey records into models.

    Records that are not objects are parsed as empty journeys so they still
    count towards totals.

    Args:
        records: Raw records (dicts), already-parsed models, or junk

    Returns:
        One JourneyModel per input record, in input order
    """
    journeys = []
    n_malformed = 0
    for record in records:
        if isinstance(record, JourneyModel):
            journeys.append(record)
            continue
        if not isinstance(record, Mapping):
            n_malformed += 1
            record = {}  # noqa: PLW2901
        journeys.append(JourneyModel.model_validate(record))

    if n_malformed:
        logger.warning(
            "Parsed %d non-object journey records as empty journeys",
            n_malformed,
        )
    return journeys
