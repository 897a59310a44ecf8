"""Journey canon package initialization."""
from .dataclass import AnalyticsData
from .frame import (
    JOURNEY_SCHEMA,
    empty_journey_frame,
    journey_to_row,
    journeys_to_frame,
)
from .models import (
    ApiEnvelope,
    JourneyModel,
    LocationModel,
    TripDataModel,
    parse_journeys,
)
from .normalize import age_category, age_group, match_category
from .validation import JourneyFrameError, validate_journey_frame

__all__ = [
    "JOURNEY_SCHEMA",
    "AnalyticsData",
    "ApiEnvelope",
    "JourneyFrameError",
    "JourneyModel",
    "LocationModel",
    "TripDataModel",
    "age_category",
    "age_group",
    "empty_journey_frame",
    "journey_to_row",
    "journeys_to_frame",
    "match_category",
    "parse_journeys",
    "validate_journey_frame",
]
