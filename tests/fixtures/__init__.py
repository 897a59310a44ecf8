"""Test fixtures for journey analytics tests."""

from .journey_records import (
    INFOPARK,
    KOCHI,
    KOZHIKODE,
    TRIVANDRUM,
    create_journey_record,
    create_journey_records,
    journeys_frame,
)

__all__ = [
    "INFOPARK",
    "KOCHI",
    "KOZHIKODE",
    "TRIVANDRUM",
    "create_journey_record",
    "create_journey_records",
    "journeys_frame",
]
