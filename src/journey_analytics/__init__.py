"""Initialization of the journey analytics package.

This module imports and exposes all step functions and the aggregation
functions they are built from.
"""

from .api import ApiError, JourneyApiClient
from .configs import AnalyticsConfig, CacheSettings, DefaultsPolicy
from .dashboard import (
    daily_trips,
    hourly_traffic,
    journey_distance,
    journey_overview,
    summarize_dashboard,
)
from .decoration import step
from .demographics import (
    age_groups,
    gender_distribution,
    income_levels,
    occupation_kpis,
    summarize_demographics,
)
from .geospatial import heatmap_points, od_flows, summarize_geospatial
from .mode_purpose import (
    mode_share,
    purpose_share,
    satisfaction_share,
    summarize_mode_purpose,
)
from .od_matrix import (
    corridor_analysis,
    extract_zones,
    od_matrix,
    summarize_od_matrix,
    top_corridors,
)
from .read_write import load_journeys, write_tables
from .temporal import (
    hourly_distribution,
    peak_hours,
    rush_hour_impact,
    summarize_temporal,
    temporal_heatmap,
    temporal_metrics,
    weekday_weekend,
)
from .utils import haversine_distance
from .zones import ZoneGazetteer

__all__ = [
    "AnalyticsConfig",
    "ApiError",
    "CacheSettings",
    "DefaultsPolicy",
    "JourneyApiClient",
    "ZoneGazetteer",
    "age_groups",
    "corridor_analysis",
    "daily_trips",
    "extract_zones",
    "gender_distribution",
    "haversine_distance",
    "heatmap_points",
    "hourly_distribution",
    "hourly_traffic",
    "income_levels",
    "journey_distance",
    "journey_overview",
    "load_journeys",
    "mode_share",
    "occupation_kpis",
    "od_flows",
    "od_matrix",
    "peak_hours",
    "purpose_share",
    "rush_hour_impact",
    "satisfaction_share",
    "step",
    "summarize_dashboard",
    "summarize_demographics",
    "summarize_geospatial",
    "summarize_mode_purpose",
    "summarize_od_matrix",
    "summarize_temporal",
    "temporal_heatmap",
    "temporal_metrics",
    "top_corridors",
    "weekday_weekend",
    "write_tables",
]
