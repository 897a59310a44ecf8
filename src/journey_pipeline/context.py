"""Cached analytics accessors backed by the journey API.

AnalyticsContext owns a QueryCache and an API client. Every accessor runs
one aggregation step over the journey frame and caches the result under its
CacheKey. The journey fetch is cached as well (``user-journeys``), so all
accessors share a single HTTP request per stale period.

Example:
    >>> context = AnalyticsContext(JourneyApiClient.from_env())
    >>> dashboard = asyncio.run(context.dashboard_data())
    >>> dashboard["dashboard_overview"]["total_journeys"]
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

import polars as pl

from journey_analytics.api import JourneyApiClient
from journey_analytics.configs import AnalyticsConfig
from journey_analytics.dashboard import summarize_dashboard
from journey_analytics.demographics import summarize_demographics
from journey_analytics.geospatial import summarize_geospatial
from journey_analytics.mode_purpose import summarize_mode_purpose
from journey_analytics.od_matrix import corridor_analysis, summarize_od_matrix
from journey_analytics.temporal import summarize_temporal
from journey_analytics.zones import ZoneGazetteer
from journey_canon import empty_journey_frame, journeys_to_frame

from .cache import QueryCache, QueryError

logger = logging.getLogger(__name__)


class CacheKey(StrEnum):
    """Cache keys of the analytics accessors."""

    DASHBOARD = "dashboard-data"
    GEOSPATIAL = "geospatial-data"
    DEMOGRAPHICS = "demographics-data"
    TEMPORAL = "temporal-data"
    OD_MATRIX = "od-matrix-data"
    MODE_PURPOSE = "mode-purpose-data"
    USER_JOURNEYS = "user-journeys"


# Keys refreshed by prefetch_all()
PREFETCH_KEYS = [
    CacheKey.DASHBOARD,
    CacheKey.GEOSPATIAL,
    CacheKey.DEMOGRAPHICS,
    CacheKey.TEMPORAL,
    CacheKey.OD_MATRIX,
]


def _stamped(result: dict[str, Any]) -> dict[str, Any]:
    return {**result, "last_fetched": datetime.now(UTC).isoformat()}


class AnalyticsContext:
    """Cached entry point to every analytics table.

    Args:
        client: API client used to fetch journey records
        cache: Query cache (a new one with default settings if None)
        config: Analytics configuration passed to every step
        gazetteer: Zone gazetteer (default: configured or bundled)
        raise_errors: Raise QueryError instead of falling back to the
            zeroed results of an empty journey frame
    """

    def __init__(
        self,
        client: JourneyApiClient,
        cache: QueryCache | None = None,
        config: AnalyticsConfig | None = None,
        gazetteer: ZoneGazetteer | None = None,
        *,
        raise_errors: bool = False,
    ) -> None:
        """Initialize the context."""
        self.client = client
        self.cache = cache or QueryCache()
        self.config = config or AnalyticsConfig()
        self.gazetteer = gazetteer or ZoneGazetteer.from_config(self.config)
        self.raise_errors = raise_errors

    # Journeys ------------------------------------------------------------

    async def _fetch_journeys(self) -> pl.DataFrame:
        records = await asyncio.to_thread(self.client.fetch_journey_data)
        return journeys_to_frame(records)

    async def journeys(self) -> pl.DataFrame:
        """Canonical journey frame, cached under ``user-journeys``.

        Raises:
            QueryError: If the API keeps failing
        """
        return await self.cache.fetch(
            CacheKey.USER_JOURNEYS, self._fetch_journeys
        )

    async def _journeys_for(self, key: str) -> pl.DataFrame:
        """Journey frame no older than the stale time of ``key``.

        An invalidated key always gets a new fetch. Callers arriving while
        a journey fetch is in flight share it.
        """
        page = self.cache.get_state(key)
        if page is None:
            max_age = self.cache.stale_time_for(key)
        elif page["is_invalidated"]:
            max_age = 0.0
        else:
            max_age = page["stale_time"]

        shared = self.cache.get_state(CacheKey.USER_JOURNEYS)
        if (
            shared is not None
            and not shared["is_fetching"]
            and shared["age"] is not None
            and shared["age"] >= max_age
        ):
            self.cache.invalidate(CacheKey.USER_JOURNEYS)
        return await self.journeys()

    # Accessors -----------------------------------------------------------

    async def _cached(
        self,
        key: str,
        build: Callable[[pl.DataFrame], dict[str, Any]],
        stale_time: float | None = None,
    ) -> dict[str, Any]:
        async def fetcher() -> dict[str, Any]:
            journeys = await self._journeys_for(key)
            return _stamped(build(journeys))

        try:
            return await self.cache.fetch(key, fetcher, stale_time=stale_time)
        except QueryError:
            if self.raise_errors:
                raise
            logger.exception(
                "Could not load %s, returning empty results", key
            )
            return _stamped(build(empty_journey_frame()))

    async def dashboard_data(self) -> dict[str, Any]:
        """Dashboard overview, hourly traffic and daily trips."""
        return await self._cached(
            CacheKey.DASHBOARD,
            lambda journeys: summarize_dashboard(
                journeys, config=self.config, gazetteer=self.gazetteer
            ),
        )

    async def mode_purpose_data(self) -> dict[str, Any]:
        """Mode, purpose and satisfaction shares."""
        return await self._cached(
            CacheKey.MODE_PURPOSE,
            lambda journeys: summarize_mode_purpose(
                journeys, config=self.config
            ),
        )

    async def geospatial_data(self) -> dict[str, Any]:
        """Heatmap points, coordinate flows and the geospatial summary."""
        return await self._cached(
            CacheKey.GEOSPATIAL,
            lambda journeys: summarize_geospatial(
                journeys, config=self.config
            ),
        )

    async def demographics_data(self) -> dict[str, Any]:
        """Demographic breakdowns and the static equity layers."""
        return await self._cached(
            CacheKey.DEMOGRAPHICS,
            lambda journeys: summarize_demographics(
                journeys, config=self.config, gazetteer=self.gazetteer
            ),
        )

    async def temporal_data(self) -> dict[str, Any]:
        """Temporal heatmap, hourly tables and temporal metrics."""
        return await self._cached(
            CacheKey.TEMPORAL,
            lambda journeys: summarize_temporal(
                journeys, config=self.config
            ),
        )

    async def od_matrix_data(self) -> dict[str, Any]:
        """Zones, OD matrix and top corridors."""
        return await self._cached(
            CacheKey.OD_MATRIX,
            lambda journeys: summarize_od_matrix(
                journeys, config=self.config, gazetteer=self.gazetteer
            ),
        )

    async def corridor_data(
        self, origin: str, destination: str
    ) -> dict[str, Any]:
        """Mode mix and timing of one corridor.

        Cached per zone pair with the OD matrix stale time.

        Raises:
            ValueError: If either zone id is unknown
        """
        self.gazetteer.zone(origin)
        self.gazetteer.zone(destination)
        return await self._cached(
            f"{CacheKey.OD_MATRIX}:{origin}:{destination}",
            lambda journeys: corridor_analysis(
                journeys,
                origin,
                destination,
                gazetteer=self.gazetteer,
                config=self.config,
            ),
            stale_time=self.cache.stale_time_for(CacheKey.OD_MATRIX),
        )

    async def prefetch_all(self) -> None:
        """Load every page's data into the cache concurrently."""
        logger.info("Prefetching %d analytics queries", len(PREFETCH_KEYS))
        await asyncio.gather(
            self.dashboard_data(),
            self.geospatial_data(),
            self.demographics_data(),
            self.temporal_data(),
            self.od_matrix_data(),
        )

    # Cache management ----------------------------------------------------

    def invalidate(self, key: str) -> None:
        """Force the next access of one key to refetch."""
        self.cache.invalidate(key)

    def invalidate_all(self) -> None:
        """Force every key, including the journey fetch, to refetch."""
        self.cache.invalidate()

    def clear_cache(self) -> None:
        """Drop every cached entry."""
        self.cache.clear()

    def get_cache_data(self, key: str) -> Any:  # noqa: ANN401
        """Cached data for a key, or None."""
        return self.cache.get_data(key)

    def set_cache_data(self, key: str, data: Any) -> None:  # noqa: ANN401
        """Replace the cached data for a key."""
        self.cache.set_data(key, data)
