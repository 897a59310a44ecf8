"""Journey pipeline package: cached accessors and the report runner."""

from .cache import QueryCache, QueryError, QueryStatus
from .context import AnalyticsContext, CacheKey
from .pipeline import Pipeline

__all__ = [
    "AnalyticsContext",
    "CacheKey",
    "Pipeline",
    "QueryCache",
    "QueryError",
    "QueryStatus",
]
