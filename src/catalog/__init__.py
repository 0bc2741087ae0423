"""Resilient caching and access-control layer over USDA FoodData Central."""

from src.catalog.config import CatalogConfig

from src.catalog.outcomes import (
    FetchErrorCode,
    FetchOutcome,
    FoodDataError,
    OutcomeKind,
)

from src.catalog.ttl_cache import TTLCache, CacheEntry
from src.catalog.rate_limiter import RateLimiter, RateWindow
from src.catalog.coalescer import RequestCoalescer
from src.catalog.transport import FoodDataTransport

from src.catalog.client import (
    CatalogClient,
    SearchOptions,
    normalize_query,
    search_cache_key,
)

__all__ = [
    # Configuration
    "CatalogConfig",
    # Transport outcomes
    "FetchErrorCode",
    "FetchOutcome",
    "FoodDataError",
    "OutcomeKind",
    # Shared state
    "TTLCache",
    "CacheEntry",
    "RateLimiter",
    "RateWindow",
    "RequestCoalescer",
    # USDA binding
    "FoodDataTransport",
    # Orchestration
    "CatalogClient",
    "SearchOptions",
    "normalize_query",
    "search_cache_key",
]
