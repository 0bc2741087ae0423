"""Cached, rate-limited, coalesced access to USDA FoodData Central.

CatalogClient is the only owner of the two TTL caches, the rate window and
the in-flight registry. Every public operation resolves to a value; provider
failures never raise.

LOOKUP FLOW (search, detail, batch):
1. Build the cache key from normalized inputs
2. Fresh cache hit → return (no quota spent, no network)
3. Join or lead the in-flight call for the key. The leader takes one
   rate-limiter token, calls the transport, caches a success and hands the
   FetchOutcome to every waiter
4. Resolve the outcome:
   SUCCESS   → parsed value
   NOT_FOUND → absent, even if a stale entry exists (detail only)
   TRANSIENT → stale entry for the key, else empty/absent

Quota refusal, 403, 429, other non-2xx, timeouts, connection errors and
malformed bodies are all TRANSIENT.

Callers receive deep copies, so mutating a result never alters a cached
entry or another caller's value.
"""

import copy
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from src.catalog.coalescer import RequestCoalescer
from src.catalog.config import CatalogConfig
from src.catalog.outcomes import FetchErrorCode, FetchOutcome
from src.catalog.rate_limiter import RateLimiter
from src.catalog.transport import FoodDataTransport
from src.catalog.ttl_cache import TTLCache
from src.nutrients import projection


logger = logging.getLogger(__name__)

FoodRecord = Dict[str, Any]
FoodDetailRecord = Dict[str, Any]

DEFAULT_DATA_TYPES: Tuple[str, ...] = ("Foundation", "SR Legacy")
SEARCH_SORT_BY = "dataType.keyword"
SEARCH_SORT_ORDER = "asc"


@dataclass(frozen=True)
class SearchOptions:
    """Search filters and paging.

    Attributes:
        data_types: USDA data types to include (order does not matter)
        page_size: Results per page (1-200, the USDA maximum)
        page_number: 1-based page index
    """

    data_types: Tuple[str, ...] = DEFAULT_DATA_TYPES
    page_size: int = 10
    page_number: int = 1

    def __post_init__(self):
        data_types = self.data_types
        if isinstance(data_types, str):
            data_types = (data_types,)
        object.__setattr__(self, "data_types", tuple(data_types))
        if not 1 <= self.page_size <= 200:
            raise ValueError(f"Invalid page_size: {self.page_size}. Must be between 1 and 200.")
        if self.page_number < 1:
            raise ValueError(f"Invalid page_number: {self.page_number}. Must be at least 1.")


def normalize_query(query: str) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return " ".join((query or "").split()).lower()


def search_cache_key(query: str, options: SearchOptions) -> Hashable:
    """Build the search cache key from query and options only.

    The data-type filter is treated as a set, so ("SR Legacy", "Foundation")
    and ("Foundation", "SR Legacy") share one entry.
    """
    return (
        "search",
        normalize_query(query),
        tuple(sorted(set(options.data_types))),
        options.page_size,
        options.page_number,
    )


def _valid_fdc_id(fdc_id: Any) -> bool:
    return isinstance(fdc_id, int) and not isinstance(fdc_id, bool) and fdc_id > 0


class CatalogClient:
    """Resilient front door to the USDA FoodData Central API.

    Usage:
        client = CatalogClient(CatalogConfig.from_env())

        foods = client.search("broccoli")
        detail = client.get_detail(foods[0]["fdcId"]) if foods else None
        if detail:
            per_100g = client.map_nutrients(detail["foodNutrients"])
            per_serving = client.scale_nutrients_to_serving(per_100g, 85)
    """

    def __init__(
        self,
        config: CatalogConfig,
        transport: Optional[FoodDataTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize client and the state it owns.

        Args:
            config: Quota, TTLs and connection settings
            transport: USDA transport (built from config if omitted)
            clock: Returns the current time in seconds; shared by caches and limiter
        """
        self.config = config
        self.transport = transport or FoodDataTransport.from_config(config)
        self._search_cache: TTLCache[List[FoodRecord]] = TTLCache(config.search_ttl_seconds, clock=clock)
        self._detail_cache: TTLCache[FoodDetailRecord] = TTLCache(config.detail_ttl_seconds, clock=clock)
        self._rate_limiter = RateLimiter(
            quota=config.rate_limit_per_hour,
            window_seconds=config.rate_window_seconds,
            clock=clock,
        )
        self._coalescer = RequestCoalescer()

    # ------------------------------------------------------------------
    # Provider lookups
    # ------------------------------------------------------------------

    def search(self, query: str, options: Optional[SearchOptions] = None) -> List[FoodRecord]:
        """Search foods by text.

        Args:
            query: Free-text search term
            options: Data-type filter and paging (defaults to SearchOptions())

        Returns:
            Matching food records; stale results or [] when the provider
            is unavailable
        """
        options = options or SearchOptions()
        normalized = normalize_query(query)
        if not normalized:
            return []

        key = search_cache_key(normalized, options)
        cached = self._search_cache.get(key)
        if cached is not None:
            logger.debug("Search cache hit for %r", normalized)
            return copy.deepcopy(cached)

        body = {
            "query": normalized,
            "dataType": list(options.data_types),
            "pageSize": options.page_size,
            "pageNumber": options.page_number,
            "sortBy": SEARCH_SORT_BY,
            "sortOrder": SEARCH_SORT_ORDER,
        }

        def fetch() -> FetchOutcome:
            outcome = self._call_upstream(lambda: self.transport.search_foods(body))
            if not outcome.is_success:
                return outcome
            if not isinstance(outcome.payload, dict):
                return FetchOutcome.transient(FetchErrorCode.MALFORMED_RESPONSE, "search body is not an object")
            foods = outcome.payload.get("foods")
            if foods is None:
                foods = []
            elif not isinstance(foods, list):
                return FetchOutcome.transient(FetchErrorCode.MALFORMED_RESPONSE, "search foods is not a list")
            self._search_cache.set(key, foods)
            return FetchOutcome.success(foods)

        outcome = self._coalescer.run(key, fetch)
        if outcome.is_success:
            return copy.deepcopy(outcome.payload)
        return self._degrade(self._search_cache, key, outcome, default=[], label=f"search {normalized!r}")

    def get_detail(self, fdc_id: int) -> Optional[FoodDetailRecord]:
        """Fetch full nutrient detail for one food.

        Args:
            fdc_id: USDA FoodData Central ID

        Returns:
            Detail record; None if the id does not exist, or if the provider
            is unavailable and nothing was ever cached for it
        """
        if not _valid_fdc_id(fdc_id):
            logger.debug("Ignoring invalid FDC id %r", fdc_id)
            return None

        cached = self._detail_cache.get(fdc_id)
        if cached is not None:
            logger.debug("Detail cache hit for %s", fdc_id)
            return copy.deepcopy(cached)

        def fetch() -> FetchOutcome:
            outcome = self._call_upstream(lambda: self.transport.get_food(fdc_id))
            if not outcome.is_success:
                return outcome
            if not isinstance(outcome.payload, dict):
                return FetchOutcome.transient(FetchErrorCode.MALFORMED_RESPONSE, "detail body is not an object")
            self._detail_cache.set(fdc_id, outcome.payload)
            return outcome

        outcome = self._coalescer.run(("detail", fdc_id), fetch)
        if outcome.is_success:
            return copy.deepcopy(outcome.payload)
        if outcome.is_not_found:
            logger.info("FDC id %s not found", fdc_id)
            return None
        return self._degrade(self._detail_cache, fdc_id, outcome, default=None, label=f"detail {fdc_id}")

    def get_detail_batch(self, fdc_ids: Sequence[int]) -> List[FoodDetailRecord]:
        """Fetch details for several foods, going upstream only for uncached ids.

        Best-effort enrichment: if the single batched call fails for any
        reason, only the fresh-cached subset is returned.

        Args:
            fdc_ids: USDA FoodData Central IDs (duplicates and invalid ids ignored)

        Returns:
            Detail records in request order; ids the provider does not know
            are simply absent
        """
        requested: List[int] = []
        for fdc_id in fdc_ids:
            if _valid_fdc_id(fdc_id) and fdc_id not in requested:
                requested.append(fdc_id)

        found: Dict[int, FoodDetailRecord] = {}
        uncached: List[int] = []
        for fdc_id in requested:
            cached = self._detail_cache.get(fdc_id)
            if cached is not None:
                found[fdc_id] = cached
            else:
                uncached.append(fdc_id)

        if uncached:
            found.update(self._fetch_batch(uncached))

        return [copy.deepcopy(found[fdc_id]) for fdc_id in requested if fdc_id in found]

    def _fetch_batch(self, fdc_ids: List[int]) -> Dict[int, FoodDetailRecord]:
        def fetch() -> FetchOutcome:
            outcome = self._call_upstream(lambda: self.transport.get_foods(fdc_ids))
            if not outcome.is_success:
                return outcome
            if not isinstance(outcome.payload, list):
                return FetchOutcome.transient(FetchErrorCode.MALFORMED_RESPONSE, "batch body is not a list")
            fetched: Dict[int, FoodDetailRecord] = {}
            for food in outcome.payload:
                fdc_id = food.get("fdcId") if isinstance(food, dict) else None
                if not _valid_fdc_id(fdc_id):
                    continue
                self._detail_cache.set(fdc_id, food)
                fetched[fdc_id] = food
            return FetchOutcome.success(fetched)

        outcome = self._coalescer.run(("batch", tuple(sorted(fdc_ids))), fetch)
        if outcome.is_success:
            return outcome.payload
        logger.warning(
            "Batch detail for %d ids failed (%s); returning cached subset only",
            len(fdc_ids), outcome.error_code.value,
        )
        return {}

    def _call_upstream(self, call: Callable[[], FetchOutcome]) -> FetchOutcome:
        # One token per HTTP exchange, taken by the coalesced leader only.
        if not self._rate_limiter.try_consume():
            logger.warning("USDA API rate limit reached (%d/hour)", self._rate_limiter.quota)
            return FetchOutcome.transient(FetchErrorCode.QUOTA_EXHAUSTED, "hourly quota exhausted")
        return call()

    @staticmethod
    def _degrade(cache: TTLCache, key: Hashable, outcome: FetchOutcome, default: Any, label: str) -> Any:
        stale = cache.get_stale(key)
        if stale is not None:
            logger.warning("Serving stale %s after %s", label, outcome.error_code.value)
            return copy.deepcopy(stale)
        logger.warning("No cached %s to fall back on after %s", label, outcome.error_code.value)
        return default

    # ------------------------------------------------------------------
    # Nutrient projection
    # ------------------------------------------------------------------

    def map_nutrients(self, provider_nutrients) -> Dict[str, float]:
        return projection.map_nutrients(provider_nutrients)

    def count_available_nutrients(self, record: FoodRecord) -> int:
        return projection.count_available_nutrients(record)

    def get_max_nutrient_count(self) -> int:
        return projection.get_max_nutrient_count()

    def scale_nutrients_to_serving(self, nutrients: Dict[str, float], serving_grams: float) -> Dict[str, float]:
        return projection.scale_nutrients_to_serving(nutrients, serving_grams)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def clear_cache(self) -> None:
        """Empty both caches. The rate window and in-flight calls are untouched."""
        self._search_cache.clear()
        self._detail_cache.clear()

    def reset(self) -> None:
        """Clear caches, rate window and in-flight registry (diagnostics/tests)."""
        self.clear_cache()
        self._rate_limiter.reset()
        self._coalescer.reset()

    def remaining_quota(self) -> int:
        return self._rate_limiter.remaining()
