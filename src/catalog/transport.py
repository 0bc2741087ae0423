"""HTTP binding for the USDA FoodData Central API.

API Reference: https://fdc.nal.usda.gov/api-guide.html

Every exchange is classified into a FetchOutcome before it leaves this
module; no requests exception reaches the catalog client.

    200         → SUCCESS (decoded JSON)
    404         → NOT_FOUND
    403         → TRANSIENT / INVALID_API_KEY
    429         → TRANSIENT / RATE_LIMITED
    other       → TRANSIENT / API_ERROR
    timeout     → TRANSIENT / TIMEOUT
    no connect  → TRANSIENT / CONNECTION_ERROR
    bad JSON    → TRANSIENT / MALFORMED_RESPONSE
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from src.catalog.config import CatalogConfig, DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS
from src.catalog.outcomes import FetchErrorCode, FetchOutcome, FoodDataError


logger = logging.getLogger(__name__)


class FoodDataTransport:
    """Thin requests-based client for the three FDC endpoints the catalog uses.

    Usage:
        transport = FoodDataTransport(api_key="your_key")
        outcome = transport.get_food(171705)
        if outcome.is_success:
            print(outcome.payload["description"])
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        if not api_key or not api_key.strip():
            raise ValueError("API key is required. Get one at https://fdc.nal.usda.gov/api-key-signup.html")
        self.api_key = api_key.strip()
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: CatalogConfig, session: Optional[requests.Session] = None) -> "FoodDataTransport":
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout_seconds=config.timeout_seconds,
            session=session,
        )

    def search_foods(self, body: Dict[str, Any]) -> FetchOutcome:
        """POST /foods/search.

        Args:
            body: {query, dataType, pageSize, pageNumber, sortBy, sortOrder}

        Returns:
            FetchOutcome whose payload is {totalHits, currentPage, totalPages, foods}
        """
        return self._exchange("POST", "/foods/search", json_body=body)

    def get_food(self, fdc_id: int) -> FetchOutcome:
        """GET /food/{fdc_id}; a 404 is a definitive NOT_FOUND."""
        return self._exchange("GET", f"/food/{fdc_id}")

    def get_foods(self, fdc_ids: List[int]) -> FetchOutcome:
        """POST /foods for several ids; only ids that exist come back."""
        return self._exchange("POST", "/foods", json_body={"fdcIds": list(fdc_ids)})

    def _exchange(self, method: str, path: str, json_body: Optional[Dict[str, Any]] = None) -> FetchOutcome:
        try:
            payload = self._make_request(method, path, json_body)
        except FoodDataError as e:
            logger.warning("USDA %s %s failed: %s", method, path, e)
            return FetchOutcome.from_error(e)
        return FetchOutcome.success(payload)

    def _make_request(self, method: str, path: str, json_body: Optional[Dict[str, Any]]) -> Any:
        """Make API request to a USDA endpoint.

        Args:
            method: HTTP method
            path: Endpoint path below base_url
            json_body: Request body for POST endpoints

        Returns:
            Parsed JSON response

        Raises:
            FoodDataError: If the request fails or the response is unusable
        """
        url = f"{self.base_url}{path}"
        params = {"api_key": self.api_key}

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.Timeout:
            raise FoodDataError(FetchErrorCode.TIMEOUT, "USDA API request timed out")
        except requests.exceptions.ConnectionError:
            raise FoodDataError(FetchErrorCode.CONNECTION_ERROR, "Failed to connect to USDA API")
        except requests.exceptions.RequestException as e:
            raise FoodDataError(FetchErrorCode.API_ERROR, f"Request failed: {str(e)}")

        if response.status_code == 404:
            raise FoodDataError(FetchErrorCode.NOT_FOUND, f"No USDA resource at {path}")
        if response.status_code == 429:
            raise FoodDataError(
                FetchErrorCode.RATE_LIMITED,
                "Too many requests. Please wait before trying again."
            )
        if response.status_code == 403:
            raise FoodDataError(FetchErrorCode.INVALID_API_KEY, "USDA API rejected the API key")
        if not 200 <= response.status_code < 300:
            raise FoodDataError(
                FetchErrorCode.API_ERROR,
                f"USDA API returned status {response.status_code}"
            )

        try:
            return response.json()
        except ValueError:
            raise FoodDataError(FetchErrorCode.MALFORMED_RESPONSE, "USDA API returned invalid JSON")
