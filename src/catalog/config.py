"""Configuration for the USDA catalog client.

Values come from constructor arguments, environment variables
(CatalogConfig.from_env) or the `usda:` section of a YAML file
(CatalogConfig.from_yaml).

Example YAML:

    usda:
      api_key: YOUR_KEY        # optional, falls back to USDA_API_KEY
      rate_limit_per_hour: 1000
      search_ttl_seconds: 86400
      detail_ttl_seconds: 2592000
      timeout_seconds: 10
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


logger = logging.getLogger(__name__)

API_KEY_SIGNUP_URL = "https://fdc.nal.usda.gov/api-key-signup.html"

DEFAULT_BASE_URL = "https://api.nal.usda.gov/fdc/v1"
DEFAULT_RATE_LIMIT_PER_HOUR = 1000
DEFAULT_SEARCH_TTL_SECONDS = 24 * 60 * 60       # rankings churn daily
DEFAULT_DETAIL_TTL_SECONDS = 30 * 24 * 60 * 60  # nutrient facts rarely change
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_RATE_WINDOW_SECONDS = 60 * 60

# Environment variable → (field name, converter)
_ENV_OVERRIDES = {
    "USDA_BASE_URL": ("base_url", str),
    "USDA_RATE_LIMIT_PER_HOUR": ("rate_limit_per_hour", int),
    "USDA_SEARCH_TTL_SECONDS": ("search_ttl_seconds", float),
    "USDA_DETAIL_TTL_SECONDS": ("detail_ttl_seconds", float),
    "USDA_TIMEOUT_SECONDS": ("timeout_seconds", float),
}


@dataclass(frozen=True)
class CatalogConfig:
    """Settings consumed by CatalogClient and FoodDataTransport.

    Attributes:
        api_key: USDA FoodData Central API key
        base_url: Provider base URL (no trailing slash)
        rate_limit_per_hour: Upstream calls allowed per window
        search_ttl_seconds: Freshness of cached search results
        detail_ttl_seconds: Freshness of cached food details
        timeout_seconds: Per-request transport timeout
        rate_window_seconds: Length of the fixed rate window
    """

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    rate_limit_per_hour: int = DEFAULT_RATE_LIMIT_PER_HOUR
    search_ttl_seconds: float = DEFAULT_SEARCH_TTL_SECONDS
    detail_ttl_seconds: float = DEFAULT_DETAIL_TTL_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    rate_window_seconds: float = DEFAULT_RATE_WINDOW_SECONDS

    def __post_init__(self):
        if not self.api_key or not str(self.api_key).strip():
            raise ValueError(f"API key is required. Get one at {API_KEY_SIGNUP_URL}")
        object.__setattr__(self, "api_key", str(self.api_key).strip())
        object.__setattr__(self, "base_url", str(self.base_url).rstrip("/"))

        if self.rate_limit_per_hour < 0:
            raise ValueError(
                f"Invalid rate_limit_per_hour: {self.rate_limit_per_hour}. Must be non-negative."
            )
        for name in ("search_ttl_seconds", "detail_ttl_seconds", "timeout_seconds", "rate_window_seconds"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"Invalid {name}: {value}. Must be positive.")

    @classmethod
    def from_env(cls, env_var: str = "USDA_API_KEY") -> "CatalogConfig":
        """Create config from environment variables.

        Args:
            env_var: Name of environment variable containing API key

        Returns:
            CatalogConfig instance

        Raises:
            ValueError: If the API key variable is not set or an override
                cannot be parsed
        """
        api_key = os.environ.get(env_var)
        if not api_key:
            raise ValueError(
                f"Environment variable {env_var} not set. "
                f"Get an API key at {API_KEY_SIGNUP_URL}"
            )
        return cls(api_key=api_key, **_env_overrides())

    @classmethod
    def from_yaml(cls, yaml_path: str, env_var: str = "USDA_API_KEY") -> "CatalogConfig":
        """Load config from the `usda:` section of a YAML file.

        Args:
            yaml_path: Path to YAML file
            env_var: Fallback environment variable for the API key

        Returns:
            CatalogConfig instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ValueError: If the section is malformed or the key is missing
        """
        with open(Path(yaml_path), "r") as f:
            data = yaml.safe_load(f) or {}

        section = data.get("usda", {}) if isinstance(data, dict) else None
        if not isinstance(section, dict):
            raise ValueError(f"Expected a 'usda' mapping in {yaml_path}")

        values: Dict[str, Any] = {
            key: section[key]
            for key in (
                "base_url",
                "rate_limit_per_hour",
                "search_ttl_seconds",
                "detail_ttl_seconds",
                "timeout_seconds",
                "rate_window_seconds",
            )
            if key in section
        }

        api_key: Optional[str] = section.get("api_key") or os.environ.get(env_var)
        if not api_key:
            raise ValueError(
                f"No api_key in {yaml_path} and {env_var} not set. "
                f"Get an API key at {API_KEY_SIGNUP_URL}"
            )
        logger.debug("Loaded USDA catalog config from %s", yaml_path)
        return cls(api_key=api_key, **values)


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_name, (field_name, convert) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            overrides[field_name] = convert(raw)
        except ValueError as e:
            raise ValueError(f"Invalid value for {env_name}: {raw!r}") from e
    return overrides
