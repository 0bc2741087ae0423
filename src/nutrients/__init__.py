"""Nutrient code mapping and per-serving projection."""

from src.nutrients.nutrient_map import (
    USDA_NUTRIENT_MAP,
    MAPPED_NUTRIENT_COUNT,
    internal_id_for,
)

from src.nutrients.projection import (
    map_nutrients,
    count_available_nutrients,
    get_max_nutrient_count,
    scale_nutrients_to_serving,
)

__all__ = [
    # Static code table
    "USDA_NUTRIENT_MAP",
    "MAPPED_NUTRIENT_COUNT",
    "internal_id_for",
    # Projection
    "map_nutrients",
    "count_available_nutrients",
    "get_max_nutrient_count",
    "scale_nutrients_to_serving",
]
