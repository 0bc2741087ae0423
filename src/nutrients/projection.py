"""Projection of USDA nutrient records onto internal nutrient ids.

Pure, stateless functions. USDA reports nutrients per 100g, so everything
here is per 100g until scale_nutrients_to_serving is applied.

Two record shapes are accepted, matching the two USDA payloads:
- food details: {"nutrient": {"id": 1162, ...}, "amount": 15.0}
- search previews: {"nutrientId": 1162, "value": 15.0}
"""

from numbers import Real
from typing import Any, Dict, Iterable, Optional, Tuple

from src.nutrients.nutrient_map import MAPPED_NUTRIENT_COUNT, internal_id_for


def _code_and_amount(item: Any) -> Tuple[Any, Any]:
    if not isinstance(item, dict):
        return None, None
    nutrient = item.get("nutrient")
    if isinstance(nutrient, dict):
        return nutrient.get("id"), item.get("amount")
    return item.get("nutrientId"), item.get("value")


def _positive_amount(amount: Any) -> Optional[float]:
    # bool is an int subclass; True must not count as 1.0
    if isinstance(amount, bool) or not isinstance(amount, Real):
        return None
    if amount != amount or amount <= 0:  # NaN or non-positive
        return None
    return float(amount)


def map_nutrients(provider_nutrients: Optional[Iterable[Any]]) -> Dict[str, float]:
    """Map USDA nutrient records to {internal_id: amount per 100g}.

    Codes absent from USDA_NUTRIENT_MAP are dropped, as are non-numeric and
    non-positive amounts. When two records map to the same internal id the
    later one wins; amounts are never summed.

    Args:
        provider_nutrients: foodNutrients list from a detail or search record

    Returns:
        Dictionary keyed by internal nutrient id
    """
    mapped: Dict[str, float] = {}
    for item in provider_nutrients or []:
        code, amount = _code_and_amount(item)
        internal_id = internal_id_for(code)
        value = _positive_amount(amount)
        if internal_id is None or value is None:
            continue
        mapped[internal_id] = value
    return mapped


def count_available_nutrients(record: Optional[Dict[str, Any]]) -> int:
    """Count mapped USDA nutrient codes carrying a positive value.

    A richness signal for ranking results, not a filter. Each code counts
    once, so the result never exceeds get_max_nutrient_count().
    """
    if not record:
        return 0
    codes = set()
    for item in record.get("foodNutrients") or []:
        code, amount = _code_and_amount(item)
        if internal_id_for(code) is not None and _positive_amount(amount) is not None:
            codes.add(code)
    return len(codes)


def get_max_nutrient_count() -> int:
    """Return the size of the static nutrient map."""
    return MAPPED_NUTRIENT_COUNT


def scale_nutrients_to_serving(
    nutrients_per_100g: Dict[str, float],
    serving_grams: float,
) -> Dict[str, float]:
    """Scale per-100g nutrient amounts to a serving size.

    Args:
        nutrients_per_100g: Output of map_nutrients
        serving_grams: Serving weight in grams (0 yields all zeros)

    Returns:
        New dictionary over the same keys, each value times serving_grams / 100

    Raises:
        ValueError: If serving_grams is negative
    """
    if serving_grams < 0:
        raise ValueError(f"Invalid serving_grams: {serving_grams}. Must be non-negative.")
    factor = serving_grams / 100.0
    return {nutrient_id: amount * factor for nutrient_id, amount in nutrients_per_100g.items()}
