"""Static USDA nutrient id → internal nutrient id table.

The table is a fixed input: it is never mutated at runtime and is the only
authority on which provider nutrients the app tracks.

Format:
    USDA_ID: {
        "field": internal nutrient id (matches the app's RDA tables),
        "unit": USDA unit (for documentation),
        "description": USDA nutrient name
    }

Several USDA ids may point at the same internal id (e.g. the two folate
rows). Projection keeps the last one seen in the provider's list.
"""

from typing import Dict, Any, Optional


USDA_NUTRIENT_MAP: Dict[int, Dict[str, Any]] = {
    # === VITAMINS ===
    1106: {"field": "vitamin_a", "unit": "µg", "description": "Vitamin A, RAE"},
    1162: {"field": "vitamin_c", "unit": "mg", "description": "Vitamin C, total ascorbic acid"},
    1110: {"field": "vitamin_d", "unit": "µg", "description": "Vitamin D (D2 + D3)"},
    1109: {"field": "vitamin_e", "unit": "mg", "description": "Vitamin E (alpha-tocopherol)"},
    1185: {"field": "vitamin_k", "unit": "µg", "description": "Vitamin K (phylloquinone)"},

    # === B VITAMINS ===
    1165: {"field": "thiamin", "unit": "mg", "description": "Thiamin"},
    1166: {"field": "riboflavin", "unit": "mg", "description": "Riboflavin"},
    1167: {"field": "niacin", "unit": "mg", "description": "Niacin"},
    1175: {"field": "vitamin_b6", "unit": "mg", "description": "Vitamin B-6"},
    1178: {"field": "vitamin_b12", "unit": "µg", "description": "Vitamin B-12"},
    1177: {"field": "folate", "unit": "µg", "description": "Folate, total"},
    1190: {"field": "folate", "unit": "µg", "description": "Folate, DFE"},
    1180: {"field": "choline", "unit": "mg", "description": "Choline, total"},

    # === MINERALS ===
    1087: {"field": "calcium", "unit": "mg", "description": "Calcium, Ca"},
    1098: {"field": "copper", "unit": "mg", "description": "Copper, Cu"},
    1089: {"field": "iron", "unit": "mg", "description": "Iron, Fe"},
    1090: {"field": "magnesium", "unit": "mg", "description": "Magnesium, Mg"},
    1101: {"field": "manganese", "unit": "mg", "description": "Manganese, Mn"},
    1091: {"field": "phosphorus", "unit": "mg", "description": "Phosphorus, P"},
    1092: {"field": "potassium", "unit": "mg", "description": "Potassium, K"},
    1103: {"field": "selenium", "unit": "µg", "description": "Selenium, Se"},
    1093: {"field": "sodium", "unit": "mg", "description": "Sodium, Na"},
    1095: {"field": "zinc", "unit": "mg", "description": "Zinc, Zn"},

    # === FATS AND FIBER ===
    1079: {"field": "fiber", "unit": "g", "description": "Fiber, total dietary"},
    1253: {"field": "cholesterol", "unit": "mg", "description": "Cholesterol"},
    1258: {"field": "saturated_fat", "unit": "g", "description": "Fatty acids, total saturated"},
    1404: {"field": "omega_3_ala", "unit": "g", "description": "PUFA 18:3 n-3 c,c,c (ALA)"},
    1278: {"field": "omega_3_epa", "unit": "g", "description": "PUFA 20:5 n-3 (EPA)"},
    1272: {"field": "omega_3_dha", "unit": "g", "description": "PUFA 22:6 n-3 (DHA)"},
}

# One per table row; the ceiling for count_available_nutrients.
MAPPED_NUTRIENT_COUNT: int = len(USDA_NUTRIENT_MAP)


def internal_id_for(code: Any) -> Optional[str]:
    """Return the internal nutrient id for a USDA nutrient id, or None."""
    if isinstance(code, bool) or not isinstance(code, int):
        return None
    row = USDA_NUTRIENT_MAP.get(code)
    return row["field"] if row else None
