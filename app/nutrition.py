"""Nutrition record model and normalization of provider responses.

The provider is asked for a fixed JSON shape but nothing guarantees it
delivers one. `normalize_analysis()` is the boundary: whatever loose object
comes out of JSON extraction goes in, and a fully-typed `NutritionRecord`
comes out. Nothing downstream ever sees the raw object.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

logger = logging.getLogger(__name__)

Number = int | float

DEFAULT_MEAL_NAME = "Unknown Meal"
DEFAULT_SERVING_SIZE_G = 100
DEFAULT_CONFIDENCE = 75
DEFAULT_FOOD_CATEGORY = "Mixed"
DEFAULT_PROCESSING_LEVEL = "Moderate"
DEFAULT_COOKING_METHOD = "Mixed"

# Numeric fields that default to 0 when missing or invalid
_ZERO_DEFAULT_FIELDS = (
    "calories",
    "protein",
    "carbs",
    "fat",
    "fiber",
    "sugar",
    "sodium",
    "saturated_fats_g",
    "polyunsaturated_fats_g",
    "monounsaturated_fats_g",
    "omega_3_g",
    "omega_6_g",
    "soluble_fiber_g",
    "insoluble_fiber_g",
    "cholesterol_mg",
    "alcohol_g",
    "caffeine_mg",
    "liquids_ml",
)

# Legacy alias -> primary field. Aliases are copied once at normalization.
ALIAS_FIELDS: dict[str, str] = {
    "meal_name": "name",
    "protein_g": "protein",
    "carbs_g": "carbs",
    "fats_g": "fat",
    "fiber_g": "fiber",
    "sugar_g": "sugar",
    "sodium_mg": "sodium",
}


def to_number(value: Any, default: Number = 0) -> Number:
    """Coerce a loosely-typed value to a finite number.

    Numbers pass through, numeric strings are parsed, booleans count as 0/1.
    Anything else, and any result equal to 0, yields ``default``.
    """
    if isinstance(value, str):
        value = value.strip()
    elif not isinstance(value, (bool, int, float)):
        return default

    try:
        number = float(value)
    except (ValueError, OverflowError):
        # unparseable text, or an int too large for a float
        return default

    if not math.isfinite(number) or number == 0:
        return default
    return int(number) if number.is_integer() else number


def _to_optional_number(value: Any) -> Number | None:
    """Coerce only truthy values; missing or falsy input stays None."""
    if not value:
        return None
    number = to_number(value, default=0)
    if number == 0:
        return None
    return number


def _to_text(value: Any, default: str = "") -> str:
    if not value:
        return default
    return value if isinstance(value, str) else str(value)


@dataclass
class NutritionRecord:
    """Fully-populated nutrition analysis of a single meal."""
    name: str = DEFAULT_MEAL_NAME
    description: str = ""
    calories: Number = 0
    protein: Number = 0
    carbs: Number = 0
    fat: Number = 0
    fiber: Number = 0
    sugar: Number = 0
    sodium: Number = 0
    saturated_fats_g: Number = 0
    polyunsaturated_fats_g: Number = 0
    monounsaturated_fats_g: Number = 0
    omega_3_g: Number = 0
    omega_6_g: Number = 0
    soluble_fiber_g: Number = 0
    insoluble_fiber_g: Number = 0
    cholesterol_mg: Number = 0
    alcohol_g: Number = 0
    caffeine_mg: Number = 0
    liquids_ml: Number = 0
    serving_size_g: Number = DEFAULT_SERVING_SIZE_G
    glycemic_index: Number | None = None
    insulin_index: Number | None = None
    food_category: str = DEFAULT_FOOD_CATEGORY
    processing_level: str = DEFAULT_PROCESSING_LEVEL
    cooking_method: str = DEFAULT_COOKING_METHOD
    health_risk_notes: str = ""
    confidence: Number = DEFAULT_CONFIDENCE
    # [{"name", "calories", "protein", "carbs", "fat", "fiber", "sugar", "sodium_mg"}]
    ingredients: list[Any] = field(default_factory=list)
    health_notes: str = ""
    recommendations: str = ""

    # Backward compatibility fields for older clients
    meal_name: str = DEFAULT_MEAL_NAME
    protein_g: Number = 0
    carbs_g: Number = 0
    fats_g: Number = 0
    fiber_g: Number = 0
    sugar_g: Number = 0
    sodium_mg: Number = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the wire field names (``healthNotes`` is camelCase)."""
        data = asdict(self)
        data["healthNotes"] = data.pop("health_notes")
        return data

    def sync_aliases(self) -> None:
        """Copy every primary field onto its legacy alias."""
        for alias, primary in ALIAS_FIELDS.items():
            setattr(self, alias, getattr(self, primary))


def normalize_analysis(raw: Any) -> NutritionRecord:
    """Turn an arbitrary provider response into a complete NutritionRecord.

    Never raises. Non-mapping input (None, lists, strings) is treated as an
    empty object, so every field falls back to its default.
    """
    if not isinstance(raw, Mapping):
        logger.warning(
            "Analysis response is not an object, using defaults",
            extra={"response_type": type(raw).__name__},
        )
        raw = {}

    numbers = {name: to_number(raw.get(name)) for name in _ZERO_DEFAULT_FIELDS}
    ingredients = raw.get("ingredients")

    record = NutritionRecord(
        name=_to_text(raw.get("name"), DEFAULT_MEAL_NAME),
        description=_to_text(raw.get("description")),
        serving_size_g=to_number(raw.get("serving_size_g"), DEFAULT_SERVING_SIZE_G),
        glycemic_index=_to_optional_number(raw.get("glycemic_index")),
        insulin_index=_to_optional_number(raw.get("insulin_index")),
        food_category=_to_text(raw.get("food_category"), DEFAULT_FOOD_CATEGORY),
        processing_level=_to_text(raw.get("processing_level"), DEFAULT_PROCESSING_LEVEL),
        cooking_method=_to_text(raw.get("cooking_method"), DEFAULT_COOKING_METHOD),
        health_risk_notes=_to_text(raw.get("health_risk_notes")),
        confidence=to_number(raw.get("confidence"), DEFAULT_CONFIDENCE),
        ingredients=list(ingredients) if isinstance(ingredients, list) else [],
        health_notes=_to_text(raw.get("healthNotes") or raw.get("recommendations")),
        recommendations=_to_text(raw.get("recommendations") or raw.get("healthNotes")),
        **numbers,
    )
    record.sync_aliases()
    return record
