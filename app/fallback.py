"""Deterministic analysis results used when the provider can't be used.

`fallback_analysis()` stands in for a whole analysis when no provider is
configured or the call fails. `basic_update()` applies a user's correction
with simple keyword rules instead of asking the model again.
"""

import logging
import math
from dataclasses import replace
from typing import Any, Mapping

from app.nutrition import NutritionRecord, normalize_analysis, to_number
from app.prompts import is_hebrew

logger = logging.getLogger(__name__)

MIN_UPDATED_CONFIDENCE = 50
UPDATE_CONFIDENCE_PENALTY = 10

# (English phrase, Hebrew phrase) pairs; matched case-insensitively as substrings
MORE_PROTEIN_KEYWORDS = ("more protein", "חלבון")
LESS_CALORIES_KEYWORDS = ("less calories", "פחות קלוריות")
MORE_VEGETABLES_KEYWORDS = ("more vegetables", "ירקות")

PROTEIN_FACTOR = 1.2
CALORIES_FACTOR = 0.8
FIBER_FACTOR = 1.3


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def fallback_analysis(locale: str | None) -> NutritionRecord:
    """Return the fixed synthetic analysis, with strings in the given locale.

    Numbers are identical for every locale; only names and descriptions are
    translated.
    """
    hebrew = is_hebrew(locale)
    name = "ארוחה מנותחת" if hebrew else "Analyzed Meal"

    return NutritionRecord(
        name=name,
        description="ניתוח בסיסי של הארוחה" if hebrew else "Basic meal analysis",
        calories=400,
        protein=25,
        carbs=45,
        fat=15,
        fiber=8,
        sugar=10,
        sodium=600,
        saturated_fats_g=5,
        polyunsaturated_fats_g=3,
        monounsaturated_fats_g=7,
        omega_3_g=1,
        omega_6_g=2,
        soluble_fiber_g=4,
        insoluble_fiber_g=4,
        cholesterol_mg=50,
        alcohol_g=0,
        caffeine_mg=0,
        liquids_ml=200,
        serving_size_g=250,
        glycemic_index=55,
        insulin_index=45,
        food_category="מעורב" if hebrew else "Mixed",
        processing_level="בינוני" if hebrew else "Moderate",
        cooking_method="מעורב" if hebrew else "Mixed",
        health_risk_notes="",
        confidence=70,
        ingredients=[
            {
                "name": "מרכיב עיקרי" if hebrew else "Main ingredient",
                "calories": 200,
                "protein": 15,
                "carbs": 25,
                "fat": 8,
                "fiber": 4,
                "sugar": 5,
                "sodium_mg": 300,
            },
            {
                "name": "מרכיב משני" if hebrew else "Secondary ingredient",
                "calories": 200,
                "protein": 10,
                "carbs": 20,
                "fat": 7,
                "fiber": 4,
                "sugar": 5,
                "sodium_mg": 300,
            },
        ],
        health_notes=(
            "ניתוח בסיסי - לתוצאות מדויקות יותר, הוסף מפתח OpenAI"
            if hebrew
            else "Basic analysis - for more accurate results, add OpenAI API key"
        ),
        recommendations=(
            "המלצות כלליות לתזונה בריאה"
            if hebrew
            else "General healthy nutrition recommendations"
        ),
        meal_name=name,
        protein_g=25,
        carbs_g=45,
        fats_g=15,
        fiber_g=8,
        sugar_g=10,
        sodium_mg=600,
    )


def _mentions(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def basic_update(
    original_analysis: NutritionRecord | Mapping[str, Any],
    update_text: str,
) -> NutritionRecord:
    """Adjust an analysis from the user's text without calling the provider.

    Every matching rule applies:
    - "more protein": protein x1.2
    - "less calories": calories x0.8
    - "more vegetables": fiber x1.3

    The notes are always replaced with the update text and confidence drops
    by 10, never below 50.

    Args:
        original_analysis: Previous record, or a raw mapping that is
            normalized first; keys outside NutritionRecord are not kept and
            values get the usual defaults (e.g. confidence 0 becomes 75)
        update_text: User's free-text correction

    Returns:
        New NutritionRecord; the original is left untouched
    """
    if isinstance(original_analysis, NutritionRecord):
        updated = replace(original_analysis, ingredients=list(original_analysis.ingredients))
    else:
        updated = normalize_analysis(original_analysis)

    text = (update_text or "").lower()
    applied = []

    if _mentions(text, MORE_PROTEIN_KEYWORDS):
        updated.protein = _round_half_up(to_number(updated.protein) * PROTEIN_FACTOR)
        updated.protein_g = updated.protein
        applied.append("more_protein")

    if _mentions(text, LESS_CALORIES_KEYWORDS):
        updated.calories = _round_half_up(to_number(updated.calories) * CALORIES_FACTOR)
        applied.append("less_calories")

    if _mentions(text, MORE_VEGETABLES_KEYWORDS):
        updated.fiber = _round_half_up(to_number(updated.fiber) * FIBER_FACTOR)
        updated.fiber_g = updated.fiber
        applied.append("more_vegetables")

    updated.health_notes = f"Updated based on user input: {update_text}"
    updated.confidence = max(
        MIN_UPDATED_CONFIDENCE,
        to_number(updated.confidence) - UPDATE_CONFIDENCE_PENALTY,
    )

    logger.info(
        "Applied basic keyword update",
        extra={"rules": applied, "confidence": updated.confidence},
    )
    return updated
