"""Prompt construction for meal image analysis.

Two locales are supported: "hebrew" and everything else (English). The JSON
schema in the analysis prompts must list exactly the fields that
`app.nutrition.NutritionRecord` reads, so the model's output stays stable.
"""

import json
from typing import Any

HEBREW = "hebrew"

_ANALYSIS_PROMPT_EN = """You are an expert nutrition analyst. Analyze the food image and provide detailed nutritional information.

Return JSON in this exact format:
{
  "name": "Dish name",
  "description": "Brief description",
  "calories": number,
  "protein": number,
  "carbs": number,
  "fat": number,
  "fiber": number,
  "sugar": number,
  "sodium": number,
  "saturated_fats_g": number,
  "polyunsaturated_fats_g": number,
  "monounsaturated_fats_g": number,
  "omega_3_g": number,
  "omega_6_g": number,
  "soluble_fiber_g": number,
  "insoluble_fiber_g": number,
  "cholesterol_mg": number,
  "alcohol_g": number,
  "caffeine_mg": number,
  "liquids_ml": number,
  "serving_size_g": number,
  "glycemic_index": number,
  "insulin_index": number,
  "food_category": "category",
  "processing_level": "processing level",
  "cooking_method": "cooking method",
  "health_risk_notes": "health notes",
  "confidence": number (0-100),
  "ingredients": [
    {
      "name": "ingredient name",
      "calories": number,
      "protein": number,
      "carbs": number,
      "fat": number,
      "fiber": number,
      "sugar": number,
      "sodium_mg": number
    }
  ],
  "healthNotes": "Health notes and recommendations",
  "recommendations": "Nutritional recommendations"
}"""

_ANALYSIS_PROMPT_HE = """אתה מנתח תזונה מומחה. נתח את תמונת האוכל ותן פירוט תזונתי מדויק.

החזר JSON בפורמט הזה בדיוק:
{
  "name": "שם המנה",
  "description": "תיאור קצר",
  "calories": מספר,
  "protein": מספר,
  "carbs": מספר,
  "fat": מספר,
  "fiber": מספר,
  "sugar": מספר,
  "sodium": מספר,
  "saturated_fats_g": מספר,
  "polyunsaturated_fats_g": מספר,
  "monounsaturated_fats_g": מספר,
  "omega_3_g": מספר,
  "omega_6_g": מספר,
  "soluble_fiber_g": מספר,
  "insoluble_fiber_g": מספר,
  "cholesterol_mg": מספר,
  "alcohol_g": מספר,
  "caffeine_mg": מספר,
  "liquids_ml": מספר,
  "serving_size_g": מספר,
  "glycemic_index": מספר,
  "insulin_index": מספר,
  "food_category": "קטגוריה",
  "processing_level": "רמת עיבוד",
  "cooking_method": "שיטת הכנה",
  "health_risk_notes": "הערות בריאות",
  "confidence": מספר (0-100),
  "ingredients": [
    {
      "name": "שם המרכיב",
      "calories": מספר,
      "protein": מספר,
      "carbs": מספר,
      "fat": מספר,
      "fiber": מספר,
      "sugar": מספר,
      "sodium_mg": מספר
    }
  ],
  "healthNotes": "הערות בריאות והמלצות",
  "recommendations": "המלצות תזונתיות"
}"""

_UPDATE_TEXT_SUFFIX = {
    "en": "\n\nAdditional user information: {text}",
    "he": "\n\nמידע נוסף מהמשתמש: {text}",
}

_EDITED_INGREDIENTS_SUFFIX = {
    "en": "\n\nUser-edited ingredients: {ingredients}",
    "he": "\n\nמרכיבים שערך המשתמש: {ingredients}",
}

_UPDATE_PROMPT = {
    "en": """Update the existing nutritional analysis based on the new information.

Current analysis:
{analysis}

New user information:
{text}

Return updated JSON in the same format as the original analysis.""",
    "he": """עדכן את הניתוח התזונתי הקיים בהתבסס על המידע החדש.

ניתוח קיים:
{analysis}

מידע חדש מהמשתמש:
{text}

החזר JSON מעודכן באותו פורמט של הניתוח המקורי.""",
}

_UPDATE_SYSTEM_PROMPT = {
    "en": "You are an expert nutrition analyst. Update the existing analysis based on the new information provided by the user.",
    "he": "אתה מנתח תזונה מומחה. עדכן את הניתוח הקיים בהתבסס על המידע החדש שהמשתמש סיפק.",
}

_ANALYZE_IMAGE_TEXT = {
    "en": "Analyze this food image and provide detailed nutritional information.",
    "he": "נתח את התמונה הזו של האוכל ותן לי פירוט תזונתי מדויק.",
}


def is_hebrew(locale: str | None) -> bool:
    return locale == HEBREW


def _lang(locale: str | None) -> str:
    return "he" if is_hebrew(locale) else "en"


def _to_json(value: Any, indent: int | None = None) -> str:
    # default=str keeps dates and other stray types from breaking the prompt
    separators = (",", ": ") if indent else (",", ":")
    return json.dumps(value, ensure_ascii=False, indent=indent, separators=separators, default=str)


def build_analysis_prompt(
    locale: str | None,
    update_text: str | None = None,
    edited_ingredients: list[Any] | None = None,
) -> str:
    """Build the system prompt for analyzing a meal image.

    Args:
        locale: "hebrew" for the Hebrew prompt, anything else for English
        update_text: Free text from the user, embedded verbatim if non-empty
        edited_ingredients: User-corrected ingredients, used only when there
            is no update text

    Returns:
        Prompt text with at most one suffix appended
    """
    lang = _lang(locale)
    prompt = _ANALYSIS_PROMPT_HE if lang == "he" else _ANALYSIS_PROMPT_EN

    if update_text:
        return prompt + _UPDATE_TEXT_SUFFIX[lang].format(text=update_text)

    if edited_ingredients:
        return prompt + _EDITED_INGREDIENTS_SUFFIX[lang].format(
            ingredients=_to_json(edited_ingredients)
        )

    return prompt


def build_update_prompt(original_analysis: Any, update_text: str, locale: str | None) -> str:
    """Build the user prompt asking the model to revise an existing analysis."""
    return _UPDATE_PROMPT[_lang(locale)].format(
        analysis=_to_json(original_analysis, indent=2),
        text=update_text,
    )


def update_system_prompt(locale: str | None) -> str:
    return _UPDATE_SYSTEM_PROMPT[_lang(locale)]


def analysis_user_text(locale: str | None, update_text: str | None = None) -> str:
    """Text part of the user message sent alongside the image."""
    return update_text or _ANALYZE_IMAGE_TEXT[_lang(locale)]
