"""Tests for fallback analysis and keyword-based updates."""

import dataclasses

from app.fallback import basic_update, fallback_analysis
from app.nutrition import ALIAS_FIELDS, NutritionRecord, normalize_analysis

LOCALIZED_FIELDS = {
    "name", "description", "food_category", "processing_level", "cooking_method",
    "health_notes", "recommendations", "meal_name", "ingredients",
}


class TestFallbackAnalysis:
    """Tests for fallback_analysis()."""

    def test_english_record(self):
        record = fallback_analysis("english")

        assert record.name == "Analyzed Meal"
        assert record.calories == 400
        assert record.protein == 25
        assert record.serving_size_g == 250
        assert record.glycemic_index == 55
        assert record.insulin_index == 45
        assert record.confidence == 70
        assert [i["name"] for i in record.ingredients] == ["Main ingredient", "Secondary ingredient"]
        assert "add OpenAI API key" in record.health_notes

    def test_hebrew_record_translates_strings_only(self):
        english = fallback_analysis("english")
        hebrew = fallback_analysis("hebrew")

        assert hebrew.name == "ארוחה מנותחת"
        assert hebrew.food_category == "מעורב"
        assert hebrew.name != english.name

        for f in dataclasses.fields(NutritionRecord):
            if f.name not in LOCALIZED_FIELDS:
                assert getattr(hebrew, f.name) == getattr(english, f.name), f.name

        for he_item, en_item in zip(hebrew.ingredients, english.ingredients):
            assert set(he_item) == set(en_item)
            assert {k: v for k, v in he_item.items() if k != "name"} == \
                {k: v for k, v in en_item.items() if k != "name"}

    def test_unknown_locale_is_english(self):
        assert fallback_analysis("french").name == "Analyzed Meal"
        assert fallback_analysis(None).name == "Analyzed Meal"

    def test_aliases_match_primary_fields(self):
        record = fallback_analysis("hebrew")

        for alias, primary in ALIAS_FIELDS.items():
            assert getattr(record, alias) == getattr(record, primary)

    def test_each_call_returns_a_new_record(self):
        first = fallback_analysis("english")
        first.ingredients.append({"name": "extra"})

        assert len(fallback_analysis("english").ingredients) == 2


class TestBasicUpdate:
    """Tests for basic_update()."""

    def test_more_protein(self):
        original = {"calories": 100, "protein": 10, "fiber": 5, "confidence": 80}

        updated = basic_update(original, "I want more protein please")

        assert updated.protein == 12
        assert updated.protein_g == 12
        assert updated.calories == 100
        assert updated.fiber == 5
        assert updated.confidence == 70

    def test_confidence_floor(self):
        updated = basic_update({"confidence": 55}, "anything")

        assert updated.confidence == 50

    def test_less_calories_is_case_insensitive(self):
        updated = basic_update({"calories": 455}, "LESS CALORIES please")

        assert updated.calories == 364

    def test_more_vegetables_updates_fiber_alias(self):
        updated = basic_update({"fiber": 5}, "add more vegetables")

        # 6.5 rounds up
        assert updated.fiber == 7
        assert updated.fiber_g == 7

    def test_rules_are_cumulative(self):
        original = {"calories": 500, "protein": 20, "fiber": 10, "confidence": 90}

        updated = basic_update(original, "more protein, less calories and more vegetables")

        assert updated.protein == 24
        assert updated.calories == 400
        assert updated.fiber == 13
        assert updated.confidence == 80

    def test_hebrew_keywords(self):
        original = {"calories": 500, "protein": 20, "fiber": 10}

        updated = basic_update(original, "יותר חלבון, פחות קלוריות, עם ירקות")

        assert updated.protein == 24
        assert updated.calories == 400
        assert updated.fiber == 13

    def test_health_notes_always_replaced(self):
        updated = basic_update({"healthNotes": "old"}, "it was a big plate")

        assert updated.health_notes == "Updated based on user input: it was a big plate"

    def test_mapping_input_keeps_only_record_fields(self):
        updated = basic_update({"calories": 200, "confidence": 0, "source": "camera"}, "note")

        assert not hasattr(updated, "source")
        assert "source" not in updated.to_dict()
        assert updated.confidence == 65

    def test_record_input_is_not_mutated(self):
        original = normalize_analysis({"protein": 10, "confidence": 80})

        updated = basic_update(original, "more protein")

        assert original.protein == 10
        assert original.confidence == 80
        assert updated.protein == 12
        assert updated is not original

    def test_record_input_keeps_other_fields(self):
        original = fallback_analysis("english")

        updated = basic_update(original, "less calories")

        assert updated.calories == 320
        assert updated.name == "Analyzed Meal"
        assert updated.ingredients == original.ingredients
        assert updated.ingredients is not original.ingredients
        assert updated.confidence == 60
