import pytest

from app.shopping_list import ShoppingList, ShoppingListItem, aggregate_ingredients


@pytest.fixture
def meal_ingredients():
    return [
        [
            {"name": "Onion", "quantity": 1, "unit": "whole", "category": "produce"},
            {"name": "Garlic", "quantity": 3, "unit": "cloves", "category": "produce"},
        ],
        [
            {"name": "onion", "quantity": 2, "unit": "whole", "category": "produce"},
            {"name": "Olive Oil", "quantity": 2, "unit": "tbsp", "category": "pantry"},
        ],
    ]


def _by_name(shopping_list):
    return {item.name: item for item in shopping_list.items}


def test_quantities_are_summed_case_insensitively(meal_ingredients):
    result = aggregate_ingredients(meal_ingredients)

    items = _by_name(result)
    assert set(items) == {"Onion", "Garlic", "Olive Oil"}
    assert items["Onion"].quantity == 3
    assert items["Garlic"].quantity == 3


def test_first_occurrence_keeps_unit_and_category():
    result = aggregate_ingredients([
        [{"name": "Milk", "quantity": 1, "unit": "cup", "category": "dairy"}],
        [{"name": "MILK", "quantity": 200, "unit": "ml", "category": "drinks"}],
    ])

    (item,) = result.items
    assert item.name == "Milk"
    assert item.unit == "cup"
    assert item.category == "dairy"
    assert item.quantity == 201


def test_missing_fields_get_defaults():
    result = aggregate_ingredients([[{"name": "Tomato"}]])

    (item,) = result.items
    assert item == ShoppingListItem(name="Tomato", quantity=1, unit="piece", category="other", estimated_cost=5)


def test_invalid_quantity_counts_as_one():
    result = aggregate_ingredients([[
        {"name": "Egg", "quantity": "a few"},
        {"name": "egg", "quantity": "2"},
    ]])

    assert result.items[0].quantity == 3


def test_nameless_ingredients_share_unknown_entry():
    result = aggregate_ingredients([[{"quantity": 2}, {"name": "", "quantity": 1}]])

    (item,) = result.items
    assert item.name == "Unknown ingredient"
    assert item.quantity == 3


def test_non_list_inputs_and_entries_are_skipped():
    result = aggregate_ingredients([
        None,
        "rice, beans",
        {"name": "Rice"},
        [{"name": "Beans", "quantity": 1}, "salt", 42],
    ])

    assert [item.name for item in result.items] == ["Beans"]


def test_empty_input():
    result = aggregate_ingredients([])

    assert result.items == []
    assert result.total_estimated_cost == 0


def test_total_estimated_cost(meal_ingredients):
    result = aggregate_ingredients(meal_ingredients)

    assert result.total_estimated_cost == 15


def test_items_by_category(meal_ingredients):
    result = aggregate_ingredients(meal_ingredients)

    grouped = result.items_by_category
    assert [item.name for item in grouped["produce"]] == ["Onion", "Garlic"]
    assert [item.name for item in grouped["pantry"]] == ["Olive Oil"]


def test_to_json():
    shopping_list = ShoppingList(items=[ShoppingListItem("Rice", 2, "cup", "grains")])

    assert shopping_list.to_json() == [
        {"name": "Rice", "quantity": 2, "unit": "cup", "category": "grains", "estimated_cost": 5},
    ]
