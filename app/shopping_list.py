import logging
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Iterable

from app import config
from app.nutrition import to_number

logger = logging.getLogger(__name__)

UNKNOWN_INGREDIENT_KEY = "unknown"
UNKNOWN_INGREDIENT_NAME = "Unknown ingredient"


@dataclass
class ShoppingListItem:
    name: str
    quantity: float
    unit: str
    category: str
    estimated_cost: float = config.SHOPPING_ESTIMATED_ITEM_COST

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ShoppingList:
    items: list[ShoppingListItem]

    @property
    def total_estimated_cost(self) -> float:
        return sum(item.estimated_cost for item in self.items)

    @property
    def items_by_category(self) -> dict[str, list[ShoppingListItem]]:
        """Group items by category."""
        grouped = defaultdict(list)
        for item in self.items:
            grouped[item.category].append(item)
        return dict(grouped)

    def to_json(self) -> list[dict[str, Any]]:
        return [item.to_dict() for item in self.items]


def _ingredient_key(ingredient: dict[str, Any]) -> str:
    name = ingredient.get("name")
    if not name:
        return UNKNOWN_INGREDIENT_KEY
    return str(name).lower()


def aggregate_ingredients(ingredient_lists: Iterable[Any]) -> ShoppingList:
    """Combine ingredients from several meals into one shopping list.

    Ingredients are matched by lowercased name only; the first occurrence
    supplies the display name, unit and category, and every occurrence adds
    its quantity (1 when missing). Lists that aren't lists, and entries that
    aren't objects, are skipped.
    """
    by_name: dict[str, ShoppingListItem] = {}
    meal_count = 0

    for ingredients in ingredient_lists:
        if not isinstance(ingredients, list):
            continue
        meal_count += 1
        for ingredient in ingredients:
            if not isinstance(ingredient, dict):
                continue
            key = _ingredient_key(ingredient)
            quantity = to_number(ingredient.get("quantity"), default=1)

            if key in by_name:
                by_name[key].quantity += quantity
            else:
                by_name[key] = ShoppingListItem(
                    name=ingredient.get("name") or UNKNOWN_INGREDIENT_NAME,
                    quantity=quantity,
                    unit=ingredient.get("unit") or config.SHOPPING_DEFAULT_UNIT,
                    category=ingredient.get("category") or config.SHOPPING_DEFAULT_CATEGORY,
                )

    shopping_list = ShoppingList(items=list(by_name.values()))
    logger.info(
        "Shopping list aggregated",
        extra={"meal_count": meal_count, "item_count": len(shopping_list.items)},
    )
    return shopping_list
