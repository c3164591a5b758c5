"""Demo menu and opening stock for a fresh terminal."""

from __future__ import annotations

import logging
from typing import Any

from pos.session import PointOfSale

logger = logging.getLogger(__name__)

DEMO_INGREDIENTS: list[dict[str, Any]] = [
    {"name": "Coffee Beans", "unit": "g", "quantity": 5000, "reorder_level": 1000, "supplier_info": "Local Roasters"},
    {"name": "Water", "unit": "ml", "quantity": 50000, "reorder_level": 5000},
    {"name": "Milk", "unit": "ml", "quantity": 10000, "reorder_level": 2000, "supplier_info": "Dairy Farm Co."},
    {"name": "Soy Milk", "unit": "ml", "quantity": 3000, "reorder_level": 1000},
    {"name": "Oat Milk", "unit": "ml", "quantity": 3000, "reorder_level": 1000},
    {"name": "Chocolate Syrup", "unit": "ml", "quantity": 2000, "reorder_level": 500},
    {"name": "Vanilla Syrup", "unit": "ml", "quantity": 1000, "reorder_level": 300},
    {"name": "Green Tea Leaves", "unit": "g", "quantity": 500, "reorder_level": 100},
    {"name": "Black Tea Leaves", "unit": "g", "quantity": 500, "reorder_level": 100},
    {"name": "Chai Tea Mix", "unit": "g", "quantity": 800, "reorder_level": 200},
    {"name": "Croissant", "unit": "pcs", "quantity": 24, "reorder_level": 6},
    {"name": "Blueberry Muffin", "unit": "pcs", "quantity": 18, "reorder_level": 6},
    {"name": "Bagel", "unit": "pcs", "quantity": 20, "reorder_level": 5},
]

# Usages name ingredients; seeding resolves them to ledger ids.
_MILK_GROUP = {
    "id": "milk",
    "name": "Milk Options",
    "options": [
        {"id": "milk-whole", "name": "Whole Milk"},
        {"id": "milk-soy", "name": "Soy Milk", "additional_cost": "0.20", "additional_price": "0.50",
         "ingredient_usages": [("Soy Milk", 200)]},
        {"id": "milk-oat", "name": "Oat Milk", "additional_cost": "0.25", "additional_price": "0.60",
         "ingredient_usages": [("Oat Milk", 200)]},
    ],
}
_EXTRAS_GROUP = {
    "id": "extras",
    "name": "Add-ons",
    "options": [
        {"id": "extra-shot", "name": "Extra Shot", "additional_cost": "0.30", "additional_price": "1.00",
         "ingredient_usages": [("Coffee Beans", 10)]},
        {"id": "extra-vanilla", "name": "Vanilla Syrup", "additional_cost": "0.10", "additional_price": "0.50",
         "ingredient_usages": [("Vanilla Syrup", 15)]},
    ],
}

DEMO_MENU: list[dict[str, Any]] = [
    {"name": "Espresso", "category": "coffee", "sku": "COF-ESP", "base_price": "3.50", "base_cost": "0.60",
     "recipe": [("Coffee Beans", 10), ("Water", 200)], "modifier_groups": [_EXTRAS_GROUP]},
    {"name": "Americano", "category": "coffee", "sku": "COF-AME", "base_price": "4.00", "base_cost": "0.70",
     "recipe": [("Coffee Beans", 10), ("Water", 300)], "modifier_groups": [_EXTRAS_GROUP]},
    {"name": "Cappuccino", "category": "coffee", "sku": "COF-CAP", "base_price": "4.50", "base_cost": "1.00",
     "recipe": [("Coffee Beans", 10), ("Milk", 150), ("Water", 100)], "modifier_groups": [_MILK_GROUP, _EXTRAS_GROUP]},
    {"name": "Latte", "category": "coffee", "sku": "COF-LAT", "base_price": "4.75", "base_cost": "1.10",
     "recipe": [("Coffee Beans", 10), ("Milk", 200), ("Water", 50)], "modifier_groups": [_MILK_GROUP, _EXTRAS_GROUP]},
    {"name": "Mocha", "category": "coffee", "sku": "COF-MOC", "base_price": "5.00", "base_cost": "1.30",
     "recipe": [("Coffee Beans", 10), ("Milk", 150), ("Chocolate Syrup", 30), ("Water", 50)],
     "modifier_groups": [_MILK_GROUP]},
    {"name": "Green Tea", "category": "tea", "sku": "TEA-GRN", "base_price": "3.00", "base_cost": "0.40",
     "recipe": [("Green Tea Leaves", 5), ("Water", 250)]},
    {"name": "Black Tea", "category": "tea", "sku": "TEA-BLK", "base_price": "3.00", "base_cost": "0.40",
     "recipe": [("Black Tea Leaves", 5), ("Water", 250)]},
    {"name": "Chai Latte", "category": "tea", "sku": "TEA-CHA", "base_price": "4.50", "base_cost": "1.00",
     "recipe": [("Chai Tea Mix", 15), ("Milk", 200)], "modifier_groups": [_MILK_GROUP]},
    {"name": "Croissant", "category": "food", "sku": "FOOD-CRO", "base_price": "3.50", "base_cost": "1.20",
     "recipe": [("Croissant", 1)]},
    {"name": "Blueberry Muffin", "category": "food", "sku": "FOOD-MUF", "base_price": "3.75", "base_cost": "1.30",
     "recipe": [("Blueberry Muffin", 1)]},
    {"name": "Bagel", "category": "food", "sku": "FOOD-BAG", "base_price": "3.00", "base_cost": "0.90",
     "recipe": [("Bagel", 1)]},
]


def _resolve_usages(pairs: list[tuple[str, float]], ids_by_name: dict[str, str]) -> list[dict[str, Any]]:
    return [{"ingredient_id": ids_by_name[name], "quantity_used": amount} for name, amount in pairs]


def _resolve_groups(groups: list[dict[str, Any]], ids_by_name: dict[str, str]) -> list[dict[str, Any]]:
    resolved = []
    for group in groups:
        options = [
            {**option, "ingredient_usages": _resolve_usages(option.get("ingredient_usages", []), ids_by_name)}
            for option in group["options"]
        ]
        resolved.append({**group, "options": options})
    return resolved


def seed_demo_data(session: PointOfSale) -> None:
    """Load the demo stock and menu into an empty session."""
    ids_by_name = {}
    for raw in DEMO_INGREDIENTS:
        ingredient = session.inventory.add_ingredient(raw)
        ids_by_name[ingredient.name] = ingredient.id

    for raw in DEMO_MENU:
        session.catalog.add_product(
            {
                **raw,
                "recipe": _resolve_usages(raw["recipe"], ids_by_name),
                "modifier_groups": _resolve_groups(raw.get("modifier_groups", []), ids_by_name),
            }
        )
    logger.info("demo_seeded ingredients=%d products=%d", len(DEMO_INGREDIENTS), len(DEMO_MENU))
