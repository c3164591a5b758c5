"""Inventory ledger: owns ingredients and every stock mutation."""

from __future__ import annotations

import copy
import logging
import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from pos.config import INGREDIENTS_STORAGE_KEY
from pos.errors import DuplicateName, InvalidDelta, InvalidInput, NotFound
from pos.models import Ingredient, new_id, parse_amount, round_amount
from pos.persistence import KeyValueStore, load_json, save_json

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset({"name", "unit", "reorder_level", "supplier_info"})


def _required_text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{key} is required")
    return value.strip()


class InventoryLedger:
    """Ingredients in ledger order, persisted under one storage key."""

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self._store = store
        self._ingredients: dict[str, Ingredient] = {}
        self.load()

    def load(self) -> None:
        payload = load_json(self._store, INGREDIENTS_STORAGE_KEY)
        self._ingredients = {}
        for raw in payload or []:
            try:
                ingredient = Ingredient.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                logger.error("skip_corrupt_ingredient raw=%r", raw)
                continue
            self._ingredients[ingredient.id] = ingredient

    def save(self) -> bool:
        return save_json(self._store, INGREDIENTS_STORAGE_KEY, [i.to_dict() for i in self._ingredients.values()])

    def _name_taken(self, name: str, exclude_id: str | None = None) -> bool:
        folded = name.casefold()
        return any(
            ingredient.name.casefold() == folded
            for ingredient in self._ingredients.values()
            if ingredient.id != exclude_id
        )

    def _require(self, ingredient_id: str) -> Ingredient:
        ingredient = self._ingredients.get(ingredient_id)
        if ingredient is None:
            raise NotFound(f"Ingredient {ingredient_id!r} not found")
        return ingredient

    def add_ingredient(self, data: Mapping[str, Any]) -> Ingredient:
        if not isinstance(data, Mapping):
            raise InvalidInput("ingredient data must be a mapping")
        name = _required_text(data, "name")
        unit = _required_text(data, "unit")
        quantity = parse_amount(data.get("quantity", 0), "quantity")
        reorder_level = parse_amount(data.get("reorder_level", 0), "reorder_level")
        supplier_info = data.get("supplier_info") or ""
        if not isinstance(supplier_info, str):
            raise InvalidInput("supplier_info must be text")
        if self._name_taken(name):
            raise DuplicateName(f"Ingredient {name!r} already exists")

        ingredient = Ingredient(
            id=new_id(),
            name=name,
            unit=unit,
            quantity=quantity,
            reorder_level=reorder_level,
            supplier_info=supplier_info.strip(),
        )
        self._ingredients[ingredient.id] = ingredient
        self.save()
        logger.info("ingredient_added id=%s name=%r", ingredient.id, ingredient.name)
        return copy.copy(ingredient)

    def update_ingredient(self, ingredient_id: str, patch: Mapping[str, Any]) -> Ingredient:
        """Change descriptive fields; stock only moves through adjust_stock."""
        ingredient = self._require(ingredient_id)
        if "quantity" in patch:
            raise InvalidInput("quantity changes go through adjust_stock")
        unknown = set(patch) - _UPDATABLE_FIELDS
        if unknown:
            raise InvalidInput(f"Unknown ingredient fields: {', '.join(sorted(unknown))}")

        changes: dict[str, Any] = {}
        if "name" in patch:
            changes["name"] = _required_text(patch, "name")
            if self._name_taken(changes["name"], exclude_id=ingredient_id):
                raise DuplicateName(f"Ingredient {changes['name']!r} already exists")
        if "unit" in patch:
            changes["unit"] = _required_text(patch, "unit")
        if "reorder_level" in patch:
            changes["reorder_level"] = parse_amount(patch["reorder_level"], "reorder_level")
        if "supplier_info" in patch:
            supplier_info = patch["supplier_info"] or ""
            if not isinstance(supplier_info, str):
                raise InvalidInput("supplier_info must be text")
            changes["supplier_info"] = supplier_info.strip()

        for key, value in changes.items():
            setattr(ingredient, key, value)
        self.save()
        return copy.copy(ingredient)

    def adjust_stock(self, ingredient_id: str, delta: float) -> Ingredient:
        """Move stock by `delta`, clamping the result at zero."""
        ingredient = self._require(ingredient_id)
        if isinstance(delta, bool) or not isinstance(delta, (int, float, Decimal)) or not math.isfinite(delta):
            raise InvalidDelta(f"delta must be a finite number, got {delta!r}")

        before = ingredient.quantity
        after = round_amount(before + float(delta))
        ingredient.quantity = max(0.0, after)
        if after < 0:
            logger.warning(
                "stock_clamped id=%s name=%r before=%s delta=%s", ingredient.id, ingredient.name, before, delta
            )
        self.save()
        return copy.copy(ingredient)

    def apply_deductions(self, deductions: Mapping[str, float]) -> list[Ingredient]:
        """Decrease several ingredients at once; unknown ids abort before any change."""
        missing = [ingredient_id for ingredient_id in deductions if ingredient_id not in self._ingredients]
        if missing:
            raise NotFound(f"Ingredients not found: {', '.join(missing)}")
        for ingredient_id, amount in deductions.items():
            if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)) or not math.isfinite(amount):
                raise InvalidDelta(f"deduction for {ingredient_id!r} must be a finite number")
            if amount < 0:
                raise InvalidDelta(f"deduction for {ingredient_id!r} must not be negative")

        updated = []
        for ingredient_id, amount in deductions.items():
            ingredient = self._ingredients[ingredient_id]
            ingredient.quantity = max(0.0, round_amount(ingredient.quantity - float(amount)))
            updated.append(copy.copy(ingredient))
        self.save()
        return updated

    def remove_ingredient(self, ingredient_id: str) -> None:
        self._require(ingredient_id)
        del self._ingredients[ingredient_id]
        self.save()
        logger.info("ingredient_removed id=%s", ingredient_id)

    def check_low_stock(self) -> list[Ingredient]:
        return [copy.copy(i) for i in self._ingredients.values() if i.is_low_stock]

    def list_ingredients(self) -> list[Ingredient]:
        return [copy.copy(i) for i in self._ingredients.values()]

    def get_ingredient(self, ingredient_id: str) -> Ingredient | None:
        ingredient = self._ingredients.get(ingredient_id)
        return None if ingredient is None else copy.copy(ingredient)
