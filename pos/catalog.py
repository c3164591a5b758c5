"""Product catalog with recipe and modifier normalization."""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pos.config import PRODUCTS_STORAGE_KEY
from pos.errors import DuplicateName, DuplicateSku, InvalidInput, InvalidRecipe, InvalidUsage, NotFound
from pos.models import IngredientUsage, ModifierGroup, ModifierOption, Product, new_id, parse_money
from pos.persistence import KeyValueStore, load_json, save_json

logger = logging.getLogger(__name__)

_PRODUCT_FIELDS = frozenset({"name", "category", "sku", "base_price", "base_cost", "recipe", "modifier_groups"})


def _text(data: Mapping[str, Any], key: str, *, required: bool = False) -> str:
    value = data.get(key)
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise InvalidInput(f"{key} must be text")
    value = value.strip()
    if required and not value:
        raise InvalidInput(f"{key} is required")
    return value


def _as_sequence(value: Any, key: str) -> Sequence[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
        raise InvalidInput(f"{key} must be a list")
    return value


def normalize_usages(raw_usages: Any, key: str = "recipe") -> list[IngredientUsage]:
    """Build IngredientUsage values; any bad entry fails the whole list."""
    usages = []
    for raw in _as_sequence(raw_usages, key):
        if isinstance(raw, IngredientUsage):
            usages.append(raw)
            continue
        if not isinstance(raw, Mapping):
            raise InvalidRecipe(f"{key} entries must be ingredient usages")
        try:
            usages.append(IngredientUsage(raw.get("ingredient_id", ""), raw.get("quantity_used")))
        except InvalidUsage as exc:
            raise InvalidRecipe(f"Invalid {key} entry: {exc}") from exc
    return usages


def normalize_option(raw: Any) -> ModifierOption:
    if isinstance(raw, ModifierOption):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        raise InvalidInput("modifier options must be mappings")
    return ModifierOption(
        id=_text(raw, "id") or new_id(),
        name=_text(raw, "name", required=True),
        additional_cost=parse_money(raw.get("additional_cost", 0), "additional_cost"),
        additional_price=parse_money(raw.get("additional_price", 0), "additional_price"),
        ingredient_usages=normalize_usages(raw.get("ingredient_usages"), "ingredient_usages"),
    )


def normalize_group(raw: Any) -> ModifierGroup:
    if isinstance(raw, ModifierGroup):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        raise InvalidInput("modifier groups must be mappings")
    name = _text(raw, "name", required=True)
    options = [normalize_option(option) for option in _as_sequence(raw.get("options"), "options")]
    if not options:
        raise InvalidInput(f"Modifier group {name!r} needs at least one option")
    option_ids = [option.id for option in options]
    if len(set(option_ids)) != len(option_ids):
        raise InvalidInput(f"Modifier group {name!r} has duplicate option ids")
    return ModifierGroup(id=_text(raw, "id") or new_id(), name=name, options=options)


def normalize_groups(raw_groups: Any) -> list[ModifierGroup]:
    groups = [normalize_group(group) for group in _as_sequence(raw_groups, "modifier_groups")]
    group_ids = [group.id for group in groups]
    if len(set(group_ids)) != len(group_ids):
        raise InvalidInput("modifier_groups has duplicate group ids")
    return groups


class Catalog:
    """Owns products; names and non-empty SKUs are unique, case-insensitively."""

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self._store = store
        self._products: dict[str, Product] = {}
        self.load()

    def load(self) -> None:
        payload = load_json(self._store, PRODUCTS_STORAGE_KEY)
        self._products = {}
        for raw in payload or []:
            try:
                product = Product.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                logger.error("skip_corrupt_product raw=%r", raw)
                continue
            self._products[product.id] = product

    def save(self) -> bool:
        return save_json(self._store, PRODUCTS_STORAGE_KEY, [p.to_dict() for p in self._products.values()])

    def _check_unique(self, name: str, sku: str, exclude_id: str | None = None) -> None:
        folded_name = name.casefold()
        folded_sku = sku.casefold()
        for product in self._products.values():
            if product.id == exclude_id:
                continue
            if product.name.casefold() == folded_name:
                raise DuplicateName(f"Product {name!r} already exists")
            if folded_sku and product.sku.casefold() == folded_sku:
                raise DuplicateSku(f"SKU {sku!r} already exists")

    def _build(self, product_id: str, data: Mapping[str, Any]) -> Product:
        return Product(
            id=product_id,
            name=_text(data, "name", required=True),
            category=_text(data, "category"),
            sku=_text(data, "sku"),
            base_price=parse_money(data.get("base_price", 0), "base_price"),
            base_cost=parse_money(data.get("base_cost", 0), "base_cost"),
            recipe=normalize_usages(data.get("recipe")),
            modifier_groups=normalize_groups(data.get("modifier_groups")),
        )

    def add_product(self, data: Mapping[str, Any]) -> Product:
        if not isinstance(data, Mapping):
            raise InvalidInput("product data must be a mapping")
        product = self._build(new_id(), data)
        self._check_unique(product.name, product.sku)
        self._products[product.id] = product
        self.save()
        logger.info("product_added id=%s name=%r", product.id, product.name)
        return copy.deepcopy(product)

    def update_product(self, product_id: str, patch: Mapping[str, Any]) -> Product:
        """Apply a patch; nested `recipe` / `modifier_groups` are replaced wholesale."""
        existing = self._products.get(product_id)
        if existing is None:
            raise NotFound(f"Product {product_id!r} not found")
        unknown = set(patch) - _PRODUCT_FIELDS - {"id"}
        if unknown:
            raise InvalidInput(f"Unknown product fields: {', '.join(sorted(unknown))}")

        merged = existing.to_dict()
        merged.update({key: value for key, value in patch.items() if key != "id"})
        updated = self._build(existing.id, merged)
        self._check_unique(updated.name, updated.sku, exclude_id=existing.id)
        self._products[product_id] = updated
        self.save()
        logger.info("product_updated id=%s", product_id)
        return copy.deepcopy(updated)

    def remove_product(self, product_id: str) -> None:
        if product_id not in self._products:
            raise NotFound(f"Product {product_id!r} not found")
        del self._products[product_id]
        self.save()
        logger.info("product_removed id=%s", product_id)

    def list_products(self) -> list[Product]:
        return [copy.deepcopy(p) for p in self._products.values()]

    def get_product(self, product_id: str) -> Product | None:
        product = self._products.get(product_id)
        return None if product is None else copy.deepcopy(product)

    def resolve_option(self, product_id: str, group_id: str, option_id: str) -> tuple[ModifierGroup, ModifierOption] | None:
        """Find a group/option pair on a product, or None when any part is unknown."""
        product = self._products.get(product_id)
        if product is None:
            return None
        group = product.find_group(group_id)
        if group is None:
            return None
        option = group.find_option(option_id)
        if option is None:
            return None
        return copy.deepcopy(group), copy.deepcopy(option)
