"""Domain models for the point-of-sale core."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import uuid4

from pos.config import AMOUNT_PLACES
from pos.errors import InvalidInput, InvalidUsage

ZERO = Decimal("0")


def new_id() -> str:
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def round_amount(value: float) -> float:
    """Round away binary float drift so sums like 3 x 0.1 compare equal to 0.3."""
    return round(float(value), AMOUNT_PLACES)


def parse_amount(value: Any, field_name: str, error: type[InvalidInput] = InvalidInput) -> float:
    """Coerce a non-negative ingredient amount to float."""
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise error(f"{field_name} must be a number") from None
    if not _is_number(value) or not math.isfinite(float(value)):
        raise error(f"{field_name} must be a number")
    amount = round_amount(value)
    if amount < 0:
        raise error(f"{field_name} must not be negative")
    return amount


def parse_money(value: Any, field_name: str, error: type[InvalidInput] = InvalidInput) -> Decimal:
    """Coerce a non-negative money value to Decimal (floats go through str)."""
    if isinstance(value, str):
        raw = value.strip()
    elif _is_number(value):
        raw = str(value)
    else:
        raise error(f"{field_name} must be a number")
    try:
        money = Decimal(raw)
    except InvalidOperation:
        raise error(f"{field_name} must be a number") from None
    if not money.is_finite():
        raise error(f"{field_name} must be a number")
    if money < 0:
        raise error(f"{field_name} must not be negative")
    return money


def _parse_datetime(raw: str) -> datetime:
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Ingredient:
    """A stocked raw material."""

    id: str
    name: str
    unit: str
    quantity: float = 0.0
    reorder_level: float = 0.0
    supplier_info: str = ""

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.reorder_level

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "unit": self.unit,
            "quantity": self.quantity,
            "reorder_level": self.reorder_level,
            "supplier_info": self.supplier_info,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Ingredient:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            unit=str(data.get("unit", "")),
            quantity=round_amount(data.get("quantity", 0)),
            reorder_level=round_amount(data.get("reorder_level", 0)),
            supplier_info=str(data.get("supplier_info") or ""),
        )


@dataclass(frozen=True)
class IngredientUsage:
    """Quantity of one ingredient consumed by a recipe or modifier option."""

    ingredient_id: str
    quantity_used: float

    def __post_init__(self) -> None:
        if not isinstance(self.ingredient_id, str) or not self.ingredient_id.strip():
            raise InvalidUsage("ingredient_id must be non-empty")
        quantity = parse_amount(self.quantity_used, "quantity_used", InvalidUsage)
        object.__setattr__(self, "quantity_used", quantity)

    def to_dict(self) -> dict[str, Any]:
        return {"ingredient_id": self.ingredient_id, "quantity_used": self.quantity_used}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IngredientUsage:
        return cls(ingredient_id=data.get("ingredient_id", ""), quantity_used=data.get("quantity_used"))


@dataclass
class ModifierOption:
    """A selectable add-on such as "Soy Milk"."""

    id: str
    name: str
    additional_cost: Decimal = ZERO
    additional_price: Decimal = ZERO
    ingredient_usages: list[IngredientUsage] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "additional_cost": str(self.additional_cost),
            "additional_price": str(self.additional_price),
            "ingredient_usages": [usage.to_dict() for usage in self.ingredient_usages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModifierOption:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            additional_cost=Decimal(str(data.get("additional_cost", "0"))),
            additional_price=Decimal(str(data.get("additional_price", "0"))),
            ingredient_usages=[IngredientUsage.from_dict(u) for u in data.get("ingredient_usages", [])],
        )


@dataclass
class ModifierGroup:
    """A named category of choices such as "Milk Options"."""

    id: str
    name: str
    options: list[ModifierOption] = field(default_factory=list)

    def find_option(self, option_id: str) -> ModifierOption | None:
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "options": [option.to_dict() for option in self.options]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModifierGroup:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            options=[ModifierOption.from_dict(o) for o in data.get("options", [])],
        )


@dataclass
class Product:
    """A sellable item with its base recipe and modifier groups."""

    id: str
    name: str
    category: str = ""
    sku: str = ""
    base_price: Decimal = ZERO
    base_cost: Decimal = ZERO
    recipe: list[IngredientUsage] = field(default_factory=list)
    modifier_groups: list[ModifierGroup] = field(default_factory=list)

    def find_group(self, group_id: str) -> ModifierGroup | None:
        for group in self.modifier_groups:
            if group.id == group_id:
                return group
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "sku": self.sku,
            "base_price": str(self.base_price),
            "base_cost": str(self.base_cost),
            "recipe": [usage.to_dict() for usage in self.recipe],
            "modifier_groups": [group.to_dict() for group in self.modifier_groups],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Product:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            category=str(data.get("category") or ""),
            sku=str(data.get("sku") or ""),
            base_price=Decimal(str(data.get("base_price", "0"))),
            base_cost=Decimal(str(data.get("base_cost", "0"))),
            recipe=[IngredientUsage.from_dict(u) for u in data.get("recipe", [])],
            modifier_groups=[ModifierGroup.from_dict(g) for g in data.get("modifier_groups", [])],
        )


@dataclass(frozen=True)
class ChosenModifier:
    """A modifier option resolved onto an order line."""

    modifier_group_id: str
    modifier_group_name: str
    option_id: str
    option_name: str
    additional_price: Decimal
    additional_cost: Decimal
    ingredient_usages: tuple[IngredientUsage, ...] = ()

    @classmethod
    def resolve(cls, group: ModifierGroup, option: ModifierOption) -> ChosenModifier:
        return cls(
            modifier_group_id=group.id,
            modifier_group_name=group.name,
            option_id=option.id,
            option_name=option.name,
            additional_price=option.additional_price,
            additional_cost=option.additional_cost,
            ingredient_usages=tuple(option.ingredient_usages),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "modifier_group_id": self.modifier_group_id,
            "modifier_group_name": self.modifier_group_name,
            "option_id": self.option_id,
            "option_name": self.option_name,
            "additional_price": str(self.additional_price),
            "additional_cost": str(self.additional_cost),
            "ingredient_usages": [usage.to_dict() for usage in self.ingredient_usages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChosenModifier:
        return cls(
            modifier_group_id=str(data["modifier_group_id"]),
            modifier_group_name=str(data.get("modifier_group_name", "")),
            option_id=str(data["option_id"]),
            option_name=str(data.get("option_name", "")),
            additional_price=Decimal(str(data.get("additional_price", "0"))),
            additional_cost=Decimal(str(data.get("additional_cost", "0"))),
            ingredient_usages=tuple(IngredientUsage.from_dict(u) for u in data.get("ingredient_usages", [])),
        )


def line_signature(product_id: str, chosen_modifiers: list[ChosenModifier]) -> str:
    """Merge key for order lines: product id plus sorted chosen option ids."""
    option_ids = sorted(modifier.option_id for modifier in chosen_modifiers)
    return f"{product_id}_{','.join(option_ids)}"


@dataclass
class OrderLineItem:
    """One configured product in an order, priced at the time it was added."""

    id: str
    product_id: str
    product_name: str
    quantity: int
    base_price: Decimal
    chosen_modifiers: list[ChosenModifier] = field(default_factory=list)
    final_price_per_item: Decimal = ZERO
    total_item_price: Decimal = ZERO
    signature: str = ""
    # Cost per unit captured when the sale is finalized.
    unit_cost: Decimal | None = None

    def reprice(self) -> None:
        self.final_price_per_item = self.base_price + sum(
            (modifier.additional_price for modifier in self.chosen_modifiers), ZERO
        )
        self.total_item_price = self.final_price_per_item * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "base_price": str(self.base_price),
            "chosen_modifiers": [modifier.to_dict() for modifier in self.chosen_modifiers],
            "final_price_per_item": str(self.final_price_per_item),
            "total_item_price": str(self.total_item_price),
            "signature": self.signature,
            "unit_cost": None if self.unit_cost is None else str(self.unit_cost),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OrderLineItem:
        chosen = [ChosenModifier.from_dict(m) for m in data.get("chosen_modifiers", [])]
        unit_cost = data.get("unit_cost")
        return cls(
            id=str(data["id"]),
            product_id=str(data["product_id"]),
            product_name=str(data.get("product_name", "")),
            quantity=int(data["quantity"]),
            base_price=Decimal(str(data.get("base_price", "0"))),
            chosen_modifiers=chosen,
            final_price_per_item=Decimal(str(data.get("final_price_per_item", "0"))),
            total_item_price=Decimal(str(data.get("total_item_price", "0"))),
            signature=str(data.get("signature") or line_signature(str(data["product_id"]), chosen)),
            unit_cost=None if unit_cost is None else Decimal(str(unit_cost)),
        )


class OrderStatus(str, Enum):
    EMPTY = "empty"
    BUILDING = "building"
    DISCOUNTED = "discounted"
    FINALIZED = "finalized"


@dataclass
class Order:
    """The single in-progress cart."""

    id: str
    items: list[OrderLineItem] = field(default_factory=list)
    subtotal: Decimal = ZERO
    discount: Decimal = ZERO
    total: Decimal = ZERO
    created_at: datetime = field(default_factory=utc_now)
    status: OrderStatus = OrderStatus.EMPTY

    def recalculate(self) -> None:
        self.subtotal = sum((item.total_item_price for item in self.items), ZERO)
        self.total = self.subtotal - self.discount
        if self.status is OrderStatus.FINALIZED:
            return
        if not self.items:
            self.status = OrderStatus.EMPTY
        elif self.discount > 0:
            self.status = OrderStatus.DISCOUNTED
        else:
            self.status = OrderStatus.BUILDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "items": [item.to_dict() for item in self.items],
            "subtotal": str(self.subtotal),
            "discount": str(self.discount),
            "total": str(self.total),
            "created_at": self.created_at.isoformat(),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Order:
        return cls(
            id=str(data["id"]),
            items=[OrderLineItem.from_dict(i) for i in data.get("items", [])],
            subtotal=Decimal(str(data.get("subtotal", "0"))),
            discount=Decimal(str(data.get("discount", "0"))),
            total=Decimal(str(data.get("total", "0"))),
            created_at=_parse_datetime(data["created_at"]) if data.get("created_at") else utc_now(),
            status=OrderStatus(data.get("status", OrderStatus.EMPTY.value)),
        )


@dataclass(frozen=True)
class SaleTransaction:
    """Immutable record of a finalized order."""

    id: str
    date: datetime
    items: tuple[OrderLineItem, ...]
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    payment_method: str
    order_id: str
    deduction_warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "items": [item.to_dict() for item in self.items],
            "subtotal": str(self.subtotal),
            "discount": str(self.discount),
            "total": str(self.total),
            "payment_method": self.payment_method,
            "order_id": self.order_id,
            "deduction_warnings": list(self.deduction_warnings),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SaleTransaction:
        return cls(
            id=str(data["id"]),
            date=_parse_datetime(data["date"]),
            items=tuple(OrderLineItem.from_dict(i) for i in data.get("items", [])),
            subtotal=Decimal(str(data.get("subtotal", "0"))),
            discount=Decimal(str(data.get("discount", "0"))),
            total=Decimal(str(data.get("total", "0"))),
            payment_method=str(data.get("payment_method", "")),
            order_id=str(data.get("order_id", "")),
            deduction_warnings=tuple(data.get("deduction_warnings", [])),
        )
