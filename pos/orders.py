"""Order composer: the single in-progress order and its line merging."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from pos.catalog import Catalog
from pos.config import CURRENT_ORDER_STORAGE_KEY
from pos.errors import InvalidDiscount, InvalidQuantity, NotFound
from pos.models import (
    ChosenModifier,
    Order,
    OrderLineItem,
    OrderStatus,
    line_signature,
    new_id,
    parse_money,
)
from pos.persistence import KeyValueStore, load_json, save_json

logger = logging.getLogger(__name__)


def _modifier_ref(raw: Any) -> tuple[str, str] | None:
    """Read a {modifier_group_id, option_id} reference; malformed ones are None."""
    if isinstance(raw, Mapping):
        group_id = raw.get("modifier_group_id")
        option_id = raw.get("option_id")
    elif isinstance(raw, (tuple, list)) and len(raw) == 2:
        group_id, option_id = raw
    else:
        return None
    if not isinstance(group_id, str) or not isinstance(option_id, str):
        return None
    return group_id, option_id


def _check_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity(f"quantity must be a whole number, got {quantity!r}")
    return quantity


class OrderComposer:
    """Builds the current order against the catalog; never mutates the catalog."""

    def __init__(self, catalog: Catalog, store: KeyValueStore | None = None) -> None:
        self._catalog = catalog
        self._store = store
        self._order = Order(id=new_id())
        self._by_signature: dict[str, OrderLineItem] = {}
        self.load()

    def load(self) -> None:
        payload = load_json(self._store, CURRENT_ORDER_STORAGE_KEY)
        if payload is None:
            self.start_new_order()
            return
        try:
            order = Order.from_dict(payload)
        except (KeyError, TypeError, ValueError):
            logger.error("skip_corrupt_order")
            self.start_new_order()
            return
        if order.status is OrderStatus.FINALIZED:
            self.start_new_order()
            return
        self._order = order
        self._by_signature = {item.signature: item for item in order.items}

    def save(self) -> bool:
        return save_json(self._store, CURRENT_ORDER_STORAGE_KEY, self._order.to_dict())

    def _commit(self) -> Order:
        self._order.recalculate()
        self.save()
        return self.get_current_order()

    def start_new_order(self) -> Order:
        self._order = Order(id=new_id())
        self._by_signature = {}
        self.save()
        return self.get_current_order()

    def add_item_to_order(
        self,
        product_id: str,
        quantity: int = 1,
        chosen_modifiers: Iterable[Any] = (),
    ) -> Order:
        product = self._catalog.get_product(product_id)
        if product is None:
            raise NotFound(f"Product {product_id!r} not found")
        quantity = _check_quantity(quantity)
        if quantity <= 0:
            raise InvalidQuantity("quantity must be positive")

        resolved: list[ChosenModifier] = []
        seen: set[tuple[str, str]] = set()
        for raw in chosen_modifiers or ():
            ref = _modifier_ref(raw)
            if ref is None or ref in seen:
                continue
            group = product.find_group(ref[0])
            option = group.find_option(ref[1]) if group is not None else None
            if option is None:
                logger.debug("modifier_ignored product=%s ref=%r", product_id, ref)
                continue
            seen.add(ref)
            resolved.append(ChosenModifier.resolve(group, option))

        signature = line_signature(product.id, resolved)
        line = self._by_signature.get(signature)
        if line is not None:
            line.quantity += quantity
            line.reprice()
        else:
            line = OrderLineItem(
                id=new_id(),
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                base_price=product.base_price,
                chosen_modifiers=resolved,
                signature=signature,
            )
            line.reprice()
            self._order.items.append(line)
            self._by_signature[signature] = line
        return self._commit()

    def _find_line(self, line_id: str) -> OrderLineItem | None:
        for item in self._order.items:
            if item.id == line_id:
                return item
        return None

    def _drop_line(self, line: OrderLineItem) -> None:
        self._order.items.remove(line)
        self._by_signature.pop(line.signature, None)

    def update_item_quantity_in_order(self, line_id: str, new_quantity: int) -> Order:
        """Replace a line's quantity; zero or less removes the line."""
        line = self._find_line(line_id)
        if line is None:
            raise NotFound(f"Order line {line_id!r} not found")
        new_quantity = _check_quantity(new_quantity)
        if new_quantity <= 0:
            self._drop_line(line)
        else:
            line.quantity = new_quantity
            line.reprice()
        return self._commit()

    def remove_item_from_order(self, line_id: str) -> Order:
        line = self._find_line(line_id)
        if line is not None:
            self._drop_line(line)
        return self._commit()

    def apply_discount(self, amount: Any) -> Order:
        """Replace the order discount; the total may go below zero."""
        if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
            raise InvalidDiscount(f"discount must be a number, got {amount!r}")
        self._order.discount = parse_money(amount, "discount", InvalidDiscount)
        return self._commit()

    def get_current_order(self) -> Order:
        return copy.deepcopy(self._order)

    def close_current_order(self) -> Order:
        """Mark the current order finalized, return it and start a fresh one."""
        self._order.status = OrderStatus.FINALIZED
        closed = copy.deepcopy(self._order)
        self.start_new_order()
        return closed
