"""Sale finalizer: turns the current order into a sale and consumes stock.

Finalizing is two-phase. Phase one walks every line of the order and sums
what each ingredient has to give up (base recipe from the live catalog plus
the usages copied onto the chosen modifiers). It then checks the totals
against the ledger. Phase two only runs when phase one passes: all
deductions are applied in one ledger call, the sale is recorded and a new
order is started.

References that can no longer be resolved (a deleted product or ingredient)
do not block the sale. They are reported as partial-deduction warnings on
the operator channel and kept on the sale record.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from pos.catalog import Catalog
from pos.config import ENFORCE_STOCK, HISTORY_PER_PAGE, SALES_HISTORY_STORAGE_KEY
from pos.errors import EmptyOrder, InsufficientStock, MissingPaymentMethod, Shortage
from pos.inventory import InventoryLedger
from pos.models import ZERO, Order, SaleTransaction, new_id, round_amount, utc_now
from pos.orders import OrderComposer
from pos.persistence import KeyValueStore, load_json, save_json

logger = logging.getLogger(__name__)
operator_log = logging.getLogger("pos.operator")


@dataclass
class DeductionPlan:
    """Everything phase one learned about an order."""

    required: dict[str, float] = field(default_factory=dict)
    shortages: list[Shortage] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    unit_costs: dict[str, Decimal] = field(default_factory=dict)


class SaleFinalizer:
    """Only writer of the sales history; history is kept newest first."""

    def __init__(
        self,
        composer: OrderComposer,
        catalog: Catalog,
        inventory: InventoryLedger,
        store: KeyValueStore | None = None,
        *,
        enforce_stock: bool = ENFORCE_STOCK,
        operator_channel: Callable[[str], None] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._composer = composer
        self._catalog = catalog
        self._inventory = inventory
        self._store = store
        self.enforce_stock = enforce_stock
        self._operator_channel = operator_channel
        self._clock = clock
        self._history: list[SaleTransaction] = []
        self.load()

    def load(self) -> None:
        payload = load_json(self._store, SALES_HISTORY_STORAGE_KEY)
        self._history = []
        for raw in payload or []:
            try:
                self._history.append(SaleTransaction.from_dict(raw))
            except (KeyError, TypeError, ValueError):
                logger.error("skip_corrupt_sale raw_id=%r", raw.get("id") if isinstance(raw, dict) else None)

    def save(self) -> bool:
        return save_json(self._store, SALES_HISTORY_STORAGE_KEY, [sale.to_dict() for sale in self._history])

    def plan_deductions(self, order: Order) -> DeductionPlan:
        plan = DeductionPlan()
        for line in order.items:
            product = self._catalog.get_product(line.product_id)
            usages = []
            if product is None:
                plan.warnings.append(
                    f"Product {line.product_name!r} ({line.product_id}) no longer exists; base recipe not deducted"
                )
                # Costed at zero, as reports do for deleted products.
                plan.unit_costs[line.id] = ZERO
            else:
                usages.extend(product.recipe)
                plan.unit_costs[line.id] = product.base_cost + sum(
                    (m.additional_cost for m in line.chosen_modifiers), ZERO
                )
            for modifier in line.chosen_modifiers:
                usages.extend(modifier.ingredient_usages)

            for usage in usages:
                amount = usage.quantity_used * line.quantity
                plan.required[usage.ingredient_id] = round_amount(plan.required.get(usage.ingredient_id, 0.0) + amount)

        for ingredient_id in list(plan.required):
            ingredient = self._inventory.get_ingredient(ingredient_id)
            if ingredient is None:
                plan.warnings.append(f"Ingredient {ingredient_id} no longer exists; deduction skipped")
                del plan.required[ingredient_id]
                continue
            needed = plan.required[ingredient_id]
            if ingredient.quantity < needed:
                plan.shortages.append(
                    Shortage(
                        ingredient_id=ingredient.id,
                        name=ingredient.name,
                        unit=ingredient.unit,
                        required=needed,
                        available=ingredient.quantity,
                    )
                )
        return plan

    def check_availability(self) -> list[Shortage]:
        """Shortages for the current order, without changing anything."""
        return self.plan_deductions(self._composer.get_current_order()).shortages

    def _report(self, warning: str) -> None:
        operator_log.warning(warning)
        if self._operator_channel is not None:
            self._operator_channel(warning)

    def finalize_sale(self, payment_method: str) -> SaleTransaction:
        order = self._composer.get_current_order()
        if not order.items:
            raise EmptyOrder("Cannot finalize an empty order")
        if not isinstance(payment_method, str) or not payment_method.strip():
            raise MissingPaymentMethod("A payment method is required")

        plan = self.plan_deductions(order)
        if plan.shortages and self.enforce_stock:
            raise InsufficientStock(plan.shortages)
        for shortage in plan.shortages:
            logger.warning(
                "oversell ingredient=%s required=%s available=%s",
                shortage.ingredient_id,
                shortage.required,
                shortage.available,
            )

        self._inventory.apply_deductions(plan.required)

        items = []
        for line in order.items:
            sold = copy.deepcopy(line)
            sold.unit_cost = plan.unit_costs[line.id]
            items.append(sold)
        sale = SaleTransaction(
            id=new_id(),
            date=self._clock(),
            items=tuple(items),
            subtotal=order.subtotal,
            discount=order.discount,
            total=order.total,
            payment_method=payment_method.strip(),
            order_id=order.id,
            deduction_warnings=tuple(plan.warnings),
        )
        self._history.insert(0, sale)
        self.save()
        self._composer.close_current_order()

        for warning in plan.warnings:
            self._report(f"sale {sale.id}: {warning}")
        logger.info("sale_finalized id=%s total=%s method=%s", sale.id, sale.total, sale.payment_method)
        return copy.deepcopy(sale)

    def get_sales_history(self, page: int | None = None, per_page: int = HISTORY_PER_PAGE) -> list[SaleTransaction]:
        """All sales newest first, or one 1-based page of them."""
        if page is None:
            return [copy.deepcopy(sale) for sale in self._history]
        if page < 1 or per_page < 1:
            return []
        start = (page - 1) * per_page
        return [copy.deepcopy(sale) for sale in self._history[start : start + per_page]]

    def page_count(self, per_page: int = HISTORY_PER_PAGE) -> int:
        if per_page < 1:
            return 1
        return max(1, -(-len(self._history) // per_page))

    def get_sale(self, sale_id: str) -> SaleTransaction | None:
        for sale in self._history:
            if sale.id == sale_id:
                return copy.deepcopy(sale)
        return None
