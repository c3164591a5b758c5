"""Reports over the sales history and current catalog / inventory state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from pos.catalog import Catalog
from pos.errors import InvalidInput
from pos.inventory import InventoryLedger
from pos.models import ZERO, Ingredient, OrderLineItem, SaleTransaction
from pos.sales import SaleFinalizer

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str, None]

COST_BASIS_CURRENT = "current"
COST_BASIS_SNAPSHOT = "snapshot"
_COST_BASES = (COST_BASIS_CURRENT, COST_BASIS_SNAPSHOT)


@dataclass(frozen=True)
class ProductSales:
    product_id: str
    product_name: str
    quantity_sold: int
    revenue: Decimal
    cogs: Decimal
    profit: Decimal


@dataclass(frozen=True)
class SalesSummaryReport:
    start_date: date | None
    end_date: date | None
    total_sales_count: int
    total_revenue: Decimal
    total_discounts: Decimal
    total_cogs: Decimal
    total_profit: Decimal
    top_selling_items: list[ProductSales] = field(default_factory=list)
    sales_by_payment_method: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class StockLine:
    ingredient_id: str
    name: str
    unit: str
    quantity: float
    reorder_level: float

    @classmethod
    def of(cls, ingredient: Ingredient) -> StockLine:
        return cls(ingredient.id, ingredient.name, ingredient.unit, ingredient.quantity, ingredient.reorder_level)


@dataclass(frozen=True)
class InventoryStatusReport:
    low_stock: list[StockLine]
    out_of_stock: list[StockLine]
    sufficient_stock_count: int
    total_ingredient_count: int
    unmakeable_products: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ProductProfit:
    product_id: str
    product_name: str
    quantity_sold: int
    total_revenue: Decimal
    total_cogs: Decimal
    total_profit: Decimal
    profit_margin: Decimal


def _to_date(value: DateLike, name: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return _to_date(datetime.fromisoformat(value.strip()), name)
        except ValueError:
            raise InvalidInput(f"{name} must be an ISO date, got {value!r}") from None
    raise InvalidInput(f"{name} must be a date")


@dataclass
class _Tally:
    product_name: str
    quantity_sold: int = 0
    revenue: Decimal = ZERO
    cogs: Decimal = ZERO


class ReportingEngine:
    """Read-only: aggregates history against the live catalog and ledger."""

    def __init__(self, finalizer: SaleFinalizer, catalog: Catalog, inventory: InventoryLedger) -> None:
        self._finalizer = finalizer
        self._catalog = catalog
        self._inventory = inventory

    def _filtered_sales(self, start: date | None, end: date | None) -> list[SaleTransaction]:
        lower = datetime.combine(start, time.min, tzinfo=timezone.utc) if start else None
        # End dates cover their whole day.
        upper = datetime.combine(end, time.max, tzinfo=timezone.utc) if end else None
        sales = []
        for sale in self._finalizer.get_sales_history():
            if lower is not None and sale.date < lower:
                continue
            if upper is not None and sale.date > upper:
                continue
            sales.append(sale)
        return sales

    def unit_cost(self, item: OrderLineItem, cost_basis: str = COST_BASIS_CURRENT) -> Decimal:
        """Cost of one unit of a sold line."""
        if cost_basis == COST_BASIS_SNAPSHOT and item.unit_cost is not None:
            return item.unit_cost
        product = self._catalog.get_product(item.product_id)
        if product is None:
            # A deleted product costs nothing, modifiers included.
            logger.warning("cost_unknown_product product_id=%s name=%r", item.product_id, item.product_name)
            return ZERO
        return product.base_cost + sum((modifier.additional_cost for modifier in item.chosen_modifiers), ZERO)

    def _tally(self, sales: list[SaleTransaction], cost_basis: str) -> tuple[dict[str, _Tally], Decimal]:
        if cost_basis not in _COST_BASES:
            raise InvalidInput(f"cost_basis must be one of {', '.join(_COST_BASES)}")
        tallies: dict[str, _Tally] = {}
        total_cogs = ZERO
        for sale in sales:
            for item in sale.items:
                tally = tallies.get(item.product_id)
                if tally is None:
                    product = self._catalog.get_product(item.product_id)
                    tally = _Tally(product.name if product is not None else item.product_name)
                    tallies[item.product_id] = tally
                cogs = self.unit_cost(item, cost_basis) * item.quantity
                tally.quantity_sold += item.quantity
                tally.revenue += item.total_item_price
                tally.cogs += cogs
                total_cogs += cogs
        return tallies, total_cogs

    def generate_sales_summary_report(
        self,
        start_date: DateLike = None,
        end_date: DateLike = None,
        cost_basis: str = COST_BASIS_CURRENT,
    ) -> SalesSummaryReport:
        start = _to_date(start_date, "start_date")
        end = _to_date(end_date, "end_date")
        sales = self._filtered_sales(start, end)
        tallies, total_cogs = self._tally(sales, cost_basis)

        total_revenue = sum((sale.total for sale in sales), ZERO)
        by_method: dict[str, Decimal] = {}
        for sale in sales:
            by_method[sale.payment_method] = by_method.get(sale.payment_method, ZERO) + sale.total

        top_items = [
            ProductSales(
                product_id=product_id,
                product_name=tally.product_name,
                quantity_sold=tally.quantity_sold,
                revenue=tally.revenue,
                cogs=tally.cogs,
                profit=tally.revenue - tally.cogs,
            )
            for product_id, tally in tallies.items()
        ]
        top_items.sort(key=lambda row: row.revenue, reverse=True)

        return SalesSummaryReport(
            start_date=start,
            end_date=end,
            total_sales_count=len(sales),
            total_revenue=total_revenue,
            total_discounts=sum((sale.discount for sale in sales), ZERO),
            total_cogs=total_cogs,
            total_profit=total_revenue - total_cogs,
            top_selling_items=top_items,
            sales_by_payment_method=by_method,
        )

    def generate_inventory_status_report(self) -> InventoryStatusReport:
        ingredients = self._inventory.list_ingredients()
        out_of_stock = [StockLine.of(i) for i in ingredients if i.quantity == 0]
        low_stock = [StockLine.of(i) for i in ingredients if i.quantity > 0 and i.is_low_stock]
        stock = {ingredient.id: ingredient.quantity for ingredient in ingredients}
        unmakeable = [
            product.name
            for product in self._catalog.list_products()
            if any(stock.get(usage.ingredient_id, 0.0) < usage.quantity_used for usage in product.recipe)
        ]
        return InventoryStatusReport(
            low_stock=low_stock,
            out_of_stock=out_of_stock,
            sufficient_stock_count=len(ingredients) - len(low_stock) - len(out_of_stock),
            total_ingredient_count=len(ingredients),
            unmakeable_products=unmakeable,
        )

    def generate_profit_by_product_report(
        self,
        start_date: DateLike = None,
        end_date: DateLike = None,
        cost_basis: str = COST_BASIS_CURRENT,
    ) -> list[ProductProfit]:
        sales = self._filtered_sales(_to_date(start_date, "start_date"), _to_date(end_date, "end_date"))
        tallies, _ = self._tally(sales, cost_basis)
        rows = []
        for product_id, tally in tallies.items():
            profit = tally.revenue - tally.cogs
            margin = ZERO
            if tally.revenue > 0:
                margin = (profit / tally.revenue * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
            rows.append(
                ProductProfit(
                    product_id=product_id,
                    product_name=tally.product_name,
                    quantity_sold=tally.quantity_sold,
                    total_revenue=tally.revenue,
                    total_cogs=tally.cogs,
                    total_profit=profit,
                    profit_margin=margin,
                )
            )
        rows.sort(key=lambda row: row.total_profit, reverse=True)
        return rows
