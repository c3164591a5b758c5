"""Wires the point-of-sale components over a single key-value store."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from pos.catalog import Catalog
from pos.config import ENFORCE_STOCK
from pos.inventory import InventoryLedger
from pos.models import utc_now
from pos.orders import OrderComposer
from pos.persistence import KeyValueStore, MemoryKeyValueStore
from pos.reporting import ReportingEngine
from pos.sales import SaleFinalizer


@dataclass
class PointOfSale:
    """One terminal session: every component shares the same store."""

    store: KeyValueStore
    inventory: InventoryLedger
    catalog: Catalog
    orders: OrderComposer
    sales: SaleFinalizer
    reports: ReportingEngine

    @classmethod
    def open(
        cls,
        store: KeyValueStore | None = None,
        *,
        enforce_stock: bool = ENFORCE_STOCK,
        operator_channel: Callable[[str], None] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> PointOfSale:
        if store is None:
            store = MemoryKeyValueStore()
        inventory = InventoryLedger(store)
        catalog = Catalog(store)
        orders = OrderComposer(catalog, store)
        sales = SaleFinalizer(
            orders,
            catalog,
            inventory,
            store,
            enforce_stock=enforce_stock,
            operator_channel=operator_channel,
            clock=clock,
        )
        reports = ReportingEngine(sales, catalog, inventory)
        return cls(store=store, inventory=inventory, catalog=catalog, orders=orders, sales=sales, reports=reports)

    @property
    def is_empty(self) -> bool:
        return not self.inventory.list_ingredients() and not self.catalog.list_products()
