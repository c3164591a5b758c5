"""Shared fixtures: an in-memory session and a small latte menu."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from pos.persistence import MemoryKeyValueStore
from pos.session import PointOfSale

NOW = datetime(2026, 3, 14, 9, 30, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock; tests move it forward explicitly."""

    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def operator_messages():
    return []


@pytest.fixture
def session(store, clock, operator_messages):
    return PointOfSale.open(store, enforce_stock=True, operator_channel=operator_messages.append, clock=clock)


@pytest.fixture
def latte(session):
    """Beans 1000g, soy milk 500ml and a $4.00 Latte with a soy option (+$0.50, 200ml)."""
    bean = session.inventory.add_ingredient({"name": "Coffee Beans", "unit": "g", "quantity": 1000, "reorder_level": 100})
    soy = session.inventory.add_ingredient({"name": "Soy Milk", "unit": "ml", "quantity": 500, "reorder_level": 100})
    product = session.catalog.add_product(
        {
            "name": "Latte",
            "category": "coffee",
            "sku": "COF-LAT",
            "base_price": "4.00",
            "base_cost": "1.00",
            "recipe": [{"ingredient_id": bean.id, "quantity_used": 18}],
            "modifier_groups": [
                {
                    "id": "milk",
                    "name": "Milk",
                    "options": [
                        {
                            "id": "soy",
                            "name": "Soy",
                            "additional_price": "0.50",
                            "additional_cost": "0.20",
                            "ingredient_usages": [{"ingredient_id": soy.id, "quantity_used": 200}],
                        }
                    ],
                }
            ],
        }
    )
    return SimpleNamespace(bean=bean, soy=soy, product=product, soy_ref={"modifier_group_id": "milk", "option_id": "soy"})
