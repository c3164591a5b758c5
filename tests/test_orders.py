"""Tests for composing the current order."""

import json
from decimal import Decimal

import pytest

from pos.config import CURRENT_ORDER_STORAGE_KEY
from pos.errors import InvalidDiscount, InvalidQuantity, NotFound
from pos.models import OrderStatus
from pos.orders import OrderComposer


class TestAddItem:
    def test_plain_item(self, session, latte):
        order = session.orders.add_item_to_order(latte.product.id, 2)
        line = order.items[0]
        assert line.product_name == "Latte"
        assert line.final_price_per_item == Decimal("4.00")
        assert line.total_item_price == Decimal("8.00")
        assert order.subtotal == Decimal("8.00")
        assert order.status is OrderStatus.BUILDING

    def test_modifier_adds_price(self, session, latte):
        order = session.orders.add_item_to_order(latte.product.id, 1, [latte.soy_ref])
        line = order.items[0]
        assert line.final_price_per_item == Decimal("4.50")
        assert line.chosen_modifiers[0].option_name == "Soy"
        assert line.chosen_modifiers[0].ingredient_usages[0].ingredient_id == latte.soy.id

    def test_same_configuration_merges(self, session, latte):
        session.orders.add_item_to_order(latte.product.id, 1, [latte.soy_ref])
        order = session.orders.add_item_to_order(latte.product.id, 2, [("milk", "soy")])
        assert len(order.items) == 1
        assert order.items[0].quantity == 3
        assert order.items[0].total_item_price == Decimal("13.50")

    def test_selection_order_does_not_matter(self, session, latte):
        product = session.catalog.add_product(
            {
                "name": "Mocha",
                "base_price": "5.00",
                "modifier_groups": [
                    {"id": "milk", "name": "Milk", "options": [{"id": "oat", "name": "Oat"}]},
                    {"id": "extras", "name": "Extras", "options": [{"id": "shot", "name": "Shot"}]},
                ],
            }
        )
        session.orders.add_item_to_order(product.id, 1, [("milk", "oat"), ("extras", "shot")])
        order = session.orders.add_item_to_order(product.id, 2, [("extras", "shot"), ("milk", "oat")])
        assert len(order.items) == 1
        assert order.items[0].quantity == 3

    def test_different_configuration_gets_new_line(self, session, latte):
        session.orders.add_item_to_order(latte.product.id)
        order = session.orders.add_item_to_order(latte.product.id, 1, [latte.soy_ref])
        assert len(order.items) == 2
        assert order.subtotal == Decimal("8.50")

    def test_unresolvable_modifiers_are_ignored(self, session, latte):
        refs = [{"modifier_group_id": "milk", "option_id": "oat"}, {"foo": "bar"}, "soy", latte.soy_ref, latte.soy_ref]
        order = session.orders.add_item_to_order(latte.product.id, 1, refs)
        assert [m.option_id for m in order.items[0].chosen_modifiers] == ["soy"]

    def test_unknown_product(self, session):
        with pytest.raises(NotFound):
            session.orders.add_item_to_order("ghost")

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True])
    def test_bad_quantity(self, session, latte, quantity):
        with pytest.raises(InvalidQuantity):
            session.orders.add_item_to_order(latte.product.id, quantity)
        assert session.orders.get_current_order().items == []

    def test_line_keeps_price_after_catalog_change(self, session, latte):
        session.orders.add_item_to_order(latte.product.id)
        session.catalog.update_product(latte.product.id, {"base_price": "5.00"})
        order = session.orders.add_item_to_order(latte.product.id)
        assert order.items[0].quantity == 2
        assert order.items[0].final_price_per_item == Decimal("4.00")


class TestEditOrder:
    def test_update_quantity(self, session, latte):
        line = session.orders.add_item_to_order(latte.product.id).items[0]
        order = session.orders.update_item_quantity_in_order(line.id, 5)
        assert order.items[0].total_item_price == Decimal("20.00")

    def test_zero_quantity_removes_line(self, session, latte):
        line = session.orders.add_item_to_order(latte.product.id).items[0]
        order = session.orders.update_item_quantity_in_order(line.id, 0)
        assert order.items == []
        assert order.status is OrderStatus.EMPTY

    def test_removed_line_does_not_merge_again(self, session, latte):
        line = session.orders.add_item_to_order(latte.product.id).items[0]
        session.orders.remove_item_from_order(line.id)
        order = session.orders.add_item_to_order(latte.product.id)
        assert order.items[0].quantity == 1
        assert order.items[0].id != line.id

    def test_update_unknown_line(self, session):
        with pytest.raises(NotFound):
            session.orders.update_item_quantity_in_order("ghost", 1)

    def test_remove_unknown_line_is_a_no_op(self, session, latte):
        session.orders.add_item_to_order(latte.product.id)
        assert len(session.orders.remove_item_from_order("ghost").items) == 1


class TestDiscount:
    def test_discount_reduces_total(self, session, latte):
        session.orders.add_item_to_order(latte.product.id)
        order = session.orders.apply_discount(Decimal("1.25"))
        assert order.total == Decimal("2.75")
        assert order.status is OrderStatus.DISCOUNTED

    def test_discount_replaces_previous(self, session, latte):
        session.orders.add_item_to_order(latte.product.id)
        session.orders.apply_discount(1)
        assert session.orders.apply_discount(0.5).discount == Decimal("0.5")

    def test_total_may_go_negative(self, session, latte):
        session.orders.add_item_to_order(latte.product.id)
        assert session.orders.apply_discount(10).total == Decimal("-6.00")

    @pytest.mark.parametrize("amount", [-1, "1", None, True])
    def test_bad_discount(self, session, amount):
        with pytest.raises(InvalidDiscount):
            session.orders.apply_discount(amount)


class TestPersistence:
    def test_current_order_is_restored(self, session, latte, store):
        session.orders.add_item_to_order(latte.product.id, 1, [latte.soy_ref])
        restored = OrderComposer(session.catalog, store)
        order = restored.get_current_order()
        assert order.items[0].final_price_per_item == Decimal("4.50")
        # Restored lines still merge.
        assert len(restored.add_item_to_order(latte.product.id, 1, [latte.soy_ref]).items) == 1

    def test_finalized_order_is_not_restored(self, session, latte, store):
        session.orders.add_item_to_order(latte.product.id)
        payload = json.loads(store.data[CURRENT_ORDER_STORAGE_KEY])
        payload["status"] = "finalized"
        store.data[CURRENT_ORDER_STORAGE_KEY] = json.dumps(payload)
        assert OrderComposer(session.catalog, store).get_current_order().items == []

    def test_returned_order_is_a_copy(self, session, latte):
        order = session.orders.add_item_to_order(latte.product.id)
        order.items.clear()
        assert len(session.orders.get_current_order().items) == 1

    def test_close_starts_a_new_order(self, session, latte):
        first = session.orders.add_item_to_order(latte.product.id)
        closed = session.orders.close_current_order()
        assert closed.id == first.id
        assert closed.status is OrderStatus.FINALIZED
        current = session.orders.get_current_order()
        assert current.id != first.id
        assert current.items == []
