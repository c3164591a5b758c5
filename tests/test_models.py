"""Tests for amount parsing and model serialization."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from pos.errors import InvalidDiscount, InvalidInput, InvalidUsage
from pos.models import (
    ChosenModifier,
    IngredientUsage,
    ModifierGroup,
    ModifierOption,
    Order,
    OrderLineItem,
    OrderStatus,
    SaleTransaction,
    line_signature,
    parse_amount,
    parse_money,
)


class TestParsing:
    def test_parse_amount_accepts_numeric_text(self):
        assert parse_amount(" 12.5 ", "quantity") == 12.5

    @pytest.mark.parametrize("value", [True, None, "abc", float("nan"), float("inf"), [1]])
    def test_parse_amount_rejects_non_numbers(self, value):
        with pytest.raises(InvalidInput, match="number"):
            parse_amount(value, "quantity")

    def test_parse_amount_rejects_negative(self):
        with pytest.raises(InvalidInput, match="negative"):
            parse_amount(-1, "quantity")

    def test_parse_money_goes_through_text_for_floats(self):
        assert parse_money(0.1, "price") == Decimal("0.1")

    def test_parse_money_uses_given_error_kind(self):
        with pytest.raises(InvalidDiscount):
            parse_money("-2", "discount", InvalidDiscount)


class TestIngredientUsage:
    def test_normalizes_to_float(self):
        usage = IngredientUsage("bean", 18)
        assert usage.quantity_used == 18.0
        assert isinstance(usage.quantity_used, float)

    def test_rejects_empty_ingredient(self):
        with pytest.raises(InvalidUsage):
            IngredientUsage(" ", 1)

    def test_rejects_negative_quantity(self):
        with pytest.raises(InvalidUsage):
            IngredientUsage("bean", -3)


class TestOrderModels:
    def _soy(self):
        option = ModifierOption("soy", "Soy", Decimal("0.20"), Decimal("0.50"), [IngredientUsage("soy-id", 200)])
        return ChosenModifier.resolve(ModifierGroup("milk", "Milk", [option]), option)

    def test_line_signature_sorts_option_ids(self):
        a = ChosenModifier("g1", "G1", "b", "B", Decimal("0"), Decimal("0"))
        b = ChosenModifier("g2", "G2", "a", "A", Decimal("0"), Decimal("0"))
        assert line_signature("p1", [a, b]) == "p1_a,b"
        assert line_signature("p1", []) == "p1_"

    def test_reprice_adds_modifier_prices(self):
        line = OrderLineItem("l1", "p1", "Latte", 2, Decimal("4.00"), [self._soy()])
        line.reprice()
        assert line.final_price_per_item == Decimal("4.50")
        assert line.total_item_price == Decimal("9.00")

    def test_order_status_follows_content(self):
        order = Order(id="o1")
        order.recalculate()
        assert order.status is OrderStatus.EMPTY

        line = OrderLineItem("l1", "p1", "Latte", 1, Decimal("4.00"))
        line.reprice()
        order.items.append(line)
        order.recalculate()
        assert order.status is OrderStatus.BUILDING

        order.discount = Decimal("5")
        order.recalculate()
        assert order.status is OrderStatus.DISCOUNTED
        assert order.total == Decimal("-1.00")

    def test_sale_round_trips_through_dict(self):
        line = OrderLineItem(
            "l1", "p1", "Latte", 1, Decimal("4.00"), [self._soy()], signature="p1_soy", unit_cost=Decimal("1.20")
        )
        line.reprice()
        sale = SaleTransaction(
            id="s1",
            date=datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc),
            items=(line,),
            subtotal=Decimal("4.50"),
            discount=Decimal("0"),
            total=Decimal("4.50"),
            payment_method="cash",
            order_id="o1",
            deduction_warnings=("gone",),
        )
        restored = SaleTransaction.from_dict(sale.to_dict())
        assert restored == sale

    def test_naive_dates_are_read_as_utc(self):
        payload = {"id": "s1", "date": "2026-03-14T09:30:00", "items": []}
        assert SaleTransaction.from_dict(payload).date.tzinfo == timezone.utc
