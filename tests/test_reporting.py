"""Tests for sales, inventory and profit reports."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from pos.errors import InvalidInput
from pos.reporting import COST_BASIS_SNAPSHOT


def _sell(session, product_id, quantity=1, modifiers=(), method="cash", discount=None):
    session.orders.add_item_to_order(product_id, quantity, list(modifiers))
    if discount is not None:
        session.orders.apply_discount(discount)
    return session.sales.finalize_sale(method)


class TestSalesSummary:
    def test_totals_and_payment_methods(self, session, latte):
        _sell(session, latte.product.id, 2, method="cash")
        _sell(session, latte.product.id, 1, [latte.soy_ref], method="card", discount=Decimal("0.50"))

        report = session.reports.generate_sales_summary_report()

        assert report.total_sales_count == 2
        assert report.total_revenue == Decimal("12.00")
        assert report.total_discounts == Decimal("0.50")
        # 2 x 1.00 + 1 x (1.00 + 0.20)
        assert report.total_cogs == Decimal("3.20")
        assert report.total_profit == Decimal("8.80")
        assert report.sales_by_payment_method == {"cash": Decimal("8.00"), "card": Decimal("4.00")}

    def test_product_rows_merge_configurations(self, session, latte):
        _sell(session, latte.product.id, 2)
        _sell(session, latte.product.id, 1, [latte.soy_ref])
        [row] = session.reports.generate_sales_summary_report().top_selling_items
        assert row.product_name == "Latte"
        assert row.quantity_sold == 3
        assert row.revenue == Decimal("12.50")

    def test_date_range_is_inclusive_of_whole_days(self, session, latte, clock):
        clock.now = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)
        _sell(session, latte.product.id)
        clock.now = datetime(2026, 3, 2, 23, 59, 59, tzinfo=timezone.utc)
        _sell(session, latte.product.id)
        clock.now = datetime(2026, 3, 3, 0, 0, tzinfo=timezone.utc)
        _sell(session, latte.product.id)

        report = session.reports.generate_sales_summary_report("2026-03-02", date(2026, 3, 2))
        assert report.total_sales_count == 1
        assert session.reports.generate_sales_summary_report(start_date="2026-03-02").total_sales_count == 2
        assert session.reports.generate_sales_summary_report(end_date="2026-03-02").total_sales_count == 2

    def test_bad_date(self, session):
        with pytest.raises(InvalidInput):
            session.reports.generate_sales_summary_report("yesterday")

    def test_bad_cost_basis(self, session):
        with pytest.raises(InvalidInput):
            session.reports.generate_sales_summary_report(cost_basis="average")

    def test_empty_history(self, session):
        report = session.reports.generate_sales_summary_report()
        assert report.total_sales_count == 0
        assert report.total_revenue == Decimal("0")
        assert report.top_selling_items == []


class TestCostBasis:
    def test_current_cost_follows_catalog(self, session, latte):
        _sell(session, latte.product.id)
        session.catalog.update_product(latte.product.id, {"base_cost": "2.00"})
        assert session.reports.generate_sales_summary_report().total_cogs == Decimal("2.00")

    def test_snapshot_cost_uses_sale_time(self, session, latte):
        _sell(session, latte.product.id)
        session.catalog.update_product(latte.product.id, {"base_cost": "2.00"})
        report = session.reports.generate_sales_summary_report(cost_basis=COST_BASIS_SNAPSHOT)
        assert report.total_cogs == Decimal("1.00")

    def test_deleted_product_costs_nothing(self, session, latte):
        _sell(session, latte.product.id, 1, [latte.soy_ref])
        session.catalog.remove_product(latte.product.id)
        [row] = session.reports.generate_profit_by_product_report()
        assert row.product_name == "Latte"
        assert row.total_cogs == Decimal("0")
        assert row.total_profit == Decimal("4.50")
        assert session.reports.generate_sales_summary_report().total_cogs == Decimal("0")

    def test_deleted_product_keeps_snapshot_cost(self, session, latte):
        _sell(session, latte.product.id, 1, [latte.soy_ref])
        session.catalog.remove_product(latte.product.id)
        report = session.reports.generate_sales_summary_report(cost_basis=COST_BASIS_SNAPSHOT)
        assert report.total_cogs == Decimal("1.20")

    def test_product_deleted_before_checkout_snapshots_zero(self, session, latte):
        session.orders.add_item_to_order(latte.product.id, 1, [latte.soy_ref])
        session.catalog.remove_product(latte.product.id)
        session.sales.finalize_sale("cash")
        report = session.reports.generate_sales_summary_report(cost_basis=COST_BASIS_SNAPSHOT)
        assert report.total_cogs == Decimal("0")


class TestInventoryStatus:
    def test_buckets(self, session, latte):
        session.inventory.add_ingredient({"name": "Sugar", "unit": "g", "quantity": 0, "reorder_level": 10})
        session.inventory.adjust_stock(latte.soy.id, -450)

        report = session.reports.generate_inventory_status_report()

        assert [line.name for line in report.out_of_stock] == ["Sugar"]
        assert [line.name for line in report.low_stock] == ["Soy Milk"]
        assert report.sufficient_stock_count == 1
        assert report.total_ingredient_count == 3
        assert report.unmakeable_products == []

    def test_unmakeable_products(self, session, latte):
        session.inventory.adjust_stock(latte.bean.id, -990)
        assert session.reports.generate_inventory_status_report().unmakeable_products == ["Latte"]


class TestProfitByProduct:
    def test_margin_and_ordering(self, session, latte):
        muffin = session.catalog.add_product({"name": "Muffin", "base_price": "3.00", "base_cost": "2.00"})
        _sell(session, latte.product.id, 2)
        _sell(session, muffin.id, 3)

        rows = session.reports.generate_profit_by_product_report()

        assert [row.product_name for row in rows] == ["Latte", "Muffin"]
        latte_row, muffin_row = rows
        assert latte_row.total_profit == Decimal("6.00")
        assert latte_row.profit_margin == Decimal("75.00")
        assert muffin_row.total_revenue == Decimal("9.00")
        assert muffin_row.profit_margin == Decimal("33.33")

    def test_zero_revenue_margin(self, session, latte):
        free = session.catalog.add_product({"name": "Water Cup", "base_price": 0})
        _sell(session, free.id)
        [row] = session.reports.generate_profit_by_product_report()
        assert row.profit_margin == Decimal("0")
