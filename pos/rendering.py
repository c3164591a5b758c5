"""Rendering helpers for orders and reports."""

from __future__ import annotations

from decimal import Decimal

from rich.table import Table
from rich.text import Text

from pos.config import CURRENCY_SYMBOL
from pos.models import Order, OrderLineItem, Product, SaleTransaction
from pos.reporting import InventoryStatusReport, ProductProfit, SalesSummaryReport


def format_money(amount: Decimal) -> str:
    """Format money with two places; negatives keep the sign in front."""
    quantized = amount.quantize(Decimal("0.01"))
    if quantized < 0:
        return f"-{CURRENCY_SYMBOL}{-quantized}"
    return f"{CURRENCY_SYMBOL}{quantized}"


def category_style(category: str) -> str:
    """Return a consistent badge style for category tags."""
    if category == "coffee":
        return "bold #ffffff on #6f4e37"
    if category == "tea":
        return "bold #0b1f0f on #5fbf72"
    if category == "food":
        return "bold #ffffff on #2f6db5"
    return "bold #ffffff on #555555"


def format_product_label(product: Product) -> Text:
    text = Text()
    if product.category:
        text.append(product.category[:1].upper(), style=category_style(product.category))
        text.append(" ")
    text.append(product.name)
    text.append(f"  {format_money(product.base_price)}", style="dim")
    return text


def format_line_label(line: OrderLineItem) -> Text:
    """Render `2 x Latte  $9.00` with modifier tags on a second row."""
    text = Text()
    text.append(f"{line.quantity} x {line.product_name}")
    text.append(f"  {format_money(line.total_item_price)}", style="bold")
    if line.chosen_modifiers:
        text.append("\n      ")
        for idx, modifier in enumerate(line.chosen_modifiers):
            if idx > 0:
                text.append(" ")
            text.append(f"[{modifier.option_name}]", style="white")
    return text


def format_order_totals(order: Order) -> Text:
    text = Text()
    text.append(f"Subtotal {format_money(order.subtotal)}")
    if order.discount:
        text.append(f"   Discount -{format_money(order.discount)}", style="yellow")
    total_style = "bold red" if order.total < 0 else "bold"
    text.append(f"   Total {format_money(order.total)}", style=total_style)
    return text


def sales_summary_table(report: SalesSummaryReport) -> Table:
    start = report.start_date.isoformat() if report.start_date else "all time"
    end = report.end_date.isoformat() if report.end_date else "all time"
    table = Table(title=f"Sales {start} .. {end}")
    table.add_column("Product")
    table.add_column("Qty", justify="right")
    table.add_column("Revenue", justify="right")
    table.add_column("COGS", justify="right")
    table.add_column("Profit", justify="right")
    for row in report.top_selling_items:
        table.add_row(
            row.product_name,
            str(row.quantity_sold),
            format_money(row.revenue),
            format_money(row.cogs),
            format_money(row.profit),
        )
    table.add_section()
    table.add_row(
        f"{report.total_sales_count} sales",
        "",
        format_money(report.total_revenue),
        format_money(report.total_cogs),
        format_money(report.total_profit),
        style="bold",
    )
    for method, amount in sorted(report.sales_by_payment_method.items()):
        table.add_row(f"  via {method}", "", format_money(amount), "", "", style="dim")
    if report.total_discounts:
        table.add_row("  discounts", "", f"-{format_money(report.total_discounts)}", "", "", style="dim")
    return table


def inventory_status_table(report: InventoryStatusReport) -> Table:
    table = Table(title=f"Inventory ({report.total_ingredient_count} ingredients)")
    table.add_column("Ingredient")
    table.add_column("Stock", justify="right")
    table.add_column("Reorder at", justify="right")
    table.add_column("Status")
    for line in report.out_of_stock:
        table.add_row(line.name, f"{line.quantity:g} {line.unit}", f"{line.reorder_level:g}", "OUT", style="bold red")
    for line in report.low_stock:
        table.add_row(line.name, f"{line.quantity:g} {line.unit}", f"{line.reorder_level:g}", "LOW", style="yellow")
    table.add_section()
    table.add_row(f"{report.sufficient_stock_count} sufficient", "", "", "OK", style="green")
    if report.unmakeable_products:
        table.add_row("Cannot make: " + ", ".join(report.unmakeable_products), "", "", "", style="red")
    return table


def profit_table(rows: list[ProductProfit]) -> Table:
    table = Table(title="Profit by product")
    table.add_column("Product")
    table.add_column("Qty", justify="right")
    table.add_column("Revenue", justify="right")
    table.add_column("COGS", justify="right")
    table.add_column("Profit", justify="right")
    table.add_column("Margin", justify="right")
    for row in rows:
        table.add_row(
            row.product_name,
            str(row.quantity_sold),
            format_money(row.total_revenue),
            format_money(row.total_cogs),
            format_money(row.total_profit),
            f"{row.profit_margin}%",
        )
    return table


def sales_history_table(sales: list[SaleTransaction], page: int, page_count: int) -> Table:
    table = Table(title=f"Sales history ({page}/{page_count})")
    table.add_column("Date")
    table.add_column("Sale")
    table.add_column("Items")
    table.add_column("Method")
    table.add_column("Total", justify="right")
    for sale in sales:
        items = ", ".join(f"{item.quantity}x {item.product_name}" for item in sale.items)
        table.add_row(
            sale.date.strftime("%Y-%m-%d %H:%M"),
            sale.id[:8],
            items,
            sale.payment_method,
            format_money(sale.total),
            style="yellow" if sale.deduction_warnings else None,
        )
    if not sales:
        table.add_row("(no sales yet)", "", "", "", "")
    return table
