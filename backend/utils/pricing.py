# utils/pricing.py
from typing import Iterable, Optional

from config import settings

# Flat shipping fee added at checkout
SHIPPING_COST = 0.0

# Stock thresholds
LOW_STOCK_LIMIT = 5
DASHBOARD_LOW_STOCK = 5

STOCK_FILTERS = ("instock", "lowstock", "outofstock")


def line_total(quantity: int, unit_price: float) -> float:
    return round(quantity * unit_price, 2)


def cart_totals(items: Iterable) -> dict:
    """
    Totals for a list of order lines (objects with quantity and unit_price).
    Tax is charged on the subtotal and rounded to cents.
    """
    items = list(items)
    subtotal = round(sum(it.quantity * it.unit_price for it in items), 2)
    tax = round(subtotal * settings.TAX_RATE, 2)
    shipping = SHIPPING_COST
    return {
        "subtotal": subtotal,
        "tax": tax,
        "shipping": shipping,
        "total": round(subtotal + tax + shipping, 2),
        "item_count": sum(it.quantity for it in items),
    }


def discounted_price(original_price: float, discount: float) -> float:
    if discount < 0 or discount > 100:
        raise ValueError("Discount must be between 0% and 100%.")
    return round(original_price * (100 - discount) / 100, 2)


def matches_stock_filter(stock: int, stock_filter: Optional[str]) -> bool:
    if stock_filter == "instock":
        return stock > LOW_STOCK_LIMIT
    if stock_filter == "lowstock":
        return 0 < stock <= LOW_STOCK_LIMIT
    if stock_filter == "outofstock":
        return stock == 0
    # Unknown or empty filter keeps everything
    return True
