# services/reports.py
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

import pandas as pd
from sqlalchemy import func
from sqlalchemy.orm import Session

from models.order import REVENUE_STATUSES, Order, OrderStatus
from models.product import Product
from models.users import User, UserRole
from services.catalog import all_products, product_to_out
from services.orders import _with_details, order_to_out, placed_orders, vendor_orders
from utils.pricing import DASHBOARD_LOW_STOCK

# Default reporting window in days
DEFAULT_WINDOW_DAYS = 30
TOP_PRODUCTS_LIMIT = 5
RECENT_ORDERS_LIMIT = 20
DASHBOARD_RECENT_ORDERS = 5
DASHBOARD_TOP_PRODUCTS = 5
ADMIN_RECENT_ORDERS = 10


def resolve_range(start_date: Optional[date], end_date: Optional[date]) -> Tuple[date, date]:
    end = end_date or date.today()
    start = start_date or (date.today() - timedelta(days=DEFAULT_WINDOW_DAYS))
    return start, end


def orders_in_range(db: Session, start: date, end: date) -> List[Order]:
    """Placed orders whose order date falls within [start, end] (whole days)."""
    lower = datetime.combine(start, datetime.min.time())
    upper = datetime.combine(end + timedelta(days=1), datetime.min.time())
    return (
        _with_details(db.query(Order))
        .filter(
            Order.status != OrderStatus.CART.value,
            Order.order_date >= lower,
            Order.order_date < upper,
        )
        .order_by(Order.order_date.desc(), Order.id.desc())
        .all()
    )


def _vendor_lines(orders: List[Order], vendor_id: int) -> pd.DataFrame:
    rows = []
    for o in orders:
        for it in o.items:
            if not it.product or it.product.vendor_id != vendor_id:
                continue
            rows.append({
                "order_id": o.id,
                "month_start": date(o.order_date.year, o.order_date.month, 1),
                "product_id": it.product_id,
                "product_name": it.product.name,
                "quantity": it.quantity,
                "revenue": it.quantity * it.unit_price,
            })
    return pd.DataFrame(rows, columns=["order_id", "month_start", "product_id", "product_name", "quantity", "revenue"])


def vendor_sales(orders: List[Order], vendor_id: int) -> dict:
    """Aggregate the vendor's own order lines."""
    lines = _vendor_lines(orders, vendor_id)
    if lines.empty:
        return {
            "total_revenue": 0.0,
            "total_orders": 0,
            "total_products_sold": 0,
            "products_sold_by_month": {},
            "top_selling_products": [],
            "order_ids": [],
        }

    # Quantity sold per calendar month, oldest first
    by_month = lines.groupby("month_start")["quantity"].sum().sort_index()
    products_sold_by_month = {m.strftime("%b %Y"): int(q) for m, q in by_month.items()}

    top = (
        lines.groupby(["product_id", "product_name"], as_index=False)
        .agg(quantity_sold=("quantity", "sum"), total_revenue=("revenue", "sum"))
        .sort_values(["quantity_sold", "product_id"], ascending=[False, True])
        .head(TOP_PRODUCTS_LIMIT)
    )
    top_selling = [
        {
            "product_id": int(r.product_id),
            "product_name": r.product_name,
            "quantity_sold": int(r.quantity_sold),
            "total_revenue": round(float(r.total_revenue), 2),
        }
        for r in top.itertuples(index=False)
    ]

    return {
        "total_revenue": round(float(lines["revenue"].sum()), 2),
        "total_orders": int(lines["order_id"].nunique()),
        "total_products_sold": int(lines["quantity"].sum()),
        "products_sold_by_month": products_sold_by_month,
        "top_selling_products": top_selling,
        "order_ids": list(dict.fromkeys(int(i) for i in lines["order_id"])),
    }


def store_sales(orders: List[Order]) -> dict:
    """Revenue and order counts grouped by status."""
    if not orders:
        return {"total_revenue": 0.0, "total_orders": 0, "revenue_by_status": {}, "orders_by_status": {}}

    frame = pd.DataFrame([{"status": o.status, "total": o.total or 0.0} for o in orders])
    grouped = frame.groupby("status")["total"]
    return {
        "total_revenue": round(float(frame["total"].sum()), 2),
        "total_orders": len(frame),
        "revenue_by_status": {s: round(float(v), 2) for s, v in grouped.sum().items()},
        "orders_by_status": {s: int(v) for s, v in grouped.count().items()},
    }


# ---- DASHBOARDS ----

def vendor_dashboard(db: Session, vendor_id: int) -> dict:
    products = all_products(db, vendor_id=vendor_id)
    by_price = sorted(products, key=lambda p: p.price, reverse=True)
    return {
        "vendor_id": vendor_id,
        "total_products": len(products),
        "total_stock": sum(p.stock for p in products),
        "total_inventory_value": round(sum(p.price * p.stock for p in products), 2),
        "low_stock_products": sum(1 for p in products if p.stock < DASHBOARD_LOW_STOCK),
        "out_of_stock_products": sum(1 for p in products if p.stock == 0),
        "recent_orders": [order_to_out(o) for o in vendor_orders(db, vendor_id)[:DASHBOARD_RECENT_ORDERS]],
        "top_products": [product_to_out(p) for p in by_price[:DASHBOARD_TOP_PRODUCTS]],
    }


def admin_dashboard(db: Session) -> dict:
    orders = placed_orders(db)
    role_counts = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
    return {
        "total_products": db.query(func.count(Product.id)).scalar() or 0,
        "total_orders": len(orders),
        "total_revenue": round(sum(o.total or 0.0 for o in orders if o.status in REVENUE_STATUSES), 2),
        "total_users": sum(role_counts.values()),
        "total_customers": role_counts.get(UserRole.CUSTOMER.value, 0),
        "total_vendors": role_counts.get(UserRole.VENDOR.value, 0),
        "pending_orders": sum(1 for o in orders if o.status == OrderStatus.PENDING.value),
        "recent_orders": [order_to_out(o) for o in orders[:ADMIN_RECENT_ORDERS]],
    }
