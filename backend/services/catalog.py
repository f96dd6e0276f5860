# services/catalog.py
from typing import Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from models.category import Category
from models.order import Order, OrderItem, OrderStatus
from models.product import Product
from models.review import Review
from schemas.product import ProductOut
from utils.pricing import cart_totals, matches_stock_filter
from utils.uploads import remove_upload

# Number of related products shown on a product page
RELATED_LIMIT = 4
FEATURED_LIMIT = 4

# Catalog sort keys
SORTERS = {
    "price_asc": (lambda p: p.price, False),
    "price_desc": (lambda p: p.price, True),
    "name_asc": (lambda p: p.name.lower(), False),
    "name_desc": (lambda p: p.name.lower(), True),
}


def product_to_out(product: Product) -> ProductOut:
    return ProductOut.model_validate(product)


def get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def all_products(db: Session, vendor_id: Optional[int] = None) -> List[Product]:
    query = db.query(Product).options(selectinload(Product.categories))
    if vendor_id is not None:
        query = query.filter(Product.vendor_id == vendor_id)
    return query.order_by(Product.id.asc()).all()


def featured_products(db: Session) -> List[Product]:
    return (
        db.query(Product)
        .options(selectinload(Product.categories))
        .order_by(Product.id.desc())
        .limit(FEATURED_LIMIT)
        .all()
    )


def filter_catalog(
    products: Iterable[Product],
    *,
    metal: Optional[str] = None,
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    sort_by: Optional[str] = None,
) -> List[Product]:
    """Storefront filters applied over the full product list."""
    result = list(products)

    if category_id is not None:
        result = [p for p in result if any(c.id == category_id for c in p.categories)]
    if search:
        needle = search.lower()
        result = [p for p in result if needle in (p.name or "").lower()]
    if metal:
        result = [p for p in result if (p.metal or "").lower() == metal.lower()]
    if min_price is not None:
        result = [p for p in result if p.price >= min_price]
    if max_price is not None:
        result = [p for p in result if p.price <= max_price]

    # Unknown sort keys keep the insertion order
    if sort_by in SORTERS:
        key, reverse = SORTERS[sort_by]
        result = sorted(result, key=key, reverse=reverse)
    return result


def filter_inventory(
    products: Iterable[Product],
    *,
    search: Optional[str] = None,
    metal: Optional[str] = None,
    stock: Optional[str] = None,
) -> List[Product]:
    """Back-office filters (vendor and admin product lists)."""
    result = list(products)
    if search:
        needle = search.lower()
        result = [
            p for p in result
            if needle in (p.name or "").lower() or needle in (p.description or "").lower()
        ]
    if metal:
        result = [p for p in result if p.metal == metal]
    if stock:
        result = [p for p in result if matches_stock_filter(p.stock, stock)]
    return result


def related_products(db: Session, product: Product) -> List[Product]:
    category_ids = [c.id for c in product.categories]
    if not category_ids:
        return []
    return (
        db.query(Product)
        .filter(Product.id != product.id, Product.categories.any(Category.id.in_(category_ids)))
        .order_by(Product.id.asc())
        .limit(RELATED_LIMIT)
        .all()
    )


def rating_summary(db: Session, product_id: int) -> tuple:
    avg, count = (
        db.query(func.avg(Review.rating), func.count(Review.id))
        .filter(Review.product_id == product_id)
        .one()
    )
    return round(float(avg or 0), 1), int(count or 0)


def resolve_categories(db: Session, category_ids: Iterable[int]) -> List[Category]:
    ids = list(dict.fromkeys(category_ids))
    if not ids:
        return []
    categories = db.query(Category).filter(Category.id.in_(ids)).all()
    found = {c.id for c in categories}
    missing = [i for i in ids if i not in found]
    if missing:
        raise HTTPException(status_code=400, detail=f"Unknown category ids: {missing}")
    return categories


def delete_product(db: Session, product: Product) -> None:
    """
    Delete a product. Lines sitting in carts are dropped with it; a product
    that appears in placed orders is kept for order history (409).
    """
    placed = (
        db.query(OrderItem.id)
        .join(Order, Order.id == OrderItem.order_id)
        .filter(OrderItem.product_id == product.id, Order.status != OrderStatus.CART.value)
        .first()
    )
    if placed:
        raise HTTPException(status_code=409, detail="Product has been ordered and cannot be deleted")

    cart_lines = db.query(OrderItem).filter(OrderItem.product_id == product.id).all()
    touched = {line.order for line in cart_lines}
    for line in cart_lines:
        line.order.items.remove(line)
    for cart in touched:
        cart.total = cart_totals(cart.items)["subtotal"]

    image_url = product.image_url
    db.delete(product)
    db.commit()
    remove_upload(image_url)
