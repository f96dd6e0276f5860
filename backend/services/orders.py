# services/orders.py
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from models.address import ShippingAddress
from models.order import ALLOWED_STATUSES, Order, OrderItem, OrderStatus
from models.product import Product
from models.users import User
from schemas.address import AddressOut
from schemas.order import OrderItemOut, OrderResponse
from schemas.payment import PaymentOut
from services.payments import process_payment
from utils.pricing import cart_totals, line_total

logger = logging.getLogger(__name__)

# Orders a customer may still cancel
CANCELLABLE = {OrderStatus.PENDING.value, OrderStatus.CONFIRMED.value}


# Map Order model to OrderResponse schema
def order_to_out(order: Order) -> OrderResponse:
    items: List[OrderItemOut] = []
    for it in order.items:
        product = it.product
        items.append(OrderItemOut(
            id=it.id,
            product_id=it.product_id,
            product_name=product.name if product else "Deleted product",
            image_url=(product.image_url or "") if product else "",
            quantity=it.quantity,
            unit_price=it.unit_price,
            line_total=line_total(it.quantity, it.unit_price),
        ))
    return OrderResponse(
        id=order.id,
        user_id=order.user_id,
        user_name=order.user.name if order.user else "",
        status=order.status,
        total=round(order.total or 0.0, 2),
        order_date=order.order_date,
        arrival_date=order.arrival_date,
        shipping_address=AddressOut.model_validate(order.shipping_address) if order.shipping_address else None,
        payment=PaymentOut.model_validate(order.payment) if order.payment else None,
        items=items,
    )


def _with_details(query):
    return query.options(
        selectinload(Order.items).selectinload(OrderItem.product),
        selectinload(Order.user),
        selectinload(Order.payment),
        selectinload(Order.shipping_address),
    )


def get_order_with_details(db: Session, order_id: int) -> Optional[Order]:
    return _with_details(db.query(Order)).filter(Order.id == order_id).first()


def get_owned_order(db: Session, order_id: int, user_id: int) -> Order:
    order = get_order_with_details(db, order_id)
    if not order or order.user_id != user_id or order.status == OrderStatus.CART.value:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def placed_orders(db: Session, user_id: Optional[int] = None) -> List[Order]:
    """Every order except carts, newest first."""
    query = _with_details(db.query(Order)).filter(Order.status != OrderStatus.CART.value)
    if user_id is not None:
        query = query.filter(Order.user_id == user_id)
    return query.order_by(Order.order_date.desc(), Order.id.desc()).all()


def vendor_orders(db: Session, vendor_id: int) -> List[Order]:
    """Placed orders containing at least one product of the vendor."""
    return [
        o for o in placed_orders(db)
        if any(it.product and it.product.vendor_id == vendor_id for it in o.items)
    ]


def filter_orders(orders: Iterable[Order], search: Optional[str] = None, status: Optional[str] = None) -> List[Order]:
    result = list(orders)
    if search:
        # Numeric search matches the order id or a fragment of the customer id;
        # anything else leaves the list unfiltered
        term = search.strip()
        if term.isdigit():
            result = [o for o in result if o.id == int(term) or term in str(o.user_id)]
    if status:
        result = [o for o in result if o.status == status]
    return result


# ---- CART ----

def get_active_cart(db: Session, user_id: int) -> Optional[Order]:
    return (
        _with_details(db.query(Order))
        .filter(Order.user_id == user_id, Order.status == OrderStatus.CART.value)
        .first()
    )


# Retrieve active cart or create a new one
def get_or_create_cart(db: Session, user_id: int) -> Order:
    cart = get_active_cart(db, user_id)
    if not cart:
        cart = Order(user_id=user_id, status=OrderStatus.CART.value, order_date=datetime.now(), total=0.0)
        db.add(cart)
        db.commit()
        db.refresh(cart)
    return cart


def recalculate_total(order: Order) -> float:
    order.total = cart_totals(order.items)["subtotal"]
    return order.total


def add_item(db: Session, cart: Order, product: Product, quantity: int) -> OrderItem:
    existing = next((it for it in cart.items if it.product_id == product.id), None)
    in_cart = existing.quantity if existing else 0

    if in_cart + quantity > product.stock:
        raise HTTPException(status_code=400, detail=f"Insufficient stock. Only {product.stock} left.")

    if existing:
        existing.quantity += quantity
        item = existing
    else:
        # Price snapshot; later price changes do not affect this line
        item = OrderItem(product_id=product.id, quantity=quantity, unit_price=product.price)
        item.product = product
        cart.items.append(item)

    recalculate_total(cart)
    db.commit()
    db.refresh(cart)
    return item


def find_cart_item(cart: Optional[Order], item_id: int) -> OrderItem:
    item = next((it for it in cart.items if it.id == item_id), None) if cart else None
    if not item:
        raise HTTPException(status_code=404, detail="Product not in cart.")
    return item


def update_item_quantity(db: Session, cart: Order, item_id: int, quantity: int) -> OrderItem:
    if quantity <= 0:
        raise HTTPException(status_code=400, detail="Quantity must be greater than 0.")
    item = find_cart_item(cart, item_id)
    if item.product and quantity > item.product.stock:
        raise HTTPException(status_code=400, detail=f"Insufficient stock. Maximum available: {item.product.stock}.")
    item.quantity = quantity
    recalculate_total(cart)
    db.commit()
    db.refresh(cart)
    return item


def remove_item(db: Session, cart: Order, item_id: int) -> None:
    item = find_cart_item(cart, item_id)
    cart.items.remove(item)
    recalculate_total(cart)
    db.commit()
    db.refresh(cart)


def require_items(cart: Optional[Order]) -> Order:
    if not cart or not cart.items:
        raise HTTPException(status_code=400, detail="Your cart is empty")
    return cart


# ---- PLACING ORDERS ----

def _reserve_stock(db: Session, items: Iterable[OrderItem]) -> None:
    """Validate and deduct stock for every line; nothing is committed here."""
    reserved = []
    for item in items:
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if not product:
            raise HTTPException(status_code=400, detail="A product in your cart is no longer available")
        if product.stock < item.quantity:
            raise HTTPException(status_code=400, detail=f"Insufficient stock for {product.name}. Only {product.stock} left.")
        reserved.append((product, item.quantity))
    for product, quantity in reserved:
        product.stock -= quantity


def restock(order: Order) -> None:
    for item in order.items:
        if item.product:
            item.product.stock += item.quantity


def get_owned_address(db: Session, address_id: int, user_id: int) -> ShippingAddress:
    address = db.query(ShippingAddress).filter(ShippingAddress.id == address_id).first()
    if not address or address.user_id != user_id:
        raise HTTPException(status_code=404, detail="Address not found")
    return address


def checkout_cart(db: Session, user: User, shipping_address_id: int, payment_method: str) -> Order:
    """
    Turn the active cart into a placed order and pay for it.

    Stock deduction, the status change, the total and the payment are flushed
    in one unit of work: a failure at any step rolls everything back.
    """
    cart = require_items(get_active_cart(db, user.id))
    address = get_owned_address(db, shipping_address_id, user.id)

    try:
        _reserve_stock(db, cart.items)
        totals = cart_totals(cart.items)

        cart.status = OrderStatus.PENDING.value
        cart.order_date = datetime.now()
        cart.total = totals["total"]
        cart.shipping_address_id = address.id
        db.flush()

        process_payment(db, cart, payment_method, totals["total"])
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception("Checkout failed for cart %s", cart.id)
        raise HTTPException(status_code=500, detail="Error processing order")

    db.refresh(cart)
    return cart


def create_order_from_cart(db: Session, user: User) -> Order:
    """Copy the cart lines into a new Pending order and empty the cart."""
    cart = require_items(get_active_cart(db, user.id))
    totals = cart_totals(cart.items)

    try:
        _reserve_stock(db, cart.items)
        order = Order(
            user_id=user.id,
            order_date=datetime.now(),
            status=OrderStatus.PENDING.value,
            total=totals["total"],
        )
        for ci in cart.items:
            order.items.append(OrderItem(product_id=ci.product_id, quantity=ci.quantity, unit_price=ci.unit_price))
        db.add(order)

        cart.items.clear()
        cart.total = 0.0
        db.commit()
    except HTTPException:
        db.rollback()
        raise

    logger.info("Order created %s for user %s", order.id, user.id)
    return get_order_with_details(db, order.id)


def cancel_order(db: Session, order: Order) -> Order:
    if order.status not in CANCELLABLE:
        raise HTTPException(status_code=400, detail="You can only cancel pending or confirmed orders")
    order.status = OrderStatus.CANCELLED.value
    restock(order)
    db.commit()
    db.refresh(order)
    return order


def change_status(db: Session, order: Order, status: str) -> Order:
    """Back-office status change (vendor or admin)."""
    if status not in ALLOWED_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status. Allowed: {', '.join(ALLOWED_STATUSES)}")
    if order.status == OrderStatus.CANCELLED.value and status != order.status:
        raise HTTPException(status_code=400, detail="Cancelled orders cannot be reopened")

    if status == OrderStatus.CANCELLED.value and order.status != status:
        restock(order)
    order.status = status
    db.commit()
    db.refresh(order)
    return order
