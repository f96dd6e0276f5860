# backend/routes/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from database import get_db
from models.address import ShippingAddress
from models.log import LOG_FAIL
from models.users import User
from schemas.address import AddressOut
from schemas.order import CheckoutPayload, CheckoutSummary, OrderResponse
from services.orders import (
    cancel_order,
    checkout_cart,
    create_order_from_cart,
    get_active_cart,
    get_owned_order,
    order_to_out,
    placed_orders,
    require_items,
)
from services.payments import validate_method
from utils.audit import client_ip, write_log
from utils.pricing import cart_totals
from utils.tokenJWT import customer_only

router = APIRouter(prefix="/customer", tags=["Orders"])


# Cart summary with the customer's addresses before placing the order
@router.get("/checkout", response_model=CheckoutSummary)
def checkout(
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    cart = require_items(get_active_cart(db, current_user.id))
    addresses = (
        db.query(ShippingAddress)
        .filter(ShippingAddress.user_id == current_user.id)
        .order_by(ShippingAddress.id.asc())
        .all()
    )
    totals = cart_totals(cart.items)
    return CheckoutSummary(
        order=order_to_out(cart),
        addresses=[AddressOut.model_validate(a) for a in addresses],
        subtotal=totals["subtotal"],
        tax=totals["tax"],
        shipping=totals["shipping"],
        total=totals["total"],
    )


# Place the cart as an order and pay for it
@router.post("/checkout/process", response_model=OrderResponse)
def process_checkout(
    payload: CheckoutPayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    validate_method(payload.payment_method)

    try:
        order = checkout_cart(db, current_user, payload.shipping_address_id, payload.payment_method)
    except HTTPException as e:
        write_log(db, user_id=current_user.id, action="CHECKOUT", resource="orders", status=LOG_FAIL,
                  ip=client_ip(request), meta={"reason": e.detail})
        raise

    write_log(
        db,
        user_id=current_user.id,
        action="CHECKOUT",
        resource="orders",
        ip=client_ip(request),
        meta={"order_id": order.id, "total": order.total, "method": payload.payment_method},
    )
    return order_to_out(get_owned_order(db, order.id, current_user.id))


# Copy the cart into a new pending order without paying
@router.post("/orders/create", response_model=OrderResponse, status_code=201)
def create_order(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    order = create_order_from_cart(db, current_user)
    write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders",
              ip=client_ip(request), meta={"order_id": order.id, "total": order.total})
    return order_to_out(get_owned_order(db, order.id, current_user.id))


@router.get("/orders", response_model=List[OrderResponse])
def my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    return [order_to_out(o) for o in placed_orders(db, user_id=current_user.id)]


@router.get("/orders/{order_id}", response_model=OrderResponse)
def order_details(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    return order_to_out(get_owned_order(db, order_id, current_user.id))


# Cancel a pending or confirmed order and put the items back in stock
@router.post("/orders/{order_id}/cancel", response_model=OrderResponse)
def cancel(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    order = get_owned_order(db, order_id, current_user.id)
    previous = order.status
    cancel_order(db, order)

    write_log(db, user_id=current_user.id, action="ORDER_CANCEL", resource="orders",
              ip=client_ip(request), meta={"order_id": order_id, "from": previous})
    return order_to_out(get_owned_order(db, order_id, current_user.id))
