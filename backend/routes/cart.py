# backend/routes/cart.py
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import customer_only
from utils.audit import client_ip, write_log
from utils.pricing import cart_totals, line_total
from models.log import LOG_FAIL
from models.order import Order
from models.users import User
from schemas.cart import CartAddItem, CartItemOut, CartOut, CartRemoveItem, CartUpdateItem
from services.catalog import get_product_or_404
from services.orders import add_item, get_active_cart, get_or_create_cart, remove_item, update_item_quantity

router = APIRouter(prefix="/customer/cart", tags=["Cart"])


def _cart_to_out(cart: Order) -> CartOut:
    items_out = []
    for it in cart.items:
        product = it.product
        items_out.append(CartItemOut(
            id=it.id,
            product_id=it.product_id,
            name=product.name if product else "",
            image_url=(product.image_url or "") if product else "",
            metal=(product.metal or "") if product else "",
            purity=(product.purity or 0) if product else 0,
            quantity=it.quantity,
            # Snapshot price stored on the line
            unit_price=it.unit_price,
            line_total=line_total(it.quantity, it.unit_price),
            max_stock=product.stock if product else 0,
        ))

    totals = cart_totals(cart.items)
    return CartOut(
        order_id=cart.id,
        items=items_out,
        subtotal=totals["subtotal"],
        tax=totals["tax"],
        shipping=totals["shipping"],
        total=totals["total"],
        item_count=totals["item_count"],
    )


@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    cart = get_or_create_cart(db, current_user.id)
    return _cart_to_out(cart)


# Add a product to the cart, merging with an existing line
@router.post("/add", response_model=CartOut)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    product = get_product_or_404(db, payload.product_id)
    cart = get_or_create_cart(db, current_user.id)

    try:
        add_item(db, cart, product, payload.quantity)
    except HTTPException as e:
        write_log(db, user_id=current_user.id, action="CART_ADD", resource="cart", status=LOG_FAIL,
                  ip=client_ip(request), meta={"product_id": product.id, "reason": e.detail})
        raise

    write_log(
        db,
        user_id=current_user.id,
        action="CART_ADD",
        resource="cart",
        ip=client_ip(request),
        meta={"product_id": product.id, "quantity": payload.quantity},
    )
    return _cart_to_out(get_active_cart(db, current_user.id))


# Change the quantity of a cart line
@router.post("/update", response_model=CartOut)
def update_cart_item(
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    if payload.quantity <= 0:
        raise HTTPException(status_code=400, detail="Quantity must be greater than 0.")

    cart = get_active_cart(db, current_user.id)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found.")

    update_item_quantity(db, cart, payload.item_id, payload.quantity)

    write_log(db, user_id=current_user.id, action="CART_UPDATE", resource="cart",
              ip=client_ip(request), meta={"item_id": payload.item_id, "quantity": payload.quantity})
    return _cart_to_out(get_active_cart(db, current_user.id))


# Remove a line from the caller's own cart
@router.post("/remove", response_model=CartOut)
def remove_from_cart(
    payload: CartRemoveItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    cart = get_active_cart(db, current_user.id)
    if not cart:
        raise HTTPException(status_code=404, detail="Product not in cart.")
    remove_item(db, cart, payload.item_id)

    write_log(db, user_id=current_user.id, action="CART_REMOVE", resource="cart",
              ip=client_ip(request), meta={"item_id": payload.item_id})
    return _cart_to_out(get_active_cart(db, current_user.id))