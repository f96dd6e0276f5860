# backend/routes/users.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.order import Order, OrderStatus
from models.product import Product
from models.users import ROLES, User, UserRole
from schemas.order import OrderResponse, OrderStatusPatch
from schemas.user import UserResponse, UserUpdate
from services.orders import _with_details, change_status, get_order_with_details, order_to_out, placed_orders
from utils.audit import client_ip, write_log
from utils.tokenJWT import admin_only, get_current_user, has_role

# Resource API for users and orders
router = APIRouter(prefix="/api", tags=["Users"])


def _self_or_admin(user_id: int, current_user: User):
    if user_id != current_user.id and not has_role(current_user, UserRole.ADMIN):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def _user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# =========================
# USERS
# =========================
@router.get("/users", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return db.query(User).order_by(User.id.asc()).all()


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _self_or_admin(user_id, current_user)
    return _user_or_404(db, user_id)


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _self_or_admin(user_id, current_user)
    user = _user_or_404(db, user_id)

    if payload.name is not None:
        user.name = payload.name.strip()
    if payload.email is not None:
        email = payload.email.strip().lower()
        taken = db.query(User).filter(func.lower(User.email) == email, User.id != user.id).first()
        if taken:
            raise HTTPException(status_code=400, detail="Email already in use")
        user.email = email
    if payload.role is not None:
        # Only an admin may change roles
        if not has_role(current_user, UserRole.ADMIN):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        role = next((r for r in ROLES if r.lower() == payload.role.strip().lower()), None)
        if not role:
            raise HTTPException(status_code=400, detail=f"Invalid role. Allowed: {', '.join(ROLES)}")
        user.role = role

    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_UPDATE", resource="users",
              ip=client_ip(request), meta={"user_id": user.id})
    return user


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = _user_or_404(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    if db.query(Product.id).filter(Product.vendor_id == user.id).first():
        raise HTTPException(status_code=409, detail="Vendor still owns products")

    db.delete(user)
    db.commit()
    write_log(db, user_id=current_user.id, action="USER_DELETE", resource="users",
              ip=client_ip(request), meta={"user_id": user_id})


# =========================
# ORDERS
# =========================
@router.get("/orders/user/{user_id}", response_model=List[OrderResponse])
def orders_by_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _self_or_admin(user_id, current_user)
    return [order_to_out(o) for o in placed_orders(db, user_id=user_id)]


@router.get("/orders/status/{order_status}", response_model=List[OrderResponse])
def orders_by_status(
    order_status: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    orders = (
        _with_details(db.query(Order))
        .filter(Order.status == order_status)
        .order_by(Order.order_date.desc(), Order.id.desc())
        .all()
    )
    return [order_to_out(o) for o in orders]


@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = get_order_with_details(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    _self_or_admin(order.user_id, current_user)
    return order_to_out(order)


@router.put("/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    order = get_order_with_details(db, order_id)
    if not order or order.status == OrderStatus.CART.value:
        raise HTTPException(status_code=404, detail="Order not found")

    previous = order.status
    change_status(db, order, payload.status)
    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders",
              ip=client_ip(request), meta={"order_id": order_id, "from": previous, "to": payload.status})
    return order_to_out(get_order_with_details(db, order_id))
