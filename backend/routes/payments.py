# backend/routes/payments.py
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.order import Order, OrderStatus
from models.payment import Payment, PaymentStatus
from models.users import User, UserRole
from schemas.payment import PaymentCreate, PaymentOut, PaymentStatusUpdate, PaymentUpdate, ProcessPaymentRequest
from services.payments import get_payment_or_404, process_payment, validate_method, validate_status
from utils.audit import client_ip, write_log
from utils.tokenJWT import admin_only, get_current_user, has_role

router = APIRouter(prefix="/api/payments", tags=["Payments"])


def _order_or_404(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def _ensure_can_see(order: Order, user: User):
    if order.user_id != user.id and not has_role(user, UserRole.ADMIN):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


@router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    _order_or_404(db, payload.order_id)
    validate_method(payload.method)
    if db.query(Payment).filter(Payment.order_id == payload.order_id).first():
        raise HTTPException(status_code=409, detail="Order already has a payment")

    payment = Payment(
        order_id=payload.order_id,
        amount=round(payload.amount, 2),
        method=payload.method,
        status=PaymentStatus.PENDING.value,
        payment_date=datetime.now(),
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    return payment


# Pay for an order: owner of the order or an admin
@router.post("/process", response_model=PaymentOut)
def process(
    payload: ProcessPaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = _order_or_404(db, payload.order_id)
    _ensure_can_see(order, current_user)
    if order.status == OrderStatus.CART.value:
        raise HTTPException(status_code=400, detail="Cart orders must go through checkout")

    payment = process_payment(db, order, payload.method, payload.amount)
    db.commit()
    db.refresh(payment)

    write_log(db, user_id=current_user.id, action="PAYMENT_PROCESS", resource="payments",
              ip=client_ip(request), meta={"order_id": order.id, "amount": payment.amount, "method": payment.method})
    return payment


@router.get("", response_model=List[PaymentOut])
def list_payments(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return db.query(Payment).order_by(Payment.payment_date.desc(), Payment.id.desc()).all()


@router.get("/order/{order_id}", response_model=PaymentOut)
def payment_for_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _ensure_can_see(_order_or_404(db, order_id), current_user)
    payment = db.query(Payment).filter(Payment.order_id == order_id).first()
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    payment = get_payment_or_404(db, payment_id)
    _ensure_can_see(payment.order, current_user)
    return payment


@router.put("/{payment_id}/status", response_model=PaymentOut)
def update_payment_status(
    payment_id: int,
    payload: PaymentStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    new_status = validate_status(payload.status)
    payment = get_payment_or_404(db, payment_id)
    previous = payment.status
    payment.status = new_status
    db.commit()
    db.refresh(payment)

    write_log(db, user_id=current_user.id, action="PAYMENT_STATUS_CHANGE", resource="payments",
              ip=client_ip(request), meta={"payment_id": payment_id, "from": previous, "to": new_status})
    return payment


@router.put("/{payment_id}", response_model=PaymentOut)
def update_payment(
    payment_id: int,
    payload: PaymentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    payment = get_payment_or_404(db, payment_id)
    validate_method(payload.method)
    validate_status(payload.status)

    payment.amount = round(payload.amount, 2)
    payment.method = payload.method
    payment.status = payload.status
    if payload.payment_date is not None:
        payment.payment_date = payload.payment_date
    db.commit()
    db.refresh(payment)
    return payment


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    payment = get_payment_or_404(db, payment_id)
    db.delete(payment)
    db.commit()
