# services/payments.py
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from models.order import Order, OrderStatus
from models.payment import Payment, PaymentMethod, PaymentStatus

PAYMENT_METHODS = [m.value for m in PaymentMethod]
PAYMENT_STATUSES = [s.value for s in PaymentStatus]


def validate_method(method: str) -> str:
    if method not in PAYMENT_METHODS:
        raise HTTPException(status_code=422, detail=f"Unsupported payment method. Use one of: {', '.join(PAYMENT_METHODS)}")
    return method


def validate_status(status: str) -> str:
    if not status:
        raise HTTPException(status_code=400, detail="Status is required")
    if status not in PAYMENT_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid payment status: {status}")
    return status


def get_payment_or_404(db: Session, payment_id: int) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


def process_payment(db: Session, order: Order, method: str, amount: float) -> Payment:
    """
    Record a completed payment for a Pending order and confirm it.
    A pending or failed payment row is reused (one payment per order). The caller commits.
    """
    if amount <= 0:
        raise HTTPException(status_code=400, detail="Amount must be greater than 0")
    validate_method(method)
    if order.status != OrderStatus.PENDING.value:
        raise HTTPException(status_code=400, detail=f"Only pending orders can be paid (order is {order.status})")

    payment = db.query(Payment).filter(Payment.order_id == order.id).first()
    if payment is not None and payment.status == PaymentStatus.COMPLETED.value:
        raise HTTPException(status_code=409, detail="Order is already paid")
    if payment is None:
        payment = Payment(order_id=order.id)
        db.add(payment)

    payment.method = method
    payment.amount = round(amount, 2)
    payment.status = PaymentStatus.COMPLETED.value
    payment.payment_date = datetime.now()

    order.status = OrderStatus.CONFIRMED.value
    db.flush()
    return payment
