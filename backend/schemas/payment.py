from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class PaymentCreate(BaseModel):
    order_id: int
    amount: float
    method: str = "Card"


# Full replacement of a payment row
class PaymentUpdate(BaseModel):
    amount: float
    method: str
    status: str
    payment_date: Optional[datetime] = None


class ProcessPaymentRequest(BaseModel):
    order_id: int
    method: str
    amount: float


class PaymentStatusUpdate(BaseModel):
    status: Optional[str] = None


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    payment_date: datetime
    amount: float
    method: str
    status: str
