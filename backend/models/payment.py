import enum
from sqlalchemy import Column, Integer, Float, String, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


# Payment states
class PaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"


class PaymentMethod(str, enum.Enum):
    CARD = "Card"
    PAYPAL = "PayPal"
    TRANSFER = "Transfer"


# A single payment recorded for an order (one-to-one)
class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), unique=True, nullable=False, index=True)
    payment_date = Column(DateTime, nullable=False, server_default=func.now())
    amount = Column(Float, nullable=False)
    method = Column(String, nullable=False, default=PaymentMethod.CARD.value)
    status = Column(String, nullable=False, default=PaymentStatus.PENDING.value)

    order = relationship("Order", back_populates="payment")
