import enum
from sqlalchemy import Column, Integer, Float, String, ForeignKey, DateTime, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base


# Order lifecycle. CART marks the row that currently acts as the user's basket.
class OrderStatus(str, enum.Enum):
    CART = "Cart"
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


# Statuses an order may be moved to by staff
ALLOWED_STATUSES = [
    OrderStatus.PENDING.value,
    OrderStatus.CONFIRMED.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
    OrderStatus.CANCELLED.value,
]

# Statuses that count towards revenue
REVENUE_STATUSES = [
    OrderStatus.CONFIRMED.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
]


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    order_date = Column(DateTime, nullable=False, server_default=func.now())
    arrival_date = Column(DateTime, nullable=True)
    status = Column(String, nullable=False, default=OrderStatus.PENDING.value, index=True)
    total = Column(Float, nullable=False, default=0.0)

    shipping_address_id = Column(Integer, ForeignKey("shipping_addresses.id", ondelete="SET NULL"), nullable=True)

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")
    payment = relationship("Payment", back_populates="order", uselist=False, cascade="all, delete-orphan")
    shipping_address = relationship("ShippingAddress")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False, default=1)
    unit_price = Column(Float, nullable=False)  # Price at the moment the line was created

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        # One line per product within an order
        UniqueConstraint("order_id", "product_id", name="uq_orderitem_order_product"),
    )
