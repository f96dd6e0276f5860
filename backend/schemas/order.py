from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime

from schemas.address import AddressOut
from schemas.payment import PaymentOut


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    image_url: str = ""
    quantity: int
    unit_price: float
    line_total: float


# Input schema for placing the cart as an order
class CheckoutPayload(BaseModel):
    shipping_address_id: int
    payment_method: str = "Card"


# Output schema representing the full order details
class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    user_name: str = ""
    status: str
    total: float
    order_date: datetime
    arrival_date: Optional[datetime] = None
    shipping_address: Optional[AddressOut] = None
    payment: Optional[PaymentOut] = None
    items: List[OrderItemOut]


# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: str


# Cart snapshot shown before placing the order
class CheckoutSummary(BaseModel):
    order: OrderResponse
    addresses: List[AddressOut]
    subtotal: float
    tax: float
    shipping: float
    total: float
