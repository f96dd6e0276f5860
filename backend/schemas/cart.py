from pydantic import BaseModel, Field
from typing import List

# Request schema for adding an item to the cart
class CartAddItem(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)

# Request schema for updating cart item quantity; non-positive values are
# rejected by the route with a readable message
class CartUpdateItem(BaseModel):
    item_id: int
    quantity: int

class CartRemoveItem(BaseModel):
    item_id: int

# Response schema for a single cart line item
class CartItemOut(BaseModel):
    id: int
    product_id: int
    name: str
    image_url: str = ""
    metal: str = ""
    purity: float = 0
    quantity: int
    unit_price: float
    line_total: float
    max_stock: int

# Response schema for the entire cart summary
class CartOut(BaseModel):
    order_id: int
    items: List[CartItemOut]
    subtotal: float
    tax: float
    shipping: float
    total: float
    item_count: int
