# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime

from schemas.category import CategoryOut


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(min_length=1)
    description: str = ""
    price: float = Field(ge=0)
    stock: int = Field(ge=0)
    metal: str = ""
    purity: float = Field(default=0, ge=0)


# Schema for creating a new product (vendor)
class ProductCreate(ProductBase):
    category_ids: List[int] = []


# Schema for full product updates (vendor); categories are replaced
class ProductUpdate(ProductBase):
    category_ids: List[int] = []


# Full product representation including ID
class ProductOut(ProductBase):
    id: int
    image_url: str = ""  # written only by the image upload endpoint
    original_price: float
    discount: int
    vendor_id: int
    category_names: str = ""
    created_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int
    total_pages: int


class StockUpdate(BaseModel):
    quantity: int = Field(ge=0)


class DiscountUpdate(BaseModel):
    discount: int


# Landing page payload
class HomeResponse(BaseModel):
    featured_products: List[ProductOut]
    categories: List[CategoryOut]


class ProductReviewOut(ORMBase):
    id: int
    user_id: int
    user_name: str = ""
    rating: int
    comment: str
    created_at: Optional[datetime] = None


# Product page with reviews and related items
class ProductDetailResponse(BaseModel):
    product: ProductOut
    categories: List[CategoryOut]
    reviews: List[ProductReviewOut]
    average_rating: float
    review_count: int
    related_products: List[ProductOut]
    in_stock: bool
