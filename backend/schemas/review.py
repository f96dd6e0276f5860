from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class ReviewCreate(BaseModel):
    product_id: int
    rating: int = Field(ge=1, le=5)
    comment: str = ""


class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    product_name: str = ""
    user_id: int
    user_name: str = ""
    user_email: str = ""
    rating: int
    comment: str
    created_at: Optional[datetime] = None


# Vendor view: paginated reviews with the average over the filtered set
class ReviewsPage(BaseModel):
    items: List[ReviewOut]
    total: int
    page: int
    page_size: int
    total_pages: int
    average_rating: float
