from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


# Input schema for creating or replacing a shipping address
class AddressIn(BaseModel):
    address_line1: str = Field(min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    country: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)


class AddressOut(AddressIn):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
