from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str
    remember_me: bool = False

# Schema for user registration requests
class UserCreate(UserBase):
    name: str = Field(min_length=1)
    password: str = Field(min_length=6)
    register_as_vendor: bool = False

# Schema for accounts created by an administrator
class AdminUserCreate(UserBase):
    name: str = Field(min_length=1)
    password: str = Field(min_length=6)
    role: str = "Customer"

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    name: str
    role: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Paginated user list
class UsersPage(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int
    total_pages: int

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    redirect_to: str

# Schema for administrative role updates
class RoleUpdate(BaseModel):
    role: str

# Account settings
class ProfileUpdate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr

class PasswordChange(BaseModel):
    current_password: str = ""
    new_password: str = ""

# Partial update through the resource API
class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[str] = None
