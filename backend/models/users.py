# backend/models/users.py
import enum
from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship
from database import Base


# Roles recognised by the authorization policies
class UserRole(str, enum.Enum):
    CUSTOMER = "Customer"
    VENDOR = "Vendor"
    ADMIN = "Admin"


ROLES = [r.value for r in UserRole]


# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.CUSTOMER.value, index=True)
    created_at = Column(DateTime, server_default=func.now())

    # Owned data removed together with the account
    orders = relationship("Order", back_populates="user", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="user", cascade="all, delete-orphan")
    addresses = relationship("ShippingAddress", back_populates="user", cascade="all, delete-orphan")

    # Catalog of a vendor
    products = relationship("Product", back_populates="vendor")
