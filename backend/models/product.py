# backend/models/product.py
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base
from models.category import product_categories

# Product model
# A single piece of jewelry offered by a vendor.
# Keeps catalog data, the current (possibly discounted) price next to the
# original list price, the stock level and the metal/purity attributes.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=False, default="")

    # Prices and discount, guarded by constraints.
    price = Column(Float, CheckConstraint("price >= 0"), nullable=False)
    original_price = Column(Float, CheckConstraint("original_price >= 0"), nullable=False)
    discount = Column(Integer, CheckConstraint("discount >= 0 AND discount <= 100"), nullable=False, default=0)

    # Inventory.
    stock = Column(Integer, CheckConstraint("stock >= 0"), nullable=False, default=0)

    vendor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    image_url = Column(String, nullable=False, default="")
    metal = Column(String, nullable=False, default="")  # Gold / Silver / Platinum
    purity = Column(Float, nullable=False, default=0)  # e.g. 14, 18, 24, 925, 950

    created_at = Column(DateTime, server_default=func.now())

    vendor = relationship("User", back_populates="products")
    categories = relationship("Category", secondary=product_categories, back_populates="products")
    reviews = relationship("Review", back_populates="product", cascade="all, delete-orphan")

    @property
    def category_names(self) -> str:
        return ", ".join(c.name for c in self.categories)
