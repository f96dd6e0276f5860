# backend/routes/products.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, selectinload

from database import get_db
from models.category import Category
from models.product import Product
from models.review import Review
from schemas.category import CategoryOut
from schemas.product import ProductOut
from schemas.review import ReviewOut
from routes.reviews import review_to_out
from services.catalog import all_products, get_product_or_404, product_to_out

router = APIRouter(prefix="/api", tags=["Products"])


@router.get("/products", response_model=List[ProductOut])
def list_products(db: Session = Depends(get_db)):
    return [product_to_out(p) for p in all_products(db)]


# Name search; declared before /products/{product_id} so it is not shadowed
@router.get("/products/search", response_model=List[ProductOut])
def search_products(
    keyword: str = Query("", description="Part of the product name"),
    db: Session = Depends(get_db),
):
    query = db.query(Product).options(selectinload(Product.categories))
    if keyword.strip():
        query = query.filter(Product.name.ilike(f"%{keyword.strip()}%"))
    return [product_to_out(p) for p in query.order_by(Product.id.asc()).all()]


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return product_to_out(get_product_or_404(db, product_id))


@router.get("/products/{product_id}/reviews", response_model=List[ReviewOut])
def product_reviews(product_id: int, db: Session = Depends(get_db)):
    product = get_product_or_404(db, product_id)
    reviews = (
        db.query(Review)
        .options(selectinload(Review.product), selectinload(Review.user))
        .filter(Review.product_id == product.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    return [review_to_out(r) for r in reviews]


@router.get("/categories", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return db.query(Category).order_by(Category.name.asc()).all()
