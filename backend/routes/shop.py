# backend/routes/shop.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, selectinload

from database import get_db
from models.category import Category
from models.review import Review
from schemas.category import CategoryOut
from schemas.product import HomeResponse, ProductDetailResponse, ProductListPage, ProductReviewOut
from services.catalog import (
    all_products,
    featured_products,
    filter_catalog,
    get_product_or_404,
    product_to_out,
    rating_summary,
    related_products,
)
from utils.pagination import paginate

router = APIRouter(prefix="/customer", tags=["Shop"])


# Landing page: newest products and every category
@router.get("/home", response_model=HomeResponse)
def home(db: Session = Depends(get_db)):
    categories = db.query(Category).order_by(Category.name.asc()).all()
    return HomeResponse(
        featured_products=[product_to_out(p) for p in featured_products(db)],
        categories=[CategoryOut.model_validate(c) for c in categories],
    )


# Browse the catalog with filters, sorting and pagination
@router.get("/products", response_model=ProductListPage)
def list_products(
    metal: Optional[str] = Query(None, description="Gold, Silver, Platinum"),
    category_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Search by name"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    sort_by: Optional[str] = Query(None, description="price_asc, price_desc, name_asc, name_desc"),
    page: int = Query(1),
    page_size: int = Query(12, ge=1, le=100),
    db: Session = Depends(get_db),
):
    products = filter_catalog(
        all_products(db),
        metal=metal,
        category_id=category_id,
        search=search,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
    )
    result = paginate(products, page, page_size)
    result["items"] = [product_to_out(p) for p in result["items"]]
    return result


# Product page with reviews and related products
@router.get("/products/{product_id}", response_model=ProductDetailResponse)
def product_details(product_id: int, db: Session = Depends(get_db)):
    product = get_product_or_404(db, product_id)

    reviews = (
        db.query(Review)
        .options(selectinload(Review.user))
        .filter(Review.product_id == product.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    average, count = rating_summary(db, product.id)

    return ProductDetailResponse(
        product=product_to_out(product),
        categories=[CategoryOut.model_validate(c) for c in product.categories],
        reviews=[
            ProductReviewOut(
                id=r.id,
                user_id=r.user_id,
                user_name=r.user.name if r.user else "",
                rating=r.rating,
                comment=r.comment,
                created_at=r.created_at,
            )
            for r in reviews
        ],
        average_rating=average,
        review_count=count,
        related_products=[product_to_out(p) for p in related_products(db, product)],
        in_stock=product.stock > 0,
    )
