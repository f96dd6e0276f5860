# backend/routes/vendor.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from sqlalchemy.orm import Session, selectinload

from database import get_db
from models.product import Product
from models.review import Review
from models.users import User
from schemas.order import OrderResponse, OrdersPage, OrderStatusPatch
from schemas.product import DiscountUpdate, ProductCreate, ProductListPage, ProductOut, ProductUpdate, StockUpdate
from schemas.reports import VendorDashboard, VendorSalesReport
from schemas.review import ReviewsPage
from routes.reviews import review_to_out
from services.catalog import all_products, delete_product, filter_inventory, product_to_out, resolve_categories
from services.orders import change_status, filter_orders, get_order_with_details, order_to_out, vendor_orders
from services.reports import RECENT_ORDERS_LIMIT, orders_in_range, resolve_range, vendor_dashboard, vendor_sales
from utils.audit import client_ip, write_log
from utils.pagination import paginate
from utils.pricing import discounted_price
from utils.tokenJWT import vendor_only
from utils.uploads import save_image

router = APIRouter(prefix="/vendor", tags=["Vendor"])


def _owned_product(db: Session, product_id: int, vendor: User) -> Product:
    product = db.query(Product).filter(Product.id == product_id, Product.vendor_id == vendor.id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found or no permission")
    return product


@router.get("/dashboard", response_model=VendorDashboard)
def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(vendor_only),
):
    return vendor_dashboard(db, current_user.id)


# =========================
# PRODUCTS
# =========================
@router.get("/products", response_model=ProductListPage)
def my_products(
    search: Optional[str] = Query(None, description="Search by name or description"),
    metal: Optional[str] = Query(None),
    stock: Optional[str] = Query(None, description="instock, lowstock, outofstock"),
    page: int = Query(1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(vendor_only),
):
    products = filter_inventory(all_products(db, vendor_id=current_user.id), search=search, metal=metal, stock=stock)
    result = paginate(products, page, page_size)
    result["items"] = [product_to_out(p) for p in result["items"]]
    return result


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(vendor_only),
):
    categories = resolve_categories(db, payload.category_ids)

    product = Product(
        **payload.model_dump(exclude={"category_ids"}),
        original_price=payload.price,
        discount=0,
        vendor_id=current_user.id,
    )
    product.categories = categories
    db.add(product)
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
              ip=client_ip(request), meta={"product_id": product.id, "name": product.name})
    return product_to_out(product)


@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(vendor_only),
):
    product = _owned_product(db, product_id, current_user)
    categories = resolve_categories(db, payload.category_ids)

    # A manual price edit becomes the new list price
    if payload.price != product.price:
        product.original_price = payload.price
        product.discount = 0
    for field, value in payload.model_dump(exclude={"category_ids"}).items():
        setattr(product, field, value)
    product.categories = categories
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
              ip=client_ip(request), meta={"product_id": product.id})
    return product_to_out(product)


@router.delete("/products/{product_id}")
def remove_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(vendor_only),
):
    product = _owned_product(db, product_id, current_user)
    pid, pname = product.id, product.name
    delete_product(db, product)

    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              ip=client_ip(request), meta={"product_id": pid})
    return {"detail": f"Product '{pname}' deleted"}


@router.post("/products/{product_id}/stock", response_model=ProductOut)
def update_stock(
    product_id: int,
    payload: StockUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(vendor_only),
):
    product = _owned_product(db, product_id, current_user)
    previous = product.stock
    product.stock = payload.quantity
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_STOCK", resource="products",
              ip=client_ip(request), meta={"product_id": product.id, "from": previous, "to": product.stock})
    return product_to_out(product)


# Price is always recomputed from the original list price
@router.post("/products/{product_id}/discount", response_model=ProductOut)
def apply_discount(
    product_id: int,
    payload: DiscountUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(vendor_only),
):
    product = _owned_product(db, product_id, current_user)
    try:
        new_price = discounted_price(product.original_price, payload.discount)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    product.discount = payload.discount
    product.price = new_price
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_DISCOUNT", resource="products",
              ip=client_ip(request), meta={"product_id": product.id, "discount": product.discount, "price": new_price})
    return product_to_out(product)


@router.post("/products/{product_id}/image", response_model=ProductOut)
def upload_image(
    product_id: int,
    request: Request,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(vendor_only),
):
    product = _owned_product(db, product_id, current_user)
    product.image_url = save_image(file, previous_url=product.image_url)
    db.commit()
    db.refresh(product)

    write_log(db, user_id=current_user.id, action="PRODUCT_IMAGE", resource="products",
              ip=client_ip(request), meta={"product_id": product.id, "image_url": product.image_url})
    return product_to_out(product)


# =========================
# ORDERS
# =========================
@router.get("/orders", response_model=OrdersPage)
def my_orders(
    search: Optional[str] = Query(None, description="Order id or customer id"),
    status: Optional[str] = Query(None),
    page: int = Query(1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(vendor_only),
):
    orders = filter_orders(vendor_orders(db, current_user.id), search=search, status=status)
    result = paginate(orders, page, page_size)
    result["items"] = [order_to_out(o) for o in result["items"]]
    return result


@router.post("/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(vendor_only),
):
    order = get_order_with_details(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if not any(it.product and it.product.vendor_id == current_user.id for it in order.items):
        raise HTTPException(status_code=403, detail="You do not have permission to update this order")

    previous = order.status
    change_status(db, order, payload.status)

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders",
              ip=client_ip(request), meta={"order_id": order_id, "from": previous, "to": payload.status})
    return order_to_out(get_order_with_details(db, order_id))


# =========================
# REVIEWS
# =========================
@router.get("/reviews", response_model=ReviewsPage)
def product_reviews(
    search: Optional[str] = Query(None, description="Reviewer, product or comment"),
    product_id: Optional[int] = Query(None),
    page: int = Query(1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(vendor_only),
):
    reviews = (
        db.query(Review)
        .join(Product, Product.id == Review.product_id)
        .options(selectinload(Review.product), selectinload(Review.user))
        .filter(Product.vendor_id == current_user.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    if product_id is not None:
        reviews = [r for r in reviews if r.product_id == product_id]
    if search:
        needle = search.lower()
        reviews = [
            r for r in reviews
            if needle in (r.user.name if r.user else "").lower()
            or needle in (r.user.email if r.user else "").lower()
            or needle in r.product.name.lower()
            or needle in (r.comment or "").lower()
        ]

    average = round(sum(r.rating for r in reviews) / len(reviews), 1) if reviews else 0.0
    result = paginate(reviews, page, page_size)
    result["items"] = [review_to_out(r) for r in result["items"]]
    result["average_rating"] = average
    return result


# =========================
# REPORTS
# =========================
@router.get("/reports", response_model=VendorSalesReport)
def sales_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(vendor_only),
):
    start, end = resolve_range(start_date, end_date)
    if start > end:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")

    orders = orders_in_range(db, start, end)
    sales = vendor_sales(orders, current_user.id)
    ids = set(sales.pop("order_ids"))
    mine = [o for o in orders if o.id in ids]

    return VendorSalesReport(
        start_date=start,
        end_date=end,
        orders=[order_to_out(o) for o in mine[:RECENT_ORDERS_LIMIT]],
        **sales,
    )
