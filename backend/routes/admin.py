# backend/routes/admin.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from models.order import OrderStatus
from models.product import Product
from models.users import ROLES, User
from schemas.category import CategoryCreate, CategoryOut, CategoryUpdate
from schemas.order import OrderResponse, OrdersPage, OrderStatusPatch
from schemas.product import ProductListPage
from schemas.reports import AdminDashboard, AdminSalesReport
from schemas.user import AdminUserCreate, RoleUpdate, UserResponse, UsersPage
from services.catalog import all_products, delete_product, filter_inventory, get_product_or_404, product_to_out
from services.orders import change_status, filter_orders, get_order_with_details, order_to_out, placed_orders
from services.reports import RECENT_ORDERS_LIMIT, admin_dashboard, orders_in_range, resolve_range, store_sales
from utils.audit import client_ip, write_log
from utils.hashing import get_password_hash
from utils.pagination import paginate
from utils.tokenJWT import admin_only

router = APIRouter(prefix="/admin", tags=["Admin"])


def _validate_role(role: str) -> str:
    # Roles are matched case-insensitively and stored in canonical form
    match = next((r for r in ROLES if r.lower() == (role or "").strip().lower()), None)
    if not match:
        raise HTTPException(status_code=400, detail=f"Invalid role. Allowed: {', '.join(ROLES)}")
    return match


@router.get("/dashboard", response_model=AdminDashboard)
def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return admin_dashboard(db)


# =========================
# PRODUCTS
# =========================
@router.get("/products", response_model=ProductListPage)
def list_products(
    search: Optional[str] = Query(None, description="Search by name or description"),
    metal: Optional[str] = Query(None),
    stock: Optional[str] = Query(None, description="instock, lowstock, outofstock"),
    page: int = Query(1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    products = filter_inventory(all_products(db), search=search, metal=metal, stock=stock)
    result = paginate(products, page, page_size)
    result["items"] = [product_to_out(p) for p in result["items"]]
    return result


@router.delete("/products/{product_id}")
def remove_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    product = get_product_or_404(db, product_id)
    pid, pname = product.id, product.name
    delete_product(db, product)

    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              ip=client_ip(request), meta={"product_id": pid})
    return {"detail": f"Product '{pname}' deleted"}


# =========================
# ORDERS
# =========================
@router.get("/orders", response_model=OrdersPage)
def list_orders(
    search: Optional[str] = Query(None, description="Order id or customer id"),
    status: Optional[str] = Query(None),
    page: int = Query(1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    orders = filter_orders(placed_orders(db), search=search, status=status)
    result = paginate(orders, page, page_size)
    result["items"] = [order_to_out(o) for o in result["items"]]
    return result


@router.post("/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    order = get_order_with_details(db, order_id)
    if not order or order.status == OrderStatus.CART.value:
        raise HTTPException(status_code=404, detail="Order not found")

    previous = order.status
    change_status(db, order, payload.status)

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders",
              ip=client_ip(request), meta={"order_id": order_id, "from": previous, "to": payload.status})
    return order_to_out(get_order_with_details(db, order_id))


# =========================
# USERS
# =========================
@router.get("/users", response_model=UsersPage)
def list_users(
    search: Optional[str] = Query(None, description="Search by name or email"),
    role: Optional[str] = Query(None),
    page: int = Query(1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    query = db.query(User)

    if search:
        like = f"%{search.strip()}%"
        query = query.filter(User.name.ilike(like) | User.email.ilike(like))
    if role:
        query = query.filter(User.role.ilike(role))

    users = query.order_by(User.created_at.desc(), User.id.desc()).all()
    return paginate(users, page, page_size)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: AdminUserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    role = _validate_role(payload.role)
    email = payload.email.strip().lower()
    if db.query(User).filter(func.lower(User.email) == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(name=payload.name.strip(), email=email, password_hash=get_password_hash(payload.password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_CREATE", resource="users",
              ip=client_ip(request), meta={"user_id": user.id, "role": role})
    return user


@router.post("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    role = _validate_role(payload.role)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    previous = user.role
    user.role = role
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_ROLE_CHANGE", resource="users",
              ip=client_ip(request), meta={"user_id": user.id, "from": previous, "to": role})
    return user


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    # Prevent self-deletion
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    if db.query(Product.id).filter(Product.vendor_id == user.id).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Vendor still owns products")

    email = user.email
    db.delete(user)
    db.commit()

    write_log(db, user_id=current_user.id, action="USER_DELETE", resource="users",
              ip=client_ip(request), meta={"user_id": user_id, "email": email})
    return {"message": f"User {email} has been deleted"}


# =========================
# CATEGORIES
# =========================
def _category_or_404(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None):
    query = db.query(Category).filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail="Category name already exists")


@router.get("/categories", response_model=List[CategoryOut])
def list_categories(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return db.query(Category).order_by(Category.name.asc()).all()


@router.post("/categories", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    name = payload.name.strip()
    _ensure_unique_name(db, name)

    category = Category(name=name, description=payload.description)
    db.add(category)
    db.commit()
    db.refresh(category)

    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="categories",
              ip=client_ip(request), meta={"category_id": category.id, "name": name})
    return category


@router.get("/categories/{category_id}", response_model=CategoryOut)
def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    return _category_or_404(db, category_id)


@router.put("/categories/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    category = _category_or_404(db, category_id)
    if payload.name is not None:
        name = payload.name.strip()
        _ensure_unique_name(db, name, exclude_id=category.id)
        category.name = name
    if payload.description is not None:
        category.description = payload.description
    db.commit()
    db.refresh(category)

    write_log(db, user_id=current_user.id, action="CATEGORY_UPDATE", resource="categories",
              ip=client_ip(request), meta={"category_id": category.id})
    return category


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    category = _category_or_404(db, category_id)
    name = category.name
    db.delete(category)
    db.commit()

    write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="categories",
              ip=client_ip(request), meta={"category_id": category_id, "name": name})
    return {"message": f"Category {name} deleted"}


# =========================
# REPORTS
# =========================
@router.get("/reports", response_model=AdminSalesReport)
def sales_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    start, end = resolve_range(start_date, end_date)
    if start > end:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")

    orders = orders_in_range(db, start, end)
    return AdminSalesReport(
        start_date=start,
        end_date=end,
        orders=[order_to_out(o) for o in orders[:RECENT_ORDERS_LIMIT]],
        **store_sales(orders),
    )
