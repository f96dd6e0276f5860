import os
import tempfile

# Settings are read at import time: point the app at an in-memory database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="storefront-uploads-")

import pytest
from fastapi.testclient import TestClient

from main import app
from database import Base, SessionLocal, engine
from models.address import ShippingAddress
from models.category import Category
from models.product import Product
from models.users import User, UserRole
from utils.hashing import get_password_hash
from utils.tokenJWT import create_user_token

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


def make_user(db, role, email, name="Test User", password=PASSWORD) -> User:
    user = User(name=name, email=email, password_hash=get_password_hash(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def customer(db):
    return make_user(db, UserRole.CUSTOMER.value, "customer@customer.com", name="Carla Customer")


@pytest.fixture
def other_customer(db):
    return make_user(db, UserRole.CUSTOMER.value, "other@customer.com", name="Oscar Other")


@pytest.fixture
def vendor(db):
    return make_user(db, UserRole.VENDOR.value, "vendor@vendor.com", name="Vera Vendor")


@pytest.fixture
def other_vendor(db):
    return make_user(db, UserRole.VENDOR.value, "second@vendor.com", name="Victor Vendor")


@pytest.fixture
def admin(db):
    return make_user(db, UserRole.ADMIN.value, "admin@admin.com", name="Ada Admin")


@pytest.fixture
def category(db):
    c = Category(name="Rings", description="All rings")
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


@pytest.fixture
def make_product(db, vendor):
    def _make(name="Gold Ring", price=100.0, stock=10, metal="Gold", purity=18, categories=(), owner=None):
        p = Product(
            name=name,
            description=f"{name} description",
            price=price,
            original_price=price,
            discount=0,
            stock=stock,
            vendor_id=(owner or vendor).id,
            metal=metal,
            purity=purity,
        )
        p.categories = list(categories)
        db.add(p)
        db.commit()
        db.refresh(p)
        return p
    return _make


@pytest.fixture
def address(db, customer):
    a = ShippingAddress(
        user_id=customer.id,
        address_line1="Main St 1",
        city="Springfield",
        state="IL",
        country="USA",
        postal_code="62701",
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    return a
