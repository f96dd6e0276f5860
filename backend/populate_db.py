import os
import random
import sys
from datetime import datetime, timedelta

import pandas as pd

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from database import SessionLocal, init_db
from models.address import ShippingAddress
from models.category import Category
from models.order import Order, OrderItem, OrderStatus
from models.payment import Payment, PaymentMethod, PaymentStatus
from models.product import Product
from models.review import Review
from models.users import User, UserRole
from utils.hashing import get_password_hash
from utils.pricing import cart_totals

# Configuration
DEMO_USERS = [
    ("Administrator", "admin@admin.com", "admin123.", UserRole.ADMIN.value),
    ("Demo Vendor", "vendor@vendor.com", "vendor123.", UserRole.VENDOR.value),
    ("Demo Customer", "customer@customer.com", "customer123.", UserRole.CUSTOMER.value),
]
CATEGORIES = {
    "Rings": "Engagement, wedding and fashion rings",
    "Necklaces": "Chains, pendants and chokers",
    "Earrings": "Studs, hoops and drops",
    "Bracelets": "Bangles, cuffs and link bracelets",
}
HISTORY_ORDERS = 40  # Historical orders for the reports
HISTORY_DAYS = 120
# End Configuration

CATALOG = pd.DataFrame(
    [
        ("Solitaire Ring", "Rings", "Gold", 18, 1250.00, 6),
        ("Eternity Band", "Rings", "Platinum", 950, 2100.00, 3),
        ("Signet Ring", "Rings", "Silver", 925, 180.00, 15),
        ("Pearl Pendant", "Necklaces", "Gold", 14, 640.00, 8),
        ("Rope Chain", "Necklaces", "Silver", 925, 95.00, 25),
        ("Diamond Choker", "Necklaces", "Platinum", 950, 3400.00, 2),
        ("Hoop Earrings", "Earrings", "Gold", 14, 320.00, 12),
        ("Stud Earrings", "Earrings", "Silver", 925, 60.00, 40),
        ("Tennis Bracelet", "Bracelets", "Gold", 18, 1890.00, 4),
        ("Charm Bracelet", "Bracelets", "Silver", 925, 140.00, 0),
    ],
    columns=["name", "category", "metal", "purity", "price", "stock"],
)


def ensure_user(session, name, email, password, role) -> User:
    user = session.query(User).filter(User.email == email).first()
    if not user:
        user = User(name=name, email=email, password_hash=get_password_hash(password), role=role)
        session.add(user)
        session.flush()
        print(f"Created account {email} ({role})")
    return user


def seed():
    init_db()
    session = SessionLocal()
    try:
        users = {role: ensure_user(session, name, email, password, role) for name, email, password, role in DEMO_USERS}
        vendor = users[UserRole.VENDOR.value]
        customer = users[UserRole.CUSTOMER.value]

        # Categories
        categories = {}
        for name, description in CATEGORIES.items():
            category = session.query(Category).filter(Category.name == name).first()
            if not category:
                category = Category(name=name, description=description)
                session.add(category)
            categories[name] = category
        session.flush()

        # Products, skipped when the vendor already has a catalog
        if session.query(Product).filter(Product.vendor_id == vendor.id).count() == 0:
            print(f"Inserting {len(CATALOG)} products...")
            for row in CATALOG.itertuples(index=False):
                product = Product(
                    name=row.name,
                    description=f"{row.metal} {row.name.lower()}, purity {row.purity}.",
                    price=float(row.price),
                    original_price=float(row.price),
                    discount=0,
                    stock=int(row.stock),
                    vendor_id=vendor.id,
                    image_url=f"https://picsum.photos/seed/{row.name.replace(' ', '')}/300/300",
                    metal=row.metal,
                    purity=float(row.purity),
                )
                product.categories = [categories[row.category]]
                session.add(product)
            session.flush()

        address = session.query(ShippingAddress).filter(ShippingAddress.user_id == customer.id).first()
        if not address:
            address = ShippingAddress(
                user_id=customer.id,
                address_line1="Av. Reforma 222",
                city="Ciudad de Mexico",
                state="CDMX",
                country="Mexico",
                postal_code="06600",
            )
            session.add(address)
            session.flush()

        # Order history spread over the last months
        if session.query(Order).filter(Order.user_id == customer.id).count() == 0:
            products = session.query(Product).filter(Product.vendor_id == vendor.id).all()
            statuses = [OrderStatus.CONFIRMED.value, OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value]
            print(f"Generating {HISTORY_ORDERS} orders...")
            for _ in range(HISTORY_ORDERS):
                picked = random.sample(products, k=random.randint(1, 3))
                order = Order(
                    user_id=customer.id,
                    order_date=datetime.now() - timedelta(days=random.randint(0, HISTORY_DAYS)),
                    status=random.choice(statuses),
                    shipping_address_id=address.id,
                )
                for p in picked:
                    order.items.append(OrderItem(product_id=p.id, quantity=random.randint(1, 3), unit_price=p.price))
                order.total = cart_totals(order.items)["total"]
                order.payment = Payment(
                    amount=order.total,
                    method=random.choice([m.value for m in PaymentMethod]),
                    status=PaymentStatus.COMPLETED.value,
                    payment_date=order.order_date,
                )
                session.add(order)

            for p in random.sample(products, k=min(5, len(products))):
                session.add(Review(product_id=p.id, user_id=customer.id, rating=random.randint(3, 5),
                                   comment="Beautiful piece, exactly as described."))

        session.commit()
        print("Database ready.")
    except Exception as e:
        session.rollback()
        print(f"Seeding failed: {e}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    seed()
