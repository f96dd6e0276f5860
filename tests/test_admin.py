from datetime import datetime

import pytest
from conftest import auth

from models.log import Log
from models.order import Order, OrderItem
from models.product import Product
from models.users import User


def place_order(db, user, product, quantity=1, status="Confirmed"):
    order = Order(user_id=user.id, status=status, order_date=datetime.now(),
                  total=round(quantity * product.price, 2))
    order.items.append(OrderItem(product_id=product.id, quantity=quantity, unit_price=product.price))
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


def test_dashboard_counts_revenue_statuses_only(client, admin, customer, vendor, make_product, db):
    p = make_product(price=100.0)
    place_order(db, customer, p, status="Confirmed")
    place_order(db, customer, p, status="Delivered")
    place_order(db, customer, p, status="Pending")
    place_order(db, customer, p, status="Cancelled")
    place_order(db, customer, p, status="Cart")

    body = client.get("/admin/dashboard", headers=auth(admin)).json()
    assert body["total_orders"] == 4
    assert body["total_revenue"] == 200.0
    assert body["pending_orders"] == 1
    assert body["total_products"] == 1
    assert body["total_users"] == 3
    assert body["total_customers"] == 1
    assert body["total_vendors"] == 1
    assert len(body["recent_orders"]) == 4


@pytest.mark.parametrize("path", ["/admin/dashboard", "/admin/users", "/admin/logs", "/api/users"])
def test_admin_area_requires_admin(client, vendor, path):
    assert client.get(path, headers=auth(vendor)).status_code == 403
    assert client.get(path).status_code in (401, 403)


# ---- users ----

def test_list_users_search_and_role(client, admin, customer, vendor):
    headers = auth(admin)
    body = client.get("/admin/users", headers=headers).json()
    assert body["total"] == 3

    body = client.get("/admin/users", params={"search": "vera"}, headers=headers).json()
    assert [u["email"] for u in body["items"]] == ["vendor@vendor.com"]

    body = client.get("/admin/users", params={"role": "customer"}, headers=headers).json()
    assert [u["name"] for u in body["items"]] == ["Carla Customer"]


def test_create_user_and_change_role(client, admin, db):
    headers = auth(admin)
    res = client.post("/admin/users", json={"name": "Nina", "email": "Nina@Shop.com", "password": "secret99", "role": "vendor"},
                      headers=headers)
    assert res.status_code == 201
    user = res.json()
    assert user["email"] == "nina@shop.com"
    assert user["role"] == "Vendor"

    dup = client.post("/admin/users", json={"name": "N", "email": "nina@shop.com", "password": "secret99"}, headers=headers)
    assert dup.status_code == 400

    bad = client.post("/admin/users", json={"name": "N", "email": "x@shop.com", "password": "secret99", "role": "Root"},
                      headers=headers)
    assert bad.status_code == 400

    res = client.post(f"/admin/users/{user['id']}/role", json={"role": "ADMIN"}, headers=headers)
    assert res.json()["role"] == "Admin"
    assert client.post(f"/admin/users/{user['id']}/role", json={"role": "Boss"}, headers=headers).status_code == 400
    assert client.post("/admin/users/999/role", json={"role": "Admin"}, headers=headers).status_code == 404

    assert db.query(Log).filter(Log.action == "USER_ROLE_CHANGE").count() == 1


def test_delete_user_rules(client, admin, customer, vendor, make_product, db):
    headers = auth(admin)
    make_product()

    assert client.delete(f"/admin/users/{admin.id}", headers=headers).status_code == 400
    assert client.delete(f"/admin/users/{vendor.id}", headers=headers).status_code == 409
    assert client.delete("/admin/users/999", headers=headers).status_code == 404

    assert client.delete(f"/admin/users/{customer.id}", headers=headers).status_code == 200
    db.expire_all()
    assert db.get(User, customer.id) is None


# ---- categories ----

def test_category_crud(client, admin, category, make_product, db):
    headers = auth(admin)
    p = make_product(categories=[category])

    res = client.post("/admin/categories", json={"name": "Necklaces", "description": "Chains and pendants"}, headers=headers)
    assert res.status_code == 201
    necklaces = res.json()

    assert client.post("/admin/categories", json={"name": "rings"}, headers=headers).status_code == 409
    assert client.put(f"/admin/categories/{necklaces['id']}", json={"name": "Rings"}, headers=headers).status_code == 409

    res = client.put(f"/admin/categories/{necklaces['id']}", json={"description": "Long chains"}, headers=headers)
    assert res.json() == {"id": necklaces["id"], "name": "Necklaces", "description": "Long chains"}

    names = [c["name"] for c in client.get("/admin/categories", headers=headers).json()]
    assert names == ["Necklaces", "Rings"]

    assert client.delete(f"/admin/categories/{category.id}", headers=headers).status_code == 200
    assert client.get(f"/admin/categories/{category.id}", headers=headers).status_code == 404

    db.expire_all()
    assert db.get(Product, p.id).categories == []


# ---- orders and reports ----

def test_order_status_change_restocks_on_cancel(client, admin, customer, make_product, db):
    p = make_product(stock=3)
    order = place_order(db, customer, p, quantity=2)
    cart = place_order(db, customer, p, status="Cart")
    headers = auth(admin)

    body = client.get("/admin/orders", params={"status": "Confirmed"}, headers=headers).json()
    assert [o["id"] for o in body["items"]] == [order.id]

    assert client.post(f"/admin/orders/{cart.id}/status", json={"status": "Shipped"}, headers=headers).status_code == 404

    res = client.post(f"/admin/orders/{order.id}/status", json={"status": "Cancelled"}, headers=headers)
    assert res.json()["status"] == "Cancelled"
    db.expire_all()
    assert db.get(Product, p.id).stock == 5

    res = client.post(f"/admin/orders/{order.id}/status", json={"status": "Shipped"}, headers=headers)
    assert res.status_code == 400


def test_order_search(client, admin, customer, make_product, db):
    p = make_product()
    first = place_order(db, customer, p)
    second = place_order(db, customer, p, status="Pending")
    headers = auth(admin)

    body = client.get("/admin/orders", params={"search": str(second.id)}, headers=headers).json()
    assert second.id in [o["id"] for o in body["items"]]

    # Non-numeric search terms do not filter
    body = client.get("/admin/orders", params={"search": "abc"}, headers=headers).json()
    assert body["total"] == 2
    assert {o["id"] for o in body["items"]} == {first.id, second.id}


def test_admin_product_delete(client, admin, make_product, db):
    p = make_product()
    assert client.delete(f"/admin/products/{p.id}", headers=auth(admin)).status_code == 200
    assert client.delete(f"/admin/products/{p.id}", headers=auth(admin)).status_code == 404


def test_store_report_by_status(client, admin, customer, make_product, db):
    p = make_product(price=10.0)
    place_order(db, customer, p, quantity=1, status="Confirmed")
    place_order(db, customer, p, quantity=3, status="Confirmed")
    place_order(db, customer, p, quantity=2, status="Cancelled")

    body = client.get("/admin/reports", headers=auth(admin)).json()
    assert body["total_orders"] == 3
    assert body["total_revenue"] == 60.0
    assert body["revenue_by_status"] == {"Cancelled": 20.0, "Confirmed": 40.0}
    assert body["orders_by_status"] == {"Cancelled": 1, "Confirmed": 2}

    res = client.get("/admin/reports", params={"start_date": "2024-02-01", "end_date": "2024-01-01"}, headers=auth(admin))
    assert res.status_code == 400


# ---- logs ----

def test_logs_filtering(client, admin, customer, make_product, db):
    p = make_product()
    client.post("/customer/cart/add", json={"product_id": p.id}, headers=auth(customer))
    client.post("/customer/cart/add", json={"product_id": p.id, "quantity": 50}, headers=auth(customer))
    client.post("/admin/categories", json={"name": "Bracelets"}, headers=auth(admin))

    headers = auth(admin)
    body = client.get("/admin/logs", headers=headers).json()
    assert body["total"] == db.query(Log).count()

    body = client.get("/admin/logs", params={"user_id": customer.id, "status": "fail"}, headers=headers).json()
    assert body["total"] == 1
    assert body["items"][0]["resource"] == "cart"

    body = client.get("/admin/logs", params={"action": "category"}, headers=headers).json()
    assert [log["action"] for log in body["items"]] == ["CATEGORY_CREATE"]

    assert client.get("/admin/logs", params={"date_to": "2000-01-01"}, headers=headers).json()["total"] == 0
    assert client.get("/admin/logs", params={"date_from": "yesterday"}, headers=headers).status_code == 400
    assert client.get("/admin/logs", params={"status": "MAYBE"}, headers=headers).status_code == 400

    body = client.get("/admin/logs", params={"page_size": 1, "page": 2}, headers=headers).json()
    assert len(body["items"]) == 1


# ---- resource API ----

def test_users_resource_api(client, admin, customer, other_customer, vendor, make_product):
    ids = [u["id"] for u in client.get("/api/users", headers=auth(admin)).json()]
    assert ids == sorted([admin.id, customer.id, other_customer.id, vendor.id])

    assert client.get(f"/api/users/{customer.id}", headers=auth(customer)).status_code == 200
    assert client.get(f"/api/users/{customer.id}", headers=auth(other_customer)).status_code == 403

    res = client.put(f"/api/users/{customer.id}", json={"name": "Carla Renamed"}, headers=auth(customer))
    assert res.json()["name"] == "Carla Renamed"
    assert client.put(f"/api/users/{customer.id}", json={"role": "Admin"}, headers=auth(customer)).status_code == 403
    assert client.put(f"/api/users/{customer.id}", json={"email": "vendor@vendor.com"}, headers=auth(customer)).status_code == 400

    res = client.put(f"/api/users/{customer.id}", json={"role": "Vendor"}, headers=auth(admin))
    assert res.json()["role"] == "Vendor"

    make_product()
    assert client.delete(f"/api/users/{vendor.id}", headers=auth(admin)).status_code == 409
    assert client.delete(f"/api/users/{other_customer.id}", headers=auth(admin)).status_code == 204
    assert client.get(f"/api/users/{other_customer.id}", headers=auth(admin)).status_code == 404


def test_orders_resource_api(client, admin, customer, other_customer, make_product, db):
    p = make_product(stock=5)
    order = place_order(db, customer, p, status="Pending")
    place_order(db, customer, p, status="Cart")

    assert [o["id"] for o in client.get(f"/api/orders/user/{customer.id}", headers=auth(customer)).json()] == [order.id]
    assert client.get(f"/api/orders/user/{customer.id}", headers=auth(other_customer)).status_code == 403

    assert client.get(f"/api/orders/{order.id}", headers=auth(customer)).status_code == 200
    assert client.get(f"/api/orders/{order.id}", headers=auth(other_customer)).status_code == 403
    assert client.get("/api/orders/999", headers=auth(admin)).status_code == 404

    pending = client.get("/api/orders/status/Pending", headers=auth(admin)).json()
    assert [o["id"] for o in pending] == [order.id]
    assert client.get("/api/orders/status/Pending", headers=auth(customer)).status_code == 403

    res = client.put(f"/api/orders/{order.id}/status", json={"status": "Shipped"}, headers=auth(admin))
    assert res.json()["status"] == "Shipped"
