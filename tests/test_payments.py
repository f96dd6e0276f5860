from datetime import datetime

import pytest
from conftest import auth

from models.order import Order, OrderItem
from models.payment import Payment
from models.product import Product


@pytest.fixture
def pending_order(db, customer, make_product):
    p = make_product(price=40.0)
    order = Order(user_id=customer.id, status="Pending", order_date=datetime.now(), total=46.4)
    order.items.append(OrderItem(product_id=p.id, quantity=1, unit_price=40.0))
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


def test_process_payment_confirms_order(client, customer, pending_order, db):
    res = client.post("/api/payments/process",
                      json={"order_id": pending_order.id, "method": "Transfer", "amount": 46.4},
                      headers=auth(customer))
    assert res.status_code == 200
    assert res.json()["status"] == "Completed"

    db.expire_all()
    assert db.get(Order, pending_order.id).status == "Confirmed"


def test_process_payment_updates_existing_row(client, customer, pending_order, db):
    db.add(Payment(order_id=pending_order.id, amount=10.0, method="Card", status="Failed", payment_date=datetime.now()))
    db.commit()

    res = client.post("/api/payments/process",
                      json={"order_id": pending_order.id, "method": "PayPal", "amount": 46.4},
                      headers=auth(customer))
    assert res.status_code == 200
    body = res.json()
    assert body["method"] == "PayPal"
    assert body["amount"] == 46.4
    assert body["status"] == "Completed"
    assert db.query(Payment).filter(Payment.order_id == pending_order.id).count() == 1


def test_process_payment_validation(client, customer, other_customer, admin, pending_order):
    payload = {"order_id": pending_order.id, "method": "Card", "amount": 0}
    assert client.post("/api/payments/process", json=payload, headers=auth(customer)).status_code == 400

    payload["amount"] = 10
    assert client.post("/api/payments/process", json=payload, headers=auth(other_customer)).status_code == 403
    assert client.post("/api/payments/process", json=payload, headers=auth(admin)).status_code == 200

    payload["order_id"] = 999
    assert client.post("/api/payments/process", json=payload, headers=auth(admin)).status_code == 404


def test_admin_payment_crud(client, admin, customer, pending_order):
    headers = auth(admin)
    res = client.post("/api/payments", json={"order_id": pending_order.id, "amount": 46.4, "method": "Card"},
                      headers=headers)
    assert res.status_code == 201
    payment = res.json()
    assert payment["status"] == "Pending"

    assert client.post("/api/payments", json={"order_id": pending_order.id, "amount": 1, "method": "Card"},
                       headers=headers).status_code == 409

    assert client.get(f"/api/payments/{payment['id']}", headers=auth(customer)).status_code == 200
    assert client.get(f"/api/payments/order/{pending_order.id}", headers=headers).json()["id"] == payment["id"]
    assert len(client.get("/api/payments", headers=headers).json()) == 1
    assert client.get("/api/payments", headers=auth(customer)).status_code == 403

    res = client.put(f"/api/payments/{payment['id']}/status", json={"status": "Failed"}, headers=headers)
    assert res.json()["status"] == "Failed"
    assert client.put(f"/api/payments/{payment['id']}/status", json={}, headers=headers).status_code == 400
    assert client.put(f"/api/payments/{payment['id']}/status", json={"status": "Lost"}, headers=headers).status_code == 400

    res = client.put(f"/api/payments/{payment['id']}",
                     json={"amount": 50.0, "method": "Transfer", "status": "Completed"}, headers=headers)
    assert res.json()["amount"] == 50.0

    assert client.delete(f"/api/payments/{payment['id']}", headers=headers).status_code == 204
    res = client.get(f"/api/payments/{payment['id']}", headers=headers)
    assert res.status_code == 404
    assert res.json()["detail"] == "Payment not found"


def test_cancelled_order_cannot_be_paid(client, customer, make_product, address, db):
    p = make_product(stock=5)
    headers = auth(customer)
    client.post("/customer/cart/add", json={"product_id": p.id, "quantity": 2}, headers=headers)
    order_id = client.post("/customer/checkout/process",
                           json={"shipping_address_id": address.id}, headers=headers).json()["id"]
    client.post(f"/customer/orders/{order_id}/cancel", headers=headers)

    res = client.post("/api/payments/process", json={"order_id": order_id, "method": "Card", "amount": 1},
                      headers=headers)
    assert res.status_code == 400

    db.expire_all()
    assert db.get(Order, order_id).status == "Cancelled"
    assert db.get(Product, p.id).stock == 5
    assert db.query(Payment).filter(Payment.order_id == order_id).one().amount != 1


def test_completed_payment_is_not_overwritten(client, customer, pending_order, db):
    db.add(Payment(order_id=pending_order.id, amount=46.4, method="Card", status="Completed", payment_date=datetime.now()))
    db.commit()

    res = client.post("/api/payments/process",
                      json={"order_id": pending_order.id, "method": "Card", "amount": 1},
                      headers=auth(customer))
    assert res.status_code == 409

    db.expire_all()
    assert db.query(Payment).filter(Payment.order_id == pending_order.id).one().amount == 46.4
