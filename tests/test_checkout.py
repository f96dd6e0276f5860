from conftest import auth

from models.order import Order
from models.payment import Payment
from models.product import Product


def fill_cart(client, user, *lines):
    headers = auth(user)
    for product, quantity in lines:
        res = client.post("/customer/cart/add", json={"product_id": product.id, "quantity": quantity}, headers=headers)
        assert res.status_code == 200
    return headers


def test_checkout_summary(client, customer, make_product, address):
    p = make_product(price=50.0)
    headers = fill_cart(client, customer, (p, 2))

    res = client.get("/customer/checkout", headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert body["subtotal"] == 100.0
    assert body["tax"] == 16.0
    assert body["total"] == 116.0
    assert [a["id"] for a in body["addresses"]] == [address.id]
    assert body["order"]["status"] == "Cart"


def test_checkout_empty_cart(client, customer, address):
    headers = auth(customer)
    res = client.get("/customer/checkout", headers=headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "Your cart is empty"

    res = client.post("/customer/checkout/process",
                      json={"shipping_address_id": address.id, "payment_method": "Card"}, headers=headers)
    assert res.status_code == 400


def test_checkout_places_and_pays_order(client, customer, make_product, address, db):
    ring = make_product(name="Ring", price=100.0, stock=5)
    chain = make_product(name="Chain", price=25.5, stock=10)
    headers = fill_cart(client, customer, (ring, 2), (chain, 1))

    res = client.post("/customer/checkout/process",
                      json={"shipping_address_id": address.id, "payment_method": "PayPal"}, headers=headers)
    assert res.status_code == 200
    order = res.json()
    assert order["status"] == "Confirmed"
    assert order["total"] == round(225.5 + round(225.5 * 0.16, 2), 2)
    assert order["shipping_address"]["id"] == address.id
    assert order["payment"]["status"] == "Completed"
    assert order["payment"]["method"] == "PayPal"
    assert order["payment"]["amount"] == order["total"]

    db.expire_all()
    assert db.get(Product, ring.id).stock == 3
    assert db.get(Product, chain.id).stock == 9
    assert db.query(Payment).filter(Payment.order_id == order["id"]).count() == 1

    # Next cart access starts a fresh cart
    cart = client.get("/customer/cart", headers=headers).json()
    assert cart["items"] == []
    assert cart["order_id"] != order["id"]


def test_checkout_rejects_unknown_method(client, customer, make_product, address):
    p = make_product()
    headers = fill_cart(client, customer, (p, 1))
    res = client.post("/customer/checkout/process",
                      json={"shipping_address_id": address.id, "payment_method": "Bitcoin"}, headers=headers)
    assert res.status_code == 422


def test_checkout_requires_own_address(client, customer, other_customer, make_product, address):
    p = make_product()
    headers = fill_cart(client, other_customer, (p, 1))
    res = client.post("/customer/checkout/process",
                      json={"shipping_address_id": address.id, "payment_method": "Card"}, headers=headers)
    assert res.status_code == 404


def test_checkout_rolls_back_when_stock_ran_out(client, customer, make_product, address, db):
    ring = make_product(name="Ring", stock=5)
    chain = make_product(name="Chain", stock=5)
    headers = fill_cart(client, customer, (ring, 2), (chain, 3))

    # Stock dropped after the items were put in the cart
    db.get(Product, chain.id).stock = 1
    db.commit()

    res = client.post("/customer/checkout/process",
                      json={"shipping_address_id": address.id, "payment_method": "Card"}, headers=headers)
    assert res.status_code == 400

    db.expire_all()
    assert db.get(Product, ring.id).stock == 5
    cart = db.query(Order).filter(Order.user_id == customer.id).one()
    assert cart.status == "Cart"
    assert db.query(Payment).count() == 0


def test_create_order_copies_cart(client, customer, make_product, db):
    p = make_product(price=10.0, stock=4)
    headers = fill_cart(client, customer, (p, 3))

    res = client.post("/customer/orders/create", headers=headers)
    assert res.status_code == 201
    order = res.json()
    assert order["status"] == "Pending"
    assert order["total"] == 34.8
    assert order["items"][0]["quantity"] == 3

    db.expire_all()
    assert db.get(Product, p.id).stock == 1
    cart = db.query(Order).filter(Order.user_id == customer.id, Order.status == "Cart").one()
    assert cart.items == []
    assert cart.total == 0


def test_my_orders_and_details(client, customer, other_customer, make_product, address):
    p = make_product()
    headers = fill_cart(client, customer, (p, 1))
    order_id = client.post("/customer/checkout/process",
                           json={"shipping_address_id": address.id}, headers=headers).json()["id"]

    orders = client.get("/customer/orders", headers=headers).json()
    assert [o["id"] for o in orders] == [order_id]

    assert client.get(f"/customer/orders/{order_id}", headers=headers).status_code == 200
    assert client.get(f"/customer/orders/{order_id}", headers=auth(other_customer)).status_code == 404
    assert client.get("/customer/orders", headers=auth(other_customer)).json() == []


def test_cancel_restores_stock(client, customer, other_customer, make_product, address, db):
    p = make_product(stock=5)
    headers = fill_cart(client, customer, (p, 2))
    order_id = client.post("/customer/checkout/process",
                           json={"shipping_address_id": address.id}, headers=headers).json()["id"]

    assert client.post(f"/customer/orders/{order_id}/cancel", headers=auth(other_customer)).status_code == 404

    res = client.post(f"/customer/orders/{order_id}/cancel", headers=headers)
    assert res.status_code == 200
    assert res.json()["status"] == "Cancelled"
    # Payment row is kept
    assert res.json()["payment"]["status"] == "Completed"

    db.expire_all()
    assert db.get(Product, p.id).stock == 5

    assert client.post(f"/customer/orders/{order_id}/cancel", headers=headers).status_code == 400


def test_shipped_order_cannot_be_cancelled(client, customer, make_product, address, db):
    p = make_product()
    headers = fill_cart(client, customer, (p, 1))
    order_id = client.post("/customer/checkout/process",
                           json={"shipping_address_id": address.id}, headers=headers).json()["id"]

    order = db.get(Order, order_id)
    order.status = "Shipped"
    db.commit()

    assert client.post(f"/customer/orders/{order_id}/cancel", headers=headers).status_code == 400
