from conftest import auth

from models.log import Log
from models.users import User

ADDRESS = {
    "address_line1": "Elm St 5",
    "address_line2": "Apt 2",
    "city": "Austin",
    "state": "TX",
    "country": "USA",
    "postal_code": "73301",
}


# ---- reviews ----

def test_create_and_list_reviews(client, customer, make_product, db):
    p = make_product(name="Opal Ring")
    headers = auth(customer)

    res = client.post("/customer/reviews", json={"product_id": p.id, "rating": 5, "comment": "Stunning"}, headers=headers)
    assert res.status_code == 201
    assert res.json()["product_name"] == "Opal Ring"
    assert db.query(Log).filter(Log.action == "REVIEW_CREATE").count() == 1

    mine = client.get("/customer/reviews", headers=headers).json()
    assert [r["comment"] for r in mine] == ["Stunning"]

    public = client.get(f"/api/products/{p.id}/reviews").json()
    assert public[0]["user_name"] == "Carla Customer"


def test_review_validation(client, customer, make_product):
    p = make_product()
    headers = auth(customer)
    assert client.post("/customer/reviews", json={"product_id": p.id, "rating": 6}, headers=headers).status_code == 422
    assert client.post("/customer/reviews", json={"product_id": p.id, "rating": 0}, headers=headers).status_code == 422
    assert client.post("/customer/reviews", json={"product_id": 999, "rating": 3}, headers=headers).status_code == 404


def test_delete_review_owner_only(client, customer, other_customer, make_product):
    p = make_product()
    review_id = client.post("/customer/reviews", json={"product_id": p.id, "rating": 4},
                            headers=auth(customer)).json()["id"]

    assert client.delete(f"/customer/reviews/{review_id}", headers=auth(other_customer)).status_code == 404
    assert client.delete(f"/customer/reviews/{review_id}", headers=auth(customer)).status_code == 200
    assert client.get("/customer/reviews", headers=auth(customer)).json() == []


# ---- addresses ----

def test_address_crud(client, customer, other_customer):
    headers = auth(customer)
    res = client.post("/customer/addresses", json=ADDRESS, headers=headers)
    assert res.status_code == 201
    address_id = res.json()["id"]

    assert [a["city"] for a in client.get("/customer/addresses", headers=headers).json()] == ["Austin"]

    updated = dict(ADDRESS, city="Dallas")
    assert client.put(f"/customer/addresses/{address_id}", json=updated, headers=headers).json()["city"] == "Dallas"

    assert client.put(f"/customer/addresses/{address_id}", json=updated, headers=auth(other_customer)).status_code == 404
    assert client.delete(f"/customer/addresses/{address_id}", headers=auth(other_customer)).status_code == 404

    assert client.delete(f"/customer/addresses/{address_id}", headers=headers).status_code == 200
    assert client.get("/customer/addresses", headers=headers).json() == []


def test_address_requires_fields(client, customer):
    bad = dict(ADDRESS, city="")
    assert client.post("/customer/addresses", json=bad, headers=auth(customer)).status_code == 422


def test_shipping_address_resource_api(client, customer, other_customer, admin):
    headers = auth(customer)
    address_id = client.post("/api/shipping-addresses", json=ADDRESS, headers=headers).json()["id"]

    assert client.get(f"/api/shipping-addresses/{address_id}", headers=headers).status_code == 200
    assert client.get(f"/api/shipping-addresses/{address_id}", headers=auth(other_customer)).status_code == 404
    assert client.get(f"/api/shipping-addresses/{address_id}", headers=auth(admin)).status_code == 200

    assert len(client.get(f"/api/shipping-addresses/user/{customer.id}", headers=headers).json()) == 1
    assert client.get(f"/api/shipping-addresses/user/{customer.id}", headers=auth(other_customer)).status_code == 403
    assert len(client.get(f"/api/shipping-addresses/user/{customer.id}", headers=auth(admin)).json()) == 1

    assert client.delete(f"/api/shipping-addresses/{address_id}", headers=headers).status_code == 204


# ---- settings ----

def test_profile_and_password(client, customer, other_customer):
    headers = auth(customer)
    assert client.get("/customer/settings", headers=headers).json()["email"] == "customer@customer.com"

    res = client.put("/customer/settings/profile", json={"name": "Carla C", "email": "other@customer.com"}, headers=headers)
    assert res.status_code == 400

    res = client.put("/customer/settings/profile", json={"name": "Carla C", "email": "carla@customer.com"}, headers=headers)
    assert res.json()["email"] == "carla@customer.com"

    assert client.put("/customer/settings/security", json={"current_password": "", "new_password": "x"},
                      headers=headers).status_code == 400
    assert client.put("/customer/settings/security", json={"current_password": "wrong", "new_password": "newpass1"},
                      headers=headers).status_code == 400
    assert client.put("/customer/settings/security", json={"current_password": "secret123", "new_password": "newpass1"},
                      headers=headers).status_code == 200

    login = client.post("/auth/login", json={"email": "carla@customer.com", "password": "newpass1"})
    assert login.status_code == 200


def test_delete_account(client, customer, make_product, db):
    p = make_product()
    headers = auth(customer)
    client.post("/customer/addresses", json=ADDRESS, headers=headers)
    client.post("/customer/reviews", json={"product_id": p.id, "rating": 4}, headers=headers)
    client.post("/customer/cart/add", json={"product_id": p.id}, headers=headers)

    assert client.delete("/customer/settings", headers=headers).status_code == 200
    db.expire_all()
    assert db.query(User).filter(User.email == "customer@customer.com").first() is None
    assert client.get("/auth/me", headers=headers).status_code == 401
