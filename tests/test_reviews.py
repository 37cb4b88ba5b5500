# tests/test_reviews.py

"""
Tests for product reviews.
"""


def test_customer_reviews_own_order_once(client, customer, seller, seed, auth_headers):
    product = seed.product(seller)
    order = seed.order(customer, product)
    payload = {
        "order_id": str(order["_id"]),
        "product_id": str(product["_id"]),
        "rating": 5,
        "comment": "Great",
    }
    headers = auth_headers(customer, "customer")

    response = client.post("/api/reviews", json=payload, headers=headers)
    assert response.status_code == 201
    assert response.json()["review"]["customer_id"] == str(customer["_id"])

    response = client.post("/api/reviews", json=payload, headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Review already exists for this order"


def test_cannot_review_someone_elses_order(client, customer, seller, seed, auth_headers):
    product = seed.product(seller)
    order = seed.order(seed.account("customer"), product)

    response = client.post(
        "/api/reviews",
        json={"order_id": str(order["_id"]), "product_id": str(product["_id"]), "rating": 1},
        headers=auth_headers(customer, "customer"),
    )

    assert response.status_code == 403


def test_product_must_match_order(client, customer, seller, seed, auth_headers):
    ordered = seed.product(seller)
    other = seed.product(seller)
    order = seed.order(customer, ordered)

    response = client.post(
        "/api/reviews",
        json={"order_id": str(order["_id"]), "product_id": str(other["_id"]), "rating": 3},
        headers=auth_headers(customer, "customer"),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Product does not match the order"


def test_rating_bounds(client, customer, seller, seed, auth_headers):
    product = seed.product(seller)
    order = seed.order(customer, product)

    response = client.post(
        "/api/reviews",
        json={"order_id": str(order["_id"]), "product_id": str(product["_id"]), "rating": 6},
        headers=auth_headers(customer, "customer"),
    )

    assert response.status_code == 400


def test_reviews_are_public_and_filterable(client, customer, seller, seed, auth_headers):
    product = seed.product(seller)
    seed.review(seed.order(customer, product))
    seed.review(seed.order(seed.account("customer"), product))

    body = client.get("/api/reviews", params={"product_id": str(product["_id"])}).json()
    assert body["totalReviews"] == 2

    body = client.get(
        "/api/reviews",
        params={"my_reviews": "true"},
        headers=auth_headers(customer, "customer"),
    ).json()
    assert body["totalReviews"] == 1


def test_author_edits_and_deletes_review(client, customer, seller, seed, auth_headers):
    review = seed.review(seed.order(customer, seed.product(seller)))
    headers = auth_headers(customer, "customer")

    response = client.put(f"/api/reviews/{review['_id']}", json={"rating": 2}, headers=headers)
    assert response.status_code == 200
    assert response.json()["review"]["rating"] == 2

    assert client.delete(f"/api/reviews/{review['_id']}", headers=headers).status_code == 200
    assert seed.count("reviews") == 0


def test_other_customer_cannot_edit_review(client, customer, seller, seed, auth_headers):
    review = seed.review(seed.order(seed.account("customer"), seed.product(seller)))

    response = client.put(
        f"/api/reviews/{review['_id']}",
        json={"comment": "hijacked"},
        headers=auth_headers(customer, "customer"),
    )

    assert response.status_code == 403
    assert response.json()["message"] == "Not authorized to update this review"
