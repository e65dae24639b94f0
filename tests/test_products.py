import pytest
from bson import ObjectId

from domain import summarize_ratings
from routers import products as products_router
from tests.conftest import hold_first_calls, run_concurrently

NEW_PRODUCT = {
    "title": "Walnut Serving Board",
    "description": "Hand-carved walnut board finished with food-safe oil",
    "category": "woodwork",
    "price": 64.5,
    "materials": ["walnut", "mineral oil"],
    "images": [{"url": "https://img.example.com/board.jpg", "is_primary": True}],
}


@pytest.fixture
def artisan(make_user):
    return make_user("artisan", first_name="Ada")


def test_create_product_stores_price(client, db, artisan):
    res = client.post("/api/products", json=NEW_PRODUCT, headers=artisan["headers"])
    assert res.status_code == 201
    body = res.json()
    assert body["price"] == 64.5
    assert body["artisan_id"] == artisan["id"]
    assert body["artisan"]["profile"]["first_name"] == "Ada"
    assert body["ratings"]["count"] == 0
    stored = db["product"].find_one({"_id": ObjectId(body["id"])})
    assert stored["price"] == 64.5
    assert stored["category"] == "woodwork"


def test_create_product_rejects_unknown_category(client, db, artisan):
    res = client.post("/api/products", json={**NEW_PRODUCT, "category": "electronics"}, headers=artisan["headers"])
    assert res.status_code == 400
    assert any(e["field"] == "category" for e in res.json()["errors"])
    assert db["product"].count_documents({}) == 0


@pytest.mark.parametrize("override", [
    {"price": -1},
    {"images": []},
    {"title": "   "},
    {"description": ""},
])
def test_create_product_validation(client, db, artisan, override):
    res = client.post("/api/products", json={**NEW_PRODUCT, **override}, headers=artisan["headers"])
    assert res.status_code == 400
    assert db["product"].count_documents({}) == 0


def test_missing_title_is_rejected_before_write(client, db, artisan):
    payload = {k: v for k, v in NEW_PRODUCT.items() if k != "title"}
    res = client.post("/api/products", json=payload, headers=artisan["headers"])
    assert res.status_code == 400
    assert db["product"].count_documents({}) == 0


def test_customer_cannot_create_product(client, db, make_user):
    customer = make_user("customer")
    res = client.post("/api/products", json=NEW_PRODUCT, headers=customer["headers"])
    assert res.status_code == 403
    assert db["product"].count_documents({}) == 0


def test_create_requires_token(client):
    assert client.post("/api/products", json=NEW_PRODUCT).status_code == 401


def test_list_filters_and_pagination(client, artisan, make_product):
    make_product(artisan["id"], title="Blue Vase", price=40, colors=["blue"])
    make_product(artisan["id"], title="Red Vase", price=140, colors=["red"])
    make_product(artisan["id"], title="Silver Ring", category="jewelry", price=90, materials=["silver"])
    make_product(artisan["id"], title="Hidden Bowl", is_active=False)

    res = client.get("/api/products", params={"category": "pottery"})
    assert res.json()["total"] == 2

    res = client.get("/api/products", params={"minPrice": 50, "maxPrice": 100})
    assert [p["title"] for p in res.json()["products"]] == ["Silver Ring"]

    res = client.get("/api/products", params={"colors": "red,green"})
    assert [p["title"] for p in res.json()["products"]] == ["Red Vase"]

    res = client.get("/api/products", params={"search": "vase", "sortBy": "price", "sortOrder": "asc"})
    assert [p["title"] for p in res.json()["products"]] == ["Blue Vase", "Red Vase"]

    res = client.get("/api/products", params={"limit": 2, "page": 2, "sortBy": "price", "sortOrder": "asc"})
    body = res.json()
    assert body["total"] == 3
    assert body["totalPages"] == 2
    assert body["currentPage"] == 2
    assert [p["title"] for p in body["products"]] == ["Red Vase"]


def test_get_product_counts_views(client, db, artisan, make_product):
    product_id = make_product(artisan["id"])
    client.get(f"/api/products/{product_id}")
    client.get(f"/api/products/{product_id}")
    assert db["product"].find_one({"_id": ObjectId(product_id)})["views"] == 2


def test_get_product_not_found_and_bad_id(client):
    assert client.get(f"/api/products/{ObjectId()}").status_code == 404
    assert client.get("/api/products/not-an-id").status_code == 400


def test_featured_products(client, artisan, make_product):
    make_product(artisan["id"], title="Star Piece", is_featured=True)
    make_product(artisan["id"], title="Plain Piece")
    res = client.get("/api/products/featured")
    assert res.status_code == 200
    assert [p["title"] for p in res.json()] == ["Star Piece"]


def test_update_and_delete_are_owner_only(client, db, artisan, make_user, make_product):
    product_id = make_product(artisan["id"])
    other = make_user("artisan")

    assert client.put(f"/api/products/{product_id}", json={"price": 1}, headers=other["headers"]).status_code == 403
    assert client.delete(f"/api/products/{product_id}", headers=other["headers"]).status_code == 403

    res = client.put(f"/api/products/{product_id}", json={"price": 35, "tags": ["gift"]}, headers=artisan["headers"])
    assert res.status_code == 200
    assert res.json()["price"] == 35
    assert res.json()["tags"] == ["gift"]

    res = client.delete(f"/api/products/{product_id}", headers=artisan["headers"])
    assert res.status_code == 200
    assert db["product"].count_documents({}) == 0


def test_review_recomputes_ratings_and_rejects_duplicates(client, db, artisan, make_user, make_product):
    product_id = make_product(artisan["id"])
    ratings = [5, 4, 2]
    for rating in ratings:
        reviewer = make_user("customer")
        res = client.post(f"/api/products/{product_id}/reviews", json={"rating": rating, "comment": "Lovely"},
                          headers=reviewer["headers"])
        assert res.status_code == 200

    body = res.json()
    assert body["ratings"]["count"] == 3
    assert body["ratings"]["average"] == sum(ratings) / 3
    assert sum(body["ratings"]["breakdown"].values()) == 3
    assert body["ratings"]["breakdown"]["two"] == 1
    assert body["reviews"][-1]["user"]["profile"]["first_name"] == "Test"

    again = client.post(f"/api/products/{product_id}/reviews", json={"rating": 1}, headers=reviewer["headers"])
    assert again.status_code == 400
    assert again.json()["message"] == "You have already reviewed this product"
    assert db["product"].find_one({"_id": ObjectId(product_id)})["ratings"]["count"] == 3


def test_review_rating_must_be_in_range(client, artisan, make_user, make_product):
    product_id = make_product(artisan["id"])
    reviewer = make_user()
    res = client.post(f"/api/products/{product_id}/reviews", json={"rating": 6}, headers=reviewer["headers"])
    assert res.status_code == 400


def test_favorite_toggle_round_trip(client, artisan, make_user, make_product):
    product_id = make_product(artisan["id"])
    fan = make_user()

    first = client.post(f"/api/products/{product_id}/favorite", headers=fan["headers"]).json()
    assert first == {"is_favorited": True, "favorites_count": 1}

    second = client.post(f"/api/products/{product_id}/favorite", headers=fan["headers"]).json()
    assert second == {"is_favorited": False, "favorites_count": 0}


def test_overlapping_reviews_are_all_kept(client, db, artisan, make_user, make_product, monkeypatch):
    product_id = make_product(artisan["id"])
    happy, unhappy = make_user(), make_user()
    monkeypatch.setattr(products_router, "summarize_ratings", hold_first_calls(summarize_ratings))

    def review(user, rating):
        return lambda: client.post(f"/api/products/{product_id}/reviews", json={"rating": rating},
                                   headers=user["headers"]).status_code

    assert run_concurrently(review(happy, 5), review(unhappy, 1)) == [200, 200]
    stored = db["product"].find_one({"_id": ObjectId(product_id)})
    assert sorted(r["rating"] for r in stored["reviews"]) == [1, 5]
    assert stored["ratings"]["count"] == 2
    assert stored["ratings"]["average"] == 3
