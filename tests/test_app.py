from fastapi.testclient import TestClient

import main
from auth import verify_password
from seed import SAMPLE_PASSWORD, seed_database


def test_root(client):
    assert client.get("/").json() == {"message": "Artizone API is running"}


def test_database_check_lists_collections(client, make_user):
    make_user()
    body = client.get("/test").json()
    assert body["connection_status"] == "Connected"
    assert "user" in body["collections"]


def test_unknown_route_uses_error_envelope(client):
    res = client.get("/api/nowhere")
    assert res.status_code == 404
    assert res.json() == {"message": "Not Found"}


def test_seed_populates_a_fresh_marketplace(db, make_user):
    make_user(first_name="Stale")
    summary = seed_database(db)
    assert summary == {"users": 7, "products": 3, "events": 2}
    assert db["user"].count_documents({"profile.first_name": "Stale"}) == 0
    assert db["user"].count_documents({"role": "artisan"}) == 3

    sarah = db["user"].find_one({"email": "sarah.chen@example.com"})
    assert verify_password(SAMPLE_PASSWORD, sarah["password_hash"])
    assert "customer_profile" not in sarah

    artisan_ids = {str(u["_id"]) for u in db["user"].find({"role": "artisan"})}
    assert all(p["artisan_id"] in artisan_ids for p in db["product"].find())
    assert all(e["organizer_id"] in artisan_ids for e in db["event"].find())


def test_lifespan_creates_indexes(db, monkeypatch):
    monkeypatch.setattr(main, "get_db", lambda: db)
    with TestClient(main.app) as client:
        assert client.get("/").status_code == 200
    unique = [name for name, info in db["user"].index_information().items() if info.get("unique")]
    assert unique == ["email_1"]
    assert "order_number_1" in db["order"].index_information()
