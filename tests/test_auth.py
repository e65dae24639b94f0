from datetime import timedelta

from auth import create_access_token
from tests.conftest import PASSWORD


def register(client, email="new.artisan@example.com", role="artisan", password="secret123"):
    return client.post("/api/auth/register", json={
        "email": email,
        "password": password,
        "role": role,
        "first_name": "Nova",
        "last_name": "Clay",
    })


def test_register_returns_token_and_hides_password(client, db):
    res = register(client)
    assert res.status_code == 201
    body = res.json()
    assert body["token"]
    assert body["user"]["role"] == "artisan"
    assert "password_hash" not in body["user"]
    assert "artisan_profile" in body["user"]
    stored = db["user"].find_one({"email": "new.artisan@example.com"})
    assert stored["password_hash"] != "secret123"
    assert "vendor_profile" not in stored


def test_register_duplicate_email(client):
    register(client)
    res = register(client, email="NEW.artisan@example.com")
    assert res.status_code == 400
    assert res.json()["message"] == "User already exists"


def test_register_validates_body(client):
    res = register(client, role="admin", password="123")
    assert res.status_code == 400
    fields = {e["field"] for e in res.json()["errors"]}
    assert {"role", "password"} <= fields


def test_login_and_me(client, make_user):
    user = make_user("vendor")
    res = client.post("/api/auth/login", json={"email": user["email"], "password": PASSWORD})
    assert res.status_code == 200
    token = res.json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["id"] == user["id"]
    assert me.json()["email"] == user["email"]


def test_login_wrong_password(client, make_user):
    user = make_user()
    res = client.post("/api/auth/login", json={"email": user["email"], "password": "nope-nope"})
    assert res.status_code == 400
    assert res.json() == {"message": "Invalid credentials"}


def test_missing_token_is_unauthenticated(client):
    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert "message" in res.json()


def test_garbage_and_expired_tokens(client, make_user):
    user = make_user()
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401
    expired = create_access_token({"sub": user["id"]}, expires_delta=timedelta(minutes=-5))
    res = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert res.status_code == 401


def test_inactive_user_is_rejected(client, db, make_user):
    user = make_user()
    db["user"].update_one({"email": user["email"]}, {"$set": {"is_active": False}})
    assert client.get("/api/auth/me", headers=user["headers"]).status_code == 401
