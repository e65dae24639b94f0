import itertools
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from ai_client import get_text_generator
from auth import create_access_token, hash_password
from database import create_document, get_db
from main import app
from schemas import Event, Product, Profile, User

PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)

_emails = itertools.count(1)


def run_concurrently(*calls):
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = [pool.submit(call) for call in calls]
        return [f.result() for f in futures]


def hold_first_calls(func, parties=2):
    """Wrap `func` so its first `parties` calls meet at a barrier, then resume 0.1s apart."""
    barrier = threading.Barrier(parties, timeout=5)
    calls = itertools.count()

    def held(*args, **kwargs):
        if next(calls) < parties:
            time.sleep(0.1 * barrier.wait())
        return func(*args, **kwargs)
    return held


class FakeGenerator:
    def __init__(self, reply: str = "I would suggest $120.00 for this piece."):
        self.reply = reply
        self.calls = []
        self.error = None

    def generate(self, system: str, prompt: str, max_tokens: int = 300) -> str:
        self.calls.append({"system": system, "prompt": prompt, "max_tokens": max_tokens})
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def db():
    return mongomock.MongoClient().artizone_test


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def client(db, generator):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_text_generator] = lambda: generator
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(role="customer", first_name="Test", city=None, **sections):
        email = f"{role}{next(_emails)}@example.com"
        profile = Profile(first_name=first_name, last_name="User", location={"city": city})
        user = User(email=email, password_hash=PASSWORD_HASH, role=role, profile=profile, **sections)
        user_id = create_document(db, "user", user.to_document())
        token = create_access_token({"sub": user_id})
        return {"id": user_id, "email": email, "headers": {"Authorization": f"Bearer {token}"}}
    return _make


@pytest.fixture
def make_product(db):
    def _make(artisan_id, **overrides):
        data = {
            "artisan_id": artisan_id,
            "title": "Stoneware Mug",
            "description": "Wheel-thrown mug with a speckled glaze",
            "category": "pottery",
            "images": [{"url": "https://img.example.com/mug.jpg", "is_primary": True}],
            "price": 30.0,
            "materials": ["stoneware clay"],
        }
        data.update(overrides)
        return create_document(db, "product", Product(**data))
    return _make


@pytest.fixture
def make_event(db):
    def _make(organizer_id, **overrides):
        start = datetime.now(timezone.utc) + timedelta(days=30)
        data = {
            "title": "Glaze Workshop",
            "description": "An afternoon of glazing techniques",
            "type": "workshop",
            "organizer_id": organizer_id,
            "location": {"type": "physical", "address": {"city": "Portland"}},
            "schedule": {"start_date": start, "end_date": start + timedelta(hours=3)},
            "status": "published",
        }
        data.update(overrides)
        return create_document(db, "event", Event(**data))
    return _make
