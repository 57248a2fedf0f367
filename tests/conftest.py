# Shared fixtures: fresh storage per test, a seeded API client and an auth helper.
import os
from datetime import datetime, timedelta, timezone
from typing import Dict

import pytest

os.environ["SEED_DEMO_DATA"] = "false"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"

from fastapi.testclient import TestClient

from database import Storage
from main import build_app
from schemas import Product
from seed import seed_database


@pytest.fixture
def storage() -> Storage:
    return Storage()


@pytest.fixture
def seeded_storage(storage: Storage) -> Storage:
    seed_database(storage)
    return storage


@pytest.fixture
def client(seeded_storage: Storage) -> TestClient:
    app = build_app(seeded_storage, seed=False)
    with TestClient(app) as test_client:
        yield test_client


def register(client: TestClient, username: str = "khachhang") -> Dict[str, str]:
    """Register a customer and return bearer headers for it."""
    resp = client.post("/auth/register", json={
        "username": username,
        "email": f"{username}@footballshop.vn",
        "full_name": "Nguyễn Văn An",
        "password": "matkhau123",
    })
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def auth_headers(client: TestClient) -> Dict[str, str]:
    return register(client)


@pytest.fixture
def admin_headers(client: TestClient) -> Dict[str, str]:
    resp = client.post("/auth/login", json={"username": "admin", "password": "admin123"})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_product(id: int, price: int, discount_price=None, category_id: int = 1, **extra) -> Product:
    fields = {
        "name": f"Sản phẩm {id}",
        "slug": f"san-pham-{id}",
        "description": None,
        "image_url": f"https://img.example.com/{id}.jpg",
        "created_at": BASE_TIME + timedelta(days=id),
    }
    fields.update(extra)
    return Product(id=id, price=price, discount_price=discount_price, category_id=category_id, **fields)
