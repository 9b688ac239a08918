import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import JsonStore
from main import create_app

ADMIN_KEY = "devkey"


@pytest.fixture
def settings(tmp_path):
    public_dir = tmp_path / "public"
    public_dir.mkdir()
    (public_dir / "index.html").write_text("<html><body>shop</body></html>", encoding="utf-8")
    (public_dir / "app.js").write_text("console.log('shop');", encoding="utf-8")
    return Settings(
        DATA_DIR=tmp_path / "data",
        PUBLIC_DIR=public_dir,
        ADMIN_API_KEY=ADMIN_KEY,
        SEED_DEMO=False,
    )


@pytest.fixture
def store(settings):
    return JsonStore(settings.DATA_DIR)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


def make_product(store, **overrides):
    record = {
        "id": overrides.pop("id", "p1"),
        "name": "Organic Tomatoes",
        "price": 3.5,
        "unit": "lb",
        "stock": 100,
        "imageUrl": "",
        "description": "",
        "category": "Vegetables",
        "createdAt": "2024-01-01T00:00:00.000Z",
    }
    record.update(overrides)
    store.append("products", record)
    return record
