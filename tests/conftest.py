import pytest
from fastapi.testclient import TestClient

from storespark.auth import AuthService
from storespark.config import Settings
from storespark.database import MemoryDatabase
from storespark.main import create_app
from storespark.security import Security
from storespark.seed import seed_demo_data


@pytest.fixture
def settings():
    return Settings(secret_key="test-secret", bcrypt_rounds=4, seed_demo_data=True, mongodb_uri=None)


@pytest.fixture
def security(settings):
    return Security(settings)


@pytest.fixture
def db(security):
    database = MemoryDatabase()
    seed_demo_data(database, security)
    return database


@pytest.fixture
def auth(db, security):
    return AuthService(db, security)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


def login(client, email, password):
    res = client.post("/sessions", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, "admin@example.com", "AdminPass1!")


@pytest.fixture
def user_headers(client):
    return login(client, "user@example.com", "UserPass1!")


@pytest.fixture
def owner_headers(client):
    return login(client, "owner@store.com", "OwnerPass1!")
