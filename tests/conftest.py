"""
Configuración de pytest para tests
"""
import os
import tempfile

# Antes de importar la app: la configuración se lee al importar
os.environ.setdefault("MEDIA_DIR", tempfile.mkdtemp(prefix="petmanager-media-"))
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-secret")

import httpx
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from petmanager.db import get_db
from petmanager.main import app
from petmanager.client.backend import BackendClient

TEST_DB_NAME = "petmanager_test"
BASE_URL = "http://test"


@pytest.fixture(autouse=True)
def disable_rate_limiting():
    """Deshabilita rate limiting para todos los tests"""
    limiter = app.state.limiter
    app.state.limiter = None
    yield
    app.state.limiter = limiter


@pytest.fixture
def test_db():
    """Base de datos en memoria, nueva en cada test"""
    db = AsyncMongoMockClient()[TEST_DB_NAME]

    async def _get_db():
        return db

    app.dependency_overrides[get_db] = _get_db
    yield db
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def client(test_db):
    """Cliente de test de FastAPI"""
    return TestClient(app)


@pytest.fixture
def test_user_data():
    return {"email": "owner@example.com", "password": "testpass123"}


@pytest.fixture
def auth_headers(client, test_user_data):
    """Registra un usuario y devuelve su cabecera Authorization"""
    return signup_and_login(client, test_user_data["email"], test_user_data["password"])


def signup_and_login(client, email, password):
    client.post("/auth/signup", json={"email": email, "password": password})
    resp = client.post("/auth/token", json={"email": email, "password": password})
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
async def backend(test_db):
    """BackendClient conectado a la app por ASGI, sin red"""
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE_URL)
    client = BackendClient(base_url=BASE_URL, http=http)
    yield client
    await client.aclose()
