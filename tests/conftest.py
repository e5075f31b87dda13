import re
import uuid

import pytest
from fastapi.testclient import TestClient

from pizza_service.core.config import Settings
from pizza_service.main import create_app

ADMIN_EMAIL = "admin@jwt.test"
ADMIN_PASSWORD = "toomanysecrets"

TOKEN_SHAPE = re.compile(r"^[a-zA-Z0-9\-_]*\.[a-zA-Z0-9\-_]*\.[a-zA-Z0-9\-_]*$")


def random_name() -> str:
    return uuid.uuid4().hex[:10]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def expect_valid_jwt(token) -> None:
    assert isinstance(token, str)
    assert TOKEN_SHAPE.match(token)


@pytest.fixture(scope="session")
def settings(tmp_path_factory) -> Settings:
    db_path = tmp_path_factory.mktemp("db") / "pizza.db"
    return Settings(
        _env_file=None,
        env_mode="development",
        database_url=f"sqlite+aiosqlite:///{db_path}",
        jwt_secret="test-session-secret",
        factory_secret="test-factory-secret",
        default_admin_name="test admin",
        default_admin_email=ADMIN_EMAIL,
        default_admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture(scope="session")
def app(settings):
    return create_app(settings)


@pytest.fixture(scope="session")
def client(app):
    # Entering the client runs the lifespan: tables and the default admin are created
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register a fresh diner; returns ``(user, token, password)``."""

    def _register(name: str = None, password: str = "a"):
        name = name or f"diner {random_name()}"
        email = f"{random_name()}@test.com"
        response = client.post("/api/auth", json={"name": name, "email": email, "password": password})
        assert response.status_code == 200, response.text
        body = response.json()
        return body["user"], body["token"], password

    return _register


@pytest.fixture
def admin_token(client) -> str:
    response = client.put("/api/auth", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()["token"]


@pytest.fixture
def franchise_setup(client, register, admin_token):
    """A franchise run by a fresh franchisee, with one store and one menu item."""
    franchisee, franchisee_token, _ = register()

    response = client.post(
        "/api/franchise",
        json={"name": f"pizza {random_name()}", "admins": [{"email": franchisee["email"]}]},
        headers=auth_header(admin_token),
    )
    assert response.status_code == 200, response.text
    franchise = response.json()

    response = client.post(
        f"/api/franchise/{franchise['id']}/store",
        json={"name": "SLC", "address": "1 Main St", "phone": "555-0100"},
        headers=auth_header(franchisee_token),
    )
    assert response.status_code == 200, response.text
    store = response.json()

    response = client.put(
        "/api/order/menu",
        json={"title": f"Veggie {random_name()}", "description": "A garden of delight",
              "image": "pizza1.png", "price": 0.0038},
        headers=auth_header(admin_token),
    )
    assert response.status_code == 200, response.text
    menu_item = response.json()[-1]

    return {
        "franchisee": franchisee,
        "franchisee_token": franchisee_token,
        "franchise": franchise,
        "store": store,
        "menu_item": menu_item,
    }
