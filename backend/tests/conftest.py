"""Shared pytest fixtures: an app on a throwaway SQLite file, users and a catalog."""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from models.product import Product
from models.users import User
from utils.hashing import get_password_hash
from utils.tokenJWT import token_for_user


# Hashing is slow on purpose; hash once for every fixture user
PASSWORD = "secret123"
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture
def app(tmp_path):
    """Application bound to a fresh database file."""
    return create_app(f"sqlite:///{tmp_path / 'shop.db'}")


@pytest.fixture
def client(app):
    """Test client; entering it runs the lifespan (engine + tables)."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app, client):
    """Session on the same database the app uses."""
    session = app.state.SessionLocal()
    yield session
    session.close()


def _make_user(db, username, email, role="user"):
    user = User(username=username, email=email, password_hash=PASSWORD_HASH, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db):
    return _make_user(db, "alice", "alice@example.com")


@pytest.fixture
def other_user(db):
    return _make_user(db, "bob", "bob@example.com")


@pytest.fixture
def admin(db):
    return _make_user(db, "root", "admin@example.com", role="admin")


@pytest.fixture
def user_headers(user):
    return {"Authorization": f"Bearer {token_for_user(user)}"}


@pytest.fixture
def other_headers(other_user):
    return {"Authorization": f"Bearer {token_for_user(other_user)}"}


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {token_for_user(admin)}"}


@pytest.fixture
def product_a(db):
    """$10 product with 10 in stock."""
    product = Product(name="Mug", description="Stoneware mug", price=10.0, stock=10, category="kitchen")
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def product_b(db):
    """$5 product with 5 in stock."""
    product = Product(name="Coaster", description=None, price=5.0, stock=5, category="home")
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def add_to_cart(client):
    """Helper posting to /api/carts/add and asserting success."""
    def _add(headers, product_id, quantity):
        response = client.post(
            "/api/carts/add", json={"product_id": product_id, "quantity": quantity}, headers=headers
        )
        assert response.status_code == 200, response.text
        return response
    return _add
