"""Registration, login, profile and the bearer-token gate."""

from datetime import timedelta

from jose import jwt

from config import settings
from models.users import User
import routes.users as user_routes
from utils.tokenJWT import create_access_token


def _register(client, **overrides):
    body = {"username": "carol", "email": "carol@example.com", "password": "hunter22"}
    body.update(overrides)
    return client.post("/api/users/register", json=body)


def test_register_returns_token_with_id_and_role(client, db):
    response = _register(client)

    assert response.status_code == 201
    payload = jwt.decode(response.json()["token"], settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    user = db.query(User).filter(User.email == "carol@example.com").one()
    assert payload["id"] == user.id
    assert payload["role"] == "user"
    assert "exp" in payload


def test_register_stores_hash_not_plaintext(client, db):
    _register(client)

    user = db.query(User).filter(User.email == "carol@example.com").one()
    assert user.password_hash != "hunter22"
    assert user.password_hash.startswith("$2")


def test_register_duplicate_email_conflicts(client, db):
    assert _register(client).status_code == 201

    response = _register(client, username="carol2", email="Carol@Example.com")

    assert response.status_code == 409
    assert response.json() == {"msg": "User already exists"}
    assert db.query(User).count() == 1


def test_register_can_request_admin_role(client, db):
    _register(client, role="admin")

    assert db.query(User).filter(User.email == "carol@example.com").one().role == "admin"


def test_register_unknown_role_falls_back_to_user(client, db):
    _register(client, role="superuser")

    assert db.query(User).filter(User.email == "carol@example.com").one().role == "user"


def test_register_validation_errors(client, db):
    assert _register(client, email="not-an-email").status_code == 400
    assert _register(client, password="12345").status_code == 400

    response = _register(client, username="   ")
    assert response.status_code == 400
    assert "errors" in response.json()
    assert db.query(User).count() == 0


def test_login_returns_token(client, user):
    response = client.post("/api/users/login", json={"email": "alice@example.com", "password": "secret123"})

    assert response.status_code == 200
    payload = jwt.decode(response.json()["token"], settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert payload["id"] == user.id


def test_login_failures_are_indistinguishable(client, user):
    wrong_password = client.post("/api/users/login", json={"email": "alice@example.com", "password": "nope-nope"})
    unknown_email = client.post("/api/users/login", json={"email": "ghost@example.com", "password": "secret123"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"msg": "Invalid credentials"}


def test_login_requires_password(client, user):
    response = client.post("/api/users/login", json={"email": "alice@example.com", "password": ""})

    assert response.status_code == 400


def test_profile(client, user, user_headers):
    response = client.get("/api/users/profile", headers=user_headers)

    assert response.status_code == 200
    assert response.json() == {"id": user.id, "username": "alice", "email": "alice@example.com", "role": "user"}


def test_profile_of_unknown_user_is_404(client):
    token = create_access_token({"id": 9999, "role": "user"})

    response = client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 404


def test_missing_token_is_unauthenticated(client):
    response = client.get("/api/users/profile")

    assert response.status_code == 401
    assert response.json() == {"msg": "No token, authorization denied"}


def test_expired_token_is_invalid(client, user):
    token = create_access_token({"id": user.id, "role": "user"}, expires_delta=timedelta(seconds=-30))

    response = client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json() == {"msg": "Token is not valid"}


def test_tampered_token_is_invalid(client, user):
    token = jwt.encode({"id": user.id, "role": "admin"}, "some-other-secret", algorithm="HS256")

    response = client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json() == {"msg": "Token is not valid"}


def test_email_registered_concurrently_conflicts(client, db, user, monkeypatch):
    monkeypatch.setattr(user_routes, "_find_user_by_email", lambda *args: None)

    response = _register(client, email=user.email)

    assert response.status_code == 409
    assert response.json() == {"msg": "User already exists"}
    assert db.query(User).filter(User.email == user.email).count() == 1
