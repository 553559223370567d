from datetime import timedelta

import pytest
from jose import jwt
from sqlmodel import Session

from app.config import settings
from app.errors import Forbidden
from app.models.user import Role, User
from app.routes import auth as auth_routes
from app.utils.token import SessionIdentity, create_access_token, require_role


def test_signup_returns_session_token(client):
    res = client.post("/api/auth/signup", json={"email": "Alice@Example.com", "password": "pw1", "name": "Alice"})
    assert res.status_code == 200
    token = res.json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    user = me.json()["user"]
    assert user["email"] == "alice@example.com"
    assert user["role"] == "user"
    assert "password" not in user


def test_duplicate_signup_is_rejected(client):
    client.post("/api/auth/signup", json={"email": "bob@example.com", "password": "pw1"})
    res = client.post("/api/auth/signup", json={"email": "bob@example.com", "password": "other"})
    assert res.status_code == 409
    assert res.json()["error"] == "email_taken"
    assert "token" not in res.json()


def test_signup_validation(client):
    res = client.post("/api/auth/signup", json={"email": "not-an-email", "password": "pw1"})
    assert res.status_code == 400
    assert res.json()["error"] == "validation_error"

    res = client.post("/api/auth/signup", json={"email": "c@example.com", "password": ""})
    assert res.status_code == 400


def test_login_errors_do_not_reveal_which_part_was_wrong(client, make_user):
    make_user(email="carol@example.com", password="right")

    wrong_password = client.post("/api/auth/login", json={"email": "carol@example.com", "password": "wrong"})
    unknown_email = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "right"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()


def test_login_success(client, make_user):
    user = make_user(email="dave@example.com", password="secret")
    res = client.post("/api/auth/login", json={"email": "DAVE@example.com", "password": "secret"})
    assert res.status_code == 200

    claims = jwt.decode(res.json()["token"], settings.secret_key, algorithms=[settings.algorithm])
    assert claims["id"] == user.id
    assert claims["role"] == "user"
    assert claims["email"] == "dave@example.com"


def test_disabled_account_cannot_log_in(client, session, make_user):
    user = make_user(email="eve@example.com", password="pw")
    user.can_login = False
    session.add(user)
    session.commit()

    res = client.post("/api/auth/login", json={"email": "eve@example.com", "password": "pw"})
    assert res.status_code == 403


def test_me_requires_valid_token(client, make_user):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401

    user = make_user()
    expired = create_access_token(user, expires_delta=timedelta(seconds=-10))
    res = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert res.status_code == 401

    forged = jwt.encode({"sub": str(user.id), "role": "admin", "email": user.email}, "other-key", algorithm="HS256")
    res = client.get("/api/auth/me", headers={"Authorization": f"Bearer {forged}"})
    assert res.status_code == 401


def test_create_admin_disabled_without_bootstrap_key(client, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_BOOTSTRAP_KEY", None)
    res = client.post("/api/auth/create-admin", json={"email": "root@example.com", "password": "pw"})
    assert res.status_code == 403
    assert res.json()["error"] == "bootstrap_disabled"


def test_create_admin_with_bootstrap_key(client, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_BOOTSTRAP_KEY", "let-me-in")

    res = client.post(
        "/api/auth/create-admin",
        json={"email": "root@example.com", "password": "pw"},
        headers={"X-Admin-Bootstrap-Key": "nope"},
    )
    assert res.status_code == 403

    res = client.post(
        "/api/auth/create-admin",
        json={"email": "root@example.com", "password": "pw"},
        headers={"X-Admin-Bootstrap-Key": "let-me-in"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["user"]["role"] == Role.admin.value

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.json()["user"]["role"] == "admin"


def test_concurrent_signup_for_same_email_is_conflict(client, engine, monkeypatch):
    real_hash = auth_routes.hash_password

    def hash_while_another_signup_lands(password):
        # the competing request commits after our duplicate check ran
        with Session(engine) as other:
            other.add(User(email="race@example.com", password=real_hash("x")))
            other.commit()
        return real_hash(password)

    monkeypatch.setattr(auth_routes, "hash_password", hash_while_another_signup_lands)

    res = client.post("/api/auth/signup", json={"email": "race@example.com", "password": "pw1"})
    assert res.status_code == 409
    assert res.json()["error"] == "email_taken"


def test_require_role(make_user):
    admin = make_user(role=Role.admin)
    require_role(admin, Role.admin)
    require_role(SessionIdentity(user_id=1, role=Role.user, email="u@example.com"), Role.user)

    with pytest.raises(Forbidden) as exc:
        require_role(make_user(), Role.admin)
    assert exc.value.status_code == 403
    assert exc.value.detail == "admin access required"
