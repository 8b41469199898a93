"""
test_auth_routes.py — Token types, account status and one-time token expiry.

Queries are answered by FakeSession; no database is opened.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from synprod.api.auth_routes import (
    FORGOT_PASSWORD_MESSAGE,
    create_access_token,
    create_refresh_token,
    pwd_context,
)
from synprod.api.deps import ALGORITHM, SECRET_KEY
from synprod.models.orm_models import Role, UserStatus


def _past():
    return datetime.now(timezone.utc) - timedelta(days=1)


@pytest.fixture
def active_user(make_user):
    return make_user("user-1", Role.MANAGER, first_name="Mo", last_name="Manager")


class TestRefresh:

    def test_access_token_rejected(self, client_as, active_user, fake_session):
        token = create_access_token(active_user)
        resp = client_as(session=fake_session(active_user)).post(
            "/api/auth/refresh", json={"refresh_token": token}
        )
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid token"

    def test_refresh_issues_new_pair(self, client_as, active_user, fake_session):
        token = create_refresh_token(active_user)
        resp = client_as(session=fake_session(active_user)).post(
            "/api/auth/refresh", json={"refresh_token": token}
        )
        assert resp.status_code == 200
        body = resp.json()
        claims = jwt.decode(body["access_token"], SECRET_KEY, algorithms=[ALGORITHM])
        assert claims["type"] == "access"
        assert claims["sub"] == "user-1"
        assert body["user"]["role"] == "MANAGER"

    def test_inactive_user_cannot_refresh(self, client_as, make_user, fake_session):
        user = make_user("user-2", Role.PRODUCTION, status=UserStatus.INACTIVE)
        resp = client_as(session=fake_session(user)).post(
            "/api/auth/refresh", json={"refresh_token": create_refresh_token(user)}
        )
        assert resp.status_code == 403


class TestLogin:

    def test_pending_user_cannot_log_in(self, client_as, make_user, fake_session):
        user = make_user(
            "user-3", Role.PRODUCTION,
            status=UserStatus.PENDING,
            hashed_password=pwd_context.hash("correct-horse"),
        )
        resp = client_as(session=fake_session(user)).post(
            "/api/auth/login", json={"email": user.email, "password": "correct-horse"}
        )
        assert resp.status_code == 403
        assert "not active" in resp.json()["detail"]

    def test_unknown_email_is_401(self, client_as, fake_session):
        resp = client_as(session=fake_session(None)).post(
            "/api/auth/login", json={"email": "nobody@synprod.local", "password": "whatever1"}
        )
        assert resp.status_code == 401


class TestOneTimeTokens:

    def test_expired_invite(self, client_as, make_user, fake_session):
        user = make_user(
            "user-4", Role.PRODUCTION,
            status=UserStatus.PENDING,
            invite_token="inv-token",
            invite_token_expiry=_past(),
        )
        resp = client_as(session=fake_session(user)).post(
            "/api/auth/accept-invite",
            json={"token": "inv-token", "first_name": "Ivy", "last_name": "New", "password": "longenough"},
        )
        assert resp.status_code == 400
        assert "expired" in resp.json()["detail"]
        assert user.status == UserStatus.PENDING

    def test_expired_reset(self, client_as, active_user, fake_session):
        active_user.reset_token = "reset-token"
        active_user.reset_token_expiry = _past()
        resp = client_as(session=fake_session(active_user)).post(
            "/api/auth/reset-password", json={"token": "reset-token", "new_password": "longenough"}
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Reset token has expired"

    def test_forgot_password_same_answer_for_unknown_email(self, client_as, fake_session):
        resp = client_as(session=fake_session(None)).post(
            "/api/auth/forgot-password", json={"email": "nobody@synprod.local"}
        )
        assert resp.status_code == 200
        assert resp.json()["message"] == FORGOT_PASSWORD_MESSAGE

    def test_invite_requires_admin(self, client_as, active_user):
        resp = client_as(active_user).post("/api/auth/invite", json={"email": "new@synprod.local"})
        assert resp.status_code == 403
