from __future__ import annotations

import pytest
from jose import jwt

from universe.auth.roles import Role, authorize
from universe.auth.session import InvalidSessionToken, SessionUser, decode_session_token
from universe.core.config import settings


def _token(**claims) -> str:
    return jwt.encode(claims, settings.BACKEND_JWT_SECRET, algorithm=settings.JWT_ALG)


def test_authorize_predicate(student_user, club_admin_user, super_admin_user):
    assert authorize(None) is False
    assert authorize(student_user) is True
    assert authorize(student_user, Role.CLUB_ADMIN) is False
    assert authorize(club_admin_user, Role.CLUB_ADMIN) is True
    assert authorize(super_admin_user, Role.CLUB_ADMIN) is False
    assert authorize(super_admin_user, Role.CLUB_ADMIN, Role.SUPER_ADMIN) is True


def test_decode_backend_token():
    token = _token(sub="nimal@example.com", userId=7, email="nimal@example.com", role="CLUB_ADMIN")

    user = decode_session_token(token)

    assert user == SessionUser(id=7, email="nimal@example.com", role=Role.CLUB_ADMIN, token=token)


@pytest.mark.parametrize(
    "token",
    [
        "not-a-jwt",
        jwt.encode({"userId": 7, "email": "x@y.com", "role": "STUDENT"}, "wrong-secret", algorithm="HS256"),
    ],
)
def test_decode_rejects_bad_tokens(token):
    with pytest.raises(InvalidSessionToken):
        decode_session_token(token)


def test_decode_rejects_unknown_role():
    with pytest.raises(InvalidSessionToken):
        decode_session_token(_token(userId=7, email="x@y.com", role="JANITOR"))


def test_bearer_token_authenticates_request(client, fake_backend):
    fake_backend.on("GET", "/memberships/user/7", {"success": True, "memberships": []})
    token = _token(sub="nimal@example.com", userId=7, role="STUDENT")

    response = client.get("/memberships/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200, response.text
    assert response.json() == {"items": [], "total": 0}


def test_invalid_bearer_token_is_unauthorized(client):
    response = client.get("/memberships/me", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


def test_missing_token_is_unauthorized(client):
    response = client.get("/admin/users")

    assert response.status_code == 401
    assert response.json()["detail"] == "Not authenticated"


def test_wrong_role_is_forbidden(client, authorize, student_user, fake_backend):
    authorize(student_user)

    response = client.get("/admin/users")

    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied"
    assert fake_backend.calls == []


def test_super_admin_is_not_a_club_admin(client, authorize, super_admin_user, fake_backend):
    authorize(super_admin_user)

    response = client.get("/clubs/managed")

    assert response.status_code == 403


def test_login_returns_backend_token(client, fake_backend):
    fake_backend.on(
        "POST",
        "/auth/login",
        {
            "success": True,
            "token": "jwt-from-backend",
            "user": {"id": 7, "email": "nimal@example.com", "firstName": "Nimal", "role": "STUDENT"},
        },
    )

    response = client.post("/auth/login", json={"email": "nimal@example.com", "password": "secret"})

    assert response.status_code == 200, response.text
    assert response.json()["access_token"] == "jwt-from-backend"
    assert response.json()["user"]["firstName"] == "Nimal"
    (call,) = fake_backend.calls_to("POST", "/auth/login")
    assert call["json"] == {"email": "nimal@example.com", "password": "secret"}


def test_login_failure_message_passes_through(client, fake_backend):
    fake_backend.on("POST", "/auth/login", {"success": False, "message": "Invalid email or password"}, status_code=401)

    response = client.post("/auth/login", json={"email": "nimal@example.com", "password": "bad"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_register_defaults_to_student(client, fake_backend):
    fake_backend.on(
        "POST",
        "/auth/register",
        {"success": True, "token": "t", "user": {"id": 9, "email": "new@example.com", "role": "STUDENT"}},
    )

    response = client.post(
        "/auth/register",
        json={"email": "new@example.com", "password": "secret1", "first_name": "New", "last_name": "Student"},
    )

    assert response.status_code == 201, response.text
    (call,) = fake_backend.calls_to("POST", "/auth/register")
    assert call["json"]["role"] == "STUDENT"
    assert call["json"]["firstName"] == "New"


def test_whoami(client, authorize, club_admin_user, fake_backend):
    authorize(club_admin_user)
    fake_backend.on(
        "GET",
        "/auth/me",
        {"success": True, "user": {"id": 20, "email": "clubadmin@example.com", "firstName": "Sahan", "lastName": "Silva", "role": "CLUB_ADMIN"}},
    )

    response = client.get("/auth/me")

    assert response.status_code == 200
    assert response.json() == {
        "id": 20,
        "email": "clubadmin@example.com",
        "role": "CLUB_ADMIN",
        "full_name": "Sahan Silva",
    }
