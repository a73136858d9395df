from __future__ import annotations

import json
from collections.abc import Generator
from datetime import date
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from universe.auth.deps import get_backend_client, get_current_user
from universe.auth.roles import Role
from universe.auth.session import SessionUser
from universe.core.config import settings
from universe.core.db import Base, get_db
from universe.main import app
from universe.models.membership_draft import MembershipDraft
from universe.models.membership_finalization import MembershipFinalization
from universe.services.backend_client import UniverseClient

SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(SQLALCHEMY_TEST_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

BACKEND_URL = "http://backend.test/api"


def override_get_db() -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeBackend:
    """Scripted stand-in for the UniVerse REST backend.

    Responses are queued per ``(method, path)``; the last one repeats until
    a new response is queued behind it.
    Every request is recorded so tests can assert on exactly what was sent.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[list[Any]]] = {}
        self.calls: list[dict[str, Any]] = []

    def _queue(self, method: str, path: str, scripted: Any) -> "FakeBackend":
        queue = self.routes.setdefault((method, path), [])
        while queue and queue[0][1]:
            queue.pop(0)
        queue.append([scripted, False])
        return self

    def on(self, method: str, path: str, json: Any = None, status_code: int = 200) -> "FakeBackend":
        return self._queue(method, path, (status_code, json))

    def fail(self, method: str, path: str) -> "FakeBackend":
        return self._queue(method, path, httpx.ConnectError)

    def calls_to(self, method: str, path: str) -> list[dict[str, Any]]:
        return [call for call in self.calls if call["method"] == method and call["path"] == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        body = None
        if request.content and request.headers.get("content-type", "").startswith("application/json"):
            body = json.loads(request.content)
        self.calls.append(
            {"method": request.method, "path": path, "json": body, "params": dict(request.url.params)}
        )
        queue = self.routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, json={"success": False, "message": f"No route for {request.method} {path}"})
        if len(queue) > 1:
            scripted = queue.pop(0)[0]
        else:
            queue[0][1] = True
            scripted = queue[0][0]
        if scripted is httpx.ConnectError:
            raise httpx.ConnectError("connection refused", request=request)
        status_code, payload = scripted
        return httpx.Response(status_code, json=payload)

    def client(self, token: str | None = None) -> UniverseClient:
        return UniverseClient(BACKEND_URL, token=token, transport=httpx.MockTransport(self.handler))


@pytest.fixture(scope="session", autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def fast_confirmation(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "PAYMENT_CONFIRM_BACKOFF_SECONDS", 0.0)
    monkeypatch.setattr(settings, "PUBLIC_BASE_URL", "http://universe.test")


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.query(MembershipDraft).delete()
        session.query(MembershipFinalization).delete()
        session.commit()
        session.close()


@pytest.fixture()
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def client(db_session: Session, fake_backend: FakeBackend) -> Generator[TestClient, None, None]:
    def override_get_backend_client() -> Generator[UniverseClient, None, None]:
        backend = fake_backend.client(token="test-token")
        try:
            yield backend
        finally:
            backend.close()

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_backend_client] = override_get_backend_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def authorize(client: TestClient) -> Generator[Callable[[SessionUser], None], None, None]:
    def _apply(user: SessionUser) -> None:
        app.dependency_overrides[get_current_user] = lambda: user

    yield _apply
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture()
def student_user() -> SessionUser:
    return SessionUser(id=7, email="nimal@students.example.com", role=Role.STUDENT, token="test-token")


@pytest.fixture()
def other_student() -> SessionUser:
    return SessionUser(id=8, email="kamala@students.example.com", role=Role.STUDENT, token="test-token")


@pytest.fixture()
def club_admin_user() -> SessionUser:
    return SessionUser(id=20, email="clubadmin@example.com", role=Role.CLUB_ADMIN, token="test-token")


@pytest.fixture()
def super_admin_user() -> SessionUser:
    return SessionUser(id=1, email="admin@example.com", role=Role.SUPER_ADMIN, token="test-token")


@pytest.fixture()
def valid_application() -> dict[str, Any]:
    return {
        "fullName": "Nimal Perera",
        "address": "12 Temple Road, Colombo",
        "contactNumber": "0771234567",
        "birthday": date(date.today().year - 20, 1, 15).isoformat(),
        "faculty": "Faculty of Computing and Technology",
        "year": "2nd Year",
        "skills": ["Leadership", "Photography"],
    }


def club_payload(club_id: int = 3, fee: str | None = "1500.00") -> dict[str, Any]:
    return {
        "success": True,
        "club": {"id": club_id, "name": "Photography Society", "adminId": 20, "membershipFee": fee},
    }


def payment_payload(
    status: str = "SUCCEEDED",
    *,
    payment_id: int = 55,
    user_id: int = 7,
    club_id: int = 3,
    session_id: str = "cs_test_1",
) -> dict[str, Any]:
    return {
        "success": True,
        "payment": {
            "id": payment_id,
            "userId": user_id,
            "clubId": club_id,
            "amount": "1500.00",
            "currency": "LKR",
            "status": status,
            "stripeSessionId": session_id,
        },
    }


def checkout_payload(session_id: str = "cs_test_1", payment_id: int = 55) -> dict[str, Any]:
    return {
        "success": True,
        "sessionId": session_id,
        "sessionUrl": f"https://checkout.stripe.test/pay/{session_id}",
        "paymentId": payment_id,
    }


def membership_payload(membership_id: int = 900, user_id: int = 7, club_id: int = 3) -> dict[str, Any]:
    return {
        "success": True,
        "membership": {"id": membership_id, "userId": user_id, "clubId": club_id, "status": "APPROVED"},
    }
