"""HTTP client for the UniVerse REST backend.

This module is the only place that knows how the backend wraps its payloads
(``{"success": ..., "message": ..., "<key>": ...}``, bare arrays, ``data`` or
``items`` lists). Callers get typed entities or a ``BackendError``.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from universe.schemas.entities import (
    Announcement,
    CheckoutSession,
    Club,
    Event,
    Membership,
    Payment,
    UploadedFile,
    UserOut,
)

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Unable to reach the UniVerse service. Please try again."

ModelT = TypeVar("ModelT", bound=BaseModel)


class BackendError(Exception):
    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BackendUnavailableError(BackendError):
    """Transport failure: the backend could not be reached or timed out."""

    def __init__(self, message: str = UNAVAILABLE_MESSAGE):
        super().__init__(message, status_code=502)


class BackendRejectedError(BackendError):
    """The backend answered but refused the request."""


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _extract(payload: Any, key: str) -> Any:
    if isinstance(payload, dict):
        for candidate in (key, "data", "items"):
            value = payload.get(candidate)
            if value is not None:
                return value
    return payload


def _extract_list(payload: Any, *keys: str) -> list:
    if isinstance(payload, list):
        return payload
    for key in keys:
        value = _extract(payload, key)
        if isinstance(value, list):
            return value
        if isinstance(value, dict) and isinstance(value.get("items"), list):
            return value["items"]
    raise BackendRejectedError("Unexpected response from the UniVerse service", status_code=502)


def _parse(model: Type[ModelT], value: Any) -> ModelT:
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        logger.error("backend payload mismatch", extra={"model": model.__name__, "errors": exc.errors()})
        raise BackendRejectedError("Unexpected response from the UniVerse service", status_code=502) from exc


def _parse_list(model: Type[ModelT], values: Iterable[Any]) -> List[ModelT]:
    return [_parse(model, value) for value in values]


def format_amount(amount: Decimal) -> str:
    return f"{Decimal(amount).quantize(Decimal('0.01')):.2f}"


class UniverseClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.token = token
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(base_url=base_url, headers=headers, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "UniverseClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.exception("backend request failed", extra={"method": method, "path": path})
            raise BackendUnavailableError() from exc

        payload = _decode(response)
        rejected = isinstance(payload, dict) and payload.get("success") is False
        if response.status_code >= 400 or rejected:
            message = None
            if isinstance(payload, dict):
                message = payload.get("message") or payload.get("error")
            message = message or response.reason_phrase or "Request failed"
            status_code = response.status_code if response.status_code >= 400 else 400
            if status_code >= 500:
                status_code = 502
            logger.warning(
                "backend rejected request",
                extra={"method": method, "path": path, "status_code": response.status_code, "detail": message},
            )
            raise BackendRejectedError(str(message), status_code=status_code)
        return payload

    # auth

    def login(self, email: str, password: str) -> tuple[str, UserOut]:
        payload = self._request("POST", "/auth/login", json={"email": email, "password": password})
        return self._token_and_user(payload)

    def register(self, data: dict) -> tuple[str, UserOut]:
        payload = self._request("POST", "/auth/register", json=data)
        return self._token_and_user(payload)

    def current_user(self) -> UserOut:
        return _parse(UserOut, _extract(self._request("GET", "/auth/me"), "user"))

    def _token_and_user(self, payload: Any) -> tuple[str, UserOut]:
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise BackendRejectedError("Authentication response did not include a token", status_code=502)
        return token, _parse(UserOut, _extract(payload, "user"))

    # clubs

    def list_clubs(self) -> List[Club]:
        return _parse_list(Club, _extract_list(self._request("GET", "/clubs"), "clubs"))

    def search_clubs(self, name: str) -> List[Club]:
        payload = self._request("GET", "/clubs/search", params={"name": name})
        return _parse_list(Club, _extract_list(payload, "clubs"))

    def get_club(self, club_id: int) -> Club:
        return _parse(Club, _extract(self._request("GET", f"/clubs/{club_id}"), "club"))

    def clubs_for_admin(self, admin_id: int) -> List[Club]:
        payload = self._request("GET", f"/clubs/admin/{admin_id}")
        return _parse_list(Club, _extract_list(payload, "clubs"))

    def create_club(self, data: dict) -> Club:
        return _parse(Club, _extract(self._request("POST", "/clubs", json=data), "club"))

    def update_club(self, club_id: int, data: dict) -> Club:
        return _parse(Club, _extract(self._request("PUT", f"/clubs/{club_id}", json=data), "club"))

    def delete_club(self, club_id: int) -> None:
        self._request("DELETE", f"/clubs/{club_id}")

    # events

    def list_events(self) -> List[Event]:
        return _parse_list(Event, _extract_list(self._request("GET", "/events"), "events"))

    def get_event(self, event_id: int) -> Event:
        return _parse(Event, _extract(self._request("GET", f"/events/{event_id}"), "event"))

    def events_for_club(self, club_id: int) -> List[Event]:
        payload = self._request("GET", f"/events/club/{club_id}")
        return _parse_list(Event, _extract_list(payload, "events"))

    def create_event(self, data: dict) -> Event:
        return _parse(Event, _extract(self._request("POST", "/events", json=data), "event"))

    def update_event(self, event_id: int, data: dict) -> Event:
        return _parse(Event, _extract(self._request("PUT", f"/events/{event_id}", json=data), "event"))

    def delete_event(self, event_id: int) -> None:
        self._request("DELETE", f"/events/{event_id}")

    # memberships

    def join_club(self, user_id: int, club_id: int) -> Membership:
        payload = self._request("POST", "/memberships/join", json={"userId": user_id, "clubId": club_id})
        return _parse(Membership, _extract(payload, "membership"))

    def join_with_details(self, data: dict) -> Membership:
        payload = self._request("POST", "/memberships/join-with-details", json=data)
        return _parse(Membership, _extract(payload, "membership"))

    def join_after_payment_with_details(self, data: dict) -> Membership:
        payload = self._request("POST", "/memberships/join-after-payment-with-details", json=data)
        return _parse(Membership, _extract(payload, "membership"))

    def leave_club(self, user_id: int, club_id: int) -> None:
        self._request("DELETE", "/memberships/leave", params={"userId": user_id, "clubId": club_id})

    def memberships_for_user(self, user_id: int) -> List[Membership]:
        payload = self._request("GET", f"/memberships/user/{user_id}")
        return _parse_list(Membership, _extract_list(payload, "memberships"))

    def memberships_for_club(self, club_id: int) -> List[Membership]:
        payload = self._request("GET", f"/memberships/club/{club_id}")
        return _parse_list(Membership, _extract_list(payload, "memberships", "members"))

    # announcements

    def create_announcement(self, data: dict) -> Announcement:
        payload = self._request("POST", "/announcements", json=data)
        return _parse(Announcement, _extract(payload, "announcement"))

    def get_announcement(self, announcement_id: int) -> Announcement:
        payload = self._request("GET", f"/announcements/{announcement_id}")
        return _parse(Announcement, _extract(payload, "announcement"))

    def published_announcements(self, club_id: int) -> List[Announcement]:
        payload = self._request("GET", f"/announcements/club/{club_id}")
        return _parse_list(Announcement, _extract_list(payload, "announcements"))

    def all_announcements(self, club_id: int) -> List[Announcement]:
        payload = self._request("GET", f"/announcements/club/{club_id}/all")
        return _parse_list(Announcement, _extract_list(payload, "announcements"))

    def announcements_by_creator(self, user_id: int) -> List[Announcement]:
        payload = self._request("GET", f"/announcements/creator/{user_id}")
        return _parse_list(Announcement, _extract_list(payload, "announcements"))

    def update_announcement(self, announcement_id: int, data: dict) -> Announcement:
        payload = self._request("PUT", f"/announcements/{announcement_id}", json=data)
        return _parse(Announcement, _extract(payload, "announcement"))

    def publish_announcement(self, announcement_id: int) -> Announcement:
        payload = self._request("POST", f"/announcements/{announcement_id}/publish")
        return _parse(Announcement, _extract(payload, "announcement"))

    def unpublish_announcement(self, announcement_id: int) -> Announcement:
        payload = self._request("POST", f"/announcements/{announcement_id}/unpublish")
        return _parse(Announcement, _extract(payload, "announcement"))

    def delete_announcement(self, announcement_id: int) -> None:
        self._request("DELETE", f"/announcements/{announcement_id}")

    # admin

    def list_users(self, role: Optional[str] = None) -> List[UserOut]:
        path = f"/admin/users/role/{role}" if role else "/admin/users"
        return _parse_list(UserOut, _extract_list(self._request("GET", path), "users"))

    def list_club_admins(self) -> List[UserOut]:
        payload = self._request("GET", "/admin/club-admins")
        return _parse_list(UserOut, _extract_list(payload, "clubAdmins", "users"))

    def create_club_admin(self, data: dict) -> UserOut:
        return _parse(UserOut, _extract(self._request("POST", "/admin/club-admins", json=data), "user"))

    def update_user(self, user_id: int, data: dict) -> UserOut:
        return _parse(UserOut, _extract(self._request("PUT", f"/admin/users/{user_id}", json=data), "user"))

    def delete_user(self, user_id: int) -> None:
        self._request("DELETE", f"/admin/users/{user_id}")

    # uploads

    def upload_image(self, filename: str, content: bytes, content_type: str) -> UploadedFile:
        payload = self._request("POST", "/upload/image", files={"file": (filename, content, content_type)})
        return _parse(UploadedFile, payload)

    # chatbot

    def chat(self, message: str) -> str:
        reply = _extract(self._request("POST", "/chatbot/chat", json={"message": message}), "response")
        if not isinstance(reply, str):
            raise BackendRejectedError("Unexpected response from the UniVerse service", status_code=502)
        return reply

    # payments

    def create_checkout_session(
        self,
        *,
        user_id: int,
        club_id: int,
        amount: Decimal,
        currency: str,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        payload = self._request(
            "POST",
            "/payments/create-checkout-session",
            json={
                "userId": user_id,
                "clubId": club_id,
                "amount": format_amount(amount),
                "currency": currency,
                "successUrl": success_url,
                "cancelUrl": cancel_url,
            },
        )
        session = _parse(CheckoutSession, _extract(payload, "session"))
        if not session.session_url:
            raise BackendRejectedError("Failed to create checkout session", status_code=502)
        return session

    def get_payment(self, payment_id: int) -> Payment:
        return _parse(Payment, _extract(self._request("GET", f"/payments/{payment_id}"), "payment"))

    def get_payment_by_session(self, session_id: str) -> Payment:
        payload = self._request("GET", f"/payments/session/{session_id}")
        return _parse(Payment, _extract(payload, "payment"))

    def confirm_payment(self, payment_id: int) -> Payment:
        payload = self._request("POST", f"/payments/{payment_id}/confirm")
        return _parse(Payment, _extract(payload, "payment"))
