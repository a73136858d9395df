from __future__ import annotations

from dataclasses import dataclass

from jose import JWTError, jwt

from universe.auth.roles import Role
from universe.core.config import settings


class InvalidSessionToken(Exception):
    pass


@dataclass(frozen=True)
class SessionUser:
    id: int
    email: str
    role: Role
    token: str


def decode_session_token(token: str) -> SessionUser:
    """Read identity and role from a backend-issued bearer token."""
    try:
        payload = jwt.decode(token, settings.BACKEND_JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError as exc:
        raise InvalidSessionToken("Invalid token") from exc

    user_id = payload.get("userId")
    email = payload.get("email") or payload.get("sub")
    if user_id is None or not email:
        raise InvalidSessionToken("Invalid token payload")
    try:
        role = Role(payload.get("role"))
    except ValueError as exc:
        raise InvalidSessionToken("Unknown role") from exc
    try:
        return SessionUser(id=int(user_id), email=str(email), role=role, token=token)
    except (TypeError, ValueError) as exc:
        raise InvalidSessionToken("Invalid token payload") from exc
