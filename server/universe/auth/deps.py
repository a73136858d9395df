from typing import Callable, Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from universe.auth.roles import Role, authorize
from universe.auth.session import InvalidSessionToken, SessionUser, decode_session_token
from universe.core.config import settings
from universe.services.backend_client import UniverseClient

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> SessionUser:
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        return decode_session_token(credentials.credentials)
    except InvalidSessionToken as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


def require_role(*roles: Role) -> Callable[[SessionUser], SessionUser]:
    def checker(user: SessionUser = Depends(get_current_user)) -> SessionUser:
        if not authorize(user, *roles):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return user

    return checker


def get_backend_client(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Generator[UniverseClient, None, None]:
    client = UniverseClient(
        settings.BACKEND_API_URL,
        token=credentials.credentials if credentials else None,
        timeout=settings.BACKEND_TIMEOUT_SECONDS,
    )
    try:
        yield client
    finally:
        client.close()
