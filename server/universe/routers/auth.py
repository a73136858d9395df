from fastapi import APIRouter, Depends, status

from universe.auth.deps import get_backend_client, get_current_user
from universe.auth.session import SessionUser
from universe.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, WhoAmIResponse
from universe.services.backend_client import UniverseClient

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, client: UniverseClient = Depends(get_backend_client)) -> TokenResponse:
    token, user = client.login(payload.email, payload.password)
    return TokenResponse(access_token=token, user=user)


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, client: UniverseClient = Depends(get_backend_client)) -> TokenResponse:
    token, user = client.register(payload.to_backend())
    return TokenResponse(access_token=token, user=user)


@router.get("/me", response_model=WhoAmIResponse)
def whoami(
    current_user: SessionUser = Depends(get_current_user),
    client: UniverseClient = Depends(get_backend_client),
) -> WhoAmIResponse:
    profile = client.current_user()
    return WhoAmIResponse(
        id=current_user.id,
        email=current_user.email,
        role=current_user.role,
        full_name=profile.full_name or None,
    )
