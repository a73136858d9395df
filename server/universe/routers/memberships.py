from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, status

from universe.auth.deps import get_backend_client, get_current_user
from universe.auth.session import SessionUser
from universe.schemas.membership import ApplicationCheckResponse, MembershipListResponse
from universe.services import membership as membership_service
from universe.services.backend_client import UniverseClient
from universe.services.membership_form import validate_application

router = APIRouter(prefix="/memberships", tags=["memberships"])


@router.post("/validate", response_model=ApplicationCheckResponse)
def validate_membership_application(
    payload: Dict[str, Any] = Body(...),
    _: SessionUser = Depends(get_current_user),
) -> ApplicationCheckResponse:
    return ApplicationCheckResponse(application=validate_application(payload))


@router.get("/me", response_model=MembershipListResponse)
def list_my_memberships(
    current_user: SessionUser = Depends(get_current_user),
    client: UniverseClient = Depends(get_backend_client),
) -> MembershipListResponse:
    return membership_service.list_my_memberships(client, current_user)


@router.delete("/{club_id}", status_code=status.HTTP_204_NO_CONTENT)
def leave_club(
    club_id: int,
    current_user: SessionUser = Depends(get_current_user),
    client: UniverseClient = Depends(get_backend_client),
) -> None:
    membership_service.leave_club(client, current_user, club_id)
