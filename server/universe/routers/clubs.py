from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from universe.auth.deps import get_backend_client, get_current_user, require_role
from universe.auth.roles import Role
from universe.auth.session import SessionUser
from universe.core.db import get_db
from universe.schemas.club import ClubCreate, ClubUpdate
from universe.schemas.entities import Club, Event, Membership
from universe.schemas.membership import DraftOut, JoinResponse
from universe.services import membership as membership_service
from universe.services.backend_client import UniverseClient

router = APIRouter(prefix="/clubs", tags=["clubs"])

MANAGE_ROLES = (Role.CLUB_ADMIN, Role.SUPER_ADMIN)


@router.get("", response_model=list[Club])
def list_clubs(client: UniverseClient = Depends(get_backend_client)) -> list[Club]:
    return client.list_clubs()


@router.get("/search", response_model=list[Club])
def search_clubs(
    name: str = Query(..., min_length=1),
    client: UniverseClient = Depends(get_backend_client),
) -> list[Club]:
    return client.search_clubs(name)


@router.get("/managed", response_model=list[Club])
def list_managed_clubs(
    current_user: SessionUser = Depends(require_role(Role.CLUB_ADMIN)),
    client: UniverseClient = Depends(get_backend_client),
) -> list[Club]:
    return client.clubs_for_admin(current_user.id)


@router.post("", response_model=Club, status_code=status.HTTP_201_CREATED)
def create_club(
    payload: ClubCreate,
    _: SessionUser = Depends(require_role(Role.SUPER_ADMIN)),
    client: UniverseClient = Depends(get_backend_client),
) -> Club:
    return client.create_club(payload.to_backend())


@router.get("/{club_id}", response_model=Club)
def get_club(club_id: int, client: UniverseClient = Depends(get_backend_client)) -> Club:
    return client.get_club(club_id)


@router.put("/{club_id}", response_model=Club)
def update_club(
    club_id: int,
    payload: ClubUpdate,
    _: SessionUser = Depends(require_role(*MANAGE_ROLES)),
    client: UniverseClient = Depends(get_backend_client),
) -> Club:
    return client.update_club(club_id, payload.to_backend())


@router.delete("/{club_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_club(
    club_id: int,
    _: SessionUser = Depends(require_role(Role.SUPER_ADMIN)),
    client: UniverseClient = Depends(get_backend_client),
) -> None:
    client.delete_club(club_id)


@router.get("/{club_id}/events", response_model=list[Event])
def list_club_events(club_id: int, client: UniverseClient = Depends(get_backend_client)) -> list[Event]:
    return client.events_for_club(club_id)


@router.get("/{club_id}/members", response_model=list[Membership])
def list_club_members(
    club_id: int,
    _: SessionUser = Depends(require_role(*MANAGE_ROLES)),
    client: UniverseClient = Depends(get_backend_client),
) -> list[Membership]:
    return client.memberships_for_club(club_id)


@router.post("/{club_id}/membership", response_model=JoinResponse)
def apply_for_membership(
    club_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user),
    client: UniverseClient = Depends(get_backend_client),
) -> JoinResponse:
    return membership_service.start_membership(db, client, current_user, club_id, payload)


@router.post("/{club_id}/membership/checkout", response_model=JoinResponse)
def retry_membership_checkout(
    club_id: int,
    db: Session = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user),
    client: UniverseClient = Depends(get_backend_client),
) -> JoinResponse:
    return membership_service.retry_checkout(db, client, current_user, club_id)


@router.get("/{club_id}/membership/draft", response_model=DraftOut)
def get_membership_draft(
    club_id: int,
    db: Session = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user),
) -> DraftOut:
    return membership_service.get_draft(db, current_user, club_id)
