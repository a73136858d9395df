from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from universe.auth.deps import get_backend_client, require_role
from universe.auth.roles import Role
from universe.auth.session import SessionUser
from universe.core.db import get_db
from universe.schemas.entities import UserOut
from universe.schemas.payment import FinalizationRecordOut, FinalizationStatus
from universe.schemas.user_admin import ClubAdminCreate, UserUpdate
from universe.services import payment_confirmation
from universe.services.backend_client import UniverseClient

router = APIRouter(prefix="/admin", tags=["admin"])

ADMIN_ONLY = require_role(Role.SUPER_ADMIN)


@router.get("/users", response_model=list[UserOut])
def list_users(
    role: Optional[Role] = Query(default=None),
    _: SessionUser = Depends(ADMIN_ONLY),
    client: UniverseClient = Depends(get_backend_client),
) -> list[UserOut]:
    return client.list_users(role.value if role else None)


@router.get("/club-admins", response_model=list[UserOut])
def list_club_admins(
    _: SessionUser = Depends(ADMIN_ONLY),
    client: UniverseClient = Depends(get_backend_client),
) -> list[UserOut]:
    return client.list_club_admins()


@router.post("/club-admins", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_club_admin(
    payload: ClubAdminCreate,
    _: SessionUser = Depends(ADMIN_ONLY),
    client: UniverseClient = Depends(get_backend_client),
) -> UserOut:
    return client.create_club_admin(payload.to_backend())


@router.put("/users/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdate,
    _: SessionUser = Depends(ADMIN_ONLY),
    client: UniverseClient = Depends(get_backend_client),
) -> UserOut:
    return client.update_user(user_id, payload.to_backend())


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    _: SessionUser = Depends(ADMIN_ONLY),
    client: UniverseClient = Depends(get_backend_client),
) -> None:
    client.delete_user(user_id)


@router.get("/finalizations", response_model=list[FinalizationRecordOut])
def list_finalizations(
    status_filter: Optional[FinalizationStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    _: SessionUser = Depends(ADMIN_ONLY),
) -> list[FinalizationRecordOut]:
    records = payment_confirmation.list_finalizations(db, status_filter=status_filter)
    return [FinalizationRecordOut.model_validate(record) for record in records]
