from fastapi import APIRouter, Depends, status

from universe.auth.deps import get_backend_client, require_role
from universe.auth.roles import Role
from universe.auth.session import SessionUser
from universe.schemas.club import AnnouncementCreate, AnnouncementUpdate
from universe.schemas.entities import Announcement
from universe.services.backend_client import UniverseClient

router = APIRouter(prefix="/announcements", tags=["announcements"])

WRITE_ROLES = (Role.CLUB_ADMIN,)


@router.get("/club/{club_id}", response_model=list[Announcement])
def list_published_announcements(club_id: int, client: UniverseClient = Depends(get_backend_client)) -> list[Announcement]:
    return client.published_announcements(club_id)


@router.get("/club/{club_id}/all", response_model=list[Announcement])
def list_all_announcements(
    club_id: int,
    _: SessionUser = Depends(require_role(*WRITE_ROLES)),
    client: UniverseClient = Depends(get_backend_client),
) -> list[Announcement]:
    return client.all_announcements(club_id)


@router.get("/mine", response_model=list[Announcement])
def list_my_announcements(
    current_user: SessionUser = Depends(require_role(*WRITE_ROLES)),
    client: UniverseClient = Depends(get_backend_client),
) -> list[Announcement]:
    return client.announcements_by_creator(current_user.id)


@router.post("", response_model=Announcement, status_code=status.HTTP_201_CREATED)
def create_announcement(
    payload: AnnouncementCreate,
    current_user: SessionUser = Depends(require_role(*WRITE_ROLES)),
    client: UniverseClient = Depends(get_backend_client),
) -> Announcement:
    data = payload.to_backend()
    data["createdBy"] = current_user.id
    return client.create_announcement(data)


@router.put("/{announcement_id}", response_model=Announcement)
def update_announcement(
    announcement_id: int,
    payload: AnnouncementUpdate,
    _: SessionUser = Depends(require_role(*WRITE_ROLES)),
    client: UniverseClient = Depends(get_backend_client),
) -> Announcement:
    return client.update_announcement(announcement_id, payload.to_backend())


@router.post("/{announcement_id}/publish", response_model=Announcement)
def publish_announcement(
    announcement_id: int,
    _: SessionUser = Depends(require_role(*WRITE_ROLES)),
    client: UniverseClient = Depends(get_backend_client),
) -> Announcement:
    return client.publish_announcement(announcement_id)


@router.post("/{announcement_id}/unpublish", response_model=Announcement)
def unpublish_announcement(
    announcement_id: int,
    _: SessionUser = Depends(require_role(*WRITE_ROLES)),
    client: UniverseClient = Depends(get_backend_client),
) -> Announcement:
    return client.unpublish_announcement(announcement_id)


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_announcement(
    announcement_id: int,
    _: SessionUser = Depends(require_role(*WRITE_ROLES)),
    client: UniverseClient = Depends(get_backend_client),
) -> None:
    client.delete_announcement(announcement_id)
