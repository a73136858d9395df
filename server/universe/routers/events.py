from fastapi import APIRouter, Depends, status

from universe.auth.deps import get_backend_client, require_role
from universe.auth.roles import Role
from universe.auth.session import SessionUser
from universe.schemas.club import EventCreate, EventUpdate
from universe.schemas.entities import Event
from universe.services.backend_client import UniverseClient

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=list[Event])
def list_events(client: UniverseClient = Depends(get_backend_client)) -> list[Event]:
    return client.list_events()


@router.get("/{event_id}", response_model=Event)
def get_event(event_id: int, client: UniverseClient = Depends(get_backend_client)) -> Event:
    return client.get_event(event_id)


@router.post("", response_model=Event, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    _: SessionUser = Depends(require_role(Role.CLUB_ADMIN)),
    client: UniverseClient = Depends(get_backend_client),
) -> Event:
    return client.create_event(payload.to_backend())


@router.put("/{event_id}", response_model=Event)
def update_event(
    event_id: int,
    payload: EventUpdate,
    _: SessionUser = Depends(require_role(Role.CLUB_ADMIN)),
    client: UniverseClient = Depends(get_backend_client),
) -> Event:
    return client.update_event(event_id, payload.to_backend())


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: int,
    _: SessionUser = Depends(require_role(Role.CLUB_ADMIN)),
    client: UniverseClient = Depends(get_backend_client),
) -> None:
    client.delete_event(event_id)
