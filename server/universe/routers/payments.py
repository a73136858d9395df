from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from universe.auth.deps import get_backend_client, get_current_user
from universe.auth.session import SessionUser
from universe.core.db import get_db
from universe.schemas.payment import CancellationView, ConfirmationView, FinalizationOut
from universe.services import payment_confirmation
from universe.services.backend_client import UniverseClient

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/success", response_model=ConfirmationView)
def payment_success(
    session_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user),
    client: UniverseClient = Depends(get_backend_client),
) -> ConfirmationView:
    return payment_confirmation.confirm_checkout(db, client, current_user, session_id)


@router.get("/cancel", response_model=CancellationView)
def payment_cancelled(
    club_id: Optional[int] = Query(default=None),
    draft: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user),
) -> CancellationView:
    return payment_confirmation.cancellation_view(db, current_user, club_id=club_id, draft_key=draft)


@router.post("/{payment_id}/finalize", response_model=FinalizationOut)
def finalize_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: SessionUser = Depends(get_current_user),
    client: UniverseClient = Depends(get_backend_client),
) -> FinalizationOut:
    outcome = payment_confirmation.retry_finalization(db, client, current_user, payment_id)
    return outcome.to_schema()
