from __future__ import annotations

import logging
from typing import Any, List, Mapping
from urllib.parse import urlencode

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from universe.auth.session import SessionUser
from universe.core.config import settings
from universe.models.membership_draft import MembershipDraft
from universe.models.membership_finalization import FINALIZATION_COMPLETED, FINALIZATION_IN_PROGRESS
from universe.schemas.entities import Club, Membership
from universe.schemas.membership import DraftOut, JoinResponse, JoinState, MembershipApplication, MembershipListResponse
from universe.services import drafts as drafts_service
from universe.services import payment_confirmation
from universe.services.backend_client import UniverseClient
from universe.services.membership_form import validate_application

logger = logging.getLogger(__name__)

# Left literal for the processor to fill in.
CHECKOUT_SESSION_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"

_JOIN_STATES = {
    FINALIZATION_COMPLETED: JoinState.JOINED,
    FINALIZATION_IN_PROGRESS: JoinState.FINALIZING,
}


def _success_url() -> str:
    return f"{settings.PUBLIC_BASE_URL}/payments/success?session_id={CHECKOUT_SESSION_PLACEHOLDER}"


def _cancel_url(club_id: int, draft_key: str) -> str:
    query = urlencode({"club_id": club_id, "draft": draft_key})
    return f"{settings.PUBLIC_BASE_URL}/payments/cancel?{query}"


def _join_request(user: SessionUser, club_id: int, application: MembershipApplication) -> dict:
    request = application.model_dump(mode="json", by_alias=True)
    request.update({"userId": user.id, "clubId": club_id})
    return request


def _hand_off(db: Session, client: UniverseClient, user: SessionUser, club: Club, draft: MembershipDraft) -> JoinResponse:
    session = client.create_checkout_session(
        user_id=user.id,
        club_id=club.id,
        amount=club.membership_fee,
        currency=settings.MEMBERSHIP_CURRENCY,
        success_url=_success_url(),
        cancel_url=_cancel_url(club.id, draft.draft_key),
    )
    drafts_service.attach_checkout(db, draft, session_id=session.session_id, payment_id=session.payment_id)
    logger.info(
        "checkout_session_created",
        extra={"user_id": user.id, "club_id": club.id, "payment_id": session.payment_id, "session_id": session.session_id},
    )
    return JoinResponse(
        state=JoinState.PAYMENT_REQUIRED,
        message="Redirecting to payment...",
        checkout_url=session.session_url,
        draft_key=draft.draft_key,
        payment_id=session.payment_id,
    )


def start_membership(
    db: Session,
    client: UniverseClient,
    user: SessionUser,
    club_id: int,
    data: Mapping[str, Any],
) -> JoinResponse:
    application = validate_application(data)
    club = client.get_club(club_id)

    if club.is_free:
        membership = client.join_with_details(_join_request(user, club.id, application))
        logger.info("membership_joined_free", extra={"user_id": user.id, "club_id": club.id})
        return JoinResponse(
            state=JoinState.JOINED,
            message="Successfully joined the club!",
            membership=membership,
        )

    stuck = payment_confirmation.pending_finalization_for(db, user_id=user.id, club_id=club.id)
    if stuck is not None:
        # Already charged: the resubmitted fields replace the draft, the checkout link stays.
        drafts_service.save_draft(db, user_id=user.id, club_id=club.id, application=application, keep_checkout=True)
        logger.info("membership_finalization_retry", extra={"user_id": user.id, "payment_id": stuck.payment_id})
        outcome = payment_confirmation.retry_finalization(db, client, user, stuck.payment_id)
        return JoinResponse(
            state=_JOIN_STATES.get(outcome.status, JoinState.FINALIZATION_FAILED),
            message=outcome.message,
            payment_id=stuck.payment_id,
        )

    draft = drafts_service.save_draft(db, user_id=user.id, club_id=club.id, application=application)
    return _hand_off(db, client, user, club, draft)


def retry_checkout(db: Session, client: UniverseClient, user: SessionUser, club_id: int) -> JoinResponse:
    """Start a fresh checkout from the stored draft without re-entering fields."""
    draft = drafts_service.get_draft_for_club(db, user_id=user.id, club_id=club_id)
    if draft is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No saved application for this club")
    club = client.get_club(club_id)
    if club.is_free:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This club does not require payment")
    return _hand_off(db, client, user, club, draft)


def get_draft(db: Session, user: SessionUser, club_id: int) -> DraftOut:
    draft = drafts_service.get_draft_for_club(db, user_id=user.id, club_id=club_id)
    if draft is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No saved application for this club")
    return DraftOut(
        draft_key=draft.draft_key,
        club_id=draft.club_id,
        payment_id=draft.payment_id,
        application=drafts_service.load_application(draft),
    )


def list_my_memberships(client: UniverseClient, user: SessionUser) -> MembershipListResponse:
    items: List[Membership] = client.memberships_for_user(user.id)
    return MembershipListResponse(items=items, total=len(items))


def leave_club(client: UniverseClient, user: SessionUser, club_id: int) -> None:
    client.leave_club(user.id, club_id)
    logger.info("membership_left", extra={"user_id": user.id, "club_id": club_id})
