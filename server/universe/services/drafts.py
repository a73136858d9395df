"""Durable store for membership applications that are waiting on a payment.

One writer: the application form path saves a draft before handing off to
checkout. One reader/deleter: finalization recovers the draft after the
payment succeeded and deletes it once the membership exists. The form path
may read its own draft back to prefill or restart checkout; nothing else
touches this table.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from universe.models.membership_draft import MembershipDraft
from universe.schemas.membership import MembershipApplication

logger = logging.getLogger(__name__)


def _serialize(application: MembershipApplication) -> dict:
    return application.model_dump(mode="json")


def load_application(draft: MembershipDraft) -> MembershipApplication:
    """Rebuild the application exactly as it was saved.

    No re-validation: the draft passed validation when it was written, and a
    birthday crossing an age boundary mid-checkout must not strand a payment.
    """
    payload = dict(draft.payload)
    payload["birthday"] = date.fromisoformat(payload["birthday"])
    payload["skills"] = list(payload.get("skills") or [])
    return MembershipApplication.model_construct(**payload)


def save_draft(
    db: Session,
    *,
    user_id: int,
    club_id: int,
    application: MembershipApplication,
    keep_checkout: bool = False,
) -> MembershipDraft:
    draft = get_draft_for_club(db, user_id=user_id, club_id=club_id)
    if draft is None:
        draft = MembershipDraft(draft_key=uuid.uuid4().hex, user_id=user_id, club_id=club_id, payload=_serialize(application))
        db.add(draft)
    else:
        draft.payload = _serialize(application)
        if not keep_checkout:
            draft.checkout_session_id = None
            draft.payment_id = None
    db.commit()
    db.refresh(draft)
    logger.info("membership_draft_saved", extra={"user_id": user_id, "club_id": club_id, "draft_key": draft.draft_key})
    return draft


def attach_checkout(db: Session, draft: MembershipDraft, *, session_id: str, payment_id: Optional[int]) -> MembershipDraft:
    draft.checkout_session_id = session_id
    draft.payment_id = payment_id
    db.commit()
    db.refresh(draft)
    return draft


def get_draft_for_club(db: Session, *, user_id: int, club_id: int) -> Optional[MembershipDraft]:
    return (
        db.query(MembershipDraft)
        .filter(MembershipDraft.user_id == user_id, MembershipDraft.club_id == club_id)
        .first()
    )


def get_draft_by_key(db: Session, draft_key: str) -> Optional[MembershipDraft]:
    return db.query(MembershipDraft).filter(MembershipDraft.draft_key == draft_key).first()


def find_draft_for_payment(
    db: Session,
    *,
    user_id: int,
    club_id: int,
    session_id: Optional[str] = None,
) -> Optional[MembershipDraft]:
    if session_id:
        draft = (
            db.query(MembershipDraft)
            .filter(MembershipDraft.checkout_session_id == session_id, MembershipDraft.user_id == user_id)
            .first()
        )
        if draft is not None:
            return draft
    return get_draft_for_club(db, user_id=user_id, club_id=club_id)


def clear_draft(db: Session, draft: MembershipDraft) -> None:
    logger.info(
        "membership_draft_cleared",
        extra={"user_id": draft.user_id, "club_id": draft.club_id, "draft_key": draft.draft_key},
    )
    db.delete(draft)
