from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from universe.auth.session import SessionUser
from universe.core.config import settings
from universe.models.membership_finalization import (
    FINALIZATION_COMPLETED,
    FINALIZATION_FAILED,
    FINALIZATION_IN_PROGRESS,
    FINALIZATION_NO_DRAFT,
    MembershipFinalization,
)
from universe.schemas.entities import (
    UNSETTLED_PAYMENT_STATUSES,
    Payment,
    PaymentStatus,
)
from universe.schemas.payment import (
    CancellationView,
    ConfirmationState,
    ConfirmationView,
    FinalizationOut,
    PaymentSummary,
    ViewAction,
)
from universe.services import drafts as drafts_service
from universe.services.backend_client import BackendError, UniverseClient

logger = logging.getLogger(__name__)

MEMBERSHIP_CREATED_MESSAGE = "Payment successful! Your membership has been created."
MEMBERSHIP_FAILED_MESSAGE = (
    "Payment successful, but there was an issue creating your membership. Please contact support."
)
PAYMENT_ONLY_MESSAGE = "Payment completed successfully! No pending membership application was found."
FINALIZING_MESSAGE = "Payment successful! Your membership is being created."
PENDING_MESSAGE = "Payment is being processed. Your account will be updated shortly."

HOME_ACTION = ViewAction(name="home", label="Back to home", href="/")


@dataclass
class FinalizationOutcome:
    status: str
    message: str
    membership_id: Optional[int] = None
    attempts: int = 1

    def to_schema(self) -> FinalizationOut:
        return FinalizationOut(
            status=self.status,
            message=self.message,
            membership_id=self.membership_id,
            attempts=self.attempts,
        )


def _outcome_from_record(record: MembershipFinalization) -> FinalizationOutcome:
    messages = {
        FINALIZATION_COMPLETED: MEMBERSHIP_CREATED_MESSAGE,
        FINALIZATION_FAILED: MEMBERSHIP_FAILED_MESSAGE,
        FINALIZATION_NO_DRAFT: PAYMENT_ONLY_MESSAGE,
        FINALIZATION_IN_PROGRESS: FINALIZING_MESSAGE,
    }
    return FinalizationOutcome(
        status=record.status,
        message=messages[record.status],
        membership_id=record.membership_id,
        attempts=record.attempts,
    )


def _summary(payment: Payment) -> PaymentSummary:
    return PaymentSummary(
        payment_id=payment.id,
        club_id=payment.club_id,
        amount=payment.amount,
        currency=payment.currency,
        status=payment.status,
    )


def _error_view(message: str, payment: Optional[Payment] = None) -> ConfirmationView:
    return ConfirmationView(
        state=ConfirmationState.ERROR,
        message=message,
        payment=_summary(payment) if payment else None,
        actions=[HOME_ACTION],
    )


def _ensure_owner(user: SessionUser, payment: Payment) -> None:
    if payment.user_id != user.id:
        logger.warning("payment_owner_mismatch", extra={"payment_id": payment.id, "user_id": user.id})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This payment belongs to another account")


def get_finalization(db: Session, payment_id: int) -> Optional[MembershipFinalization]:
    return db.query(MembershipFinalization).filter(MembershipFinalization.payment_id == payment_id).first()


def _lease_cutoff() -> datetime:
    return datetime.utcnow() - timedelta(seconds=settings.FINALIZATION_LEASE_SECONDS)


def _unfinished(cutoff: Optional[datetime] = None):
    """Rows that were charged but hold no membership yet.

    With ``cutoff`` only ``in_progress`` rows whose lease expired count, so a
    finalization still running elsewhere is left alone.
    """
    in_progress = MembershipFinalization.status == FINALIZATION_IN_PROGRESS
    if cutoff is not None:
        in_progress = and_(in_progress, MembershipFinalization.updated_at < cutoff)
    return or_(MembershipFinalization.status == FINALIZATION_FAILED, in_progress)


def claim_finalization(
    db: Session,
    payment: Payment,
    *,
    allow_retry: bool = False,
) -> tuple[MembershipFinalization, bool]:
    """Take the single-shot slot for ``payment``.

    Returns the record and whether this caller owns the attempt. The unique
    ``payment_id`` column makes the claim hold across requests and workers.
    With ``allow_retry`` a ``failed`` row, or an ``in_progress`` row whose
    lease expired, is taken over again.
    """
    record = get_finalization(db, payment.id)
    if record is None:
        record = MembershipFinalization(
            payment_id=payment.id,
            user_id=payment.user_id,
            club_id=payment.club_id,
            status=FINALIZATION_IN_PROGRESS,
            attempts=1,
        )
        db.add(record)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            existing = get_finalization(db, payment.id)
            if existing is None:
                raise
            return existing, False
        db.refresh(record)
        return record, True

    if allow_retry and record.status in (FINALIZATION_FAILED, FINALIZATION_IN_PROGRESS):
        claimed = (
            db.query(MembershipFinalization)
            .filter(MembershipFinalization.id == record.id, _unfinished(_lease_cutoff()))
            .update(
                {
                    MembershipFinalization.status: FINALIZATION_IN_PROGRESS,
                    MembershipFinalization.attempts: MembershipFinalization.attempts + 1,
                    MembershipFinalization.updated_at: datetime.utcnow(),
                },
                synchronize_session=False,
            )
        )
        db.commit()
        db.refresh(record)
        if claimed:
            logger.info(
                "membership_finalization_reclaimed",
                extra={"payment_id": payment.id, "attempts": record.attempts},
            )
        return record, bool(claimed)

    return record, False


def _mark_failed(db: Session, record: MembershipFinalization, message: str) -> None:
    record.status = FINALIZATION_FAILED
    record.message = message
    db.commit()


def finalize_membership(
    db: Session,
    client: UniverseClient,
    payment: Payment,
    *,
    session_id: Optional[str] = None,
    allow_retry: bool = False,
) -> FinalizationOutcome:
    """Turn a succeeded payment plus its stored draft into a membership, at most once."""
    if payment.status != PaymentStatus.SUCCEEDED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment has not succeeded")

    record, claimed = claim_finalization(db, payment, allow_retry=allow_retry)
    if not claimed:
        logger.info("membership_finalization_skipped", extra={"payment_id": payment.id, "status": record.status})
        return _outcome_from_record(record)

    try:
        return _run_finalization(db, client, payment, record, session_id=session_id)
    except Exception as exc:
        db.rollback()
        logger.exception("membership_finalization_crashed", extra={"payment_id": payment.id})
        _mark_failed(db, record, str(exc) or exc.__class__.__name__)
        raise


def _run_finalization(
    db: Session,
    client: UniverseClient,
    payment: Payment,
    record: MembershipFinalization,
    *,
    session_id: Optional[str],
) -> FinalizationOutcome:
    draft = drafts_service.find_draft_for_payment(
        db,
        user_id=payment.user_id,
        club_id=payment.club_id,
        session_id=session_id or payment.stripe_session_id,
    )
    if draft is None:
        record.status = FINALIZATION_NO_DRAFT
        db.commit()
        logger.info("membership_finalization_no_draft", extra={"payment_id": payment.id})
        return _outcome_from_record(record)

    application = drafts_service.load_application(draft)
    request = application.model_dump(mode="json", by_alias=True)
    request.update({"userId": payment.user_id, "clubId": payment.club_id, "paymentId": payment.id})
    record.draft_key = draft.draft_key

    try:
        membership = client.join_after_payment_with_details(request)
    except BackendError as exc:
        _mark_failed(db, record, exc.message)
        logger.warning(
            "membership_finalization_failed",
            extra={"payment_id": payment.id, "club_id": payment.club_id, "detail": exc.message},
        )
        return _outcome_from_record(record)

    record.status = FINALIZATION_COMPLETED
    record.membership_id = membership.id
    record.message = None
    drafts_service.clear_draft(db, draft)
    db.commit()
    logger.info(
        "membership_finalized",
        extra={"payment_id": payment.id, "club_id": payment.club_id, "membership_id": membership.id},
    )
    return _outcome_from_record(record)


def _settle(client: UniverseClient, payment: Payment, sleep: Callable[[float], None]) -> Payment:
    """Confirm with the backend, re-polling while the processor is still settling."""
    deadline = time.monotonic() + settings.PAYMENT_CONFIRM_TIMEOUT_SECONDS
    attempts = max(settings.PAYMENT_CONFIRM_MAX_ATTEMPTS, 1)
    for attempt in range(1, attempts + 1):
        payment = client.confirm_payment(payment.id)
        if payment.status not in UNSETTLED_PAYMENT_STATUSES:
            return payment
        if attempt == attempts:
            break
        delay = settings.PAYMENT_CONFIRM_BACKOFF_SECONDS * attempt
        if time.monotonic() + delay > deadline:
            break
        sleep(delay)
    logger.info("payment_still_pending", extra={"payment_id": payment.id, "attempts": attempt})
    return payment


def confirm_checkout(
    db: Session,
    client: UniverseClient,
    user: SessionUser,
    session_id: Optional[str],
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> ConfirmationView:
    if not session_id:
        return _error_view("No payment session found. Please try again.")

    payment: Optional[Payment] = None
    try:
        payment = client.get_payment_by_session(session_id)
        _ensure_owner(user, payment)
        logger.info("payment_confirming", extra={"payment_id": payment.id, "session_id": session_id})
        payment = _settle(client, payment, sleep)
    except BackendError as exc:
        return _error_view(exc.message, payment)

    club_path = f"/clubs/{payment.club_id}"
    if payment.status == PaymentStatus.SUCCEEDED:
        outcome = finalize_membership(db, client, payment, session_id=session_id)
        return ConfirmationView(
            state=ConfirmationState.SUCCEEDED,
            message=outcome.message,
            payment=_summary(payment),
            finalization=outcome.to_schema(),
            redirect_to=club_path,
            actions=[ViewAction(name="club", label="Go to club", href=club_path)],
        )

    if payment.status in UNSETTLED_PAYMENT_STATUSES:
        reopen = f"{club_path}?openMembershipForm=true"
        return ConfirmationView(
            state=ConfirmationState.PENDING,
            message=PENDING_MESSAGE,
            payment=_summary(payment),
            redirect_to=reopen,
            actions=[ViewAction(name="club", label="Back to club", href=reopen)],
        )

    cancel_path = f"/payments/cancel?club_id={payment.club_id}"
    return ConfirmationView(
        state=ConfirmationState.FAILED,
        message=payment.error_message or f"Payment status: {payment.status.value}",
        payment=_summary(payment),
        redirect_to=cancel_path,
        actions=[ViewAction(name="cancelled", label="View options", href=cancel_path), HOME_ACTION],
    )


def retry_finalization(db: Session, client: UniverseClient, user: SessionUser, payment_id: int) -> FinalizationOutcome:
    """User-initiated re-run of a finalization that was rejected or interrupted."""
    payment = client.get_payment(payment_id)
    _ensure_owner(user, payment)
    if payment.status != PaymentStatus.SUCCEEDED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Payment has not succeeded")
    return finalize_membership(db, client, payment, allow_retry=True)


def cancellation_view(
    db: Session,
    user: SessionUser,
    *,
    club_id: Optional[int],
    draft_key: Optional[str],
) -> CancellationView:
    draft = None
    if draft_key:
        draft = drafts_service.get_draft_by_key(db, draft_key)
        if draft is not None and draft.user_id != user.id:
            draft = None
    if draft is None and club_id is not None:
        draft = drafts_service.get_draft_for_club(db, user_id=user.id, club_id=club_id)
    if draft is not None:
        club_id = draft.club_id

    actions: List[ViewAction] = []
    if club_id is not None and draft is not None:
        actions.append(
            ViewAction(
                name="try_again",
                label="Try again",
                href=f"/clubs/{club_id}/membership/checkout",
                method="POST",
            )
        )
    actions.append(ViewAction(name="browse_clubs", label="Browse clubs", href="/clubs"))
    actions.append(HOME_ACTION)
    logger.info("payment_cancelled_view", extra={"club_id": club_id, "draft_retained": draft is not None})
    return CancellationView(
        message="Your payment was not completed. No charges have been made to your account.",
        club_id=club_id,
        draft_retained=draft is not None,
        actions=actions,
    )


def pending_finalization_for(db: Session, *, user_id: int, club_id: int) -> Optional[MembershipFinalization]:
    """The latest charged attempt for (user, club) that has not produced a membership."""
    return (
        db.query(MembershipFinalization)
        .filter(
            MembershipFinalization.user_id == user_id,
            MembershipFinalization.club_id == club_id,
            _unfinished(),
        )
        .order_by(MembershipFinalization.updated_at.desc())
        .first()
    )


def list_finalizations(db: Session, *, status_filter: Optional[str] = None) -> List[MembershipFinalization]:
    query = db.query(MembershipFinalization)
    if status_filter:
        query = query.filter(MembershipFinalization.status == status_filter)
    return query.order_by(MembershipFinalization.updated_at.desc(), MembershipFinalization.id.desc()).all()


def finalization_report(db: Session) -> List[int]:
    """Payment ids that were charged but never became memberships.

    Covers failed rows and ``in_progress`` rows whose lease expired.
    """
    records = (
        db.query(MembershipFinalization)
        .filter(_unfinished(_lease_cutoff()))
        .order_by(MembershipFinalization.updated_at.desc(), MembershipFinalization.id.desc())
        .all()
    )
    return [record.payment_id for record in records]
