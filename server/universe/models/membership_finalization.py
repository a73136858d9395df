from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from universe.core.db import Base

FINALIZATION_IN_PROGRESS = "in_progress"
FINALIZATION_COMPLETED = "completed"
FINALIZATION_FAILED = "failed"
FINALIZATION_NO_DRAFT = "no_draft"

FINALIZATION_STATUSES = (
    FINALIZATION_IN_PROGRESS,
    FINALIZATION_COMPLETED,
    FINALIZATION_FAILED,
    FINALIZATION_NO_DRAFT,
)


class MembershipFinalization(Base):
    __tablename__ = "membership_finalizations"

    id = Column(Integer, primary_key=True)
    payment_id = Column(Integer, unique=True, nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    club_id = Column(Integer, nullable=False, index=True)
    draft_key = Column(String(36), nullable=True)
    membership_id = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default=FINALIZATION_IN_PROGRESS)
    message = Column(Text, nullable=True)
    attempts = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
