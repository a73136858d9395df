from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint

from universe.core.db import Base


class MembershipDraft(Base):
    """A validated membership application parked across the checkout redirect."""

    __tablename__ = "membership_drafts"
    __table_args__ = (UniqueConstraint("user_id", "club_id", name="uq_membership_drafts_user_club"),)

    id = Column(Integer, primary_key=True)
    draft_key = Column(String(36), unique=True, nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    club_id = Column(Integer, nullable=False, index=True)
    payload = Column(JSON, nullable=False)
    checkout_session_id = Column(String(255), nullable=True, unique=True)
    payment_id = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
