from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from universe.schemas.entities import PaymentStatus


class ConfirmationState(str, Enum):
    AWAITING_SESSION = "AWAITING_SESSION"
    CONFIRMING = "CONFIRMING"
    SUCCEEDED = "SUCCEEDED"
    PENDING = "PENDING"
    FAILED = "FAILED"
    ERROR = "ERROR"


FinalizationStatus = Literal["in_progress", "completed", "failed", "no_draft"]


class ViewAction(BaseModel):
    name: str
    label: str
    href: str
    method: Literal["GET", "POST"] = "GET"


class PaymentSummary(BaseModel):
    payment_id: int
    club_id: int
    amount: Decimal
    currency: str
    status: PaymentStatus


class FinalizationOut(BaseModel):
    status: FinalizationStatus
    message: Optional[str] = None
    membership_id: Optional[int] = None
    attempts: int = 1


class ConfirmationView(BaseModel):
    state: ConfirmationState
    message: str
    payment: Optional[PaymentSummary] = None
    finalization: Optional[FinalizationOut] = None
    redirect_to: Optional[str] = None
    actions: List[ViewAction] = Field(default_factory=list)


class CancellationView(BaseModel):
    state: Literal["CANCELLED"] = "CANCELLED"
    message: str
    club_id: Optional[int] = None
    draft_retained: bool = False
    actions: List[ViewAction] = Field(default_factory=list)


class FinalizationRecordOut(BaseModel):
    id: int
    payment_id: int
    user_id: int
    club_id: int
    draft_key: Optional[str]
    membership_id: Optional[int]
    status: FinalizationStatus
    message: Optional[str]
    attempts: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
