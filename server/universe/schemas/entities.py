"""Typed views of the UniVerse backend payloads.

The backend speaks camelCase JSON; every model here accepts either the alias
or the Python field name and serialises back out in camelCase.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from universe.auth.roles import Role


class BackendModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"


class UserOut(BackendModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Role = Role.STUDENT

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class Club(BackendModel):
    id: int
    name: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    admin_id: Optional[int] = None
    membership_fee: Optional[Decimal] = None

    @property
    def is_free(self) -> bool:
        return self.membership_fee is None or self.membership_fee <= 0


class Event(BackendModel):
    id: int
    title: str
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    location: Optional[str] = None
    club_id: Optional[int] = None
    image_url: Optional[str] = None


class Announcement(BackendModel):
    id: int
    title: str
    content: str
    club_id: Optional[int] = None
    created_by: Optional[int] = None
    is_published: bool = False
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


UNSETTLED_PAYMENT_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PROCESSING)


class Payment(BackendModel):
    id: int
    user_id: int
    club_id: int
    amount: Decimal
    currency: str = "LKR"
    status: PaymentStatus
    stripe_session_id: Optional[str] = None
    error_message: Optional[str] = None
    paid_at: Optional[datetime] = None


class CheckoutSession(BackendModel):
    session_id: str
    session_url: str
    payment_id: Optional[int] = None


class Membership(BackendModel):
    id: int
    user_id: int
    club_id: int
    status: Optional[str] = None
    full_name: Optional[str] = None
    contact_number: Optional[str] = None
    address: Optional[str] = None
    birthday: Optional[date] = None
    faculty: Optional[str] = None
    year: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    joined_at: Optional[datetime] = None


class UploadedFile(BackendModel):
    file_name: str
    file_path: str
