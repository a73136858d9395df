from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelInput(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_backend(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class ClubCreate(CamelInput):
    name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    admin_id: Optional[int] = None
    membership_fee: Optional[Decimal] = Field(default=None, ge=0)


class ClubUpdate(CamelInput):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    admin_id: Optional[int] = None
    membership_fee: Optional[Decimal] = Field(default=None, ge=0)


class EventCreate(CamelInput):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    event_date: datetime
    location: Optional[str] = None
    club_id: int
    image_url: Optional[str] = None


class EventUpdate(CamelInput):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    location: Optional[str] = None
    image_url: Optional[str] = None


class AnnouncementCreate(CamelInput):
    title: str = Field(..., max_length=200)
    content: str
    club_id: int

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class AnnouncementUpdate(CamelInput):
    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = None
