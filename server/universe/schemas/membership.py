from __future__ import annotations

import re
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from universe.schemas.entities import Membership

FACULTIES = (
    "Faculty of Commerce & Management Studies",
    "Faculty of Computing and Technology",
    "Faculty of Humanities",
    "Faculty of Medicine",
    "Faculty of Science",
    "Faculty of Social Sciences",
)

ACADEMIC_YEARS = ("1st Year", "2nd Year", "3rd Year", "4th Year")

SKILL_CATALOG = (
    "Leadership",
    "Event Planning",
    "Public Speaking",
    "Graphic Design",
    "Video Editing",
    "Photography",
    "Social Media Management",
    "Content Writing",
    "Web Development",
    "Marketing",
    "Finance Management",
    "Team Coordination",
)

MIN_AGE = 16
MAX_AGE = 80
MAX_SKILLS = 10

FULL_NAME_PATTERN = re.compile(r"^[A-Za-z\s'-]+$")
# +94XXXXXXXXX, 94XXXXXXXXX or 0XXXXXXXXX
CONTACT_NUMBER_PATTERN = re.compile(r"^(?:\+94|94|0)\d{9}$")

# Validation and error reporting order.
APPLICATION_FIELDS = (
    "full_name",
    "address",
    "contact_number",
    "birthday",
    "faculty",
    "year",
    "skills",
)

FIELD_LABELS = {
    "full_name": "Full name",
    "address": "Address",
    "contact_number": "Contact number",
    "birthday": "Birthday",
    "faculty": "Faculty",
    "year": "Year",
    "skills": "Skills",
}


def age_on(birthday: date, today: date) -> int:
    years = today.year - birthday.year
    if (today.month, today.day) < (birthday.month, birthday.day):
        years -= 1
    return years


def _required_text(value: Optional[str], field: str) -> str:
    if value is None:
        raise ValueError(f"{FIELD_LABELS[field]} is required")
    if not isinstance(value, str):
        raise ValueError(f"{FIELD_LABELS[field]} must be text")
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{FIELD_LABELS[field]} is required")
    return stripped


class MembershipApplication(BaseModel):
    full_name: str
    address: str
    contact_number: str
    birthday: date
    faculty: str
    year: str
    skills: List[str]

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("full_name", mode="before")
    @classmethod
    def validate_full_name(cls, value: Optional[str]) -> str:
        name = _required_text(value, "full_name")
        if not 2 <= len(name) <= 100:
            raise ValueError("Full name must be between 2 and 100 characters")
        if not FULL_NAME_PATTERN.match(name):
            raise ValueError("Full name may only contain letters, spaces, hyphens and apostrophes")
        return name

    @field_validator("address", mode="before")
    @classmethod
    def validate_address(cls, value: Optional[str]) -> str:
        address = _required_text(value, "address")
        if not 5 <= len(address) <= 200:
            raise ValueError("Address must be between 5 and 200 characters")
        return address

    @field_validator("contact_number", mode="before")
    @classmethod
    def validate_contact_number(cls, value: Optional[str]) -> str:
        number = _required_text(value, "contact_number")
        if not CONTACT_NUMBER_PATTERN.match(number):
            raise ValueError("Please enter a valid contact number (e.g., 0771234567 or +94771234567)")
        return number

    @field_validator("birthday", mode="before")
    @classmethod
    def parse_birthday(cls, value: object) -> date:
        if isinstance(value, date):
            return value
        text = _required_text(value, "birthday")
        try:
            return date.fromisoformat(text)
        except ValueError as exc:
            raise ValueError("Birthday must be a valid date (YYYY-MM-DD)") from exc

    @field_validator("birthday")
    @classmethod
    def validate_birthday(cls, value: date) -> date:
        today = date.today()
        if value > today:
            raise ValueError("Birthday cannot be in the future")
        age = age_on(value, today)
        if age < MIN_AGE:
            raise ValueError(f"You must be at least {MIN_AGE} years old to join a club")
        if age > MAX_AGE:
            raise ValueError(f"Age cannot be more than {MAX_AGE} years")
        return value

    @field_validator("faculty", mode="before")
    @classmethod
    def validate_faculty(cls, value: Optional[str]) -> str:
        faculty = _required_text(value, "faculty")
        if faculty not in FACULTIES:
            raise ValueError("Please select a valid faculty")
        return faculty

    @field_validator("year", mode="before")
    @classmethod
    def validate_year(cls, value: Optional[str]) -> str:
        year = _required_text(value, "year")
        if year not in ACADEMIC_YEARS:
            raise ValueError("Please select a valid year")
        return year

    @field_validator("skills", mode="before")
    @classmethod
    def validate_skills(cls, value: object) -> List[str]:
        if value is None:
            raise ValueError("Please select at least one skill")
        if not isinstance(value, (list, tuple)):
            raise ValueError("Skills must be a list of selections")
        # Counted as submitted, before duplicates collapse.
        if len(value) > MAX_SKILLS:
            raise ValueError(f"You can select at most {MAX_SKILLS} skills")
        skills: List[str] = []
        for item in value:
            if not isinstance(item, str):
                raise ValueError("Skills must be a list of selections")
            skill = item.strip()
            if skill not in SKILL_CATALOG:
                raise ValueError(f"Unknown skill: {skill}")
            if skill not in skills:
                skills.append(skill)
        if not skills:
            raise ValueError("Please select at least one skill")
        return skills


class FieldError(BaseModel):
    field: str
    message: str


class ApplicationCheckResponse(BaseModel):
    valid: bool = True
    application: MembershipApplication


class JoinState:
    JOINED = "JOINED"
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
    FINALIZING = "FINALIZING"
    FINALIZATION_FAILED = "FINALIZATION_FAILED"


class JoinResponse(BaseModel):
    state: str
    message: str
    membership: Optional[Membership] = None
    checkout_url: Optional[str] = None
    draft_key: Optional[str] = None
    payment_id: Optional[int] = None


class DraftOut(BaseModel):
    draft_key: str
    club_id: int
    payment_id: Optional[int] = None
    application: MembershipApplication


class MembershipListResponse(BaseModel):
    items: List[Membership] = Field(default_factory=list)
    total: int = 0
