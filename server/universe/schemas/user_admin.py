from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from universe.auth.roles import Role


class ClubAdminCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    def to_backend(self) -> dict:
        return {
            "email": self.email,
            "password": self.password,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": Role.CLUB_ADMIN.value,
        }


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    role: Optional[Role] = None

    def to_backend(self) -> dict:
        data = self.model_dump(exclude_unset=True, mode="json")
        names = {"first_name": "firstName", "last_name": "lastName"}
        return {names.get(key, key): value for key, value in data.items()}
