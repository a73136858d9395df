from pydantic import BaseModel, EmailStr, Field

from universe.auth.roles import Role
from universe.schemas.entities import UserOut


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: Role = Role.STUDENT

    def to_backend(self) -> dict:
        return {
            "email": self.email,
            "password": self.password,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role.value,
        }


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class WhoAmIResponse(BaseModel):
    id: int
    email: str
    role: Role
    full_name: str | None = None
