from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """Authenticated identity attached to a request"""
    user_id: str
    name: str
    email: str
    role: UserRole = UserRole.USER
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_document(cls, data: dict) -> "User":
        return cls(
            user_id=data["id"],
            name=data.get("name", ""),
            email=data.get("email", ""),
            role=data.get("role", UserRole.USER.value),
            is_active=data.get("isActive", True),
        )


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


def public_user(data: dict) -> dict:
    """User document as returned by the API (never includes the password hash)"""
    return {
        "id": data["id"],
        "name": data.get("name"),
        "email": data.get("email"),
        "role": data.get("role", UserRole.USER.value),
        "avatar": data.get("avatar"),
        "bio": data.get("bio"),
        "isActive": data.get("isActive", True),
        "createdAt": data.get("createdAt"),
    }

