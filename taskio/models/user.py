"""User entity model."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from pydantic import EmailStr, Field as PydanticField
from sqlmodel import Field, Relationship, SQLModel

from taskio.models.base import CamelModel

if TYPE_CHECKING:
    from taskio.models.task import Task

MINIMUM_AGE = 13


class User(SQLModel, table=True):
    """User database model."""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    hashed_password: str = Field(max_length=255)
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    age: int
    reset_password_token: str | None = Field(default=None, max_length=64, index=True)
    reset_password_expires: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    tasks: list["Task"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class UserSignup(CamelModel):
    """Schema for user registration."""

    first_name: str = PydanticField(min_length=1, max_length=100)
    last_name: str = PydanticField(min_length=1, max_length=100)
    age: int = PydanticField(ge=MINIMUM_AGE)
    email: EmailStr
    password: str = PydanticField(min_length=1, max_length=128)


class UserLogin(CamelModel):
    """Schema for user login."""

    email: str = PydanticField(min_length=1)
    password: str = PydanticField(min_length=1)


class ProfileUpdate(CamelModel):
    """Schema for profile update. All fields are required."""

    first_name: str = PydanticField(min_length=1, max_length=100)
    last_name: str = PydanticField(min_length=1, max_length=100)
    age: int = PydanticField(ge=MINIMUM_AGE)
    email: EmailStr


class PasswordConfirmation(CamelModel):
    """Schema for actions that re-verify the current password."""

    password: str = PydanticField(min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: str = PydanticField(min_length=1)


class ResetPasswordRequest(CamelModel):
    password: str = PydanticField(min_length=1)


class UserResponse(CamelModel):
    """Schema for user response (no password or reset token)."""

    id: UUID
    first_name: str
    last_name: str
    age: int
    email: str
    created_at: datetime


class AuthResponse(CamelModel):
    """Schema for signup and login responses."""

    message: str
    user_id: UUID


class ProfileUpdateResponse(CamelModel):
    message: str
    user: UserResponse


class MessageResponse(CamelModel):
    message: str
