"""Task entity model."""

import re
from datetime import date as date_type, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from pydantic import Field as PydanticField, field_validator
from sqlmodel import Field, Relationship, SQLModel

from taskio.models.base import CamelModel

if TYPE_CHECKING:
    from taskio.models.user import User

# HH:mm with optional :ss, 24-hour clock
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(:[0-5]\d)?$")


class TaskStatus(str, Enum):
    """Task status values. Any status may change to any other."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class Task(SQLModel, table=True):
    """Task database model."""

    __tablename__ = "tasks"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    title: str = Field(max_length=100)
    detail: str | None = Field(default=None, max_length=500)
    date: str = Field(max_length=10)
    time: str = Field(max_length=8)
    # Derived from date + time, kept for range queries and sorting
    due_date: datetime = Field(index=True)
    status: str | None = Field(default=TaskStatus.TODO.value, max_length=20, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    user: "User" = Relationship(back_populates="tasks")


def _validate_date(value: str | None) -> str | None:
    if value is None:
        return value
    s = value.strip()
    try:
        date_type.fromisoformat(s)
    except ValueError as e:
        raise ValueError("date must be a valid date (YYYY-MM-DD)") from e
    return s


def _validate_time(value: str | None) -> str | None:
    if value is None:
        return value
    s = value.strip()
    if not TIME_PATTERN.match(s):
        raise ValueError("time must be in HH:mm format")
    return s


class TaskCreate(CamelModel):
    """Schema for task creation."""

    title: str = PydanticField(min_length=1, max_length=100)
    detail: str | None = PydanticField(default=None, max_length=500)
    date: str
    time: str
    status: TaskStatus

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("title is required")
        return s

    @field_validator("date")
    @classmethod
    def check_date(cls, v: str) -> str:
        return _validate_date(v)

    @field_validator("time")
    @classmethod
    def check_time(cls, v: str) -> str:
        return _validate_time(v)


class TaskUpdate(CamelModel):
    """Schema for task update. Omitted fields keep their current value."""

    title: str | None = PydanticField(default=None, min_length=1, max_length=100)
    detail: str | None = PydanticField(default=None, max_length=500)
    date: str | None = None
    time: str | None = None
    status: TaskStatus | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        if v is None:
            return v
        s = v.strip()
        if not s:
            raise ValueError("title cannot be empty")
        return s

    @field_validator("date")
    @classmethod
    def check_date(cls, v: str | None) -> str | None:
        return _validate_date(v)

    @field_validator("time")
    @classmethod
    def check_time(cls, v: str | None) -> str | None:
        return _validate_time(v)


class TaskResponse(CamelModel):
    """Schema for task response."""

    id: UUID
    user_id: UUID
    title: str
    detail: str | None
    date: str
    time: str
    due_date: datetime
    status: str | None
    created_at: datetime


class TaskMutationResponse(CamelModel):
    """Schema for create/update responses."""

    message: str
    task: TaskResponse


class StatusCount(CamelModel):
    status: str
    count: int


class TaskStatsResponse(CamelModel):
    """Schema for task statistics."""

    total: int
    by_status: list[StatusCount]
