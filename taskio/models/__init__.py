"""SQLModel entities and API schemas for Taskio."""

from taskio.models.task import Task, TaskStatus
from taskio.models.user import User

__all__ = [
    "User",
    "Task",
    "TaskStatus",
]
