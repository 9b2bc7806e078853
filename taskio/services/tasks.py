"""Task service for CRUD operations."""

import logging
from datetime import date, datetime, time
from uuid import UUID

from sqlmodel import Session, select

from taskio.models.task import Task, TaskCreate, TaskUpdate
from taskio.services.task_query import SortOrder, TaskFilter, build_task_query

logger = logging.getLogger(__name__)


class PastDueDateError(Exception):
    """Raised when a task's due instant is not in the future."""
    pass


def combine_due_date(date_str: str, time_str: str) -> datetime:
    """Combine the calendar date and clock time strings into one instant."""
    return datetime.combine(date.fromisoformat(date_str), time.fromisoformat(time_str))


def ensure_future(due_date: datetime, now: datetime | None = None) -> None:
    """
    Raises:
        PastDueDateError: If due_date is not strictly after now
    """
    if due_date <= (now or datetime.utcnow()):
        raise PastDueDateError("Due date must be in the future")


def create_task(session: Session, user_id: UUID, task_data: TaskCreate) -> Task:
    """
    Create a new task for the specified user.

    Raises:
        PastDueDateError: If the due instant is not in the future
    """
    due_date = combine_due_date(task_data.date, task_data.time)
    ensure_future(due_date)

    task = Task(
        user_id=user_id,
        title=task_data.title,
        detail=task_data.detail,
        date=task_data.date,
        time=task_data.time,
        due_date=due_date,
        status=task_data.status.value,
    )
    session.add(task)
    session.commit()
    session.refresh(task)

    logger.info("Task created", extra={"task_id": str(task.id), "user_id": str(user_id)})
    return task


def get_user_tasks(
    session: Session,
    user_id: UUID,
    filters: TaskFilter | None = None,
    order: SortOrder = SortOrder.ASC,
) -> list[Task]:
    """Get the user's tasks matching the filters, sorted by due instant."""
    return list(session.exec(build_task_query(user_id, filters, order)).all())


def get_task_by_id(session: Session, user_id: UUID, task_id: UUID) -> Task | None:
    """Get a specific task owned by the user."""
    return session.exec(
        select(Task).where(Task.id == task_id, Task.user_id == user_id)
    ).first()


def update_task(session: Session, task: Task, task_data: TaskUpdate) -> Task:
    """
    Update a task with the provided data.

    When a new date or time is supplied, the due instant is recomputed and
    must be in the future. Other changes, such as marking an overdue task
    done, leave the schedule alone.

    Raises:
        PastDueDateError: If a rescheduled due instant is not in the future
    """
    update_data = task_data.model_dump(exclude_unset=True)
    if update_data.get("status") is not None:
        update_data["status"] = task_data.status.value

    if update_data.get("date") or update_data.get("time"):
        due_date = combine_due_date(
            update_data.get("date") or task.date,
            update_data.get("time") or task.time,
        )
        ensure_future(due_date)
        task.due_date = due_date

    for key, value in update_data.items():
        if key in ("title", "date", "time", "status") and value is None:
            continue
        setattr(task, key, value)

    session.add(task)
    session.commit()
    session.refresh(task)

    logger.info("Task updated", extra={"task_id": str(task.id), "user_id": str(task.user_id)})
    return task


def delete_task(session: Session, task: Task) -> None:
    """Delete a task."""
    task_id, user_id = task.id, task.user_id
    session.delete(task)
    session.commit()
    logger.info("Task deleted", extra={"task_id": str(task_id), "user_id": str(user_id)})
