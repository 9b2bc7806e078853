"""Task query construction and status aggregation.

Translates the optional list filters into SQL clauses, always scoped to the
owning user, and computes per-status counts for the stats endpoint.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import literal_column
from sqlmodel import Session, col, func, select

from taskio.models.task import Task

UNSET_STATUS = "unset"


class SortOrder(str, Enum):
    """Sort direction for task listings, applied to the due instant."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class TaskFilter:
    """Optional filters for listing tasks; None means no constraint."""

    status: str | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    title: str | None = None


def sort_order(order: str | None) -> SortOrder:
    """Only an explicit "desc" sorts descending; anything else is ascending."""
    if order is not None and order.strip().lower() == SortOrder.DESC.value:
        return SortOrder.DESC
    return SortOrder.ASC


def _substring_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def build_task_filter(owner_id: UUID, filters: TaskFilter | None = None) -> list[Any]:
    """
    Build the WHERE clauses for a task listing.

    The owner clause always comes first and cannot be overridden. Status is
    matched verbatim, so an unknown value yields no rows rather than an error.
    Date bounds are inclusive. Title matches case-insensitive substrings.
    """
    f = filters or TaskFilter()
    clauses: list[Any] = [col(Task.user_id) == owner_id]

    if f.status:
        clauses.append(col(Task.status) == f.status)
    if f.from_date is not None:
        clauses.append(col(Task.due_date) >= f.from_date)
    if f.to_date is not None:
        clauses.append(col(Task.due_date) <= f.to_date)
    if f.title:
        clauses.append(col(Task.title).ilike(_substring_pattern(f.title), escape="\\"))

    return clauses


def build_task_query(
    owner_id: UUID, filters: TaskFilter | None = None, order: SortOrder = SortOrder.ASC
):
    """Return a SELECT for the owner's tasks, filtered and sorted by due instant."""
    due = col(Task.due_date)
    return (
        select(Task)
        .where(*build_task_filter(owner_id, filters))
        .order_by(due.desc() if order is SortOrder.DESC else due.asc())
    )


def task_stats(session: Session, owner_id: UUID) -> tuple[int, list[dict[str, Any]]]:
    """
    Aggregate the owner's tasks by status.

    Tasks without a status are counted under "unset". Groups are sorted by
    count descending, then by status name. The total comes from its own
    count query rather than the sum of the groups.

    Returns:
        tuple[int, list[dict]]: total and [{"status", "count"}] pairs
    """
    # Inlined literal so SELECT and GROUP BY render the identical expression
    status_label = func.coalesce(col(Task.status), literal_column(f"'{UNSET_STATUS}'")).label("status")
    count = func.count().label("count")

    rows = session.exec(
        select(status_label, count)
        .where(col(Task.user_id) == owner_id)
        .group_by(status_label)
        .order_by(count.desc(), status_label)
    ).all()

    total = session.exec(
        select(func.count()).select_from(Task).where(col(Task.user_id) == owner_id)
    ).one()

    return total, [{"status": status, "count": n} for status, n in rows]
