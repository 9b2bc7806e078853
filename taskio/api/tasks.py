"""Task API endpoints."""

from datetime import date, datetime, timezone
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from taskio.api.deps import CurrentIdentity, DBSession
from taskio.models.task import (
    StatusCount,
    TaskCreate,
    TaskMutationResponse,
    TaskResponse,
    TaskStatsResponse,
    TaskUpdate,
)
from taskio.models.user import MessageResponse
from taskio.services.task_query import TaskFilter, sort_order, task_stats
from taskio.services.tasks import (
    PastDueDateError,
    create_task,
    delete_task,
    get_task_by_id,
    get_user_tasks,
    update_task,
)

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


def _parse_date_bound(name: str, value: str | None) -> datetime | None:
    """
    Parse an ISO8601 date or datetime query value.
    A bare date is taken as midnight of that day.
    """
    if value is None or not value.strip():
        return None
    s = value.strip()
    try:
        parsed = datetime.fromisoformat(s)
    except ValueError:
        try:
            d = date.fromisoformat(s)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{name} must be an ISO8601 date or datetime",
            )
        return datetime(d.year, d.month, d.day)
    if parsed.tzinfo is not None:
        # Due dates are stored as naive UTC
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _task_not_found() -> HTTPException:
    # Tasks owned by someone else are reported exactly like missing ones
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Task not found",
    )


@router.post("", response_model=TaskMutationResponse, status_code=status.HTTP_201_CREATED)
def create_task_endpoint(
    session: DBSession,
    identity: CurrentIdentity,
    task_data: TaskCreate,
) -> TaskMutationResponse:
    """Create a new task for the authenticated user."""
    try:
        task = create_task(session, identity.user_id, task_data)
    except PastDueDateError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return TaskMutationResponse(message="Task created", task=TaskResponse.model_validate(task))


@router.get("", response_model=list[TaskResponse])
def list_tasks_endpoint(
    session: DBSession,
    identity: CurrentIdentity,
    task_status: str | None = Query(default=None, alias="status", description="Exact status match"),
    from_date: str | None = Query(default=None, alias="fromDate", description="Inclusive lower bound on due date"),
    to_date: str | None = Query(default=None, alias="toDate", description="Inclusive upper bound on due date"),
    order: str | None = Query(default=None, description="'desc' for latest due first, ascending otherwise"),
    title: str | None = Query(default=None, description="Case-insensitive substring of the title"),
) -> list[TaskResponse]:
    """List the authenticated user's tasks, sorted by due date."""
    filters = TaskFilter(
        status=task_status or None,
        from_date=_parse_date_bound("fromDate", from_date),
        to_date=_parse_date_bound("toDate", to_date),
        title=title.strip() if title and title.strip() else None,
    )
    tasks = get_user_tasks(session, identity.user_id, filters, sort_order(order))
    return [TaskResponse.model_validate(t) for t in tasks]


@router.get("/stats", response_model=TaskStatsResponse)
def task_stats_endpoint(session: DBSession, identity: CurrentIdentity) -> TaskStatsResponse:
    """Count the authenticated user's tasks, overall and per status."""
    total, groups = task_stats(session, identity.user_id)
    return TaskStatsResponse(
        total=total,
        by_status=[StatusCount(**g) for g in groups],
    )


@router.get("/{task_id}", response_model=TaskResponse)
def get_task_endpoint(
    session: DBSession,
    identity: CurrentIdentity,
    task_id: UUID,
) -> TaskResponse:
    """Get a specific task by ID."""
    task = get_task_by_id(session, identity.user_id, task_id)
    if task is None:
        raise _task_not_found()
    return TaskResponse.model_validate(task)


@router.put("/{task_id}", response_model=TaskMutationResponse)
def update_task_endpoint(
    session: DBSession,
    identity: CurrentIdentity,
    task_id: UUID,
    task_data: TaskUpdate,
) -> TaskMutationResponse:
    """Update a task."""
    task = get_task_by_id(session, identity.user_id, task_id)
    if task is None:
        raise _task_not_found()

    try:
        updated_task = update_task(session, task, task_data)
    except PastDueDateError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return TaskMutationResponse(message="Task updated", task=TaskResponse.model_validate(updated_task))


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task_endpoint(
    session: DBSession,
    identity: CurrentIdentity,
    task_id: UUID,
) -> MessageResponse:
    """Delete a task."""
    task = get_task_by_id(session, identity.user_id, task_id)
    if task is None:
        raise _task_not_found()

    delete_task(session, task)
    return MessageResponse(message="Task deleted")
