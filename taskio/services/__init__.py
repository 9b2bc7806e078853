"""Services module.

Services:
- auth.py: Users, password hashing, session tokens and password resets
- throttle.py: In-process failed-login lockout
- tasks.py: Task CRUD with due-date validation
- task_query.py: Task list filtering, sorting and status aggregation
- email.py: Outbound email delivery
"""

from taskio.services.task_query import SortOrder, TaskFilter
from taskio.services.throttle import LoginThrottle

__all__ = [
    "LoginThrottle",
    "SortOrder",
    "TaskFilter",
]
