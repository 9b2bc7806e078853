"""In-process login throttle.

Counts failed login attempts per email and locks the identity out for a
fixed window once the threshold is reached. State lives in process memory
only: one instance is created at application startup, injected into the
login handler, and cleared only by a restart.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import Lock

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_LOCKOUT = timedelta(minutes=15)


@dataclass
class ThrottleEntry:
    """Failed-attempt state for one identity."""

    failure_count: int = 0
    locked_until: datetime | None = None


class LoginThrottle:
    """Thread-safe failed-login counter with timed lockout.

    Sync endpoints run on a thread pool, so a single lock guards the table.
    Each operation on an entry happens entirely under the lock, which makes
    increment-then-lock one transition.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        lockout: timedelta = DEFAULT_LOCKOUT,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.max_attempts = max_attempts
        self.lockout = lockout
        self._clock = clock
        self._lock = Lock()
        self._entries: dict[str, ThrottleEntry] = {}

    def is_locked(self, identity: str) -> bool:
        """Return True while the identity's lockout window is still open."""
        with self._lock:
            entry = self._entries.get(identity)
            if entry is None or entry.locked_until is None:
                return False
            return entry.locked_until > self._clock()

    def record_failure(self, identity: str) -> ThrottleEntry:
        """Count a failed attempt, locking the identity at the threshold."""
        with self._lock:
            entry = self._entries.setdefault(identity, ThrottleEntry())
            entry.failure_count += 1
            if entry.failure_count >= self.max_attempts:
                entry.locked_until = self._clock() + self.lockout
                logger.warning(
                    "Login locked after repeated failures",
                    extra={"email": identity, "failure_count": entry.failure_count},
                )
            return ThrottleEntry(entry.failure_count, entry.locked_until)

    def record_success(self, identity: str) -> None:
        """Reset the failure counter and clear any stale lockout."""
        with self._lock:
            entry = self._entries.get(identity)
            if entry is None:
                return
            entry.failure_count = 0
            entry.locked_until = None

    def get_entry(self, identity: str) -> ThrottleEntry | None:
        """Return a snapshot of the identity's entry, if one exists."""
        with self._lock:
            entry = self._entries.get(identity)
            if entry is None:
                return None
            return ThrottleEntry(entry.failure_count, entry.locked_until)

    def reset(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._entries.clear()
