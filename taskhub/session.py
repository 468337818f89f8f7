import dataclasses
import logging
from collections.abc import Callable
from datetime import datetime

from .core.errors import TaskNotFoundError
from .core.models import SessionState, TimeEntry
from .core.types import TaskId
from .db import RecordStore
from .lib import clock
from .lib.dates import date_of, ms_between, parse_iso, to_iso, truncate_ms
from .tasks import TaskRepository
from .time_entries import TimeEntryRepository

__all__ = ["DEFAULT_MIN_DURATION_MS", "SESSION_KEY", "TrackingSession"]

logger = logging.getLogger(__name__)

SESSION_KEY = "tracking_session"
DEFAULT_MIN_DURATION_MS = 5000


class TrackingSession:
    """Timer over at most one task at a time.

    Idle when `state` is None, otherwise Tracking(task_id, start_time). The
    open interval is written to the store on every transition so a restarted
    process resumes it with the original start time.
    """

    def __init__(
        self,
        tasks: TaskRepository,
        entries: TimeEntryRepository,
        store: RecordStore,
        now: Callable[[], datetime] = clock.now,
        min_duration_ms: int = DEFAULT_MIN_DURATION_MS,
    ):
        self.tasks = tasks
        self.entries = entries
        self.store = store
        self._now = now
        self.min_duration_ms = min_duration_ms
        self.state: SessionState | None = None
        self._load()

    def _load(self) -> None:
        raw = self.store.get_value(SESSION_KEY)
        if raw is None:
            return
        try:
            if not isinstance(raw, dict):
                raise TypeError(f"expected an object, got {type(raw).__name__}")
            task_id = raw["task_id"]
            if isinstance(task_id, bool) or not isinstance(task_id, (int, str)):
                raise TypeError(f"invalid task id {task_id!r}")
            self.state = SessionState(
                task_id=task_id,
                start_time=parse_iso(raw["start_time"]),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("discarding unreadable tracking state %r: %s", raw, e)
            self.store.delete_value(SESSION_KEY)
            return
        logger.info("resumed tracking task %s since %s", self.state.task_id, raw["start_time"])

    def _persist(self) -> None:
        if self.state is None:
            self.store.delete_value(SESSION_KEY)
            return
        self.store.set_value(
            SESSION_KEY,
            {"task_id": self.state.task_id, "start_time": to_iso(self.state.start_time)},
        )

    @property
    def active_task_id(self) -> TaskId | None:
        return self.state.task_id if self.state else None

    def is_tracking(self, task_id: TaskId | None = None) -> bool:
        if self.state is None:
            return False
        return task_id is None or self.state.task_id == task_id

    def elapsed_ms(self) -> int:
        if self.state is None:
            return 0
        return max(0, ms_between(self.state.start_time, self._now()))

    def start(self, task_id: TaskId) -> SessionState:
        if self.tasks.get_by_id(task_id) is None:
            raise TaskNotFoundError(task_id)
        if self.state is not None:
            if self.state.task_id == task_id:
                return self.state
            self.stop()
        self.state = SessionState(task_id=task_id, start_time=truncate_ms(self._now()))
        self._persist()
        return self.state

    def stop(self) -> TimeEntry | None:
        """Close the open interval.

        Intervals shorter than `min_duration_ms`, and empty ones, are dropped.
        The entry is written before the session goes Idle, so a failed write
        leaves the interval open. Returns the persisted entry, if any.
        """
        if self.state is None:
            return None
        state = self.state
        end = truncate_ms(self._now())
        duration = ms_between(state.start_time, end)

        if duration < max(self.min_duration_ms, 1):
            self.state = None
            self._persist()
            return None
        entry = self.entries.add(
            TimeEntry(
                task_id=state.task_id,
                start_time=to_iso(state.start_time),
                end_time=to_iso(end),
                duration=duration,
                date=date_of(state.start_time),
            )
        )
        self.state = None
        self._persist()
        self.recompute_total(state.task_id)
        return entry

    def toggle(self, task_id: TaskId) -> SessionState | TimeEntry | None:
        """Stop if `task_id` is the task being timed, otherwise start it."""
        if self.is_tracking(task_id):
            return self.stop()
        return self.start(task_id)

    def recompute_total(self, task_id: TaskId) -> int:
        """Write the sum of the task's entries back to `Task.time_spent`."""
        total = self.entries.total_for_task(task_id)
        task = self.tasks.get_by_id(task_id)
        if task is not None and task.time_spent != total:
            self.tasks.save(dataclasses.replace(task, time_spent=total))
        return total

    def delete_entry(self, entry_id: int) -> bool:
        entry = self.entries.get_by_id(entry_id)
        result = self.entries.delete(entry_id)
        if entry is not None:
            self.recompute_total(entry.task_id)
        return result
