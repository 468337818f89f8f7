import dataclasses
import random
from collections.abc import Callable, Iterable
from datetime import date

from .core.models import Task
from .core.types import TaskId
from .db import RecordStore
from .events import Listener, Subscribers, TaskChanged, TaskDeleted, TasksReplaced
from .lib import clock
from .lib.converters import TASK_COLS, normalize_priority, row_to_task, task_to_row

__all__ = ["TaskRepository"]

_PLACEHOLDERS = ", ".join("?" for _ in TASK_COLS.split(","))
_INDEXED = {"completed", "priority", "category", "due_date", "kanban_column"}


class TaskRepository:
    """Owns the `tasks` table.

    Assigns ids and creation dates on first save and notifies subscribers
    after every committed write. Records leave the repository as frozen
    copies; callers change a task by saving a modified copy.
    """

    def __init__(
        self,
        store: RecordStore,
        now_ms: Callable[[], int] = clock.now_ms,
        today: Callable[[], date] = clock.today,
    ):
        self.store = store
        self._now_ms = now_ms
        self._today = today
        self._last_id = 0
        self.events = Subscribers()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    # ── reads ────────────────────────────────────────────────────────────────

    def get_all(self) -> list[Task]:
        with self.store.connect() as conn:
            rows = conn.execute(f"SELECT {TASK_COLS} FROM tasks ORDER BY rowid").fetchall()  # noqa: S608
        return [row_to_task(row) for row in rows]

    def get_by_id(self, task_id: TaskId) -> Task | None:
        with self.store.connect() as conn:
            row = conn.execute(
                f"SELECT {TASK_COLS} FROM tasks WHERE id = ?",  # noqa: S608
                (task_id,),
            ).fetchone()
        return row_to_task(row) if row else None

    def query(self, **filters: object) -> list[Task]:
        """Lookup by indexed fields, e.g. `query(completed=False, priority="high")`."""
        unknown = set(filters) - _INDEXED
        if unknown:
            raise ValueError(f"not an indexed field: {', '.join(sorted(unknown))}")
        if not filters:
            return self.get_all()
        where = " AND ".join(f"{k} = ?" for k in filters)
        with self.store.connect() as conn:
            rows = conn.execute(
                f"SELECT {TASK_COLS} FROM tasks WHERE {where} ORDER BY rowid",  # noqa: S608
                tuple(filters.values()),
            ).fetchall()
        return [row_to_task(row) for row in rows]

    def count(self) -> int:
        with self.store.connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM tasks").fetchone()[0]

    # ── writes ───────────────────────────────────────────────────────────────

    def _next_id(self) -> int:
        candidate = max(self._now_ms(), self._last_id + 1)
        self._last_id = candidate
        return candidate

    def _with_defaults(self, task: Task, task_id: TaskId) -> Task:
        return dataclasses.replace(
            task,
            id=task_id,
            created_at=task.created_at or str(self._today()),
            priority=normalize_priority(task.priority),
        )

    def save(self, task: Task) -> Task:
        """Insert or fully overwrite the record with `task.id`."""
        task = self._with_defaults(task, task.id if task.id is not None else self._next_id())
        with self.store.connect() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO tasks ({TASK_COLS}) VALUES ({_PLACEHOLDERS})",  # noqa: S608
                task_to_row(task),
            )
        self.events.emit(TaskChanged(task.id))
        return task

    def delete(self, task_id: TaskId) -> bool:
        with self.store.connect() as conn:
            conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        self.events.emit(TaskDeleted(task_id))
        return True

    def replace_all(self, tasks: Iterable[Task]) -> bool:
        """Swap the whole table for `tasks` in one transaction.

        If any insert fails (duplicate ids in the batch, store error) nothing
        is cleared and StorageError is raised.
        """
        tasks = list(tasks)
        used = {t.id for t in tasks if t.id is not None}
        base = self._now_ms()
        batch: list[Task] = []
        for task in tasks:
            task_id = task.id
            if task_id is None:
                task_id = base + random.randint(0, 999)
                while task_id in used:
                    task_id += 1
                used.add(task_id)
            batch.append(self._with_defaults(task, task_id))

        with self.store.connect() as conn:
            conn.execute("DELETE FROM tasks")
            conn.executemany(
                f"INSERT INTO tasks ({TASK_COLS}) VALUES ({_PLACEHOLDERS})",  # noqa: S608
                [task_to_row(t) for t in batch],
            )
        self.events.emit(TasksReplaced(len(batch)))
        return True
