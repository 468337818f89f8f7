import dataclasses
from collections.abc import Callable

from .core.errors import ValidationError
from .core.models import TimeEntry
from .core.types import TaskId
from .db import RecordStore
from .events import Listener, Subscribers, TimeEntryAdded, TimeEntryDeleted
from .lib.converters import ENTRY_COLS, row_to_entry

__all__ = ["TimeEntryRepository"]


class TimeEntryRepository:
    """Owns the `time_entries` table, indexed by task id and by calendar date."""

    def __init__(self, store: RecordStore):
        self.store = store
        self.events = Subscribers()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    def _fetch(self, where: str, params: tuple[object, ...] = ()) -> list[TimeEntry]:
        with self.store.connect() as conn:
            rows = conn.execute(
                f"SELECT {ENTRY_COLS} FROM time_entries WHERE {where} ORDER BY id",  # noqa: S608
                params,
            ).fetchall()
        return [row_to_entry(row) for row in rows]

    def add(self, entry: TimeEntry) -> TimeEntry:
        if entry.id is not None:
            raise ValidationError("time entry ids are assigned by the store")
        if entry.duration <= 0:
            raise ValidationError(f"time entry duration must be positive, got {entry.duration}")
        with self.store.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO time_entries (task_id, start_time, end_time, duration, date) VALUES (?, ?, ?, ?, ?)",
                (entry.task_id, entry.start_time, entry.end_time, entry.duration, entry.date),
            )
            entry = dataclasses.replace(entry, id=cursor.lastrowid)
        self.events.emit(TimeEntryAdded(entry))
        return entry

    def get_by_id(self, entry_id: int) -> TimeEntry | None:
        entries = self._fetch("id = ?", (entry_id,))
        return entries[0] if entries else None

    def delete(self, entry_id: int) -> bool:
        """Delete an entry. Missing ids succeed without emitting anything."""
        with self.store.connect() as conn:
            row = conn.execute("SELECT task_id FROM time_entries WHERE id = ?", (entry_id,)).fetchone()
            if row:
                conn.execute("DELETE FROM time_entries WHERE id = ?", (entry_id,))
        if row:
            self.events.emit(TimeEntryDeleted(entry_id, row[0]))
        return True

    def get_for_task(self, task_id: TaskId) -> list[TimeEntry]:
        return self._fetch("task_id = ?", (task_id,))

    def get_by_date_range(self, start_date: str, end_date: str) -> list[TimeEntry]:
        """Entries whose `date` lies in [start_date, end_date]; YYYY-MM-DD compares as text."""
        return self._fetch("date >= ? AND date <= ?", (start_date, end_date))

    def total_for_task(self, task_id: TaskId) -> int:
        with self.store.connect() as conn:
            return conn.execute(
                "SELECT COALESCE(SUM(duration), 0) FROM time_entries WHERE task_id = ?",
                (task_id,),
            ).fetchone()[0]
