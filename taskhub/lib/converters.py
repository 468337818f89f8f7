import json
import math
from typing import Any, cast

from taskhub.core.models import Task, TimeEntry
from taskhub.core.types import PRIORITIES, Priority, TaskId

TaskRow = tuple[object, ...]
EntryRow = tuple[object, ...]

# sqlite INTEGER is a signed 64-bit value
_MAX_ID = 2**63 - 1

TASK_COLS = "id, title, completed, priority, category, due_date, created_at, kanban_column, time_spent, archived, description, extra"
ENTRY_COLS = "id, task_id, start_time, end_time, duration, date"

_DICT_FIELDS = {
    "id": "id",
    "title": "title",
    "completed": "completed",
    "priority": "priority",
    "category": "category",
    "dueDate": "due_date",
    "createdAt": "created_at",
    "kanbanColumn": "kanban_column",
    "timeSpent": "time_spent",
    "archived": "archived",
    "description": "description",
}


def normalize_priority(val: object) -> Priority:
    if isinstance(val, str) and val.lower() in PRIORITIES:
        return cast(Priority, val.lower())
    return "unset"


def coerce_task_id(val: object) -> TaskId:
    """Task ids are ints or strings; numeric strings and integral floats become ints."""
    if isinstance(val, bool):
        raise ValueError(f"invalid task id {val!r}")
    if isinstance(val, float) and val.is_integer():
        val = int(val)
    elif isinstance(val, str) and val.strip():
        ref = val.strip()
        if not ref.isdigit():
            return ref
        val = int(ref)
    if isinstance(val, int):
        if not -_MAX_ID - 1 <= val <= _MAX_ID:
            raise ValueError(f"task id {val} does not fit a 64-bit integer")
        return val
    raise ValueError(f"invalid task id {val!r}")


def row_to_task(row: TaskRow) -> Task:
    """
    Converts a raw database row from tasks table into a Task object.
    Expected row format: (id, title, completed, priority, category, due_date, created_at, kanban_column, time_spent, archived, description, extra)
    """
    extra = json.loads(cast(str, row[11])) if row[11] else {}
    return Task(
        id=cast(TaskId, row[0]),
        title=cast(str, row[1]),
        completed=bool(row[2]),
        priority=normalize_priority(row[3]),
        category=cast(str, row[4]),
        due_date=cast(str, row[5]) if row[5] is not None else None,
        created_at=cast(str, row[6]),
        kanban_column=cast(str, row[7]) if row[7] is not None else None,
        time_spent=cast(int, row[8]) if row[8] is not None else None,
        archived=bool(row[9]) if row[9] is not None else None,
        description=cast(str, row[10]) if row[10] is not None else None,
        extra=extra if isinstance(extra, dict) else {},
    )


def task_to_row(task: Task) -> TaskRow:
    return (
        task.id,
        task.title,
        task.completed,
        task.priority,
        task.category,
        task.due_date,
        task.created_at,
        task.kanban_column,
        task.time_spent,
        task.archived,
        task.description,
        json.dumps(task.extra, default=str),
    )


def row_to_entry(row: EntryRow) -> TimeEntry:
    """Expected row format: (id, task_id, start_time, end_time, duration, date)"""
    return TimeEntry(
        id=cast(int, row[0]),
        task_id=cast(TaskId, row[1]),
        start_time=cast(str, row[2]),
        end_time=cast(str, row[3]),
        duration=cast(int, row[4]),
        date=cast(str, row[5]),
    )


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    val = data.get(key)
    if val is None or val == "":
        return None
    if not isinstance(val, str):
        raise ValueError(f"{key} must be a string, got {type(val).__name__}")
    return val


def task_from_dict(data: object) -> Task:
    """Build a Task from a camelCase record as stored by the legacy flat list.

    Keys the Task does not model are kept in `extra`.
    """
    if not isinstance(data, dict):
        raise ValueError(f"task record must be an object, got {type(data).__name__}")
    title = data.get("title", "")
    if not isinstance(title, str):
        raise ValueError(f"title must be a string, got {type(title).__name__}")
    raw_id = data.get("id")
    time_spent = data.get("timeSpent")
    if time_spent is not None and (
        isinstance(time_spent, bool) or not isinstance(time_spent, (int, float))
    ):
        raise ValueError(f"timeSpent must be a number, got {type(time_spent).__name__}")
    if time_spent is not None and not math.isfinite(time_spent):
        raise ValueError(f"timeSpent must be finite, got {time_spent}")
    category = data.get("category")
    archived = data.get("archived")
    return Task(
        id=coerce_task_id(raw_id) if raw_id not in (None, "", 0) else None,
        title=title,
        completed=bool(data.get("completed", False)),
        priority=normalize_priority(data.get("priority")),
        category=str(category) if category else "none",
        due_date=_optional_str(data, "dueDate"),
        created_at=_optional_str(data, "createdAt"),
        kanban_column=_optional_str(data, "kanbanColumn"),
        time_spent=int(time_spent) if time_spent is not None else None,
        archived=bool(archived) if archived is not None else None,
        description=_optional_str(data, "description"),
        extra={k: v for k, v in data.items() if k not in _DICT_FIELDS},
    )


def task_to_dict(task: Task) -> dict[str, Any]:
    """Inverse of `task_from_dict`; `None` fields are omitted."""
    out: dict[str, Any] = dict(task.extra)
    for key, field in _DICT_FIELDS.items():
        val = getattr(task, field)
        if val is not None:
            out[key] = val
    return out
