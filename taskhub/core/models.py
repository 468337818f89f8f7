import dataclasses
from datetime import datetime
from typing import Any

from .types import Priority, TaskId


@dataclasses.dataclass(frozen=True)
class Task:
    title: str
    id: TaskId | None = None
    completed: bool = False
    priority: Priority = "unset"
    category: str = "none"
    due_date: str | None = None
    created_at: str | None = None
    kanban_column: str | None = None
    time_spent: int | None = None
    archived: bool | None = None
    description: str | None = None
    extra: dict[str, Any] = dataclasses.field(default_factory=dict, hash=False)


@dataclasses.dataclass(frozen=True)
class TimeEntry:
    task_id: TaskId
    start_time: str
    end_time: str
    duration: int
    date: str
    id: int | None = None


@dataclasses.dataclass(frozen=True)
class SessionState:
    task_id: TaskId
    start_time: datetime


@dataclasses.dataclass(frozen=True)
class TaskStat:
    task_id: TaskId
    title: str
    category: str
    total_time: int
    percentage: int = 0


@dataclasses.dataclass(frozen=True)
class DayTaskTime:
    task_id: TaskId
    title: str
    time: int


@dataclasses.dataclass(frozen=True)
class DayStat:
    total_time: int
    tasks: list[DayTaskTime] = dataclasses.field(default_factory=list, hash=False)


@dataclasses.dataclass(frozen=True)
class TimeReport:
    total_time: int = 0
    tasks: list[TaskStat] = dataclasses.field(default_factory=list, hash=False)
    days: dict[str, DayStat] = dataclasses.field(default_factory=dict, hash=False)
