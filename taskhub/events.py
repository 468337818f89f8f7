"""In-process change notifications emitted by the repositories."""

import dataclasses
from collections.abc import Callable

from .core.models import TimeEntry
from .core.types import TaskId


@dataclasses.dataclass(frozen=True)
class TaskChanged:
    id: TaskId


@dataclasses.dataclass(frozen=True)
class TaskDeleted:
    id: TaskId


@dataclasses.dataclass(frozen=True)
class TasksReplaced:
    count: int


@dataclasses.dataclass(frozen=True)
class TimeEntryAdded:
    entry: TimeEntry


@dataclasses.dataclass(frozen=True)
class TimeEntryDeleted:
    id: int
    task_id: TaskId


Event = TaskChanged | TaskDeleted | TasksReplaced | TimeEntryAdded | TimeEntryDeleted
Listener = Callable[[Event], None]


class Subscribers:
    """Listener registry. Listeners run synchronously, in registration order,
    after the write they describe has committed."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: Event) -> None:
        for listener in list(self._listeners):
            listener(event)

    def __len__(self) -> int:
        return len(self._listeners)
