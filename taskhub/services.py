import dataclasses
from pathlib import Path

from . import config
from .db import RecordStore
from .legacy import MigrationReport, migrate_legacy
from .session import TrackingSession
from .statistics import StatisticsEngine
from .tasks import TaskRepository
from .time_entries import TimeEntryRepository


@dataclasses.dataclass
class Services:
    store: RecordStore
    tasks: TaskRepository
    entries: TimeEntryRepository
    session: TrackingSession
    stats: StatisticsEngine
    migration: MigrationReport


def bootstrap(
    db_path: Path | None = None,
    legacy_path: Path | None = None,
    min_duration_ms: int | None = None,
    unknown_label: str | None = None,
) -> Services:
    """Open the store, migrate, import legacy tasks, then wire the components.

    Arguments left as None come from `taskhub.config`.
    """
    store = RecordStore(db_path if db_path else config.DB_PATH)
    store.init()
    tasks = TaskRepository(store)
    entries = TimeEntryRepository(store)
    report = migrate_legacy(tasks, legacy_path if legacy_path else config.LEGACY_PATH)
    session = TrackingSession(
        tasks,
        entries,
        store,
        min_duration_ms=(
            min_duration_ms if min_duration_ms is not None else config.get_min_entry_ms()
        ),
    )
    stats = StatisticsEngine(
        entries,
        tasks,
        unknown_label=unknown_label if unknown_label else config.get_unknown_task_label(),
    )
    return Services(
        store=store,
        tasks=tasks,
        entries=entries,
        session=session,
        stats=stats,
        migration=report,
    )
