"""The flat JSON task list: one-shot import of the legacy file, plus export and
restore of the whole table in the same camelCase format."""

import dataclasses
import json
import logging
from pathlib import Path

from .core.errors import MigrationError, StorageError, ValidationError
from .core.models import Task
from .lib.converters import task_from_dict, task_to_dict
from .tasks import TaskRepository

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class MigrationReport:
    imported: int = 0
    skipped: int = 0
    ran: bool = False


def _read_legacy(legacy_path: Path) -> list[object]:
    try:
        data = json.loads(legacy_path.read_text())
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MigrationError(f"unreadable legacy task list {legacy_path}: {e}") from e
    if not isinstance(data, list):
        raise MigrationError(f"legacy task list {legacy_path} is not a JSON array")
    return data


def _to_task(record: object, position: int) -> Task:
    try:
        return task_from_dict(record)
    except ValueError as e:
        raise MigrationError(f"legacy record #{position}: {e}") from e


def migrate_legacy(tasks: TaskRepository, legacy_path: Path) -> MigrationReport:
    """Copy every legacy record into an empty `tasks` table, keeping ids.

    Does nothing once the table holds any task, so a legacy file that is left
    in place is never imported twice. Bad records, including ones the store
    refuses, are logged and skipped; this never raises for bad legacy data.
    """
    if not legacy_path.exists():
        return MigrationReport()
    if tasks.count() > 0:
        return MigrationReport()

    try:
        records = _read_legacy(legacy_path)
    except MigrationError as e:
        logger.warning("%s; skipping legacy import", e)
        return MigrationReport(ran=True)

    imported = skipped = 0
    for position, record in enumerate(records):
        try:
            task = _to_task(record, position)
            tasks.save(task)
        except MigrationError as e:
            logger.warning("%s; skipped", e)
            skipped += 1
            continue
        except StorageError as e:
            logger.warning("legacy record #%d: store rejected it (%s); skipped", position, e)
            skipped += 1
            continue
        imported += 1

    logger.info("imported %d legacy tasks from %s (%d skipped)", imported, legacy_path, skipped)
    return MigrationReport(imported=imported, skipped=skipped, ran=True)


def export_tasks(tasks: TaskRepository, path: Path) -> int:
    records = [task_to_dict(t) for t in tasks.get_all()]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(records, indent=2, default=str) + "\n")
    return len(records)


def import_tasks(tasks: TaskRepository, path: Path) -> int:
    """Replace every task with the records in `path`.

    Unlike the legacy import this is all or nothing: one bad record rejects
    the file and the table is left as it was.
    """
    records = _read_legacy(path)
    batch = []
    for position, record in enumerate(records):
        try:
            batch.append(task_from_dict(record))
        except ValueError as e:
            raise ValidationError(f"{path} record #{position}: {e}") from e
    tasks.replace_all(batch)
    return len(batch)
