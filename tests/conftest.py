import dataclasses
import io
from contextlib import redirect_stderr, redirect_stdout
from datetime import UTC, datetime, timedelta
from pathlib import Path

import fncli
import pytest

import taskhub
from taskhub import config
from taskhub.core.errors import TaskhubError
from taskhub.db import RecordStore
from taskhub.legacy import MigrationReport
from taskhub.services import Services
from taskhub.session import TrackingSession
from taskhub.statistics import StatisticsEngine
from taskhub.tasks import TaskRepository
from taskhub.time_entries import TimeEntryRepository


class FakeClock:
    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def now_ms(self) -> int:
        return int(self.current.timestamp() * 1000)

    def today(self):
        return self.current.date()

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def tmp_taskhub_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "TASKHUB_DIR", tmp_path)
    monkeypatch.setattr(config, "DB_PATH", tmp_path / "taskhub.db")
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "config.yaml")
    monkeypatch.setattr(config, "BACKUP_DIR", tmp_path / "backups")
    monkeypatch.setattr(config, "LEGACY_PATH", tmp_path / "tasks.json")
    monkeypatch.setattr(config._config, "_data", {})
    return tmp_path


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 15, 9, 0, 0, tzinfo=UTC))


@pytest.fixture
def store(tmp_taskhub_dir):
    s = RecordStore(tmp_taskhub_dir / "taskhub.db")
    s.init()
    return s


def build_services(store: RecordStore, clock: FakeClock) -> Services:
    tasks = TaskRepository(store, now_ms=clock.now_ms, today=clock.today)
    entries = TimeEntryRepository(store)
    return Services(
        store=store,
        tasks=tasks,
        entries=entries,
        session=TrackingSession(tasks, entries, store, now=clock.now),
        stats=StatisticsEngine(entries, tasks),
        migration=MigrationReport(),
    )


@pytest.fixture
def services(store, clock):
    return build_services(store, clock)


@dataclasses.dataclass
class Result:
    exit_code: int
    stdout: str
    stderr: str


_discovered = False


class FnCLIRunner:
    def invoke(self, args: list[str]) -> Result:
        global _discovered
        if not _discovered:
            fncli.autodiscover(Path(taskhub.__file__).parent, "taskhub")
            _discovered = True
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            try:
                code = fncli.dispatch(["taskhub", *args])
            except TaskhubError as e:
                err.write(f"{e}\n")
                code = 1
            except SystemExit as e:
                code = e.code if isinstance(e.code, int) else (0 if e.code is None else 1)
        return Result(exit_code=code or 0, stdout=out.getvalue(), stderr=err.getvalue())
