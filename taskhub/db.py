import json
import logging
import shutil
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from fncli import cli

from . import config
from .core.errors import StorageError
from .lib.errors import echo

logger = logging.getLogger(__name__)

MIGRATIONS_TABLE = "_migrations"
MIGRATIONS_DIR = Path(__file__).parent / "migrations"

Migration = tuple[str, str]


def _connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _table_count(conn: sqlite3.Connection, table: str) -> int:
    try:
        return conn.execute(f'SELECT COUNT(*) FROM "{table}"').fetchone()[0]  # noqa: S608
    except sqlite3.OperationalError:
        return 0


def _check_data_loss(conn: sqlite3.Connection, before: dict[str, int]) -> None:
    for table, count in before.items():
        after = _table_count(conn, table)
        if after < count:
            raise StorageError(f"migration data loss: {table} had {count} rows, now {after}")


def load_migrations() -> list[Migration]:
    if not MIGRATIONS_DIR.exists():
        return []
    return [
        (sql_file.stem, sql_file.read_text())
        for sql_file in sorted(MIGRATIONS_DIR.glob("*.sql"))
    ]


def _apply_migrations(conn: sqlite3.Connection, pending: list[Migration]) -> None:
    for name, sql in pending:
        tables = [
            row[0]
            for row in conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name != ? AND name NOT LIKE 'sqlite_%'",
                (MIGRATIONS_TABLE,),
            ).fetchall()
        ]
        before = {t: _table_count(conn, t) for t in tables}
        conn.executescript(sql)
        _check_data_loss(conn, before)
        conn.execute(f"INSERT OR IGNORE INTO {MIGRATIONS_TABLE} (name) VALUES (?)", (name,))  # noqa: S608
        conn.commit()
        logger.info("applied migration %s", name)


class RecordStore:
    """SQLite-backed record store: tables, indexes and a small key-value slot.

    Every `connect()` block is one transaction. Nothing here knows about tasks
    or time entries beyond the schema shipped in `migrations/`.
    """

    def __init__(self, db_path: Path, backup_dir: Path | None = None):
        self.db_path = db_path
        self.backup_dir = backup_dir if backup_dir else config.BACKUP_DIR / "migrations"

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = _connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"cannot open {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except (sqlite3.Error, OverflowError, UnicodeEncodeError) as e:
            # sqlite3 reports unbindable parameters as OverflowError or UnicodeEncodeError
            conn.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _create_backup(self) -> Path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        backup_path = self.backup_dir / f"{self.db_path.stem}.{timestamp}.backup"
        src = sqlite3.connect(self.db_path, timeout=30)
        dst = sqlite3.connect(backup_path)
        try:
            src.backup(dst)
        except Exception:
            dst.close()
            src.close()
            if backup_path.exists():
                backup_path.unlink()
            raise
        else:
            dst.close()
            src.close()
        return backup_path

    def _restore_backup(self, backup_path: Path) -> None:
        for suffix in ("-wal", "-shm"):
            sidecar = self.db_path.with_name(self.db_path.name + suffix)
            if sidecar.exists():
                sidecar.unlink()
        shutil.copy2(backup_path, self.db_path)

    def pending_migrations(self, conn: sqlite3.Connection) -> list[Migration]:
        conn.execute(
            f"CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} "
            "(id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL UNIQUE, applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
        )
        conn.commit()
        applied = {row[0] for row in conn.execute(f"SELECT name FROM {MIGRATIONS_TABLE}").fetchall()}  # noqa: S608
        return [(n, m) for n, m in load_migrations() if n not in applied]

    def init(self) -> None:
        """Create the database if needed and apply pending schema migrations.

        An existing database is backed up first and restored if any migration
        fails; the backup is removed once all migrations are in.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        existed = self.db_path.exists() and self.db_path.stat().st_size > 0
        backup_path: Path | None = None
        try:
            conn = _connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"cannot open {self.db_path}: {e}") from e
        try:
            pending = self.pending_migrations(conn)
            if pending:
                if existed:
                    backup_path = self._create_backup()
                _apply_migrations(conn, pending)
        except (sqlite3.Error, StorageError) as e:
            conn.rollback()
            conn.close()
            if backup_path:
                self._restore_backup(backup_path)
            if isinstance(e, StorageError):
                raise
            raise StorageError(f"migration failed: {e}") from e
        finally:
            conn.close()
        if backup_path and backup_path.exists():
            backup_path.unlink()

    def get_value(self, key: str) -> object | None:
        with self.connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if not row:
            return None
        return json.loads(row[0])

    def set_value(self, key: str, value: object) -> None:
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                (key, json.dumps(value)),
            )

    def delete_value(self, key: str) -> None:
        with self.connect() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))


def open_store(db_path: Path | None = None) -> RecordStore:
    store = RecordStore(db_path if db_path else config.DB_PATH)
    store.init()
    return store


@cli("taskhub db", name="migrate")
def db_migrate():
    """Run pending database migrations"""
    open_store()
    echo("migrations applied")
