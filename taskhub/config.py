from pathlib import Path

import yaml

TASKHUB_DIR = Path.home() / ".taskhub"
DB_PATH = TASKHUB_DIR / "taskhub.db"
CONFIG_PATH = TASKHUB_DIR / "config.yaml"
BACKUP_DIR = TASKHUB_DIR / "backups"
LEGACY_PATH = TASKHUB_DIR / "tasks.json"

DEFAULT_MIN_ENTRY_SECONDS = 5
DEFAULT_UNKNOWN_TASK_LABEL = "Unknown task"
DEFAULT_REPORT_DAYS = 7


class Config:
    """Single-instance config manager. Load once, cache in memory."""

    _instance: "Config | None" = None
    _data: dict[str, object]

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = {}
            cls._instance._load()
        return cls._instance

    def _load(self) -> None:
        """Load config from disk."""
        if not CONFIG_PATH.exists():
            self._data = {}
            return
        try:
            with CONFIG_PATH.open() as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            self._data = {}
            return
        self._data = loaded if isinstance(loaded, dict) else {}

    def _save(self) -> None:
        """Persist config to disk."""
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with CONFIG_PATH.open("w") as f:
            yaml.dump(self._data, f, default_flow_style=False, allow_unicode=True)

    def reload(self) -> None:
        self._load()

    def get(self, key: str, default: object = None) -> object:
        """Get config value."""
        return self._data.get(key, default)

    def set(self, key: str, value: object) -> None:
        """Set config value and persist."""
        self._data[key] = value
        self._save()


_config = Config()


def _positive_int(key: str, default: int) -> int:
    val = _config.get(key)
    if isinstance(val, bool) or not isinstance(val, int) or val < 0:
        return default
    return val


def get_min_entry_ms() -> int:
    """Shortest tracked interval that gets persisted, in milliseconds."""
    return _positive_int("min_entry_seconds", DEFAULT_MIN_ENTRY_SECONDS) * 1000


def get_unknown_task_label() -> str:
    """Placeholder title for time entries whose task no longer exists."""
    val = _config.get("unknown_task_label")
    return str(val).strip() if val else DEFAULT_UNKNOWN_TASK_LABEL


def get_report_days() -> int:
    """Default report window, counted back from today."""
    return _positive_int("report_days", DEFAULT_REPORT_DAYS) or DEFAULT_REPORT_DAYS
