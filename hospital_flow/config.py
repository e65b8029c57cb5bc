import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_data_dir

APP_NAME = "hospital-flow"
APP_AUTHOR = "hospital-flow"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _resolve_data_dir() -> Path:
    env_dir = os.getenv("HOSPITAL_FLOW_DATA_DIR")
    if env_dir:
        return Path(env_dir)
    return Path(user_data_dir(APP_NAME, APP_AUTHOR))


DATA_DIR = _resolve_data_dir()
LOG_DIR = DATA_DIR / "logs"
DB_FILE = Path(os.getenv("HOSPITAL_FLOW_DB_FILE") or (DATA_DIR / "app.db"))

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOG_DIR.mkdir(parents=True, exist_ok=True)
DB_FILE.parent.mkdir(parents=True, exist_ok=True)


def default_database_url() -> str:
    # SQLite URL uses forward slashes; as_posix() keeps it cross-platform.
    return f"sqlite:///{DB_FILE.as_posix()}"


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", default_database_url())
    echo_sql: bool = os.getenv("SQL_ECHO", "0") == "1"
    decision_interval_seconds: float = _env_float("HOSPITAL_FLOW_DECISION_INTERVAL", 10.0)
    sweep_interval_seconds: float = _env_float("HOSPITAL_FLOW_SWEEP_INTERVAL", 2.0)
    oracle_timeout_seconds: float = _env_float("HOSPITAL_FLOW_ORACLE_TIMEOUT", 30.0)
    oracle_url: str | None = os.getenv("HOSPITAL_FLOW_ORACLE_URL") or None
    emergency_capacity: int = _env_int("HOSPITAL_FLOW_EMERGENCY_CAPACITY", 50)
    autostart: bool = _env_bool("HOSPITAL_FLOW_AUTOSTART", True)
    log_level: str = (os.getenv("HOSPITAL_FLOW_LOG_LEVEL") or "INFO").strip().upper()


settings = Settings()
