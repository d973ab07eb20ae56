"""Runtime configuration read from the environment and an optional .env file."""
import os
from pathlib import Path
from threading import Lock
from typing import List

DEFAULT_DATA_FILE = "data/registrations.json"
DEFAULT_BASE_URL = "http://localhost:8501"
DEFAULT_LIMITED_EVENTS = "TheStage7.0,Blast Your Stage"

_ENV_LOADED = False
_ENV_LOCK = Lock()


def load_env(env_path: str = ".env") -> None:
    """
    Load KEY=VALUE pairs from a .env file into os.environ.

    Behavior:
        - Runs once per process
        - Skips blank lines and comments
        - Strips surrounding quotes from values
        - Never overrides a variable already set in the environment
    """
    global _ENV_LOADED

    if _ENV_LOADED:
        return

    with _ENV_LOCK:
        if _ENV_LOADED:
            return

        path = Path(env_path)
        if path.exists():
            for raw_line in path.read_text(encoding="utf-8").splitlines():
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue

                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"\'')

                if key and key not in os.environ:
                    os.environ[key] = value

        _ENV_LOADED = True


def _reset_env_loaded() -> None:
    """Allow load_env to run again (used by tests)."""
    global _ENV_LOADED
    _ENV_LOADED = False


def get_setting(key: str, default: str = "") -> str:
    """Return a configuration value, loading .env on first use."""
    load_env()
    return os.getenv(key, default)


def record_store_backend() -> str:
    """Name of the record store backend: "json" or "supabase"."""
    return get_setting("RECORD_STORE", "json").strip().lower() or "json"


def data_file() -> str:
    return get_setting("DATA_FILE", DEFAULT_DATA_FILE)


def base_url() -> str:
    """Public URL the registration form links are built from."""
    return get_setting("BASE_URL", DEFAULT_BASE_URL).rstrip("/")


def limited_event_names() -> List[str]:
    """Event names that get a per-party limit when a party is created."""
    raw = get_setting("LIMITED_EVENT_NAMES", DEFAULT_LIMITED_EVENTS)
    return [name.strip() for name in raw.split(",") if name.strip()]


def realtime_poll_seconds() -> float:
    raw = get_setting("REALTIME_POLL_SECONDS", "2")
    try:
        value = float(raw)
    except ValueError:
        return 2.0
    return value if value > 0 else 2.0


def form_title() -> str:
    """Heading shown on every public registration form."""
    return get_setting("FORM_TITLE", "The Stage Sibu Registration")
