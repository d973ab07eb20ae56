"""Low-level JSON file I/O for the local record store."""
import json
import logging
import os
import sys
import tempfile
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

from src.utils.exceptions import FileWriteError

if sys.platform != "win32":
    import fcntl

logger = logging.getLogger(__name__)


def empty_tables() -> Dict[str, Any]:
    """Document layout of a fresh data file."""
    return {
        "next_ids": {},
        "tables": {
            "parties": [],
            "events": [],
            "event_limits": [],
            "registrations": [],
        },
    }


def ensure_data_file(file_path: str, seed: Optional[Dict[str, Any]] = None) -> None:
    """
    Create the data file if it does not exist yet.

    Args:
        file_path: Path to JSON data file
        seed: Initial document; defaults to empty tables
    """
    if os.path.exists(file_path):
        return
    save_json(file_path, seed if seed is not None else empty_tables())
    logger.info("Created data file %s", file_path)


def load_json(file_path: str, retry_count: int = 3, retry_delay: float = 0.1) -> Dict[str, Any]:
    """
    Load and parse JSON file with UTF-8 encoding.

    Args:
        file_path: Path to JSON file
        retry_count: Number of attempts when the file is briefly unreadable
        retry_delay: Delay in seconds between attempts

    Returns:
        dict: Parsed JSON content

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If JSON is malformed
        PermissionError: If file not readable after retries
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")

    for attempt in range(retry_count):
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except PermissionError:
            if attempt < retry_count - 1:
                time.sleep(retry_delay)
                continue
        except json.JSONDecodeError as e:
            raise json.JSONDecodeError(
                f"Malformed JSON in {file_path}: {e.msg}",
                e.doc,
                e.pos
            )

    raise PermissionError(f"Cannot read file after {retry_count} attempts: {file_path}")


def save_json(file_path: str, data: Dict[str, Any]) -> None:
    """
    Write data to a JSON file atomically.

    The document is written to a temporary file in the same directory and
    renamed over the target, so readers never see a half-written file.

    Raises:
        FileWriteError: If the write or rename fails
    """
    dir_path = os.path.dirname(file_path)
    if dir_path and not os.path.exists(dir_path):
        os.makedirs(dir_path, exist_ok=True)

    temp_fd, temp_path = tempfile.mkstemp(
        dir=dir_path if dir_path else ".",
        prefix=".tmp_",
        suffix=".json"
    )

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, file_path)
    except OSError as e:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                logger.warning("Could not remove temp file %s", temp_path)
        raise FileWriteError(f"Failed to write file {file_path}: {e}") from e


@contextmanager
def lock_file(file_path: str, timeout: float = 5.0):
    """
    Hold an exclusive lock on a data file.

    Usage:
        with lock_file("data/registrations.json"):
            data = load_json("data/registrations.json")
            ...
            save_json("data/registrations.json", data)

    Raises:
        TimeoutError: If unable to acquire lock within timeout
        FileNotFoundError: If file doesn't exist
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Cannot lock non-existent file: {file_path}")

    # save_json replaces the data file, so the lock lives on a sidecar file
    lock_path = f"{file_path}.lock"

    if sys.platform == "win32":
        start_time = time.time()
        while True:
            try:
                lock_fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_RDWR)
                break
            except FileExistsError:
                if time.time() - start_time > timeout:
                    raise TimeoutError(f"Could not acquire lock on {file_path} within {timeout}s")
                time.sleep(0.05)

        try:
            yield
        finally:
            os.close(lock_fd)
            try:
                os.remove(lock_path)
            except OSError:
                logger.warning("Could not remove lock file %s", lock_path)
    else:
        lock_handle = open(lock_path, "a+")
        try:
            start_time = time.time()
            while True:
                try:
                    fcntl.flock(lock_handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except OSError:
                    if time.time() - start_time > timeout:
                        raise TimeoutError(f"Could not acquire lock on {file_path} within {timeout}s")
                    time.sleep(0.05)

            yield

        finally:
            try:
                fcntl.flock(lock_handle.fileno(), fcntl.LOCK_UN)
            except OSError:
                logger.warning("Could not release lock on %s", lock_path)
            lock_handle.close()
