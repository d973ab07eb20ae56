"""Per-table change counters fed by record store subscriptions."""
import logging
from threading import Lock
from typing import Dict

from src.services.record_store import RecordStore, Subscription

logger = logging.getLogger(__name__)


class ChangeFeed:
    """
    Process-wide record of table changes.

    A store subscription bumps the table's version whenever a change is
    pushed. Each viewer remembers the version its data was loaded at and
    reloads once ``has_changed`` reports a newer one.
    """

    def __init__(self):
        self._versions: Dict[str, int] = {}
        self._subscriptions: Dict[str, Subscription] = {}
        self._lock = Lock()

    def bump(self, table: str) -> int:
        with self._lock:
            self._versions[table] = self._versions.get(table, 0) + 1
            version = self._versions[table]
        logger.info("Change on %s (version %d)", table, version)
        return version

    def version(self, table: str) -> int:
        with self._lock:
            return self._versions.get(table, 0)

    def has_changed(self, table: str, seen_version: int) -> bool:
        return self.version(table) != seen_version

    def watch(self, store: RecordStore, table: str) -> None:
        """Subscribe to ``table`` once; later calls are no-ops."""
        with self._lock:
            if table in self._subscriptions:
                return
            self._subscriptions[table] = store.subscribe(table, lambda: self.bump(table))

    def close(self) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.close()
