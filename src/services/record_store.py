"""
Record store backends.

The application reads and writes four tables (parties, events,
event_limits, registrations) through the small ``RecordStore`` interface:
equality / membership filters, ordering, inclusive range reads, batch
inserts, partial updates, deletes, and change subscriptions.

Two implementations are provided:

- ``JsonRecordStore`` keeps every table in one JSON document on disk,
  guarded by the file lock from ``storage_service``.
- ``SupabaseRecordStore`` talks to a hosted Supabase (Postgres) project.
"""
import asyncio
import hashlib
import json
import logging
import os
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx

from src.services.storage_service import (
    empty_tables,
    ensure_data_file,
    load_json,
    lock_file,
    save_json,
)
from src.utils import settings
from src.utils.exceptions import FileWriteError, StoreError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
Filters = Dict[str, Any]

TABLES = ("parties", "events", "event_limits", "registrations")

# Column defaults applied on insert, mirroring the hosted schema
COLUMN_DEFAULTS: Dict[str, Row] = {
    "registrations": {"redeem_ticket": False},
    "event_limits": {"limits": None},
}

# (table, columns, constraint name)
UNIQUE_CONSTRAINTS = (
    ("parties", ("slug",), "parties_slug_key"),
    ("events", ("name",), "events_name_key"),
)


class Subscription:
    """Handle returned by ``RecordStore.subscribe``."""

    def close(self) -> None:
        raise NotImplementedError


class RecordStore:
    """Interface shared by all backends."""

    def list(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
        start: Optional[int] = None,
        end: Optional[int] = None,
        columns: str = "*",
    ) -> List[Row]:
        """
        Read rows.

        Args:
            table: Table name
            filters: Column → value; list/tuple/set values mean "in"
            order_by: Column to sort by
            ascending: Sort direction
            start, end: Inclusive row range applied after ordering
            columns: Comma-separated column names or "*"

        Raises:
            StoreError: If the store rejects the query
        """
        raise NotImplementedError

    def get_one(self, table: str, filters: Filters) -> Optional[Row]:
        """Return the first matching row, or None."""
        rows = self.list(table, filters=filters, start=0, end=0)
        return rows[0] if rows else None

    def insert(self, table: str, rows: List[Row]) -> List[Row]:
        """Insert all rows or none of them."""
        raise NotImplementedError

    def update(self, table: str, fields: Row, filters: Filters) -> List[Row]:
        raise NotImplementedError

    def delete(self, table: str, filters: Filters) -> List[Row]:
        raise NotImplementedError

    def subscribe(self, table: str, on_change: Callable[[], None]) -> Subscription:
        """Call ``on_change`` whenever rows of ``table`` change."""
        raise NotImplementedError


def _matches(row: Row, filters: Optional[Filters]) -> bool:
    if not filters:
        return True
    for column, expected in filters.items():
        value = row.get(column)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


def _project(row: Row, columns: str) -> Row:
    if not columns or columns.strip() == "*":
        return dict(row)
    names = [name.strip() for name in columns.split(",") if name.strip()]
    return {name: row.get(name) for name in names}


def _sort_key(column: str):
    # None sorts last, as Postgres does for ascending order
    return lambda row: (row.get(column) is None, row.get(column))


class JsonRecordStore(RecordStore):
    """Record store backed by a single JSON file."""

    def __init__(self, file_path: str, seed_events: Iterable[str] = ()):
        self.file_path = file_path
        seed = empty_tables()
        for index, name in enumerate(seed_events, start=1):
            seed["tables"]["events"].append({"id": index, "name": name})
        if seed["tables"]["events"]:
            seed["next_ids"]["events"] = len(seed["tables"]["events"]) + 1
        ensure_data_file(file_path, seed)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _table(data: Dict[str, Any], table: str) -> List[Row]:
        tables = data.setdefault("tables", {})
        if table not in tables:
            if table not in TABLES:
                raise StoreError(f'relation "public.{table}" does not exist')
            tables[table] = []
        return tables[table]

    @staticmethod
    def _next_id(data: Dict[str, Any], table: str, rows: List[Row]) -> int:
        next_ids = data.setdefault("next_ids", {})
        candidate = next_ids.get(table)
        if candidate is None:
            candidate = max((row.get("id") or 0 for row in rows), default=0) + 1
        next_ids[table] = candidate + 1
        return candidate

    @staticmethod
    def _check_unique(table: str, existing: List[Row], new_rows: List[Row]) -> None:
        for constraint_table, columns, name in UNIQUE_CONSTRAINTS:
            if constraint_table != table:
                continue
            seen = {tuple(row.get(c) for c in columns) for row in existing}
            for row in new_rows:
                key = tuple(row.get(c) for c in columns)
                if key in seen:
                    raise StoreError(
                        f'duplicate key value violates unique constraint "{name}"'
                    )
                seen.add(key)

    def _read(self) -> Dict[str, Any]:
        try:
            return load_json(self.file_path)
        except (OSError, ValueError) as e:
            raise StoreError(str(e)) from e

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            save_json(self.file_path, data)
        except FileWriteError as e:
            raise StoreError(str(e)) from e

    # ------------------------------------------------------------------ #
    # RecordStore API
    # ------------------------------------------------------------------ #
    def list(self, table, filters=None, order_by=None, ascending=True,
             start=None, end=None, columns="*"):
        data = self._read()
        rows = [row for row in self._table(data, table) if _matches(row, filters)]

        if order_by:
            rows.sort(key=_sort_key(order_by), reverse=not ascending)

        if start is not None or end is not None:
            first = start or 0
            last = end if end is not None else len(rows) - 1
            rows = rows[first:last + 1]

        return [_project(row, columns) for row in rows]

    def insert(self, table, rows):
        if not rows:
            return []

        try:
            with lock_file(self.file_path):
                data = self._read()
                existing = self._table(data, table)
                self._check_unique(table, existing, rows)

                inserted = []
                for row in rows:
                    record = dict(COLUMN_DEFAULTS.get(table, {}))
                    record.update(row)
                    record["id"] = self._next_id(data, table, existing + inserted)
                    inserted.append(record)

                existing.extend(inserted)
                self._write(data)
        except OSError as e:
            raise StoreError(str(e)) from e

        logger.info("Inserted %d row(s) into %s", len(inserted), table)
        return [dict(record) for record in inserted]

    def update(self, table, fields, filters):
        try:
            with lock_file(self.file_path):
                data = self._read()
                rows = self._table(data, table)
                targets = [row for row in rows if _matches(row, filters)]
                others = [row for row in rows if not _matches(row, filters)]
                updated = []
                for row in targets:
                    row.update(fields)
                    updated.append(dict(row))
                self._check_unique(table, others, updated)
                if updated:
                    self._write(data)
        except OSError as e:
            raise StoreError(str(e)) from e

        return updated

    def delete(self, table, filters):
        try:
            with lock_file(self.file_path):
                data = self._read()
                rows = self._table(data, table)
                removed = [row for row in rows if _matches(row, filters)]
                if removed:
                    data["tables"][table] = [row for row in rows if not _matches(row, filters)]
                    self._write(data)
        except OSError as e:
            raise StoreError(str(e)) from e

        return removed

    def table_fingerprint(self, table: str) -> Optional[str]:
        """Digest of a table's rows; None when the file cannot be read."""
        try:
            data = load_json(self.file_path)
        except (OSError, ValueError):
            return None
        rows = data.get("tables", {}).get(table, [])
        payload = json.dumps(rows, sort_keys=True, ensure_ascii=False)
        return hashlib.sha1(payload.encode("utf-8")).hexdigest()

    def subscribe(self, table, on_change):
        return FilePollingSubscription(
            self, table, on_change, interval=settings.realtime_poll_seconds()
        )


class FilePollingSubscription(Subscription):
    """
    Background thread that watches the JSON data file.

    The file's modification time is checked every ``interval`` seconds; when
    it moves, the table's fingerprint is recomputed and ``on_change`` fires
    only if that table actually changed.
    """

    def __init__(self, store: JsonRecordStore, table: str,
                 on_change: Callable[[], None], interval: float = 2.0):
        self.store = store
        self.table = table
        self.on_change = on_change
        self.interval = interval

        self._stop_event = threading.Event()
        self._last_mtime = self._mtime()
        self._last_fingerprint = store.table_fingerprint(table)
        self._thread = threading.Thread(
            target=self._run, name=f"watch-{table}", daemon=True
        )
        self._thread.start()

    def _mtime(self) -> Optional[float]:
        try:
            return os.path.getmtime(self.store.file_path)
        except OSError:
            return None

    def poll(self) -> bool:
        """Check once for a change; returns True if ``on_change`` fired."""
        mtime = self._mtime()
        if mtime == self._last_mtime:
            return False
        self._last_mtime = mtime

        fingerprint = self.store.table_fingerprint(self.table)
        if fingerprint == self._last_fingerprint:
            return False
        self._last_fingerprint = fingerprint

        try:
            self.on_change()
        except Exception:
            logger.exception("Change handler for %s failed", self.table)
        return True

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.poll()

    def close(self) -> None:
        self._stop_event.set()


class SupabaseRecordStore(RecordStore):
    """Record store backed by a hosted Supabase project."""

    def __init__(self, url: str, key: str, client: Any = None):
        if not url or not key:
            raise StoreError("SUPABASE_URL and SUPABASE_KEY must be set")
        self.url = url
        self.key = key
        if client is None:
            from supabase import create_client
            client = create_client(url, key)
        self.client = client

    @staticmethod
    def _apply_filters(query, filters: Optional[Filters]):
        for column, expected in (filters or {}).items():
            if isinstance(expected, (list, tuple, set, frozenset)):
                query = query.in_(column, list(expected))
            else:
                query = query.eq(column, expected)
        return query

    def _execute(self, query, action: str):
        from postgrest.exceptions import APIError

        try:
            return query.execute()
        except APIError as e:
            logger.error("Supabase %s failed: %s", action, e.message)
            raise StoreError(e.message or str(e)) from e
        except httpx.HTTPError as e:
            logger.error("Supabase %s failed: %s", action, e)
            raise StoreError(str(e) or type(e).__name__) from e

    def sign_in(self, email: str, password: str) -> None:
        """
        Check an email and password against Supabase Auth.

        A separate client is used so the shared one never carries a user
        session.

        Raises:
            StoreError: With the auth service's message if sign-in fails
        """
        from supabase import AuthError, create_client

        auth_client = create_client(self.url, self.key)
        try:
            auth_client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as e:
            logger.warning("Supabase sign-in failed for %r: %s", email, e.message)
            raise StoreError(e.message or str(e)) from e
        except httpx.HTTPError as e:
            logger.error("Supabase sign-in request failed: %s", e)
            raise StoreError(str(e) or type(e).__name__) from e

    def list(self, table, filters=None, order_by=None, ascending=True,
             start=None, end=None, columns="*"):
        query = self._apply_filters(self.client.table(table).select(columns), filters)
        if order_by:
            query = query.order(order_by, desc=not ascending)
        if end is not None:
            query = query.range(start or 0, end)
        elif start:
            # open-ended: every row from start onward
            query = query.offset(start)
        response = self._execute(query, f"select on {table}")
        return list(response.data or [])

    def insert(self, table, rows):
        if not rows:
            return []
        response = self._execute(self.client.table(table).insert(rows), f"insert into {table}")
        logger.info("Inserted %d row(s) into %s", len(rows), table)
        return list(response.data or [])

    def update(self, table, fields, filters):
        query = self._apply_filters(self.client.table(table).update(fields), filters)
        response = self._execute(query, f"update of {table}")
        return list(response.data or [])

    def delete(self, table, filters):
        query = self._apply_filters(self.client.table(table).delete(), filters)
        response = self._execute(query, f"delete from {table}")
        return list(response.data or [])

    def subscribe(self, table, on_change):
        return RealtimeSubscription(self.url, self.key, table, on_change)


class RealtimeSubscription(Subscription):
    """
    Supabase realtime channel listening for postgres_changes on one table.

    The async client runs on a private event loop in a daemon thread so the
    synchronous Streamlit script never blocks on it.
    """

    def __init__(self, url: str, key: str, table: str, on_change: Callable[[], None]):
        self.url = url
        self.key = key
        self.table = table
        self.on_change = on_change

        self._client = None
        self._channel = None
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run, name=f"realtime-{table}", daemon=True
        )
        self._thread.start()

    def _handle(self, _payload: Any) -> None:
        try:
            self.on_change()
        except Exception:
            logger.exception("Change handler for %s failed", self.table)

    async def _connect(self) -> None:
        from supabase import acreate_client

        self._client = await acreate_client(self.url, self.key)
        self._channel = self._client.channel(f"realtime:{self.table}")
        self._channel.on_postgres_changes(
            "*", schema="public", table=self.table, callback=self._handle
        )
        await self._channel.subscribe()
        logger.info("Subscribed to realtime changes on %s", self.table)

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._connect())
        except Exception:
            logger.exception("Realtime subscription to %s failed", self.table)
            return
        self._loop.run_forever()

    def close(self) -> None:
        if self._client is not None and self._channel is not None:
            future = asyncio.run_coroutine_threadsafe(
                self._client.remove_channel(self._channel), self._loop
            )
            try:
                future.result(timeout=5)
            except Exception:
                logger.warning("Could not remove realtime channel for %s", self.table)
        self._loop.call_soon_threadsafe(self._loop.stop)


def create_record_store() -> RecordStore:
    """
    Build the record store selected by configuration.

    Raises:
        StoreError: If the backend name is unknown or not configured
    """
    backend = settings.record_store_backend()

    if backend == "json":
        return JsonRecordStore(
            settings.data_file(), seed_events=settings.limited_event_names()
        )

    if backend == "supabase":
        return SupabaseRecordStore(
            settings.get_setting("SUPABASE_URL"),
            settings.get_setting("SUPABASE_KEY"),
        )

    raise StoreError(f"Unknown record store backend: {backend}")
