"""Pure Python in-memory database for unit testing."""

import copy
import re
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Any

from tasklevel.core.clock import to_iso
from tasklevel.core.config import constants
from tasklevel.core.db_client import DatabaseError, RecordNotFoundError
from tasklevel.core.scheduler import deliver_scheduled_notification
from tasklevel.models.service_models import ScheduledNotification


_COMPARISON = re.compile(r"""(\w+)\s*(!=|>=|<=|=|>|<|~)\s*(['"])([^'"]*)\3""")

# Monday 2026-10-19 10:00 UTC (12:00 local)
NOW = datetime(2026, 10, 19, 10, 0, tzinfo=UTC)


class InMemoryDBClient:
    """Pure Python in-memory database for unit testing.

    Mirrors the keyword-only interface of ``tasklevel.core.db_client``:
    CRUD, filtering with the same mini-language, sorting, atomic increments
    and transactions that restore a snapshot on error. ``fail_on`` makes a
    given operation on a collection raise ``DatabaseError``.
    """

    def __init__(self):
        """Initialize empty in-memory database."""
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._failures: dict[tuple[str, str], Exception] = {}
        self._in_transaction = False
        self.calls: list[tuple[str, str]] = []

    # Test helpers

    def fail_on(self, operation: str, collection: str, error: Exception | None = None) -> None:
        """Make ``operation`` on ``collection`` raise until cleared."""
        self._failures[(operation, collection)] = error or DatabaseError(f"Injected {operation} failure")

    def clear_failures(self) -> None:
        self._failures.clear()

    def records(self, collection: str) -> list[dict[str, Any]]:
        """Snapshot of every stored record in a collection."""
        return copy.deepcopy(list(self._collections.get(collection, {}).values()))

    def _check(self, operation: str, collection: str) -> None:
        self.calls.append((operation, collection))
        error = self._failures.get((operation, collection))
        if error is not None:
            raise error

    # Transactions

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._in_transaction:
            yield
            return

        snapshot = copy.deepcopy(self._collections)
        self._in_transaction = True
        try:
            yield
        except BaseException:
            self._collections = snapshot
            raise
        finally:
            self._in_transaction = False

    # CRUD

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        self._check("create", collection)
        record = {"id": str(uuid.uuid4()), **data}
        store = self._collections.setdefault(collection, {})
        if record["id"] in store:
            raise DatabaseError(f"Failed to create record in {collection}: duplicate id {record['id']}")
        store[record["id"]] = copy.deepcopy(record)
        return copy.deepcopy(record)

    async def create_records(self, *, collection: str, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        self._check("create_many", collection)
        async with self.transaction():
            return [await self.create_record(collection=collection, data=item) for item in items]

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        self._check("get", collection)
        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        return copy.deepcopy(record)

    async def update_record(self, *, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        self._check("update", collection)
        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        record.update(copy.deepcopy(data))
        return copy.deepcopy(record)

    async def increment_field(self, *, collection: str, record_id: str, field: str, amount: int) -> dict[str, Any]:
        self._check("increment", collection)
        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        record[field] = (record.get(field) or 0) + amount
        return copy.deepcopy(record)

    async def delete_record(self, *, collection: str, record_id: str) -> None:
        self._check("delete", collection)
        store = self._collections.get(collection, {})
        if record_id not in store:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        del store[record_id]

    async def delete_records(self, *, collection: str, filter_query: str) -> int:
        self._check("delete_many", collection)
        if not filter_query:
            raise ValueError("Refusing to delete without a filter")
        store = self._collections.get(collection, {})
        doomed = [rid for rid, record in store.items() if self._matches(filter_query, record)]
        for rid in doomed:
            del store[rid]
        return len(doomed)

    async def list_records(
        self,
        *,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        self._check("list", collection)
        records = list(self._collections.get(collection, {}).values())
        if filter_query:
            records = [r for r in records if self._matches(filter_query, r)]
        if sort:
            records = self._apply_sort(records, sort)
        start = (page - 1) * per_page
        return [copy.deepcopy(r) for r in records[start : start + per_page]]

    async def list_all_records(
        self, *, collection: str, filter_query: str = "", sort: str = "", per_page: int | None = None
    ) -> list[dict[str, Any]]:
        per_page = per_page or constants.MAX_PER_PAGE_LIMIT
        records: list[dict[str, Any]] = []
        page = 1
        while True:
            batch = await self.list_records(
                collection=collection, page=page, per_page=per_page, filter_query=filter_query, sort=sort
            )
            records.extend(batch)
            if len(batch) < per_page:
                return records
            page += 1

    async def count_records(self, *, collection: str, filter_query: str = "") -> int:
        self._check("count", collection)
        records = self._collections.get(collection, {}).values()
        return sum(1 for r in records if self._matches(filter_query, r))

    async def get_first_record(self, *, collection: str, filter_query: str) -> dict[str, Any] | None:
        records = await self.list_records(collection=collection, filter_query=filter_query, per_page=1)
        return records[0] if records else None

    # Filtering and sorting

    def _matches(self, filter_str: str, record: dict[str, Any]) -> bool:
        if not filter_str.strip():
            return True
        return all(self._matches_part(part, record) for part in self._split_and(filter_str))

    @staticmethod
    def _split_and(filter_str: str) -> list[str]:
        parts, current, depth = [], "", 0
        for char in filter_str:
            depth += {"(": 1, ")": -1}.get(char, 0)
            current += char
            if depth == 0 and current.endswith("&&"):
                parts.append(current[:-2].strip())
                current = ""
        if current.strip():
            parts.append(current.strip())
        return parts

    def _matches_part(self, part: str, record: dict[str, Any]) -> bool:
        if part.startswith("(") and part.endswith(")"):
            return any(self._compare(p.strip(), record) for p in part[1:-1].split("||"))
        return self._compare(part, record)

    @staticmethod
    def _compare(comparison: str, record: dict[str, Any]) -> bool:
        match = _COMPARISON.fullmatch(comparison.strip())
        if not match:
            raise ValueError(f"Invalid filter syntax: {comparison}")
        field, op, raw = match.group(1), match.group(2), match.group(4)
        actual = record.get(field)

        if op == "~":
            return raw.lower() in str(actual or "").lower()

        expected: Any = raw
        if raw.lower() in ("true", "false"):
            expected = raw.lower() == "true"
        elif isinstance(actual, bool):
            expected = raw
        elif isinstance(actual, int):
            try:
                expected = int(raw)
            except ValueError:
                return False

        if op == "=":
            return actual == expected
        if op == "!=":
            return actual != expected
        if actual is None:
            return False
        try:
            return {
                ">": actual > expected,
                "<": actual < expected,
                ">=": actual >= expected,
                "<=": actual <= expected,
            }[op]
        except TypeError:
            return False

    @staticmethod
    def _apply_sort(records: list[dict], sort: str) -> list[dict]:
        sort = sort.strip()
        reverse = sort.startswith("-")
        field = sort.lstrip("+-").split()[0]
        if sort.upper().endswith(" DESC"):
            reverse = True

        # NULLs sort lowest, as in SQLite
        def key(record: dict) -> tuple:
            value = record.get(field)
            return (value is not None, value if value is not None else "")

        return sorted(records, key=key, reverse=reverse)


class FakeJobScheduler:
    """DelayedJobScheduler with a manual clock; due jobs run on ``advance``."""

    def __init__(self, now: datetime = NOW):
        self.now = now
        self.jobs: list[tuple[datetime, ScheduledNotification]] = []
        self.delivered: list[ScheduledNotification] = []

    def schedule(self, *, run_at: datetime, job: ScheduledNotification) -> str:
        self.jobs.append((run_at, job))
        return f"job-{len(self.jobs)}"

    async def advance(self, delta: timedelta) -> list[ScheduledNotification]:
        """Move the clock forward and deliver every job that became due."""
        self.now += delta
        due = [job for run_at, job in self.jobs if run_at <= self.now]
        self.jobs = [(run_at, job) for run_at, job in self.jobs if run_at > self.now]
        for job in due:
            await deliver_scheduled_notification(job)
            self.delivered.append(job)
        return due


async def make_list(
    db: InMemoryDBClient,
    *,
    owner_id: str = "owner-1",
    list_type: str = "daily",
    task_states: tuple[bool, ...] = (False, False, False),
    is_public: bool = False,
    is_completed: bool | None = None,
    created_at: datetime = NOW,
    expires_at: datetime | None = None,
    completed_at: str | None = None,
    settled_at: str | None = None,
) -> tuple[dict, list[dict]]:
    """Insert a list and its tasks directly into the fake store."""
    completed = all(task_states) if is_completed is None else is_completed
    task_list = await db.create_record(
        collection="lists",
        data={
            "user_id": owner_id,
            "title": f"Lista {list_type}",
            "type": list_type,
            "is_public": is_public,
            "is_completed": completed,
            "reward": "",
            "punishment": "",
            "completed_at": completed_at,
            "settled_at": settled_at,
            "expires_at": to_iso(expires_at or created_at + timedelta(hours=12)),
            "created_at": to_iso(created_at),
        },
    )
    tasks = [
        await db.create_record(
            collection="tasks",
            data={
                "list_id": task_list["id"],
                "description": f"Task {i}",
                "is_completed": state,
                "created_at": to_iso(created_at),
            },
        )
        for i, state in enumerate(task_states, start=1)
    ]
    return task_list, tasks
