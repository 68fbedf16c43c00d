"""In-memory stand-in for the supabase-py client used by the services.

It understands the subset of the PostgREST builder the services call:
select (with count and the user_follows -> users embeds), insert, update,
delete, eq, neq, in_, gte, or_ (eq / ilike terms), order, range and limit.
It also carries a Storage API double for the upload fallback.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from postgrest.exceptions import APIError
from storage3.utils import StorageException


@dataclass
class FakeResponse:
    data: list[dict[str, Any]]
    count: int | None = None


def _matches(row: dict[str, Any], column: str, op: str, value: Any) -> bool:
    current = row.get(column)
    if op == "eq":
        return current is not None and str(current) == str(value)
    if op == "neq":
        return current is None or str(current) != str(value)
    if op == "in":
        return current is not None and str(current) in {str(v) for v in value}
    if op == "gte":
        return current is not None and str(current) >= str(value)
    if op == "ilike":
        needle = str(value).strip("%").lower()
        return current is not None and needle in str(current).lower()
    raise ValueError(f"Unsupported operator: {op}")


class FakeQuery:
    def __init__(self, client: FakeSupabaseClient, table: str) -> None:
        self.client = client
        self.table_name = table
        self.action = "select"
        self.columns = "*"
        self.count_mode: str | None = None
        self.payload: Any = None
        self.filters: list[Any] = []
        self.order_by: tuple[str, bool] | None = None
        self.row_range: tuple[int, int] | None = None
        self.row_limit: int | None = None

    def select(self, *columns: str, count: str | None = None) -> FakeQuery:
        self.columns = ",".join(columns) or "*"
        self.count_mode = count
        return self

    def insert(self, payload: Any) -> FakeQuery:
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload: dict[str, Any]) -> FakeQuery:
        self.action = "update"
        self.payload = payload
        return self

    def delete(self) -> FakeQuery:
        self.action = "delete"
        return self

    def eq(self, column: str, value: Any) -> FakeQuery:
        self.filters.append(lambda row: _matches(row, column, "eq", value))
        return self

    def neq(self, column: str, value: Any) -> FakeQuery:
        self.filters.append(lambda row: _matches(row, column, "neq", value))
        return self

    def in_(self, column: str, values: list[Any]) -> FakeQuery:
        self.filters.append(lambda row: _matches(row, column, "in", values))
        return self

    def gte(self, column: str, value: Any) -> FakeQuery:
        self.filters.append(lambda row: _matches(row, column, "gte", value))
        return self

    def or_(self, expression: str) -> FakeQuery:
        terms = [term.split(".", 2) for term in expression.split(",")]
        self.filters.append(
            lambda row: any(_matches(row, col, op, val) for col, op, val in terms)
        )
        return self

    def order(self, column: str, desc: bool = False) -> FakeQuery:
        self.order_by = (column, desc)
        return self

    def range(self, start: int, end: int) -> FakeQuery:
        self.row_range = (start, end)
        return self

    def limit(self, size: int) -> FakeQuery:
        self.row_limit = size
        return self

    def _selected(self) -> list[dict[str, Any]]:
        rows = self.client.tables.setdefault(self.table_name, [])
        return [row for row in rows if all(check(row) for check in self.filters)]

    def _embed(self, row: dict[str, Any]) -> dict[str, Any]:
        shaped = copy.deepcopy(row)
        if "follower_id_fkey" in self.columns:
            shaped["users"] = self.client.find("users", row["follower_id"])
        elif "following_id_fkey" in self.columns:
            shaped["users"] = self.client.find("users", row["following_id"])
        return shaped

    def execute(self) -> FakeResponse:
        self.client.calls.append((self.table_name, self.action))
        failure = self.client.failures.get((self.table_name, self.action))
        if failure is not None:
            raise failure

        rows = self.client.tables.setdefault(self.table_name, [])

        if self.action == "insert":
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for payload in payloads:
                now = datetime.now(UTC).isoformat()
                row = {"id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
                row.update(copy.deepcopy(payload))
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(data=inserted)

        selected = self._selected()

        if self.action == "update":
            for row in selected:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse(data=copy.deepcopy(selected))

        if self.action == "delete":
            ids = {id(row) for row in selected}
            self.client.tables[self.table_name] = [
                row for row in rows if id(row) not in ids
            ]
            return FakeResponse(data=copy.deepcopy(selected))

        if self.order_by is not None:
            column, desc = self.order_by
            present = [row for row in selected if row.get(column) is not None]
            missing = [row for row in selected if row.get(column) is None]
            present.sort(key=lambda row: row[column], reverse=desc)
            selected = present + missing

        total = len(selected)
        if self.row_range is not None:
            start, end = self.row_range
            selected = selected[start : end + 1]
        if self.row_limit is not None:
            selected = selected[: self.row_limit]

        return FakeResponse(
            data=[self._embed(row) for row in selected],
            count=total if self.count_mode else None,
        )


class FakeStorageBucket:
    """One bucket of the Storage API; refuses to overwrite unless upsert is set."""

    def __init__(self, storage: FakeStorage, name: str) -> None:
        self.storage = storage
        self.name = name

    def upload(
        self, path: str, file: bytes, file_options: dict[str, str] | None = None
    ) -> dict[str, str]:
        options = dict(file_options or {})
        objects = self.storage.objects.setdefault(self.name, {})
        if path in objects and options.get("upsert") != "true":
            raise StorageException(
                {"statusCode": 409, "error": "Duplicate", "message": "already exists"}
            )
        objects[path] = (file, options)
        return {"Key": f"{self.name}/{path}"}

    def get_public_url(self, path: str) -> str:
        return f"https://fake.supabase.co/storage/v1/object/public/{self.name}/{path}"


class FakeStorage:
    def __init__(self) -> None:
        self.objects: dict[str, dict[str, tuple[bytes, dict[str, str]]]] = {}

    def from_(self, bucket: str) -> FakeStorageBucket:
        return FakeStorageBucket(self, bucket)


class FakeSupabaseClient:
    """Holds tables as lists of dicts and hands out FakeQuery builders."""

    def __init__(self) -> None:
        self.storage = FakeStorage()
        self.tables: dict[str, list[dict[str, Any]]] = {"users": [], "user_follows": []}
        self.failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, str]] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def find(self, table: str, row_id: Any) -> dict[str, Any] | None:
        for row in self.tables.get(table, []):
            if str(row.get("id")) == str(row_id):
                return copy.deepcopy(row)
        return None

    def fail(
        self, table: str, action: str, message: str = "boom", code: str = "XX000"
    ) -> None:
        self.failures[(table, action)] = APIError(
            {"message": message, "code": code, "hint": None, "details": None}
        )

    def add_user(self, **fields: Any) -> dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "name": "Test User",
            "email": f"user-{uuid.uuid4().hex[:8]}@example.com",
            "phone": "555-0100",
            "date_of_birth": "1990-06-15",
            "profile_image_url": None,
            "status": "active",
            "unit_number": None,
            "created_at": datetime.now(UTC).isoformat(),
            "updated_at": datetime.now(UTC).isoformat(),
        }
        row.update(fields)
        self.tables["users"].append(row)
        return row

    def add_follow(
        self, follower_id: str, following_id: str, **fields: Any
    ) -> dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "follower_id": follower_id,
            "following_id": following_id,
            "created_at": datetime.now(UTC).isoformat(),
        }
        row.update(fields)
        self.tables["user_follows"].append(row)
        return row
