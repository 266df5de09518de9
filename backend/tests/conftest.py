"""
Shared fixtures. FakeSupabase is an in-memory stand-in for the PostgREST query
builder, covering only the calls the stores make.
"""
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.payload = None
        self.filters: list[tuple[str, object]] = []
        self.sort = None
        self.max_rows = None

    def select(self, *columns, **kwargs):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.sort = (column, desc)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def execute(self):
        if self.db.fail:
            raise ConnectionError("supabase unreachable")
        rows = self.db.tables.setdefault(self.table_name, [])

        if self.op == "insert":
            if self.table_name == "daily_attendance" and any(
                r["user_id"] == self.payload["user_id"] and r["date"] == self.payload["date"] for r in rows
            ):
                raise Exception('duplicate key value violates unique constraint (23505)')
            row = {
                "id": str(uuid.uuid4()),
                "created_at": datetime.now(timezone.utc).isoformat(),
                **self.payload,
            }
            rows.append(row)
            return SimpleNamespace(data=[dict(row)])

        matched = [r for r in rows if all(r.get(c) == v for c, v in self.filters)]
        if self.op == "update":
            for r in matched:
                r.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in matched])

        if self.sort:
            column, desc = self.sort
            matched = sorted(matched, key=lambda r: r[column], reverse=desc)
        if self.max_rows is not None:
            matched = matched[: self.max_rows]
        return SimpleNamespace(data=[dict(r) for r in matched])


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.fail = False

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture
def fake_db():
    return FakeSupabase()
