"""In-memory stand-in for a psycopg connection over the family_member table."""

from __future__ import annotations

import copy
import json
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator


@dataclass
class FakeResult:
    rows: list[tuple]

    def fetchall(self) -> list[tuple]:
        return list(self.rows)

    def fetchone(self) -> tuple | None:
        return self.rows[0] if self.rows else None


class FakeConn:
    def __init__(self, members: list[tuple]) -> None:
        # rows are (id, family_id, first_name, last_name, gender, relationships)
        self.rows: dict[str, list[Any]] = {str(r[0]): list(r) for r in members}
        self.queries: list[str] = []
        self.updates: list[tuple[str, int]] = []
        self.tx_depth = 0
        self.fail_on_update: str | None = None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        snapshot = copy.deepcopy(self.rows)
        self.tx_depth += 1
        try:
            yield
        except BaseException:
            self.rows = snapshot
            raise
        finally:
            self.tx_depth -= 1

    def execute(self, query: str, params: tuple) -> FakeResult:
        q = " ".join((query or "").split()).lower()
        self.queries.append(q)
        cols = "select id, family_id, first_name, last_name, gender, relationships from family_member"

        if q.startswith(cols + " where id = any(%s) for update"):
            ids = set(params[0])
            return FakeResult([tuple(r) for mid, r in self.rows.items() if mid in ids])

        if q.startswith(cols + " where id = %s"):
            row = self.rows.get(params[0])
            return FakeResult([tuple(row)] if row else [])

        if q.startswith(cols + " where family_id = %s"):
            rows = [tuple(r) for r in self.rows.values() if r[1] == params[0]]
            rows.sort(key=lambda r: (r[2] is None, r[2] or "", r[0]))
            return FakeResult(rows)

        if q.startswith("update family_member set relationships = %s where id = %s"):
            value, mid = params
            if mid == self.fail_on_update:
                raise RuntimeError("write failed")
            self.rows[mid][5] = value
            self.updates.append((mid, self.tx_depth))
            return FakeResult([])

        raise AssertionError(f"Unexpected query: {query}")

    def relationships(self, mid: str) -> dict[str, list[str]]:
        return json.loads(self.rows[mid][5])
