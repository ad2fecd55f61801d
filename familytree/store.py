"""Persisted relationship store.

Reads and writes the ``relationships`` column of ``family_member`` rows.
Both sides of an edge change are computed first (``relationships.py``), then
written in a single transaction while holding the family's lock, so a reader
never sees a one-sided edge.

Expected table (schema management lives elsewhere):

    family_member(id, family_id, first_name, last_name, gender, relationships)
"""

from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import dataclass, field
from typing import Any

import psycopg

try:
    from .errors import MemberNotFoundError
    from .kinship import MemberNode
    from .relationships import (
        RelationshipChange,
        RelationshipSet,
        RelationshipType,
        add_relationship,
        normalize_relationships,
        remove_relationship,
        validate_edge,
    )
except ImportError:  # pragma: no cover
    # Support running with CWD=familytree (e.g., `python -m uvicorn main:app`).
    from errors import MemberNotFoundError
    from kinship import MemberNode
    from relationships import (
        RelationshipChange,
        RelationshipSet,
        RelationshipType,
        add_relationship,
        normalize_relationships,
        remove_relationship,
        validate_edge,
    )

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Per-family locking
# ---------------------------------------------------------------------------

_locks_guard = threading.Lock()
_family_locks: weakref.WeakValueDictionary[str, FamilyLock] = weakref.WeakValueDictionary()


class FamilyLock:
    """A ``threading.Lock`` that can be weakly referenced.

    Entries in the registry disappear once no caller holds the lock object,
    so the registry only grows with the number of families being edited at once.
    """

    __slots__ = ("_lock", "__weakref__")

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def acquire(self, blocking: bool = True, timeout: float = -1) -> bool:
        return self._lock.acquire(blocking, timeout)

    def release(self) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()

    def __enter__(self) -> "FamilyLock":
        self._lock.acquire()
        return self

    def __exit__(self, *exc: Any) -> None:
        self._lock.release()


def family_lock(family_id: str) -> FamilyLock:
    """Return the in-process lock serializing edge edits within one family."""
    with _locks_guard:
        lock = _family_locks.get(family_id)
        if lock is None:
            lock = FamilyLock()
            _family_locks[family_id] = lock
        return lock


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class MemberRecord:
    id: str
    family_id: str
    first_name: str | None = None
    last_name: str | None = None
    gender: str | None = None
    relationships: RelationshipSet = field(default_factory=RelationshipSet)

    def to_node(self) -> MemberNode:
        return MemberNode(id=self.id, gender=self.gender, relationships=self.relationships)


def _row_to_record(r: tuple[Any, ...]) -> MemberRecord:
    # r = (id, family_id, first_name, last_name, gender, relationships)
    mid, family_id, first_name, last_name, gender, relationships = r
    mid = str(mid)
    return MemberRecord(
        id=mid,
        family_id=str(family_id),
        first_name=first_name,
        last_name=last_name,
        gender=gender,
        relationships=normalize_relationships(relationships, owner_id=mid),
    )


_COMPUTE = {"add": add_relationship, "remove": remove_relationship}

_MEMBER_COLUMNS = "id, family_id, first_name, last_name, gender, relationships"


class RelationshipStore:
    """Relationship edits and family snapshots over one psycopg connection."""

    def __init__(self, conn: psycopg.Connection) -> None:
        self._conn = conn

    # -- reads -------------------------------------------------------------

    def get_member(self, member_id: str) -> MemberRecord:
        row = self._conn.execute(
            f"SELECT {_MEMBER_COLUMNS} FROM family_member WHERE id = %s",
            (member_id,),
        ).fetchone()
        if not row:
            raise MemberNotFoundError(f"member not found: {member_id}")
        return _row_to_record(tuple(row))

    def load_family(self, family_id: str) -> list[MemberRecord]:
        rows = self._conn.execute(
            f"""
            SELECT {_MEMBER_COLUMNS}
            FROM family_member
            WHERE family_id = %s
            ORDER BY first_name NULLS LAST, id
            """.strip(),
            (family_id,),
        ).fetchall()
        return [_row_to_record(tuple(r)) for r in rows]

    def load_graph(self, family_id: str) -> dict[str, MemberNode]:
        """Read every member of a family in one transaction and index by id."""
        with self._conn.transaction():
            records = self.load_family(family_id)
        return {rec.id: rec.to_node() for rec in records}

    # -- writes ------------------------------------------------------------

    def add(self, member_id: str, target_id: str, rel_type: RelationshipType | str) -> RelationshipChange:
        return self._apply("add", member_id, target_id, rel_type)

    def remove(self, member_id: str, target_id: str, rel_type: RelationshipType | str) -> RelationshipChange:
        return self._apply("remove", member_id, target_id, rel_type)

    def _apply(
        self,
        action: str,
        member_id: str,
        target_id: str,
        rel_type: RelationshipType | str,
    ) -> RelationshipChange:
        validate_edge(member_id, target_id, rel_type)
        compute = _COMPUTE[action]

        family_id = self.get_member(member_id).family_id

        with family_lock(family_id):
            with self._conn.transaction():
                rows = self._conn.execute(
                    f"SELECT {_MEMBER_COLUMNS} FROM family_member WHERE id = ANY(%s) FOR UPDATE",
                    ([member_id, target_id],),
                ).fetchall()
                by_id = {rec.id: rec for rec in (_row_to_record(tuple(r)) for r in rows)}

                member = by_id.get(member_id)
                target = by_id.get(target_id)
                if (
                    member is None
                    or target is None
                    or member.family_id != family_id
                    or target.family_id != family_id
                ):
                    raise MemberNotFoundError("Members not found in the same family")

                change = compute(member_id, member.relationships, target_id, target.relationships, rel_type)
                if change.changed:
                    for mid, rel in ((member_id, change.member), (target_id, change.target)):
                        self._conn.execute(
                            "UPDATE family_member SET relationships = %s WHERE id = %s",
                            (rel.to_json(), mid),
                        )

        log.info(
            "%s %s relationship %s -> %s in family %s (changed=%s)",
            action,
            change.rel_type.value,
            member_id,
            target_id,
            family_id,
            change.changed,
        )
        return change
