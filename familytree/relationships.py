"""Relationship sets and two-sided edge maintenance.

A member's relationship set holds four id collections (``parents``,
``children``, ``spouse``, ``siblings``). Edges are always written on both
endpoints:

- parent <-> child are inverses of each other
- spouse and sibling are self-inverse

Everything here is pure: the functions compute the new sets for both members
and leave persistence to the caller (see ``store.py``).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

try:
    from .errors import InvalidRelationshipError
except ImportError:  # pragma: no cover
    # Support running with CWD=familytree (e.g., `python -m uvicorn main:app`).
    from errors import InvalidRelationshipError

log = logging.getLogger(__name__)

RELATIONSHIP_KEYS = ("parents", "children", "spouse", "siblings")


class RelationshipType(str, Enum):
    PARENT = "parent"
    CHILD = "child"
    SPOUSE = "spouse"
    SIBLING = "sibling"

    @property
    def field_name(self) -> str:
        return _FIELD_BY_TYPE[self]

    @property
    def inverse(self) -> "RelationshipType":
        return _INVERSE[self]


_FIELD_BY_TYPE = {
    RelationshipType.PARENT: "parents",
    RelationshipType.CHILD: "children",
    RelationshipType.SPOUSE: "spouse",
    RelationshipType.SIBLING: "siblings",
}

_INVERSE = {
    RelationshipType.PARENT: RelationshipType.CHILD,
    RelationshipType.CHILD: RelationshipType.PARENT,
    RelationshipType.SPOUSE: RelationshipType.SPOUSE,
    RelationshipType.SIBLING: RelationshipType.SIBLING,
}


@dataclass
class RelationshipSet:
    """The four relationship collections of one member.

    Lists keep insertion order (stable JSON) but behave as sets: no duplicates.
    """

    parents: list[str] = field(default_factory=list)
    children: list[str] = field(default_factory=list)
    spouse: list[str] = field(default_factory=list)
    siblings: list[str] = field(default_factory=list)

    def get(self, rel_type: RelationshipType) -> list[str]:
        return getattr(self, rel_type.field_name)

    def is_empty(self) -> bool:
        return not (self.parents or self.children or self.spouse or self.siblings)

    def to_dict(self) -> dict[str, list[str]]:
        return {key: list(getattr(self, key)) for key in RELATIONSHIP_KEYS}

    def to_json(self) -> str:
        """Storage encoding: a compact JSON object with all four keys."""
        return json.dumps(self.to_dict(), separators=(",", ":"))


@dataclass(frozen=True)
class RelationshipChange:
    """Both sides of an add/remove, computed before anything is persisted."""

    member_id: str
    target_id: str
    rel_type: RelationshipType
    member: RelationshipSet
    target: RelationshipSet
    changed: bool


def _clean_ids(value: Any, *, owner_id: str | None) -> list[str]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return []

    out: list[str] = []
    seen: set[str] = set()
    for item in value:
        # bool is an int subclass; never a valid id.
        if isinstance(item, bool) or not isinstance(item, (str, int)):
            continue
        s = str(item).strip()
        if not s or s in seen or s == owner_id:
            continue
        seen.add(s)
        out.append(s)
    return out


def normalize_relationships(raw: Any, owner_id: str | None = None) -> RelationshipSet:
    """Parse a relationship set from whatever the persistence layer returned.

    Accepts ``None``, a JSON string, a mapping, or a ``RelationshipSet``.
    Never raises: anything unparseable becomes an empty set, and any key that
    is missing or not a list becomes an empty list.
    """

    if raw is None:
        return RelationshipSet()

    parsed: Any = raw
    if isinstance(raw, (str, bytes, bytearray)):
        if not raw.strip():
            return RelationshipSet()
        try:
            parsed = json.loads(raw)
        except (ValueError, TypeError, RecursionError):
            log.debug("Unparseable relationship set for %s; treating as empty", owner_id)
            return RelationshipSet()

    if isinstance(parsed, RelationshipSet):
        parsed = parsed.to_dict()

    if not isinstance(parsed, Mapping):
        return RelationshipSet()

    return RelationshipSet(
        **{key: _clean_ids(parsed.get(key), owner_id=owner_id) for key in RELATIONSHIP_KEYS}
    )


def parse_relationship_type(value: Any) -> RelationshipType:
    if isinstance(value, RelationshipType):
        return value
    try:
        return RelationshipType(str(value).strip().lower())
    except ValueError:
        raise InvalidRelationshipError(f"Invalid relationship type: {value!r}") from None


def validate_edge(member_id: str, target_id: str, rel_type: Any) -> RelationshipType:
    t = parse_relationship_type(rel_type)
    if not member_id or not target_id:
        raise InvalidRelationshipError("memberId and targetId are required")
    if member_id == target_id:
        raise InvalidRelationshipError("A member cannot be related to itself")
    return t


def _add_unique(ids: list[str], value: str) -> bool:
    if value in ids:
        return False
    ids.append(value)
    return True


def _remove_value(ids: list[str], value: str) -> bool:
    if value not in ids:
        return False
    ids[:] = [x for x in ids if x != value]
    return True


def add_relationship(
    member_id: str,
    member_rel: Any,
    target_id: str,
    target_rel: Any,
    rel_type: RelationshipType | str,
) -> RelationshipChange:
    """Link ``target_id`` to ``member_id`` as ``rel_type`` (from member's view).

    ``rel_type=parent`` means "target is a parent of member". Re-adding an
    existing link is a no-op. Inputs are not mutated.
    """

    t = validate_edge(member_id, target_id, rel_type)
    member = normalize_relationships(member_rel, owner_id=member_id)
    target = normalize_relationships(target_rel, owner_id=target_id)

    changed = _add_unique(member.get(t), target_id)
    changed = _add_unique(target.get(t.inverse), member_id) or changed

    return RelationshipChange(member_id, target_id, t, member, target, changed)


def remove_relationship(
    member_id: str,
    member_rel: Any,
    target_id: str,
    target_rel: Any,
    rel_type: RelationshipType | str,
) -> RelationshipChange:
    """Unlink both sides of a ``rel_type`` edge. Missing links are a no-op."""

    t = validate_edge(member_id, target_id, rel_type)
    member = normalize_relationships(member_rel, owner_id=member_id)
    target = normalize_relationships(target_rel, owner_id=target_id)

    changed = _remove_value(member.get(t), target_id)
    changed = _remove_value(target.get(t.inverse), member_id) or changed

    return RelationshipChange(member_id, target_id, t, member, target, changed)
