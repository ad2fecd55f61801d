"""Kinship resolver: name the relationship between two members of a family.

Works on a read-only snapshot (``member id -> MemberNode``) and never touches
the database. Resolution order:

1. trivial cases (self / unknown ids)
2. direct edges (spouse, child, parent, sibling)
3. two bounded ancestor-distance maps (BFS along ``parents`` only) and the
   best common ancestor, minimizing (depthA + depthB, max(depthA, depthB))
4. a label chosen by the depth pattern

Labels always use the *queried member's* gender, e.g. a male member whose
target is his grandparent gets "Grandfather".
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

try:
    from .relationships import RelationshipSet, normalize_relationships
except ImportError:  # pragma: no cover
    # Support running with CWD=familytree (e.g., `python -m uvicorn main:app`).
    from relationships import RelationshipSet, normalize_relationships

DEFAULT_MAX_DEPTH = 12


class Kind(str, Enum):
    SELF = "self"
    SPOUSE = "spouse"
    PARENT = "parent"
    CHILD = "child"
    SIBLING = "sibling"
    ANCESTOR = "ancestor"
    DESCENDANT = "descendant"
    AUNT_UNCLE = "aunt-uncle"
    NIECE_NEPHEW = "niece-nephew"
    COUSIN = "cousin"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class MemberNode:
    id: str
    gender: str | None = None
    relationships: RelationshipSet = field(default_factory=RelationshipSet)


@dataclass(frozen=True)
class Kinship:
    label: str
    kind: Kind
    # "direct" (edge short-circuit), "ancestor" (common-ancestor search) or "none".
    basis: str = "none"
    common_ancestor_id: str | None = None
    depths: tuple[int, int] | None = None
    generations: int | None = None
    degree: int | None = None
    removal: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "kind": self.kind.value,
            "basis": self.basis,
            "common_ancestor_id": self.common_ancestor_id,
            "depths": list(self.depths) if self.depths else None,
            "generations": self.generations,
            "degree": self.degree,
            "removal": self.removal,
        }


MemberIndex = Mapping[str, MemberNode]


# ---------------------------------------------------------------------------
# Naming grammar
# ---------------------------------------------------------------------------


def gendered_label(gender: str | None, male: str, female: str, neutral: str) -> str:
    if gender == "male":
        return male
    if gender == "female":
        return female
    return neutral


def ordinal(n: int) -> str:
    n = int(n)
    if 11 <= n % 100 <= 13:
        return f"{n}th"
    last = n % 10
    if last == 1:
        return f"{n}st"
    if last == 2:
        return f"{n}nd"
    if last == 3:
        return f"{n}rd"
    return f"{n}th"


def ancestor_label(depth: int, gender: str | None, is_ancestor: bool) -> str:
    """Straight-line label: Father/Son at 1, Grandfather/Grandson at 2, then Great-."""

    if depth == 1:
        if is_ancestor:
            return gendered_label(gender, "Father", "Mother", "Parent")
        return gendered_label(gender, "Son", "Daughter", "Child")

    if is_ancestor:
        base = gendered_label(gender, "Grandfather", "Grandmother", "Grandparent")
    else:
        base = gendered_label(gender, "Grandson", "Granddaughter", "Grandchild")
    if depth == 2:
        return base
    return "Great-" * (depth - 2) + base


def aunt_uncle_label(removal: int, gender: str | None) -> str:
    base = gendered_label(gender, "Uncle", "Aunt", "Aunt/Uncle")
    if removal <= 1:
        return base
    return "Great-" * (removal - 1) + base


def niece_nephew_label(removal: int, gender: str | None) -> str:
    base = gendered_label(gender, "Nephew", "Niece", "Niece/Nephew")
    if removal <= 1:
        return base
    return "Great-" * (removal - 1) + base


def cousin_label(degree: int, removal: int) -> str:
    base = f"{ordinal(degree)} cousin"
    if removal == 0:
        return base
    if removal == 1:
        return f"{base} once removed"
    if removal == 2:
        return f"{base} twice removed"
    return f"{base} {removal} times removed"


# ---------------------------------------------------------------------------
# Snapshot construction
# ---------------------------------------------------------------------------


def _default_member_id(member: Mapping[str, Any]) -> str:
    raw = member.get("id") or member.get("_id") or ""
    return str(raw)


def build_member_index(
    members: Iterable[Mapping[str, Any]],
    get_id: Callable[[Mapping[str, Any]], str] = _default_member_id,
) -> dict[str, MemberNode]:
    """Build the resolver snapshot from member mappings.

    Members without an id are skipped; relationship sets are normalized, so
    raw JSON strings straight from storage are fine.
    """

    index: dict[str, MemberNode] = {}
    for member in members:
        mid = get_id(member)
        if not mid:
            continue
        index[mid] = MemberNode(
            id=mid,
            gender=member.get("gender"),
            relationships=normalize_relationships(member.get("relationships"), owner_id=mid),
        )
    return index


# ---------------------------------------------------------------------------
# Ancestor search
# ---------------------------------------------------------------------------


def ancestor_depths(
    member_id: str,
    index: MemberIndex,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> dict[str, int]:
    """Return ancestor id -> shortest generation distance, including ``member_id`` at 0.

    BFS strictly along ``parents`` edges, bounded by ``max_depth``. The visited
    map makes cycles (a member recorded as its own ancestor) harmless.
    """

    depths: dict[str, int] = {member_id: 0}
    queue: deque[str] = deque([member_id])

    while queue:
        current = queue.popleft()
        d = depths[current]
        if d >= max_depth:
            continue
        node = index.get(current)
        if node is None:
            continue
        for parent_id in node.relationships.parents:
            if parent_id in depths:
                continue
            depths[parent_id] = d + 1
            queue.append(parent_id)

    return depths


def find_common_ancestor(
    ancestors_a: Mapping[str, int],
    ancestors_b: Mapping[str, int],
) -> tuple[str, int, int] | None:
    """Pick the common ancestor minimizing (total depth, max depth).

    Ties beyond that keep the first one seen in ``ancestors_a``.
    """

    best: tuple[str, int, int] | None = None
    best_key: tuple[int, int] | None = None
    for ancestor_id, depth_a in ancestors_a.items():
        depth_b = ancestors_b.get(ancestor_id)
        if depth_b is None:
            continue
        key = (depth_a + depth_b, max(depth_a, depth_b))
        if best_key is None or key < best_key:
            best = (ancestor_id, depth_a, depth_b)
            best_key = key
    return best


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

_UNKNOWN = Kinship(label="Unknown", kind=Kind.UNKNOWN)
_NO_RELATION = Kinship(label="No known relation", kind=Kind.UNKNOWN)


def _direct_kinship(member: MemberNode, target_id: str) -> Kinship | None:
    rel = member.relationships
    if target_id in rel.spouse:
        return Kinship(label="Spouse", kind=Kind.SPOUSE, basis="direct")
    if target_id in rel.children:
        return Kinship(
            label=ancestor_label(1, member.gender, True),
            kind=Kind.PARENT,
            basis="direct",
            generations=1,
        )
    if target_id in rel.parents:
        return Kinship(
            label=ancestor_label(1, member.gender, False),
            kind=Kind.CHILD,
            basis="direct",
            generations=1,
        )
    if target_id in rel.siblings:
        return Kinship(label="Sibling", kind=Kind.SIBLING, basis="direct")
    return None


def _kinship_from_depths(member: MemberNode, ancestor_id: str, depth_a: int, depth_b: int) -> Kinship:
    common = {"basis": "ancestor", "common_ancestor_id": ancestor_id, "depths": (depth_a, depth_b)}
    gender = member.gender

    if depth_a == 0:
        return Kinship(
            label=ancestor_label(depth_b, gender, True),
            kind=Kind.ANCESTOR,
            generations=depth_b,
            **common,
        )
    if depth_b == 0:
        return Kinship(
            label=ancestor_label(depth_a, gender, False),
            kind=Kind.DESCENDANT,
            generations=depth_a,
            **common,
        )
    if depth_a == 1 and depth_b == 1:
        return Kinship(label="Sibling", kind=Kind.SIBLING, **common)
    if depth_a == 1:
        removal = depth_b - 1
        return Kinship(
            label=aunt_uncle_label(removal, gender),
            kind=Kind.AUNT_UNCLE,
            generations=removal,
            **common,
        )
    if depth_b == 1:
        removal = depth_a - 1
        return Kinship(
            label=niece_nephew_label(removal, gender),
            kind=Kind.NIECE_NEPHEW,
            generations=removal,
            **common,
        )

    degree = max(1, min(depth_a, depth_b) - 1)
    removal = abs(depth_a - depth_b)
    return Kinship(
        label=cousin_label(degree, removal),
        kind=Kind.COUSIN,
        degree=degree,
        removal=removal,
        **common,
    )


def compute_relationship_label(
    member_id: str,
    target_id: str,
    index: MemberIndex,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Kinship:
    """Describe what ``target_id`` is to ``member_id``.

    Never raises on incomplete or malformed graph data; the worst case is an
    ``unknown`` kind.
    """

    if not member_id or not target_id:
        return _UNKNOWN
    if member_id == target_id:
        return Kinship(label="Self", kind=Kind.SELF)

    member = index.get(member_id)
    if member is None or target_id not in index:
        return _UNKNOWN

    direct = _direct_kinship(member, target_id)
    if direct is not None:
        return direct

    best = find_common_ancestor(
        ancestor_depths(member_id, index, max_depth=max_depth),
        ancestor_depths(target_id, index, max_depth=max_depth),
    )
    if best is None:
        return _NO_RELATION
    return _kinship_from_depths(member, *best)
