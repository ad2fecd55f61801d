from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

try:
    from .errors import MemberNotFoundError
    from .kinship import DEFAULT_MAX_DEPTH, MemberIndex, compute_relationship_label
except ImportError:  # pragma: no cover
    # Support running with CWD=familytree (e.g., `python -m uvicorn main:app`).
    from errors import MemberNotFoundError
    from kinship import DEFAULT_MAX_DEPTH, MemberIndex, compute_relationship_label


@dataclass
class FamilyView:
    member_id: str
    parents: list[str] = field(default_factory=list)
    siblings: list[str] = field(default_factory=list)
    spouses: list[str] = field(default_factory=list)
    children: list[str] = field(default_factory=list)
    # (member id, label, kind) for everyone outside the immediate family.
    extended: list[tuple[str, str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "member_id": self.member_id,
            "parents": list(self.parents),
            "siblings": list(self.siblings),
            "spouses": list(self.spouses),
            "children": list(self.children),
            "extended": [
                {"id": mid, "relationship": label, "kind": kind}
                for mid, label, kind in self.extended
            ],
        }


def describe_family(
    member_id: str,
    index: MemberIndex,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> FamilyView:
    """Group a member's relatives the way the profile page shows them.

    Direct relatives come straight from the relationship set, except siblings,
    which also include anyone sharing a recorded parent. Every other member of
    the snapshot is labelled by the resolver and sorted by label.
    """

    member = index.get(member_id)
    if member is None:
        raise MemberNotFoundError(f"member not found: {member_id}")

    rel = member.relationships
    parents = [pid for pid in rel.parents if pid in index]
    spouses = [sid for sid in rel.spouse if sid in index]
    children = [cid for cid in rel.children if cid in index]

    my_parents = set(rel.parents)
    siblings = [sid for sid in rel.siblings if sid in index]
    for other_id, other in index.items():
        if other_id == member_id or other_id in siblings:
            continue
        if my_parents.intersection(other.relationships.parents):
            siblings.append(other_id)

    direct = {member_id, *parents, *siblings, *spouses, *children}
    extended: list[tuple[str, str, str]] = []
    for other_id in index:
        if other_id in direct:
            continue
        k = compute_relationship_label(member_id, other_id, index, max_depth=max_depth)
        extended.append((other_id, k.label, k.kind.value))
    extended.sort(key=lambda item: (item[1], item[0]))

    return FamilyView(
        member_id=member_id,
        parents=parents,
        siblings=siblings,
        spouses=spouses,
        children=children,
        extended=extended,
    )
