from __future__ import annotations

from typing import Any, Callable, Iterable

import pytest

from familytree.kinship import MemberNode, build_member_index


def _build_family(
    genders: dict[str, str | None],
    parents_of: dict[str, list[str]] | None = None,
    *,
    spouses: Iterable[tuple[str, str]] = (),
    siblings: Iterable[tuple[str, str]] = (),
) -> dict[str, MemberNode]:
    """Build a consistent snapshot: children/spouse/siblings mirror the given edges."""

    rels: dict[str, dict[str, list[str]]] = {
        mid: {"parents": [], "children": [], "spouse": [], "siblings": []} for mid in genders
    }
    for child, parents in (parents_of or {}).items():
        for parent in parents:
            rels[child]["parents"].append(parent)
            rels[parent]["children"].append(child)
    for a, b in spouses:
        rels[a]["spouse"].append(b)
        rels[b]["spouse"].append(a)
    for a, b in siblings:
        rels[a]["siblings"].append(b)
        rels[b]["siblings"].append(a)

    members: list[dict[str, Any]] = [
        {"id": mid, "gender": gender, "relationships": rels[mid]} for mid, gender in genders.items()
    ]
    return build_member_index(members)


@pytest.fixture()
def build_family() -> Callable[..., dict[str, MemberNode]]:
    return _build_family


@pytest.fixture()
def cousins_family() -> dict[str, MemberNode]:
    # G
    # ├── P1 (f) ── A (m) ── C (f) ── D (m)
    # └── P2 (m) ── B (f)
    return _build_family(
        {"G": "male", "P1": "female", "P2": "male", "A": "male", "B": "female", "C": "female", "D": "male"},
        {"P1": ["G"], "P2": ["G"], "A": ["P1"], "B": ["P2"], "C": ["A"], "D": ["C"]},
    )
