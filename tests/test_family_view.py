from __future__ import annotations

import pytest

from familytree.errors import MemberNotFoundError
from familytree.family_view import describe_family


def test_direct_relatives_grouped(build_family) -> None:
    index = build_family(
        {"M": None, "F": None, "Me": "female", "Bro": None, "Husband": None, "Kid": None, "Half": None},
        {"Me": ["M", "F"], "Bro": ["M", "F"], "Kid": ["Me"]},
        spouses=[("Me", "Husband")],
        siblings=[("Me", "Half")],
    )

    view = describe_family("Me", index)
    assert view.parents == ["M", "F"]
    # explicit sibling first, then siblings inferred from a shared parent
    assert view.siblings == ["Half", "Bro"]
    assert view.spouses == ["Husband"]
    assert view.children == ["Kid"]
    assert view.extended == []


def test_extended_relations_labelled_and_sorted(cousins_family) -> None:
    view = describe_family("A", cousins_family)
    assert view.parents == ["P1"]
    assert view.children == ["C"]
    assert view.extended == [
        ("B", "1st cousin", "cousin"),
        ("D", "Grandfather", "ancestor"),
        ("G", "Grandson", "descendant"),
        ("P2", "Nephew", "niece-nephew"),
    ]


def test_dangling_ids_not_listed(build_family) -> None:
    index = build_family({"A": None})
    index["A"].relationships.parents.append("gone")
    view = describe_family("A", index)
    assert view.parents == []


def test_to_dict_shape(cousins_family) -> None:
    out = describe_family("B", cousins_family).to_dict()
    assert out["member_id"] == "B"
    assert out["parents"] == ["P2"]
    assert {"id": "A", "relationship": "1st cousin", "kind": "cousin"} in out["extended"]


def test_unknown_member_raises(cousins_family) -> None:
    with pytest.raises(MemberNotFoundError):
        describe_family("nobody", cousins_family)
