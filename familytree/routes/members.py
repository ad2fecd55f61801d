from __future__ import annotations

from typing import Any

from fastapi import APIRouter

try:
    from ..db import db_conn
    from ..errors import MemberNotFoundError
    from ..family_view import describe_family
    from ..serialize import serialize_member
    from ..store import RelationshipStore
    from .relationship import kinship_max_depth
except ImportError:  # pragma: no cover
    # Support running with CWD=familytree (e.g., `python -m uvicorn main:app`).
    from db import db_conn
    from errors import MemberNotFoundError
    from family_view import describe_family
    from serialize import serialize_member
    from store import RelationshipStore
    from routes.relationship import kinship_max_depth

router = APIRouter(tags=["members"])


@router.get("/families/{family_id}/tree")
def family_tree(family_id: str) -> dict[str, Any]:
    """All members of a family with normalized relationship sets.

    Intended for clients that build the tree (and run their own layout) locally.
    """

    with db_conn() as conn:
        records = RelationshipStore(conn).load_family(family_id)

    members = [serialize_member(rec) for rec in records]
    return {"success": True, "familyId": family_id, "count": len(members), "members": members}


@router.get("/families/{family_id}/members/{member_id}/family")
def member_family(family_id: str, member_id: str) -> dict[str, Any]:
    """Immediate family plus every other member labelled by kinship."""

    with db_conn() as conn:
        records = RelationshipStore(conn).load_family(family_id)

    by_id = {rec.id: rec for rec in records}
    if member_id not in by_id:
        raise MemberNotFoundError(f"member not found: {member_id}")

    index = {rec.id: rec.to_node() for rec in records}
    view = describe_family(member_id, index, max_depth=kinship_max_depth())

    def _brief(mid: str) -> dict[str, Any]:
        out = serialize_member(by_id[mid])
        out.pop("relationships", None)
        return out

    payload = view.to_dict()
    for key in ("parents", "siblings", "spouses", "children"):
        payload[key] = [_brief(mid) for mid in payload[key]]
    for item in payload["extended"]:
        item["member"] = _brief(item["id"])
    payload["member"] = serialize_member(by_id[member_id])
    return payload
