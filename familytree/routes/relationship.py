from __future__ import annotations

import os
from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

try:
    from ..db import db_conn
    from ..kinship import DEFAULT_MAX_DEPTH, compute_relationship_label
    from ..serialize import serialize_change, serialize_kinship
    from ..store import RelationshipStore
except ImportError:  # pragma: no cover
    # Support running with CWD=familytree (e.g., `python -m uvicorn main:app`).
    from db import db_conn
    from kinship import DEFAULT_MAX_DEPTH, compute_relationship_label
    from serialize import serialize_change, serialize_kinship
    from store import RelationshipStore

router = APIRouter(tags=["relationships"])

_MAX_DEPTH_ENV = "KINSHIP_MAX_DEPTH"
_MAX_DEPTH_LIMIT = 50


def kinship_max_depth() -> int:
    """Ancestor search bound: ``KINSHIP_MAX_DEPTH`` if set and sane, else 12."""
    raw = os.environ.get(_MAX_DEPTH_ENV, "").strip()
    if not raw:
        return DEFAULT_MAX_DEPTH
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_MAX_DEPTH
    return max(1, min(value, _MAX_DEPTH_LIMIT))


class RelationshipRequest(BaseModel):
    memberId: str = Field(min_length=1, max_length=64)
    targetId: str = Field(min_length=1, max_length=64)
    # Validated by the store so unknown types surface as InvalidRelationshipError.
    type: str = Field(min_length=1, max_length=16)


@router.post("/members/relationship")
def add_member_relationship(body: RelationshipRequest) -> dict[str, Any]:
    """Link two members of the same family; both sides are written together."""
    with db_conn() as conn:
        change = RelationshipStore(conn).add(body.memberId, body.targetId, body.type)
    return serialize_change(change)


@router.delete("/members/relationship")
def remove_member_relationship(body: RelationshipRequest) -> dict[str, Any]:
    with db_conn() as conn:
        change = RelationshipStore(conn).remove(body.memberId, body.targetId, body.type)
    return serialize_change(change)


@router.get("/families/{family_id}/relationship")
def relationship_label(
    family_id: str,
    from_id: str = Query(min_length=1, max_length=64),
    to_id: str = Query(min_length=1, max_length=64),
    max_depth: int | None = Query(default=None, ge=1, le=_MAX_DEPTH_LIMIT),
) -> dict[str, Any]:
    """What ``to_id`` is to ``from_id``, e.g. "2nd cousin once removed"."""

    with db_conn() as conn:
        index = RelationshipStore(conn).load_graph(family_id)

    kinship = compute_relationship_label(
        from_id,
        to_id,
        index,
        max_depth=max_depth or kinship_max_depth(),
    )
    return serialize_kinship(from_id, to_id, kinship)
