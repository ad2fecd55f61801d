from __future__ import annotations

from typing import Any

try:
    from .kinship import Kinship
    from .relationships import RelationshipChange
    from .store import MemberRecord
except ImportError:  # pragma: no cover
    # Support running with CWD=familytree (e.g., `python -m uvicorn main:app`).
    from kinship import Kinship
    from relationships import RelationshipChange
    from store import MemberRecord


def _display_name(first_name: str | None, last_name: str | None) -> str | None:
    name = f"{(first_name or '').strip()} {(last_name or '').strip()}".strip()
    return name or None


def serialize_member(rec: MemberRecord) -> dict[str, Any]:
    """Public JSON shape of a member: camelCase keys, relationships as plain lists."""
    return {
        "id": rec.id,
        "familyId": rec.family_id,
        "firstName": rec.first_name,
        "lastName": rec.last_name or "",
        "displayName": _display_name(rec.first_name, rec.last_name),
        "gender": rec.gender,
        "relationships": rec.relationships.to_dict(),
    }


def serialize_change(change: RelationshipChange) -> dict[str, Any]:
    return {
        "success": True,
        "type": change.rel_type.value,
        "changed": change.changed,
        "member": {"id": change.member_id, "relationships": change.member.to_dict()},
        "target": {"id": change.target_id, "relationships": change.target.to_dict()},
    }


def serialize_kinship(member_id: str, target_id: str, kinship: Kinship) -> dict[str, Any]:
    out: dict[str, Any] = {"from": member_id, "to": target_id}
    out.update(kinship.to_dict())
    return out
