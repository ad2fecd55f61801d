from __future__ import annotations


class FamilyTreeError(Exception):
    """Base class for errors raised by the family-tree core."""


class InvalidRelationshipError(FamilyTreeError, ValueError):
    """Unknown relationship type, or a member related to itself."""


class MemberNotFoundError(FamilyTreeError, LookupError):
    """A member id does not resolve within the requested family."""
