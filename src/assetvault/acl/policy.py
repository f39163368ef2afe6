"""assetvault ACL policies and access evaluation.

Implements owner + ordered-grant authorization for stored objects:
- The owner implicitly holds ADMIN
- Grants name an individual caller or a group, with a permission level
- Permissions are ordered READ < WRITE < ADMIN; higher implies lower
- Deny-by-default: no owner match and no matching grant means no access

Group membership is not resolved here; it is delegated to a
GroupMembershipResolver supplied by the caller-identity collaborator.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from assetvault.acl.groups import GroupMembershipResolver

logger = logging.getLogger(__name__)


class Permission(StrEnum):
    """Object permission levels, serialized as lowercase strings."""

    READ = "read"
    WRITE = "write"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        """Position in the READ < WRITE < ADMIN ordering."""
        return _PERMISSION_RANK[self]

    def implies(self, requested: Permission) -> bool:
        """Return True if holding this permission satisfies ``requested``."""
        return self.rank >= requested.rank

    @classmethod
    def parse(cls, value: str | Permission) -> Permission:
        """Parse a permission name case-insensitively.

        Raises:
            ValueError: If the value names no known permission.
        """
        if isinstance(value, Permission):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise ValueError(f"Unknown permission: {value!r}") from e


_PERMISSION_RANK: dict[Permission, int] = {
    Permission.READ: 0,
    Permission.WRITE: 1,
    Permission.ADMIN: 2,
}


@dataclass(frozen=True, slots=True)
class AclGrant:
    """A single grant of a permission to an individual or group.

    Attributes:
        grantee_id: Caller identity or group identifier.
        permission: Permission granted.
    """

    grantee_id: str
    permission: Permission

    def to_dict(self) -> dict[str, str]:
        """Convert grant to its sidecar JSON shape."""
        return {"granteeId": self.grantee_id, "permission": self.permission.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AclGrant:
        """Create a grant from its sidecar JSON shape.

        Raises:
            ValueError: If the grantee is missing or the permission is unknown.
        """
        grantee_raw = data.get("granteeId")
        if not isinstance(grantee_raw, str) or not grantee_raw:
            raise ValueError("Grant is missing granteeId")
        return cls(
            grantee_id=grantee_raw,
            permission=Permission.parse(str(data.get("permission", ""))),
        )


@dataclass(frozen=True, slots=True)
class AclPolicy:
    """Access-control policy attached to an object.

    An empty policy (no owner, no grants) denies every caller.

    Attributes:
        owner_id: Identity holding full permission on the object.
        grants: Grants evaluated in order.
    """

    owner_id: str | None = None
    grants: tuple[AclGrant, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> AclPolicy:
        """Return the default-deny policy used when none is configured."""
        return cls()

    @property
    def is_empty(self) -> bool:
        """True if the policy has neither an owner nor any grants."""
        return self.owner_id is None and not self.grants

    def with_grant(self, grantee_id: str, permission: Permission) -> AclPolicy:
        """Return a copy granting ``permission`` to ``grantee_id``.

        An existing grant for the same grantee is replaced in place.
        """
        replaced = False
        grants: list[AclGrant] = []
        for grant in self.grants:
            if grant.grantee_id == grantee_id:
                if not replaced:
                    grants.append(AclGrant(grantee_id, permission))
                    replaced = True
                continue
            grants.append(grant)
        if not replaced:
            grants.append(AclGrant(grantee_id, permission))
        return AclPolicy(owner_id=self.owner_id, grants=tuple(grants))

    def without_grant(self, grantee_id: str) -> AclPolicy:
        """Return a copy with every grant for ``grantee_id`` removed."""
        return AclPolicy(
            owner_id=self.owner_id,
            grants=tuple(g for g in self.grants if g.grantee_id != grantee_id),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert policy to its sidecar JSON shape."""
        return {
            "ownerId": self.owner_id,
            "grants": [grant.to_dict() for grant in self.grants],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AclPolicy:
        """Create a policy from its sidecar JSON shape.

        Malformed grants are skipped with a warning rather than failing the
        whole policy.
        """
        owner_raw = data.get("ownerId")
        owner_id = str(owner_raw) if owner_raw else None

        grants_raw = data.get("grants")
        grants: list[AclGrant] = []
        if isinstance(grants_raw, list):
            for item in grants_raw:
                if not isinstance(item, Mapping):
                    logger.warning("Skipping malformed ACL grant: %r", item)
                    continue
                try:
                    grants.append(AclGrant.from_dict(item))
                except ValueError as e:
                    logger.warning("Skipping invalid ACL grant: %s", e)

        return cls(owner_id=owner_id, grants=tuple(grants))

    @classmethod
    def build(
        cls,
        owner_id: str | None,
        grants: Iterable[tuple[str, Permission | str]] = (),
    ) -> AclPolicy:
        """Build a policy from (grantee_id, permission) pairs."""
        return cls(
            owner_id=owner_id,
            grants=tuple(AclGrant(grantee, Permission.parse(perm)) for grantee, perm in grants),
        )


def _grantee_matches(
    grantee_id: str,
    caller_id: str,
    groups: GroupMembershipResolver | None,
) -> bool:
    if grantee_id == caller_id:
        return True
    if groups is None:
        return False
    return groups.is_member(caller_id, grantee_id)


def can_access(
    policy: AclPolicy | None,
    caller_id: str | None,
    requested: Permission,
    groups: GroupMembershipResolver | None = None,
) -> bool:
    """Evaluate whether ``caller_id`` holds ``requested`` under ``policy``.

    Evaluation order:
    1. Anonymous callers (None or empty) are denied.
    2. The owner is allowed unconditionally.
    3. Grants are scanned in order; the first grant whose grantee matches the
       caller (directly or through group membership) and whose permission
       implies the requested one allows access.
    4. Otherwise access is denied.

    Args:
        policy: Policy to evaluate. None is treated as the empty policy.
        caller_id: Identity supplied by the caller-identity collaborator.
        requested: Permission being requested.
        groups: Optional resolver for group grantees.

    Returns:
        True if access is allowed.
    """
    if not caller_id:
        return False

    if policy is None:
        return False

    if policy.owner_id is not None and caller_id == policy.owner_id:
        return True

    for grant in policy.grants:
        if not grant.permission.implies(requested):
            continue
        if _grantee_matches(grant.grantee_id, caller_id, groups):
            return True

    return False


class AccessPolicyEngine:
    """ACL evaluator bound to a group-membership resolver."""

    def __init__(self, groups: GroupMembershipResolver | None = None) -> None:
        self._groups = groups

    @property
    def groups(self) -> GroupMembershipResolver | None:
        return self._groups

    def can_access(
        self,
        policy: AclPolicy | None,
        caller_id: str | None,
        requested: Permission,
    ) -> bool:
        """Evaluate ``policy`` for ``caller_id`` using the bound resolver."""
        return can_access(policy, caller_id, requested, self._groups)
