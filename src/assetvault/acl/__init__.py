"""assetvault access control.

Owner + ordered-grant ACL policies with READ < WRITE < ADMIN permissions.
"""

from assetvault.acl.groups import GroupMembershipResolver, InMemoryGroupDirectory
from assetvault.acl.policy import (
    AccessPolicyEngine,
    AclGrant,
    AclPolicy,
    Permission,
    can_access,
)

__all__ = [
    "AccessPolicyEngine",
    "AclGrant",
    "AclPolicy",
    "GroupMembershipResolver",
    "InMemoryGroupDirectory",
    "Permission",
    "can_access",
]
