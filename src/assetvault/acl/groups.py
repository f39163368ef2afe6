"""Group membership resolution for ACL grantees.

The storage layer never authenticates callers. Whoever supplies the caller
identity also answers whether that caller belongs to a group named in a
grant.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol


class GroupMembershipResolver(Protocol):
    """Protocol for resolving whether a caller belongs to a group.

    Implementations must return False for unknown callers and unknown groups.
    """

    def is_member(self, caller_id: str, group_id: str) -> bool:
        """Return True if ``caller_id`` is a member of ``group_id``."""
        ...


class InMemoryGroupDirectory:
    """In-memory group directory for testing and small deployments."""

    def __init__(self, memberships: Mapping[str, Iterable[str]] | None = None) -> None:
        self._members: dict[str, set[str]] = {}
        if memberships:
            for group_id, members in memberships.items():
                for caller_id in members:
                    self.add_member(group_id, caller_id)

    def add_member(self, group_id: str, caller_id: str) -> None:
        """Register ``caller_id`` as a member of ``group_id``."""
        self._members.setdefault(group_id, set()).add(caller_id)

    def remove_member(self, group_id: str, caller_id: str) -> None:
        """Remove a membership. Unknown memberships are ignored."""
        members = self._members.get(group_id)
        if members is not None:
            members.discard(caller_id)

    def groups_for(self, caller_id: str) -> frozenset[str]:
        """Return every group ``caller_id`` belongs to."""
        return frozenset(g for g, members in self._members.items() if caller_id in members)

    def is_member(self, caller_id: str, group_id: str) -> bool:
        return caller_id in self._members.get(group_id, ())

    def clear(self) -> None:
        """Clear all memberships. For testing only."""
        self._members.clear()
