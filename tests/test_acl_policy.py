"""Tests for ACL policy evaluation.

Covers:
- Default deny for anonymous callers and empty policies
- Owner access to every permission
- Permission ordering (ADMIN implies WRITE implies READ)
- Group grantees resolved through a membership resolver
- Sidecar JSON shape round-trip and tolerance of malformed grants
"""

from __future__ import annotations

import pytest

from assetvault.acl import (
    AccessPolicyEngine,
    AclGrant,
    AclPolicy,
    InMemoryGroupDirectory,
    Permission,
    can_access,
)


class TestPermission:
    def test_ordering(self) -> None:
        assert Permission.ADMIN.implies(Permission.WRITE)
        assert Permission.ADMIN.implies(Permission.READ)
        assert Permission.WRITE.implies(Permission.READ)
        assert not Permission.READ.implies(Permission.WRITE)
        assert not Permission.WRITE.implies(Permission.ADMIN)

    def test_implies_itself(self) -> None:
        for permission in Permission:
            assert permission.implies(permission)

    def test_parse_is_case_insensitive(self) -> None:
        assert Permission.parse(" Admin ") is Permission.ADMIN
        assert Permission.parse(Permission.READ) is Permission.READ

    def test_parse_rejects_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown permission"):
            Permission.parse("delete")


class TestDefaultDeny:
    """Absent or empty policies deny every caller."""

    @pytest.mark.parametrize("permission", list(Permission))
    def test_none_policy_denies(self, permission: Permission) -> None:
        assert not can_access(None, "u1", permission)

    @pytest.mark.parametrize("permission", list(Permission))
    def test_empty_policy_denies(self, permission: Permission) -> None:
        assert not can_access(AclPolicy.empty(), "u1", permission)

    @pytest.mark.parametrize("caller_id", [None, ""])
    def test_anonymous_denied_even_with_matching_grant(self, caller_id: str | None) -> None:
        policy = AclPolicy.build(None, [("", Permission.ADMIN)])
        assert not can_access(policy, caller_id, Permission.READ)


class TestOwnerAndGrants:
    @pytest.fixture
    def policy(self) -> AclPolicy:
        return AclPolicy.build("u1", [("u2", Permission.READ), ("u3", Permission.WRITE)])

    @pytest.mark.parametrize("permission", list(Permission))
    def test_owner_has_every_permission(self, policy: AclPolicy, permission: Permission) -> None:
        assert can_access(policy, "u1", permission)

    def test_read_grant_allows_only_read(self, policy: AclPolicy) -> None:
        assert can_access(policy, "u2", Permission.READ)
        assert not can_access(policy, "u2", Permission.WRITE)
        assert not can_access(policy, "u2", Permission.ADMIN)

    def test_write_grant_implies_read(self, policy: AclPolicy) -> None:
        assert can_access(policy, "u3", Permission.READ)
        assert can_access(policy, "u3", Permission.WRITE)
        assert not can_access(policy, "u3", Permission.ADMIN)

    def test_unlisted_caller_denied(self, policy: AclPolicy) -> None:
        assert not can_access(policy, "u9", Permission.READ)

    def test_later_stronger_grant_is_found(self) -> None:
        policy = AclPolicy(
            owner_id=None,
            grants=(AclGrant("u2", Permission.READ), AclGrant("u2", Permission.ADMIN)),
        )
        assert can_access(policy, "u2", Permission.ADMIN)


class TestGroupGrants:
    @pytest.fixture
    def engine(self) -> AccessPolicyEngine:
        return AccessPolicyEngine(InMemoryGroupDirectory({"editors": ["u4", "u6"]}))

    def test_member_inherits_group_grant(self, engine: AccessPolicyEngine) -> None:
        policy = AclPolicy.build("u1", [("editors", Permission.WRITE)])

        assert engine.can_access(policy, "u4", Permission.WRITE)
        assert engine.can_access(policy, "u6", Permission.READ)

    def test_non_member_denied(self, engine: AccessPolicyEngine) -> None:
        policy = AclPolicy.build("u1", [("editors", Permission.WRITE)])

        assert not engine.can_access(policy, "u5", Permission.READ)

    def test_group_grant_ignored_without_resolver(self) -> None:
        policy = AclPolicy.build("u1", [("editors", Permission.WRITE)])

        assert not can_access(policy, "u4", Permission.READ)

    def test_removed_member_loses_access(self) -> None:
        directory = InMemoryGroupDirectory({"editors": ["u4"]})
        policy = AclPolicy.build("u1", [("editors", Permission.READ)])
        directory.remove_member("editors", "u4")

        assert not can_access(policy, "u4", Permission.READ, directory)

    def test_groups_for(self) -> None:
        directory = InMemoryGroupDirectory({"editors": ["u4"], "viewers": ["u4", "u5"]})

        assert directory.groups_for("u4") == frozenset({"editors", "viewers"})
        assert directory.groups_for("u9") == frozenset()


class TestPolicyEditing:
    def test_with_grant_replaces_existing_grantee_in_place(self) -> None:
        policy = AclPolicy.build("u1", [("u2", "read"), ("u3", "read")])

        updated = policy.with_grant("u2", Permission.ADMIN)

        assert updated.grants == (
            AclGrant("u2", Permission.ADMIN),
            AclGrant("u3", Permission.READ),
        )
        assert policy.grants[0].permission is Permission.READ

    def test_with_grant_appends_new_grantee(self) -> None:
        policy = AclPolicy.build("u1").with_grant("u2", Permission.READ)

        assert policy.grants == (AclGrant("u2", Permission.READ),)

    def test_without_grant(self) -> None:
        policy = AclPolicy.build("u1", [("u2", "read"), ("u3", "write")])

        assert policy.without_grant("u2").grants == (AclGrant("u3", Permission.WRITE),)
        assert policy.without_grant("u9") == policy


class TestPolicySerialization:
    def test_to_dict_shape(self) -> None:
        policy = AclPolicy.build("u1", [("u2", Permission.READ)])

        assert policy.to_dict() == {
            "ownerId": "u1",
            "grants": [{"granteeId": "u2", "permission": "read"}],
        }

    def test_from_dict_round_trip(self) -> None:
        policy = AclPolicy.build("u1", [("u2", "write"), ("editors", "admin")])

        assert AclPolicy.from_dict(policy.to_dict()) == policy

    def test_from_dict_skips_malformed_grants(self) -> None:
        policy = AclPolicy.from_dict(
            {
                "ownerId": "u1",
                "grants": [
                    {"granteeId": "u2", "permission": "read"},
                    {"granteeId": "u3", "permission": "superuser"},
                    {"permission": "read"},
                    "u4",
                ],
            }
        )

        assert policy.grants == (AclGrant("u2", Permission.READ),)

    def test_from_dict_without_owner(self) -> None:
        policy = AclPolicy.from_dict({"ownerId": None, "grants": []})

        assert policy.is_empty
