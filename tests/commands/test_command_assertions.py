"""
Tests for the standard command assertions.
"""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from cordkit.commands.assertions import CommandAssertionResult, CommandAssertions
from cordkit.exceptions.core import CommandError, CommandErrorType
from cordkit.permissions import Permit, PermissionManager, RoleBasedPermissionGroup


@pytest.fixture
def manager():
    manager = PermissionManager()
    mods = RoleBasedPermissionGroup(manager, "mods", role_id=10)
    mods.set("roles.give", Permit.ALLOW)
    mods.set("roles.give.admin", Permit.DENY)
    manager.register_group(mods)
    return manager


class TestPermissionsAssertion:
    """Tests for CommandAssertions.permissions."""

    def ctx(self, make_ctx, make_message, make_member, manager, role_ids):
        member = make_member(role_ids=role_ids)
        message = make_message("?x", author=member, guild=member.guild)
        return make_ctx("?x", permissions=manager, message=message)

    def test_allowed(self, make_ctx, make_message, make_member, manager):
        ctx = self.ctx(make_ctx, make_message, make_member, manager, [10])
        result = CommandAssertions.permissions("roles.give.helper").test(ctx)
        assert result is CommandAssertionResult.SUCCESS

    def test_denied_deeper(self, make_ctx, make_message, make_member, manager):
        ctx = self.ctx(make_ctx, make_message, make_member, manager, [10])
        result = CommandAssertions.permissions("roles.give", "roles.give.admin").test(ctx)
        assert result.failed
        assert result.message == "Lacking permission `roles.give.admin`"

    def test_unset_defaults_to_deny(self, make_ctx, make_message, make_member, manager):
        ctx = self.ctx(make_ctx, make_message, make_member, manager, [])
        assert CommandAssertions.permissions("roles.give").test(ctx).failed

    def test_outside_guild(self, make_ctx, make_message, manager):
        ctx = make_ctx("?x", permissions=manager, message=make_message("?x"))
        result = CommandAssertions.permissions("roles.give").test(ctx)
        assert result.message == "Permissions can only be checked in a guild"

    def test_without_manager(self, make_ctx):
        with pytest.raises(CommandError) as exc_info:
            CommandAssertions.permissions("a").test(make_ctx(""))
        assert exc_info.value.error_type == CommandErrorType.SYSTEM
        assert exc_info.value.trace


class TestPlatformPermissionsAssertion:
    """Tests for CommandAssertions.platform_permissions."""

    def test_channel_permissions(self, make_ctx, make_message, make_member):
        member = make_member()
        channel = Mock()
        channel.permissions_for.return_value = SimpleNamespace(manage_roles=True, kick_members=False)
        message = make_message("?x", author=member, guild=member.guild, channel=channel)
        ctx = make_ctx("?x", message=message)

        assert not CommandAssertions.platform_permissions("manage_roles").test(ctx).failed
        result = CommandAssertions.platform_permissions("manage_roles", "kick_members").test(ctx)
        assert result.message == "Lacking permission `kick_members`"
        channel.permissions_for.assert_called_with(member)

    def test_guild_permissions_fallback(self, make_ctx, make_message, make_member):
        member = make_member()
        member.guild_permissions = SimpleNamespace(administrator=True)
        channel = SimpleNamespace()
        message = make_message("?x", author=member, guild=member.guild, channel=channel)
        ctx = make_ctx("?x", message=message)
        assert not CommandAssertions.platform_permissions("administrator").test(ctx).failed

    def test_direct_messages_pass(self, make_ctx, make_message):
        ctx = make_ctx("?x", message=make_message("?x"))
        assert not CommandAssertions.platform_permissions("administrator").test(ctx).failed
