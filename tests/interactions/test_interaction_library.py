"""
Tests for the standard discord triggers, conditions and actions and the
confirmation prompt.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import discord
import pytest

from cordkit.events import EventBus
from cordkit.interactions.interaction import InteractionContext
from cordkit.interactions.library import (
    STANDARD_COMPONENTS,
    Actions,
    Conditions,
    ConfirmResult,
    EventArgs,
    Triggers,
    confirm_message,
    register_standard_components,
)
from cordkit.interactions.manager import InteractionManager


def ctx(args):
    return InteractionContext(None, args)


class TestEventMapping:
    """Tests for mapping client events to EventArgs."""

    def test_member_join(self, make_member):
        member = make_member()
        args = Triggers.member_join.mapper(member)
        assert args == EventArgs(user=member, guild=member.guild, member=member)

    def test_message_in_guild(self, make_message, make_member):
        member = make_member()
        message = make_message("hi", author=member, guild=member.guild)
        args = Triggers.message_create.mapper(message)
        assert args.member is member
        assert args.message is message
        assert args.channel is message.channel

    def test_reaction_in_direct_message(self, make_message, make_member):
        user = make_member()
        reaction = SimpleNamespace(message=make_message("hi"), emoji="✅")
        args = Triggers.reaction_add.mapper(reaction, user)
        assert args.user is user
        assert args.member is None
        assert args.reaction is reaction

    def test_bus_event_names(self):
        assert Triggers.member_join.event == "@discord.member_join"
        assert Triggers.message_create.event == "@discord.message"
        assert Triggers.message_create.key == "trigger::discord.message_create"


class TestStandardComponents:
    """Tests for the standard conditions and actions."""

    def test_user_is_bot(self):
        assert Conditions.user_is_bot.check(ctx(EventArgs(user=SimpleNamespace(bot=True))))
        assert not Conditions.user_is_bot.check(ctx(EventArgs(user=SimpleNamespace(bot=False))))

    def test_is_message(self):
        cond = Conditions.is_message.with_params(id=3)
        assert cond.check(ctx(EventArgs(message=SimpleNamespace(id=3))))
        assert not cond.check(ctx(EventArgs(message=SimpleNamespace(id=4))))
        assert not cond.check(ctx(EventArgs()))

    def test_is_reaction_emoji(self):
        cond = Conditions.is_reaction_emoji.with_params(emoji="👍")
        assert cond.check(ctx(EventArgs(reaction=SimpleNamespace(emoji="👍"))))
        custom = SimpleNamespace(emoji=SimpleNamespace(name="👍"))
        assert cond.check(ctx(EventArgs(reaction=custom)))

    def test_give_and_remove_role(self):
        member = Mock()
        member.add_roles = AsyncMock()
        member.remove_roles = AsyncMock()
        args = EventArgs(member=member)

        asyncio.run(Actions.give_role.with_params(id=77).execute(ctx(args)))
        asyncio.run(Actions.remove_role.with_params(id=77).execute(ctx(args)))
        (given,), _ = member.add_roles.call_args
        (removed,), _ = member.remove_roles.call_args
        assert isinstance(given, discord.Object)
        assert given.id == 77
        assert removed.id == 77

    def test_react_with_emoji(self):
        message = Mock()
        message.add_reaction = AsyncMock()
        action = Actions.react_with_emoji.with_params(emoji="🎉")
        asyncio.run(action.execute(ctx(EventArgs(message=message))))
        message.add_reaction.assert_awaited_once_with("🎉")

    def test_all_standard_components_are_serializable(self):
        manager = InteractionManager()
        register_standard_components(manager)
        for component in STANDARD_COMPONENTS:
            assert manager.get_base_component(component.key) is component


def make_prompt_channel(message_id=900):
    message = Mock()
    message.id = message_id
    message.add_reaction = AsyncMock()
    message.clear_reactions = AsyncMock()
    message.guild = None
    channel = Mock()
    channel.send = AsyncMock(return_value=message)
    message.channel = channel
    return channel, message


class TestConfirmMessage:
    """Tests for the reaction based confirmation prompt."""

    def make_manager(self, bus):
        manager = InteractionManager()
        register_standard_components(manager)
        manager.connect(bus)
        return manager

    def run_prompt(self, reactions, timeout=5):
        """Start a prompt, publish the given (emoji, user id) reactions, return the answer."""
        channel, message = make_prompt_channel()
        member = SimpleNamespace(id=1)

        async def run():
            bus = EventBus()
            manager = self.make_manager(bus)
            task = asyncio.create_task(
                confirm_message(manager, channel, member, "Delete everything?", timeout)
            )
            for _ in range(5):
                await asyncio.sleep(0)
            for emoji, user_id in reactions:
                reaction = SimpleNamespace(message=message, emoji=emoji)
                await bus.call("@discord.reaction_add", reaction, SimpleNamespace(id=user_id))
            result = await task
            return result, manager

        result, manager = asyncio.run(run())
        return result, manager, channel, message

    def test_confirmed(self):
        result, manager, channel, message = self.run_prompt([("✅", 1)])
        assert result == ConfirmResult.CONFIRMED
        embed = channel.send.call_args.kwargs["embed"]
        assert "Delete everything?" in embed.description
        assert [c.args[0] for c in message.add_reaction.call_args_list] == ["✅", "❌"]
        message.clear_reactions.assert_awaited_once()
        assert manager.interactions == {}

    def test_denied(self):
        assert self.run_prompt([("❌", 1)])[0] == ConfirmResult.DENIED

    def test_other_users_and_emojis_are_ignored(self):
        result, *_ = self.run_prompt([("✅", 2), ("👍", 1), ("❌", 1)])
        assert result == ConfirmResult.DENIED

    def test_timeout(self):
        result, manager, _, _ = self.run_prompt([], timeout=0.01)
        assert result == ConfirmResult.TIMED_OUT
        assert manager.interactions == {}

    def test_clear_reactions_failure_is_logged(self, caplog):
        channel, message = make_prompt_channel()
        message.clear_reactions.side_effect = discord.Forbidden(
            Mock(status=403, reason="Forbidden"), "Missing Permissions"
        )

        async def run():
            manager = self.make_manager(EventBus())
            return await confirm_message(manager, channel, SimpleNamespace(id=1), "Sure?", 0.01)

        assert asyncio.run(run()) == ConfirmResult.TIMED_OUT
        assert "Could not clear reactions" in caplog.text


@pytest.fixture(autouse=True)
def reset_standard_triggers():
    """Standard triggers are shared; drop interactions left by a test."""
    yield
    for trigger in (Triggers.member_join, Triggers.message_create, Triggers.reaction_add):
        trigger.interactions.clear()
