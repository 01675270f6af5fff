"""
Standard triggers, conditions and actions over discord events, and a yes/no
confirmation prompt built from them.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import discord

from cordkit.interactions.components import (
    InteractionComponent,
    action,
    condition,
    param_action,
    param_condition,
    simple_condition,
)
from cordkit.interactions.events import event_trigger

if TYPE_CHECKING:
    from cordkit.interactions.manager import InteractionManager

logger = logging.getLogger(__name__)

WARNING_COLOR = 0xFFCC4D
CONFIRM_EMOJI = "✅"
DENY_EMOJI = "❌"


@dataclass
class EventArgs:
    """The arguments standard interactions receive, mapped from client events."""

    user: Any = None
    guild: Any = None
    member: Any = None
    channel: Any = None
    message: Any = None
    reaction: Any = None


def _member_args(member) -> EventArgs:
    return EventArgs(user=member, guild=member.guild, member=member)


def _message_args(message) -> EventArgs:
    guild = message.guild
    return EventArgs(
        user=message.author,
        guild=guild,
        member=message.author if guild is not None else None,
        channel=message.channel,
        message=message,
    )


def _reaction_args(reaction, user) -> EventArgs:
    message = reaction.message
    guild = message.guild
    return EventArgs(
        user=user,
        guild=guild,
        member=user if guild is not None else None,
        channel=message.channel,
        message=message,
        reaction=reaction,
    )


class Triggers:
    member_join = event_trigger("member_join", _member_args)
    message_create = event_trigger("message", _message_args, name="discord.message_create")
    reaction_add = event_trigger("reaction_add", _reaction_args)


def _emoji_name(emoji) -> str:
    return getattr(emoji, "name", None) or str(emoji)


class Conditions:
    user_is_bot = simple_condition("userIsBot", lambda e: bool(getattr(e.user, "bot", False)))
    is_message = param_condition(
        "isMessage", lambda e, p: e.message is not None and e.message.id == p["id"]
    )
    is_reaction_emoji = param_condition(
        "isReactionEmoji",
        lambda e, p: e.reaction is not None and _emoji_name(e.reaction.emoji) == p["emoji"],
    )
    is_user = param_condition("isUser", lambda e, p: e.user is not None and e.user.id == p["id"])


class Actions:
    give_role = param_action(
        "giveRole", lambda e, p: e.member.add_roles(discord.Object(id=p["id"]))
    )
    remove_role = param_action(
        "removeRole", lambda e, p: e.member.remove_roles(discord.Object(id=p["id"]))
    )
    react_with_emoji = param_action(
        "reactWithEmoji", lambda e, p: e.message.add_reaction(p["emoji"])
    )


STANDARD_COMPONENTS: list[InteractionComponent] = [
    Triggers.member_join,
    Triggers.message_create,
    Triggers.reaction_add,
    Conditions.user_is_bot,
    Conditions.is_message,
    Conditions.is_reaction_emoji,
    Conditions.is_user,
    Actions.give_role,
    Actions.remove_role,
    Actions.react_with_emoji,
]


def register_standard_components(manager: "InteractionManager") -> None:
    for component in STANDARD_COMPONENTS:
        manager.register_base_component(component)


class ConfirmResult(Enum):
    CONFIRMED = "confirmed"
    DENIED = "denied"
    TIMED_OUT = "timed_out"


async def confirm_message(
    manager: "InteractionManager",
    channel,
    member,
    warning: str,
    timeout: float = 10,
) -> ConfirmResult:
    """
    Ask a member to confirm with a reaction.

    Sends a warning embed, reacts with the confirm and deny emojis and waits
    for the member to pick one.

    Params:
        manager: The manager whose reaction trigger is connected to the bus
        channel: Where to send the prompt
        member: The only member whose reaction counts
        warning: The prompt text
        timeout: Seconds until the prompt expires

    Returns:
        The member's answer, or TIMED_OUT
    """
    embed = discord.Embed(description=f"`⚠` {warning}", color=WARNING_COLOR)
    message = await channel.send(embed=embed)
    await message.add_reaction(CONFIRM_EMOJI)
    await message.add_reaction(DENY_EMOJI)

    loop = asyncio.get_running_loop()
    answer: asyncio.Future[ConfirmResult] = loop.create_future()

    def resolve(args: EventArgs):
        if not answer.done():
            confirmed = _emoji_name(args.reaction.emoji) == CONFIRM_EMOJI
            answer.set_result(ConfirmResult.CONFIRMED if confirmed else ConfirmResult.DENIED)

    interaction = (
        manager.builder()
        .once()
        .when(Triggers.reaction_add)
        .only_if(Conditions.is_message.with_params(id=message.id))
        .only_if(Conditions.is_user.with_params(id=member.id))
        .only_if(
            condition(
                lambda e: _emoji_name(e.reaction.emoji) in (CONFIRM_EMOJI, DENY_EMOJI)
            )
        )
        .then(action(resolve))
        .create()
    )

    def expire():
        interaction.destroy()
        if not answer.done():
            answer.set_result(ConfirmResult.TIMED_OUT)

    handle = loop.call_later(timeout, expire)
    try:
        result = await answer
    finally:
        handle.cancel()
        interaction.destroy()

    try:
        await message.clear_reactions()
    except discord.HTTPException as e:
        logger.warning("Could not clear reactions of confirmation %s: %s", message.id, e)
    return result
