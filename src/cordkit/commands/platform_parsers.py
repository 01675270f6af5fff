"""
Argument parsers resolving platform users and members.

Lookups try the client cache first and fall back to fetching from the
platform, which produces a pending result the dispatcher awaits before
running the executor.
"""

from typing import Any

import discord

from cordkit.commands.context import CommandContext
from cordkit.exceptions.core import ParseError
from cordkit.parsing.parsers import Parser, async_parser
from cordkit.parsing.reader import StringLoc
from cordkit.parsing.results import ParseResult


def _is_reference_char(c: str) -> bool:
    return c.isascii() and c.isalnum()


def _parse_user(ctx: CommandContext) -> "ParseResult[Any]":
    reader = ctx.get_reader()
    start = reader.idx
    if reader.current() == ".":
        reader.next()
        return ctx.completed_parse(ctx.author)

    text = reader.collect(_is_reference_char)
    if text == "me":
        return ctx.completed_parse(ctx.author)

    if text.isdigit():
        user = ctx.client.get_user(int(text))
        if user is not None:
            return ctx.completed_parse(user)
        return ParseResult.pending(_fetch_user(ctx, int(text), reader.loc(start, reader.idx - 1)))

    for user in ctx.client.users:
        if user.name == text:
            return ctx.completed_parse(user)

    return ctx.failed_parse(
        ParseError(f"No user by `{text}`", reader.loc(start, max(start, reader.idx - 1)))
    )


async def _fetch_user(ctx: CommandContext, user_id: int, loc: StringLoc) -> ParseResult[Any]:
    try:
        user = await ctx.client.fetch_user(user_id)
    except discord.NotFound:
        user = None
    if user is None:
        return ctx.failed_parse(ParseError(f"No user by id `{user_id}`", loc))
    return ctx.completed_parse(user)


def _parse_member(ctx: CommandContext) -> "ParseResult[Any]":
    reader = ctx.get_reader()
    start = reader.idx
    if ctx.guild is None:
        return ctx.failed_parse(
            ParseError(
                "Can not parse member outside guild context", reader.loc(start, start)
            )
        )

    def to_member(result: ParseResult[Any]) -> Any:
        user = result.value
        member = ctx.guild.get_member(user.id)
        if member is not None:
            return ctx.completed_parse(member)
        return _fetch_member(ctx, user.id, reader.loc(start, max(start, reader.idx - 1)))

    return PlatformParsers.USER.parse(ctx).use(to_member)


async def _fetch_member(ctx: CommandContext, user_id: int, loc: StringLoc) -> ParseResult[Any]:
    try:
        member = await ctx.guild.fetch_member(user_id)
    except discord.NotFound:
        member = None
    if member is None:
        return ctx.failed_parse(ParseError(f"No member for user `{user_id}`", loc))
    return ctx.completed_parse(member)


class PlatformParsers:
    """Parsers for platform objects, usable in argument nodes and flags."""

    USER: Parser[Any] = async_parser(_parse_user, lambda user: str(user.id))
    MEMBER: Parser[Any] = async_parser(_parse_member, lambda member: str(member.id))
