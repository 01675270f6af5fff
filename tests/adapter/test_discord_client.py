"""
Tests for delivering command results through discord.py.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import discord

from cordkit.app import ApplicationContext
from cordkit.commands.results import (
    SUCCESS_COLOR,
    Embed,
    MessagePayload,
    ResultMessageOptions,
    SuccessResult,
)
from cordkit.discord_client import DiscordBot, deliver_result, to_discord_embed
from cordkit.services import CommandService


def make_message():
    message = Mock()
    message.reply = AsyncMock(return_value=Mock(delete=AsyncMock()))
    message.delete = AsyncMock()
    message.channel.send = AsyncMock()
    message.channel.fetch_message = AsyncMock()
    return message


class TestDeliverResult:
    """Tests for sending, editing and deleting result messages."""

    def test_embeds(self):
        embeds = to_discord_embed(MessagePayload(embeds=(Embed("hi", SUCCESS_COLOR),)))
        assert len(embeds) == 1
        assert embeds[0].description == "hi"
        assert embeds[0].color.value == SUCCESS_COLOR

    def test_reply(self, make_ctx):
        message = make_message()
        sent = asyncio.run(deliver_result(SuccessResult(make_ctx("?ping"), "pong"), message))
        assert sent is message.reply.return_value
        kwargs = message.reply.call_args.kwargs
        assert kwargs["mention_author"] is False
        assert "pong" in kwargs["embeds"][0].description

    def test_no_message(self, make_ctx):
        message = make_message()
        assert asyncio.run(deliver_result(SuccessResult(make_ctx("?ping")), message)) is None
        message.reply.assert_not_called()

    def test_no_reply_and_delete(self, make_ctx):
        message = make_message()
        result = SuccessResult(make_ctx("?ping"), "pong").message_options(
            ResultMessageOptions(no_reply=True, delete_after=5, delete_usage=True)
        )
        sent = Mock(delete=AsyncMock())
        message.channel.send.return_value = sent
        asyncio.run(deliver_result(result, message))
        message.reply.assert_not_called()
        sent.delete.assert_awaited_once_with(delay=5)
        message.delete.assert_awaited_once_with(delay=5)

    def test_edit_by_id(self, make_ctx):
        message = make_message()
        target = Mock(edit=AsyncMock(return_value=None))
        message.channel.fetch_message.return_value = target
        result = SuccessResult(make_ctx("?ping"), "pong").message_options(ResultMessageOptions(edit_message=42))
        assert asyncio.run(deliver_result(result, message)) is target
        message.channel.fetch_message.assert_awaited_once_with(42)


class TestDiscordBot:
    def test_installs_client_and_handler(self):
        app = ApplicationContext()
        commands = CommandService()
        app.add_service(commands)
        bot = DiscordBot(app)
        assert isinstance(app.singletons["client"], discord.Client)
        assert commands.result_handler is deliver_result
        assert bot.client.intents.message_content
