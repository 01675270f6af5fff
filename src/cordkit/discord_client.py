"""
discord.py adapter: forwards client events to the event bus and delivers
command results.
"""

import asyncio
import logging
from typing import Any

import discord

from cordkit.app import ApplicationContext, DependencyKind
from cordkit.commands.results import CommandResult, MessagePayload
from cordkit.events import platform_event, spawn
from cordkit.log import configure_logging
from cordkit.services import AUTOSAVE_REASON, CommandService

logger = logging.getLogger(__name__)


def to_discord_embed(payload: MessagePayload) -> list[discord.Embed]:
    return [discord.Embed(description=e.description, color=e.color) for e in payload.embeds]


async def deliver_result(result: CommandResult, message: discord.Message) -> discord.Message | None:
    """
    Send the message of a command result, honoring its ResultMessageOptions.

    Returns:
        The sent or edited message, None if the result has no message
    """
    payload = result.build_message()
    if payload is None:
        return None
    options = result.msg_options
    embeds = to_discord_embed(payload)

    if options.edit_message is not None:
        target = options.edit_message
        if isinstance(target, int):
            target = await message.channel.fetch_message(target)
        sent = await target.edit(content=payload.content, embeds=embeds)
        sent = sent or target
    elif options.no_reply:
        sent = await message.channel.send(content=payload.content, embeds=embeds)
    else:
        sent = await message.reply(content=payload.content, embeds=embeds, mention_author=False)

    if options.delete_after is not None:
        await sent.delete(delay=options.delete_after)
        if options.delete_usage:
            await message.delete(delay=options.delete_after)
    return sent


class BotClient(discord.Client):
    """A discord client publishing every client event on the bus."""

    def __init__(self, bot: "DiscordBot", **kwargs: Any):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        super().__init__(intents=intents, **kwargs)
        self.bot = bot

    def dispatch(self, event_name: str, /, *args: Any, **kwargs: Any) -> None:
        super().dispatch(event_name, *args, **kwargs)
        bus = self.bot.app.event_bus
        event = platform_event(event_name)
        if bus.has_listeners(event):
            spawn(bus.call(event, *args), f"cordkit: {event}")

    async def setup_hook(self) -> None:
        await self.bot.setup()

    async def on_ready(self) -> None:
        logger.info("Logged in as %s", self.user)
        self.bot.app.ready_all()

    async def close(self) -> None:
        await self.bot.shutdown()
        await super().close()


class DiscordBot:
    """
    Runs an ApplicationContext on a discord client.

    The client is registered as the ``client`` singleton and the command
    service delivers its results through ``deliver_result``.

    Params:
        app: The application with its services and modules registered
    """

    def __init__(self, app: ApplicationContext):
        self.app = app
        self.client = BotClient(self)
        self.app.add_singleton("client", self.client)
        self._autosave: asyncio.Task | None = None

        commands = app.resolve(DependencyKind.SERVICE, "CommandService")
        if isinstance(commands, CommandService) and commands.result_handler is None:
            commands.result_handler = deliver_result

    async def setup(self) -> None:
        results = self.app.load_all()
        failed = [r for r in results if not r.ok]
        if failed:
            logger.error("%d components failed to load: %s", len(failed), ", ".join(r.component for r in failed))
        self._autosave = asyncio.create_task(self._autosave_loop())

    async def _autosave_loop(self) -> None:
        interval = self.app.config.autosave_interval
        while True:
            await asyncio.sleep(interval)
            try:
                await self.app.save_data(AUTOSAVE_REASON)
            except Exception:
                logger.error("Autosave failed", exc_info=True)

    async def shutdown(self) -> None:
        if self._autosave is not None:
            self._autosave.cancel()
            self._autosave = None
            await self.app.save_data("shutdown")

    def run(self) -> None:
        """Configure logging and run the client until it is closed."""
        configure_logging(self.app.config.log_level)
        self.client.run(self.app.config.token, log_handler=None)
