"""
The core services: command handling, permissions and interactions.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from cordkit.app import SAVE_DATA_EVENT, ApplicationContext, BotService, DependencyKind
from cordkit.commands.dispatcher import CommandDispatcher
from cordkit.commands.nodes import CommandBuilder, CommandNode
from cordkit.commands.results import CommandResult
from cordkit.events import platform_event
from cordkit.interactions.library import ConfirmResult, confirm_message, register_standard_components
from cordkit.interactions.manager import InteractionManager
from cordkit.permissions import PermissionManager
from cordkit.storage import data_file_io

logger = logging.getLogger(__name__)

AUTOSAVE_REASON = "autosave-interval"

ResultHandler = Callable[[CommandResult, Any], Any]


class PermissionService(BotService):
    """Owns the file backed PermissionManager."""

    def __init__(self):
        super().__init__("PermissionService")
        self.manager: PermissionManager | None = None

    def register_listeners(self, app: ApplicationContext) -> None:
        app.event_bus.subscribe(SAVE_DATA_EVENT, self.save_data)
        app.event_bus.subscribe(platform_event("member_update"), self.member_update)

    def on_load(self, app: ApplicationContext) -> None:
        io = data_file_io(app.config.data_directory, "permission-service/data.json")
        self.manager = PermissionManager(io)
        self.manager.load_all_persistent_data()

    def save_data(self, data: dict[str, Any]) -> None:
        self.manager.save_all_persistent_data()
        if data.get("reason") != AUTOSAVE_REASON:
            self.logger.info("Saved permission data")

    def member_update(self, before, after) -> None:
        self.manager.invalidate_member(after)


class InteractionService(BotService):
    """Owns the file backed InteractionManager and connects it to the bus."""

    def __init__(self):
        super().__init__("InteractionService")
        self.manager: InteractionManager | None = None

    def register_listeners(self, app: ApplicationContext) -> None:
        app.event_bus.subscribe(SAVE_DATA_EVENT, self.save_data)

    def on_load(self, app: ApplicationContext) -> None:
        io = data_file_io(app.config.data_directory, "interaction-service/persistent-interactions.json")
        self.manager = InteractionManager(io)
        register_standard_components(self.manager)
        self.manager.connect(app.event_bus)
        self.manager.load_all_persistent_data()

    def save_data(self, data: dict[str, Any]) -> None:
        self.manager.save_all_persistent_data()
        if data.get("reason") != AUTOSAVE_REASON:
            self.logger.info("Saved persistent interactions")

    async def confirm(self, channel, member, warning: str) -> ConfirmResult:
        """Ask a member to confirm, expiring after the configured timeout."""
        return await confirm_message(
            self.manager, channel, member, warning, self.app.config.confirm_timeout
        )


class CommandService(BotService):
    """
    Runs commands from ``@discord.message`` events.

    Params:
        result_handler: Called with the result and the message of every
            command, may return an awaitable. The discord adapter installs
            one that delivers the result message.
    """

    def __init__(self, result_handler: ResultHandler | None = None):
        super().__init__("CommandService")
        self.dispatcher: CommandDispatcher | None = None
        self.result_handler = result_handler
        self.permissions: PermissionService | None = None
        self._pending: list[CommandNode | CommandBuilder] = []

    def register(self, command: CommandNode | CommandBuilder) -> None:
        """Register a command; commands registered before loading are kept."""
        if self.dispatcher is None:
            self._pending.append(command)
        else:
            self.dispatcher.register(command)

    def register_listeners(self, app: ApplicationContext) -> None:
        app.event_bus.subscribe(platform_event("message"), self.on_message)

    def on_load(self, app: ApplicationContext) -> None:
        self.dispatcher = CommandDispatcher(app.config.prefix, app.config.log_commands)
        self.permissions = app.require(DependencyKind.SERVICE, "PermissionService")
        for command in self._pending:
            self.dispatcher.register(command)
        self._pending.clear()

    async def on_message(self, message) -> None:
        if getattr(message.author, "bot", False):
            return
        result = await self.dispatcher.handle_message(
            message,
            self.app.singletons.get("client"),
            self.permissions.manager,
        )
        if result is not None and self.result_handler is not None:
            ret = self.result_handler(result, message)
            if inspect.isawaitable(ret):
                await ret


def core_services() -> list[BotService]:
    """The services a bot runs with, in load order."""
    return [PermissionService(), InteractionService(), CommandService()]
