"""
Per-invocation command state.
"""

import asyncio
from typing import TYPE_CHECKING, Any

from cordkit.commands.results import (
    CommandResult,
    FailResult,
    MessagePayload,
    MultiFailResult,
    SuccessResult,
    to_error_result,
)
from cordkit.exceptions.core import AbsentValueError
from cordkit.parsing.reader import StringReader
from cordkit.parsing.results import ParseContext, ParseResult

if TYPE_CHECKING:
    from cordkit.commands.nodes import CommandFlag, CommandNode
    from cordkit.permissions import PermissionManager

_MISSING = object()


class CommandContext(ParseContext):
    """
    Mutable state of one command invocation.

    Created once per input line and filled while the dispatcher walks the
    command tree. Platform fields hold opaque platform objects and are only
    reached by attribute access.

    Params:
        reader: The reader over the input line
        permissions: Permission manager used by permission assertions
    """

    def __init__(
        self,
        reader: StringReader,
        permissions: "PermissionManager | None" = None,
    ):
        super().__init__(reader)
        self.permissions = permissions

        self.command: "CommandNode | None" = None
        self.node_stack: list["CommandNode"] = []
        self.promise: asyncio.Future | None = None

        self.registered_flags: dict[str, "CommandFlag"] = {}
        self.registered_args: dict[str, "CommandNode"] = {}
        self.flag_results: dict[str, ParseResult[Any]] = {}
        self.arg_results: dict[str, ParseResult[Any]] = {}
        self.awaitables: list[ParseResult[Any]] = []

        self.message: Any = None
        self.client: Any = None
        self.author: Any = None
        self.member: Any = None
        self.guild: Any = None
        self.channel: Any = None

    @classmethod
    def for_message(
        cls,
        message: Any,
        client: Any = None,
        permissions: "PermissionManager | None" = None,
    ) -> "CommandContext":
        """Create a context reading the content of a platform message."""
        ctx = cls(StringReader(message.content), permissions)
        ctx.set_message(message, client)
        return ctx

    def set_message(self, message: Any, client: Any = None) -> None:
        self.message = message
        self.client = client
        self.author = message.author
        self.channel = message.channel
        self.guild = message.guild
        # In a guild the author of a message is a member of it
        self.member = message.author if message.guild is not None else None

    def get_reader(self) -> StringReader:
        return self.reader

    @property
    def current_node(self) -> "CommandNode | None":
        return self.node_stack[-1] if self.node_stack else None

    def arg(self, name: str, default: Any = _MISSING) -> Any:
        """
        Get the value of an argument.

        Falls back to the default supplier of the registered argument node,
        then to the given default.

        Raises:
            AbsentValueError: If the argument has no value and no default
        """
        return self._value(name, self.arg_results, self.registered_args, default)

    def flag(self, name: str, default: Any = _MISSING) -> Any:
        """
        Get the value of a flag by its name.

        Raises:
            AbsentValueError: If the flag is absent and has no default
        """
        return self._value(name, self.flag_results, self.registered_flags, default)

    def has_arg(self, name: str) -> bool:
        return name in self.arg_results

    def has_flag(self, name: str) -> bool:
        return name in self.flag_results

    def _value(
        self,
        name: str,
        results: dict[str, ParseResult[Any]],
        registered: dict[str, Any],
        default: Any,
    ) -> Any:
        result = results.get(name)
        if result is not None:
            return result.value

        owner = registered.get(name)
        if owner is not None and owner.default_supplier is not None:
            result = results[name] = self.completed_parse(owner.default_supplier(self))
            return result.value

        if default is not _MISSING:
            return default
        raise AbsentValueError(name)

    def arg_result(self, name: str, result: ParseResult[Any]) -> "CommandContext":
        """Record the parse result of an argument, tracking it if pending."""
        self.arg_results[name] = result
        if not result.is_sync:
            self.awaitables.append(result)
        return self

    def flag_result(self, name: str, result: ParseResult[Any]) -> "CommandContext":
        """Record the parse result of a flag, tracking it if pending."""
        self.flag_results[name] = result
        if not result.is_sync:
            self.awaitables.append(result)
        return self

    async def await_pending(self) -> MultiFailResult | None:
        """
        Wait for every pending argument and flag result together.

        Returns:
            A MultiFailResult aggregating the failed results, or None
        """
        settled = await asyncio.gather(*(r.wait() for r in self.awaitables))
        failed = [to_error_result(self, r) for r in settled if r.failed]
        if failed:
            return MultiFailResult(self, failed)
        return None

    def cancel_pending(self) -> None:
        """Cancel pending results that have not settled yet."""
        for result in self.awaitables:
            result.cancel()

    def success(self, message: str | MessagePayload | None = None) -> CommandResult:
        return SuccessResult(self, message)

    def fail(self, message: str) -> CommandResult:
        return FailResult(self, message)

    def __repr__(self) -> str:
        name = self.command.name if self.command is not None else None
        return f"CommandContext(command={name!r}, reader={self.reader!r})"
