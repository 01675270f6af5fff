"""
Command dispatcher: walks a command tree over an input line and runs the
executor it arrives at.

Dispatch passes through these states:

1. Resolving the command name from the first token.
2. Traversing the tree, node by node: assertions, the node's own token,
   its flags, then selecting the next child.
3. Awaiting the pending argument and flag results together.
4. Executing the deepest executor reached.

Every outcome, including unexpected exceptions, is turned into a
CommandResult; dispatch never raises.
"""

import asyncio
import inspect
import logging
import time
from typing import TYPE_CHECKING, Any

from cordkit.commands.context import CommandContext
from cordkit.commands.nodes import CommandBuilder, CommandNode, Executor
from cordkit.commands.results import (
    AssertionFailedResult,
    CommandErrorResult,
    CommandResult,
    FailResult,
    MessagePayload,
    NoExecutorResult,
    SuccessResult,
    UncaughtErrorResult,
    to_error_result,
)
from cordkit.exceptions.core import CommandError, CommandErrorType, FailError
from cordkit.parsing.parsers import format_elapsed
from cordkit.parsing.reader import until_whitespace

if TYPE_CHECKING:
    from cordkit.permissions import PermissionManager

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """
    Registry of commands and the dispatch state machine.

    Params:
        standard_prefix: Prefix for commands registered without their own
        log_commands: Whether command usage is logged with its elapsed time
    """

    def __init__(self, standard_prefix: str = "?", log_commands: bool = True):
        self.standard_prefix = standard_prefix
        self.log_commands = log_commands
        self.command_map: dict[str, CommandNode] = {}
        self.commands: list[CommandNode] = []
        self.prefixes: list[str] = []

    def register(self, node: CommandNode | CommandBuilder) -> CommandNode:
        """
        Register a command under its prefix, name and aliases.

        A later command registered under the same prefixed name replaces the
        earlier one.

        Returns:
            The registered node
        """
        if isinstance(node, CommandBuilder):
            node = node.to_node()

        prefix = node.prefix or self.standard_prefix
        node.prefix = prefix
        if prefix not in self.prefixes:
            self.prefixes.append(prefix)

        self.commands.append(node)
        for name in (node.name, *node.aliases):
            key = (prefix + name).lower()
            if key in self.command_map:
                logger.warning("Command %s replaces an existing registration", key)
            self.command_map[key] = node
        logger.debug("Registered command %s%s", prefix, node.name)
        return node

    def get_command(self, name: str) -> CommandNode | None:
        """Look up a command by its prefixed name or alias."""
        return self.command_map.get(name.lower())

    async def dispatch(self, ctx: CommandContext) -> CommandResult:
        """
        Dispatch the input of the given context.

        Params:
            ctx: A fresh command context

        Returns:
            The command result, never raises
        """
        try:
            return await self._dispatch(ctx)
        except CommandError as e:
            return CommandErrorResult(ctx, e)
        except Exception as e:
            return UncaughtErrorResult(ctx, e, f"System Error: `{e}`")
        finally:
            ctx.cancel_pending()

    async def _dispatch(self, ctx: CommandContext) -> CommandResult:
        reader = ctx.reader

        reader.push_index()
        command_name = reader.collect(until_whitespace).lower()
        reader.restore()
        ctx.command = self.command_map.get(command_name)
        if ctx.command is None:
            return FailResult(ctx, f"No command by name `{command_name}`")

        node: CommandNode | None = ctx.command
        executor: Executor | None = None
        while node is not None and not reader.at_end():
            ctx.node_stack.append(node)

            failed = self._check_assertions(ctx, node)
            if failed is not None:
                return failed

            if node.literal:
                reader.collect(until_whitespace)
            else:
                result = ctx.parse(node.argument_type)
                if result.failed:
                    return to_error_result(ctx, result)
                ctx.arg_result(node.name, result)

            self._register_flags(ctx, node)
            failed = self._parse_flags(ctx)
            if failed is not None:
                return failed

            if node.executor is not None:
                executor = node.executor
            self._register_args(ctx, node)

            node = self._find_next(ctx, node)
            if node is None and not reader.at_end():
                token = reader.collect(until_whitespace)
                return FailResult(ctx, f"No subcommand by name `{token}`")

        # Input ran out before these optional arguments were reached
        while node is not None and not node.literal and node.optional:
            ctx.node_stack.append(node)
            failed = self._check_assertions(ctx, node)
            if failed is not None:
                return failed
            self._register_flags(ctx, node)
            if node.executor is not None:
                executor = node.executor
            self._register_args(ctx, node)
            node = node.argument_child

        if executor is None:
            return NoExecutorResult(ctx)

        ctx.promise = asyncio.ensure_future(self._execute(ctx, executor))
        return await ctx.promise

    async def _execute(self, ctx: CommandContext, executor: Executor) -> CommandResult:
        failed = await ctx.await_pending()
        if failed is not None:
            return failed

        try:
            out = executor(ctx)
            if inspect.isawaitable(out):
                out = await out
        except FailError as e:
            return FailResult(ctx, str(e))
        except Exception as e:
            return UncaughtErrorResult(ctx, e, f"Error in executor: `{e}`")

        if out is None:
            return SuccessResult(ctx)
        if isinstance(out, CommandResult):
            return out
        if isinstance(out, (str, MessagePayload)):
            return SuccessResult(ctx, out)
        error = TypeError(f"Executor returned {type(out).__name__}, not a CommandResult")
        return UncaughtErrorResult(ctx, error, f"Error in executor: `{error}`")

    def _check_assertions(
        self, ctx: CommandContext, node: CommandNode
    ) -> CommandResult | None:
        for assertion in node.assertions:
            result = assertion.test(ctx)
            if result.failed:
                return AssertionFailedResult(ctx, result.message, assertion)
        return None

    def _register_flags(self, ctx: CommandContext, node: CommandNode) -> None:
        for command_flag in node.flags:
            ctx.registered_flags[command_flag.name] = command_flag
            for alias in command_flag.aliases:
                ctx.registered_flags[alias] = command_flag

    def _register_args(self, ctx: CommandContext, node: CommandNode) -> None:
        child = node.argument_child
        if child is not None:
            ctx.registered_args.setdefault(child.name, child)

    def _parse_flags(self, ctx: CommandContext) -> CommandResult | None:
        reader = ctx.reader
        reader.skip_whitespace()
        while reader.current() == "-":
            reader.next()
            start = reader.idx
            name = reader.collect(until_whitespace)
            command_flag = ctx.registered_flags.get(name)
            if command_flag is None:
                raise CommandError(
                    ctx,
                    f"No flag by alias `{name}`",
                    CommandErrorType.UNKNOWN_FLAG,
                    reader.loc(start, reader.idx - 1),
                )

            if command_flag.is_switch:
                result = ctx.completed_parse(True)
            else:
                reader.skip_whitespace()
                result = ctx.parse(command_flag.type)
                if result.failed:
                    return to_error_result(ctx, result)

            ctx.flag_result(command_flag.name, result)
            reader.skip_whitespace()
        return None

    def _find_next(self, ctx: CommandContext, node: CommandNode) -> CommandNode | None:
        """Select the child matching the next token, literals first."""
        reader = ctx.reader
        reader.skip_whitespace()
        if reader.at_end():
            return node.argument_child

        reader.push_index()
        token = reader.collect(until_whitespace)
        reader.restore()
        for child in node.children:
            if child.matches(token):
                return child
        return node.argument_child

    async def handle_message(
        self,
        message: Any,
        client: Any = None,
        permissions: "PermissionManager | None" = None,
    ) -> CommandResult | None:
        """
        Dispatch a platform message if it starts with a registered prefix.

        Errors of the result are logged, traced where the result asks for it.

        Returns:
            The command result, or None if the message is not a command
        """
        content = message.content or ""
        if not any(content.startswith(p) for p in self.prefixes):
            return None

        start = time.monotonic()
        ctx = CommandContext.for_message(message, client, permissions)
        result = await self.dispatch(ctx)

        for leaf in result.unwrap():
            if leaf.trace:
                leaf.trace_errors()

        if ctx.command is not None and self.log_commands:
            logger.info(
                "%s ran command %s%s in %s",
                getattr(message.author, "name", message.author),
                ctx.command.prefix,
                ctx.command.name,
                format_elapsed((time.monotonic() - start) * 1000),
            )
        return result
