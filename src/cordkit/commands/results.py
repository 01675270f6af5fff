"""
Command results and their rendering into message payloads.

Every dispatch ends in exactly one CommandResult. Results know whether they
are successful, which errors they carry, whether those errors should be
logged with a stack trace and how they render for the user.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from attrs import define, frozen

from cordkit.exceptions.core import CommandError, ErrorLevel, ParseError

if TYPE_CHECKING:
    from cordkit.commands.assertions import CommandAssertion
    from cordkit.commands.context import CommandContext
    from cordkit.parsing.results import ParseResult

logger = logging.getLogger(__name__)

SUCCESS_COLOR = 0x16C60C
FAIL_COLOR = 0xD93415


@frozen
class Embed:
    description: str
    color: int


@frozen
class MessagePayload:
    """A platform independent message: optional text plus embeds."""

    content: str | None = None
    embeds: tuple[Embed, ...] = ()


@define
class ResultMessageOptions:
    """
    How the result message is delivered.

    Params:
        no_reply: Send to the channel instead of replying to the usage
        edit_message: Message (or message id) to edit instead of sending
        delete_usage: Also delete the usage message when deleting the result
        delete_after: Seconds after which the result message is deleted
    """

    no_reply: bool = False
    edit_message: object = None
    delete_usage: bool = False
    delete_after: float | None = None


def render_status(icon: str, message: str) -> str:
    """Render a status line; multi-line messages keep only their first two lines."""
    lines = message.split("\n")
    if len(lines) == 1:
        return f"`{icon}` {lines[0]}"
    return f"`{icon}` {lines[0]}\n{lines[1]}"


class CommandResult(ABC):
    """The outcome of dispatching a command."""

    def __init__(self, ctx: "CommandContext"):
        self.ctx = ctx
        self.msg_options = ResultMessageOptions()

    def message_options(self, options: ResultMessageOptions) -> "CommandResult":
        self.msg_options = options
        return self

    @property
    @abstractmethod
    def errors(self) -> list[BaseException]:
        """The errors carried by this result."""

    @property
    @abstractmethod
    def trace(self) -> bool:
        """Whether the errors should be logged with stack traces."""

    @property
    @abstractmethod
    def success(self) -> bool:
        pass

    @property
    def error_message(self) -> str | None:
        return None

    @abstractmethod
    def build_message(self) -> MessagePayload | None:
        """Build the feedback message, None for no message."""

    def unwrap(self) -> list["CommandResult"]:
        """Flatten this result into its leaf results."""
        return [self]

    def trace_errors(self) -> None:
        command = self.ctx.command
        name = f"{command.prefix or ''}{command.name}" if command is not None else "?"
        for error in self.errors:
            logger.error(
                "Error occurred while executing command %s: %s",
                name,
                self.error_message,
                exc_info=(type(error), error, error.__traceback__),
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(success={self.success})"


class SuccessLikeResult(CommandResult):
    @property
    def errors(self) -> list[BaseException]:
        return []

    @property
    def trace(self) -> bool:
        return False

    @property
    def success(self) -> bool:
        return True


class NoExecutorResult(SuccessLikeResult):
    """Returned when traversal found no executor to run."""

    def build_message(self) -> MessagePayload | None:
        return None


class SuccessResult(SuccessLikeResult):
    def __init__(self, ctx: "CommandContext", message: "str | MessagePayload | None" = None):
        super().__init__(ctx)
        self.message = message

    def build_message(self) -> MessagePayload | None:
        if not self.message:
            return None
        if isinstance(self.message, MessagePayload):
            return self.message
        return MessagePayload(
            embeds=(Embed(render_status("✅", self.message), SUCCESS_COLOR),)
        )


class FailLikeResult(CommandResult):
    @property
    def success(self) -> bool:
        return False

    @abstractmethod
    def build_desc(self) -> str:
        """Build the description of the error embed."""

    def build_message(self) -> MessagePayload | None:
        return MessagePayload(embeds=(Embed(self.build_desc(), FAIL_COLOR),))


class FailResult(FailLikeResult):
    """A failure reported to the user without an error to trace."""

    def __init__(self, ctx: "CommandContext", message: str):
        super().__init__(ctx)
        self.message = message

    @property
    def errors(self) -> list[BaseException]:
        return []

    @property
    def trace(self) -> bool:
        return False

    def build_desc(self) -> str:
        return render_status("❌", self.message)


class AssertionFailedResult(FailResult):
    def __init__(self, ctx: "CommandContext", message: str, assertion: "CommandAssertion"):
        super().__init__(ctx, message)
        self.assertion = assertion


class ParseErrorsResult(FailResult):
    def __init__(self, ctx: "CommandContext", error: ParseError):
        super().__init__(ctx, f"Parse Error: {error}")
        self.error = error

    @property
    def errors(self) -> list[BaseException]:
        return [self.error]


class CommandErrorResult(FailResult):
    """A CommandError raised while walking the tree."""

    def __init__(self, ctx: "CommandContext", error: CommandError):
        super().__init__(ctx, error.msg)
        self.error = error

    def build_desc(self) -> str:
        desc = render_status("❌", self.message)
        if self.error.loc is not None:
            desc += f"\n```\n{self.error.loc.format_location(ErrorLevel.USER)}\n```"
        return desc

    @property
    def errors(self) -> list[BaseException]:
        return [self.error]

    @property
    def trace(self) -> bool:
        return self.error.trace

    @property
    def error_message(self) -> str | None:
        return self.error.msg


class UncaughtErrorResult(FailLikeResult):
    """An unexpected exception, always traced."""

    def __init__(self, ctx: "CommandContext", error: BaseException, message: str):
        super().__init__(ctx)
        self.error = error
        self.message = message

    @property
    def errors(self) -> list[BaseException]:
        return [self.error]

    @property
    def trace(self) -> bool:
        return True

    @property
    def error_message(self) -> str | None:
        return self.message

    def build_desc(self) -> str:
        return render_status("❌", self.message)


class MultiFailResult(FailResult):
    """Aggregates the failures of several pending results."""

    def __init__(self, ctx: "CommandContext", results: list[FailLikeResult]):
        super().__init__(ctx, "Multiple Errors Occurred")
        self.results = results
        self._errors = [e for r in results for e in r.errors]

    def unwrap(self) -> list[CommandResult]:
        return [leaf for r in self.results for leaf in r.unwrap()]

    @property
    def errors(self) -> list[BaseException]:
        return self._errors

    def build_desc(self) -> str:
        if len(self.results) == 1:
            return self.results[0].build_desc()
        return "**`❌ Multiple Errors`**\n" + "\n".join(
            r.build_desc() for r in self.results
        )


def to_error_result(
    ctx: "CommandContext", result: "ParseResult"
) -> FailLikeResult | None:
    """Convert a failed parse result into a fail result, None if it succeeded."""
    if result.error is not None:
        return ParseErrorsResult(ctx, result.error)
    if result.uncaught_error is not None:
        return UncaughtErrorResult(
            ctx, result.uncaught_error, "Uncaught error while parsing"
        )
    return None
