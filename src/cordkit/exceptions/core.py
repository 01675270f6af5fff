"""
Exception classes for cordkit.

This module defines specific exception types for the error conditions that can
occur while parsing command input, dispatching commands, running interactions
and loading configuration or persistent data.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cordkit.commands.context import CommandContext
    from cordkit.parsing.reader import StringLoc


class ErrorLevel(Enum):
    """Error message detail level for end users vs developers."""

    USER = "user"  # Input excerpt with the offending span marked
    DEVELOPER = "developer"  # Adds raw cursor indices


class CordkitError(Exception):
    """Base exception for all cordkit errors."""

    pass


class ParseError(CordkitError):
    """Raised when a value can not be parsed from command input."""

    def __init__(self, text: str, loc: "StringLoc | None" = None):
        """
        Initialize the exception.

        Params:
            text: Human readable description of the problem
            loc: Span of the input the problem covers, if known
        """
        self.text = text
        self.loc = loc
        super().__init__(text + (f" @ {loc}" if loc is not None else ""))

    def describe(self, error_level: ErrorLevel = ErrorLevel.USER) -> str:
        """
        Describe the error with its location.

        Params:
            error_level: Whether to show USER or DEVELOPER level details

        Returns:
            The error text followed by the formatted location, if any
        """
        if self.loc is None:
            return self.text
        return f"{self.text}\n{self.loc.format_location(error_level)}"


class CommandErrorType(Enum):
    """The cause of a command error."""

    SYSTEM = "SYSTEM"  # An error in the command system
    EXECUTOR = "EXECUTOR"  # An error in the executor of the command
    PARSE = "PARSE"  # A parsing error occurred
    UNKNOWN_FLAG = "UNKNOWN_FLAG"
    UNKNOWN_NODE = "UNKNOWN_NODE"  # Unknown subcommand
    UNKNOWN_CMD = "UNKNOWN_CMD"  # Unknown base command
    ASSERT_FAIL = "ASSERT_FAIL"


class CommandError(CordkitError):
    """Raised during command tree traversal, always caught by the dispatcher."""

    def __init__(
        self,
        ctx: "CommandContext | None",
        msg: str,
        error_type: CommandErrorType,
        loc: "StringLoc | None" = None,
    ):
        """
        Initialize the exception.

        Params:
            ctx: The command context the error occurred in
            msg: The error message
            error_type: The cause of the error
            loc: Span of the input the error covers, if known
        """
        self.ctx = ctx
        self.msg = msg
        self.error_type = error_type
        self.loc = loc
        self.trace = False
        super().__init__(msg + (f" @ {loc}" if loc is not None else ""))

    def set_trace(self) -> "CommandError":
        """Mark this error for stack trace logging."""
        self.trace = True
        return self

    def with_cause(self, cause: BaseException) -> "CommandError":
        """Attach the underlying cause of this error."""
        self.__cause__ = cause
        return self

    def describe(self, error_level: ErrorLevel = ErrorLevel.USER) -> str:
        if self.loc is None:
            return self.msg
        return f"{self.msg}\n{self.loc.format_location(error_level)}"


class FailError(CordkitError):
    """Raised by executors to end a command with a plain failure message."""

    pass


class AbsentValueError(FailError):
    """Raised when a required argument or flag has no value and no default."""

    def __init__(self, name: str):
        """
        Initialize the exception.

        Params:
            name: The name of the missing argument or flag
        """
        self.name = name
        super().__init__(f"`{name}` is a required argument")


class InteractionError(CordkitError):
    """Raised when an interaction is built or used incorrectly."""

    pass


class DuplicateInteractionError(InteractionError):
    """Raised when an interaction name is already taken by another interaction."""

    def __init__(self, name: str, existing_id: int, new_id: int):
        self.name = name
        self.existing_id = existing_id
        self.new_id = new_id
        super().__init__(
            f"Interaction name '{name}' is already used by interaction {existing_id}, "
            f"cannot register interaction {new_id} under it"
        )


class UnknownComponentError(InteractionError):
    """Raised when a serialized component references no registered base component."""

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"No base component registered by key '{key}'")


class ConfigLoadError(CordkitError):
    """Raised when a configuration file can not be loaded."""

    def __init__(self, path: str, cause: BaseException):
        self.path = path
        self.__cause__ = cause
        super().__init__(f"While loading config {path}: {cause}")


class MissingDependencyError(CordkitError):
    """Raised when a required dependency can not be resolved."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"Could not resolve dependency(name: {name}, kind: {kind})")
