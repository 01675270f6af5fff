"""
Command trees, their dispatcher and command results.
"""

from cordkit.commands.assertions import (
    BasicAssertion,
    CommandAssertion,
    CommandAssertionResult,
    CommandAssertions,
    basic_assertion,
)
from cordkit.commands.context import CommandContext
from cordkit.commands.dispatcher import CommandDispatcher
from cordkit.commands.nodes import (
    CommandBuilder,
    CommandFlag,
    CommandNode,
    argument,
    flag,
    flag_switch,
    literal,
)
from cordkit.commands.platform_parsers import PlatformParsers
from cordkit.commands.results import (
    AssertionFailedResult,
    CommandErrorResult,
    CommandResult,
    Embed,
    FailLikeResult,
    FailResult,
    MessagePayload,
    MultiFailResult,
    NoExecutorResult,
    ParseErrorsResult,
    ResultMessageOptions,
    SuccessLikeResult,
    SuccessResult,
    UncaughtErrorResult,
)

__all__ = [
    "CommandNode",
    "CommandFlag",
    "CommandBuilder",
    "literal",
    "argument",
    "flag",
    "flag_switch",
    "CommandAssertion",
    "CommandAssertionResult",
    "CommandAssertions",
    "BasicAssertion",
    "basic_assertion",
    "CommandContext",
    "CommandDispatcher",
    "PlatformParsers",
    "CommandResult",
    "SuccessLikeResult",
    "SuccessResult",
    "NoExecutorResult",
    "FailLikeResult",
    "FailResult",
    "AssertionFailedResult",
    "ParseErrorsResult",
    "CommandErrorResult",
    "UncaughtErrorResult",
    "MultiFailResult",
    "MessagePayload",
    "Embed",
    "ResultMessageOptions",
]
