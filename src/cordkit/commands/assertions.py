"""
Command assertions, checked on every visited node before it is parsed.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar

from attrs import frozen

from cordkit.exceptions.core import CommandError, CommandErrorType
from cordkit.permissions import Permit

if TYPE_CHECKING:
    from cordkit.commands.context import CommandContext


@frozen
class CommandAssertionResult:
    """The outcome of testing an assertion."""

    failed: bool
    error: Any = None
    message: str | None = None

    SUCCESS: ClassVar["CommandAssertionResult"]

    @classmethod
    def fail(cls, message: str, error: Any = None) -> "CommandAssertionResult":
        return cls(failed=True, error=error, message=message)


CommandAssertionResult.SUCCESS = CommandAssertionResult(failed=False)


class CommandAssertion(ABC):
    """A precondition for entering a command node."""

    @abstractmethod
    def test(self, ctx: "CommandContext") -> CommandAssertionResult:
        pass


class BasicAssertion(CommandAssertion):
    def __init__(self, func: Callable[["CommandContext"], CommandAssertionResult]):
        self.func = func

    def test(self, ctx: "CommandContext") -> CommandAssertionResult:
        return self.func(ctx)


def basic_assertion(
    func: Callable[["CommandContext"], CommandAssertionResult],
) -> CommandAssertion:
    """Create an assertion from a plain function."""
    return BasicAssertion(func)


class CommandAssertions:
    """Standard command assertions."""

    @staticmethod
    def permissions(*paths: str) -> CommandAssertion:
        """
        Require every permission path to resolve to ALLOW for the invoking member.

        Paths unset for the member default to DENY. Outside a guild there is no
        member to check, so the assertion fails.
        """

        def test(ctx: "CommandContext") -> CommandAssertionResult:
            if ctx.permissions is None:
                raise CommandError(
                    ctx, "No permission manager available", CommandErrorType.SYSTEM
                ).set_trace()
            if ctx.member is None:
                return CommandAssertionResult.fail(
                    "Permissions can only be checked in a guild"
                )

            permissible = ctx.permissions.for_member(ctx.member)
            for path in paths:
                if permissible.check(path, Permit.DENY) != Permit.ALLOW:
                    return CommandAssertionResult.fail(f"Lacking permission `{path}`")
            return CommandAssertionResult.SUCCESS

        return basic_assertion(test)

    @staticmethod
    def platform_permissions(*names: str) -> CommandAssertion:
        """
        Require the invoking member to hold the named platform permission flags
        (for example ``manage_roles``) in the channel of the message.

        Messages outside a guild always pass.
        """

        def test(ctx: "CommandContext") -> CommandAssertionResult:
            if ctx.member is None:
                return CommandAssertionResult.SUCCESS

            permissions_for = getattr(ctx.channel, "permissions_for", None)
            if permissions_for is not None:
                granted = permissions_for(ctx.member)
            else:
                granted = ctx.member.guild_permissions
            for name in names:
                if not getattr(granted, name, False):
                    return CommandAssertionResult.fail(f"Lacking permission `{name}`")
            return CommandAssertionResult.SUCCESS

        return basic_assertion(test)
