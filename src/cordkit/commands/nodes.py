"""
Command tree nodes, flags and the fluent builder used to declare commands.

A command is a tree of literal nodes (matched by exact text) and argument
nodes (positional values read by a parser). Every node can register flags,
assertions and an executor.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from cordkit.parsing.parsers import Parser

if TYPE_CHECKING:
    from cordkit.commands.assertions import CommandAssertion
    from cordkit.commands.context import CommandContext
    from cordkit.commands.results import CommandResult

Executor = Callable[
    ["CommandContext"], "CommandResult | Awaitable[CommandResult | None] | None"
]
DefaultSupplier = Callable[["CommandContext"], Any]


def _as_supplier(default: Any) -> DefaultSupplier:
    if callable(default):
        return default
    return lambda ctx: default


@dataclass
class CommandFlag:
    """
    A named modifier a node registers for itself and its descendants.

    Switch flags take no value and are true when present; valued flags read
    the following token with their parser.
    """

    name: str
    aliases: list[str] = field(default_factory=list)
    type: Parser[Any] | None = None
    is_switch: bool = False
    default_supplier: DefaultSupplier | None = None


def flag(
    name: str,
    type: Parser[Any],
    default: Any = None,
    aliases: list[str] | None = None,
) -> CommandFlag:
    """
    Create a flag taking a value.

    Params:
        name: The flag name, used as `-name` in input
        type: The parser for the flag value
        default: Default value or supplier when the flag is absent
        aliases: Alternative names

    Returns:
        The flag
    """
    return CommandFlag(
        name=name,
        aliases=list(aliases or []),
        type=type,
        default_supplier=_as_supplier(default) if default is not None else None,
    )


def flag_switch(
    name: str, default: bool = False, aliases: list[str] | None = None
) -> CommandFlag:
    """Create a switch flag, true when present and `default` otherwise."""
    return CommandFlag(
        name=name,
        aliases=list(aliases or []),
        is_switch=True,
        default_supplier=_as_supplier(default),
    )


@dataclass(eq=False)
class CommandNode:
    """A node in a command tree."""

    name: str
    literal: bool = True
    aliases: list[str] = field(default_factory=list)
    argument_type: Parser[Any] | None = None
    optional: bool = False
    default_supplier: DefaultSupplier | None = None
    children: list["CommandNode"] = field(default_factory=list)
    flags: list[CommandFlag] = field(default_factory=list)
    assertions: list["CommandAssertion"] = field(default_factory=list)
    executor: Executor | None = None
    prefix: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    def matches(self, token: str) -> bool:
        """Check whether the given token selects this literal node."""
        return self.literal and (token == self.name or token in self.aliases)

    @property
    def argument_child(self) -> "CommandNode | None":
        """The first non-literal child, if any."""
        for child in self.children:
            if not child.literal:
                return child
        return None

    def __repr__(self) -> str:
        kind = "literal" if self.literal else "argument"
        return f"CommandNode({kind} {self.name!r}, children={len(self.children)})"


class CommandBuilder:
    """Fluent builder for a command node."""

    def __init__(self, node: CommandNode):
        self.node = node

    @classmethod
    def literal(cls, name: str) -> "CommandBuilder":
        """Start building a literal node."""
        return cls(CommandNode(name=name, literal=True))

    @classmethod
    def argument(cls, name: str, type: Parser[Any]) -> "CommandBuilder":
        """Start building an argument node read by the given parser."""
        return cls(CommandNode(name=name, literal=False, argument_type=type))

    def to_node(self) -> CommandNode:
        return self.node

    def then(self, child: "CommandNode | CommandBuilder") -> "CommandBuilder":
        self.node.children.append(
            child.to_node() if isinstance(child, CommandBuilder) else child
        )
        return self

    def prefix(self, prefix: str) -> "CommandBuilder":
        self.node.prefix = prefix
        return self

    def aliases(self, *aliases: str) -> "CommandBuilder":
        self.node.aliases.extend(aliases)
        return self

    def executes(self, executor: Executor) -> "CommandBuilder":
        """Set the executor, a plain function or a coroutine function."""
        self.node.executor = executor
        return self

    def optional(self, default: Any = None) -> "CommandBuilder":
        """Mark this argument optional with a default value or supplier."""
        self.node.optional = True
        self.node.default_supplier = _as_supplier(default)
        return self

    def flag(self, command_flag: CommandFlag) -> "CommandBuilder":
        self.node.flags.append(command_flag)
        return self

    def asserts(self, assertion: "CommandAssertion") -> "CommandBuilder":
        self.node.assertions.append(assertion)
        return self

    def permissions(self, *paths: str) -> "CommandBuilder":
        """Require every given permission path to be allowed for the member."""
        from cordkit.commands.assertions import CommandAssertions

        return self.asserts(CommandAssertions.permissions(*paths))

    def meta(self, **values: Any) -> "CommandBuilder":
        self.node.meta.update(values)
        return self


literal = CommandBuilder.literal
argument = CommandBuilder.argument
