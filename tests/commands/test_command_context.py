"""
Tests for CommandContext values, defaults and platform fields.
"""

import pytest

from cordkit.commands.nodes import CommandNode, argument, flag, flag_switch, literal
from cordkit.exceptions.core import AbsentValueError
from cordkit.parsing.parsers import Parsers


class TestContextValues:
    """Tests for reading argument and flag values."""

    def test_current_node(self, make_ctx):
        ctx = make_ctx("?cmd")
        assert ctx.current_node is None
        node = literal("cmd").to_node()
        ctx.node_stack.append(node)
        assert ctx.current_node is node

    def test_recorded_value(self, make_ctx):
        ctx = make_ctx("")
        ctx.arg_result("n", ctx.completed_parse(3))
        assert ctx.has_arg("n")
        assert ctx.arg("n") == 3

    def test_supplier_default_is_cached(self, make_ctx):
        calls = []

        def supplier(ctx):
            calls.append(ctx)
            return "computed"

        ctx = make_ctx("")
        node = argument("x", Parsers.STRING).optional(supplier).to_node()
        ctx.registered_args["x"] = node
        assert ctx.arg("x") == "computed"
        assert ctx.arg("x") == "computed"
        assert len(calls) == 1

    def test_explicit_default(self, make_ctx):
        assert make_ctx("").arg("missing", 7) == 7

    def test_absent_value(self, make_ctx):
        with pytest.raises(AbsentValueError) as exc_info:
            make_ctx("").flag("verbose")
        assert exc_info.value.name == "verbose"
        assert str(exc_info.value) == "`verbose` is a required argument"

    def test_flag_default(self, make_ctx):
        ctx = make_ctx("")
        ctx.registered_flags["v"] = flag_switch("v", default=True)
        ctx.registered_flags["n"] = flag("n", Parsers.NUMBER, default=3)
        assert ctx.flag("v") is True
        assert ctx.flag("n") == 3
        assert not ctx.has_flag("missing")

    def test_pending_results_are_tracked(self, make_ctx):
        ctx = make_ctx("")
        settled = ctx.completed_parse(1)
        ctx.flag_result("a", settled)
        assert ctx.awaitables == []


class TestPlatformFields:
    """Tests for contexts created from platform messages."""

    def test_guild_message_has_member(self, make_ctx, make_message, make_member):
        member = make_member()
        message = make_message("?x", author=member, guild=member.guild)
        ctx = make_ctx("?x", message=message, client="client")
        assert ctx.author is member
        assert ctx.member is member
        assert ctx.guild is member.guild
        assert ctx.client == "client"

    def test_direct_message_has_no_member(self, make_ctx, make_message):
        ctx = make_ctx("?x", message=make_message("?x"))
        assert ctx.member is None
        assert ctx.guild is None


class TestNodes:
    """Tests for building command nodes."""

    def test_builder_tree(self):
        node = (
            literal("role")
            .aliases("r")
            .meta(help="Manage roles")
            .then(literal("give"))
            .then(argument("name", Parsers.STRING))
            .to_node()
        )
        assert node.matches("role") and node.matches("r")
        assert not node.matches("give")
        assert node.meta == {"help": "Manage roles"}
        assert node.argument_child.name == "name"
        assert [c.name for c in node.children] == ["give", "name"]

    def test_argument_nodes_never_match_tokens(self):
        assert not CommandNode("x", literal=False).matches("x")

    def test_permissions_adds_assertion(self):
        node = literal("admin").permissions("admin.use").to_node()
        assert len(node.assertions) == 1
