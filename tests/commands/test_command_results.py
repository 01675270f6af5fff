"""
Tests for command result rendering and flattening.
"""

from cordkit.commands.results import (
    FAIL_COLOR,
    SUCCESS_COLOR,
    CommandErrorResult,
    Embed,
    FailResult,
    MessagePayload,
    MultiFailResult,
    ParseErrorsResult,
    ResultMessageOptions,
    SuccessResult,
    UncaughtErrorResult,
    render_status,
    to_error_result,
)
from cordkit.exceptions.core import CommandError, CommandErrorType, ParseError
from cordkit.parsing.results import ParseResult


class TestRenderStatus:
    """Tests for the status line format."""

    def test_single_line(self):
        assert render_status("✅", "done") == "`✅` done"

    def test_only_first_two_lines(self):
        assert render_status("❌", "one\ntwo\nthree") == "`❌` one\ntwo"


class TestSuccessResult:
    def test_renders_green_embed(self, make_ctx):
        payload = SuccessResult(make_ctx(""), "saved").build_message()
        assert payload == MessagePayload(embeds=(Embed("`✅` saved", SUCCESS_COLOR),))

    def test_without_message(self, make_ctx):
        assert SuccessResult(make_ctx("")).build_message() is None

    def test_custom_payload(self, make_ctx):
        payload = MessagePayload(content="raw")
        assert SuccessResult(make_ctx(""), payload).build_message() is payload

    def test_message_options(self, make_ctx):
        options = ResultMessageOptions(no_reply=True, delete_after=5)
        result = SuccessResult(make_ctx("")).message_options(options)
        assert result.msg_options.no_reply
        assert result.msg_options.delete_after == 5


class TestFailResults:
    """Tests for the fail-like results."""

    def test_fail_renders_red_embed(self, make_ctx):
        payload = FailResult(make_ctx(""), "no").build_message()
        assert payload.embeds[0] == Embed("`❌` no", FAIL_COLOR)

    def test_parse_error_result(self, make_ctx):
        result = ParseErrorsResult(make_ctx(""), ParseError("Expected a number"))
        assert result.message == "Parse Error: Expected a number"
        assert len(result.errors) == 1
        assert not result.trace

    def test_command_error_renders_location(self, make_ctx):
        ctx = make_ctx("?cmd -x")
        error = CommandError(
            ctx, "No flag by alias `x`", CommandErrorType.UNKNOWN_FLAG, ctx.reader.loc(6, 6)
        )
        desc = CommandErrorResult(ctx, error).build_desc()
        assert desc.startswith("`❌` No flag by alias `x`\n```\n")
        assert "      ^" in desc

    def test_command_error_trace_follows_error(self, make_ctx):
        ctx = make_ctx("")
        error = CommandError(ctx, "broken", CommandErrorType.SYSTEM)
        assert not CommandErrorResult(ctx, error).trace
        assert CommandErrorResult(ctx, error.set_trace()).trace

    def test_uncaught_is_traced(self, make_ctx):
        result = UncaughtErrorResult(make_ctx(""), KeyError("k"), "System Error")
        assert result.trace
        assert result.error_message == "System Error"


class TestMultiFailResult:
    """Tests for aggregated failures."""

    def test_single_leaf_renders_leaf(self, make_ctx):
        ctx = make_ctx("")
        leaf = FailResult(ctx, "only")
        assert MultiFailResult(ctx, [leaf]).build_desc() == leaf.build_desc()

    def test_multiple_leaves_render_header(self, make_ctx):
        ctx = make_ctx("")
        result = MultiFailResult(ctx, [FailResult(ctx, "a"), FailResult(ctx, "b")])
        assert result.build_desc() == "**`❌ Multiple Errors`**\n`❌` a\n`❌` b"

    def test_unwrap_flattens_nested(self, make_ctx):
        ctx = make_ctx("")
        a, b, c = FailResult(ctx, "a"), FailResult(ctx, "b"), FailResult(ctx, "c")
        nested = MultiFailResult(ctx, [a, MultiFailResult(ctx, [b, c])])
        assert nested.unwrap() == [a, b, c]

    def test_errors_are_collected(self, make_ctx):
        ctx = make_ctx("")
        parse_error = ParseError("bad")
        result = MultiFailResult(ctx, [ParseErrorsResult(ctx, parse_error), FailResult(ctx, "x")])
        assert result.errors == [parse_error]


class TestToErrorResult:
    def test_parse_failure(self, make_ctx):
        result = to_error_result(make_ctx(""), ParseResult.failure(ParseError("bad")))
        assert isinstance(result, ParseErrorsResult)

    def test_uncaught(self, make_ctx):
        result = to_error_result(make_ctx(""), ParseResult.uncaught(ValueError("v")))
        assert isinstance(result, UncaughtErrorResult)

    def test_success(self, make_ctx):
        assert to_error_result(make_ctx(""), ParseResult.of(1)) is None
