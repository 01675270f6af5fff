"""
Tests for the standard parsers: string, number, list, duration and code blocks.
"""

import pytest

from cordkit.exceptions.core import ParseError
from cordkit.parsing.parsers import (
    UNIT_TO_MS,
    CodeBlock,
    Parsers,
    format_elapsed,
    sync_parser,
)
from cordkit.parsing.reader import StringReader
from cordkit.parsing.results import ParseContext, ParseResult


def parse(parser, text):
    ctx = ParseContext(StringReader(text))
    return ctx.parse(parser), ctx.reader


class TestStringParser:
    """Tests for Parsers.STRING."""

    def test_unquoted_stops_at_whitespace(self):
        result, reader = parse(Parsers.STRING, "hello world")
        assert result.value == "hello"
        assert reader.current() == " "

    def test_double_quoted(self):
        result, reader = parse(Parsers.STRING, '"hello world" rest')
        assert result.value == "hello world"
        assert reader.remaining() == " rest"

    def test_single_quoted(self):
        result, _ = parse(Parsers.STRING, "'a \"b\"'")
        assert result.value == 'a "b"'

    def test_unterminated_quote_fails(self):
        """Test an unterminated quote is a parse error covering the string."""
        result, _ = parse(Parsers.STRING, '"never closed')
        assert result.failed
        assert result.error.text == "Unterminated string"
        assert result.error.loc.start == 0

    def test_emit_quotes_when_needed(self):
        assert Parsers.STRING.emit("plain") == "plain"
        assert Parsers.STRING.emit("two words") == '"two words"'
        assert Parsers.STRING.emit('say "hi"') == "'say \"hi\"'"
        assert Parsers.STRING.emit("") == '""'


class TestGreedyStringParser:
    def test_takes_rest_of_input(self):
        result, reader = parse(Parsers.GREEDY_STRING, "all the rest -x")
        assert result.value == "all the rest -x"
        assert reader.at_end()


class TestNumberParser:
    """Tests for Parsers.NUMBER."""

    def test_integer(self):
        result, _ = parse(Parsers.NUMBER, "42")
        assert result.value == 42

    def test_decimal(self):
        result, _ = parse(Parsers.NUMBER, "1000.5")
        assert result.value == 1000.5

    @pytest.mark.parametrize(
        "text, value", [("1.2.3", 1.2), ("1_000", 1), (".5", 0.5), ("5.", 5)]
    )
    def test_leading_decimal_is_the_value(self, text, value):
        """Test only the leading decimal counts while the whole token is consumed."""
        result, reader = parse(Parsers.NUMBER, text + " rest")
        assert result.value == value
        assert reader.remaining() == " rest"

    def test_empty_is_error(self):
        result, _ = parse(Parsers.NUMBER, "abc")
        assert result.failed
        assert result.error.text == "Expected a number"

    @pytest.mark.parametrize("text", ["_5", ".", "._"])
    def test_no_leading_digits_is_error(self, text):
        result, _ = parse(Parsers.NUMBER, text)
        assert result.failed

    def test_emit(self):
        assert Parsers.NUMBER.emit(5.0) == "5"
        assert Parsers.NUMBER.emit(2.5) == "2.5"


class TestListParser:
    """Tests for Parsers.list_of."""

    def test_bracketed(self):
        result, _ = parse(Parsers.list_of(Parsers.NUMBER), "[1, 2 ,3]")
        assert result.value == [1, 2, 3]

    def test_bare(self):
        result, reader = parse(Parsers.list_of(Parsers.STRING), "a,b,c rest")
        assert result.value == ["a", "b", "c"]
        assert reader.remaining() == " rest"

    def test_bracketed_strings_stop_at_bracket(self):
        result, _ = parse(Parsers.list_of(Parsers.STRING), "[ a, b ]")
        assert result.value == ["a", "b"]

    def test_empty_brackets(self):
        result, _ = parse(Parsers.list_of(Parsers.NUMBER), "[ ]")
        assert result.value == []

    def test_missing_closing_bracket(self):
        result, _ = parse(Parsers.list_of(Parsers.NUMBER), "[1, 2")
        assert result.failed
        assert "`]`" in result.error.text

    def test_element_failure_propagates(self):
        result, _ = parse(Parsers.list_of(Parsers.NUMBER), "[1, x]")
        assert result.failed
        assert result.error.text == "Expected a number"

    def test_emit(self):
        assert Parsers.list_of(Parsers.NUMBER).emit([1, 2]) == "[ 1, 2 ]"

    def test_emitted_list_parses_back(self):
        parser = Parsers.list_of(Parsers.STRING)
        result, _ = parse(parser, parser.emit(["a b", "c"]))
        assert result.value == ["a b", "c"]


class TestDurationParser:
    """Tests for Parsers.DURATION."""

    def test_single_unit(self):
        result, _ = parse(Parsers.DURATION, "5s")
        assert result.value == 5000

    def test_compound(self):
        result, _ = parse(Parsers.DURATION, "1h30m")
        assert result.value == UNIT_TO_MS["h"] + 30 * UNIT_TO_MS["m"]

    def test_month_and_year_units(self):
        result, _ = parse(Parsers.DURATION, "1y2M")
        assert result.value == 365 * 86400000 + 2 * 30 * 86400000

    def test_zero_leading_number_yields_zero(self):
        result, _ = parse(Parsers.DURATION, "0s")
        assert not result.failed
        assert result.value == 0

    def test_no_number_yields_zero(self):
        result, _ = parse(Parsers.DURATION, "abc")
        assert not result.failed
        assert result.value == 0

    def test_unknown_unit_span_covers_unit(self):
        """Test an unknown unit fails with a span covering exactly the unit."""
        result, _ = parse(Parsers.DURATION, "5s3xyz")
        assert result.failed
        assert result.error.text == "No time unit by name `xyz`"
        assert result.error.loc.text == "xyz"

    @pytest.mark.parametrize(
        "ms", [1, 999, 1000, 61_000, 3_600_000 + 1, 90_061_001, 400 * 86400000]
    )
    def test_emit_then_parse_is_identity(self, ms):
        emitted = Parsers.DURATION.emit(ms)
        result, _ = parse(Parsers.DURATION, emitted)
        assert result.value == ms

    def test_emit_decomposes_greedily(self):
        assert Parsers.DURATION.emit(90_061_001) == "1d1h1m1s1ms"
        assert Parsers.DURATION.emit(0) == "0ms"


class TestCodeBlocksParser:
    """Tests for Parsers.CODE_BLOCKS."""

    def test_blocks_with_and_without_language(self):
        text = "```py\nprint(1)\n```\n```\nplain\n```"
        result, _ = parse(Parsers.CODE_BLOCKS, text)
        assert result.value == [CodeBlock("py", "print(1)"), CodeBlock(None, "plain")]

    def test_unterminated_block(self):
        result, _ = parse(Parsers.CODE_BLOCKS, "```py\nprint(1)")
        assert result.failed
        assert result.error.text == "Unterminated code block"

    def test_missing_fence(self):
        result, _ = parse(Parsers.CODE_BLOCKS, "no fence")
        assert result.failed


class TestCustomParsers:
    """Tests for parsers built from functions."""

    def test_sync_parser_must_return_result(self):
        """Test a sync parser returning a plain value is reported as uncaught."""
        parser = sync_parser(lambda ctx: "plain")
        result, _ = parse(parser, "x")
        assert isinstance(result.uncaught_error, TypeError)

    def test_raised_parse_error_becomes_failure(self):
        def failing(ctx):
            raise ParseError("nope")

        result, _ = parse(sync_parser(failing), "x")
        assert result.failed
        assert result.error.text == "nope"

    def test_emitter(self):
        parser = sync_parser(lambda ctx: ParseResult.of(1), lambda v: f"<{v}>")
        assert parser.emit(1) == "<1>"


class TestFormatElapsed:
    def test_seconds_and_millis(self):
        assert format_elapsed(1250) == "1s250ms"
        assert format_elapsed(42.7) == "0s42ms"
