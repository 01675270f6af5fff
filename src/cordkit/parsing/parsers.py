"""
Parser abstraction and the standard primitive parsers.

A parser reads a value from the reader of a ParseContext and can emit the
value back as text. Emitting is the inverse of parsing for the primitive
parsers (string, number, list, duration), which is what default values and
tests rely on.
"""

import inspect
import math
import re
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from cordkit.exceptions.core import ParseError
from cordkit.parsing.reader import (
    EOS,
    is_digit,
    is_whitespace,
    until_newline,
)
from cordkit.parsing.results import ParseContext, ParseResult

T = TypeVar("T")
C = TypeVar("C", bound=ParseContext)


class Parser(ABC, Generic[T]):
    """Parses a value of type T from text."""

    @abstractmethod
    def parse(self, ctx: ParseContext) -> ParseResult[T]:
        """
        Parse a value at the cursor of the context's reader.

        Params:
            ctx: The parse context

        Returns:
            A settled or pending ParseResult
        """

    def emit(self, value: T) -> str:
        """Turn the given value back into text."""
        return str(value)


class FunctionParser(Parser[T]):
    """Parser backed by plain functions."""

    def __init__(
        self,
        parse_func: Callable[[Any], Any],
        emitter: Callable[[T], str] | None = None,
        allow_pending: bool = False,
    ):
        self._parse_func = parse_func
        self._emitter = emitter
        self.allow_pending = allow_pending

    def parse(self, ctx: ParseContext) -> ParseResult[T]:
        out = self._parse_func(ctx)
        if isinstance(out, ParseResult):
            return out
        if self.allow_pending and inspect.isawaitable(out):
            return ParseResult.pending(out)
        raise TypeError(
            f"Parser function {self._parse_func!r} returned {type(out).__name__}, "
            "expected a ParseResult"
        )

    def emit(self, value: T) -> str:
        if self._emitter is None:
            return str(value)
        return self._emitter(value)


def sync_parser(
    func: Callable[[C], ParseResult[T]], emitter: Callable[[T], str] | None = None
) -> Parser[T]:
    """Create a parser from a function returning a settled ParseResult."""
    return FunctionParser(func, emitter)


def async_parser(
    func: Callable[[C], "ParseResult[T] | Awaitable[Any]"],
    emitter: Callable[[T], str] | None = None,
) -> Parser[T]:
    """Create a parser from a function that may return an awaitable.

    An awaitable result is wrapped into a pending ParseResult.
    """
    return FunctionParser(func, emitter, allow_pending=True)


def _parse_string(ctx: ParseContext) -> ParseResult[str]:
    reader = ctx.get_reader()
    quote = reader.current()
    if quote in ('"', "'"):
        start = reader.idx
        reader.next()
        text = reader.collect(lambda c: c != quote)
        if reader.current() == EOS:
            raise ParseError("Unterminated string", reader.loc(start, reader.idx - 1))
        reader.next()
        return ctx.completed_parse(text)

    delimiters = ctx.delimiters
    return ctx.completed_parse(
        reader.collect(lambda c: not is_whitespace(c) and c not in delimiters)
    )


def _emit_string(value: str) -> str:
    if value == "" or any(is_whitespace(c) or c in "\"',[]" for c in value):
        quote = "'" if '"' in value else '"'
        return quote + value + quote
    return value


_LEADING_NUMBER = re.compile(r"\d*\.?\d*")


def _read_number(ctx: ParseContext) -> tuple[float, int]:
    """
    Read a number at the cursor, returning NaN when there is none.

    The whole run of digits, dots and underscores is consumed, but only its
    leading decimal is the value: ``1.2.3`` reads 1.2 and ``1_000`` reads 1.
    """
    reader = ctx.get_reader()
    start = reader.idx
    text = reader.collect(lambda c: is_digit(c) or c in "._")
    number = _LEADING_NUMBER.match(text).group()
    if not any(is_digit(c) for c in number):
        return math.nan, start
    return float(number), start


def _parse_number(ctx: ParseContext) -> ParseResult[float]:
    value, start = _read_number(ctx)
    if math.isnan(value):
        reader = ctx.get_reader()
        raise ParseError("Expected a number", reader.loc(start, max(start, reader.idx - 1)))
    return ctx.completed_parse(value)


def _emit_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _parse_greedy(ctx: ParseContext) -> ParseResult[str]:
    return ctx.completed_parse(ctx.get_reader().collect())


@dataclass
class CodeBlock:
    """A fenced code block."""

    lang: str | None
    text: str


def _parse_code_blocks(ctx: ParseContext) -> ParseResult[list[CodeBlock]]:
    reader = ctx.get_reader()
    blocks = []
    reader.skip_whitespace()
    while reader.current() != EOS:
        start = reader.idx
        reader.expect("```")
        lang = reader.collect(until_newline).strip() or None
        reader.next()

        chars = []
        while not reader.peek_check_string("```"):
            if reader.current() == EOS:
                raise ParseError("Unterminated code block", reader.loc(start, start + 2))
            chars.append(reader.current())
            reader.next()
        reader.expect("```")
        blocks.append(CodeBlock(lang, "".join(chars).rstrip("\n")))
        reader.skip_whitespace()

    return ctx.completed_parse(blocks)


def _emit_code_blocks(blocks: list[CodeBlock]) -> str:
    return "\n".join(f"```{b.lang or ''}\n{b.text}\n```" for b in blocks)


UNIT_TO_MS: dict[str, int] = {
    "ms": 1,
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
    "M": 30 * 24 * 60 * 60 * 1000,
    "y": 365 * 24 * 60 * 60 * 1000,
}


def _parse_duration(ctx: ParseContext) -> ParseResult[float]:
    reader = ctx.get_reader()
    total = 0.0
    while is_digit(reader.current()):
        num, _ = _read_number(ctx)
        if num == 0 or math.isnan(num):
            return ctx.completed_parse(0)

        start = reader.idx
        unit = reader.collect(lambda c: not is_digit(c) and not is_whitespace(c))
        ms = UNIT_TO_MS.get(unit)
        if ms is None:
            return ctx.failed_parse(
                ParseError(
                    f"No time unit by name `{unit}`",
                    reader.loc(start, max(start, reader.idx - 1)),
                )
            )
        total += num * ms

    return ctx.completed_parse(total)


def _emit_duration(value: float) -> str:
    remaining = float(value)
    if remaining <= 0:
        return "0ms"
    parts = []
    for unit, ms in sorted(UNIT_TO_MS.items(), key=lambda e: e[1], reverse=True):
        if ms == 1:
            break
        count = int(remaining // ms)
        if count:
            parts.append(f"{count}{unit}")
            remaining -= count * ms
    if remaining or not parts:
        parts.append(f"{_emit_number(remaining)}ms")
    return "".join(parts)


def format_elapsed(ms: float) -> str:
    """Format a duration in milliseconds as seconds and milliseconds ("1s250ms")."""
    ms = int(ms)
    return f"{ms // 1000}s{ms % 1000}ms"


class Parsers:
    """Standard primitive parsers."""

    STRING: Parser[str] = sync_parser(_parse_string, _emit_string)
    GREEDY_STRING: Parser[str] = sync_parser(_parse_greedy)
    NUMBER: Parser[float] = sync_parser(_parse_number, _emit_number)
    DURATION: Parser[float] = sync_parser(_parse_duration, _emit_duration)
    CODE_BLOCKS: Parser[list[CodeBlock]] = sync_parser(
        _parse_code_blocks, _emit_code_blocks
    )

    @staticmethod
    def list_of(elem: Parser[T]) -> Parser[list[T]]:
        """
        Create a parser for comma separated elements, optionally in brackets.

        Params:
            elem: Parser for each element

        Returns:
            Parser producing the list of element values
        """

        def parse(ctx: ParseContext) -> ParseResult[list[T]]:
            reader = ctx.get_reader()
            bracketed = reader.current() == "["
            if bracketed:
                reader.next()
                reader.skip_whitespace()
                if reader.current() == "]":
                    reader.next()
                    return ctx.completed_parse([])

            values = []
            ctx.push_delimiters(",]" if bracketed else ",")
            try:
                while True:
                    result = ctx.parse(elem)
                    if result.failed:
                        return result  # type: ignore[return-value]
                    if not result.is_sync:
                        result.cancel()
                        raise ParseError(
                            "List elements must not require lookups",
                            reader.loc(reader.idx),
                        )
                    values.append(result.value)

                    if bracketed:
                        reader.skip_whitespace()
                    if reader.current() != ",":
                        break
                    reader.next()
                    reader.skip_whitespace()
            finally:
                ctx.pop_delimiters()

            if bracketed:
                reader.skip_whitespace()
                reader.expect("]")
            return ctx.completed_parse(values)

        def emit(values: list[T]) -> str:
            return "[ " + ", ".join(elem.emit(v) for v in values) + " ]"

        return sync_parser(parse, emit)
