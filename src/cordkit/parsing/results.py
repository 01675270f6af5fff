"""
Parse results and the parse context.

A ParseResult is either settled (a value, a structured ParseError or an
unexpected exception) or pending on an awaitable that produces a settled
result. Pending results are backed by an asyncio task, so they can only be
created while an event loop is running.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from cordkit.exceptions.core import ParseError
from cordkit.parsing.reader import StringReader

if TYPE_CHECKING:
    from cordkit.parsing.parsers import Parser

T = TypeVar("T")
R = TypeVar("R")


class ParseResult(Generic[T]):
    """The outcome of parsing a value of type T."""

    __slots__ = ("value", "error", "uncaught_error", "future", "completed")

    def __init__(
        self,
        value: T | None = None,
        error: ParseError | None = None,
        uncaught_error: BaseException | None = None,
    ):
        self.value = value
        self.error = error
        self.uncaught_error = uncaught_error
        self.future: asyncio.Future | None = None
        self.completed = True

    @classmethod
    def of(cls, value: T) -> "ParseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ParseError) -> "ParseResult[Any]":
        return cls(error=error)

    @classmethod
    def uncaught(cls, error: BaseException) -> "ParseResult[Any]":
        return cls(uncaught_error=error)

    @classmethod
    def pending(cls, awaitable: Awaitable[Any]) -> "ParseResult[Any]":
        """
        Create a result settled later by the given awaitable.

        The awaitable may produce a ParseResult (pending or not) or a plain
        value. A ParseError raised by it settles the result as a failure, any
        other exception as an uncaught error.
        """
        result = cls()
        result.completed = False
        result.future = asyncio.ensure_future(result._settle(awaitable))
        return result

    async def _settle(self, awaitable: Awaitable[Any]) -> "ParseResult[T]":
        try:
            outcome = await awaitable
            if isinstance(outcome, ParseResult):
                outcome = await outcome.wait()
                value, error, uncaught = (
                    outcome.value,
                    outcome.error,
                    outcome.uncaught_error,
                )
            else:
                value, error, uncaught = outcome, None, None
        except ParseError as e:
            value, error, uncaught = None, e, None
        except Exception as e:
            value, error, uncaught = None, None, e

        self.value = value
        self.error = error
        self.uncaught_error = uncaught
        self.completed = True
        return self

    @property
    def is_sync(self) -> bool:
        return self.future is None

    @property
    def failed(self) -> bool:
        """Whether this result is settled as a failure."""
        return self.completed and (
            self.error is not None or self.uncaught_error is not None
        )

    async def wait(self) -> "ParseResult[T]":
        """Wait until this result is settled and return it."""
        if self.future is not None and not self.completed:
            await self.future
        return self

    def cancel(self) -> None:
        """Cancel the backing task of a result that has not settled yet."""
        if self.future is not None and not self.future.done():
            self.future.cancel()

    def use(
        self, func: Callable[["ParseResult[T]"], "ParseResult[R] | Awaitable[Any]"]
    ) -> "ParseResult[R]":
        """
        Chain another parse step onto this result.

        The function only runs for a successful result; failures pass through
        unchanged. A pending result (or an awaitable returned by the function)
        makes the chained result pending.
        """
        if self.future is not None and not self.completed:

            async def chained():
                settled = await self.wait()
                if settled.failed:
                    return settled
                return await _resolve(func(settled))

            return ParseResult.pending(chained())

        if self.failed:
            return self  # type: ignore[return-value]

        out = func(self)
        if isinstance(out, ParseResult):
            return out
        if inspect.isawaitable(out):
            return ParseResult.pending(out)
        return ParseResult.of(out)

    def __repr__(self) -> str:
        if not self.completed:
            return "ParseResult(<pending>)"
        if self.error is not None:
            return f"ParseResult(error={self.error!r})"
        if self.uncaught_error is not None:
            return f"ParseResult(uncaught_error={self.uncaught_error!r})"
        return f"ParseResult(value={self.value!r})"


async def _resolve(out: Any) -> Any:
    if inspect.isawaitable(out):
        out = await out
    if isinstance(out, ParseResult):
        out = await out.wait()
    return out


class ParseContext:
    """
    State shared by parsers while reading one input.

    Params:
        reader: The reader over the input
    """

    def __init__(self, reader: StringReader | None = None):
        self.reader = reader
        # Characters that end an unquoted token in addition to whitespace,
        # pushed by container parsers such as lists.
        self._delimiters: list[frozenset[str]] = []

    def get_reader(self) -> StringReader:
        return self.reader

    def completed_parse(self, value: T) -> ParseResult[T]:
        return ParseResult.of(value)

    def failed_parse(self, error: ParseError) -> ParseResult[Any]:
        return ParseResult.failure(error)

    def parse(self, parser: "Parser[T]") -> ParseResult[T]:
        """Parse a value with the given parser, converting raised errors to results."""
        try:
            return parser.parse(self)
        except ParseError as e:
            return self.failed_parse(e)
        except Exception as e:
            return ParseResult.uncaught(e)

    @property
    def delimiters(self) -> frozenset[str]:
        return self._delimiters[-1] if self._delimiters else frozenset()

    def push_delimiters(self, chars: str) -> None:
        self._delimiters.append(self.delimiters | frozenset(chars))

    def pop_delimiters(self) -> None:
        self._delimiters.pop()
