"""
Cursor based text scanning for command input.

The reader never raises when moved past either end of its text; it reports the
end-of-stream marker EOS instead so parsers can stop on it like any other
character.
"""

from collections.abc import Callable

from attrs import field, frozen

from cordkit.exceptions.core import ErrorLevel, ParseError

EOS = "\uffff"

CharPredicate = Callable[[str], bool]


def is_whitespace(c: str) -> bool:
    """Check whether the given single character is whitespace."""
    return c in (" ", "\t", "\n", "\r")


def is_digit(c: str) -> bool:
    """Check whether the given character is a base 10 digit."""
    return "0" <= c <= "9"


def until_whitespace(c: str) -> bool:
    return not is_whitespace(c)


def until_newline(c: str) -> bool:
    return c != "\n"


@frozen
class StringLoc:
    """
    An inclusive span of a reader's text.

    Params:
        reader: The reader the span belongs to
        start: First index of the span
        end: Last index of the span (inclusive)
    """

    reader: "StringReader" = field(eq=False, repr=False)
    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.start}:{self.end}"

    @property
    def text(self) -> str:
        """The covered text."""
        return self.reader.text[self.start : self.end + 1]

    def format_location(self, error_level: ErrorLevel = ErrorLevel.USER) -> str:
        """
        Format the span as an excerpt of the input with the span underlined.

        Params:
            error_level: Whether to show USER or DEVELOPER level details

        Returns:
            Multi-line location string
        """
        line = self.reader.text.replace("\n", " ")
        width = max(1, self.end - self.start + 1)
        lines = [f"  {line}", "  " + " " * self.start + "^" * width]
        if error_level == ErrorLevel.DEVELOPER:
            lines.append(f"  at {self}")
        return "\n".join(lines)


class StringReader:
    """Utility for scanning a string with a movable cursor."""

    def __init__(self, text: str):
        self.text = text
        self.idx = 0
        self.length = len(text)
        self._saved: list[int] = []

    def at(self, idx: int) -> str:
        """Get the character at the given index or EOS when out of bounds."""
        if idx < 0 or idx >= self.length:
            return EOS
        return self.text[idx]

    def current(self) -> str:
        return self.at(self.idx)

    def peek(self, offset: int = 1) -> str:
        """Get the character at the cursor plus the given offset."""
        return self.at(self.idx + offset)

    def move(self, amount: int = 1) -> str:
        """Move the cursor by the given amount and return the new current char.

        The cursor is clamped to the text; moving from either end returns EOS.
        """
        if amount > 0 and self.idx >= self.length:
            return EOS
        if amount < 0 and self.idx <= 0:
            return EOS
        self.idx = min(max(self.idx + amount, 0), self.length)
        return self.current()

    def next(self, amount: int = 1) -> str:
        return self.move(amount)

    def back(self, amount: int = 1) -> str:
        return self.move(-amount)

    def at_end(self) -> bool:
        return self.idx >= self.length

    def remaining(self) -> str:
        return self.text[self.idx :]

    def peek_check_string(self, s: str) -> bool:
        """Check whether the given string follows the cursor without consuming it."""
        return all(self.at(self.idx + i) == c for i, c in enumerate(s))

    def expect(self, s: str) -> None:
        """Consume exactly the given string.

        Raises:
            ParseError: If the input does not continue with the string
        """
        start = self.idx
        for c in s:
            if self.current() != c:
                raise ParseError(f"Expected `{s}`", StringLoc(self, start, self.idx))
            self.next()

    def collect(
        self,
        pred: CharPredicate = lambda c: True,
        skip: CharPredicate = lambda c: False,
    ) -> str:
        """
        Collect characters while the predicate holds.

        Characters matched by the skip predicate are consumed but not
        collected. The first character failing the predicate is not consumed.

        Params:
            pred: Predicate a character must satisfy to be collected
            skip: Predicate for characters to consume silently

        Returns:
            The collected characters
        """
        chars = []
        while (c := self.current()) != EOS:
            if skip(c):
                self.next()
                continue
            if not pred(c):
                break
            chars.append(c)
            self.next()
        return "".join(chars)

    def skip_whitespace(self) -> None:
        while is_whitespace(self.current()):
            self.next()

    def push_index(self) -> None:
        """Save the cursor position on the checkpoint stack."""
        self._saved.append(self.idx)

    def restore(self) -> None:
        """Return the cursor to the most recently saved position."""
        self.idx = self._saved.pop()

    def discard(self) -> None:
        """Drop the most recently saved position, keeping the cursor where it is."""
        self._saved.pop()

    def loc(self, start: int, end: int | None = None) -> StringLoc:
        """Create a span of this reader, ending at the cursor by default."""
        return StringLoc(self, start, self.idx if end is None else end)

    def __repr__(self) -> str:
        return f"StringReader({self.text!r}, idx={self.idx})"
