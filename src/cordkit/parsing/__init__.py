"""
Text scanning and value parsing for command input.
"""

from cordkit.parsing.parsers import (
    UNIT_TO_MS,
    CodeBlock,
    FunctionParser,
    Parser,
    Parsers,
    async_parser,
    format_elapsed,
    sync_parser,
)
from cordkit.parsing.reader import (
    EOS,
    StringLoc,
    StringReader,
    is_digit,
    is_whitespace,
    until_newline,
    until_whitespace,
)
from cordkit.parsing.results import ParseContext, ParseResult

__all__ = [
    "EOS",
    "StringLoc",
    "StringReader",
    "is_digit",
    "is_whitespace",
    "until_newline",
    "until_whitespace",
    "ParseContext",
    "ParseResult",
    "Parser",
    "FunctionParser",
    "Parsers",
    "CodeBlock",
    "UNIT_TO_MS",
    "sync_parser",
    "async_parser",
    "format_elapsed",
]
