"""
Shared test fixtures and utilities for the cordkit test suite.
"""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from cordkit.commands.context import CommandContext
from cordkit.parsing.reader import StringReader
from cordkit.storage import MemoryIO


def _make_member(member_id=1, guild_id=100, role_ids=(), name="user", bot=False):
    """Build a stand-in for a guild member with the given role ids."""
    guild = SimpleNamespace(id=guild_id)
    return SimpleNamespace(
        id=member_id,
        name=name,
        bot=bot,
        guild=guild,
        roles=[SimpleNamespace(id=r) for r in role_ids],
    )


def _make_message(content, author=None, guild=None, channel=None):
    """Build a stand-in for a platform message."""
    author = author or _make_member()
    return SimpleNamespace(
        id=555,
        content=content,
        author=author,
        guild=guild,
        channel=channel or Mock(),
    )


@pytest.fixture
def make_ctx():
    """Factory fixture creating a command context over the given text.

    Usage:
        def test_something(make_ctx):
            ctx = make_ctx("?cmd arg")
    """

    def factory(text, permissions=None, message=None, client=None):
        ctx = CommandContext(StringReader(text), permissions)
        if message is not None:
            ctx.set_message(message, client)
        return ctx

    return factory


@pytest.fixture
def memory_io():
    return MemoryIO()


@pytest.fixture
def make_member():
    return _make_member


@pytest.fixture
def make_message():
    return _make_message
