"""
cordkit - A framework for chat bots built from command trees and interactions

cordkit provides a command-tree parser and dispatcher, a trigger/condition/action
interaction engine with persistence, and the services that run them on discord.
"""

from importlib.metadata import version

from cordkit.app import ApplicationContext, BotModule, BotService
from cordkit.commands import CommandDispatcher, argument, literal
from cordkit.config import BotConfig, load_config
from cordkit.interactions import InteractionManager
from cordkit.parsing import Parsers

__version__ = version("cordkit")

__all__ = [
    "__version__",
    "ApplicationContext",
    "BotService",
    "BotModule",
    "BotConfig",
    "load_config",
    "CommandDispatcher",
    "literal",
    "argument",
    "Parsers",
    "InteractionManager",
]
