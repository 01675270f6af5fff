"""
cordkit exception classes.

This package provides all exception types used throughout cordkit for
consistent error handling and reporting.
"""

from cordkit.exceptions.core import (
    AbsentValueError,
    CommandError,
    CommandErrorType,
    ConfigLoadError,
    CordkitError,
    DuplicateInteractionError,
    ErrorLevel,
    FailError,
    InteractionError,
    MissingDependencyError,
    ParseError,
    UnknownComponentError,
)

__all__ = [
    "CordkitError",
    "ErrorLevel",
    "ParseError",
    "CommandError",
    "CommandErrorType",
    "FailError",
    "AbsentValueError",
    "InteractionError",
    "DuplicateInteractionError",
    "UnknownComponentError",
    "ConfigLoadError",
    "MissingDependencyError",
]
