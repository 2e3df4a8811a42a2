"""
Agent Compiler - Errors
=======================

Exception taxonomy for the compile pipeline.

    IndexingError  - two units claim one identifier; stops the whole run
    ConfigError    - agents.yaml, profile or stack config unusable; stops the whole run
    LoadError      - one unit unreadable; the unit is left out of its document
    SourceError    - an agent source is missing or unreadable; that agent is skipped
    WriteError     - a compiled document could not be written; that agent only

Unresolved references are not exceptions: they are collected in the
ResolutionResult and reported.
"""

from typing import Optional


class CompilerError(Exception):
    """Base class for all compiler errors."""


class IndexingError(CompilerError):
    """Raised when two storage paths produce the same unit identifier."""

    def __init__(self, identifier: str, first_path: str, second_path: str):
        self.identifier = identifier
        self.first_path = first_path
        self.second_path = second_path
        super().__init__(
            f"Ambiguous unit identifier '{identifier}': "
            f"defined by both {first_path} and {second_path}"
        )


class ConfigError(CompilerError):
    """Raised when a configuration file is missing or malformed."""


class LoadError(CompilerError):
    """Raised when a unit's body or metadata cannot be loaded."""

    def __init__(self, identifier: str, path: str, cause: str):
        self.identifier = identifier
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to load unit '{identifier}' from {path}: {cause}")


class SourceError(CompilerError):
    """Raised when an agent source file is missing or unreadable."""

    def __init__(self, agent: str, path: str, cause: Optional[str] = None):
        self.agent = agent
        self.path = path
        self.cause = cause
        if cause:
            message = f"Unreadable agent source for '{agent}': {path}: {cause}"
        else:
            message = f"Missing agent source for '{agent}': {path}"
        super().__init__(message)


class WriteError(CompilerError):
    """Raised when compiled output cannot be written."""

    def __init__(self, path: str, cause: Optional[str] = None):
        self.path = path
        self.cause = cause
        message = f"Failed to write {path}"
        if cause:
            message += f": {cause}"
        super().__init__(message)
