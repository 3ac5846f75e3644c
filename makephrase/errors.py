"""Custom exception hierarchy for makephrase.

All makephrase-specific exceptions derive from MakePhraseError. Each
exception carries an optional ``context`` dict with structured metadata
(expression, argument index, file and line, etc.) that the CLI error
handler can render.

Exception hierarchy::

    MakePhraseError
    ├── ConfigError
    ├── InvalidKeyError
    ├── InvalidRuleError
    ├── ExpressionError
    ├── BadArgumentError
    └── RepositoryError
        └── TranslationFileError
"""
from __future__ import annotations

from typing import Optional


class MakePhraseError(Exception):
    """Base class for all makephrase exceptions.

    Args:
        message: Human-readable error description.
        context: Optional dict of structured metadata.
    """

    exit_code: int = 1

    def __init__(self, message: str, context: Optional[dict] = None):
        self.context = context or {}
        super().__init__(message)


# ── Configuration ──────────────────────────────────────────────────

class ConfigError(MakePhraseError):
    """Raised when engine or store configuration is invalid or missing."""

    exit_code = 2


# ── Caller Errors ──────────────────────────────────────────────────

class InvalidKeyError(MakePhraseError):
    """Raised when a translation is requested for an empty key."""

    def __init__(self, key: object):
        super().__init__(
            "A translation key must be a non-empty string",
            context={"key": repr(key)},
        )


class InvalidRuleError(MakePhraseError):
    """Raised when a translation rule is missing a required field."""

    def __init__(self, message: str, key: str = "", language: str = ""):
        super().__init__(message, context={"key": key, "language": language})


# ── Lookup-time Errors ─────────────────────────────────────────────

class ExpressionError(MakePhraseError):
    """Raised when a guard expression cannot be tokenized, parsed or evaluated."""

    def __init__(self, message: str, expression: str = "", position: int = -1):
        msg = message
        if position >= 0:
            msg += f" at position {position}"
        if expression:
            msg += f" in expression '{expression}'"
        super().__init__(
            msg,
            context={"expression": expression, "position": position},
        )


class BadArgumentError(MakePhraseError):
    """Raised in strict mode when a placeholder refers to a missing argument."""

    def __init__(self, index: int, translation: str = "", supplied: int = 0):
        super().__init__(
            f"Placeholder [_{index}] has no argument ({supplied} supplied)",
            context={"index": index, "translation": translation, "supplied": supplied},
        )


# ── Repository Errors ──────────────────────────────────────────────

class RepositoryError(MakePhraseError):
    """Raised when a rule repository cannot load or query its storage."""

    def __init__(self, message: str, store: str = "", context: Optional[dict] = None):
        ctx = {"store": store}
        if context:
            ctx.update(context)
        super().__init__(message, context=ctx)


class TranslationFileError(RepositoryError):
    """Raised when a translation file contains a syntax error."""

    def __init__(self, message: str, file_path: str = "", line: int = 0):
        location = ""
        if file_path:
            location = f", file '{file_path}'"
            if line:
                location += f" line {line}"
        super().__init__(
            f"{message}{location}",
            store="file",
            context={"file": file_path, "line": line},
        )
