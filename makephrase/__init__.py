"""Rule-based phrase translation."""

from makephrase.engine import MakePhrase, MalformedMode
from makephrase.errors import (
    BadArgumentError,
    ConfigError,
    ExpressionError,
    InvalidKeyError,
    InvalidRuleError,
    MakePhraseError,
    RepositoryError,
    TranslationFileError,
)
from makephrase.render import NumericFormat
from makephrase.rules import TranslationRule

__version__ = "0.3.0"

__all__ = [
    "MakePhrase",
    "MalformedMode",
    "NumericFormat",
    "TranslationRule",
    "MakePhraseError",
    "ConfigError",
    "InvalidKeyError",
    "InvalidRuleError",
    "ExpressionError",
    "BadArgumentError",
    "RepositoryError",
    "TranslationFileError",
]
