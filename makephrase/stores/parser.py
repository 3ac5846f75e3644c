"""Reader for the ``field = value`` translation file format.

A translation file is a sequence of groups, one rule per group::

    # comment lines and blank lines are ignored
    key = Please select [_1] colours.
    language = en_AU
    expression = _1 == 1
    priority = 1
    translation = Select one colour.

    key = Please select [_1] colours.
    language = en_AU
    translation = Please select [_1] colours.

A group opens with ``key`` and closes once its ``translation`` (and, in a
single-file store, its ``language``) has been read. Recognised fields are
``key``, ``language``, ``context``, ``expression``, ``priority`` and
``translation``; each may appear at most once per group. Values are trimmed.

Files in a per-language directory may omit ``language``; it comes from the
file name instead.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from makephrase.errors import InvalidRuleError, TranslationFileError
from makephrase.langtags import is_language_tag, normalize_tag, same_language_tag
from makephrase.rules import TranslationRule

logger = logging.getLogger("makephrase.stores.parser")

FIELDS = ("key", "language", "context", "expression", "priority", "translation")


def parse_translation_text(
    lines: Iterable[str],
    source: str = "",
    language: Optional[str] = None,
) -> list[TranslationRule]:
    """Parse translation records from an iterable of lines.

    Args:
        lines: The file contents, one line per item.
        source: File name used in error messages.
        language: Language implied by the file name, if any.

    Returns:
        Rules in file order.

    Raises:
        TranslationFileError: On any syntax error.
    """
    rules: list[TranslationRule] = []
    group: dict[str, str] = {}
    group_line = 0

    for line_no, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        lhs, sep, rhs = line.partition("=")
        lhs = lhs.strip()
        rhs = rhs.strip()
        if not sep or not lhs:
            logger.debug("Ignoring line %d of %s: %r", line_no, source or "<text>", line)
            continue

        if lhs == "key":
            if group:
                raise TranslationFileError(
                    "Found another group while processing previous group", source, line_no
                )
            if not rhs:
                raise TranslationFileError("Key must have some length", source, line_no)
            group = {"key": rhs}
            group_line = line_no
            continue

        if lhs not in FIELDS or lhs in group:
            raise TranslationFileError("Syntax error in translation file", source, line_no)

        if lhs == "language":
            if not rhs:
                raise TranslationFileError("Language must have some length", source, line_no)
            if not is_language_tag(rhs):
                raise TranslationFileError(
                    f"Must be valid language tag: {rhs!r}", source, line_no
                )
            if language and not same_language_tag(rhs, language):
                raise TranslationFileError(
                    f"Language {rhs!r} does not match file language {language!r}",
                    source,
                    line_no,
                )
        elif lhs == "priority":
            try:
                int(rhs)
            except ValueError:
                raise TranslationFileError(
                    f"Priority must be an integer: {rhs!r}", source, line_no
                ) from None
        elif lhs == "translation" and not rhs:
            raise TranslationFileError("Translation must have some length", source, line_no)

        if "key" not in group:
            raise TranslationFileError(f"Field '{lhs}' found outside a group", source, line_no)
        group[lhs] = rhs

        rule_language = group.get("language") or language
        if "translation" not in group or not rule_language:
            continue
        try:
            rules.append(
                TranslationRule(
                    key=group["key"],
                    language=normalize_tag(rule_language),
                    translation=group["translation"],
                    context=group.get("context", ""),
                    priority=int(group.get("priority") or 0),
                    expression=group.get("expression", ""),
                )
            )
        except InvalidRuleError as e:
            raise TranslationFileError(str(e), source, line_no) from e
        group = {}

    if group:
        problem = "missing language" if "translation" in group else "missing translation"
        raise TranslationFileError(
            f"Incomplete group for key '{group['key']}' ({problem})", source, group_line
        )
    return rules


def parse_translation_file(
    path: Path,
    encoding: str = "utf-8",
    language: Optional[str] = None,
) -> list[TranslationRule]:
    """Read and parse a translation file.

    Raises:
        TranslationFileError: If the file cannot be read or decoded, or on
            any syntax error.
    """
    path = Path(path)
    try:
        with open(path, encoding=encoding) as f:
            return parse_translation_text(f, source=str(path), language=language)
    except (OSError, UnicodeDecodeError, LookupError) as e:
        raise TranslationFileError(f"Failed to read translation file: {e}", str(path)) from e
