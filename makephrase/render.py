"""Argument substitution and number formatting for winning translations."""
from __future__ import annotations

import enum
import logging
import math
import re
from decimal import Decimal
from typing import Any, Callable, Sequence

from makephrase.errors import BadArgumentError, ConfigError
from makephrase.expression import is_number, to_number, to_text

logger = logging.getLogger("makephrase.render")

PLACEHOLDER_RE = re.compile(r"\[_(\d+)\]")
UNDEFINED_MARKER = "<UNDEFINED>"

_GROUP_RE = re.compile(r"^([-+]?\d+)(\d{3})")


class NumericFormat(enum.IntEnum):
    """How numbers are grouped when substituted into a translation."""

    NONE = 1
    COMMA = 2
    DOT = 3

    @classmethod
    def parse(cls, value: Any) -> "NumericFormat":
        """Accept an enum member, its value, or its name (case-insensitive).

        Raises:
            ConfigError: For anything else.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            if name in cls.__members__:
                return cls[name]
            if name.isdigit():
                value = int(name)
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                pass
        raise ConfigError(
            f"Invalid numeric format: {value!r}. Use one of: none, comma, dot",
            context={"numeric_format": repr(value)},
        )


def stringify_number(num: Any, numeric_format: NumericFormat = NumericFormat.NONE) -> str:
    """Render a number as text.

    Integers below 10^10 in magnitude keep their integer form; everything
    else uses ``%G``. With COMMA or DOT, the leading digit run is grouped in
    threes; DOT then swaps ``.`` and ``,``.
    """
    if isinstance(num, str):
        num = to_number(num)
    value = float(num) if isinstance(num, Decimal) else num
    if math.isfinite(value) and -10_000_000_000 < value < 10_000_000_000 and value == int(value):
        text = str(int(value))
    else:
        text = "%G" % value

    if numeric_format != NumericFormat.NONE:
        while True:
            grouped = _GROUP_RE.sub(r"\1,\2", text, count=1)
            if grouped == text:
                break
            text = grouped
        if numeric_format == NumericFormat.DOT:
            text = text.translate(str.maketrans(".,", ",."))
    return text


def render(
    translation: str,
    args: Sequence[Any],
    translate_fn: Callable[[str], str],
    number_formatter: Callable[[Any], str],
    *,
    die_on_bad_args: bool = False,
    show_bad_args: bool = False,
) -> str:
    """Substitute ``[_N]`` placeholders in *translation* with call arguments.

    Numeric arguments go through *number_formatter*; text arguments are
    themselves translated through *translate_fn*. A placeholder with no
    argument becomes an empty string, or ``<UNDEFINED>`` when
    *show_bad_args* is set.

    Raises:
        BadArgumentError: If *die_on_bad_args* is set and an argument is missing.
    """

    def substitute(match: re.Match) -> str:
        index = int(match.group(1))
        value = args[index - 1] if 1 <= index <= len(args) else None
        if value is None:
            logger.warning(
                "Missing argument for placeholder [_%d] in %r (%d supplied)",
                index,
                translation,
                len(args),
            )
            if die_on_bad_args:
                raise BadArgumentError(index, translation, len(args))
            return UNDEFINED_MARKER if show_bad_args else ""
        if isinstance(value, bool):
            return to_text(value)
        if is_number(value) or isinstance(value, Decimal):
            return number_formatter(value)
        if isinstance(value, str):
            return translate_fn(value) if value else ""
        return translate_fn(str(value))

    return PLACEHOLDER_RE.sub(substitute, translation)
