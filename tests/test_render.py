"""Tests for argument substitution and number formatting."""
import logging
from decimal import Decimal

import pytest

from makephrase.errors import BadArgumentError, ConfigError
from makephrase.render import UNDEFINED_MARKER, NumericFormat, render, stringify_number


def _render(translation, args, **kwargs):
    return render(
        translation,
        args,
        translate_fn=lambda text: f"<{text}>",
        number_formatter=lambda num: stringify_number(num, NumericFormat.COMMA),
        **kwargs,
    )


class TestNumericFormat:
    @pytest.mark.parametrize("value,expected", [
        ("comma", NumericFormat.COMMA),
        ("DOT", NumericFormat.DOT),
        ("none", NumericFormat.NONE),
        (2, NumericFormat.COMMA),
        ("3", NumericFormat.DOT),
        (NumericFormat.NONE, NumericFormat.NONE),
    ])
    def test_parse(self, value, expected):
        assert NumericFormat.parse(value) is expected

    @pytest.mark.parametrize("value", ["space", 0, 4, None, True])
    def test_parse_invalid(self, value):
        with pytest.raises(ConfigError):
            NumericFormat.parse(value)


class TestStringifyNumber:
    def test_grouping(self):
        assert stringify_number(1000, NumericFormat.COMMA) == "1,000"
        assert stringify_number(1000, NumericFormat.DOT) == "1.000"
        assert stringify_number(1000, NumericFormat.NONE) == "1000"

    def test_large_and_negative(self):
        assert stringify_number(1234567, NumericFormat.COMMA) == "1,234,567"
        assert stringify_number(-1234567, NumericFormat.DOT) == "-1.234.567"

    def test_small_numbers_untouched(self):
        assert stringify_number(999, NumericFormat.COMMA) == "999"

    def test_fractions(self):
        assert stringify_number(1234.5, NumericFormat.COMMA) == "1,234.5"
        assert stringify_number(1234.5, NumericFormat.DOT) == "1.234,5"

    def test_integral_float(self):
        assert stringify_number(3.0) == "3"

    def test_huge_uses_exponent(self):
        assert stringify_number(1.5e20) == "1.5E+20"

    def test_numeric_string_and_decimal(self):
        assert stringify_number("2500", NumericFormat.COMMA) == "2,500"
        assert stringify_number(Decimal("2500"), NumericFormat.COMMA) == "2,500"

    def test_idempotent(self):
        once = stringify_number(1000000, NumericFormat.COMMA)
        assert once == stringify_number(1000000, NumericFormat.COMMA)


class TestRender:
    def test_no_placeholders(self):
        assert _render("Hello", []) == "Hello"

    def test_rerender_is_unchanged(self):
        once = _render("Please select [_1] colours.", [2])
        assert _render(once, []) == once

    def test_numbers_are_formatted(self):
        assert _render("[_1] items", [1000]) == "1,000 items"

    def test_strings_are_translated(self):
        assert _render("Colour: [_1]", ["red"]) == "Colour: <red>"

    def test_other_values_translated_as_text(self):
        class Colour:
            def __str__(self):
                return "red"

        assert _render("[_1]", [Colour()]) == "<red>"

    def test_booleans_render_like_guards_see_them(self):
        assert _render("[_1]|[_2]", [True, False]) == "1|"

    def test_repeated_and_reordered(self):
        assert _render("[_2] [_1] [_2]", [1, 2]) == "2 1 2"

    def test_empty_string_argument(self):
        assert _render("a[_1]b", [""]) == "ab"

    def test_missing_argument_defaults_to_empty(self, caplog):
        with caplog.at_level(logging.WARNING, logger="makephrase.render"):
            assert _render("[_1] and [_2]", [1]) == "1 and "
        assert "[_2]" in caplog.text

    def test_none_argument_is_missing(self):
        assert _render("x[_1]x", [None]) == "xx"

    def test_show_bad_args(self):
        assert _render("[_1]", [], show_bad_args=True) == UNDEFINED_MARKER

    def test_die_on_bad_args(self):
        with pytest.raises(BadArgumentError) as exc_info:
            _render("[_1] and [_2]", [1], die_on_bad_args=True)
        assert exc_info.value.context["index"] == 2

    def test_zero_index_is_missing(self):
        assert _render("[_0]", [1], show_bad_args=True) == UNDEFINED_MARKER
