"""Tests for translation rules and rule selection."""
import logging

import pytest

from makephrase.errors import InvalidRuleError
from makephrase.rules import TranslationRule, identity_rule, select_rule, sort_rules

CHAIN = ("en_au", "en")
KEY = "Please select [_1] colours."


class TestTranslationRule:
    def test_normalizes_fields(self):
        rule = TranslationRule(key="Hi", language="en-AU", translation="G'day",
                               context=None, priority="2", expression="  _1 == 1 ")
        assert rule.language == "en_au"
        assert rule.context == ""
        assert rule.priority == 2
        assert rule.expression == "_1 == 1"

    def test_empty_key(self):
        with pytest.raises(InvalidRuleError):
            TranslationRule(key="", language="en", translation="x")

    def test_empty_translation(self):
        with pytest.raises(InvalidRuleError) as exc_info:
            TranslationRule(key="Hi", language="en", translation="")
        assert exc_info.value.context["key"] == "Hi"

    @pytest.mark.parametrize("language", ["", "!!", None])
    def test_language_required(self, language):
        with pytest.raises(InvalidRuleError, match="language"):
            TranslationRule(key="Hi", language=language, translation="x")

    def test_bad_priority(self):
        with pytest.raises(InvalidRuleError, match="integer"):
            TranslationRule(key="Hi", language="en", translation="x", priority="high")

    def test_is_immutable(self):
        rule = TranslationRule(key="Hi", language="en", translation="x")
        with pytest.raises(AttributeError):
            rule.translation = "y"

    def test_to_dict(self):
        rule = TranslationRule(key="Hi", language="fr", translation="Salut", context="Chat")
        assert rule.to_dict() == {
            "key": "Hi", "language": "fr", "context": "Chat",
            "priority": 0, "expression": "", "translation": "Salut",
        }

    def test_identity_rule(self):
        rule = identity_rule("Hello", "en")
        assert rule.translation == "Hello"
        assert rule.expression == ""


class TestSortRules:
    def test_chain_position_then_priority(self, colour_rules):
        ordered = sort_rules(colour_rules, CHAIN)
        assert [r.translation for r in ordered] == [
            "Please select a colour.",
            "Please select some colours.",
            "Please select [_1] colors.",
        ]

    def test_unreachable_languages_dropped(self, colour_rules):
        assert all(r.language != "fr" for r in sort_rules(colour_rules, CHAIN))

    def test_ties_keep_store_order(self):
        first = TranslationRule(key="k", language="en", translation="first")
        second = TranslationRule(key="k", language="en", translation="second")
        assert sort_rules([first, second], ("en",)) == [first, second]
        assert sort_rules([second, first], ("en",)) == [second, first]

    def test_priority_beats_store_order(self):
        low = TranslationRule(key="k", language="en", translation="low", priority=-1)
        high = TranslationRule(key="k", language="en", translation="high", priority=5)
        assert sort_rules([low, high], ("en",))[0] is high

    def test_language_beats_priority(self):
        en = TranslationRule(key="k", language="en", translation="en", priority=100)
        au = TranslationRule(key="k", language="en_au", translation="au")
        assert sort_rules([en, au], CHAIN)[0] is au

    def test_empty(self):
        assert sort_rules(None, CHAIN) == []
        assert sort_rules([], CHAIN) == []


class TestSelectRule:
    def test_singular(self, colour_rules):
        assert select_rule(colour_rules, CHAIN, [1]).translation == "Please select a colour."

    def test_plural(self, colour_rules):
        assert select_rule(colour_rules, CHAIN, [3]).translation == "Please select some colours."

    def test_falls_through_to_next_language(self, colour_rules):
        assert select_rule(colour_rules, CHAIN, [0]).translation == "Please select [_1] colors."

    def test_no_reachable_rule(self, colour_rules):
        assert select_rule(colour_rules, ("de",), [1]) is None

    def test_deterministic(self, colour_rules):
        picks = {select_rule(colour_rules, CHAIN, [2]).translation for _ in range(20)}
        assert picks == {"Please select some colours."}

    def test_malformed_guard_is_skipped(self, caplog):
        broken = TranslationRule(key=KEY, language="en", translation="broken",
                                 expression="_1 ==", priority=9)
        good = TranslationRule(key=KEY, language="en", translation="good")
        with caplog.at_level(logging.WARNING, logger="makephrase.rules"):
            assert select_rule([broken, good], ("en",), [1]) is good
        assert "Skipping rule" in caplog.text

    def test_deeply_nested_guard_is_skipped(self, caplog):
        nested = TranslationRule(key="k", language="en", translation="nested", priority=1,
                                 expression="lc(" * 2000 + "_1" + ")" * 2000 + " eq 'a'")
        good = TranslationRule(key="k", language="en", translation="good")
        with caplog.at_level(logging.WARNING, logger="makephrase.rules"):
            assert select_rule([nested, good], ("en",), ["A"]) is good
        assert "nested too deeply" in caplog.text
