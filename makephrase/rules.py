"""Translation rules and the rule selector.

A rule is one candidate translation of a key for one language. Given the
candidates a store returned for a lookup, the selector orders them by the
language fallback chain and priority, then picks the first one whose guard
expression holds for the call arguments.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from makephrase.errors import ExpressionError, InvalidRuleError
from makephrase.expression import evaluate
from makephrase.langtags import normalize_tag

logger = logging.getLogger("makephrase.rules")


@dataclass(frozen=True)
class TranslationRule:
    """One candidate translation of a key.

    Attributes:
        key: The application text being translated.
        language: Normalized language tag (``en_au``).
        translation: Output text, may contain ``[_1]``, ``[_2]``... placeholders.
        context: Disambiguating scope; ``""`` means no context.
        priority: Higher values sort first among rules of the same language.
        expression: Guard expression; ``""`` always matches.
    """

    key: str
    language: str
    translation: str
    context: str = ""
    priority: int = 0
    expression: str = ""

    def __post_init__(self):
        if not self.key:
            raise InvalidRuleError("Rule key must not be empty", language=self.language or "")
        if not self.translation:
            raise InvalidRuleError(
                "Rule translation must not be empty", key=self.key, language=self.language or ""
            )
        object.__setattr__(self, "language", normalize_tag(self.language or ""))
        if not self.language:
            raise InvalidRuleError("Rule language must be a language tag", key=self.key)
        object.__setattr__(self, "context", self.context or "")
        object.__setattr__(self, "expression", (self.expression or "").strip())
        try:
            object.__setattr__(self, "priority", int(self.priority or 0))
        except (TypeError, ValueError) as e:
            raise InvalidRuleError(
                f"Rule priority must be an integer, got {self.priority!r}",
                key=self.key,
                language=self.language,
            ) from e

    def matches(self, args: Sequence[Any]) -> bool:
        """Evaluate this rule's guard against call arguments."""
        return evaluate(self.expression, args)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "language": self.language,
            "context": self.context,
            "priority": self.priority,
            "expression": self.expression,
            "translation": self.translation,
        }


def identity_rule(key: str, language: str) -> TranslationRule:
    """The rule used when nothing matches: the key translates to itself."""
    return TranslationRule(key=key, language=language, translation=key)


def sort_rules(
    candidates: Optional[Iterable[TranslationRule]],
    chain: Sequence[str],
) -> list[TranslationRule]:
    """Order candidates for selection.

    Rules whose language is not in *chain* are dropped. The rest sort by the
    position of their language in the chain, then by descending priority;
    ties keep the order the store returned them in.
    """
    if not candidates:
        return []
    position = {lang: i for i, lang in enumerate(chain)}
    reachable = [rule for rule in candidates if rule.language in position]
    return sorted(reachable, key=lambda rule: (position[rule.language], -rule.priority))


def select_rule(
    candidates: Optional[Iterable[TranslationRule]],
    chain: Sequence[str],
    args: Sequence[Any] = (),
) -> Optional[TranslationRule]:
    """Pick the first rule, in sorted order, whose guard holds for *args*.

    A rule whose guard is malformed is logged and skipped. Returns None when
    no candidate is reachable or none matches.
    """
    for rule in sort_rules(candidates, chain):
        if not rule.expression:
            return rule
        try:
            if rule.matches(args):
                return rule
        except ExpressionError as e:
            logger.warning(
                "Skipping rule for key %r (language %s): %s", rule.key, rule.language, e
            )
    return None
