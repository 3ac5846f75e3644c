"""Rule repository protocol and base class."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from makephrase.rules import TranslationRule


@runtime_checkable
class RuleRepository(Protocol):
    """Protocol that all rule stores must satisfy.

    ``get_rules`` returns every rule for *key* in *context* (None for no
    context) whose language is one of *languages*. Order does not matter and
    the result may be empty. Storage failures raise ``RepositoryError``.
    """

    def get_rules(
        self, context: Optional[str], key: str, languages: Sequence[str]
    ) -> list[TranslationRule]: ...


class BackingStore:
    """Common base for rule stores. Holds no rules by itself."""

    name: str = "none"

    def get_rules(
        self, context: Optional[str], key: str, languages: Sequence[str]
    ) -> list[TranslationRule]:
        return []

    def make_rule(self, **fields) -> TranslationRule:
        """Build a rule from storage fields; subclasses may post-process."""
        return TranslationRule(**fields)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class IndexedStore(BackingStore):
    """A store that keeps rules indexed by language, key and context."""

    def __init__(self):
        # language -> key -> context -> [rules]
        self._rules: dict[str, dict[str, dict[str, list[TranslationRule]]]] = {}

    def _index(self, rules, target=None) -> dict:
        index = self._rules if target is None else target
        for rule in rules:
            index.setdefault(rule.language, {}).setdefault(rule.key, {}).setdefault(
                rule.context, []
            ).append(rule)
        return index

    def _lookup(self, index, context: Optional[str], key: str, languages: Sequence[str]):
        found: list[TranslationRule] = []
        for language in languages:
            by_key = index.get(language)
            if not by_key:
                continue
            by_context = by_key.get(key)
            if not by_context:
                continue
            found.extend(by_context.get(context or "", ()))
        return found

    def get_rules(
        self, context: Optional[str], key: str, languages: Sequence[str]
    ) -> list[TranslationRule]:
        return self._lookup(self._rules, context, key, languages)

    def all_rules(self) -> list[TranslationRule]:
        """Every rule held by the store, grouped by language."""
        return [
            rule
            for by_key in self._rules.values()
            for by_context in by_key.values()
            for rules in by_context.values()
            for rule in rules
        ]
