"""In-memory rule store."""
from __future__ import annotations

import threading
from typing import Iterable, Optional

from makephrase.rules import TranslationRule
from makephrase.stores.base import IndexedStore


class MemoryStore(IndexedStore):
    """Rules held in memory, added programmatically.

    Usage::

        store = MemoryStore([
            TranslationRule(key="Hello", language="fr", translation="Bonjour"),
        ])
        store.add(TranslationRule(key="Bye", language="fr", translation="Au revoir"))
    """

    name = "memory"

    def __init__(self, rules: Optional[Iterable[TranslationRule]] = None):
        super().__init__()
        self._lock = threading.Lock()
        if rules:
            self.extend(rules)

    def add(self, rule: TranslationRule) -> None:
        self.extend([rule])

    def extend(self, rules: Iterable[TranslationRule]) -> None:
        rules = list(rules)
        with self._lock:
            # readers keep the old index until the rebuilt one is assigned
            index = {
                lang: {key: {ctx: list(rs) for ctx, rs in by_ctx.items()} for key, by_ctx in by_key.items()}
                for lang, by_key in self._rules.items()
            }
            self._rules = self._index(rules, index)

    def __len__(self) -> int:
        return len(self.all_rules())
