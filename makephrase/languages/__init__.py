"""Per-language behaviour overrides.

Some behaviour depends on the language rather than on a translation: how a
number is written, which key means "yes". A ``Language`` subclass overrides
any of the methods named in ``CAPABILITIES`` and lists the ones it
overrides in its ``capabilities`` attribute. The engine asks the first
loaded module, in fallback-chain order, that claims a capability, and uses
the ``Language`` defaults otherwise.

Modules are registered by language tag, either here (``register``) or via
the ``makephrase.languages`` entry point group.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from makephrase.langtags import normalize_tag
from makephrase.render import NumericFormat, stringify_number

logger = logging.getLogger("makephrase.languages")

CAPABILITIES = frozenset({"format_number", "y_or_n"})


class Language:
    """Default language behaviour; subclass to override per language."""

    tag: str = ""
    capabilities: frozenset = frozenset()

    def format_number(self, num: Any, numeric_format: NumericFormat) -> str:
        return stringify_number(num, numeric_format)

    def y_or_n(self, keypress: str) -> bool:
        return (keypress or "")[:1].lower() == "y"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tag={self.tag!r})"


# Registry of language modules (lazy-loaded via entry points)
LANGUAGES: dict[str, type] = {}


def register(tag: str, cls: type) -> None:
    """Register *cls* as the override module for *tag*."""
    if not (isinstance(cls, type) and issubclass(cls, Language)):
        raise TypeError(f"{cls!r} is not a Language subclass")
    unknown = set(cls.capabilities) - CAPABILITIES
    if unknown:
        raise TypeError(f"{cls.__name__} declares unknown capabilities: {sorted(unknown)}")
    LANGUAGES[normalize_tag(tag)] = cls


def _register_defaults() -> None:
    """Discover and register language modules via entry points.

    Falls back to the built-in modules if entry points are not available
    (e.g. running from source without pip install -e).
    """
    if LANGUAGES:
        return

    from makephrase.plugins import discover_languages
    discovered = discover_languages()

    for tag, cls in discovered.items():
        try:
            register(tag, cls)
        except TypeError as e:
            logger.warning("Ignoring language plugin %s: %s", tag, e)

    if "en" not in LANGUAGES:
        from .en import English
        register("en", English)


def load_language_modules(chain: Sequence[str]) -> list[Language]:
    """Instantiate the registered modules for *chain*, in chain order."""
    _register_defaults()
    modules = []
    for tag in chain:
        cls = LANGUAGES.get(normalize_tag(tag))
        if cls is None:
            continue
        try:
            module = cls()
        except Exception as e:
            logger.warning("Failed to construct language module %s: %s", cls.__name__, e)
            continue
        module.tag = tag
        logger.debug("Loaded language module %s for %s", cls.__name__, tag)
        modules.append(module)
    return modules


def find_capability(modules: Sequence[Language], capability: str) -> Optional[Language]:
    """Return the first module that overrides *capability*, if any."""
    if capability not in CAPABILITIES:
        raise ValueError(f"Unknown language capability: {capability}")
    for module in modules:
        if capability in module.capabilities:
            return module
    return None
