"""The translation engine: key + arguments in, localized text out.

Usage::

    from makephrase import MakePhrase
    from makephrase.stores import DirectoryStore

    mp = MakePhrase("en_AU", store=DirectoryStore("/path/to/translations"))
    mp.translate("Please select [_1] colours.", 1)
    # -> "Select one colour."

A lookup asks the store for every rule of the key in any language of the
fallback chain, orders them, takes the first whose guard holds and
substitutes the arguments. When nothing matches, the key itself is used as
the translation, so ``translate`` never fails just because a translation is
missing.
"""

from __future__ import annotations

import codecs
import enum
import logging
from typing import Any, Iterable, Optional

from makephrase.errors import ConfigError, ExpressionError, InvalidKeyError
from makephrase.langtags import resolve_fallback_chain, split_preferences
from makephrase.languages import Language, find_capability, load_language_modules
from makephrase.render import NumericFormat, render
from makephrase.rules import identity_rule, select_rule, sort_rules
from makephrase.stores import MemoryStore, RuleRepository, get_store

logger = logging.getLogger("makephrase.engine")

DEFAULT_LANGUAGE = "en"


def _xml_hex_replace(error: UnicodeError):
    if not isinstance(error, UnicodeEncodeError):
        raise error
    bad = error.object[error.start:error.end]
    return "".join(f"&#x{ord(ch):x};" for ch in bad), error.end


codecs.register_error("makephrase.xmlhexref", _xml_hex_replace)


class MalformedMode(enum.Enum):
    """How characters the output encoding cannot represent are written."""

    ESCAPE = "backslashreplace"
    HTML = "xmlcharrefreplace"
    XML = "makephrase.xmlhexref"

    @classmethod
    def parse(cls, value: Any) -> "MalformedMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().upper() in cls.__members__:
            return cls[value.strip().upper()]
        raise ConfigError(
            f"Unknown malformed-character mode: {value!r}. Use one of: escape, html, xml",
            context={"malformed_character_mode": repr(value)},
        )


class MakePhrase:
    """Resolves translation keys into localized text.

    Args:
        languages: Preferred languages, most preferred first; a list or a
            comma separated string. Defaults to the fallback language.
        store: Rule repository consulted on every lookup.
        fallback_language: Terminal language of the fallback chain; the
            language the keys themselves are written in.
        numeric_format: Grouping of numeric arguments.
        panic_language_lookup: Also consult related languages as a last resort.
        die_on_bad_args: Raise ``BadArgumentError`` for missing arguments.
        show_bad_args: Render missing arguments as ``<UNDEFINED>``.
        encoding: Output encoding used by ``encode``.
        malformed_character_mode: Handling of unencodable characters.

    Raises:
        ConfigError: For any invalid option.
    """

    fallback_language: str = DEFAULT_LANGUAGE

    def __init__(
        self,
        languages: str | Iterable[str] | None = None,
        *,
        store: Optional[RuleRepository] = None,
        fallback_language: Optional[str] = None,
        numeric_format: NumericFormat | str | int = NumericFormat.COMMA,
        panic_language_lookup: bool = False,
        die_on_bad_args: bool = False,
        show_bad_args: bool = False,
        encoding: str = "utf-8",
        malformed_character_mode: MalformedMode | str = MalformedMode.ESCAPE,
    ):
        if fallback_language is not None:
            self.fallback_language = fallback_language
        if not self.fallback_language:
            raise ConfigError("A fallback language is required")

        if store is None:
            store = MemoryStore()
        if not isinstance(store, RuleRepository):
            raise ConfigError(
                f"Store {store!r} does not provide get_rules(context, key, languages)"
            )
        self._store = store

        preferences = split_preferences(languages) or [self.fallback_language]
        self._languages = resolve_fallback_chain(
            preferences, panic_language_lookup, self.fallback_language
        )
        self._numeric_format = NumericFormat.parse(numeric_format)
        self._panic_language_lookup = bool(panic_language_lookup)
        self._die_on_bad_args = bool(die_on_bad_args)
        self._show_bad_args = bool(show_bad_args)

        try:
            self._encoding = codecs.lookup(encoding.replace("_", "-").lower()).name
        except (LookupError, AttributeError) as e:
            raise ConfigError(f"Unknown encoding: {encoding!r}", context={"encoding": encoding}) from e
        self._malformed_mode = MalformedMode.parse(malformed_character_mode)

        self._language_modules = load_language_modules(self._languages)
        self._default_language = Language()
        self._options = {
            "languages": preferences,
            "fallback_language": self.fallback_language,
            "numeric_format": self._numeric_format.name.lower(),
            "panic_language_lookup": self._panic_language_lookup,
            "die_on_bad_args": self._die_on_bad_args,
            "show_bad_args": self._show_bad_args,
            "encoding": self._encoding,
            "malformed_character_mode": self._malformed_mode.name.lower(),
            "store": type(store).__name__,
        }
        logger.debug("Engine ready: chain=%s store=%r", ",".join(self._languages), store)

    # ── Construction from configuration ──

    @classmethod
    def from_config(cls, config=None) -> "MakePhrase":
        """Build an engine and its store from resolved configuration.

        Args:
            config: A ``ResolvedConfig``; the global config service is used
                when omitted.
        """
        if config is None:
            from makephrase.config import get_config_service
            config = get_config_service().resolve()

        store_name = config.get("store.type", "memory")
        store_options: dict[str, Any] = {}
        if store_name in ("file", "directory"):
            path = config.get("store.path", "")
            if not path:
                raise ConfigError(f"The '{store_name}' store needs store.path to be set")
            store_options = {
                ("path" if store_name == "file" else "directory"): path,
                "encoding": config.get("store.encoding", "utf-8"),
                "dont_reload": bool(config.get("store.dont_reload", False)),
            }
        elif store_name == "sql":
            store_options = {
                "database": config.get("store.url", ""),
                "table": config.get("store.table", ""),
                "where": config.get("store.where", ""),
            }
        store = get_store(store_name, **store_options)

        return cls(
            config.get("engine.languages", None),
            store=store,
            fallback_language=config.get("engine.fallback_language", DEFAULT_LANGUAGE),
            numeric_format=config.get("engine.numeric_format", "comma"),
            panic_language_lookup=bool(config.get("engine.panic_language_lookup", False)),
            die_on_bad_args=bool(config.get("engine.die_on_bad_args", False)),
            show_bad_args=bool(config.get("engine.show_bad_args", False)),
            encoding=config.get("engine.encoding", "utf-8"),
            malformed_character_mode=config.get("engine.malformed_character_mode", "escape"),
        )

    # ── Translation ──

    def translate(self, key: str, *args: Any) -> str:
        """Translate *key* with no context."""
        return self.context_translate(None, key, *args)

    def context_translate(self, context: Any, key: str, *args: Any) -> str:
        """Translate *key* within *context*.

        A context that isn't a string is replaced by its class name, so an
        object can pass itself as the scope of its own phrases.

        Raises:
            InvalidKeyError: If *key* is empty.
            RepositoryError: If the store cannot be queried.
            BadArgumentError: In strict mode, for a missing argument.
        """
        if not isinstance(key, str) or not key:
            raise InvalidKeyError(key)
        if context is not None and not isinstance(context, str):
            context = type(context).__name__
        context = context or None

        numeric_format = self._numeric_format
        chain = self._languages
        candidates = self._store.get_rules(context, key, chain)
        rule = select_rule(candidates, chain, args)
        if rule is None:
            logger.debug("No rule matched %r (context %r), using the key", key, context)
            rule = identity_rule(key, self.fallback_language)

        return render(
            rule.translation,
            args,
            translate_fn=self._translate_argument,
            number_formatter=lambda num: self._format_number(num, numeric_format),
            die_on_bad_args=self._die_on_bad_args,
            show_bad_args=self._show_bad_args,
        )

    def explain(self, context: Any, key: str, *args: Any) -> list[tuple[Any, Optional[bool], str]]:
        """Report how a lookup would proceed.

        Returns:
            ``(rule, outcome, note)`` for every reachable candidate in selection
            order; *outcome* is the guard result, or None if it failed to parse.
        """
        if context is not None and not isinstance(context, str):
            context = type(context).__name__
        candidates = self._store.get_rules(context or None, key, self._languages)
        report = []
        for rule in sort_rules(candidates, self._languages):
            try:
                report.append((rule, rule.matches(args), ""))
            except ExpressionError as e:
                report.append((rule, None, str(e)))
        return report

    def _translate_argument(self, text: str) -> str:
        return self.translate(text)

    # ── Numbers and language capabilities ──

    def _format_number(self, num: Any, numeric_format: NumericFormat) -> str:
        module = find_capability(self._language_modules, "format_number") or self._default_language
        return module.format_number(num, numeric_format)

    def format_number(self, num: Any) -> str:
        """Format a number for display using the current numeric format."""
        return self._format_number(num, self._numeric_format)

    def y_or_n(self, keypress: str) -> bool:
        """Interpret a keypress as yes/no in the user's language."""
        module = find_capability(self._language_modules, "y_or_n") or self._default_language
        return module.y_or_n(keypress)

    @property
    def numeric_format(self) -> NumericFormat:
        return self._numeric_format

    @numeric_format.setter
    def numeric_format(self, value: NumericFormat | str | int) -> None:
        self._numeric_format = NumericFormat.parse(value)

    # ── Output encoding ──

    def encode(self, text: str) -> bytes:
        """Encode translated text for output in the configured encoding."""
        return text.encode(self._encoding, self._malformed_mode.value)

    # ── Read-only accessors ──

    @property
    def languages(self) -> tuple[str, ...]:
        """The resolved fallback chain."""
        return self._languages

    @property
    def language_modules(self) -> list[Language]:
        return list(self._language_modules)

    @property
    def store(self) -> RuleRepository:
        return self._store

    @property
    def options(self) -> dict:
        return dict(self._options)

    @property
    def encoding(self) -> str:
        return self._encoding

    @property
    def malformed_character_mode(self) -> MalformedMode:
        return self._malformed_mode

    @property
    def panic_language_lookup(self) -> bool:
        return self._panic_language_lookup

    @property
    def die_on_bad_args(self) -> bool:
        return self._die_on_bad_args

    @property
    def show_bad_args(self) -> bool:
        return self._show_bad_args

    def __repr__(self) -> str:
        return f"MakePhrase(languages={list(self._languages)!r}, store={self._store!r})"
