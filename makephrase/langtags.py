"""Language tag handling and fallback chain resolution.

Turns a user's ordered language preferences into the chain of normalized
tags that rule lookup walks through::

    >>> resolve_fallback_chain(["en-AU"], enable_panic=False, fallback_tag="en")
    ('en_au', 'en')

Stages, in order:

1. locale syntax (``en_AU.UTF-8``) becomes a language tag (``en-AU``)
2. each tag is followed by its superordinate tags (``en-AU`` -> ``en``)
3. legacy alternates are added (``en-GB`` -> ``en-UK``)
4. optionally, "panic" tags from related languages are added
5. the fallback tag is appended
6. duplicates are removed (first occurrence wins)
7. tags are normalized to ``[a-z0-9_]`` (``en-AU`` -> ``en_au``)
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from makephrase.errors import ConfigError

logger = logging.getLogger("makephrase.langtags")

_TAG_RE = re.compile(r"^(?:[xi]|[a-z]{2,3})(?:[-_][a-z0-9]{1,8})*$")
_LOCALE_SUFFIX_RE = re.compile(r"(?:[.@][-_a-zA-Z0-9]+)+$")
_NORMALIZE_STRIP_RE = re.compile(r"[^a-z0-9_]")

# Legacy tags that denote the same language, keyed by lowercase prefix.
_ALTERNATES: list[tuple[str, tuple[str, ...]]] = [
    ("i-hakka", ("zh-hakka",)),
    ("x-hakka", ("zh-hakka",)),
    ("zh-hakka", ("x-hakka", "i-hakka")),
    ("en-gb", ("en-uk",)),
    ("en-uk", ("en-gb",)),
    ("no-bok", ("nb",)),
    ("bok", ("nb", "no-bok")),
    ("nb", ("no-bok",)),
    ("no-nyn", ("nn",)),
    ("nyn", ("nn", "no-nyn")),
    ("nn", ("no-nyn",)),
    ("he", ("iw",)),
    ("iw", ("he",)),
    ("yi", ("ji",)),
    ("ji", ("yi",)),
    ("id", ("in",)),
    ("in", ("id",)),
]

# Languages with a shared heritage, most similar first. Only used when
# panic lookup is enabled.
_PANIC_FAMILIES: dict[str, tuple[str, ...]] = {
    "es": ("pt", "gl", "ca", "it", "fr"),
    "pt": ("es", "gl", "it", "fr"),
    "gl": ("pt", "es"),
    "ca": ("es", "fr", "it"),
    "it": ("es", "fr", "pt", "ro"),
    "fr": ("it", "es", "ca", "pt"),
    "ro": ("it", "fr", "es"),
    "de": ("nl", "da", "sv", "no"),
    "nl": ("de", "af"),
    "af": ("nl", "de"),
    "da": ("no", "nb", "nn", "sv"),
    "no": ("nb", "nn", "da", "sv"),
    "nb": ("no", "nn", "da", "sv"),
    "nn": ("no", "nb", "da", "sv"),
    "sv": ("no", "nb", "da"),
    "is": ("fo", "no", "da"),
    "fo": ("is", "da"),
    "ru": ("uk", "be", "bg"),
    "uk": ("ru", "be"),
    "be": ("ru", "uk"),
    "cs": ("sk", "pl"),
    "sk": ("cs", "pl"),
    "pl": ("cs", "sk"),
    "sr": ("hr", "bs", "sl"),
    "hr": ("sr", "bs", "sl"),
    "bs": ("hr", "sr"),
    "sl": ("hr", "sr"),
    "bg": ("mk", "ru"),
    "mk": ("bg", "sr"),
    "ms": ("id",),
    "id": ("ms",),
    "hi": ("ur",),
    "ur": ("hi",),
    "zh": ("ja",),
    "fi": ("et",),
    "et": ("fi",),
}


def is_language_tag(tag: Optional[str]) -> bool:
    """Check whether *tag* is a syntactically valid language tag."""
    if not tag:
        return False
    lowered = tag.lower()
    if lowered in ("i", "x"):
        return False
    return bool(_TAG_RE.match(lowered))


def locale_to_language_tag(locale: Optional[str]) -> Optional[str]:
    """Convert a locale name (``en_AU.UTF-8``) into a language tag (``en-AU``).

    Returns None when the input cannot be read as a language tag.
    """
    if not locale:
        return None
    tag = _LOCALE_SUFFIX_RE.sub("", locale.strip()).replace("_", "-")
    if is_language_tag(tag):
        return tag
    return None


def super_languages(tag: str) -> list[str]:
    """Return the superordinate tags of *tag*, most specific first.

    ``en-AU-x`` gives ``["en-AU", "en"]``; a primary tag has none.
    """
    if not is_language_tag(tag):
        return []
    subtags = re.split(r"[-_]", tag)
    return ["-".join(subtags[:i]) for i in range(len(subtags) - 1, 0, -1)]


def alternate_language_tags(tag: str) -> list[str]:
    """Return legacy tags that denote the same language as *tag*."""
    if not is_language_tag(tag):
        return []
    lowered = tag.lower().replace("_", "-")
    found: list[str] = []
    for prefix, alternates in _ALTERNATES:
        if lowered == prefix or lowered.startswith(prefix + "-"):
            rest = lowered[len(prefix):]
            found.extend(alt + rest for alt in alternates)
            break
    # private-use tags are interchangeable between the i- and x- prefixes
    if lowered[:2] in ("i-", "x-"):
        swapped = ("x" if lowered[0] == "i" else "i") + lowered[1:]
        if swapped not in found:
            found.append(swapped)
    return found


def panic_languages(tags: Iterable[str]) -> list[str]:
    """Return last-resort tags for languages related to *tags*.

    The result never repeats an input tag and always ends with ``en``.
    """
    seen: set[str] = set()
    out: list[str] = []
    for tag in tags:
        if not tag:
            continue
        lowered = tag.lower().replace("_", "-")
        if lowered in seen:
            continue
        seen.add(lowered)
        primary = lowered.split("-", 1)[0]
        out.extend(_PANIC_FAMILIES.get(primary, ()))
    result = []
    for tag in out + ["en"]:
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def _encode_tag(tag: str) -> str:
    lowered = tag.strip().lower().replace("_", "-")
    if lowered.startswith("x-"):
        lowered = "i-" + lowered[2:]
    return lowered


def same_language_tag(a: str, b: str) -> bool:
    """Compare two tags ignoring case, separator and private-use prefix."""
    return _encode_tag(a) == _encode_tag(b)


def normalize_tag(tag: str) -> str:
    """Lowercase, turn ``-`` into ``_`` and strip everything outside ``[a-z0-9_]``."""
    return _NORMALIZE_STRIP_RE.sub("", tag.lower().replace("-", "_"))


def split_preferences(preferences: str | Iterable[str] | None) -> list[str]:
    """Accept ``"en_AU,fr"`` or a list and return the individual entries."""
    if preferences is None:
        return []
    if isinstance(preferences, str):
        items = preferences.split(",")
    else:
        items = list(preferences)
    return [item.strip() for item in items if item and item.strip()]


def resolve_fallback_chain(
    preferences: str | Iterable[str] | None,
    enable_panic: bool = False,
    fallback_tag: str = "en",
) -> tuple[str, ...]:
    """Expand language preferences into a deduplicated, normalized fallback chain.

    Args:
        preferences: Ordered language/locale names, most preferred first.
        enable_panic: Also append tags of related languages.
        fallback_tag: Terminal language; appended last unless a preference
            already placed it earlier in the chain.

    Returns:
        Tuple of normalized tags such as ``("en_au", "en")``.

    Raises:
        ConfigError: If *fallback_tag* is empty or not a language tag.
    """
    fallback = locale_to_language_tag(fallback_tag) if fallback_tag else None
    if not fallback or not normalize_tag(fallback):
        raise ConfigError(
            f"Invalid fallback language: {fallback_tag!r}",
            context={"fallback_language": fallback_tag},
        )

    tags: list[str] = []
    for pref in split_preferences(preferences):
        tag = locale_to_language_tag(pref)
        if tag is None:
            logger.warning("Ignoring unrecognised language preference %r", pref)
            continue
        tags.append(tag)

    with_supers: list[str] = []
    for tag in tags:
        with_supers.append(tag)
        with_supers.extend(super_languages(tag))

    with_alternates: list[str] = []
    for tag in with_supers:
        with_alternates.append(tag)
        with_alternates.extend(alternate_language_tags(tag))

    working = list(with_alternates)
    if enable_panic:
        working.extend(panic_languages(with_alternates))
    working.append(fallback)

    deduped: list[str] = []
    for tag in working:
        if any(same_language_tag(tag, seen) for seen in deduped):
            continue
        deduped.append(tag)

    chain: list[str] = []
    for tag in deduped:
        normal = normalize_tag(tag)
        if normal and normal not in chain:
            chain.append(normal)

    logger.debug("Resolved fallback chain: %s", ",".join(chain))
    return tuple(chain)
