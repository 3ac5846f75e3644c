"""Rule store registry and dispatch.

Stores are discovered via setuptools entry points (group ``makephrase.stores``).
Built-in stores (memory, file, directory, sql) are registered in pyproject.toml.
Third-party packages can add stores by declaring their own entry points.
"""
from __future__ import annotations

import logging
from typing import Any

from makephrase.stores.base import BackingStore, IndexedStore, RuleRepository
from makephrase.stores.directory import DirectoryStore
from makephrase.stores.file import FileStore
from makephrase.stores.memory import MemoryStore
from makephrase.stores.parser import parse_translation_file, parse_translation_text

logger = logging.getLogger("makephrase.stores")

# Registry of available stores (lazy-loaded via entry points)
STORES: dict[str, type] = {}


def _register_defaults():
    """Discover and register stores via entry points.

    Falls back to direct imports if entry points are not available
    (e.g. running from source without pip install -e).
    """
    if STORES:
        return

    from makephrase.plugins import discover_stores
    discovered = discover_stores()

    if discovered:
        STORES.update(discovered)
        logger.debug("Discovered %d stores via entry points: %s",
                     len(discovered), list(discovered.keys()))
    else:
        logger.debug("No entry points found, falling back to direct imports")
        from .sql import SQLStore
        STORES.update({
            "memory": MemoryStore,
            "file": FileStore,
            "directory": DirectoryStore,
            "sql": SQLStore,
        })


def get_store(name: str, **options: Any) -> RuleRepository:
    """Construct a store by registry name.

    Args:
        name: Store name (``memory``, ``file``, ``directory``, ``sql`` or a plugin).
        **options: Keyword arguments for the store's constructor.

    Raises:
        ConfigError: If the name is unknown or the options don't fit the store.
    """
    from makephrase.errors import ConfigError

    _register_defaults()
    if name not in STORES:
        available = ", ".join(sorted(STORES.keys()))
        raise ConfigError(
            f"Unknown store '{name}'. Available: {available}",
            context={"store": name},
        )
    try:
        return STORES[name](**options)
    except TypeError as e:
        raise ConfigError(f"Invalid options for store '{name}': {e}", context={"store": name}) from e


def get_store_names() -> list[str]:
    """Get all registered store names (for completions and validation)."""
    _register_defaults()
    return sorted(STORES.keys())


__all__ = [
    "BackingStore",
    "DirectoryStore",
    "FileStore",
    "IndexedStore",
    "MemoryStore",
    "RuleRepository",
    "get_store",
    "get_store_names",
    "parse_translation_file",
    "parse_translation_text",
]
