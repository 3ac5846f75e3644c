"""Plugin discovery via setuptools entry points.

Third-party packages can register plugins by declaring entry points in their
``pyproject.toml``::

    [project.entry-points."makephrase.languages"]
    fr = "makephrase_fr:French"

    [project.entry-points."makephrase.stores"]
    redis = "makephrase_redis:RedisStore"

After ``pip install makephrase-fr``, engines whose fallback chain contains
``fr`` pick up the French overrides automatically.

Entry point groups:
    makephrase.languages  - Language subclasses keyed by language tag
    makephrase.stores     - Rule repository classes keyed by store name
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib.metadata import entry_points
from typing import Any

logger = logging.getLogger("makephrase.plugins")

LANGUAGE_GROUP = "makephrase.languages"
STORE_GROUP = "makephrase.stores"

ALL_GROUPS = [LANGUAGE_GROUP, STORE_GROUP]


@dataclass
class PluginInfo:
    """Metadata about a discovered plugin."""

    name: str
    group: str
    module: str
    loaded: bool = False
    error: str = ""
    instance: Any = field(default=None, repr=False)


def discover_plugins(group: str) -> dict[str, Any]:
    """Discover all registered plugins for a given entry point group.

    Args:
        group: Entry point group name (e.g. ``makephrase.stores``).

    Returns:
        Dict mapping plugin name to its loaded class/module.
    """
    plugins = {}
    eps = entry_points(group=group)
    for ep in eps:
        try:
            plugins[ep.name] = ep.load()
            logger.debug("Loaded plugin %s from %s", ep.name, ep.value)
        except Exception as e:
            logger.warning("Failed to load plugin %s: %s", ep.name, e)
    return plugins


def discover_languages() -> dict[str, type]:
    """Discover all registered per-language overrides via entry points."""
    return discover_plugins(LANGUAGE_GROUP)


def discover_stores() -> dict[str, type]:
    """Discover all registered rule repositories via entry points."""
    return discover_plugins(STORE_GROUP)


def list_all_plugins() -> list[PluginInfo]:
    """List all discovered plugins across all groups with load status."""
    results = []
    for group in ALL_GROUPS:
        eps = entry_points(group=group)
        for ep in eps:
            info = PluginInfo(name=ep.name, group=group, module=ep.value)
            try:
                info.instance = ep.load()
                info.loaded = True
            except Exception as e:
                info.error = str(e)
            results.append(info)
    return results
