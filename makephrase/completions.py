"""Shell completion functions for the makephrase CLI."""
from __future__ import annotations


def complete_store_name(incomplete: str) -> list[str]:
    """Complete registered store names."""
    from makephrase.stores import get_store_names
    return [n for n in get_store_names() if n.startswith(incomplete)]


def complete_numeric_format(incomplete: str) -> list[str]:
    """Complete numeric format names."""
    return [f for f in ["none", "comma", "dot"] if f.startswith(incomplete.lower())]


def complete_dump_format(incomplete: str) -> list[str]:
    """Complete output format names for ``dump``."""
    return [f for f in ["yaml", "table"] if f.startswith(incomplete)]
