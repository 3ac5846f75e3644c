"""Shared UI theme, console, and display helpers for the makephrase CLI."""

from rich.console import Console
from rich.theme import Theme

# ── Output Mode State ──
_plain_mode: bool = False


def set_plain_mode(enabled: bool = True) -> None:
    """Enable or disable plain text output (no colors, no markup highlighting)."""
    global _plain_mode, console
    _plain_mode = enabled
    if enabled:
        console = Console(theme=MAKEPHRASE_THEME, no_color=True, highlight=False)
    else:
        console = Console(theme=MAKEPHRASE_THEME)


def is_plain() -> bool:
    """Check if plain output mode is active."""
    return _plain_mode


# ── Theme ──
MAKEPHRASE_THEME = Theme({
    "info": "cyan",
    "success": "bold green",
    "warning": "yellow",
    "error": "bold red",
    "lang": "bold blue",
    "match": "green",
    "nomatch": "dim",
    "muted": "dim",
})

console = Console(theme=MAKEPHRASE_THEME)

# ── Status Icons ──
ICONS = {
    "match": "[green]✔[/green]",          # checkmark
    "nomatch": "[dim]○[/dim]",            # empty circle
    "winner": "[cyan]▶[/cyan]",           # play triangle
    "error": "[red]✘[/red]",              # cross
}

# ASCII equivalents for plain mode
PLAIN_ICONS = {
    "match": "[OK]",
    "nomatch": "[ ]",
    "winner": "[>>]",
    "error": "[X]",
}


def icon(name: str) -> str:
    """Return the icon for *name*, honouring plain mode."""
    return (PLAIN_ICONS if _plain_mode else ICONS).get(name, "")
