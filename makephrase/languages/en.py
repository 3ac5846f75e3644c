"""English language handling."""
from __future__ import annotations

from makephrase.languages import Language


class English(Language):
    """Keyboard input handling for English: ``y``/``Y`` means yes."""

    capabilities = frozenset({"y_or_n"})

    def y_or_n(self, keypress: str) -> bool:
        return (keypress or "")[:1].lower() == "y"
