"""Rule store backed by a single translation file."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional, Sequence

from makephrase.errors import RepositoryError
from makephrase.rules import TranslationRule
from makephrase.stores.base import IndexedStore
from makephrase.stores.parser import parse_translation_file

logger = logging.getLogger("makephrase.stores.file")


class FileStore(IndexedStore):
    """All languages in one file; every group names its ``language``.

    The file is re-read when its modification time changes, unless
    ``dont_reload`` is set.
    """

    name = "file"

    def __init__(self, path: str | Path, encoding: str = "utf-8", dont_reload: bool = False):
        super().__init__()
        self.path = Path(path).expanduser()
        self.encoding = encoding
        self.dont_reload = dont_reload
        self._mtime: Optional[float] = None
        self._lock = threading.Lock()
        if not self.path.exists():
            raise RepositoryError(f"No such file: {self.path}", store=self.name)
        self._load()

    def _load(self) -> None:
        if not self.path.is_file():
            raise RepositoryError(
                f"Translation file is not a readable file: {self.path}", store=self.name
            )
        mtime = self.path.stat().st_mtime
        if mtime == self._mtime:
            return
        rules = parse_translation_file(self.path, encoding=self.encoding)
        self._rules = self._index(rules, {})
        self._mtime = mtime
        logger.info("Loaded %d rules from %s", len(rules), self.path)

    def get_rules(
        self, context: Optional[str], key: str, languages: Sequence[str]
    ) -> list[TranslationRule]:
        if not self.dont_reload:
            with self._lock:
                self._load()
        return super().get_rules(context, key, languages)

    def __repr__(self) -> str:
        return f"FileStore(path={str(self.path)!r})"
