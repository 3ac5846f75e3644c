"""Rule store backed by a directory of per-language translation files.

Each language lives in ``<directory>/<language>.mpt``, e.g. ``en_au.mpt``.
Groups in these files may omit ``language``.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from makephrase.errors import RepositoryError
from makephrase.langtags import is_language_tag, normalize_tag
from makephrase.rules import TranslationRule
from makephrase.stores.base import IndexedStore
from makephrase.stores.parser import parse_translation_file

logger = logging.getLogger("makephrase.stores.directory")

FILE_EXTENSION = ".mpt"


@dataclass
class _LoadedFile:
    path: Path
    mtime: float


class DirectoryStore(IndexedStore):
    """One translation file per language.

    Files present at construction are loaded eagerly. On lookup, files for
    the requested languages are reloaded when changed and picked up when new,
    unless ``dont_reload`` is set.
    """

    name = "directory"

    def __init__(self, directory: str | Path, encoding: str = "utf-8", dont_reload: bool = False):
        super().__init__()
        self.directory = Path(directory).expanduser()
        self.encoding = encoding
        self.dont_reload = dont_reload
        self._loaded: dict[str, _LoadedFile] = {}
        self._lock = threading.Lock()
        if not self.directory.is_dir():
            raise RepositoryError(f"No such directory: {self.directory}", store=self.name)
        self._load_all()

    def _load_all(self) -> None:
        for path in sorted(self.directory.glob(f"*{FILE_EXTENSION}")):
            if not path.is_file():
                continue
            language = path.name[: -len(FILE_EXTENSION)]
            if not is_language_tag(language):
                logger.debug("Skipping %s: not a language tag", path.name)
                continue
            self._load_language(normalize_tag(language), path)

    def _language_file(self, language: str) -> Optional[Path]:
        path = self.directory / f"{language}{FILE_EXTENSION}"
        return path if path.is_file() else None

    def _load_language(self, language: str, path: Path) -> None:
        mtime = path.stat().st_mtime
        rules = parse_translation_file(path, encoding=self.encoding, language=language)
        by_key = self._index(rules, {}).get(language, {})
        # the top-level mapping is replaced in a single assignment
        self._rules = {**self._rules, language: by_key}
        self._loaded[language] = _LoadedFile(path, mtime)
        logger.info("Loaded %d rules for %s from %s", len(rules), language, path)

    def _refresh(self, languages: Sequence[str]) -> None:
        for language in languages:
            loaded = self._loaded.get(language)
            if loaded is not None:
                try:
                    mtime = loaded.path.stat().st_mtime
                except OSError:
                    logger.warning("Translation file disappeared: %s", loaded.path)
                    continue
                if mtime == loaded.mtime:
                    continue
                self._load_language(language, loaded.path)
                continue
            path = self._language_file(language)
            if path is not None:
                self._load_language(language, path)

    def get_rules(
        self, context: Optional[str], key: str, languages: Sequence[str]
    ) -> list[TranslationRule]:
        if not self.dont_reload:
            with self._lock:
                self._refresh(languages)
        return super().get_rules(context, key, languages)

    @property
    def languages(self) -> list[str]:
        """Languages with a loaded file."""
        return sorted(self._loaded)

    def __repr__(self) -> str:
        return f"DirectoryStore(directory={str(self.directory)!r})"
