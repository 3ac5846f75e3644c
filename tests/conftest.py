"""Shared fixtures for makephrase tests."""
import os

import pytest

from makephrase.rules import TranslationRule
from makephrase.stores import MemoryStore


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run every test with an empty HOME, a scratch cwd and no MAKEPHRASE_* variables.

    The CLI exports its options to the environment, so variables set during
    a test are removed afterwards as well.
    """
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    monkeypatch.setenv("COLUMNS", "200")
    for name in list(os.environ):
        if name.startswith("MAKEPHRASE_"):
            monkeypatch.delenv(name)

    from makephrase import ui
    from makephrase.config import reset_config_service
    reset_config_service()
    ui.set_plain_mode(False)

    yield work

    for name in list(os.environ):
        if name.startswith("MAKEPHRASE_"):
            del os.environ[name]
    reset_config_service()
    ui.set_plain_mode(False)


@pytest.fixture
def colour_rules():
    """Rules for the classic "select N colours" example."""
    key = "Please select [_1] colours."
    return [
        TranslationRule(key=key, language="en_AU", translation="Please select a colour.",
                        expression="_1 == 1", priority=1),
        TranslationRule(key=key, language="en_AU", translation="Please select some colours.",
                        expression="_1 > 1"),
        TranslationRule(key=key, language="en", translation="Please select [_1] colors."),
        TranslationRule(key=key, language="fr", translation="Choisissez [_1] couleurs."),
    ]


@pytest.fixture
def colour_store(colour_rules):
    return MemoryStore(colour_rules)


@pytest.fixture
def translation_file(tmp_path):
    """A single-file store source with several languages."""
    path = tmp_path / "translations.txt"
    path.write_text(
        "# colour choices\n"
        "key = Please select [_1] colours.\n"
        "language = en_AU\n"
        "expression = _1 == 1\n"
        "priority = 1\n"
        "translation = Please select a colour.\n"
        "\n"
        "key = Please select [_1] colours.\n"
        "language = en_AU\n"
        "translation = Please select [_1] colours, mate.\n"
        "\n"
        "key = Hello\n"
        "language = fr\n"
        "translation = Bonjour\n"
        "\n"
        "key = Hello\n"
        "language = fr\n"
        "context = Email\n"
        "translation = Madame, Monsieur\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def translation_dir(tmp_path):
    """A directory store source with one file per language."""
    directory = tmp_path / "translations"
    directory.mkdir()
    (directory / "en.mpt").write_text(
        "key = Hello\n"
        "translation = Hi there\n",
        encoding="utf-8",
    )
    (directory / "en_au.mpt").write_text(
        "key = Hello\n"
        "translation = G'day\n"
        "\n"
        "key = [_1] apples\n"
        "expression = _1 == 1\n"
        "translation = one apple\n"
        "\n"
        "key = [_1] apples\n"
        "translation = [_1] apples\n",
        encoding="utf-8",
    )
    (directory / "notes.txt").write_text("not a translation file\n", encoding="utf-8")
    return directory
