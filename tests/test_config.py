"""Tests for the layered configuration service."""
from pathlib import Path

import pytest

from makephrase.config import (
    DEFAULTS,
    ConfigService,
    _deep_merge,
    _get_nested,
    _read_toml,
    _set_nested,
    _write_toml,
    get_config_service,
    parse_value,
    reset_config_service,
)

# ─── Helper utilities ───


class TestDeepMerge:
    def test_simple_merge(self):
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4}) == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        base = {"engine": {"languages": ["en"], "encoding": "utf-8"}}
        override = {"engine": {"languages": ["fr"]}}
        result = _deep_merge(base, override)
        assert result["engine"] == {"languages": ["fr"], "encoding": "utf-8"}

    def test_override_replaces_non_dict(self):
        assert _deep_merge({"a": {"nested": 1}}, {"a": "flat"})["a"] == "flat"

    def test_does_not_mutate_base(self):
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert "b" not in base


class TestGetSetNested:
    def test_get_dotted(self):
        assert _get_nested({"store": {"type": "file"}}, "store.type") == "file"

    def test_get_missing_returns_default(self):
        assert _get_nested({"a": 1}, "b.c", "fallback") == "fallback"

    def test_get_through_non_dict(self):
        assert _get_nested({"a": 1}, "a.b", "x") == "x"

    def test_set_dotted_creates_intermediates(self):
        data = {}
        _set_nested(data, "engine.numeric_format", "dot")
        assert data == {"engine": {"numeric_format": "dot"}}


class TestParseValue:
    @pytest.mark.parametrize("raw,expected", [
        ("true", True), ("Yes", True), ("1", True),
        ("false", False), ("no", False), ("0", False),
        ("42", 42), ("comma", "comma"),
    ])
    def test_values(self, raw, expected):
        assert parse_value(raw) == expected


class TestTomlIO:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "sub" / "config.toml"
        _write_toml({"engine": {"languages": ["fr", "de"]}}, path)
        assert _read_toml(path) == {"engine": {"languages": ["fr", "de"]}}

    def test_missing_file(self, tmp_path):
        assert _read_toml(tmp_path / "nope.toml") == {}

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("engine = [", encoding="utf-8")
        assert _read_toml(path) == {}


# ─── Layer resolution ───


class TestResolve:
    def test_defaults(self):
        config = ConfigService().resolve()
        assert config.data == DEFAULTS
        assert config.global_config_path is None
        assert config.project_config_path is None

    def test_defaults_not_shared(self):
        config = ConfigService().resolve()
        config.data["engine"]["languages"].append("fr")
        assert DEFAULTS["engine"]["languages"] == ["en"]

    def test_global_config(self):
        _write_toml({"engine": {"numeric_format": "dot"}},
                    Path.home() / ".config" / "makephrase" / "config.toml")
        config = ConfigService().resolve()
        assert config.get("engine.numeric_format") == "dot"
        assert config.get("engine.encoding") == "utf-8"
        assert config.global_config_path is not None

    def test_project_overrides_global(self):
        _write_toml({"engine": {"numeric_format": "dot"}},
                    Path.home() / ".config" / "makephrase" / "config.toml")
        _write_toml({"engine": {"numeric_format": "none"}}, Path.cwd() / ".makephrase.toml")
        assert ConfigService().get("engine.numeric_format") == "none"

    def test_env_overrides_files(self, monkeypatch):
        _write_toml({"engine": {"numeric_format": "none"}}, Path.cwd() / ".makephrase.toml")
        monkeypatch.setenv("MAKEPHRASE_NUMERIC_FORMAT", "dot")
        assert ConfigService().get("engine.numeric_format") == "dot"

    def test_env_languages_list(self, monkeypatch):
        monkeypatch.setenv("MAKEPHRASE_LANGUAGES", "en_AU, fr")
        assert ConfigService().get("engine.languages") == ["en_AU", "fr"]

    def test_env_booleans(self, monkeypatch):
        monkeypatch.setenv("MAKEPHRASE_PANIC", "yes")
        monkeypatch.setenv("MAKEPHRASE_STRICT", "0")
        service = ConfigService()
        assert service.get("engine.panic_language_lookup") is True
        assert service.get("engine.die_on_bad_args") is False

    def test_env_store(self, monkeypatch):
        monkeypatch.setenv("MAKEPHRASE_STORE", "sql")
        monkeypatch.setenv("MAKEPHRASE_DATABASE_URL", "sqlite:///rules.db")
        monkeypatch.setenv("MAKEPHRASE_TABLE", "translations")
        service = ConfigService()
        assert service.get("store.type") == "sql"
        assert service.get("store.url") == "sqlite:///rules.db"
        assert service.get("store.table") == "translations"

    def test_resolve_is_cached(self, monkeypatch):
        service = ConfigService()
        service.resolve()
        monkeypatch.setenv("MAKEPHRASE_STORE", "file")
        assert service.get("store.type") == "memory"
        assert service.resolve(force=True).get("store.type") == "file"


class TestWrites:
    def test_set_global(self):
        service = ConfigService()
        service.set_global("engine.numeric_format", "dot")
        assert service.get("engine.numeric_format") == "dot"
        saved = _read_toml(Path.home() / ".config" / "makephrase" / "config.toml")
        assert saved == {"engine": {"numeric_format": "dot"}}

    def test_init_project_config(self):
        path = ConfigService().init_project_config()
        assert path == Path.cwd() / ".makephrase.toml"
        assert _read_toml(path)["store"]["type"] == "directory"

    def test_init_project_config_twice(self):
        service = ConfigService()
        service.init_project_config()
        with pytest.raises(FileExistsError):
            service.init_project_config()

    def test_show_and_paths(self):
        _write_toml({"store": {"type": "file"}}, Path.cwd() / ".makephrase.toml")
        service = ConfigService()
        info = service.show()
        assert info["resolved"]["store"]["type"] == "file"
        assert info["sources"]["global_config"] is None
        assert info["sources"]["project_config"].endswith(".makephrase.toml")
        paths = service.config_paths()
        assert paths["project_config"].endswith("(exists)")
        assert paths["global_config"].endswith("(not found)")


class TestSingleton:
    def test_same_instance(self):
        assert get_config_service() is get_config_service()

    def test_reset(self):
        first = get_config_service()
        reset_config_service()
        assert get_config_service() is not first
