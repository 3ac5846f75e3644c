"""Layered configuration service for makephrase.

Priority (highest to lowest):
1. CLI flags (--language, --store, ...), exported to the environment first
2. Environment variables (MAKEPHRASE_*)
3. Project config (.makephrase.toml in current directory)
4. Global config (~/.config/makephrase/config.toml)
5. Built-in defaults
"""
from __future__ import annotations

import copy
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomli_w

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger("makephrase.config")


# Default configuration values
DEFAULTS: dict[str, Any] = {
    "engine": {
        "languages": ["en"],
        "fallback_language": "en",
        "numeric_format": "comma",
        "panic_language_lookup": False,
        "die_on_bad_args": False,
        "show_bad_args": False,
        "encoding": "utf-8",
        "malformed_character_mode": "escape",
    },
    "store": {
        "type": "memory",
        "path": "",
        "encoding": "utf-8",
        "dont_reload": False,
        "url": "",
        "table": "",
        "where": "",
    },
}

# Mapping of env vars to config paths
ENV_VAR_MAP = {
    "MAKEPHRASE_LANGUAGES": "engine.languages",
    "MAKEPHRASE_FALLBACK_LANGUAGE": "engine.fallback_language",
    "MAKEPHRASE_NUMERIC_FORMAT": "engine.numeric_format",
    "MAKEPHRASE_PANIC": "engine.panic_language_lookup",
    "MAKEPHRASE_STRICT": "engine.die_on_bad_args",
    "MAKEPHRASE_SHOW_BAD_ARGS": "engine.show_bad_args",
    "MAKEPHRASE_ENCODING": "engine.encoding",
    "MAKEPHRASE_STORE": "store.type",
    "MAKEPHRASE_STORE_PATH": "store.path",
    "MAKEPHRASE_DATABASE_URL": "store.url",
    "MAKEPHRASE_TABLE": "store.table",
}

# Config paths whose env values are booleans
BOOLEAN_KEYS = {
    "engine.panic_language_lookup",
    "engine.die_on_bad_args",
    "engine.show_bad_args",
    "store.dont_reload",
}


def _global_config_dir() -> Path:
    """Return the global config directory: ~/.config/makephrase/."""
    return Path.home() / ".config" / "makephrase"


def _global_config_path() -> Path:
    """Return the global config file path."""
    return _global_config_dir() / "config.toml"


def _project_config_path() -> Path:
    """Return the project config file path (.makephrase.toml in cwd)."""
    return Path.cwd() / ".makephrase.toml"


def _read_toml(path: Path) -> dict:
    """Read a TOML file, returning empty dict if missing or unreadable."""
    if not path.is_file():
        return {}
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Failed to read %s: %s", path, e)
        return {}


def _write_toml(data: dict, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        tomli_w.dump(data, f)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base (override wins)."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _get_nested(data: dict, dotted_key: str, default: Any = None) -> Any:
    """Get a value from a nested dict using dotted key notation."""
    keys = dotted_key.split(".")
    current = data
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def _set_nested(data: dict, dotted_key: str, value: Any) -> None:
    """Set a value in a nested dict using dotted key notation."""
    keys = dotted_key.split(".")
    current = data
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def parse_value(raw: str) -> Any:
    """Convert a string from the CLI or environment into a config value."""
    if raw.lower() in ("true", "yes", "1"):
        return True
    if raw.lower() in ("false", "no", "0"):
        return False
    try:
        return int(raw)
    except ValueError:
        return raw


@dataclass
class ResolvedConfig:
    """Fully resolved configuration after merging all layers."""
    data: dict = field(default_factory=dict)
    global_config_path: Optional[Path] = None
    project_config_path: Optional[Path] = None

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """Get a config value using dotted key notation."""
        return _get_nested(self.data, dotted_key, default)


class ConfigService:
    """Layered configuration service.

    Resolves config from multiple sources with clear precedence:
    1. Environment variables (MAKEPHRASE_*)
    2. Project config (.makephrase.toml)
    3. Global config (~/.config/makephrase/config.toml)
    4. Built-in defaults
    """

    def __init__(self):
        self._resolved: Optional[ResolvedConfig] = None

    def resolve(self, force: bool = False) -> ResolvedConfig:
        """Resolve the full config from all layers."""
        if self._resolved is not None and not force:
            return self._resolved

        merged = copy.deepcopy(DEFAULTS)

        global_path = _global_config_path()
        global_data = _read_toml(global_path)
        if global_data:
            merged = _deep_merge(merged, global_data)
            logger.debug("Loaded global config from %s", global_path)

        project_path = _project_config_path()
        project_data = _read_toml(project_path)
        if project_data:
            merged = _deep_merge(merged, project_data)
            logger.debug("Loaded project config from %s", project_path)

        for env_var, config_path in ENV_VAR_MAP.items():
            env_value = os.environ.get(env_var)
            if env_value is None:
                continue
            if config_path in BOOLEAN_KEYS:
                _set_nested(merged, config_path, parse_value(env_value) is True)
            elif config_path == "engine.languages":
                _set_nested(merged, config_path, [v.strip() for v in env_value.split(",") if v.strip()])
            else:
                _set_nested(merged, config_path, env_value)

        self._resolved = ResolvedConfig(
            data=merged,
            global_config_path=global_path if global_path.is_file() else None,
            project_config_path=project_path if project_path.is_file() else None,
        )
        return self._resolved

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """Get a resolved config value."""
        return self.resolve().get(dotted_key, default)

    def set_global(self, dotted_key: str, value: Any) -> None:
        """Set a value in the global config file."""
        path = _global_config_path()
        data = _read_toml(path)
        _set_nested(data, dotted_key, value)
        _write_toml(data, path)
        # Invalidate cache
        self._resolved = None
        logger.info("Set %s = %s in %s", dotted_key, value, path)

    def init_project_config(self) -> Path:
        """Create a .makephrase.toml in the current directory with defaults."""
        path = _project_config_path()
        if path.exists():
            raise FileExistsError(f"Project config already exists: {path}")

        data = {
            "engine": {
                "languages": ["en"],
                "numeric_format": "comma",
            },
            "store": {
                "type": "directory",
                "path": "./translations",
            },
        }
        _write_toml(data, path)
        logger.info("Created project config: %s", path)
        return path

    def show(self) -> dict:
        """Return the resolved config and where it came from."""
        resolved = self.resolve(force=True)
        return {
            "resolved": resolved.data,
            "sources": {
                "global_config": str(resolved.global_config_path) if resolved.global_config_path else None,
                "project_config": str(resolved.project_config_path) if resolved.project_config_path else None,
            },
        }

    def config_paths(self) -> dict[str, str]:
        """Return all config file locations and their existence status."""
        global_path = _global_config_path()
        project_path = _project_config_path()
        return {
            "global_config": f"{global_path} ({'exists' if global_path.is_file() else 'not found'})",
            "project_config": f"{project_path} ({'exists' if project_path.is_file() else 'not found'})",
        }


# Module-level singleton
_config_service: Optional[ConfigService] = None


def get_config_service() -> ConfigService:
    """Get or create the global ConfigService instance."""
    global _config_service
    if _config_service is None:
        _config_service = ConfigService()
    return _config_service


def reset_config_service() -> None:
    """Reset the global config service (useful for testing)."""
    global _config_service
    _config_service = None
