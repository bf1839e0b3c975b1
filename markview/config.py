"""Load and validate ~/.markview.cfg plus MARKVIEW_* environment overrides."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .grammar import DEFAULT_EXTENSIONS, EXTENSIONS, ParserConfig, build_config
from .transforms import PREVIEW_PLUGINS

CONFIG_FILE_NAME = ".markview.cfg"
THEMES = ("light", "dark")


class ConfigError(Exception):
    """Raised when the config file or an override is invalid."""


@dataclass(frozen=True)
class Settings:
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    preview_plugins: tuple[str, ...] = ()
    theme: str = "light"
    graph_iterations: int = 100
    graph_width: float = 800.0
    graph_height: float = 600.0
    source: Path | None = field(default=None, compare=False)

    def parser_config(self) -> ParserConfig:
        return build_config(self.extensions)


def _config_file_path(environ: Mapping[str, str]) -> Path:
    override = environ.get("MARKVIEW_CONFIG", "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_FILE_NAME


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        raw = path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a JSON object, got {type(data).__name__}")
    return data


def _name_list(key: str, value: Any, allowed: Mapping[str, Any]) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{key}' must be a list of strings")
    unknown = [item for item in value if item not in allowed]
    if unknown:
        raise ConfigError(f"'{key}' has unknown entries {unknown}; known: {sorted(allowed)}")
    return tuple(dict.fromkeys(value))


def _positive(key: str, value: Any, kind: type) -> Any:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{key}' must be a number")
    if kind is int and not float(value).is_integer():
        raise ConfigError(f"'{key}' must be an integer")
    if value <= 0:
        raise ConfigError(f"'{key}' must be greater than zero")
    return kind(value)


def _validate(data: dict[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if "extensions" in data:
        values["extensions"] = _name_list("extensions", data["extensions"], EXTENSIONS)
    if "preview_plugins" in data:
        values["preview_plugins"] = _name_list("preview_plugins", data["preview_plugins"], PREVIEW_PLUGINS)
    if "theme" in data:
        if data["theme"] not in THEMES:
            raise ConfigError(f"'theme' must be one of {list(THEMES)}, got {data['theme']!r}")
        values["theme"] = data["theme"]
    if "graph_iterations" in data:
        values["graph_iterations"] = _positive("graph_iterations", data["graph_iterations"], int)
    for key in ("graph_width", "graph_height"):
        if key in data:
            values[key] = _positive(key, data[key], float)
    return values


def load_settings(path: Path | str | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Settings from the config file, then environment overrides, over the defaults.

    A missing file means defaults. An unreadable file, invalid JSON or an
    invalid value raises ``ConfigError``.
    """
    env = os.environ if environ is None else environ
    cfg_path = Path(path).expanduser() if path is not None else _config_file_path(env)
    data = _read_file(cfg_path)

    if "MARKVIEW_EXTENSIONS" in env:
        raw = env["MARKVIEW_EXTENSIONS"]
        data["extensions"] = [name.strip() for name in raw.split(",") if name.strip()]
    theme = env.get("MARKVIEW_THEME", "").strip()
    if theme:
        data["theme"] = theme

    return Settings(source=cfg_path, **_validate(data))
