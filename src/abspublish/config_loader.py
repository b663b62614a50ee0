"""Load PublishConfig from abspublish.yaml, abspublish.toml or regconfig.json.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import json
import os
import re
import tomllib
from pathlib import Path

import yaml

from abspublish._errors import ConfigError
from abspublish.config import PLUGIN_NAME, PublishConfig

_KNOWN_KEYS = (
    "url", "container_name", "credential_mode", "account_name", "account_key",
    "sas_expiry_hour", "options", "pattern", "path_prefix",
)

_CONFIG_FILES = ("abspublish.yaml", "abspublish.yml", "abspublish.toml", "regconfig.json")

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def load_config(
    root: Path,
    config_file: str | Path | None = None,
    **overrides: object,
) -> PublishConfig:
    """Load PublishConfig from root, optionally merging a config file.

    Looks for abspublish.yaml, abspublish.yml, abspublish.toml or a reg-suit
    regconfig.json in root, unless ``config_file`` names one explicitly
    (relative to root). Overrides whose value is ``None`` are ignored so
    that unset CLI flags do not mask file values.
    """
    file_config = _read_config_file(root, config_file)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    unknown = sorted(set(merged) - set(_KNOWN_KEYS))
    if unknown:
        msg = f"Unknown configuration keys: {', '.join(unknown)}"
        raise ConfigError(msg)
    for required in ("url", "container_name"):
        if required not in merged:
            msg = f"Missing required configuration key {required!r}"
            raise ConfigError(msg)
    return PublishConfig(**merged)  # type: ignore[arg-type]


def _read_config_file(root: Path, config_file: str | Path | None) -> dict[str, object]:
    """Read plugin config from the named file or the first one found in root."""
    if config_file is not None:
        path = root / config_file
        if not path.is_file():
            msg = f"Config file not found: {path}"
            raise ConfigError(msg)
        return _read_path(path)
    for name in _CONFIG_FILES:
        path = root / name
        if path.is_file():
            return _read_path(path)
    return {}


def _read_path(path: Path) -> dict[str, object]:
    """Dispatch on the file suffix."""
    if path.suffix in (".yaml", ".yml"):
        return _normalize(_section(_parse_yaml(path), "abspublish"))
    if path.suffix == ".toml":
        return _normalize(_section(_parse_toml(path), "abspublish"))
    if path.suffix == ".json":
        plugins = _parse_json(path).get("plugins")
        if isinstance(plugins, dict) and isinstance(plugins.get(PLUGIN_NAME), dict):
            return _normalize(plugins[PLUGIN_NAME])
        return {}
    msg = f"Unsupported config file type: {path.name}"
    raise ConfigError(msg)


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _require_mapping(data, path)


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _require_mapping(data, path)


def _parse_json(path: Path) -> dict[str, object]:
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _require_mapping(data, path)


def _require_mapping(data: object, path: Path) -> dict[str, object]:
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping at the top level"
        raise ConfigError(msg)
    return data


def _section(data: dict[str, object], name: str) -> dict[str, object]:
    """Return data[name] if it is a table, else the top-level mapping."""
    section = data.get(name)
    if isinstance(section, dict):
        return section
    return data


def _normalize(raw: dict[str, object]) -> dict[str, object]:
    """Convert camelCase keys to snake_case and expand $ENV references.

    ``useDefaultCredential: true`` (the reg-suit spelling) is mapped onto
    ``credential_mode``.
    """
    result: dict[str, object] = {}
    for key, value in raw.items():
        snake = _CAMEL_RE.sub("_", key).lower()
        value = _expand_env(value)
        if snake == "use_default_credential":
            result["credential_mode"] = "delegated" if value else "shared-key"
            continue
        if snake == "sas_expiry_hour" and isinstance(value, str):
            value = _to_hours(value)
        result[snake] = value
    return result


def _to_hours(raw: str) -> float:
    try:
        return float(raw)
    except ValueError as exc:
        msg = f"sas_expiry_hour must be a number, got {raw!r}"
        raise ConfigError(msg) from exc


def _expand_env(value: object) -> object:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    return value
