"""Load and validate .collapser/config.yaml."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from collapser.entry import KeyPolicy
from collapser.records import OUTPUT_FORMATS


# Default config values
DEFAULTS: dict[str, Any] = {
    "key": {
        "strip_whitespace": True,
        "casefold": False,
        "ignore_kinds": [],
    },
    "output": {
        "format": "yaml",
    },
    "logging": {
        "level": "WARNING",
    },
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when config is invalid or missing."""


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base recursively. Override wins on conflicts."""
    result = base.copy()
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _validate(config: dict) -> None:
    """Validate required fields in config."""
    key = config.get("key")
    if not isinstance(key, dict):
        raise ConfigError("'key' must be a mapping")
    if not isinstance(key.get("ignore_kinds"), list):
        raise ConfigError("'key.ignore_kinds' must be a list")

    output = config.get("output")
    if not isinstance(output, dict):
        raise ConfigError("'output' must be a mapping")
    fmt = output.get("format")
    if fmt not in OUTPUT_FORMATS:
        raise ConfigError(
            f"Unsupported output format '{fmt}'. Built-in: {', '.join(OUTPUT_FORMATS)}."
        )

    logging_cfg = config.get("logging")
    if not isinstance(logging_cfg, dict):
        raise ConfigError("'logging' must be a mapping")
    level = logging_cfg.get("level")
    if str(level).upper() not in LOG_LEVELS:
        raise ConfigError(f"Unknown logging level '{level}'")


def load_config(project_root: Path | None = None) -> dict:
    """Load config from .collapser/config.yaml under project_root.

    Falls back to cwd if project_root is None. Merges with DEFAULTS
    so callers always get a full config dict.
    """
    root = Path(project_root) if project_root else Path.cwd()
    config_path = root / ".collapser" / "config.yaml"

    if not config_path.exists():
        raise ConfigError(f"Config not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping, got {type(raw).__name__}")

    config = _deep_merge(DEFAULTS, raw)
    _validate(config)
    return config


def load_config_or_defaults(project_root: Path | None = None) -> dict:
    """Like :func:`load_config`, but return DEFAULTS when no config file exists."""
    root = Path(project_root) if project_root else Path.cwd()
    if not (root / ".collapser" / "config.yaml").exists():
        return _deep_merge(DEFAULTS, {})
    return load_config(root)


def key_policy_from_config(config: dict) -> KeyPolicy:
    key = config["key"]
    return KeyPolicy(
        strip_whitespace=bool(key["strip_whitespace"]),
        casefold=bool(key["casefold"]),
        ignore_kinds=tuple(key["ignore_kinds"]),
    )


def log_level(config: dict) -> int:
    return getattr(logging, str(config["logging"]["level"]).upper())
