"""Configuration manager for CodeMap using TOML files."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from . import config

logger = logging.getLogger(__name__)

ENGINE_SECTION = "engine"
ENGINE_KEYS = ("jar_path", "java_home", "default_depth", "timeout")


@dataclass(frozen=True)
class EngineConfig:
    """Engine settings after merging the TOML file with the environment."""

    jar_path: Optional[Path] = None
    java_home: Optional[Path] = None
    default_depth: int = config.DEFAULT_DEPTH
    timeout: Optional[float] = None


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    config_file = config.CONFIG_FILE
    if not config_file.exists():
        return {}
    try:
        with open(config_file, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_file, exc)
        return {}


def _save_full_config(data: Dict[str, Any]) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    config.ensure_base_dirs()
    try:
        with open(config.CONFIG_FILE, "w") as f:
            toml.dump(data, f)
        return True
    except OSError as exc:
        logger.error("Could not write config %s: %s", config.CONFIG_FILE, exc)
        return False


def _positive_int(value: Any, key: str, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s=%r in config; using %d", key, value, default)
        return default
    if number < 1:
        logger.warning("Invalid %s=%r in config; using %d", key, value, default)
        return default
    return number


def load_engine_config() -> EngineConfig:
    """Load the ``[engine]`` section, applying environment overrides.

    ``CODEMAP_JAR`` overrides ``jar_path``; ``JAVA_HOME`` is only used when
    ``java_home`` is not configured.
    """
    section = load_full_config().get(ENGINE_SECTION, {})

    jar = os.environ.get("CODEMAP_JAR") or section.get("jar_path")
    java_home = section.get("java_home") or os.environ.get("JAVA_HOME")
    depth = _positive_int(section.get("default_depth", config.DEFAULT_DEPTH), "default_depth", config.DEFAULT_DEPTH)

    timeout = section.get("timeout")
    if timeout is not None:
        try:
            timeout = float(timeout)
        except (TypeError, ValueError):
            logger.warning("Invalid timeout=%r in config; running without a timeout", timeout)
            timeout = None
        else:
            if timeout <= 0:
                timeout = None

    return EngineConfig(
        jar_path=Path(jar).expanduser() if jar else None,
        java_home=Path(java_home).expanduser() if java_home else None,
        default_depth=depth,
        timeout=timeout,
    )


def save_engine_config(**values: Any) -> bool:
    """Update keys of the ``[engine]`` section, preserving other sections.

    A value of ``None`` removes the key.
    """
    unknown = set(values) - set(ENGINE_KEYS)
    if unknown:
        raise KeyError(f"Unknown engine setting(s): {', '.join(sorted(unknown))}")

    data = load_full_config()
    section = dict(data.get(ENGINE_SECTION, {}))
    for key, value in values.items():
        if value is None:
            section.pop(key, None)
        else:
            section[key] = value
    data[ENGINE_SECTION] = section
    return _save_full_config(data)
