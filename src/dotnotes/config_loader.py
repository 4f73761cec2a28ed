"""
Hierarchical configuration loader for dotnotes.

Finds YAML config files by convention, merges them so that the more
specific file wins per top-level section, then expands ``${VAR}``
references against the environment.

Usage:
    from dotnotes.config_loader import load_hierarchical_config

    config = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Iterator

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DOTNOTES_CONFIG"

# ${VAR} or ${VAR:-default}
_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` / ``${VAR:-default}`` references in *value*.

    An unset or empty variable expands to its default, or to ``""`` when
    there is none.  An unterminated ``${`` is kept as written.
    """
    return _ENV_REF.sub(
        lambda m: os.environ.get(m.group(1)) or m.group(2) or "", value
    )


def _interpolate_recursive(obj: Any) -> Any:
    """Apply ``interpolate_env_vars`` to every string inside *obj*."""
    if isinstance(obj, dict):
        return {key: _interpolate_recursive(val) for key, val in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(val) for val in obj]
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    return obj


def _candidates() -> Iterator[Path]:
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        yield Path(explicit).expanduser().resolve()
    yield Path.cwd() / ".dotnotes" / "config.yml"
    yield Path.home() / ".config" / "dotnotes" / "config.yml"


def discover_config_files() -> list[Path]:
    """Return the config files that exist, most specific first.

    Looked up in this order:
        1. the file named by ``DOTNOTES_CONFIG``
        2. ``./.dotnotes/config.yml`` (per working directory)
        3. ``~/.config/dotnotes/config.yml`` (per user)
    """
    return [path for path in _candidates() if path.exists()]


def _read_yaml(path: Path) -> dict[str, Any]:
    logger.debug("Loading config: %s", path)
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.exception("Failed to load config file %s", path)
        raise

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring config file %s: top level is a %s, not a mapping",
            path,
            type(data).__name__,
        )
        return {}
    return data


def load_hierarchical_config() -> dict[str, Any]:
    """Merge every discovered config file into one dict.

    Top-level sections from a more specific file replace the same section
    from a less specific one wholesale.  Returns ``{}`` when there is no
    config file at all.
    """
    paths = discover_config_files()
    if not paths:
        logger.debug("No config files found, running zero-config")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        merged.update(_read_yaml(path))
    return _interpolate_recursive(merged)
