"""Unified configuration schema for dotnotes.

Defines Pydantic models for the unified config structure with dedicated
sections for the dotfile namespace and logging, plus an adapter to the
flat ``Config`` dataclass the engine is built from.

Usage:
    from dotnotes.config_schema import build_config, to_legacy_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = to_legacy_config(unified, cli_overrides={"home": "/home/me"})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)

DEFAULT_ROOT_TAG = "dotfiles"


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class DotnotesConfig(BaseModel):
    """Dotfile tracking settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    home: str | None = Field(
        default=None, description="Home directory dotfiles live under"
    )
    root_tag: str = Field(
        default=DEFAULT_ROOT_TAG,
        description="Namespace root every tracked tag lives under",
    )
    store_path: str | None = Field(
        default=None, description="Path of the JSON note store"
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Paths skipped by sync",
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}

    @field_validator("root_tag")
    @classmethod
    def _root_tag_is_single_segment(cls, value: str) -> str:
        if not value or "." in value:
            raise ValueError(
                "root_tag must be a non-empty name without dots"
            )
        return value


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    dotnotes: DotnotesConfig = Field(default_factory=DotnotesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_legacy_config(
    unified: UnifiedConfig,
    cli_overrides: dict | None = None,
) -> Config:
    """Convert a ``UnifiedConfig`` into the ``Config`` dataclass,
    applying CLI overrides on top.

    Precedence: CLI override > unified config value > default.

    CLI overrides dict keys: home, root_tag, store_path, exclude, debug.

    Returns:
        ``Config`` instance (NOT validated; run ``validate_config()``).
    """
    # Import here to avoid circular imports (config.py imports config_schema)
    from .config import Config, default_store_path

    overrides = cli_overrides or {}
    section = unified.dotnotes

    return Config(
        home=overrides.get("home") or section.home or "",
        root_tag=overrides.get("root_tag") or section.root_tag,
        store_path=overrides.get("store_path")
        or section.store_path
        or default_store_path(),
        exclude=list(overrides.get("exclude") or section.exclude),
        debug=overrides.get("debug", False) or section.debug,
    )
