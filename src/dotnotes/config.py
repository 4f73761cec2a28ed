"""Runtime configuration for dotnotes.

Reads settings from CLI args, environment variables, .env files, and
YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    DOTNOTES_HOME: Home directory dotfiles live under (default: ``~``)
    DOTNOTES_ROOT_TAG: Namespace root tag (default: ``dotfiles``)
    DOTNOTES_STORE: Path of the JSON note store
    DOTNOTES_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .config_loader import load_hierarchical_config
from .config_schema import DEFAULT_ROOT_TAG, build_config, to_legacy_config
from .errors import InvalidArgument
from .logger import setup_logging

logger = logging.getLogger(__name__)


@dataclass
class Config:
    home: str
    root_tag: str = DEFAULT_ROOT_TAG
    store_path: str = ""
    exclude: list[str] = field(default_factory=list)
    debug: bool = False


def default_store_path() -> str:
    return str(Path.home() / ".local" / "share" / "dotnotes" / "store.json")


def validate_config(config: Config) -> None:
    """Validate configuration values.

    Normalises ``home`` to an absolute path without a trailing separator.

    Raises:
        InvalidArgument: If home is empty or the root tag is malformed.
    """
    config.home = config.home.strip()
    if not config.home:
        raise InvalidArgument(
            "Home directory cannot be empty. Set DOTNOTES_HOME environment variable."
        )
    config.home = str(Path(config.home).expanduser().resolve())

    if not config.root_tag or "." in config.root_tag:
        raise InvalidArgument(
            f"Invalid root tag '{config.root_tag}': must be a non-empty name without dots"
        )

    if not config.store_path:
        raise InvalidArgument("Store path cannot be empty.")


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    home: str | None = None,
    root_tag: str | None = None,
    store_path: str | None = None,
    exclude: list[str] | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        home: Override home directory.
        root_tag: Override namespace root tag.
        store_path: Override note store location.
        exclude: Paths skipped by sync (replaces configured list).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Dict of values from the YAML ``dotnotes`` section.

    Returns:
        Validated Config instance.
    """
    fb = yaml_fallbacks or {}

    final_home = (
        home
        or os.getenv("DOTNOTES_HOME")
        or fb.get("home")
        or str(Path.home())
    )
    final_root = (
        root_tag
        or os.getenv("DOTNOTES_ROOT_TAG")
        or fb.get("root_tag")
        or DEFAULT_ROOT_TAG
    )
    final_store = (
        store_path
        or os.getenv("DOTNOTES_STORE")
        or fb.get("store_path")
        or default_store_path()
    )
    final_exclude = list(exclude if exclude is not None else fb.get("exclude", []))

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("DOTNOTES_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    config = Config(
        home=final_home,
        root_tag=final_root,
        store_path=final_store,
        exclude=final_exclude,
        debug=final_debug,
    )

    validate_config(config)

    return config


def load_settings(
    cli_overrides: dict | None = None, configure_logging: bool = True
) -> Config:
    """Load ``.env``, discovered YAML files and overrides into a ``Config``.

    Args:
        cli_overrides: Optional dict with keys home, root_tag, store_path,
            exclude, debug.
        configure_logging: Also run ``setup_logging()`` with the YAML
            ``logging`` section.
    """
    load_dotenv()
    unified = build_config(load_hierarchical_config())
    overrides = cli_overrides or {}
    fallbacks = to_legacy_config(unified)
    config = load_config(
        home=overrides.get("home"),
        root_tag=overrides.get("root_tag"),
        store_path=overrides.get("store_path"),
        exclude=overrides.get("exclude"),
        debug=overrides.get("debug", False),
        yaml_fallbacks={
            "home": unified.dotnotes.home,
            "root_tag": fallbacks.root_tag,
            "store_path": unified.dotnotes.store_path,
            "exclude": fallbacks.exclude,
            "debug": fallbacks.debug,
        },
    )
    if configure_logging:
        setup_logging(
            debug=config.debug,
            log_file=unified.logging.file,
            level=unified.logging.level,
        )
    return config
