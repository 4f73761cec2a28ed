"""Tests for the unified config schema and adapter functions.

Tests the Pydantic models in config_schema.py (UnifiedConfig,
DotnotesConfig, LoggingConfig), the build_config() factory, and the
to_legacy_config() adapter.
"""

import pytest
from pydantic import ValidationError

from dotnotes.config import default_store_path
from dotnotes.config_schema import (
    DotnotesConfig,
    LoggingConfig,
    UnifiedConfig,
    build_config,
    to_legacy_config,
)

# ---------------------------------------------------------------------------
# UnifiedConfig tests
# ---------------------------------------------------------------------------


class TestUnifiedConfig:
    """Tests for the top-level UnifiedConfig model."""

    def test_empty_dict_produces_valid_defaults(self):
        config = UnifiedConfig()
        assert config.dotnotes.home is None
        assert config.dotnotes.root_tag == "dotfiles"
        assert config.dotnotes.exclude == []
        assert config.logging.level == "INFO"
        assert config.logging.file is None

    def test_full_config_with_all_sections(self):
        config = UnifiedConfig(
            dotnotes={
                "home": "/home/me",
                "root_tag": "dots",
                "store_path": "/data/s.json",
                "exclude": [".cache"],
                "debug": True,
            },
            logging={"level": "DEBUG", "file": "/tmp/dotnotes.log"},
        )
        assert config.dotnotes.home == "/home/me"
        assert config.dotnotes.store_path == "/data/s.json"
        assert config.logging.file == "/tmp/dotnotes.log"

    def test_unknown_sections_ignored(self):
        config = UnifiedConfig(**{"unknown": {"x": 1}})
        assert not hasattr(config, "unknown")

    def test_frozen_model_prevents_mutation(self):
        config = UnifiedConfig()
        with pytest.raises(ValidationError):
            config.logging = LoggingConfig(level="DEBUG")


class TestDotnotesConfig:
    def test_dotted_root_tag_rejected(self):
        with pytest.raises(ValidationError, match="without dots"):
            DotnotesConfig(root_tag="dot.files")

    def test_empty_root_tag_rejected(self):
        with pytest.raises(ValidationError):
            DotnotesConfig(root_tag="")

    def test_frozen_model(self):
        section = DotnotesConfig()
        with pytest.raises(ValidationError):
            section.debug = True


# ---------------------------------------------------------------------------
# to_legacy_config tests
# ---------------------------------------------------------------------------


class TestToLegacyConfig:
    """Tests for the to_legacy_config() adapter."""

    def test_unified_values_carried_over(self):
        unified = build_config(
            {
                "dotnotes": {
                    "home": "/home/me",
                    "root_tag": "dots",
                    "store_path": "/data/s.json",
                    "exclude": [".cache"],
                    "debug": True,
                }
            }
        )
        config = to_legacy_config(unified)
        assert config.home == "/home/me"
        assert config.root_tag == "dots"
        assert config.store_path == "/data/s.json"
        assert config.exclude == [".cache"]
        assert config.debug is True

    def test_cli_overrides_win_over_config(self):
        unified = build_config({"dotnotes": {"home": "/home/me", "root_tag": "dots"}})
        config = to_legacy_config(
            unified, cli_overrides={"home": "/home/you", "exclude": [".ssh"]}
        )
        assert config.home == "/home/you"
        assert config.root_tag == "dots"
        assert config.exclude == [".ssh"]

    def test_zero_config_with_no_cli_overrides(self):
        config = to_legacy_config(UnifiedConfig())
        assert config.home == ""
        assert config.root_tag == "dotfiles"
        assert config.store_path == default_store_path()
        assert config.debug is False


# ---------------------------------------------------------------------------
# build_config tests
# ---------------------------------------------------------------------------


class TestBuildConfig:
    """Tests for the build_config() factory."""

    def test_empty_dict_returns_defaults(self):
        assert build_config({}) == UnifiedConfig()

    def test_partial_sections_fill_defaults(self):
        config = build_config({"logging": {"level": "ERROR"}})
        assert config.logging.level == "ERROR"
        assert config.dotnotes.root_tag == "dotfiles"

    def test_invalid_section_raises(self):
        with pytest.raises(ValidationError):
            build_config({"dotnotes": {"root_tag": "a.b"}})
