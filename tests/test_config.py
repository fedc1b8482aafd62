# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Tests for application configuration and compaction policy settings."""

import pytest

from compaction_safeguard.config import Settings, settings as app_settings
from compaction_safeguard.services.compaction.settings import (
    BASE_CHUNK_RATIO,
    MIN_CHUNK_RATIO,
    SAFETY_MARGIN,
    CompactionSettings,
    load_compaction_settings,
)


class TestSettings:
    """Tests for the pydantic-settings Settings class."""

    def test_defaults(self):
        """Verify defaults match the policy constants."""
        s = Settings(_env_file=None)
        assert s.COMPACTION_BASE_CHUNK_RATIO == BASE_CHUNK_RATIO
        assert s.COMPACTION_MIN_CHUNK_RATIO == MIN_CHUNK_RATIO
        assert s.COMPACTION_SAFETY_MARGIN == SAFETY_MARGIN
        assert s.COMPACTION_MIN_PRESERVED_MESSAGES == 0
        assert s.COMPACTION_MAX_TOOL_FAILURES == 8

    def test_environment_override(self, monkeypatch):
        """Verify values are read from the environment."""
        monkeypatch.setenv("COMPACTION_MIN_PRESERVED_MESSAGES", "12")
        monkeypatch.setenv("COMPACTION_MAX_HISTORY_SHARE", "0.3")
        s = Settings(_env_file=None)
        assert s.COMPACTION_MIN_PRESERVED_MESSAGES == 12
        assert s.COMPACTION_MAX_HISTORY_SHARE == 0.3


class TestCompactionSettings:
    """Tests for CompactionSettings."""

    def test_defaults(self):
        """Verify the default policy."""
        settings = CompactionSettings()
        assert settings.base_chunk_ratio == 0.4
        assert settings.min_chunk_ratio == 0.15
        assert settings.safety_margin == 1.2
        assert settings.max_history_share == 0.5
        assert settings.parts == 2

    def test_from_settings(self, monkeypatch):
        """Verify policy is built from application settings."""
        monkeypatch.setenv("COMPACTION_MIN_PRESERVED_MESSAGES", "20")
        monkeypatch.setenv("COMPACTION_BASE_CHUNK_RATIO", "0.5")
        settings = CompactionSettings.from_settings(Settings(_env_file=None))
        assert settings.min_preserved_messages == 20
        assert settings.base_chunk_ratio == 0.5
        assert settings.min_chunk_ratio == MIN_CHUNK_RATIO

    def test_load_from_application_settings(self, monkeypatch):
        """Verify the default policy follows the loaded configuration."""
        monkeypatch.setattr(app_settings, "COMPACTION_MIN_PRESERVED_MESSAGES", 7)
        monkeypatch.setattr(app_settings, "COMPACTION_MAX_HISTORY_SHARE", 0.25)
        settings = load_compaction_settings()
        assert settings.min_preserved_messages == 7
        assert settings.max_history_share == 0.25

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_chunk_ratio": 0},
            {"min_chunk_ratio": 0.5, "base_chunk_ratio": 0.4},
            {"base_chunk_ratio": 1.5},
            {"safety_margin": 1.0},
            {"max_history_share": 0},
            {"max_history_share": 1.2},
        ],
    )
    def test_rejects_invalid_policy(self, kwargs):
        """Verify inconsistent knobs raise ValueError."""
        with pytest.raises(ValueError):
            CompactionSettings(**kwargs)

    def test_frozen(self):
        """Verify settings are immutable."""
        settings = CompactionSettings()
        with pytest.raises(AttributeError):
            settings.parts = 3
