"""Tests for configuration validation"""
import logging
import pytest

from src import config
from src.config import configure_logging, validate_config
from src.exceptions import ConfigurationError


class TestConfigValidation:
    """Test validate_config against module-level settings"""

    def test_defaults_are_valid(self, monkeypatch):
        monkeypatch.setattr(config, "STORAGE_BACKEND", "memory")
        validate_config()

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setattr(config, "STORAGE_BACKEND", "sqlite")
        with pytest.raises(ConfigurationError) as exc_info:
            validate_config()
        assert exc_info.value.config_key == "STORAGE_BACKEND"

    def test_redis_requires_url(self, monkeypatch):
        monkeypatch.setattr(config, "STORAGE_BACKEND", "redis")
        monkeypatch.setattr(config, "REDIS_URL", "")
        with pytest.raises(ConfigurationError) as exc_info:
            validate_config()
        assert exc_info.value.config_key == "REDIS_URL"

    @pytest.mark.parametrize("name,value", [
        ("LEVEL_BASE_XP", 0),
        ("LEVEL_GROWTH_RATE", 0.5),
        ("COMBO_WINDOW_SECONDS", 0),
        ("MIN_VIBE_FOR_CARD_PULL", -1),
    ])
    def test_invalid_numbers(self, monkeypatch, name, value):
        monkeypatch.setattr(config, "STORAGE_BACKEND", "memory")
        monkeypatch.setattr(config, name, value)
        with pytest.raises(ConfigurationError) as exc_info:
            validate_config()
        assert exc_info.value.config_key == name


class TestTables:
    """Test the static rule tables"""

    def test_tier_thresholds_ascend(self):
        thresholds = [minimum for _, minimum in config.TOKEN_TIER_THRESHOLDS]
        assert thresholds == sorted(thresholds)

    def test_combo_tiers_ascend(self):
        minimums = [minimum for minimum, _ in config.COMBO_BONUS_TIERS]
        assert minimums == sorted(minimums)
        assert minimums[0] == 2

    def test_weekend_days(self):
        assert config.WEEKEND_DAYS == {5, 6}


def test_configure_logging(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))

    configure_logging("debug")

    assert calls["level"] == logging.DEBUG
