"""Tests for settings.json configuration."""

import json

import pytest

from taxgrok.sdk import config


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Point TAXGROK_CONFIG_PATH at an empty directory."""
    path = tmp_path / "config"
    monkeypatch.setenv("TAXGROK_CONFIG_PATH", str(path))
    return path


class TestConfigDir:

    def test_env_var(self, config_dir):
        assert config.get_config_dir() == config_dir
        assert config.get_settings_path() == config_dir / "settings.json"

    def test_xdg_fallback(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TAXGROK_CONFIG_PATH", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert config.get_config_dir() == tmp_path / "taxgrok"


class TestSettings:

    def test_missing_file_is_empty(self, config_dir):
        assert config.load_settings() == {}
        assert config.get_setting("tax_year", 2025) == 2025

    def test_set_coerces_type(self, config_dir):
        path = config.set_setting("tax_year", "2024")

        assert json.loads(path.read_text()) == {"tax_year": 2024}
        assert config.get_default_tax_year() == 2024

    def test_min_field_confidence(self, config_dir):
        assert config.get_min_field_confidence() == 0.1

        config.set_setting("min_field_confidence", "0.5")

        assert config.get_min_field_confidence() == 0.5

    def test_min_field_confidence_range(self, config_dir):
        with pytest.raises(config.SettingsError):
            config.set_setting("min_field_confidence", "1.5")

    def test_unknown_key(self, config_dir):
        with pytest.raises(config.SettingsError, match="Unknown setting"):
            config.set_setting("colour", "blue")

    def test_bad_value(self, config_dir):
        with pytest.raises(config.SettingsError, match="Invalid value"):
            config.set_setting("tax_year", "next year")

    def test_unset(self, config_dir):
        config.set_setting("filing_status", "married-jointly")

        assert config.unset_setting("filing_status") is True
        assert config.unset_setting("filing_status") is False
        assert config.load_settings() == {}

    def test_default_tax_year(self, config_dir):
        from taxgrok.sdk.taxes import DEFAULT_TAX_YEAR

        assert config.get_default_tax_year() == DEFAULT_TAX_YEAR
