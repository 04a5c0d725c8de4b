"""Configuration management for taxgrok.

Machine-specific settings live in settings.json:
   - tax_year: default tax year for calculations
   - filing_status: default filing status (UI or engine token)
   - min_field_confidence: extracted fields below this confidence are
     excluded from aggregation (default 0.1)

Config directory resolution:
1. TAXGROK_CONFIG_PATH environment variable (if set)
2. ~/.config/taxgrok/ (XDG_CONFIG_HOME fallback)

Tax rules are not configuration; they ship with the package under
taxgrok/tax_rules/.
"""

import json
import os
from pathlib import Path
from typing import Any

APP_NAME = "taxgrok"
SETTINGS_FILENAME = "settings.json"

DEFAULT_MIN_FIELD_CONFIDENCE = 0.1

# Known settings and the type their values are stored as
SETTING_TYPES = {
    "tax_year": int,
    "filing_status": str,
    "min_field_confidence": float,
}


class SettingsError(Exception):
    """Raised when a setting key or value is invalid."""
    pass


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. TAXGROK_CONFIG_PATH environment variable
    2. ~/.config/taxgrok/ (XDG_CONFIG_HOME)
    """
    env_path = os.environ.get("TAXGROK_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save settings to settings.json.

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json, or default if not set."""
    return load_settings().get(key, default)


def coerce_setting(key: str, value: Any) -> Any:
    """Convert a raw value (e.g. a CLI string) to the setting's stored type.

    Raises:
        SettingsError: Unknown key or a value that doesn't convert
    """
    if key not in SETTING_TYPES:
        known = ", ".join(sorted(SETTING_TYPES))
        raise SettingsError(f"Unknown setting '{key}'. Known settings: {known}")

    try:
        coerced = SETTING_TYPES[key](value)
    except (TypeError, ValueError):
        raise SettingsError(f"Invalid value for {key}: {value!r}")

    if key == "min_field_confidence" and not 0 <= coerced <= 1:
        raise SettingsError(f"min_field_confidence must be between 0 and 1, got {coerced}")
    return coerced


def set_setting(key: str, value: Any) -> Path:
    """Validate and set a setting value in settings.json.

    Returns:
        Path to the saved settings file
    """
    settings = load_settings()
    settings[key] = coerce_setting(key, value)
    return save_settings(settings)


def unset_setting(key: str) -> bool:
    """Remove a setting. Returns False if it was not set."""
    settings = load_settings()
    if key not in settings:
        return False
    del settings[key]
    save_settings(settings)
    return True


def get_min_field_confidence() -> float:
    """Minimum field confidence for aggregation (settings or 0.1)."""
    return float(get_setting("min_field_confidence", DEFAULT_MIN_FIELD_CONFIDENCE))


def get_default_tax_year() -> int:
    """Default tax year (settings or DEFAULT_TAX_YEAR)."""
    from .taxes.rules import DEFAULT_TAX_YEAR

    return int(get_setting("tax_year", DEFAULT_TAX_YEAR))
