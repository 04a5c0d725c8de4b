"""Year-versioned federal tax rules.

Rules live in taxgrok/tax_rules/<year>.yaml, one file per tax year, and are
validated against TaxRules on load.
"""

from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from .schemas import TaxRules

DEFAULT_TAX_YEAR = 2025


class TaxRulesError(Exception):
    """Raised when a tax rules file exists but fails validation."""
    pass


def _get_tax_rules_dir() -> Path:
    """Get the tax_rules directory path."""
    return Path(__file__).parent.parent.parent / "tax_rules"  # taxes -> sdk -> taxgrok


def get_available_years() -> list[int]:
    """Get sorted list of available tax rule years (descending)."""
    years = [int(p.stem) for p in _get_tax_rules_dir().glob("*.yaml") if p.stem.isdigit()]
    return sorted(years, reverse=True)


def load_tax_rules_dict(year: Union[int, str]) -> dict:
    """Load the raw rules mapping for a year from tax_rules/YYYY.yaml."""
    config_file = _get_tax_rules_dir() / f"{year}.yaml"
    if not config_file.exists():
        available = ", ".join(str(y) for y in get_available_years())
        raise FileNotFoundError(
            f"Tax rules file not found for year {year}: {config_file} (available: {available})"
        )

    with open(config_file, "r") as f:
        return yaml.safe_load(f) or {}


def load_tax_rules(year: Union[int, str]) -> TaxRules:
    """Load and validate tax rules for a specific year.

    Raises:
        FileNotFoundError: No rules file for the year
        TaxRulesError: The file does not match the TaxRules schema
    """
    raw = load_tax_rules_dict(year)
    try:
        rules = TaxRules.model_validate(raw)
    except ValidationError as e:
        raise TaxRulesError(f"Invalid tax rules for {year}:\n{e}") from e

    if rules.tax_year != int(year):
        raise TaxRulesError(f"tax_rules/{year}.yaml declares tax_year {rules.tax_year}")
    return rules
