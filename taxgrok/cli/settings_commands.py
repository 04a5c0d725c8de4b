"""Settings CLI commands for taxgrok.

Manages settings.json - default tax year, filing status, confidence threshold.
"""

import click

from taxgrok.sdk import (
    DEFAULT_MIN_FIELD_CONFIDENCE,
    DEFAULT_TAX_YEAR,
    SETTING_TYPES,
    SettingsError,
    get_settings_path,
    load_settings,
    set_setting,
    unset_setting,
)

DEFAULTS = {
    "tax_year": DEFAULT_TAX_YEAR,
    "filing_status": "single",
    "min_field_confidence": DEFAULT_MIN_FIELD_CONFIDENCE,
}


@click.group()
def settings():
    """Manage settings (settings.json).

    \b
    Available settings:
    - tax_year: default tax year for calculations
    - filing_status: default filing status (e.g. married-jointly)
    - min_field_confidence: exclude extracted fields below this (0-1)
    """
    pass


@settings.command("show")
def settings_show():
    """Show current settings and their effective values."""
    settings_path = get_settings_path()
    current = load_settings()

    click.echo(f"Settings file: {settings_path}")
    click.echo(f"File exists: {settings_path.exists()}")
    click.echo()

    if not current:
        click.echo("No settings configured (using defaults).")
        click.echo()

    click.echo("Effective settings:")
    for key in SETTING_TYPES:
        if key in current:
            click.echo(f"  {key}: {current[key]}")
        else:
            click.echo(f"  {key}: {DEFAULTS[key]} (default)")


@settings.command("set")
@click.argument("key", type=click.Choice(sorted(SETTING_TYPES)))
@click.argument("value")
def settings_set(key, value):
    """Set KEY to VALUE.

    Examples:
        taxgrok settings set tax_year 2024
        taxgrok settings set filing_status married-jointly
    """
    if key == "filing_status":
        from taxgrok.sdk.filing_status import ALL_TOKENS
        if value not in ALL_TOKENS:
            raise click.BadParameter(
                f"'{value}' is not a filing status. Choose from: {', '.join(ALL_TOKENS)}",
                param_hint="VALUE",
            )

    try:
        path = set_setting(key, value)
    except SettingsError as e:
        raise click.BadParameter(str(e), param_hint="VALUE")

    click.echo(f"Set {key}: {value}")
    click.echo(f"Saved to: {path}")


@settings.command("unset")
@click.argument("key", type=click.Choice(sorted(SETTING_TYPES)))
def settings_unset(key):
    """Remove KEY, reverting it to the default."""
    if unset_setting(key):
        click.echo(f"Cleared {key} setting.")
    else:
        click.echo(f"{key} was not set.")
