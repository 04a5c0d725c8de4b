"""taxgrok CLI - Command-line interface for federal tax calculation."""

import json
import logging

import click

from taxgrok import __version__
from taxgrok.sdk.filing_status import ALL_TOKENS

from .settings_commands import settings as settings_group


@click.group()
@click.version_option(version=__version__, prog_name="taxgrok")
@click.option("-v", "--verbose", count=True, help="Log to stderr (-v info, -vv phase traces).")
def cli(verbose):
    """taxgrok - Federal income tax calculation from extracted documents.

    Reads processed W-2 / 1099 documents (JSON, as produced by a
    document-intelligence provider), extracts income and withholding,
    and runs the 11-phase federal tax calculation.

    Defaults (tax year, filing status, minimum field confidence) are
    loaded from settings.json in (in order):

    \b
    1. TAXGROK_CONFIG_PATH environment variable
    2. ~/.config/taxgrok/ (XDG default)

    Run 'taxgrok settings show' to see current settings.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )


cli.add_command(settings_group)


# =============================================================================
# Helpers
# =============================================================================


def _load_documents(file) -> list:
    """Read a JSON document list (or {"documents": [...]}) from an open file."""
    from taxgrok.sdk import parse_documents_payload

    try:
        payload = json.load(file)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {file.name}: {e}")

    try:
        return parse_documents_payload(payload)
    except ValueError as e:
        raise click.ClickException(str(e))


def _extract(file, min_confidence=None):
    from taxgrok.sdk import extract_tax_data, get_min_field_confidence

    if min_confidence is None:
        min_confidence = get_min_field_confidence()
    return extract_tax_data(_load_documents(file), min_confidence=min_confidence)


def _resolve_filing_status(filing_status):
    """CLI option, else the filing_status setting, else single."""
    from taxgrok.sdk import get_setting, normalize_filing_status

    return normalize_filing_status(filing_status or get_setting("filing_status"))


def _make_engine(year):
    from taxgrok.sdk import TaxEngine, TaxRulesError

    try:
        return TaxEngine(tax_year=year)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))
    except TaxRulesError as e:
        raise click.ClickException(str(e))


def _calculate(file, filing_status, itemized, estimated_payments, year, min_confidence=None):
    """Extract and calculate. Returns (tax_data, result)."""
    from taxgrok.sdk import TaxCalculationError

    tax_data = _extract(file, min_confidence)
    engine = _make_engine(year)
    try:
        result = engine.calculate(
            tax_data,
            filing_status=_resolve_filing_status(filing_status),
            use_itemized_deductions=itemized is not None,
            itemized_deduction_amount=itemized or 0,
            estimated_tax_payments=estimated_payments,
        )
    except TaxCalculationError as e:
        raise click.ClickException(f"{e}: {e.__cause__}")
    return tax_data, result


def _money(amount: float) -> str:
    return f"${amount:>12,.2f}"


def _format_extraction_text(tax_data) -> str:
    """Format extracted tax data as ASCII tables for terminal display."""
    lines = []

    lines.append(f"EXTRACTED TAX DATA ({tax_data.document_count} documents)")
    lines.append("=" * 60)
    lines.append("")

    info = tax_data.personal_info
    if info.name or info.ssn or info.address:
        lines.append(f"  {'Name':<28} {info.name}")
        lines.append(f"  {'SSN':<28} {info.ssn}")
        lines.append(f"  {'Address':<28} {info.address}")
        lines.append("")

    for title, buckets in (
        ("INCOME", tax_data.income.model_dump()),
        ("WITHHOLDINGS", tax_data.withholdings.model_dump()),
    ):
        lines.append(title)
        lines.append("-" * 60)
        for bucket, total in buckets.items():
            breakdown = tax_data.breakdown.get(bucket)
            sources = breakdown.sources if breakdown else ()
            if total == 0 and not sources:
                continue
            label = bucket.replace("_", " ").capitalize()
            lines.append(f"  {label:<28} {_money(total)}")
            for source in sources:
                for field in source.fields:
                    flag = "" if field.included else "  (excluded: low confidence)"
                    lines.append(
                        f"      {field.box_reference:<16} {source.file_name:<20} "
                        f"${field.amount:,.2f} @ {field.confidence:.2f}{flag}"
                    )
        lines.append("")

    if tax_data.warnings:
        lines.append("WARNINGS")
        lines.append("-" * 60)
        for warning in tax_data.warnings:
            where = "/".join(p for p in (warning.document_id, warning.field_name) if p)
            lines.append(f"  {where}: {warning.message}" if where else f"  {warning.message}")
        lines.append("")

    return "\n".join(lines)


def _format_bracket_rows(bracket_breakdown) -> list:
    lines = [
        f"  {'Bracket':<24} {'Rate':>6} {'Taxable':>14} {'Tax Assessed':>14}",
        f"  {'-'*24} {'-'*6} {'-'*14} {'-'*14}",
    ]
    for entry in bracket_breakdown:
        lines.append(
            f"  {entry.bracket_range:<24} {entry.rate:>6.0%} "
            f"${entry.taxable_in_this_bracket:>13,.2f} ${entry.tax_from_this_bracket:>13,.2f}"
        )
    return lines


def _format_tax_result_text(result) -> str:
    """Format a tax result as ASCII tables for terminal display."""
    p = result.phases
    meta = result.metadata
    income = p.income_collection
    lines = []

    lines.append(f"FEDERAL TAX CALCULATION FOR {meta.tax_year} ({meta.filing_status.ui_token})")
    lines.append("=" * 60)
    lines.append("")

    lines.append("INCOME")
    lines.append("-" * 60)
    income_items = [
        (income.w2_income, "Wages (W-2)"),
        (income.form_1099_int, "Interest (1099-INT)"),
        (income.form_1099_div, "Dividends (1099-DIV)"),
        (income.capital_gains, "Capital gains"),
        (income.form_1099_nec, "Nonemployee comp (1099-NEC)"),
        (income.form_1099_misc, "Misc income (1099-MISC)"),
        (income.rental_royalties, "Rents and royalties"),
        (income.other_income, "Other income"),
    ]
    for value, label in income_items:
        if value:
            lines.append(f"  {label:<28} {_money(value)}")
    if income.qualified_dividends:
        lines.append(f"  {'  of which qualified':<28} {_money(income.qualified_dividends)}")
    if income.tax_exempt_interest:
        lines.append(f"  {'Tax-exempt interest':<28} {_money(income.tax_exempt_interest)}  (not taxed)")

    agi = p.adjusted_gross_income
    deduction = p.deduction_determination
    deduction_label = "Standard deduction" if deduction.use_standard_deduction else "Itemized deductions"
    lines.append(f"  {'Total income':<28} {_money(agi.total_income)}")
    if agi.above_the_line_deductions:
        lines.append(f"  {'Deductible part of SE tax':<28}-{_money(agi.above_the_line_deductions)}")
    lines.append(f"  {'Adjusted gross income':<28} {_money(agi.adjusted_gross_income)}")
    lines.append(f"  {deduction_label:<28}-{_money(deduction.selected_deduction)}")
    lines.append("  " + "-" * 42)
    lines.append(f"  {'Taxable income':<28} {_money(p.taxable_income.taxable_income)}")
    lines.append("")

    lines.append("FEDERAL INCOME TAX BRACKETS")
    lines.append("-" * 60)
    lines.extend(_format_bracket_rows(p.regular_tax.bracket_breakdown))
    lines.append(f"  {'Total income tax':<24} {'':>6} {'':>14} ${p.regular_tax.ordinary_income_tax:>13,.2f}")
    lines.append("")

    liability = p.total_tax_liability
    se = p.self_employment_tax
    lines.append("TAX LIABILITY")
    lines.append("-" * 60)
    lines.append(f"  {'Income tax':<28} {_money(liability.regular_tax)}")
    if se.total_se_tax:
        lines.append(f"  {'Self-employment tax':<28} {_money(se.total_se_tax)}")
        lines.append(f"  {'  Social Security':<28} {_money(se.social_security_tax)}")
        lines.append(f"  {'  Medicare':<28} {_money(se.medicare_tax)}")
        if se.additional_medicare_tax:
            lines.append(f"  {'  Additional Medicare':<28} {_money(se.additional_medicare_tax)}")
    if liability.niit_tax:
        lines.append(f"  {'Net investment income tax':<28} {_money(liability.niit_tax)}")
    if liability.nonrefundable_credits.total:
        lines.append(f"  {'Credits':<28}-{_money(liability.nonrefundable_credits.total)}")
    lines.append(f"  {'Total tax':<28} {_money(liability.total_tax)}")
    lines.append("")

    balance = p.final_balance
    lines.append("PAYMENTS")
    lines.append("-" * 60)
    lines.append(f"  {'Withholdings':<28} {_money(balance.total_withholdings)}")
    if balance.estimated_tax_payments:
        lines.append(f"  {'Estimated payments':<28} {_money(balance.estimated_tax_payments)}")
    lines.append(f"  {'Total payments':<28} {_money(balance.total_payments)}")
    lines.append("")

    lines.append("=" * 60)
    if balance.final_status == "refund":
        lines.append(f"  {'REFUND':<28} {_money(balance.refund_amount)}")
    else:
        lines.append(f"  {'BALANCE DUE':<28} {_money(balance.balance_due)}")
    lines.append(f"  {'Effective rate':<28} {result.summary.effective_tax_rate:>13.2%}")
    lines.append(f"  {'Marginal rate':<28} {result.summary.marginal_tax_rate:>13.0%}")

    return "\n".join(lines)


# =============================================================================
# tax commands
# =============================================================================


def _calculation_options(f):
    """Options shared by calculate and form1040."""
    f = click.option("--min-confidence", type=click.FloatRange(0, 1), default=None,
                     help="Exclude fields below this confidence (default: settings or 0.1)")(f)
    f = click.option("--year", type=int, default=None,
                     help="Tax year (default: settings or latest supported)")(f)
    f = click.option("--estimated-payments", type=click.FloatRange(min=0), default=0,
                     help="Estimated tax payments made for the year")(f)
    f = click.option("--itemized", type=click.FloatRange(min=0), default=None,
                     help="Itemize with this amount (used only if above the standard deduction)")(f)
    f = click.option("--filing-status", "-s", type=click.Choice(ALL_TOKENS), default=None,
                     help="Filing status (default: settings or single)")(f)
    return f


@cli.group("tax")
def tax_group():
    """Tax extraction and calculation commands.

    \b
    Commands:
      extract    Extract income/withholding from processed documents
      calculate  Run the full federal tax calculation
      form1040   Map the calculation onto Form 1040 lines
      brackets   Show the bracket breakdown for a taxable income
      rules      Show tax rules for a year
    """
    pass


@tax_group.command("extract")
@click.argument("file", type=click.File("r"))
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text",
              help="Output format (default: text)")
@click.option("--min-confidence", type=click.FloatRange(0, 1), default=None,
              help="Exclude fields below this confidence (default: settings or 0.1)")
def tax_extract(file, output_format, min_confidence):
    """Extract income and withholding from processed documents.

    FILE is a JSON list of processed documents, or an object with a
    "documents" list. Use - to read from stdin.
    """
    tax_data = _extract(file, min_confidence)

    if output_format == "json":
        click.echo(json.dumps(tax_data.model_dump(mode="json", by_alias=True), indent=2))
    else:
        click.echo(_format_extraction_text(tax_data))


@tax_group.command("calculate")
@click.argument("file", type=click.File("r"))
@_calculation_options
@click.option("--format", "output_format", type=click.Choice(["text", "json", "csv"]), default="text",
              help="Output format (default: text)")
def tax_calculate(file, filing_status, itemized, estimated_payments, year, min_confidence, output_format):
    """Calculate federal tax and the refund or balance due.

    \b
    Output formats:
      --format=text  ASCII tables (default, for terminal viewing)
      --format=json  Full result with every phase (camelCase keys)
      --format=csv   Phase summary and bracket table (for spreadsheets)

    \b
    Examples:
      taxgrok tax calculate documents.json
      taxgrok tax calculate documents.json -s married-jointly --format=json
      cat documents.json | taxgrok tax calculate - --itemized 42000
    """
    from taxgrok.sdk import result_to_csv_string

    _, result = _calculate(file, filing_status, itemized, estimated_payments, year, min_confidence)

    if output_format == "json":
        click.echo(result.to_json())
    elif output_format == "csv":
        click.echo(result_to_csv_string(result))
    else:
        click.echo(_format_tax_result_text(result))


@tax_group.command("form1040")
@click.argument("file", type=click.File("r"))
@_calculation_options
def tax_form1040(file, filing_status, itemized, estimated_payments, year, min_confidence):
    """Calculate and output Form 1040 line items as JSON.

    Includes source_documents: the extracted field behind each line.
    """
    from taxgrok.sdk import result_to_1040

    tax_data, result = _calculate(file, filing_status, itemized, estimated_payments, year, min_confidence)
    click.echo(json.dumps(result_to_1040(result, tax_data), indent=2))


@tax_group.command("brackets")
@click.argument("taxable_income", type=click.FloatRange(min=0))
@click.option("--filing-status", "-s", type=click.Choice(ALL_TOKENS), default=None,
              help="Filing status (default: settings or single)")
@click.option("--year", type=int, default=None, help="Tax year (default: settings or latest supported)")
def tax_brackets(taxable_income, filing_status, year):
    """Show the progressive bracket breakdown for TAXABLE_INCOME."""
    from taxgrok.sdk import calculate_bracket_tax

    engine = _make_engine(year)
    status = _resolve_filing_status(filing_status)
    brackets = calculate_bracket_tax(taxable_income, engine.rules.for_status(status).tax_brackets)

    click.echo(f"{engine.tax_year} brackets ({status.ui_token}), taxable income ${taxable_income:,.2f}")
    click.echo("\n".join(_format_bracket_rows(brackets.breakdown)))
    click.echo(f"  {'Total tax':<24} {'':>6} {'':>14} ${brackets.total_tax:>13,.2f}")
    click.echo(f"  {'Marginal rate':<24} {brackets.marginal_rate:>6.0%}")


@tax_group.command("rules")
@click.argument("year", type=int, required=False)
def tax_rules(year):
    """Show tax rules for YEAR as JSON (lists available years if omitted)."""
    from taxgrok.sdk import TaxRulesError, get_available_years, load_tax_rules

    if year is None:
        click.echo("Available tax years: " + ", ".join(str(y) for y in get_available_years()))
        return

    try:
        rules = load_tax_rules(year)
    except (FileNotFoundError, TaxRulesError) as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(rules.model_dump(mode="json"), indent=2))


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
