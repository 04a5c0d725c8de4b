"""CSV export of a tax result: phase summary plus the bracket table."""

import csv
import io
from pathlib import Path

from .engine import ComprehensiveTaxResult


def _write_result_rows(writer, result: ComprehensiveTaxResult) -> None:
    """Write result rows to a CSV writer.

    Internal function used by both file and string CSV generation.
    """
    p = result.phases
    income = p.income_collection
    meta = result.metadata

    writer.writerow(["FEDERAL TAX CALCULATION", f"{meta.tax_year}", meta.filing_status.value])
    writer.writerow([])

    writer.writerow(["INCOME", ""])
    writer.writerow(["W-2 wages", f"{income.w2_income:.2f}"])
    writer.writerow(["Taxable interest (1099-INT)", f"{income.form_1099_int:.2f}"])
    writer.writerow(["Ordinary dividends (1099-DIV)", f"{income.form_1099_div:.2f}"])
    writer.writerow(["Qualified dividends", f"{income.qualified_dividends:.2f}"])
    writer.writerow(["Capital gains", f"{income.capital_gains:.2f}"])
    writer.writerow(["Nonemployee compensation (1099-NEC)", f"{income.form_1099_nec:.2f}"])
    writer.writerow(["Miscellaneous income (1099-MISC)", f"{income.form_1099_misc:.2f}"])
    writer.writerow(["Rental and royalty income", f"{income.rental_royalties:.2f}"])
    writer.writerow(["Other income", f"{income.other_income:.2f}"])
    writer.writerow(["Tax-exempt interest", f"{income.tax_exempt_interest:.2f}"])
    writer.writerow(["Total income", f"{p.adjusted_gross_income.total_income:.2f}"])
    writer.writerow(["Above-the-line deductions", f"{p.adjusted_gross_income.above_the_line_deductions:.2f}"])
    writer.writerow(["Adjusted gross income", f"{p.adjusted_gross_income.adjusted_gross_income:.2f}"])
    deduction_label = "Standard deduction" if p.deduction_determination.use_standard_deduction else "Itemized deductions"
    writer.writerow([deduction_label, f"{p.deduction_determination.selected_deduction:.2f}"])
    writer.writerow(["Taxable income", f"{p.taxable_income.taxable_income:.2f}"])
    writer.writerow([])

    writer.writerow(["INCOME TAX BRACKETS", "Rate", "Taxable in bracket", "Tax assessed", "Cumulative tax"])
    for entry in p.regular_tax.bracket_breakdown:
        writer.writerow([
            entry.bracket_range,
            f"{entry.rate:.0%}",
            f"{entry.taxable_in_this_bracket:.2f}",
            f"{entry.tax_from_this_bracket:.2f}",
            f"{entry.cumulative_tax:.2f}",
        ])
    writer.writerow(["Total assessed", "", "", f"{p.regular_tax.ordinary_income_tax:.2f}", ""])
    writer.writerow([])

    writer.writerow(["TAX LIABILITY", ""])
    writer.writerow(["Regular tax", f"{p.total_tax_liability.regular_tax:.2f}"])
    writer.writerow(["Self-employment tax", f"{p.total_tax_liability.self_employment_tax:.2f}"])
    writer.writerow(["Net investment income tax", f"{p.total_tax_liability.niit_tax:.2f}"])
    writer.writerow(["Nonrefundable credits", f"{p.total_tax_liability.nonrefundable_credits.total:.2f}"])
    writer.writerow(["Total tax", f"{p.total_tax_liability.total_tax:.2f}"])
    writer.writerow([])

    balance = p.final_balance
    writer.writerow(["PAYMENTS AND BALANCE", ""])
    writer.writerow(["Total withholdings", f"{balance.total_withholdings:.2f}"])
    writer.writerow(["Estimated tax payments", f"{balance.estimated_tax_payments:.2f}"])
    writer.writerow(["Refundable credits", f"{balance.refundable_credits:.2f}"])
    writer.writerow(["Total payments", f"{balance.total_payments:.2f}"])
    writer.writerow(["Refund", f"{balance.refund_amount:.2f}"])
    writer.writerow(["Balance due", f"{balance.balance_due:.2f}"])
    writer.writerow(["Effective tax rate", f"{result.summary.effective_tax_rate:.4f}"])
    writer.writerow(["Marginal tax rate", f"{result.summary.marginal_tax_rate:.2f}"])


def result_to_csv_string(result: ComprehensiveTaxResult) -> str:
    """Convert a tax result to a CSV string."""
    output = io.StringIO()
    writer = csv.writer(output)
    _write_result_rows(writer, result)
    return output.getvalue()


def write_result_csv(result: ComprehensiveTaxResult, output_path: Path) -> Path:
    """Write a tax result to a CSV file.

    Returns:
        Path to the written file
    """
    with open(output_path, "w", newline="") as csvfile:
        writer = csv.writer(csvfile)
        _write_result_rows(writer, result)

    return output_path
