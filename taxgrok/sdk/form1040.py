"""Form 1040 line mapping.

Maps a ComprehensiveTaxResult onto Form 1040 lines. This is a pure schema
transformation: every value is already rounded by the engine, nothing is
recalculated beyond the line sums the form itself defines (17, 25c).
"""

from typing import Optional

from .engine import ComprehensiveTaxResult
from .schemas import TaxDocumentData
from .taxes.money import sum_cents

# Which 1040 line each extraction bucket feeds
BUCKET_LINES = {
    "wages": "1a",
    "tax_exempt_interest": "2a",
    "interest": "2b",
    "qualified_dividends": "3a",
    "dividends": "3b",
    "capital_gains": "7",
    "non_employee_compensation": "8",
    "miscellaneous_income": "8",
    "rental_royalties": "8",
    "other": "8",
    "federal_tax": "25a",
    "state_tax": "25c",
    "social_security_tax": "25c",
    "medicare_tax": "25c",
}


def source_documents(tax_data: TaxDocumentData) -> list[dict]:
    """List each extracted field that feeds a 1040 line, in line order."""
    line_order = {line: i for i, line in enumerate(dict.fromkeys(BUCKET_LINES.values()))}
    entries = []

    for bucket, breakdown in tax_data.breakdown.items():
        line = BUCKET_LINES.get(bucket)
        if line is None:
            continue
        for source in breakdown.sources:
            for field in source.fields:
                entries.append({
                    "line": line,
                    "bucket": bucket,
                    "document_id": source.document_id,
                    "file_name": source.file_name,
                    "document_type": source.document_type.label,
                    "field_name": field.field_name,
                    "box_reference": field.box_reference,
                    "amount": field.amount,
                    "confidence": field.confidence,
                    "included": field.included,
                })

    return sorted(entries, key=lambda e: line_order[e["line"]])


def result_to_1040(result: ComprehensiveTaxResult, tax_data: Optional[TaxDocumentData] = None) -> dict:
    """Convert an engine result to Form 1040 line-item format.

    Args:
        result: Result from TaxEngine.calculate()
        tax_data: Extracted data the result was computed from; when given,
            ``source_documents`` lists the fields behind each line

    Returns:
        Dict with "meta", "data" (lines grouped by form section) and
        "source_documents"
    """
    p = result.phases
    income = p.income_collection
    credits = p.total_tax_liability.nonrefundable_credits
    refundable = p.withholdings_and_credits.refundable_credits
    withholdings = p.withholdings_and_credits
    balance = p.final_balance

    other_taxes = sum_cents(p.self_employment_tax.total_se_tax, p.investment_tax.niit_tax)

    return {
        "meta": {
            "year": result.metadata.tax_year,
            "filing_status": result.metadata.filing_status.value,
            "source": "calculation",
            "generated_from": "taxgrok result_to_1040",
        },
        "data": {
            "income": {
                "line_1a_w2_wages": income.w2_income,
                "line_1z_total_wages": income.w2_income,
                "line_2a_tax_exempt_interest": income.tax_exempt_interest,
                "line_2b_taxable_interest": income.form_1099_int,
                "line_3a_qualified_dividends": income.qualified_dividends,
                "line_3b_ordinary_dividends": income.form_1099_div,
                "line_7_capital_gain": income.capital_gains,
                "line_8_additional_income": sum_cents(
                    income.form_1099_nec,
                    income.form_1099_misc,
                    income.rental_royalties,
                    income.other_income,
                ),
                "line_9_total_income": p.adjusted_gross_income.total_income,
                "line_10_adjustments": p.adjusted_gross_income.above_the_line_deductions,
                "line_11_agi": p.adjusted_gross_income.adjusted_gross_income,
            },
            "deductions": {
                "line_12_deduction": p.deduction_determination.selected_deduction,
                "line_13_qbi_deduction": 0,
                "line_14_taxable_income": p.taxable_income.taxable_income,
            },
            "tax_and_credits": {
                "line_15_tax": p.regular_tax.ordinary_income_tax,
                "line_16_other_taxes": other_taxes,
                "line_17_total_before_credits": sum_cents(p.regular_tax.ordinary_income_tax, other_taxes),
                "line_18_child_tax_credit": credits.child_tax_credit,
                "line_19_other_credits": credits.other_credits,
                "line_20_total_credits": credits.total,
                "line_21_tax_after_credits": p.total_tax_liability.total_tax,
                "line_23_total_tax_before_payments": p.total_tax_liability.total_tax,
                "line_24_total_tax": p.total_tax_liability.total_tax,
            },
            "payments": {
                "line_25a_federal_withholding": withholdings.federal_income_tax,
                "line_25c_other_withholding": sum_cents(
                    withholdings.state_tax,
                    withholdings.social_security_tax,
                    withholdings.medicare_tax,
                ),
                "line_25d_total_withholding": withholdings.total_withholdings,
                "line_26_estimated_payments": balance.estimated_tax_payments,
                "line_27_earned_income_credit": refundable.earned_income_credit,
                "line_28_additional_child_tax_credit": refundable.additional_child_tax_credit,
                "line_29_american_opportunity_credit": refundable.american_opportunity_credit,
                "line_32_total_refundable_credits": refundable.total,
                "line_33_total_payments": balance.total_payments,
            },
            "refund_or_owed": {
                "line_34_overpaid": balance.refund_amount,
                "line_35a_refund": balance.refund_amount,
                "line_37_owed": balance.balance_due,
            },
            "schedule_se": {
                "social_security_tax": p.self_employment_tax.social_security_tax,
                "medicare_tax": p.self_employment_tax.medicare_tax,
                "deductible_part": p.self_employment_tax.se_deduction,
            },
            "schedule_2": {
                "additional_medicare_tax": p.self_employment_tax.additional_medicare_tax,
                "net_investment_income_tax": p.investment_tax.niit_tax,
            },
        },
        "source_documents": source_documents(tax_data) if tax_data is not None else [],
    }
