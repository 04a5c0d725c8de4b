"""Self-employment tax (Schedule SE) and Additional Medicare Tax.

SE tax is computed on net earnings from self-employment, which is
nonemployee compensation times the net earnings factor (92.35%). Social
Security applies up to the wage base; Medicare has no cap. Additional
Medicare Tax (0.9%) applies to wages plus SE net earnings above the filing
status threshold, whether or not there is any SE income. Half of the SS and Medicare portions is deductible above
the line; Additional Medicare Tax is not.
"""

from ..filing_status import FilingStatus
from ..schemas import ValueModel
from .money import multiply, round_cents, sum_cents
from .schemas import TaxRules


class SelfEmploymentTax(ValueModel):
    """Phase 7: SE tax components and the above-the-line deduction."""

    self_employment_income: float = 0
    se_tax_base: float = 0
    social_security_tax: float = 0
    medicare_tax: float = 0
    additional_medicare_tax: float = 0
    total_se_tax: float = 0
    se_deduction: float = 0


def calculate_additional_medicare_tax(
    wages: float,
    se_tax_base: float,
    threshold: float,
    rate: float,
) -> float:
    """0.9% of combined wages and SE net earnings over the threshold."""
    excess = max(0.0, round_cents(wages + se_tax_base - threshold))
    return multiply(excess, rate)


def calculate_self_employment_tax(
    non_employee_compensation: float,
    wages: float,
    filing_status: FilingStatus,
    rules: TaxRules,
) -> SelfEmploymentTax:
    """Calculate SE tax and the deductible half.

    Args:
        non_employee_compensation: 1099-NEC box 1 total
        wages: W-2 box 1 total (counts toward the Additional Medicare threshold)
        filing_status: Engine filing status
        rules: Tax rules for the year

    Returns:
        SelfEmploymentTax. Without SE income only Additional Medicare Tax on
        wages over the threshold can be nonzero.
    """
    se = rules.self_employment
    base = multiply(max(0.0, non_employee_compensation), se.net_earnings_factor)
    social_security_tax = multiply(min(base, rules.social_security.wage_cap), se.social_security_rate)
    medicare_tax = multiply(base, se.medicare_rate)
    additional_medicare_tax = calculate_additional_medicare_tax(
        wages,
        base,
        rules.for_status(filing_status).additional_medicare_threshold,
        rules.additional_medicare_tax_rate,
    )

    return SelfEmploymentTax(
        self_employment_income=round_cents(max(0.0, non_employee_compensation)),
        se_tax_base=base,
        social_security_tax=social_security_tax,
        medicare_tax=medicare_tax,
        additional_medicare_tax=additional_medicare_tax,
        total_se_tax=sum_cents(social_security_tax, medicare_tax, additional_medicare_tax),
        se_deduction=multiply(sum_cents(social_security_tax, medicare_tax), 0.5),
    )
