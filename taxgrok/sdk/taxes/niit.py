"""Net Investment Income Tax (Form 8960).

3.8% of the lesser of net investment income or the amount by which MAGI
exceeds the filing status threshold. MAGI is AGI here (no foreign earned
income exclusion is modeled).
"""

from ..filing_status import FilingStatus
from ..schemas import ValueModel
from .money import multiply, round_cents, sum_cents
from .schemas import TaxRules


class InvestmentTax(ValueModel):
    """Phase 8: NIIT inputs and result."""

    net_investment_income: float = 0
    modified_agi: float = 0
    niit_threshold: float = 0
    niit_tax: float = 0


def net_investment_income(
    interest: float,
    dividends: float,
    capital_gains: float,
    rental_royalties: float,
) -> float:
    """Sum the investment income categories the engine tracks."""
    return sum_cents(interest, dividends, capital_gains, rental_royalties)


def calculate_niit(
    investment_income: float,
    modified_agi: float,
    filing_status: FilingStatus,
    rules: TaxRules,
) -> InvestmentTax:
    """Calculate NIIT. Zero unless MAGI is strictly above the threshold."""
    threshold = round_cents(rules.for_status(filing_status).niit_threshold)
    investment_income = max(0.0, round_cents(investment_income))

    niit_tax = 0.0
    if modified_agi > threshold:
        excess = round_cents(modified_agi - threshold)
        niit_tax = multiply(min(investment_income, excess), rules.niit_rate)

    return InvestmentTax(
        net_investment_income=investment_income,
        modified_agi=round_cents(modified_agi),
        niit_threshold=threshold,
        niit_tax=niit_tax,
    )
