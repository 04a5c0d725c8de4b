"""Progressive bracket tax.

Given an ascending table of (over, rate) brackets ending in an open-ended top
bracket, taxes each slice of income at its bracket's rate. Each slice's tax is
rounded to cents as it is produced, and cumulative tax is the running sum of
the rounded slices, so the breakdown always adds up to the total exactly.
"""

from typing import Optional, Sequence

from ..schemas import ValueModel
from .money import multiply, round_cents, sum_cents
from .schemas import TaxBracket


class BracketBreakdownEntry(ValueModel):
    """Tax assessed within one bracket."""

    bracket_range: str
    rate: float
    taxable_in_this_bracket: float
    tax_from_this_bracket: float
    cumulative_tax: float


class BracketTaxResult(ValueModel):
    breakdown: tuple[BracketBreakdownEntry, ...] = ()
    total_tax: float = 0
    marginal_rate: float = 0


def format_bracket_range(lower: float, upper: Optional[float]) -> str:
    """Format a bracket range for display ("$0 - $11,925", "Over $626,350")."""
    if upper is None:
        return f"Over ${lower:,.0f}"
    return f"${lower:,.0f} - ${upper:,.0f}"


def calculate_bracket_tax(taxable_income: float, tax_brackets: Sequence[TaxBracket]) -> BracketTaxResult:
    """Calculate federal income tax and its per-bracket breakdown.

    Args:
        taxable_income: Non-negative taxable income (Form 1040 taxable income)
        tax_brackets: Ascending brackets for the filing status, first at 0

    Returns:
        BracketTaxResult with the brackets actually reached, the total tax
        (the last entry's cumulative tax) and the marginal rate (rate of the
        bracket holding the last dollar; 0 when there is no taxable income)
    """
    if taxable_income < 0:
        raise ValueError(f"taxable_income must be non-negative, got {taxable_income}")

    sorted_brackets = sorted(tax_brackets, key=lambda b: b.over)
    entries = []
    cumulative_tax = 0.0

    for index, bracket in enumerate(sorted_brackets):
        if taxable_income <= bracket.over:
            break

        next_bracket = sorted_brackets[index + 1] if index + 1 < len(sorted_brackets) else None
        upper = next_bracket.over if next_bracket else None

        ceiling = taxable_income if upper is None else min(taxable_income, upper)
        income_in_this_bracket = round_cents(ceiling - bracket.over)
        tax_in_this_bracket = multiply(income_in_this_bracket, bracket.rate)
        cumulative_tax = sum_cents(cumulative_tax, tax_in_this_bracket)

        entries.append(BracketBreakdownEntry(
            bracket_range=format_bracket_range(bracket.over, upper),
            rate=bracket.rate,
            taxable_in_this_bracket=income_in_this_bracket,
            tax_from_this_bracket=tax_in_this_bracket,
            cumulative_tax=cumulative_tax,
        ))

    return BracketTaxResult(
        breakdown=tuple(entries),
        total_tax=entries[-1].cumulative_tax if entries else 0.0,
        marginal_rate=entries[-1].rate if entries else 0.0,
    )
