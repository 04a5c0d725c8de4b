"""taxes - Federal tax rules and per-phase calculators.

Scope:
- Year-versioned rules (brackets, standard deductions, thresholds, rates)
- Progressive bracket tax with per-bracket breakdown
- Standard vs. itemized deduction selection
- Self-employment tax, NIIT, withholdings, credits, final balance

Constraints:
- Pure calculation - no document parsing (that's in extraction)
- No I/O other than reading tax_rules/{year}.yaml
- Every monetary output is rounded to cents (half-up) where it is produced

Usage:
    from taxgrok.sdk.taxes import load_tax_rules, calculate_bracket_tax

    rules = load_tax_rules(2025)
    result = calculate_bracket_tax(44250, rules.single.tax_brackets)
"""

from .schemas import TaxRules, FilingStatusRules, TaxBracket

from .rules import (
    DEFAULT_TAX_YEAR,
    TaxRulesError,
    get_available_years,
    load_tax_rules,
)

from .money import round_cents, multiply, sum_cents, round_rate

from .brackets import (
    BracketBreakdownEntry,
    BracketTaxResult,
    calculate_bracket_tax,
    format_bracket_range,
)

from .deductions import DeductionDetermination, resolve_deduction

from .self_employment import (
    SelfEmploymentTax,
    calculate_self_employment_tax,
    calculate_additional_medicare_tax,
)

from .niit import InvestmentTax, calculate_niit, net_investment_income

from .withholdings import (
    NonrefundableCredits,
    RefundableCredits,
    WithholdingsAndCredits,
    aggregate_withholdings,
    calculate_nonrefundable_credits,
    calculate_refundable_credits,
)

from .balance import FinalBalance, resolve_final_balance

__all__ = [
    # Rules
    "TaxRules",
    "FilingStatusRules",
    "TaxBracket",
    "DEFAULT_TAX_YEAR",
    "TaxRulesError",
    "get_available_years",
    "load_tax_rules",
    # Rounding
    "round_cents",
    "multiply",
    "sum_cents",
    "round_rate",
    # Calculators
    "BracketBreakdownEntry",
    "BracketTaxResult",
    "calculate_bracket_tax",
    "format_bracket_range",
    "DeductionDetermination",
    "resolve_deduction",
    "SelfEmploymentTax",
    "calculate_self_employment_tax",
    "calculate_additional_medicare_tax",
    "InvestmentTax",
    "calculate_niit",
    "net_investment_income",
    "NonrefundableCredits",
    "RefundableCredits",
    "WithholdingsAndCredits",
    "aggregate_withholdings",
    "calculate_nonrefundable_credits",
    "calculate_refundable_credits",
    "FinalBalance",
    "resolve_final_balance",
]
