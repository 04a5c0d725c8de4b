"""Withholding aggregation and credits.

Credits are placeholders: no credit is computed yet (child tax credit, EIC
and education credits need dependent and education data the documents do
not carry), so every credit amount is zero. The records exist so the phase
outputs and Form 1040 mapping have stable fields to fill in.
"""

from ..schemas import ValueModel, WithholdingsData
from .money import round_cents, sum_cents


class NonrefundableCredits(ValueModel):
    child_tax_credit: float = 0
    other_credits: float = 0
    total: float = 0


class RefundableCredits(ValueModel):
    earned_income_credit: float = 0
    additional_child_tax_credit: float = 0
    american_opportunity_credit: float = 0
    total: float = 0


class WithholdingsAndCredits(ValueModel):
    """Phase 10: payments already made through withholding, plus refundable credits."""

    federal_income_tax: float = 0
    state_tax: float = 0
    social_security_tax: float = 0
    medicare_tax: float = 0
    total_withholdings: float = 0
    refundable_credits: RefundableCredits = RefundableCredits()


def aggregate_withholdings(withholdings: WithholdingsData) -> WithholdingsAndCredits:
    """Sum federal, state, Social Security and Medicare withholding."""
    federal = round_cents(withholdings.federal_tax)
    state = round_cents(withholdings.state_tax)
    social_security = round_cents(withholdings.social_security_tax)
    medicare = round_cents(withholdings.medicare_tax)

    return WithholdingsAndCredits(
        federal_income_tax=federal,
        state_tax=state,
        social_security_tax=social_security,
        medicare_tax=medicare,
        total_withholdings=sum_cents(federal, state, social_security, medicare),
        refundable_credits=calculate_refundable_credits(),
    )


def calculate_nonrefundable_credits(tax_before_credits: float) -> NonrefundableCredits:
    """Nonrefundable credits, capped at the tax they offset."""
    child_tax_credit = 0.0
    other_credits = 0.0
    total = min(sum_cents(child_tax_credit, other_credits), max(0.0, tax_before_credits))
    return NonrefundableCredits(
        child_tax_credit=child_tax_credit,
        other_credits=other_credits,
        total=round_cents(total),
    )


def calculate_refundable_credits() -> RefundableCredits:
    return RefundableCredits()
