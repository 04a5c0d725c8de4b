"""Final balance: refund or amount owed."""

import math
from typing import Literal

from ..schemas import ValueModel
from .money import round_cents, sum_cents


class FinalBalance(ValueModel):
    """Phase 11. At most one of refund_amount / balance_due is nonzero."""

    total_tax: float = 0
    total_withholdings: float = 0
    estimated_tax_payments: float = 0
    refundable_credits: float = 0
    total_payments: float = 0
    refund_amount: float = 0
    balance_due: float = 0
    final_status: Literal["refund", "owed"] = "refund"


def resolve_final_balance(
    total_tax: float,
    total_withholdings: float,
    estimated_tax_payments: float = 0,
    refundable_credits: float = 0,
) -> FinalBalance:
    """Compare total payments to total tax.

    Payments >= tax is a refund (of zero when they are exactly equal);
    otherwise the difference is owed.

    Raises:
        ValueError: If estimated_tax_payments is negative or not finite
    """
    if not math.isfinite(estimated_tax_payments) or estimated_tax_payments < 0:
        raise ValueError(f"estimated_tax_payments must be a non-negative amount, got {estimated_tax_payments}")

    total_tax = round_cents(total_tax)
    total_payments = sum_cents(total_withholdings, estimated_tax_payments, refundable_credits)

    if total_payments >= total_tax:
        status = "refund"
        refund_amount = round_cents(total_payments - total_tax)
        balance_due = 0.0
    else:
        status = "owed"
        refund_amount = 0.0
        balance_due = round_cents(total_tax - total_payments)

    return FinalBalance(
        total_tax=total_tax,
        total_withholdings=round_cents(total_withholdings),
        estimated_tax_payments=round_cents(estimated_tax_payments),
        refundable_credits=round_cents(refundable_credits),
        total_payments=total_payments,
        refund_amount=refund_amount,
        balance_due=balance_due,
        final_status=status,
    )
