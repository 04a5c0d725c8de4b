"""Standard vs. itemized deduction selection."""

import math

from ..filing_status import FilingStatus
from ..schemas import ValueModel
from .money import round_cents
from .schemas import TaxRules


class DeductionDetermination(ValueModel):
    """Phase 4: which deduction applies and how much it is."""

    standard_deduction: float
    itemized_deduction: float
    selected_deduction: float
    use_standard_deduction: bool


def resolve_deduction(
    filing_status: FilingStatus,
    use_itemized_deductions: bool,
    itemized_amount: float,
    rules: TaxRules,
) -> DeductionDetermination:
    """Select the standard or itemized deduction.

    Itemized is used only when the caller opted in and the itemized amount
    is strictly greater than the standard deduction; ties favor standard.

    Raises:
        ValueError: If itemized_amount is negative or not finite
    """
    if not math.isfinite(itemized_amount) or itemized_amount < 0:
        raise ValueError(f"itemized_amount must be a non-negative amount, got {itemized_amount}")

    standard = round_cents(rules.for_status(filing_status).standard_deduction)
    itemized = round_cents(itemized_amount)
    use_itemized = use_itemized_deductions and itemized > standard

    return DeductionDetermination(
        standard_deduction=standard,
        itemized_deduction=itemized,
        selected_deduction=itemized if use_itemized else standard,
        use_standard_deduction=not use_itemized,
    )
