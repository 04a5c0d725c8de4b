"""Comprehensive federal tax engine.

Runs extracted document data through an ordered 11-phase pipeline and
returns a ComprehensiveTaxResult holding every phase's typed record, a
summary, and metadata.

Phases (serialized names):
    phase1_IncomeCollection        copy income categories from the documents
    phase2_IncomeAggregation       total ordinary income
    phase3_AdjustedGrossIncome     total income less above-the-line deductions
    phase4_DeductionDetermination  standard vs. itemized
    phase5_TaxableIncome           AGI less deduction, floored at 0
    phase6_RegularTax              progressive bracket tax
    phase7_SelfEmploymentTax       Schedule SE + Additional Medicare on SE
    phase8_InvestmentTax           NIIT
    phase9_TotalTaxLiability       regular + SE + NIIT - nonrefundable credits
    phase10_WithholdingsAndCredits withholding totals, refundable credits
    phase11_FinalBalance           refund or balance due

AGI depends on the SE deduction, so execution order is
1, 2, 7, 3, 4, 5, 6, 8, 9, 10, 11. The serialized order is always 1-11.

The engine is pure: no I/O beyond loading the year's tax rules (done once,
in the constructor), no state carried between calls.
"""

import json
import logging
from typing import Optional, Union

from pydantic import Field

from .filing_status import FilingStatus, normalize_filing_status
from .schemas import TaxDocumentData, ValueModel
from .taxes import (
    BracketBreakdownEntry,
    DeductionDetermination,
    FinalBalance,
    InvestmentTax,
    NonrefundableCredits,
    SelfEmploymentTax,
    TaxRules,
    WithholdingsAndCredits,
    aggregate_withholdings,
    calculate_bracket_tax,
    calculate_niit,
    calculate_nonrefundable_credits,
    calculate_self_employment_tax,
    load_tax_rules,
    net_investment_income,
    resolve_deduction,
    resolve_final_balance,
    round_cents,
    round_rate,
    sum_cents,
)


class TaxCalculationError(Exception):
    """Raised when any phase of the tax calculation fails."""
    pass


# =============================================================================
# Phase records
# =============================================================================


class IncomeCollection(ValueModel):
    w2_income: float = 0
    form_1099_int: float = Field(default=0, alias="form1099INT")
    form_1099_div: float = Field(default=0, alias="form1099DIV")
    form_1099_nec: float = Field(default=0, alias="form1099NEC")
    form_1099_misc: float = Field(default=0, alias="form1099MISC")
    capital_gains: float = 0
    qualified_dividends: float = 0
    tax_exempt_interest: float = 0
    rental_royalties: float = 0
    other_income: float = 0


class IncomeAggregation(ValueModel):
    total_ordinary_income: float = 0


class AdjustedGrossIncome(ValueModel):
    total_ordinary_income: float = 0
    capital_gains: float = 0
    total_income: float = 0
    above_the_line_deductions: float = 0
    adjusted_gross_income: float = 0


class TaxableIncome(ValueModel):
    agi: float = 0
    deduction: float = 0
    taxable_income: float = 0


class RegularTax(ValueModel):
    taxable_income: float = 0
    bracket_breakdown: tuple[BracketBreakdownEntry, ...] = ()
    ordinary_income_tax: float = 0
    marginal_rate: float = 0


class TotalTaxLiability(ValueModel):
    regular_tax: float = 0
    self_employment_tax: float = 0
    niit_tax: float = 0
    tax_before_credits: float = 0
    nonrefundable_credits: NonrefundableCredits = NonrefundableCredits()
    total_tax: float = 0


class TaxPhases(ValueModel):
    """All phase records, serialized in phase order."""

    income_collection: IncomeCollection = Field(alias="phase1_IncomeCollection")
    income_aggregation: IncomeAggregation = Field(alias="phase2_IncomeAggregation")
    adjusted_gross_income: AdjustedGrossIncome = Field(alias="phase3_AdjustedGrossIncome")
    deduction_determination: DeductionDetermination = Field(alias="phase4_DeductionDetermination")
    taxable_income: TaxableIncome = Field(alias="phase5_TaxableIncome")
    regular_tax: RegularTax = Field(alias="phase6_RegularTax")
    self_employment_tax: SelfEmploymentTax = Field(alias="phase7_SelfEmploymentTax")
    investment_tax: InvestmentTax = Field(alias="phase8_InvestmentTax")
    total_tax_liability: TotalTaxLiability = Field(alias="phase9_TotalTaxLiability")
    withholdings_and_credits: WithholdingsAndCredits = Field(alias="phase10_WithholdingsAndCredits")
    final_balance: FinalBalance = Field(alias="phase11_FinalBalance")


class TaxSummary(ValueModel):
    adjusted_gross_income: float = 0
    taxable_income: float = 0
    total_tax_liability: float = 0
    effective_tax_rate: float = 0
    marginal_tax_rate: float = 0


class TaxMetadata(ValueModel):
    tax_year: int
    filing_status: FilingStatus
    standard_deduction_used: bool


class ComprehensiveTaxResult(ValueModel):
    phases: TaxPhases
    summary: TaxSummary
    metadata: TaxMetadata

    def to_dict(self) -> dict:
        """Serialize with camelCase names and phase keys."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


# =============================================================================
# Engine
# =============================================================================


class TaxEngine:
    """Runs the 11-phase federal tax pipeline for one tax year.

    Args:
        tax_year: Tax year (defaults to the tax_year setting, else DEFAULT_TAX_YEAR)
        rules: Preloaded TaxRules (skips loading; tax_year is taken from them)
        logger: Logger for phase traces (defaults to this module's logger)

    Raises:
        FileNotFoundError: If no rules file exists for tax_year
        TaxRulesError: If the rules file is invalid
    """

    def __init__(
        self,
        tax_year: Optional[int] = None,
        rules: Optional[TaxRules] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if rules is None:
            if tax_year is None:
                from .config import get_default_tax_year
                tax_year = get_default_tax_year()
            rules = load_tax_rules(tax_year)
        self.rules = rules
        self.tax_year = rules.tax_year
        self.logger = logger if logger is not None else logging.getLogger(__name__)

    def calculate(
        self,
        tax_data: Union[TaxDocumentData, dict],
        filing_status: Union[str, FilingStatus, None] = FilingStatus.SINGLE,
        use_itemized_deductions: bool = False,
        itemized_deduction_amount: float = 0,
        estimated_tax_payments: float = 0,
    ) -> ComprehensiveTaxResult:
        """Calculate the comprehensive tax result.

        Args:
            tax_data: Output of extract_tax_data (or its serialized form)
            filing_status: Engine or UI token; unknown values mean single
            use_itemized_deductions: Opt in to itemizing
            itemized_deduction_amount: Itemized total (used only if larger)
            estimated_tax_payments: Estimated payments made for the year

        Returns:
            ComprehensiveTaxResult

        Raises:
            TaxCalculationError: If any phase fails (original error chained)
        """
        try:
            if not isinstance(tax_data, TaxDocumentData):
                tax_data = TaxDocumentData.model_validate(tax_data)
            return self._run(
                tax_data,
                normalize_filing_status(filing_status),
                use_itemized_deductions,
                itemized_deduction_amount,
                estimated_tax_payments,
            )
        except Exception as e:
            self.logger.error(f"Tax calculation failed: {type(e).__name__}: {e}")
            raise TaxCalculationError("Tax calculation failed") from e

    def _trace(self, phase: str, record: ValueModel) -> None:
        self.logger.debug(
            f"{phase} complete",
            extra={"phase": phase, "outputs": record.model_dump(mode="json", by_alias=True)},
        )

    def _run(
        self,
        tax_data: TaxDocumentData,
        filing_status: FilingStatus,
        use_itemized_deductions: bool,
        itemized_deduction_amount: float,
        estimated_tax_payments: float,
    ) -> ComprehensiveTaxResult:
        rules = self.rules
        income = tax_data.income

        # Phase 1: income categories, copied as extracted
        phase1 = IncomeCollection(
            w2_income=round_cents(income.wages),
            form_1099_int=round_cents(income.interest),
            form_1099_div=round_cents(income.dividends),
            form_1099_nec=round_cents(income.non_employee_compensation),
            form_1099_misc=round_cents(income.miscellaneous_income),
            capital_gains=round_cents(income.capital_gains),
            qualified_dividends=round_cents(income.qualified_dividends),
            tax_exempt_interest=round_cents(income.tax_exempt_interest),
            rental_royalties=round_cents(income.rental_royalties),
            other_income=round_cents(income.other),
        )
        self._trace("phase1_IncomeCollection", phase1)

        # Phase 2: qualified dividends are already inside form1099DIV and
        # tax-exempt interest is not income
        phase2 = IncomeAggregation(total_ordinary_income=sum_cents(
            phase1.w2_income,
            phase1.form_1099_int,
            phase1.form_1099_div,
            phase1.form_1099_nec,
            phase1.form_1099_misc,
            phase1.rental_royalties,
            phase1.other_income,
        ))
        self._trace("phase2_IncomeAggregation", phase2)

        # Phase 7 runs early: its deduction feeds AGI
        phase7 = calculate_self_employment_tax(
            phase1.form_1099_nec, phase1.w2_income, filing_status, rules
        )
        self._trace("phase7_SelfEmploymentTax", phase7)

        # Phase 3
        total_income = sum_cents(phase2.total_ordinary_income, phase1.capital_gains)
        phase3 = AdjustedGrossIncome(
            total_ordinary_income=phase2.total_ordinary_income,
            capital_gains=phase1.capital_gains,
            total_income=total_income,
            above_the_line_deductions=phase7.se_deduction,
            adjusted_gross_income=round_cents(total_income - phase7.se_deduction),
        )
        self._trace("phase3_AdjustedGrossIncome", phase3)
        agi = phase3.adjusted_gross_income

        # Phase 4
        phase4 = resolve_deduction(
            filing_status, use_itemized_deductions, itemized_deduction_amount, rules
        )
        self._trace("phase4_DeductionDetermination", phase4)

        # Phase 5
        phase5 = TaxableIncome(
            agi=agi,
            deduction=phase4.selected_deduction,
            taxable_income=max(0.0, round_cents(agi - phase4.selected_deduction)),
        )
        self._trace("phase5_TaxableIncome", phase5)

        # Phase 6
        bracket_tax = calculate_bracket_tax(
            phase5.taxable_income, rules.for_status(filing_status).tax_brackets
        )
        phase6 = RegularTax(
            taxable_income=phase5.taxable_income,
            bracket_breakdown=bracket_tax.breakdown,
            ordinary_income_tax=bracket_tax.total_tax,
            marginal_rate=bracket_tax.marginal_rate,
        )
        self._trace("phase6_RegularTax", phase6)

        # Phase 8: MAGI is AGI
        phase8 = calculate_niit(
            net_investment_income(
                phase1.form_1099_int,
                phase1.form_1099_div,
                phase1.capital_gains,
                phase1.rental_royalties,
            ),
            agi,
            filing_status,
            rules,
        )
        self._trace("phase8_InvestmentTax", phase8)

        # Phase 9
        tax_before_credits = sum_cents(
            phase6.ordinary_income_tax, phase7.total_se_tax, phase8.niit_tax
        )
        credits = calculate_nonrefundable_credits(tax_before_credits)
        phase9 = TotalTaxLiability(
            regular_tax=phase6.ordinary_income_tax,
            self_employment_tax=phase7.total_se_tax,
            niit_tax=phase8.niit_tax,
            tax_before_credits=tax_before_credits,
            nonrefundable_credits=credits,
            total_tax=max(0.0, round_cents(tax_before_credits - credits.total)),
        )
        self._trace("phase9_TotalTaxLiability", phase9)

        # Phase 10
        phase10 = aggregate_withholdings(tax_data.withholdings)
        self._trace("phase10_WithholdingsAndCredits", phase10)

        # Phase 11
        phase11 = resolve_final_balance(
            phase9.total_tax,
            phase10.total_withholdings,
            estimated_tax_payments,
            phase10.refundable_credits.total,
        )
        self._trace("phase11_FinalBalance", phase11)

        result = ComprehensiveTaxResult(
            phases=TaxPhases(
                income_collection=phase1,
                income_aggregation=phase2,
                adjusted_gross_income=phase3,
                deduction_determination=phase4,
                taxable_income=phase5,
                regular_tax=phase6,
                self_employment_tax=phase7,
                investment_tax=phase8,
                total_tax_liability=phase9,
                withholdings_and_credits=phase10,
                final_balance=phase11,
            ),
            summary=TaxSummary(
                adjusted_gross_income=agi,
                taxable_income=phase5.taxable_income,
                total_tax_liability=phase9.total_tax,
                effective_tax_rate=round_rate(phase9.total_tax / agi) if agi > 0 else 0.0,
                marginal_tax_rate=phase6.marginal_rate,
            ),
            metadata=TaxMetadata(
                tax_year=self.tax_year,
                filing_status=filing_status,
                standard_deduction_used=phase4.use_standard_deduction,
            ),
        )
        self.logger.info(
            f"Tax {self.tax_year} ({filing_status.value}): AGI ${agi:,.2f}, "
            f"total tax ${phase9.total_tax:,.2f}, {phase11.final_status} "
            f"${max(phase11.refund_amount, phase11.balance_due):,.2f}"
        )
        return result


def calculate_comprehensive_tax(
    tax_data: Union[TaxDocumentData, dict],
    filing_status: Union[str, FilingStatus, None] = FilingStatus.SINGLE,
    use_itemized_deductions: bool = False,
    itemized_deduction_amount: float = 0,
    estimated_tax_payments: float = 0,
    tax_year: Optional[int] = None,
    rules: Optional[TaxRules] = None,
    logger: Optional[logging.Logger] = None,
) -> ComprehensiveTaxResult:
    """One-shot convenience wrapper around TaxEngine.calculate."""
    engine = TaxEngine(tax_year=tax_year, rules=rules, logger=logger)
    return engine.calculate(
        tax_data,
        filing_status=filing_status,
        use_itemized_deductions=use_itemized_deductions,
        itemized_deduction_amount=itemized_deduction_amount,
        estimated_tax_payments=estimated_tax_payments,
    )
