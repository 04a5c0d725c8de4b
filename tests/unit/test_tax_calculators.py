"""Tests for the per-phase tax calculators.

Deduction selection, self-employment tax, NIIT, withholdings and the final
balance. Expected values use 2025 rules.
"""

import pytest

from taxgrok.sdk.filing_status import FilingStatus
from taxgrok.sdk.schemas import WithholdingsData
from taxgrok.sdk.taxes import (
    aggregate_withholdings,
    calculate_additional_medicare_tax,
    calculate_niit,
    calculate_nonrefundable_credits,
    calculate_self_employment_tax,
    load_tax_rules,
    net_investment_income,
    resolve_deduction,
    resolve_final_balance,
)


@pytest.fixture(scope="module")
def rules():
    return load_tax_rules(2025)


class TestResolveDeduction:

    def test_standard_by_default(self, rules):
        result = resolve_deduction(FilingStatus.SINGLE, False, 0, rules)

        assert result.standard_deduction == 15750
        assert result.selected_deduction == 15750
        assert result.use_standard_deduction is True

    @pytest.mark.parametrize("status, amount", [
        (FilingStatus.MARRIED_FILING_JOINTLY, 31500),
        (FilingStatus.MARRIED_FILING_SEPARATELY, 15750),
        (FilingStatus.HEAD_OF_HOUSEHOLD, 23625),
        (FilingStatus.QUALIFYING_WIDOW, 31500),
    ])
    def test_standard_amount_per_status(self, rules, status, amount):
        assert resolve_deduction(status, False, 0, rules).standard_deduction == amount

    def test_itemized_when_opted_in_and_larger(self, rules):
        result = resolve_deduction(FilingStatus.MARRIED_FILING_JOINTLY, True, 40000, rules)

        assert result.selected_deduction == 40000
        assert result.itemized_deduction == 40000
        assert result.use_standard_deduction is False

    def test_tie_favors_standard(self, rules):
        result = resolve_deduction(FilingStatus.SINGLE, True, 15750, rules)

        assert result.use_standard_deduction is True
        assert result.selected_deduction == 15750

    def test_smaller_itemized_uses_standard(self, rules):
        assert resolve_deduction(FilingStatus.SINGLE, True, 9000, rules).selected_deduction == 15750

    def test_itemized_ignored_without_opt_in(self, rules):
        result = resolve_deduction(FilingStatus.SINGLE, False, 50000, rules)

        assert result.selected_deduction == 15750
        assert result.use_standard_deduction is True

    def test_negative_itemized_rejected(self, rules):
        with pytest.raises(ValueError):
            resolve_deduction(FilingStatus.SINGLE, True, -1, rules)

    @pytest.mark.parametrize("amount", [float("nan"), float("inf")])
    def test_non_finite_itemized_rejected(self, rules, amount):
        with pytest.raises(ValueError):
            resolve_deduction(FilingStatus.SINGLE, True, amount, rules)


class TestSelfEmploymentTax:

    def test_no_se_income(self, rules):
        result = calculate_self_employment_tax(0, 80000, FilingStatus.SINGLE, rules)

        assert result.total_se_tax == 0
        assert result.se_deduction == 0

    def test_nec_50k(self, rules):
        result = calculate_self_employment_tax(50000, 0, FilingStatus.SINGLE, rules)

        assert result.se_tax_base == 46175.00
        assert result.social_security_tax == 5725.70
        assert result.medicare_tax == 1339.08
        assert result.additional_medicare_tax == 0
        assert result.total_se_tax == 7064.78
        assert result.se_deduction == 3532.39

    def test_social_security_capped_at_wage_base(self, rules):
        result = calculate_self_employment_tax(300000, 0, FilingStatus.SINGLE, rules)

        assert result.se_tax_base == 277050.00
        assert result.social_security_tax == 21836.40  # 176,100 x 12.4%
        assert result.medicare_tax == 8034.45
        assert result.additional_medicare_tax == 693.45
        assert result.total_se_tax == 30564.30

    def test_deduction_excludes_additional_medicare(self, rules):
        result = calculate_self_employment_tax(300000, 0, FilingStatus.SINGLE, rules)

        assert result.se_deduction == 14935.43

    def test_wages_count_toward_additional_medicare_threshold(self, rules):
        result = calculate_self_employment_tax(50000, 180000, FilingStatus.SINGLE, rules)

        assert result.additional_medicare_tax == 235.58  # (180,000 + 46,175 - 200,000) x 0.9%

    def test_married_jointly_threshold(self, rules):
        result = calculate_self_employment_tax(50000, 180000, FilingStatus.MARRIED_FILING_JOINTLY, rules)

        assert result.additional_medicare_tax == 0

    def test_wage_only_additional_medicare(self, rules):
        result = calculate_self_employment_tax(0, 300000, FilingStatus.SINGLE, rules)

        assert result.se_tax_base == 0
        assert result.social_security_tax == 0
        assert result.medicare_tax == 0
        assert result.additional_medicare_tax == 900.00  # (300,000 - 200,000) x 0.9%
        assert result.total_se_tax == 900.00
        assert result.se_deduction == 0

    def test_first_dollar_of_nec_is_continuous(self, rules):
        without = calculate_self_employment_tax(0, 300000, FilingStatus.SINGLE, rules)
        with_nec = calculate_self_employment_tax(1, 300000, FilingStatus.SINGLE, rules)

        assert with_nec.additional_medicare_tax == 900.01  # (300,000 + 0.92 - 200,000) x 0.9%
        assert with_nec.total_se_tax - without.total_se_tax == pytest.approx(0.15, abs=0.02)

    def test_additional_medicare_below_threshold(self):
        assert calculate_additional_medicare_tax(100000, 50000, 200000, 0.009) == 0


class TestNetInvestmentIncomeTax:

    def test_net_investment_income(self):
        assert net_investment_income(1000, 2000.5, 300, 0) == 3300.5

    def test_nii_smaller_than_excess(self, rules):
        result = calculate_niit(30000, 280000, FilingStatus.SINGLE, rules)

        assert result.niit_threshold == 200000
        assert result.niit_tax == 1140.00

    def test_excess_smaller_than_nii(self, rules):
        result = calculate_niit(20000, 210000, FilingStatus.SINGLE, rules)

        assert result.niit_tax == 380.00

    def test_below_threshold(self, rules):
        assert calculate_niit(30000, 180000, FilingStatus.SINGLE, rules).niit_tax == 0

    def test_exactly_at_threshold(self, rules):
        assert calculate_niit(30000, 200000, FilingStatus.SINGLE, rules).niit_tax == 0

    @pytest.mark.parametrize("status, threshold", [
        (FilingStatus.MARRIED_FILING_JOINTLY, 250000),
        (FilingStatus.MARRIED_FILING_SEPARATELY, 125000),
        (FilingStatus.HEAD_OF_HOUSEHOLD, 200000),
        (FilingStatus.QUALIFYING_WIDOW, 250000),
    ])
    def test_thresholds_per_status(self, rules, status, threshold):
        assert calculate_niit(0, 0, status, rules).niit_threshold == threshold


class TestWithholdings:

    def test_aggregate(self):
        result = aggregate_withholdings(WithholdingsData(
            federal_tax=5000, state_tax=1000, social_security_tax=3100, medicare_tax=725,
        ))

        assert result.federal_income_tax == 5000
        assert result.total_withholdings == 9825
        assert result.refundable_credits.total == 0

    def test_nonrefundable_credits_are_zero(self):
        credits = calculate_nonrefundable_credits(5000)

        assert credits.total == 0
        assert credits.child_tax_credit == 0


class TestFinalBalance:

    def test_owed(self):
        result = resolve_final_balance(5071.50, 5000)

        assert result.final_status == "owed"
        assert result.balance_due == 71.50
        assert result.refund_amount == 0

    def test_refund(self):
        result = resolve_final_balance(5000, 5071.50)

        assert result.final_status == "refund"
        assert result.refund_amount == 71.50
        assert result.balance_due == 0

    def test_exactly_equal_is_zero_refund(self):
        result = resolve_final_balance(5000, 5000)

        assert result.final_status == "refund"
        assert result.refund_amount == 0
        assert result.balance_due == 0

    def test_estimated_payments_count(self):
        result = resolve_final_balance(10512.39, 0, estimated_tax_payments=12000)

        assert result.total_payments == 12000
        assert result.refund_amount == 1487.61

    def test_negative_estimated_payments_rejected(self):
        with pytest.raises(ValueError):
            resolve_final_balance(1000, 0, estimated_tax_payments=-5)

    @pytest.mark.parametrize("payments", [float("nan"), float("inf")])
    def test_non_finite_estimated_payments_rejected(self, payments):
        with pytest.raises(ValueError):
            resolve_final_balance(1000, 0, estimated_tax_payments=payments)

    @pytest.mark.parametrize("tax, withheld", [(0, 0), (100, 99.99), (99.99, 100), (12345.67, 12345.67)])
    def test_refund_and_balance_due_exclusive(self, tax, withheld):
        result = resolve_final_balance(tax, withheld)

        assert result.refund_amount == 0 or result.balance_due == 0
        assert result.refund_amount >= 0 and result.balance_due >= 0
