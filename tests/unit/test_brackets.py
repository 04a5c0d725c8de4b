"""Tests for progressive bracket tax."""

import pytest

from taxgrok.sdk.filing_status import FilingStatus
from taxgrok.sdk.taxes import calculate_bracket_tax, format_bracket_range, load_tax_rules


@pytest.fixture(scope="module")
def rules_2025():
    return load_tax_rules(2025)


def brackets_for(rules, status):
    return rules.for_status(status).tax_brackets


class TestFormatBracketRange:

    def test_bounded(self):
        assert format_bracket_range(0, 11925) == "$0 - $11,925"

    def test_open_ended(self):
        assert format_bracket_range(626350, None) == "Over $626,350"


class TestCalculateBracketTax:
    """Tests against 2025 brackets."""

    def test_two_brackets_single(self, rules_2025):
        result = calculate_bracket_tax(44250, brackets_for(rules_2025, FilingStatus.SINGLE))

        assert result.total_tax == 5071.50
        assert result.marginal_rate == 0.12
        assert len(result.breakdown) == 2

        first, second = result.breakdown
        assert first.bracket_range == "$0 - $11,925"
        assert first.taxable_in_this_bracket == 11925
        assert first.tax_from_this_bracket == 1192.50
        assert first.cumulative_tax == 1192.50
        assert second.bracket_range == "$11,925 - $48,475"
        assert second.taxable_in_this_bracket == 32325
        assert second.tax_from_this_bracket == 3879.00
        assert second.cumulative_tax == 5071.50

    def test_single_100k(self, rules_2025):
        result = calculate_bracket_tax(100000, brackets_for(rules_2025, FilingStatus.SINGLE))

        assert result.total_tax == 16914.00
        assert result.marginal_rate == 0.22

    def test_married_jointly_100k(self, rules_2025):
        result = calculate_bracket_tax(100000, brackets_for(rules_2025, FilingStatus.MARRIED_FILING_JOINTLY))

        assert result.total_tax == 11828.00

    def test_top_bracket_open_ended(self, rules_2025):
        result = calculate_bracket_tax(1000000, brackets_for(rules_2025, FilingStatus.SINGLE))

        last = result.breakdown[-1]
        assert len(result.breakdown) == 7
        assert last.bracket_range == "Over $626,350"
        assert last.rate == 0.37
        assert last.taxable_in_this_bracket == 373650
        assert result.marginal_rate == 0.37

    def test_zero_income(self, rules_2025):
        result = calculate_bracket_tax(0, brackets_for(rules_2025, FilingStatus.SINGLE))

        assert result.breakdown == ()
        assert result.total_tax == 0
        assert result.marginal_rate == 0

    def test_income_on_boundary_stays_in_lower_bracket(self, rules_2025):
        result = calculate_bracket_tax(11925, brackets_for(rules_2025, FilingStatus.SINGLE))

        assert len(result.breakdown) == 1
        assert result.total_tax == 1192.50
        assert result.marginal_rate == 0.10

    def test_negative_income_rejected(self, rules_2025):
        with pytest.raises(ValueError):
            calculate_bracket_tax(-1, brackets_for(rules_2025, FilingStatus.SINGLE))

    def test_breakdown_ascends_by_rate(self, rules_2025):
        result = calculate_bracket_tax(800000, brackets_for(rules_2025, FilingStatus.HEAD_OF_HOUSEHOLD))
        rates = [entry.rate for entry in result.breakdown]

        assert rates == sorted(rates)

    @pytest.mark.parametrize("status", list(FilingStatus))
    def test_breakdown_sums_to_total(self, rules_2025, status):
        """Bracket taxes add up to the total for every status, across and past every boundary."""
        brackets = brackets_for(rules_2025, status)
        incomes = [0, 0.01, 1, 999.99, 1234567.89]
        for bracket in brackets:
            incomes += [bracket.over, bracket.over + 0.01, bracket.over + 333.33]

        for income in incomes:
            result = calculate_bracket_tax(income, brackets)
            assert sum(e.tax_from_this_bracket for e in result.breakdown) == pytest.approx(result.total_tax, abs=0.01)
            assert sum(e.taxable_in_this_bracket for e in result.breakdown) == pytest.approx(income, abs=0.01)
