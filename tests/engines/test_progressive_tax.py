"""
Tests for the progressive income tax engine.
"""

from decimal import Decimal

import pytest

from hris_config.schema import TaxBracketDef
from hris_engines.tax import calculate_progressive_tax

BRACKETS = (
    TaxBracketDef(upper_limit=Decimal("5000000"), rate=Decimal("0.05")),
    TaxBracketDef(upper_limit=Decimal("20000000"), rate=Decimal("0.15")),
    TaxBracketDef(upper_limit=None, rate=Decimal("0.25")),
)
THRESHOLD = Decimal("4500000")


class TestBracketAccumulation:

    def test_within_first_bracket(self):
        result = calculate_progressive_tax(Decimal("7500000"), BRACKETS, THRESHOLD)
        # taxable 3,000,000 at 5%
        assert result.taxable_amount == Decimal("3000000")
        assert result.tax == Decimal("150000")
        assert len(result.slices) == 1

    def test_spans_two_brackets(self):
        result = calculate_progressive_tax(Decimal("11000000"), BRACKETS, THRESHOLD)
        assert result.tax == Decimal("475000")
        assert result.slices[0].lower_limit == Decimal("0")
        assert result.slices[1].lower_limit == Decimal("5000000")
        assert result.slices[1].upper_limit == Decimal("20000000")

    def test_reaches_unbounded_bracket(self):
        result = calculate_progressive_tax(Decimal("34500000"), BRACKETS, THRESHOLD)
        # taxable 30M: 5M*5% + 15M*15% + 10M*25%
        assert result.tax == Decimal("5000000")
        assert [s.rate for s in result.slices] == [
            Decimal("0.05"), Decimal("0.15"), Decimal("0.25"),
        ]
        assert result.slices[-1].upper_limit is None
        assert result.marginal_rate == Decimal("0.25")

    def test_exact_bracket_ceiling(self):
        result = calculate_progressive_tax(Decimal("9500000"), BRACKETS, THRESHOLD)
        assert result.taxable_amount == Decimal("5000000")
        assert result.tax == Decimal("250000")
        assert len(result.slices) == 1

    def test_slices_sum_to_taxable(self):
        result = calculate_progressive_tax(Decimal("123456789"), BRACKETS, THRESHOLD)
        assert sum(s.taxable_amount for s in result.slices) == result.taxable_amount


class TestThreshold:

    def test_at_threshold_no_tax(self):
        result = calculate_progressive_tax(THRESHOLD, BRACKETS, THRESHOLD)
        assert result.taxable_amount == Decimal("0")
        assert result.tax == Decimal("0")
        assert result.slices == ()
        assert result.marginal_rate == Decimal("0")

    def test_below_threshold_taxable_never_negative(self):
        result = calculate_progressive_tax(Decimal("1000"), BRACKETS, THRESHOLD)
        assert result.taxable_amount == Decimal("0")

    def test_zero_gross(self):
        result = calculate_progressive_tax(Decimal("0"), BRACKETS, THRESHOLD)
        assert result.tax == Decimal("0")
        assert result.effective_rate == Decimal("0")


class TestRounding:

    def test_rounded_once_half_up(self):
        brackets = (TaxBracketDef(upper_limit=None, rate=Decimal("0.05")),)
        # 10 * 5% = 0.5 -> 1
        result = calculate_progressive_tax(Decimal("10"), brackets)
        assert result.tax == Decimal("1")

    def test_slice_taxes_unrounded(self):
        brackets = (
            TaxBracketDef(upper_limit=Decimal("8"), rate=Decimal("0.05")),
            TaxBracketDef(upper_limit=None, rate=Decimal("0.05")),
        )
        # 0.4 + 0.4 rounds to 1; rounding each slice would give 0
        result = calculate_progressive_tax(Decimal("16"), brackets)
        assert result.slices[0].tax == Decimal("0.40")
        assert result.tax == Decimal("1")

    @pytest.mark.parametrize("currency,expected", [("IDR", Decimal("2")), ("USD", Decimal("1.55"))])
    def test_currency_precision(self, currency, expected):
        brackets = (TaxBracketDef(upper_limit=None, rate=Decimal("0.05")),)
        result = calculate_progressive_tax(Decimal("31"), brackets, currency=currency)
        assert result.tax == expected


class TestBoundedLastBracket:

    def test_overflow_taxed_at_last_rate(self):
        brackets = (
            TaxBracketDef(upper_limit=Decimal("1000"), rate=Decimal("0.10")),
            TaxBracketDef(upper_limit=Decimal("2000"), rate=Decimal("0.20")),
        )
        result = calculate_progressive_tax(Decimal("3000"), brackets)
        # 100 + 200 + 1000*20%
        assert result.tax == Decimal("500")
        assert result.slices[-1].upper_limit is None
        assert result.slices[-1].taxable_amount == Decimal("1000")


class TestEffectiveRate:

    def test_effective_below_marginal(self):
        result = calculate_progressive_tax(Decimal("11000000"), BRACKETS, THRESHOLD)
        assert result.effective_rate < result.marginal_rate
        assert result.effective_rate == Decimal("475000") / Decimal("11000000")
