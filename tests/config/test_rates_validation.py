"""
Tests for statutory rate table validation.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from hris_config.schema import InsuranceSchemeDef, TaxBracketDef, TaxReliefDef
from hris_config.validator import ensure_valid, validate_rates
from hris_kernel.exceptions import InvalidRateTableError, ValidationError


class TestValidTables:

    def test_reference_table_valid(self, rates):
        result = validate_rates(rates)
        assert result.is_valid
        assert result.warnings == []

    def test_bundled_table_valid(self, statutory_rates):
        assert validate_rates(statutory_rates).is_valid

    def test_ensure_valid_returns_table(self, rates):
        assert ensure_valid(rates) is rates

    def test_no_schemes_is_warning(self, rates):
        result = validate_rates(replace(rates, insurance_schemes=()))
        assert result.is_valid
        assert "No insurance schemes defined" in result.warnings

    def test_bounded_last_bracket_is_warning(self, rates):
        result = validate_rates(
            replace(
                rates,
                tax_brackets=(TaxBracketDef(upper_limit=Decimal("5000000"), rate=Decimal("0.05")),),
            )
        )
        assert result.is_valid
        assert any("Last bracket is capped" in w for w in result.warnings)


class TestSchemeErrors:

    def _with_scheme(self, rates, **kwargs):
        scheme = InsuranceSchemeDef(
            code=kwargs.pop("code", "X"),
            name="X",
            employee_rate=kwargs.pop("employee_rate", Decimal("0.01")),
            employer_rate=kwargs.pop("employer_rate", Decimal("0")),
            salary_cap=kwargs.pop("salary_cap", None),
            employer_risk_rates=kwargs.pop("employer_risk_rates", ()),
        )
        return replace(rates, insurance_schemes=(scheme,))

    @pytest.mark.parametrize("rate", [Decimal("-0.01"), Decimal("1.01"), Decimal("NaN")])
    def test_employee_rate_out_of_range(self, rates, rate):
        result = validate_rates(self._with_scheme(rates, employee_rate=rate))
        assert not result.is_valid

    def test_employer_rate_out_of_range(self, rates):
        result = validate_rates(self._with_scheme(rates, employer_rate=Decimal("2")))
        assert "X.employer_rate must be within [0, 1], got 2" in result.errors

    @pytest.mark.parametrize("cap", [Decimal("0"), Decimal("-1"), Decimal("Infinity")])
    def test_bad_cap(self, rates, cap):
        assert not validate_rates(self._with_scheme(rates, salary_cap=cap)).is_valid

    def test_duplicate_codes(self, rates):
        duplicated = replace(
            rates, insurance_schemes=rates.insurance_schemes + rates.insurance_schemes[:1],
        )
        result = validate_rates(duplicated)
        assert "Duplicate insurance scheme code 'HEALTH'" in result.errors

    def test_risk_level_below_one(self, rates):
        result = validate_rates(
            self._with_scheme(rates, employer_risk_rates=((0, Decimal("0.0024")),)),
        )
        assert "X.employer_risk_rates[0]: risk level must be >= 1" in result.errors

    def test_risk_add_on_negative(self, rates):
        result = validate_rates(
            self._with_scheme(rates, employer_risk_rates=((1, Decimal("-0.01")),)),
        )
        assert not result.is_valid

    def test_risk_add_on_pushes_rate_above_one(self, rates):
        result = validate_rates(
            self._with_scheme(
                rates,
                employer_rate=Decimal("0.6"),
                employer_risk_rates=((1, Decimal("0.5")),),
            ),
        )
        assert any("employer_risk_rates[1] + employer_rate" in e for e in result.errors)


class TestBracketErrors:

    def test_no_brackets(self, rates):
        result = validate_rates(replace(rates, tax_brackets=()))
        assert result.errors == ["At least one tax bracket is required"]

    def test_unbounded_not_last(self, rates):
        result = validate_rates(
            replace(
                rates,
                tax_brackets=(
                    TaxBracketDef(upper_limit=None, rate=Decimal("0.05")),
                    TaxBracketDef(upper_limit=Decimal("5000000"), rate=Decimal("0.15")),
                ),
            )
        )
        assert "bracket[0] is unbounded but is not the last bracket" in result.errors

    def test_limits_not_increasing(self, rates):
        result = validate_rates(
            replace(
                rates,
                tax_brackets=(
                    TaxBracketDef(upper_limit=Decimal("5000000"), rate=Decimal("0.05")),
                    TaxBracketDef(upper_limit=Decimal("5000000"), rate=Decimal("0.15")),
                    TaxBracketDef(upper_limit=None, rate=Decimal("0.25")),
                ),
            )
        )
        assert not result.is_valid

    def test_rates_decreasing(self, rates):
        result = validate_rates(
            replace(
                rates,
                tax_brackets=(
                    TaxBracketDef(upper_limit=Decimal("5000000"), rate=Decimal("0.15")),
                    TaxBracketDef(upper_limit=None, rate=Decimal("0.05")),
                ),
            )
        )
        assert any("lower than the previous rate" in e for e in result.errors)

    def test_non_positive_limit(self, rates):
        result = validate_rates(
            replace(
                rates,
                tax_brackets=(
                    TaxBracketDef(upper_limit=Decimal("0"), rate=Decimal("0.05")),
                    TaxBracketDef(upper_limit=None, rate=Decimal("0.15")),
                ),
            )
        )
        assert "bracket[0].upper_limit must be > 0, got 0" in result.errors


class TestTableErrors:

    def test_negative_threshold(self, rates):
        result = validate_rates(replace(rates, non_taxable_threshold=Decimal("-1")))
        assert not result.is_valid

    def test_effective_range_inverted(self, rates):
        result = validate_rates(replace(rates, effective_to=date(2024, 1, 1)))
        assert not result.is_valid


class TestReliefErrors:

    def test_valid_reliefs(self, rates):
        reliefs = (
            TaxReliefDef("TK/0", Decimal("4500000")),
            TaxReliefDef("K/0", Decimal("4875000")),
        )
        assert validate_rates(replace(rates, tax_reliefs=reliefs)).is_valid

    def test_duplicate_status(self, rates):
        reliefs = (
            TaxReliefDef("K/0", Decimal("4875000")),
            TaxReliefDef("K/0", Decimal("5000000")),
        )
        result = validate_rates(replace(rates, tax_reliefs=reliefs))
        assert "Duplicate tax relief status 'K/0'" in result.errors

    def test_negative_threshold(self, rates):
        result = validate_rates(
            replace(rates, tax_reliefs=(TaxReliefDef("K/0", Decimal("-1")),)),
        )
        assert "tax relief K/0 threshold must be >= 0, got -1" in result.errors

    def test_non_finite_threshold(self, rates):
        result = validate_rates(
            replace(rates, tax_reliefs=(TaxReliefDef("K/0", Decimal("Infinity")),)),
        )
        assert not result.is_valid


class TestEnsureValid:

    def test_none(self):
        with pytest.raises(InvalidRateTableError) as exc_info:
            ensure_valid(None)
        assert exc_info.value.version == "<missing>"

    def test_wrong_type(self):
        with pytest.raises(InvalidRateTableError):
            ensure_valid({"version": "dict"})

    def test_collects_all_errors(self, rates):
        broken = replace(
            rates,
            non_taxable_threshold=Decimal("-1"),
            tax_brackets=(),
        )
        with pytest.raises(InvalidRateTableError) as exc_info:
            ensure_valid(broken)
        assert len(exc_info.value.errors) == 2
        assert isinstance(exc_info.value, ValidationError)
