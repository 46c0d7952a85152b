"""Unit tests for TaxCalculator.

Tests tax code parsing and the cumulative, Week1/Month1 and special code
calculations against 2024-25 rates.
"""

import logging
from decimal import Decimal

import pytest

from paye_engine.calculators.tax_calculator import (
    TaxBand,
    TaxCalculator,
    parse_tax_code,
    validate_tax_code,
)
from paye_engine.calculators.types import (
    EmployeeYTDData,
    PeriodType,
    TaxCodeBasis,
    TaxRegion,
)


@pytest.fixture
def calc():
    return TaxCalculator()


class TestTaxCodeParsing:
    """Test tax code parsing and default substitution."""

    def test_standard_code(self):
        parsed = parse_tax_code("1257L")
        assert parsed.kind == "standard"
        assert parsed.allowance == Decimal("12570")
        assert parsed.region == TaxRegion.ENGLAND_NI
        assert parsed.warning is None

    def test_case_and_whitespace_ignored(self):
        parsed = parse_tax_code("  s1257l ")
        assert parsed.code == "S1257L"
        assert parsed.region == TaxRegion.SCOTLAND

    def test_welsh_prefix(self):
        assert parse_tax_code("C1257L").region == TaxRegion.WALES

    def test_k_suffix_is_negative_allowance(self):
        assert parse_tax_code("100K").allowance == Decimal("-1000")

    def test_unknown_prefix_falls_through_to_england(self):
        parsed = parse_tax_code("X1257L")
        assert parsed.region == TaxRegion.ENGLAND_NI
        assert parsed.warning is None

    @pytest.mark.parametrize("code", ["BR", "D0", "D1", "NT", "0T"])
    def test_special_codes(self, code):
        parsed = parse_tax_code(code.lower())
        assert parsed.kind == code
        assert parsed.is_special

    def test_invalid_code_substitutes_default(self, caplog):
        with caplog.at_level(logging.WARNING):
            parsed = parse_tax_code("GARBAGE")

        assert parsed.code == "1257L"
        assert "Invalid tax code format: GARBAGE" in parsed.warning
        assert "using default 1257L" in caplog.text

    def test_missing_code_substitutes_default(self):
        parsed = parse_tax_code(None)
        assert parsed.code == "1257L"
        assert "No tax code provided" in parsed.warning

    def test_custom_default(self):
        assert parse_tax_code("", default="1100L").allowance == Decimal("11000")

    def test_warning_names_the_code_actually_used(self):
        parsed = parse_tax_code("", default=" 1100l ")
        assert parsed.warning == "No tax code provided, using default 1100L"

    def test_invalid_default_falls_back_to_1257l(self, caplog):
        with caplog.at_level(logging.WARNING):
            parsed = parse_tax_code("XX", default="GARBAGE")

        assert parsed.code == "1257L"
        assert parsed.warning == "Invalid tax code format: XX, using default 1257L"
        assert "GARBAGE" not in caplog.text


class TestCumulativeTax:
    """Test cumulative basis calculation."""

    def test_first_month_basic_rate(self, calc, make_employee, config, zero_ytd):
        """1257L, month 1, £3,000: allowance £1,047.50, taxable £1,952.50."""
        result = calc.calculate_tax(
            make_employee(), Decimal("3000"), 1, PeriodType.MONTHLY, config, zero_ytd
        )

        assert result.tax_due_this_period == Decimal("390.50")
        assert result.personal_allowance_used == Decimal("1047.50")
        assert result.tax_code_basis == TaxCodeBasis.CUMULATIVE
        assert result.tax_paid_ytd == Decimal("390.50")
        assert result.warnings == ()

    def test_second_month_uses_ytd(self, calc, make_employee, config):
        ytd = EmployeeYTDData(taxable_pay_ytd=Decimal("3000"), tax_paid_ytd=Decimal("390.50"))

        result = calc.calculate_tax(
            make_employee(), Decimal("3000"), 2, PeriodType.MONTHLY, config, ytd
        )

        assert result.tax_due_this_period == Decimal("390.50")
        assert result.tax_paid_ytd == Decimal("781.00")

    def test_catch_up_after_low_month(self, calc, make_employee, config):
        """Unused allowance from month 1 reduces tax in month 2."""
        ytd = EmployeeYTDData(taxable_pay_ytd=Decimal("500"))

        result = calc.calculate_tax(
            make_employee(), Decimal("3000"), 2, PeriodType.MONTHLY, config, ytd
        )

        # Pay to date 3500, allowance to date 2095, taxable 1405
        assert result.tax_due_this_period == Decimal("281.00")

    def test_below_allowance_pays_nothing(self, calc, make_employee, config, zero_ytd):
        result = calc.calculate_tax(
            make_employee(), Decimal("1000"), 1, PeriodType.MONTHLY, config, zero_ytd
        )
        assert result.tax_due_this_period == Decimal("0.00")
        assert result.tax_bands == ()

    def test_scottish_bands(self, calc, make_employee, config, zero_ytd):
        result = calc.calculate_tax(
            make_employee(tax_code="S1257L"),
            Decimal("3000"),
            1,
            PeriodType.MONTHLY,
            config,
            zero_ytd,
        )

        assert result.region == TaxRegion.SCOTLAND
        assert result.tax_due_this_period == Decimal("396.44")
        assert [b.band for b in result.tax_bands] == [
            "Starter Rate",
            "Basic Rate",
            "Intermediate Rate",
        ]

    def test_welsh_rates_match_england(self, calc, make_employee, config, zero_ytd):
        result = calc.calculate_tax(
            make_employee(tax_code="C1257L"),
            Decimal("3000"),
            1,
            PeriodType.MONTHLY,
            config,
            zero_ytd,
        )

        assert result.region == TaxRegion.WALES
        assert result.tax_due_this_period == Decimal("390.50")
        assert result.tax_bands[0].band == "Welsh Basic Rate"

    def test_k_code_adds_to_taxable_pay(self, calc, make_employee, config, zero_ytd):
        result = calc.calculate_tax(
            make_employee(tax_code="100K"),
            Decimal("1000"),
            1,
            PeriodType.MONTHLY,
            config,
            zero_ytd,
        )

        assert result.tax_due_this_period == Decimal("216.67")
        assert result.personal_allowance_used == Decimal("0.00")


class TestWeek1Month1Tax:
    """Test non-cumulative basis calculation."""

    def test_ignores_ytd(self, calc, make_employee, config):
        ytd = EmployeeYTDData(taxable_pay_ytd=Decimal("20000"), tax_paid_ytd=Decimal("1500"))

        result = calc.calculate_tax(
            make_employee(tax_code_basis=TaxCodeBasis.WEEK1_MONTH1),
            Decimal("3000"),
            7,
            PeriodType.MONTHLY,
            config,
            ytd,
        )

        assert result.tax_due_this_period == Decimal("390.50")
        assert result.tax_code_basis == TaxCodeBasis.WEEK1_MONTH1
        assert result.tax_paid_ytd == Decimal("1890.50")

    def test_higher_rate_band(self, calc, make_employee, config, zero_ytd):
        result = calc.calculate_tax(
            make_employee(tax_code_basis=TaxCodeBasis.WEEK1_MONTH1),
            Decimal("10000"),
            1,
            PeriodType.MONTHLY,
            config,
            zero_ytd,
        )

        assert result.tax_due_this_period == Decimal("2952.67")
        assert [b.rate for b in result.tax_bands] == [Decimal("20.00"), Decimal("40.00")]


class TestSpecialCodes:
    """Test BR, D0, D1, NT and 0T."""

    @pytest.mark.parametrize(
        "code, expected",
        [("BR", "100.00"), ("D0", "200.00"), ("D1", "225.00")],
    )
    def test_flat_rate_codes(self, calc, make_employee, config, code, expected):
        ytd = EmployeeYTDData(taxable_pay_ytd=Decimal("9000"), tax_paid_ytd=Decimal("50"))

        result = calc.calculate_tax(
            make_employee(tax_code=code), Decimal("500"), 4, PeriodType.MONTHLY, config, ytd
        )

        assert result.tax_due_this_period == Decimal(expected)
        assert result.personal_allowance_used == Decimal("0")
        assert len(result.tax_bands) == 1

    def test_no_tax(self, calc, make_employee, config, zero_ytd):
        result = calc.calculate_tax(
            make_employee(tax_code="NT"), Decimal("5000"), 1, PeriodType.MONTHLY, config, zero_ytd
        )

        assert result.tax_due_this_period == Decimal("0")
        assert result.tax_bands[0].band == "No Tax"
        assert result.tax_bands[0].amount == Decimal("5000")

    def test_emergency_code(self, calc, make_employee, config, zero_ytd):
        result = calc.calculate_tax(
            make_employee(tax_code="0T"), Decimal("1000"), 3, PeriodType.MONTHLY, config, zero_ytd
        )

        assert result.tax_due_this_period == Decimal("200.00")
        assert result.tax_code_basis == TaxCodeBasis.WEEK1_MONTH1
        assert result.personal_allowance_used == Decimal("0")

    def test_negative_pay_flat_rate_is_zero(self, calc, make_employee, config, zero_ytd):
        result = calc.calculate_tax(
            make_employee(tax_code="BR"), Decimal("-50"), 1, PeriodType.MONTHLY, config, zero_ytd
        )
        assert result.tax_due_this_period == Decimal("0.00")


class TestDefaultSubstitution:
    """Invalid codes are calculated on the default and flagged."""

    def test_invalid_code_warning_reaches_result(self, calc, make_employee, config, zero_ytd):
        result = calc.calculate_tax(
            make_employee(tax_code="1257X"),
            Decimal("3000"),
            1,
            PeriodType.MONTHLY,
            config,
            zero_ytd,
        )

        assert result.tax_code == "1257L"
        assert result.tax_due_this_period == Decimal("390.50")
        assert len(result.warnings) == 1
        assert "1257X" in result.calculation


class TestProgressiveTax:
    """Test the band walk."""

    def test_unlimited_top_band(self):
        bands = [
            TaxBand("Low", Decimal("0.10"), Decimal("100")),
            TaxBand("Top", Decimal("0.50"), None),
        ]
        assert TaxCalculator.calculate_progressive_tax(Decimal("300"), bands) == Decimal("110.00")

    def test_scale_bands_keeps_unlimited(self):
        bands = [TaxBand("Low", Decimal("0.10"), Decimal("1200")), TaxBand("Top", Decimal("0.5"), None)]
        scaled = TaxCalculator.scale_bands(bands, Decimal("0.5"))
        assert scaled[0].limit == Decimal("600")
        assert scaled[1].limit is None


class TestTaxCodeValidation:
    """Test the data-entry validator."""

    @pytest.mark.parametrize("code", ["1257L", "s1257l", "C1257L", "100K", "BR", "0T", "NT"])
    def test_valid_codes(self, code):
        assert validate_tax_code(code).valid

    @pytest.mark.parametrize("code", ["", "1257X", "X1257L", "L1257", "12 57L"])
    def test_invalid_codes(self, code):
        result = validate_tax_code(code)
        assert not result.valid
        assert "Invalid tax code format" in result.error
