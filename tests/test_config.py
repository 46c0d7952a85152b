"""Tests for settings and shipped tax year configurations."""

from dataclasses import replace
from decimal import Decimal

import pytest

from paye_engine.calculators.engine import PayrollEngine
from paye_engine.config import Settings, get_settings
from paye_engine.tax_years import (
    TAX_YEAR_2024_25,
    TAX_YEAR_2025_26,
    UnknownTaxYearError,
    create_default_ytd,
    default_tax_year_config,
    get_tax_year_config,
)


class TestSettings:
    """Test environment loading."""

    def test_defaults(self, monkeypatch):
        for var in (
            "PAYE_ENGINE_VERSION",
            "PAYE_DEFAULT_TAX_CODE",
            "PAYE_DEFAULT_NI_CATEGORY",
            "PAYE_DEFAULT_TAX_YEAR",
        ):
            monkeypatch.delenv(var, raising=False)

        settings = Settings.from_env()

        assert settings.engine_version == "1.0.0"
        assert settings.default_tax_code == "1257L"
        assert settings.default_ni_category == "A"
        assert settings.default_tax_year == "2024-25"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PAYE_ENGINE_VERSION", "2.1.0")
        monkeypatch.setenv("PAYE_DEFAULT_TAX_CODE", " s1257l ")

        settings = Settings.from_env()

        assert settings.engine_version == "2.1.0"
        assert settings.default_tax_code == "S1257L"

    def test_unrecognised_ni_category_falls_back_to_a(
        self, monkeypatch, make_employee, make_input
    ):
        monkeypatch.setenv("PAYE_DEFAULT_NI_CATEGORY", "Q")

        engine = PayrollEngine(Settings.from_env())
        result = engine.calculate_payroll(make_input(make_employee(ni_category=None)))

        assert engine.ni_calculator.default_category == "A"
        assert result.ni_calculation.ni_category == "A"
        assert result.warnings == ("No NI category provided, using Category A",)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestTaxYearConfigurations:
    """Test the shipped rate tables."""

    @pytest.mark.parametrize("config", [TAX_YEAR_2024_25, TAX_YEAR_2025_26])
    def test_shipped_configs_are_consistent(self, config):
        assert config.problems() == []

    def test_lookup(self):
        assert get_tax_year_config("2025-26") is TAX_YEAR_2025_26

    def test_unknown_year(self):
        with pytest.raises(UnknownTaxYearError) as exc_info:
            get_tax_year_config("1999-00")
        assert exc_info.value.tax_year == "1999-00"

    def test_default_year_from_environment(self, monkeypatch):
        monkeypatch.setenv("PAYE_DEFAULT_TAX_YEAR", "2025-26")
        assert default_tax_year_config() is TAX_YEAR_2025_26

    def test_2025_26_employer_changes(self):
        assert TAX_YEAR_2025_26.ni_employer_rate == Decimal("0.15")
        assert TAX_YEAR_2025_26.ni_secondary_threshold_annual == Decimal("5000")

    def test_problems_never_raise(self):
        broken = replace(
            TAX_YEAR_2024_25,
            higher_rate_limit=Decimal("100"),
            personal_allowance=Decimal("-1"),
        )

        problems = broken.problems()

        assert "higher_rate_limit must be >= basic_rate_limit" in problems
        assert any(p.startswith("personal_allowance must not be negative") for p in problems)

    def test_default_ytd_is_zero(self):
        ytd = create_default_ytd()
        assert all(Decimal(v) == 0 for v in ytd.to_dict().values())
