"""Unit tests for pay period and tax year arithmetic."""

from datetime import date
from decimal import Decimal

import pytest

from paye_engine.calculators.money import fmt, fmt_rate, round_to_pence
from paye_engine.calculators.periods import (
    age_on,
    annual_to_period,
    period_number_for,
    periods_in_year,
    tax_year_for,
    tax_year_start,
)
from paye_engine.calculators.types import PeriodType


class TestPeriodsInYear:
    @pytest.mark.parametrize(
        "period_type, expected",
        [
            (PeriodType.WEEKLY, 52),
            (PeriodType.FORTNIGHTLY, 26),
            (PeriodType.FOUR_WEEKLY, 13),
            (PeriodType.MONTHLY, 12),
            ("monthly", 12),
        ],
    )
    def test_counts(self, period_type, expected):
        assert periods_in_year(period_type) == expected

    def test_unknown_frequency_falls_back_to_weekly(self):
        assert periods_in_year("daily") == 52

    def test_annual_to_period(self):
        assert annual_to_period(Decimal("6240"), PeriodType.MONTHLY) == Decimal("520")


class TestTaxYear:
    """The tax year runs 6 April to 5 April."""

    def test_boundary(self):
        assert tax_year_for(date(2024, 4, 5)) == "2023-24"
        assert tax_year_for(date(2024, 4, 6)) == "2024-25"
        assert tax_year_for(date(2025, 1, 31)) == "2024-25"

    def test_century_label(self):
        assert tax_year_for(date(2099, 12, 1)) == "2099-00"

    def test_start(self):
        assert tax_year_start(date(2025, 3, 1)) == date(2024, 4, 6)


class TestPeriodNumber:
    @pytest.mark.parametrize(
        "on, expected",
        [
            (date(2024, 4, 6), 1),
            (date(2024, 5, 5), 1),
            (date(2024, 5, 6), 2),
            (date(2025, 1, 15), 10),
            (date(2025, 4, 5), 12),
        ],
    )
    def test_monthly(self, on, expected):
        assert period_number_for(on, PeriodType.MONTHLY) == expected

    @pytest.mark.parametrize(
        "on, period_type, expected",
        [
            (date(2024, 4, 12), PeriodType.WEEKLY, 1),
            (date(2024, 4, 13), PeriodType.WEEKLY, 2),
            (date(2025, 4, 5), PeriodType.WEEKLY, 53),
            (date(2024, 4, 20), PeriodType.FORTNIGHTLY, 2),
            (date(2024, 5, 4), PeriodType.FOUR_WEEKLY, 2),
        ],
    )
    def test_weekly_based(self, on, period_type, expected):
        assert period_number_for(on, period_type) == expected


class TestAge:
    def test_before_birthday(self):
        assert age_on(date(1990, 7, 1), date(2024, 6, 30)) == 33

    def test_on_birthday(self):
        assert age_on(date(1990, 6, 30), date(2024, 6, 30)) == 34

    def test_defaults_to_today(self):
        today = date.today()
        assert age_on(date(today.year - 40, 1, 1)) == 40


class TestMoney:
    def test_round_half_up(self):
        assert round_to_pence(Decimal("0.125")) == Decimal("0.13")
        assert round_to_pence(Decimal("0.124")) == Decimal("0.12")

    def test_fmt(self):
        assert fmt(Decimal("1234.5")) == "£1,234.50"

    def test_fmt_rate(self):
        assert fmt_rate(Decimal("0.138")) == "13.8%"
        assert fmt_rate(Decimal("0.20")) == "20%"
