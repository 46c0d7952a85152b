"""Class 1 National Insurance calculation.

Category C (over State Pension age) pays nothing. Directors are assessed on
the annual earnings period. Everyone else is assessed per pay period against
thresholds for their pay frequency.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from paye_engine.calculators.money import fmt, fmt_rate, non_negative, round_to_pence
from paye_engine.calculators.periods import age_on, to_period_type
from paye_engine.calculators.types import (
    NI_CATEGORIES,
    ZERO,
    Employee,
    EmployeeYTDData,
    NICalculationResult,
    PeriodType,
    TaxYearConfiguration,
    ValidationResult,
)

logger = logging.getLogger(__name__)

DEFAULT_NI_CATEGORY = "A"

# Category B (married women's reduced rate election)
REDUCED_RATE = Decimal("0.0135")

APPRENTICE_RELIEF_AGE = 25
UNDER_21_RELIEF_AGE = 21

_WEEKLY_MULTIPLIERS = {
    PeriodType.WEEKLY: 1,
    PeriodType.FORTNIGHTLY: 2,
    PeriodType.FOUR_WEEKLY: 4,
}


@dataclass(frozen=True)
class NIThresholds:
    primary_threshold: Decimal
    upper_earnings_limit: Decimal
    secondary_threshold: Decimal


@dataclass(frozen=True)
class NICategoryRates:
    employee_primary_rate: Decimal
    employee_above_uel_rate: Decimal
    employer_rate: Decimal


def validate_ni_category(category: str) -> ValidationResult:
    """Validate an NI category letter for data entry."""
    if (category or "").strip().upper() not in NI_CATEGORIES:
        return ValidationResult(
            valid=False,
            error=f"Invalid NI category. Valid categories: {', '.join(NI_CATEGORIES)}",
        )
    return ValidationResult(valid=True)


class NICalculator:
    """Calculates employee and employer NI contributions for one period."""

    def __init__(self, default_category: str = DEFAULT_NI_CATEGORY):
        category = (default_category or "").strip().upper()
        if category not in NI_CATEGORIES:
            logger.warning(
                "Configured default NI category %r is not recognised, using Category %s",
                default_category,
                DEFAULT_NI_CATEGORY,
            )
            category = DEFAULT_NI_CATEGORY
        self.default_category = category

    def calculate_ni(
        self,
        employee: Employee,
        gross_pay: Decimal,
        period_number: int,
        period_type: PeriodType,
        config: TaxYearConfiguration,
        ytd: EmployeeYTDData,
        as_of: date | None = None,
    ) -> NICalculationResult:
        """Calculate NI for this period.

        ``as_of`` is the date ages are measured on for the under-21 and
        apprentice reliefs; today when omitted.
        """
        category, warnings = self._resolve_category(employee.ni_category)

        if category == "C":
            return self._calculate_category_c(ytd)

        if employee.is_director:
            return self._calculate_director(employee, category, gross_pay, config, ytd, warnings)

        return self._calculate_standard(
            employee, category, gross_pay, period_type, config, ytd, warnings, as_of
        )

    def _resolve_category(self, raw: str | None) -> tuple[str, tuple[str, ...]]:
        if raw is None or not raw.strip():
            warning = f"No NI category provided, using Category {self.default_category}"
        else:
            category = raw.strip().upper()
            if category in NI_CATEGORIES:
                return category, ()
            warning = f"Unknown NI category: {raw}, using Category {self.default_category}"

        logger.warning(warning)
        return self.default_category, (warning,)

    def _calculate_standard(
        self,
        employee: Employee,
        category: str,
        gross_pay: Decimal,
        period_type: PeriodType,
        config: TaxYearConfiguration,
        ytd: EmployeeYTDData,
        warnings: tuple[str, ...],
        as_of: date | None,
    ) -> NICalculationResult:
        thresholds = self.get_thresholds(period_type, config)
        rates = self.get_category_rates(category, config)

        employee_ni = self.employee_contribution(gross_pay, thresholds, rates)
        employer_ni = non_negative(gross_pay - thresholds.secondary_threshold) * rates.employer_rate

        relief_threshold = self._employer_relief_threshold(
            employee, category, period_type, config, thresholds, as_of
        )
        if relief_threshold is not None:
            employer_ni = non_negative(gross_pay - relief_threshold) * rates.employer_rate

        employee_ni = round_to_pence(employee_ni)
        employer_ni = round_to_pence(employer_ni)

        calculation = (
            f"Category {category}: Gross {fmt(gross_pay)}, "
            f"Employee NI {fmt(employee_ni)} ({fmt_rate(rates.employee_primary_rate)}), "
            f"Employer NI {fmt(employer_ni)} ({fmt_rate(rates.employer_rate)})"
        )
        if relief_threshold is not None:
            calculation += f", employer relief up to {fmt(relief_threshold)}"
        for warning in warnings:
            calculation += f" [{warning}]"

        return NICalculationResult(
            ni_category=category,
            is_director=False,
            calculation_method="standard",
            employee_ni_this_period=employee_ni,
            employee_ni_rate=rates.employee_primary_rate,
            employee_ni_ytd=ytd.employee_ni_paid_ytd + employee_ni,
            employer_ni_this_period=employer_ni,
            employer_ni_rate=rates.employer_rate,
            employer_ni_ytd=ytd.employer_ni_paid_ytd + employer_ni,
            primary_threshold=thresholds.primary_threshold,
            upper_earnings_limit=thresholds.upper_earnings_limit,
            secondary_threshold=thresholds.secondary_threshold,
            calculation=calculation,
            warnings=warnings,
        )

    def _calculate_director(
        self,
        employee: Employee,
        category: str,
        gross_pay: Decimal,
        config: TaxYearConfiguration,
        ytd: EmployeeYTDData,
        warnings: tuple[str, ...],
    ) -> NICalculationResult:
        """Annual earnings period: NI due on pay to date less NI already paid."""
        method = getattr(
            employee.director_ni_calculation_method,
            "value",
            employee.director_ni_calculation_method,
        )
        earnings_to_date = ytd.niable_pay_ytd + gross_pay

        thresholds = NIThresholds(
            primary_threshold=non_negative(config.ni_primary_threshold_annual),
            upper_earnings_limit=non_negative(config.ni_upper_earnings_limit_annual),
            secondary_threshold=non_negative(config.ni_secondary_threshold_annual),
        )
        rates = self.get_category_rates(category, config)

        employee_due = round_to_pence(self.employee_contribution(earnings_to_date, thresholds, rates))
        employer_due = round_to_pence(
            non_negative(earnings_to_date - thresholds.secondary_threshold) * rates.employer_rate
        )

        employee_ni = non_negative(employee_due - ytd.employee_ni_paid_ytd)
        employer_ni = non_negative(employer_due - ytd.employer_ni_paid_ytd)

        calculation = (
            f"Director ({method}): YTD Earnings {fmt(earnings_to_date)}, "
            f"Employee NI {fmt(employee_ni)}, Employer NI {fmt(employer_ni)}"
        )
        for warning in warnings:
            calculation += f" [{warning}]"

        return NICalculationResult(
            ni_category=category,
            is_director=True,
            calculation_method=method,
            employee_ni_this_period=employee_ni,
            employee_ni_rate=rates.employee_primary_rate,
            employee_ni_ytd=ytd.employee_ni_paid_ytd + employee_ni,
            employer_ni_this_period=employer_ni,
            employer_ni_rate=rates.employer_rate,
            employer_ni_ytd=ytd.employer_ni_paid_ytd + employer_ni,
            primary_threshold=thresholds.primary_threshold,
            upper_earnings_limit=thresholds.upper_earnings_limit,
            secondary_threshold=thresholds.secondary_threshold,
            calculation=calculation,
            warnings=warnings,
        )

    def _calculate_category_c(self, ytd: EmployeeYTDData) -> NICalculationResult:
        return NICalculationResult(
            ni_category="C",
            is_director=False,
            calculation_method="standard",
            employee_ni_this_period=ZERO,
            employee_ni_rate=ZERO,
            employee_ni_ytd=ytd.employee_ni_paid_ytd,
            employer_ni_this_period=ZERO,
            employer_ni_rate=ZERO,
            employer_ni_ytd=ytd.employer_ni_paid_ytd,
            primary_threshold=ZERO,
            upper_earnings_limit=ZERO,
            secondary_threshold=ZERO,
            calculation="Category C: Over state pension age - no NI contributions",
        )

    def _employer_relief_threshold(
        self,
        employee: Employee,
        category: str,
        period_type: PeriodType,
        config: TaxYearConfiguration,
        thresholds: NIThresholds,
        as_of: date | None,
    ) -> Decimal | None:
        """Threshold below which employer NI is not due, if a relief applies."""
        if employee.date_of_birth is None or category not in ("H", "M", "Z"):
            return None

        age = age_on(employee.date_of_birth, as_of)
        if category == "H" and age < APPRENTICE_RELIEF_AGE:
            return self.get_apprentice_threshold(period_type, config)
        if category in ("M", "Z") and age < UNDER_21_RELIEF_AGE:
            return thresholds.upper_earnings_limit
        return None

    @staticmethod
    def employee_contribution(
        earnings: Decimal, thresholds: NIThresholds, rates: NICategoryRates
    ) -> Decimal:
        """Primary contribution: main rate between PT and UEL, additional rate above."""
        if earnings <= thresholds.primary_threshold:
            return ZERO

        main_band = non_negative(
            min(earnings, thresholds.upper_earnings_limit) - thresholds.primary_threshold
        )
        above_uel = non_negative(
            earnings - max(thresholds.upper_earnings_limit, thresholds.primary_threshold)
        )
        return main_band * rates.employee_primary_rate + above_uel * rates.employee_above_uel_rate

    @staticmethod
    def get_thresholds(period_type: PeriodType, config: TaxYearConfiguration) -> NIThresholds:
        """Thresholds for one pay period.

        Monthly uses HMRC's published monthly figures; other frequencies are
        multiples of the weekly figures.
        """
        period_type = to_period_type(period_type)
        if period_type == PeriodType.MONTHLY:
            return NIThresholds(
                primary_threshold=non_negative(config.ni_primary_threshold_monthly),
                upper_earnings_limit=non_negative(config.ni_upper_earnings_limit_monthly),
                secondary_threshold=non_negative(config.ni_secondary_threshold_monthly),
            )

        multiplier = _WEEKLY_MULTIPLIERS[period_type]
        return NIThresholds(
            primary_threshold=non_negative(config.ni_primary_threshold_weekly * multiplier),
            upper_earnings_limit=non_negative(config.ni_upper_earnings_limit_weekly * multiplier),
            secondary_threshold=non_negative(config.ni_secondary_threshold_weekly * multiplier),
        )

    @staticmethod
    def get_apprentice_threshold(period_type: PeriodType, config: TaxYearConfiguration) -> Decimal:
        """Apprentice upper secondary threshold for one pay period."""
        period_type = to_period_type(period_type)
        if period_type == PeriodType.MONTHLY:
            return non_negative(config.ni_apprentice_upper_secondary_threshold_monthly)
        return non_negative(
            config.ni_apprentice_upper_secondary_threshold_weekly * _WEEKLY_MULTIPLIERS[period_type]
        )

    @staticmethod
    def get_category_rates(category: str, config: TaxYearConfiguration) -> NICategoryRates:
        if category == "C":
            return NICategoryRates(ZERO, ZERO, ZERO)

        if category == "B":
            return NICategoryRates(
                employee_primary_rate=REDUCED_RATE,
                employee_above_uel_rate=REDUCED_RATE,
                employer_rate=config.ni_employer_rate,
            )

        # A, F, H, I, J, L, M, S, V, Z share the standard rates
        return NICategoryRates(
            employee_primary_rate=config.ni_primary_rate,
            employee_above_uel_rate=config.ni_primary_rate_above_uel,
            employer_rate=config.ni_employer_rate,
        )
