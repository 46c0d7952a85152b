"""Workplace pension auto-enrolment contributions on qualifying earnings."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from paye_engine.calculators.money import fmt, fmt_rate, non_negative, round_to_pence
from paye_engine.calculators.periods import age_on, annual_to_period, periods_in_year
from paye_engine.calculators.types import (
    ZERO,
    AutoEnrolmentEligibility,
    AutoEnrolmentStatus,
    Employee,
    EmployeeYTDData,
    PensionCalculationResult,
    PeriodType,
    TaxYearConfiguration,
    ValidationResult,
)

MAX_EMPLOYEE_RATE = Decimal("1")

AUTO_ENROLMENT_MIN_AGE = 22
STATE_PENSION_AGE = 66


def validate_pension_contribution(
    percentage: Decimal, config: TaxYearConfiguration
) -> ValidationResult:
    """Employee contribution percentage must lie between the statutory minimum and 100."""
    minimum = config.minimum_employee_contribution
    rate = percentage / 100
    if rate < minimum or rate > MAX_EMPLOYEE_RATE:
        return ValidationResult(
            valid=False,
            error=(
                f"Pension contribution must be between {fmt_rate(minimum)} and "
                f"{fmt_rate(MAX_EMPLOYEE_RATE)} for auto-enrolment compliance"
            ),
        )
    return ValidationResult(valid=True)


def check_auto_enrolment_eligibility(
    employee: Employee,
    gross_pay: Decimal,
    period_type: PeriodType,
    config: TaxYearConfiguration,
    as_of: date | None = None,
) -> AutoEnrolmentEligibility:
    """Decide whether the employer must auto-enrol this worker.

    A worker qualifies when aged at least 22 and under State Pension age and
    annualised earnings reach the earnings trigger. Age is measured on
    ``as_of``, today when omitted.
    """
    annualised = gross_pay * periods_in_year(period_type)

    if employee.date_of_birth is None:
        return AutoEnrolmentEligibility(
            eligible=False,
            age=None,
            annualised_earnings=annualised,
            reason="Date of birth unknown",
        )

    age = age_on(employee.date_of_birth, as_of)
    if age < AUTO_ENROLMENT_MIN_AGE:
        reason = f"Aged {age}, under {AUTO_ENROLMENT_MIN_AGE}"
    elif age >= STATE_PENSION_AGE:
        reason = f"Aged {age}, at or over State Pension age"
    elif annualised < config.auto_enrolment_earnings_threshold_annual:
        reason = (
            f"Annualised earnings {fmt(annualised)} below trigger "
            f"{fmt(config.auto_enrolment_earnings_threshold_annual)}"
        )
    else:
        return AutoEnrolmentEligibility(
            eligible=True,
            age=age,
            annualised_earnings=annualised,
            reason="Meets age and earnings criteria",
        )

    return AutoEnrolmentEligibility(
        eligible=False, age=age, annualised_earnings=annualised, reason=reason
    )


class PensionCalculator:
    """Calculates employee and employer contributions for enrolled workers."""

    def calculate_pension(
        self,
        employee: Employee,
        gross_pay: Decimal,
        period_type: PeriodType,
        config: TaxYearConfiguration,
        ytd: EmployeeYTDData,
    ) -> PensionCalculationResult:
        status = getattr(employee.auto_enrolment_status, "value", employee.auto_enrolment_status)

        if status != AutoEnrolmentStatus.ENROLLED.value:
            return PensionCalculationResult(
                is_enrolled=False,
                auto_enrolment_status=status,
                qualifying_earnings=ZERO,
                lower_limit=ZERO,
                upper_limit=ZERO,
                employee_rate=ZERO,
                employer_rate=ZERO,
                employee_contribution=ZERO,
                employer_contribution=ZERO,
                employee_ytd=ytd.employee_pension_ytd,
                employer_ytd=ytd.employer_pension_ytd,
                calculation=f"Pension: Not enrolled ({status})",
            )

        lower, upper = self.qualifying_band(period_type, config)
        qualifying = self.qualifying_earnings(gross_pay, lower, upper)

        percentage = employee.pension_contribution_percentage
        if percentage is None:
            employee_rate = non_negative(config.minimum_employee_contribution)
        else:
            employee_rate = non_negative(percentage) / 100
        employer_rate = non_negative(config.minimum_employer_contribution)

        employee_contribution = round_to_pence(qualifying * employee_rate)
        employer_contribution = round_to_pence(qualifying * employer_rate)

        return PensionCalculationResult(
            is_enrolled=True,
            auto_enrolment_status=status,
            qualifying_earnings=qualifying,
            lower_limit=round_to_pence(lower),
            upper_limit=round_to_pence(upper),
            employee_rate=employee_rate,
            employer_rate=employer_rate,
            employee_contribution=employee_contribution,
            employer_contribution=employer_contribution,
            employee_ytd=ytd.employee_pension_ytd + employee_contribution,
            employer_ytd=ytd.employer_pension_ytd + employer_contribution,
            calculation=(
                f"Pension: Qualifying earnings {fmt(qualifying)}, "
                f"Employee {fmt(employee_contribution)} ({fmt_rate(employee_rate)}), "
                f"Employer {fmt(employer_contribution)} ({fmt_rate(employer_rate)})"
            ),
        )

    @staticmethod
    def qualifying_band(
        period_type: PeriodType, config: TaxYearConfiguration
    ) -> tuple[Decimal, Decimal]:
        """Lower and upper qualifying earnings limits for one pay period."""
        lower = annual_to_period(non_negative(config.auto_enrolment_lower_limit_annual), period_type)
        upper = annual_to_period(non_negative(config.auto_enrolment_upper_limit_annual), period_type)
        return lower, max(upper, lower)

    @staticmethod
    def qualifying_earnings(gross_pay: Decimal, lower: Decimal, upper: Decimal) -> Decimal:
        """Pay between the lower and upper limits, rounded to pence."""
        return round_to_pence(min(non_negative(gross_pay - lower), upper - lower))
