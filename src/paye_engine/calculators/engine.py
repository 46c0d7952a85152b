"""Payroll calculation engine - main orchestrator."""

from __future__ import annotations

import hashlib
import json
import logging
import re
from decimal import Decimal
from uuid import UUID

from paye_engine.calculators.money import fmt, round_to_pence
from paye_engine.calculators.ni_calculator import NICalculator, validate_ni_category
from paye_engine.calculators.pension_calculator import (
    PensionCalculator,
    validate_pension_contribution,
)
from paye_engine.calculators.periods import MAX_PERIOD_NUMBER, to_period_type
from paye_engine.calculators.student_loan_calculator import (
    StudentLoanCalculator,
    validate_student_loan_plan,
)
from paye_engine.calculators.tax_calculator import TaxCalculator, validate_tax_code
from paye_engine.calculators.types import (
    LOAN_YTD_FIELDS,
    AutoEnrolmentStatus,
    EmployeeYTDData,
    InputValidationResult,
    NICalculationResult,
    PayrollCalculationInput,
    PayrollCalculationResult,
    PensionCalculationResult,
    StudentLoanCalculationResult,
    TaxCalculationResult,
    ValidationResult,
)
from paye_engine.config import Settings, get_settings

logger = logging.getLogger(__name__)

# HMRC NINO format; prefixes D, F, I, Q, U, V and second letter O are never issued
_NI_NUMBER_PATTERN = re.compile(r"^[A-CEGHJ-PR-TW-Z][A-CEGHJ-NPR-TW-Z][0-9]{6}[A-D]$")


def validate_ni_number(ni_number: str) -> ValidationResult:
    """Validate a National Insurance number such as ``AB123456C``."""
    normalized = re.sub(r"\s+", "", ni_number or "").upper()
    if not _NI_NUMBER_PATTERN.match(normalized):
        return ValidationResult(
            valid=False,
            error="Invalid National Insurance number. Expected format: AB123456C",
        )
    return ValidationResult(valid=True)


class PayrollEngine:
    """Calculates one employee's pay for one period.

    Runs tax, NI, student loan and pension calculators over the period's
    gross pay and assembles deductions, net pay, employer costs and the
    updated year-to-date snapshot. Holds no per-employee state, so one engine
    can serve a whole pay run.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.tax_calculator = TaxCalculator(self.settings.default_tax_code)
        self.ni_calculator = NICalculator(self.settings.default_ni_category)
        self.student_loan_calculator = StudentLoanCalculator()
        self.pension_calculator = PensionCalculator()

    def calculate_payroll(self, calc_input: PayrollCalculationInput) -> PayrollCalculationResult:
        """Calculate net pay, deductions and updated YTD for one period."""
        employee = calc_input.employee
        config = calc_input.tax_year_config
        ytd = calc_input.employee_ytd
        period_type = to_period_type(calc_input.period_type)

        breakdown = calc_input.breakdown()
        gross_pay = breakdown.total

        tax = self.tax_calculator.calculate_tax(
            employee,
            breakdown.taxable,
            calc_input.period_number,
            period_type,
            config,
            ytd,
        )
        ni = self.ni_calculator.calculate_ni(
            employee,
            breakdown.niable,
            calc_input.period_number,
            period_type,
            config,
            ytd,
            as_of=calc_input.pay_period_end,
        )
        student_loan = self.student_loan_calculator.calculate_student_loan(
            employee, breakdown.taxable, period_type, config, ytd
        )
        pension = self.pension_calculator.calculate_pension(
            employee, breakdown.pensionable, period_type, config, ytd
        )

        total_deductions = (
            tax.tax_due_this_period
            + ni.employee_ni_this_period
            + student_loan.total_deduction
            + pension.employee_contribution
        )
        net_pay = gross_pay - total_deductions
        employer_costs = ni.employer_ni_this_period + pension.employer_contribution

        updated_ytd = self._update_ytd(
            ytd,
            gross_pay=gross_pay,
            taxable_pay=breakdown.taxable,
            niable_pay=breakdown.niable,
            pensionable_pay=breakdown.pensionable,
            tax=tax,
            ni=ni,
            student_loan=student_loan,
            pension=pension,
        )

        warnings = tax.warnings + ni.warnings
        if warnings:
            logger.warning(
                "Payroll for %s period %s completed with %d warning(s)",
                employee.employee_id,
                calc_input.period_number,
                len(warnings),
            )

        calculation_log = self._build_calculation_log(
            calc_input, gross_pay, tax, ni, student_loan, pension, total_deductions, net_pay
        )

        return PayrollCalculationResult(
            calculation_id=self._generate_calculation_id(calc_input),
            gross_pay_before_deductions=gross_pay,
            taxable_gross_pay=breakdown.taxable,
            niable_gross_pay=breakdown.niable,
            pensionable_gross_pay=breakdown.pensionable,
            tax_calculation=tax,
            ni_calculation=ni,
            student_loan_calculation=student_loan,
            pension_calculation=pension,
            total_deductions=total_deductions,
            net_pay=net_pay,
            employer_costs=employer_costs,
            updated_ytd=updated_ytd,
            calculation_log=calculation_log,
            warnings=warnings,
        )

    def validate_input(self, calc_input: PayrollCalculationInput) -> InputValidationResult:
        """Check an input before calculation.

        Calculation itself never rejects input; this is the strict check a
        caller runs first when it wants bad records stopped at the door.
        """
        errors: list[str] = []
        warnings: list[str] = []
        employee = calc_input.employee

        if not (employee.employee_id or "").strip():
            errors.append("Employee ID is required")

        if not (employee.national_insurance_number or "").strip():
            errors.append("National Insurance number is required")
        else:
            _collect(errors, validate_ni_number(employee.national_insurance_number))

        if employee.tax_code is None or not employee.tax_code.strip():
            warnings.append(f"No tax code provided, default {self.settings.default_tax_code} will be used")
        else:
            _collect(errors, validate_tax_code(employee.tax_code))

        if employee.ni_category is None or not employee.ni_category.strip():
            default_category = self.ni_calculator.default_category
            warnings.append(f"No NI category provided, Category {default_category} will be used")
        else:
            _collect(errors, validate_ni_category(employee.ni_category))

        for plan in sorted(getattr(p, "value", p) for p in employee.student_loan_plans):
            _collect(errors, validate_student_loan_plan(plan))

        status = getattr(employee.auto_enrolment_status, "value", employee.auto_enrolment_status)
        if (
            status == AutoEnrolmentStatus.ENROLLED.value
            and employee.pension_contribution_percentage is not None
        ):
            _collect(
                errors,
                validate_pension_contribution(
                    employee.pension_contribution_percentage, calc_input.tax_year_config
                ),
            )

        breakdown = calc_input.breakdown()
        for name in breakdown.COMPONENTS:
            if getattr(breakdown, name) < 0:
                errors.append(f"{name.replace('_', ' ').capitalize()} must not be negative")

        period_type = to_period_type(calc_input.period_type)
        max_period = MAX_PERIOD_NUMBER[period_type]
        if not 1 <= calc_input.period_number <= max_period:
            errors.append(
                f"Period number {calc_input.period_number} out of range for "
                f"{period_type.value} pay (1-{max_period})"
            )

        errors.extend(calc_input.tax_year_config.problems())

        return InputValidationResult(valid=not errors, errors=errors, warnings=warnings)

    def _update_ytd(
        self,
        ytd: EmployeeYTDData,
        *,
        gross_pay: Decimal,
        taxable_pay: Decimal,
        niable_pay: Decimal,
        pensionable_pay: Decimal,
        tax: TaxCalculationResult,
        ni: NICalculationResult,
        student_loan: StudentLoanCalculationResult,
        pension: PensionCalculationResult,
    ) -> EmployeeYTDData:
        updated = EmployeeYTDData(
            gross_pay_ytd=ytd.gross_pay_ytd + gross_pay,
            taxable_pay_ytd=ytd.taxable_pay_ytd + taxable_pay,
            tax_paid_ytd=tax.tax_paid_ytd,
            niable_pay_ytd=ytd.niable_pay_ytd + niable_pay,
            employee_ni_paid_ytd=ni.employee_ni_ytd,
            employer_ni_paid_ytd=ni.employer_ni_ytd,
            pensionable_pay_ytd=ytd.pensionable_pay_ytd + pensionable_pay,
            employee_pension_ytd=pension.employee_ytd,
            employer_pension_ytd=pension.employer_ytd,
            student_loan_plan1_ytd=ytd.student_loan_plan1_ytd,
            student_loan_plan2_ytd=ytd.student_loan_plan2_ytd,
            student_loan_plan4_ytd=ytd.student_loan_plan4_ytd,
            postgraduate_loan_ytd=ytd.postgraduate_loan_ytd,
        )
        for plan_result in student_loan.plans:
            setattr(updated, LOAN_YTD_FIELDS[plan_result.plan], plan_result.ytd)
        return updated

    def _build_calculation_log(
        self,
        calc_input: PayrollCalculationInput,
        gross_pay: Decimal,
        tax: TaxCalculationResult,
        ni: NICalculationResult,
        student_loan: StudentLoanCalculationResult,
        pension: PensionCalculationResult,
        total_deductions: Decimal,
        net_pay: Decimal,
    ) -> tuple[str, ...]:
        period_type = to_period_type(calc_input.period_type)
        header = f"Payroll for {calc_input.employee.full_name}"
        if calc_input.pay_period_start and calc_input.pay_period_end:
            header += f" ({calc_input.pay_period_start} to {calc_input.pay_period_end})"

        return (
            header,
            f"Period {calc_input.period_number} ({period_type.value}), "
            f"tax year {calc_input.tax_year_config.tax_year}",
            f"Gross Pay: {fmt(gross_pay)}",
            f"Tax: {tax.calculation}",
            f"NI: {ni.calculation}",
            student_loan.calculation,
            pension.calculation,
            f"Total Deductions: {fmt(total_deductions)}",
            f"Net Pay: {fmt(round_to_pence(net_pay))}",
        )

    def _generate_calculation_id(self, calc_input: PayrollCalculationInput) -> UUID:
        """Generate deterministic calculation ID."""
        data = {
            "input": calc_input.to_canonical_dict(),
            "engine_version": self.settings.engine_version,
        }
        json_str = json.dumps(data, sort_keys=True)
        hash_bytes = hashlib.sha256(json_str.encode()).digest()
        return UUID(bytes=hash_bytes[:16])


def _collect(errors: list[str], result: ValidationResult) -> None:
    if not result.valid and result.error:
        errors.append(result.error)
