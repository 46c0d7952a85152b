"""Student and postgraduate loan deductions."""

from __future__ import annotations

from decimal import Decimal

from paye_engine.calculators.money import fmt, fmt_rate, non_negative, round_to_pence
from paye_engine.calculators.periods import annual_to_period
from paye_engine.calculators.types import (
    ZERO,
    Employee,
    EmployeeYTDData,
    PeriodType,
    StudentLoanCalculationResult,
    StudentLoanPlan,
    StudentLoanPlanResult,
    TaxYearConfiguration,
    ValidationResult,
)

# Deduction order on the payslip
PLAN_ORDER = (
    StudentLoanPlan.PLAN_1,
    StudentLoanPlan.PLAN_2,
    StudentLoanPlan.PLAN_4,
    StudentLoanPlan.POSTGRADUATE,
)

PLAN_LABELS = {
    StudentLoanPlan.PLAN_1: "Plan 1",
    StudentLoanPlan.PLAN_2: "Plan 2",
    StudentLoanPlan.PLAN_4: "Plan 4",
    StudentLoanPlan.POSTGRADUATE: "Postgraduate",
}


def validate_student_loan_plan(plan: str) -> ValidationResult:
    """Validate a student loan plan value from the HR record ('none' is allowed)."""
    allowed = ["none"] + [p.value for p in PLAN_ORDER]
    if (plan or "").strip().lower() not in allowed:
        return ValidationResult(
            valid=False,
            error=f"Invalid student loan plan. Valid plans: {', '.join(allowed)}",
        )
    return ValidationResult(valid=True)


class StudentLoanCalculator:
    """Calculates loan deductions for every active plan.

    Plans are independent: each has its own threshold and rate, and an
    employee can repay an undergraduate plan and a postgraduate loan at once.
    """

    def calculate_student_loan(
        self,
        employee: Employee,
        gross_pay: Decimal,
        period_type: PeriodType,
        config: TaxYearConfiguration,
        ytd: EmployeeYTDData,
    ) -> StudentLoanCalculationResult:
        active = [plan for plan in PLAN_ORDER if plan in employee.student_loan_plans]

        if not active:
            return StudentLoanCalculationResult(
                has_student_loan=False,
                plans=(),
                total_deduction=ZERO,
                calculation="Student Loan: No active plans",
            )

        results: list[StudentLoanPlanResult] = []
        for plan in active:
            threshold_annual, rate = self.plan_terms(plan, config)
            threshold = annual_to_period(non_negative(threshold_annual), period_type)
            deduction = round_to_pence(non_negative(gross_pay - threshold) * rate)
            results.append(
                StudentLoanPlanResult(
                    plan=plan,
                    threshold=round_to_pence(threshold),
                    rate=rate,
                    deduction=deduction,
                    ytd=ytd.loan_paid_ytd(plan) + deduction,
                )
            )

        total = sum((r.deduction for r in results), ZERO)
        parts = ", ".join(
            f"{PLAN_LABELS[r.plan]} {fmt(r.deduction)} ({fmt_rate(r.rate)} above {fmt(r.threshold)})"
            for r in results
        )

        return StudentLoanCalculationResult(
            has_student_loan=True,
            plans=tuple(results),
            total_deduction=total,
            calculation=f"Student Loan: {parts}; Total {fmt(total)}",
        )

    @staticmethod
    def plan_terms(plan: StudentLoanPlan, config: TaxYearConfiguration) -> tuple[Decimal, Decimal]:
        """Annual threshold and repayment rate for a plan."""
        return {
            StudentLoanPlan.PLAN_1: (config.student_loan_plan1_threshold_annual, config.student_loan_rate),
            StudentLoanPlan.PLAN_2: (config.student_loan_plan2_threshold_annual, config.student_loan_rate),
            StudentLoanPlan.PLAN_4: (config.student_loan_plan4_threshold_annual, config.student_loan_rate),
            StudentLoanPlan.POSTGRADUATE: (
                config.postgraduate_loan_threshold_annual,
                config.postgraduate_loan_rate,
            ),
        }[plan]
