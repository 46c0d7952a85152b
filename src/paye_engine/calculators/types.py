"""Type definitions for the PAYE calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

ZERO = Decimal("0")


class PeriodType(str, Enum):
    """Pay frequencies supported by the engine."""

    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    FOUR_WEEKLY = "four_weekly"
    MONTHLY = "monthly"


class TaxCodeBasis(str, Enum):
    """Basis the tax code is operated on."""

    CUMULATIVE = "cumulative"
    WEEK1_MONTH1 = "week1month1"


class TaxRegion(str, Enum):
    """Income tax region selected by the tax code prefix."""

    ENGLAND_NI = "england_ni"
    SCOTLAND = "scotland"
    WALES = "wales"


class DirectorNIMethod(str, Enum):
    """How a company director's NI is reported."""

    ANNUAL = "annual"
    ALTERNATIVE = "alternative"


class AutoEnrolmentStatus(str, Enum):
    """Workplace pension auto-enrolment status."""

    ELIGIBLE = "eligible"
    ENROLLED = "enrolled"
    OPTED_OUT = "opted_out"
    NOT_ELIGIBLE = "not_eligible"
    POSTPONED = "postponed"
    PENDING = "pending"


class StudentLoanPlan(str, Enum):
    """Student and postgraduate loan repayment plans."""

    PLAN_1 = "plan1"
    PLAN_2 = "plan2"
    PLAN_4 = "plan4"
    POSTGRADUATE = "postgraduate"


# Every NI category letter HMRC issues for this engine's scope
NI_CATEGORIES = ("A", "B", "C", "F", "H", "I", "J", "L", "M", "S", "V", "Z")


@dataclass(frozen=True)
class ScottishBands:
    """Cumulative Scottish band limits, expressed on taxable pay."""

    starter_limit: Decimal
    basic_limit: Decimal
    intermediate_limit: Decimal
    higher_limit: Decimal


@dataclass(frozen=True)
class TaxYearConfiguration:
    """Statutory rates and thresholds for one UK tax year (6 April - 5 April).

    Income tax band limits are expressed on taxable pay, i.e. after the
    personal allowance has been deducted. NI thresholds are carried per pay
    frequency because HMRC publishes rounded monthly figures that are not an
    exact division of the weekly ones.

    Instances are shared between every employee in a pay run and must never
    be mutated by a calculator.
    """

    tax_year: str
    effective_from: date
    effective_to: date

    # England & Northern Ireland income tax
    personal_allowance: Decimal
    basic_rate_limit: Decimal
    higher_rate_limit: Decimal
    basic_rate: Decimal
    higher_rate: Decimal
    additional_rate: Decimal

    # Scottish income tax
    scottish_starter_rate: Decimal
    scottish_basic_rate: Decimal
    scottish_intermediate_rate: Decimal
    scottish_higher_rate: Decimal
    scottish_top_rate: Decimal
    scottish_bands: ScottishBands

    # Welsh income tax
    welsh_basic_rate: Decimal
    welsh_higher_rate: Decimal
    welsh_additional_rate: Decimal

    # National Insurance
    ni_primary_threshold_weekly: Decimal
    ni_primary_threshold_monthly: Decimal
    ni_primary_threshold_annual: Decimal
    ni_upper_earnings_limit_weekly: Decimal
    ni_upper_earnings_limit_monthly: Decimal
    ni_upper_earnings_limit_annual: Decimal
    ni_secondary_threshold_weekly: Decimal
    ni_secondary_threshold_monthly: Decimal
    ni_secondary_threshold_annual: Decimal
    ni_primary_rate: Decimal
    ni_primary_rate_above_uel: Decimal
    ni_employer_rate: Decimal
    ni_apprentice_upper_secondary_threshold_weekly: Decimal
    ni_apprentice_upper_secondary_threshold_monthly: Decimal
    ni_apprentice_upper_secondary_threshold_annual: Decimal

    # Student and postgraduate loans
    student_loan_plan1_threshold_annual: Decimal
    student_loan_plan2_threshold_annual: Decimal
    student_loan_plan4_threshold_annual: Decimal
    postgraduate_loan_threshold_annual: Decimal
    student_loan_rate: Decimal
    postgraduate_loan_rate: Decimal

    # Pension auto-enrolment
    auto_enrolment_lower_limit_annual: Decimal
    auto_enrolment_upper_limit_annual: Decimal
    auto_enrolment_earnings_threshold_annual: Decimal
    minimum_employee_contribution: Decimal
    minimum_employer_contribution: Decimal

    def problems(self) -> list[str]:
        """Return limit violations without raising.

        Calculators clamp misconfigured values to zero, so a bad configuration
        never aborts a pay run; callers surface these messages instead.
        """
        issues: list[str] = []

        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Decimal) and value < 0:
                issues.append(f"{f.name} must not be negative (got {value})")

        if self.higher_rate_limit < self.basic_rate_limit:
            issues.append("higher_rate_limit must be >= basic_rate_limit")

        bands = self.scottish_bands
        ordered = [
            ("starter_limit", bands.starter_limit),
            ("basic_limit", bands.basic_limit),
            ("intermediate_limit", bands.intermediate_limit),
            ("higher_limit", bands.higher_limit),
        ]
        for (lower_name, lower), (upper_name, upper) in zip(ordered, ordered[1:]):
            if lower < 0:
                issues.append(f"scottish_bands.{lower_name} must not be negative")
            if upper < lower:
                issues.append(f"scottish_bands.{upper_name} must be >= {lower_name}")

        for period in ("weekly", "monthly", "annual"):
            pt = getattr(self, f"ni_primary_threshold_{period}")
            uel = getattr(self, f"ni_upper_earnings_limit_{period}")
            if uel < pt:
                issues.append(f"ni_upper_earnings_limit_{period} must be >= primary threshold")

        if self.auto_enrolment_upper_limit_annual < self.auto_enrolment_lower_limit_annual:
            issues.append("auto_enrolment_upper_limit_annual must be >= lower limit")

        if self.effective_to < self.effective_from:
            issues.append("effective_to must not precede effective_from")

        return issues


@dataclass(frozen=True)
class Employee:
    """The slice of an HR employee record the calculators read.

    Owned by the external HR data layer; the engine never modifies it.
    """

    employee_id: str
    first_name: str = ""
    last_name: str = ""
    national_insurance_number: str | None = None

    tax_code: str | None = None
    tax_code_basis: TaxCodeBasis = TaxCodeBasis.CUMULATIVE
    ni_category: str | None = None
    is_director: bool = False
    director_ni_calculation_method: DirectorNIMethod = DirectorNIMethod.ANNUAL
    date_of_birth: date | None = None

    auto_enrolment_status: AutoEnrolmentStatus = AutoEnrolmentStatus.NOT_ELIGIBLE
    pension_contribution_percentage: Decimal | None = None

    student_loan_plans: frozenset[StudentLoanPlan] = frozenset()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.employee_id


@dataclass
class EmployeeYTDData:
    """Year-to-date totals for one employee in one tax year.

    Every field only grows within a tax year. Resetting at the year boundary
    belongs to the data layer.
    """

    gross_pay_ytd: Decimal = ZERO
    taxable_pay_ytd: Decimal = ZERO
    tax_paid_ytd: Decimal = ZERO
    niable_pay_ytd: Decimal = ZERO
    employee_ni_paid_ytd: Decimal = ZERO
    employer_ni_paid_ytd: Decimal = ZERO
    pensionable_pay_ytd: Decimal = ZERO
    employee_pension_ytd: Decimal = ZERO
    employer_pension_ytd: Decimal = ZERO
    student_loan_plan1_ytd: Decimal = ZERO
    student_loan_plan2_ytd: Decimal = ZERO
    student_loan_plan4_ytd: Decimal = ZERO
    postgraduate_loan_ytd: Decimal = ZERO

    def loan_paid_ytd(self, plan: StudentLoanPlan) -> Decimal:
        return getattr(self, LOAN_YTD_FIELDS[plan])

    def to_dict(self) -> dict[str, str]:
        """Return the camelCase snapshot the data layer persists."""
        return {YTD_RECORD_KEYS[f.name]: str(getattr(self, f.name)) for f in fields(self)}


LOAN_YTD_FIELDS: dict[StudentLoanPlan, str] = {
    StudentLoanPlan.PLAN_1: "student_loan_plan1_ytd",
    StudentLoanPlan.PLAN_2: "student_loan_plan2_ytd",
    StudentLoanPlan.PLAN_4: "student_loan_plan4_ytd",
    StudentLoanPlan.POSTGRADUATE: "postgraduate_loan_ytd",
}

YTD_RECORD_KEYS: dict[str, str] = {
    "gross_pay_ytd": "grossPayYTD",
    "taxable_pay_ytd": "taxablePayYTD",
    "tax_paid_ytd": "taxPaidYTD",
    "niable_pay_ytd": "niablePayYTD",
    "employee_ni_paid_ytd": "employeeNIPaidYTD",
    "employer_ni_paid_ytd": "employerNIPaidYTD",
    "pensionable_pay_ytd": "pensionablePayYTD",
    "employee_pension_ytd": "employeePensionYTD",
    "employer_pension_ytd": "employerPensionYTD",
    "student_loan_plan1_ytd": "studentLoanPlan1YTD",
    "student_loan_plan2_ytd": "studentLoanPlan2YTD",
    "student_loan_plan4_ytd": "studentLoanPlan4YTD",
    "postgraduate_loan_ytd": "postgraduateLoanYTD",
}


@dataclass(frozen=True)
class GrossPayBreakdown:
    """One period's pay components.

    Taxable, NI-able and pensionable pay are derived through separate
    inclusion tables. All three currently include every component.
    """

    base_pay: Decimal = ZERO
    bonuses: Decimal = ZERO
    commission: Decimal = ZERO
    tronc_payment: Decimal = ZERO
    holiday_pay: Decimal = ZERO
    other_payments: Decimal = ZERO

    COMPONENTS = (
        "base_pay",
        "bonuses",
        "commission",
        "tronc_payment",
        "holiday_pay",
        "other_payments",
    )
    TAXABLE_COMPONENTS = frozenset(COMPONENTS)
    NIABLE_COMPONENTS = frozenset(COMPONENTS)
    PENSIONABLE_COMPONENTS = frozenset(COMPONENTS)

    def _sum(self, included: frozenset[str]) -> Decimal:
        return sum((getattr(self, name) for name in self.COMPONENTS if name in included), ZERO)

    @property
    def total(self) -> Decimal:
        return self._sum(frozenset(self.COMPONENTS))

    @property
    def taxable(self) -> Decimal:
        return self._sum(self.TAXABLE_COMPONENTS)

    @property
    def niable(self) -> Decimal:
        return self._sum(self.NIABLE_COMPONENTS)

    @property
    def pensionable(self) -> Decimal:
        return self._sum(self.PENSIONABLE_COMPONENTS)


@dataclass(frozen=True)
class TaxBandBreakdown:
    """Tax charged within one band, for the payslip narrative."""

    band: str
    rate: Decimal  # Percentage, e.g. 20 for 20%
    amount: Decimal
    tax_on_band: Decimal


@dataclass(frozen=True)
class TaxCalculationResult:
    tax_code: str
    tax_code_basis: TaxCodeBasis
    region: TaxRegion
    taxable_pay_this_period: Decimal
    tax_due_this_period: Decimal
    tax_paid_ytd: Decimal
    personal_allowance_used: Decimal
    tax_bands: tuple[TaxBandBreakdown, ...]
    calculation: str
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class NICalculationResult:
    ni_category: str
    is_director: bool
    calculation_method: str  # 'standard' or the director method
    employee_ni_this_period: Decimal
    employee_ni_rate: Decimal
    employee_ni_ytd: Decimal
    employer_ni_this_period: Decimal
    employer_ni_rate: Decimal
    employer_ni_ytd: Decimal
    primary_threshold: Decimal
    upper_earnings_limit: Decimal
    secondary_threshold: Decimal
    calculation: str
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class StudentLoanPlanResult:
    plan: StudentLoanPlan
    threshold: Decimal  # Per-period threshold
    rate: Decimal
    deduction: Decimal
    ytd: Decimal


@dataclass(frozen=True)
class StudentLoanCalculationResult:
    has_student_loan: bool
    plans: tuple[StudentLoanPlanResult, ...]
    total_deduction: Decimal
    calculation: str

    def plan(self, plan: StudentLoanPlan) -> StudentLoanPlanResult | None:
        return next((p for p in self.plans if p.plan == plan), None)


@dataclass(frozen=True)
class PensionCalculationResult:
    is_enrolled: bool
    auto_enrolment_status: str
    qualifying_earnings: Decimal
    lower_limit: Decimal
    upper_limit: Decimal
    employee_rate: Decimal
    employer_rate: Decimal
    employee_contribution: Decimal
    employer_contribution: Decimal
    employee_ytd: Decimal
    employer_ytd: Decimal
    calculation: str


@dataclass(frozen=True)
class AutoEnrolmentEligibility:
    eligible: bool
    age: int | None
    annualised_earnings: Decimal
    reason: str


@dataclass(frozen=True)
class PayrollCalculationInput:
    """Everything one employee's pay calculation depends on."""

    employee: Employee
    gross_pay: Decimal
    period_number: int
    period_type: PeriodType
    tax_year_config: TaxYearConfiguration
    employee_ytd: EmployeeYTDData = field(default_factory=EmployeeYTDData)

    bonuses: Decimal = ZERO
    commission: Decimal = ZERO
    tronc_payment: Decimal = ZERO
    holiday_pay: Decimal = ZERO
    other_payments: Decimal = ZERO

    pay_period_start: date | None = None
    pay_period_end: date | None = None

    def breakdown(self) -> GrossPayBreakdown:
        return GrossPayBreakdown(
            base_pay=self.gross_pay,
            bonuses=self.bonuses,
            commission=self.commission,
            tronc_payment=self.tronc_payment,
            holiday_pay=self.holiday_pay,
            other_payments=self.other_payments,
        )

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "employee_id": self.employee.employee_id,
            "tax_code": self.employee.tax_code,
            "tax_code_basis": getattr(self.employee.tax_code_basis, "value", self.employee.tax_code_basis),
            "ni_category": self.employee.ni_category,
            "is_director": self.employee.is_director,
            "date_of_birth": str(self.employee.date_of_birth) if self.employee.date_of_birth else None,
            "auto_enrolment_status": getattr(
                self.employee.auto_enrolment_status, "value", self.employee.auto_enrolment_status
            ),
            "pension_contribution_percentage": (
                str(self.employee.pension_contribution_percentage)
                if self.employee.pension_contribution_percentage is not None
                else None
            ),
            "student_loan_plans": sorted(
                getattr(p, "value", p) for p in self.employee.student_loan_plans
            ),
            "tax_year": self.tax_year_config.tax_year,
            "period_number": self.period_number,
            "period_type": getattr(self.period_type, "value", self.period_type),
            "pay": {name: str(getattr(self, name)) for name in (
                "gross_pay",
                "bonuses",
                "commission",
                "tronc_payment",
                "holiday_pay",
                "other_payments",
            )},
            "ytd": self.employee_ytd.to_dict(),
            "pay_period_end": str(self.pay_period_end) if self.pay_period_end else None,
        }


@dataclass(frozen=True)
class PayrollCalculationResult:
    """Result of calculating pay for one employee for one period."""

    calculation_id: UUID
    gross_pay_before_deductions: Decimal
    taxable_gross_pay: Decimal
    niable_gross_pay: Decimal
    pensionable_gross_pay: Decimal

    tax_calculation: TaxCalculationResult
    ni_calculation: NICalculationResult
    student_loan_calculation: StudentLoanCalculationResult
    pension_calculation: PensionCalculationResult

    total_deductions: Decimal
    net_pay: Decimal
    employer_costs: Decimal

    updated_ytd: EmployeeYTDData
    calculation_log: tuple[str, ...]
    warnings: tuple[str, ...] = ()

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None


@dataclass
class InputValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
