"""PAYE payroll calculators."""

from paye_engine.calculators.engine import PayrollEngine, validate_ni_number
from paye_engine.calculators.ni_calculator import NICalculator, validate_ni_category
from paye_engine.calculators.pension_calculator import (
    PensionCalculator,
    check_auto_enrolment_eligibility,
    validate_pension_contribution,
)
from paye_engine.calculators.student_loan_calculator import (
    StudentLoanCalculator,
    validate_student_loan_plan,
)
from paye_engine.calculators.tax_calculator import (
    TaxCalculator,
    parse_tax_code,
    validate_tax_code,
)
from paye_engine.calculators.types import (
    Employee,
    EmployeeYTDData,
    PayrollCalculationInput,
    PayrollCalculationResult,
    PeriodType,
    TaxYearConfiguration,
)

__all__ = [
    "PayrollEngine",
    "TaxCalculator",
    "NICalculator",
    "StudentLoanCalculator",
    "PensionCalculator",
    "Employee",
    "EmployeeYTDData",
    "PayrollCalculationInput",
    "PayrollCalculationResult",
    "PeriodType",
    "TaxYearConfiguration",
    "parse_tax_code",
    "check_auto_enrolment_eligibility",
    "validate_tax_code",
    "validate_ni_category",
    "validate_ni_number",
    "validate_pension_contribution",
    "validate_student_loan_plan",
]
