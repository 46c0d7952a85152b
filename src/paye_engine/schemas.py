"""Pydantic schemas for the HR data layer's persisted records.

Records arrive in camelCase with epoch-millisecond dates. Each schema
validates one record and converts it to the calculators' dataclasses with
``to_domain()``. Validation errors surface here as ``pydantic.ValidationError``;
the calculators never see a malformed record.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from paye_engine.calculators.types import (
    AutoEnrolmentStatus,
    DirectorNIMethod,
    Employee,
    EmployeeYTDData,
    ScottishBands,
    StudentLoanPlan,
    TaxCodeBasis,
    TaxYearConfiguration,
)

Money = Annotated[Decimal, Field(ge=0)]
Rate = Annotated[Decimal, Field(ge=0, le=1)]


def _epoch_ms_to_date(value: Any) -> Any:
    """Convert epoch milliseconds to a UTC date; other values pass through."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).date()
    return value


class RecordModel(BaseModel):
    """Base for camelCase records; snake_case field names are accepted too."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ============================================================================
# Tax year configuration
# ============================================================================


class ScottishBandsSchema(RecordModel):
    """Cumulative Scottish limits on taxable pay."""

    starter_limit: Money = Field(alias="starterLimit")
    basic_limit: Money = Field(alias="basicLimit")
    intermediate_limit: Money = Field(alias="intermediateLimit")
    higher_limit: Money = Field(alias="higherLimit")

    @model_validator(mode="after")
    def check_ordering(self) -> ScottishBandsSchema:
        if not (
            self.starter_limit <= self.basic_limit <= self.intermediate_limit <= self.higher_limit
        ):
            raise ValueError("Scottish band limits must be in ascending order")
        return self


class TaxYearConfigurationSchema(RecordModel):
    """One tax year's rates and thresholds.

    Income tax band limits are read as limits on taxable pay. Apprentice
    thresholds for weekly and monthly pay default to the UEL for that
    frequency, which is where HMRC sets them.
    """

    tax_year: str = Field(alias="taxYear", pattern=r"^\d{4}-\d{2}$")
    effective_from: date = Field(alias="effectiveFrom")
    effective_to: date = Field(alias="effectiveTo")

    personal_allowance: Money = Field(alias="personalAllowance")
    basic_rate_limit: Money = Field(alias="basicRateLimit")
    higher_rate_limit: Money = Field(alias="higherRateLimit")
    basic_rate: Rate = Field(alias="basicRate")
    higher_rate: Rate = Field(alias="higherRate")
    additional_rate: Rate = Field(alias="additionalRate")

    scottish_starter_rate: Rate = Field(alias="scottishStarterRate")
    scottish_basic_rate: Rate = Field(alias="scottishBasicRate")
    scottish_intermediate_rate: Rate = Field(alias="scottishIntermediateRate")
    scottish_higher_rate: Rate = Field(alias="scottishHigherRate")
    scottish_top_rate: Rate = Field(alias="scottishTopRate")
    scottish_bands: ScottishBandsSchema = Field(alias="scottishBands")

    welsh_basic_rate: Rate = Field(alias="welshBasicRate")
    welsh_higher_rate: Rate = Field(alias="welshHigherRate")
    welsh_additional_rate: Rate = Field(alias="welshAdditionalRate")

    ni_primary_threshold_weekly: Money = Field(alias="niPrimaryThresholdWeekly")
    ni_primary_threshold_monthly: Money = Field(alias="niPrimaryThresholdMonthly")
    ni_primary_threshold_annual: Money = Field(alias="niPrimaryThresholdAnnual")
    ni_upper_earnings_limit_weekly: Money = Field(alias="niUpperEarningsLimitWeekly")
    ni_upper_earnings_limit_monthly: Money = Field(alias="niUpperEarningsLimitMonthly")
    ni_upper_earnings_limit_annual: Money = Field(alias="niUpperEarningsLimitAnnual")
    ni_secondary_threshold_weekly: Money = Field(alias="niSecondaryThresholdWeekly")
    ni_secondary_threshold_monthly: Money = Field(alias="niSecondaryThresholdMonthly")
    ni_secondary_threshold_annual: Money = Field(alias="niSecondaryThresholdAnnual")
    ni_primary_rate: Rate = Field(alias="niPrimaryRate")
    ni_primary_rate_above_uel: Rate = Field(alias="niPrimaryRateAboveUEL")
    ni_employer_rate: Rate = Field(alias="niEmployerRate")
    ni_apprentice_upper_secondary_threshold_annual: Money = Field(
        alias="niApprenticeUpperSecondaryThresholdAnnual"
    )
    ni_apprentice_upper_secondary_threshold_weekly: Money | None = Field(
        default=None, alias="niApprenticeUpperSecondaryThresholdWeekly"
    )
    ni_apprentice_upper_secondary_threshold_monthly: Money | None = Field(
        default=None, alias="niApprenticeUpperSecondaryThresholdMonthly"
    )

    student_loan_plan1_threshold_annual: Money = Field(alias="studentLoanPlan1ThresholdAnnual")
    student_loan_plan2_threshold_annual: Money = Field(alias="studentLoanPlan2ThresholdAnnual")
    student_loan_plan4_threshold_annual: Money = Field(alias="studentLoanPlan4ThresholdAnnual")
    postgraduate_loan_threshold_annual: Money = Field(alias="postgraduateLoanThresholdAnnual")
    student_loan_rate: Rate = Field(alias="studentLoanRate")
    postgraduate_loan_rate: Rate = Field(alias="postgraduateLoanRate")

    auto_enrolment_lower_limit_annual: Money = Field(alias="autoEnrolmentLowerLimitAnnual")
    auto_enrolment_upper_limit_annual: Money = Field(alias="autoEnrolmentUpperLimitAnnual")
    auto_enrolment_earnings_threshold_annual: Money = Field(
        alias="autoEnrolmentEarningsThresholdAnnual"
    )
    minimum_employee_contribution: Rate = Field(alias="minimumEmployeeContribution")
    minimum_employer_contribution: Rate = Field(alias="minimumEmployerContribution")

    @field_validator("effective_from", "effective_to", mode="before")
    @classmethod
    def parse_epoch_dates(cls, value: Any) -> Any:
        return _epoch_ms_to_date(value)

    def to_domain(self) -> TaxYearConfiguration:
        data = self.model_dump(exclude={"scottish_bands"})
        if data["ni_apprentice_upper_secondary_threshold_weekly"] is None:
            data["ni_apprentice_upper_secondary_threshold_weekly"] = (
                self.ni_upper_earnings_limit_weekly
            )
        if data["ni_apprentice_upper_secondary_threshold_monthly"] is None:
            data["ni_apprentice_upper_secondary_threshold_monthly"] = (
                self.ni_upper_earnings_limit_monthly
            )
        return TaxYearConfiguration(
            scottish_bands=ScottishBands(**self.scottish_bands.model_dump()),
            **data,
        )


# ============================================================================
# Employee
# ============================================================================


class EmployeeSchema(RecordModel):
    """The payroll fields of an HR employee record."""

    id: str = Field(min_length=1)
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    national_insurance_number: str | None = Field(default=None, alias="nationalInsuranceNumber")
    date_of_birth: date | None = Field(default=None, alias="dateOfBirth")

    tax_code: str | None = Field(default=None, alias="taxCode")
    tax_code_basis: TaxCodeBasis = Field(default=TaxCodeBasis.CUMULATIVE, alias="taxCodeBasis")
    ni_category: str | None = Field(default=None, alias="niCategory")
    is_director: bool = Field(default=False, alias="isDirector")
    director_ni_calculation_method: DirectorNIMethod = Field(
        default=DirectorNIMethod.ANNUAL, alias="directorNICalculationMethod"
    )

    auto_enrolment_status: AutoEnrolmentStatus = Field(
        default=AutoEnrolmentStatus.NOT_ELIGIBLE, alias="autoEnrolmentStatus"
    )
    pension_contribution_percentage: Decimal | None = Field(
        default=None, ge=0, le=100, alias="pensionContributionPercentage"
    )

    student_loan_plan: Literal["none", "plan1", "plan2", "plan4"] = Field(
        default="none", alias="studentLoanPlan"
    )
    has_postgraduate_loan: bool = Field(default=False, alias="hasPostgraduateLoan")

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def parse_date_of_birth(cls, value: Any) -> Any:
        return _epoch_ms_to_date(value)

    @field_validator("tax_code", "ni_category", "national_insurance_number")
    @classmethod
    def normalize_codes(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().upper() or None

    def to_domain(self) -> Employee:
        plans: set[StudentLoanPlan] = set()
        if self.student_loan_plan != "none":
            plans.add(StudentLoanPlan(self.student_loan_plan))
        if self.has_postgraduate_loan:
            plans.add(StudentLoanPlan.POSTGRADUATE)

        return Employee(
            employee_id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            national_insurance_number=self.national_insurance_number,
            tax_code=self.tax_code,
            tax_code_basis=self.tax_code_basis,
            ni_category=self.ni_category,
            is_director=self.is_director,
            director_ni_calculation_method=self.director_ni_calculation_method,
            date_of_birth=self.date_of_birth,
            auto_enrolment_status=self.auto_enrolment_status,
            pension_contribution_percentage=self.pension_contribution_percentage,
            student_loan_plans=frozenset(plans),
        )


# ============================================================================
# Year to date
# ============================================================================


class EmployeeYTDSchema(RecordModel):
    """Persisted YTD totals; missing figures are zero."""

    gross_pay_ytd: Money = Field(default=Decimal("0"), alias="grossPayYTD")
    taxable_pay_ytd: Money = Field(default=Decimal("0"), alias="taxablePayYTD")
    tax_paid_ytd: Money = Field(default=Decimal("0"), alias="taxPaidYTD")
    niable_pay_ytd: Money = Field(default=Decimal("0"), alias="niablePayYTD")
    employee_ni_paid_ytd: Money = Field(default=Decimal("0"), alias="employeeNIPaidYTD")
    employer_ni_paid_ytd: Money = Field(default=Decimal("0"), alias="employerNIPaidYTD")
    pensionable_pay_ytd: Money = Field(default=Decimal("0"), alias="pensionablePayYTD")
    employee_pension_ytd: Money = Field(default=Decimal("0"), alias="employeePensionYTD")
    employer_pension_ytd: Money = Field(default=Decimal("0"), alias="employerPensionYTD")
    student_loan_plan1_ytd: Money = Field(default=Decimal("0"), alias="studentLoanPlan1YTD")
    student_loan_plan2_ytd: Money = Field(default=Decimal("0"), alias="studentLoanPlan2YTD")
    student_loan_plan4_ytd: Money = Field(default=Decimal("0"), alias="studentLoanPlan4YTD")
    postgraduate_loan_ytd: Money = Field(default=Decimal("0"), alias="postgraduateLoanYTD")

    def to_domain(self) -> EmployeeYTDData:
        return EmployeeYTDData(**self.model_dump())
