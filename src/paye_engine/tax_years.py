"""Published HMRC rates and thresholds, one configuration per tax year.

Sources:
    https://www.gov.uk/guidance/rates-and-thresholds-for-employers-2024-to-2025
    https://www.gov.uk/guidance/rates-and-thresholds-for-employers-2025-to-2026

Income tax band limits are stored on taxable pay (above the personal
allowance), which is what the progressive band calculation consumes.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from paye_engine.calculators.types import (
    EmployeeYTDData,
    ScottishBands,
    TaxYearConfiguration,
)
from paye_engine.config import get_settings


class UnknownTaxYearError(KeyError):
    """Raised when no configuration ships for a tax year."""

    def __init__(self, tax_year: str):
        self.tax_year = tax_year
        super().__init__(f"No tax year configuration for '{tax_year}'")


D = Decimal

TAX_YEAR_2024_25 = TaxYearConfiguration(
    tax_year="2024-25",
    effective_from=date(2024, 4, 6),
    effective_to=date(2025, 4, 5),
    personal_allowance=D("12570"),
    basic_rate_limit=D("37700"),
    higher_rate_limit=D("125140"),
    basic_rate=D("0.20"),
    higher_rate=D("0.40"),
    additional_rate=D("0.45"),
    scottish_starter_rate=D("0.19"),
    scottish_basic_rate=D("0.20"),
    scottish_intermediate_rate=D("0.21"),
    scottish_higher_rate=D("0.42"),
    scottish_top_rate=D("0.47"),
    scottish_bands=ScottishBands(
        starter_limit=D("2306"),
        basic_limit=D("13991"),
        intermediate_limit=D("31092"),
        higher_limit=D("62430"),
    ),
    welsh_basic_rate=D("0.20"),
    welsh_higher_rate=D("0.40"),
    welsh_additional_rate=D("0.45"),
    ni_primary_threshold_weekly=D("242"),
    ni_primary_threshold_monthly=D("1048"),
    ni_primary_threshold_annual=D("12570"),
    ni_upper_earnings_limit_weekly=D("967"),
    ni_upper_earnings_limit_monthly=D("4189"),
    ni_upper_earnings_limit_annual=D("50270"),
    ni_secondary_threshold_weekly=D("175"),
    ni_secondary_threshold_monthly=D("758"),
    ni_secondary_threshold_annual=D("9100"),
    ni_primary_rate=D("0.08"),
    ni_primary_rate_above_uel=D("0.02"),
    ni_employer_rate=D("0.138"),
    ni_apprentice_upper_secondary_threshold_weekly=D("967"),
    ni_apprentice_upper_secondary_threshold_monthly=D("4189"),
    ni_apprentice_upper_secondary_threshold_annual=D("50270"),
    student_loan_plan1_threshold_annual=D("22015"),
    student_loan_plan2_threshold_annual=D("27295"),
    student_loan_plan4_threshold_annual=D("27660"),
    postgraduate_loan_threshold_annual=D("21000"),
    student_loan_rate=D("0.09"),
    postgraduate_loan_rate=D("0.06"),
    auto_enrolment_lower_limit_annual=D("6240"),
    auto_enrolment_upper_limit_annual=D("50270"),
    auto_enrolment_earnings_threshold_annual=D("10000"),
    minimum_employee_contribution=D("0.05"),
    minimum_employer_contribution=D("0.03"),
)

TAX_YEAR_2025_26 = TaxYearConfiguration(
    tax_year="2025-26",
    effective_from=date(2025, 4, 6),
    effective_to=date(2026, 4, 5),
    personal_allowance=D("12570"),
    basic_rate_limit=D("37700"),
    higher_rate_limit=D("125140"),
    basic_rate=D("0.20"),
    higher_rate=D("0.40"),
    additional_rate=D("0.45"),
    scottish_starter_rate=D("0.19"),
    scottish_basic_rate=D("0.20"),
    scottish_intermediate_rate=D("0.21"),
    scottish_higher_rate=D("0.42"),
    scottish_top_rate=D("0.48"),
    scottish_bands=ScottishBands(
        starter_limit=D("2827"),
        basic_limit=D("14921"),
        intermediate_limit=D("31092"),
        higher_limit=D("62430"),
    ),
    welsh_basic_rate=D("0.20"),
    welsh_higher_rate=D("0.40"),
    welsh_additional_rate=D("0.45"),
    ni_primary_threshold_weekly=D("242"),
    ni_primary_threshold_monthly=D("1048"),
    ni_primary_threshold_annual=D("12570"),
    ni_upper_earnings_limit_weekly=D("967"),
    ni_upper_earnings_limit_monthly=D("4189"),
    ni_upper_earnings_limit_annual=D("50270"),
    ni_secondary_threshold_weekly=D("96"),
    ni_secondary_threshold_monthly=D("417"),
    ni_secondary_threshold_annual=D("5000"),
    ni_primary_rate=D("0.08"),
    ni_primary_rate_above_uel=D("0.02"),
    ni_employer_rate=D("0.15"),
    ni_apprentice_upper_secondary_threshold_weekly=D("967"),
    ni_apprentice_upper_secondary_threshold_monthly=D("4189"),
    ni_apprentice_upper_secondary_threshold_annual=D("50270"),
    student_loan_plan1_threshold_annual=D("26065"),
    student_loan_plan2_threshold_annual=D("28470"),
    student_loan_plan4_threshold_annual=D("32745"),
    postgraduate_loan_threshold_annual=D("21000"),
    student_loan_rate=D("0.09"),
    postgraduate_loan_rate=D("0.06"),
    auto_enrolment_lower_limit_annual=D("6240"),
    auto_enrolment_upper_limit_annual=D("50270"),
    auto_enrolment_earnings_threshold_annual=D("10000"),
    minimum_employee_contribution=D("0.05"),
    minimum_employer_contribution=D("0.03"),
)

TAX_YEARS: dict[str, TaxYearConfiguration] = {
    TAX_YEAR_2024_25.tax_year: TAX_YEAR_2024_25,
    TAX_YEAR_2025_26.tax_year: TAX_YEAR_2025_26,
}


def get_tax_year_config(tax_year: str) -> TaxYearConfiguration:
    """Return the shipped configuration for a tax year label such as ``2024-25``."""
    try:
        return TAX_YEARS[tax_year]
    except KeyError:
        raise UnknownTaxYearError(tax_year) from None


def default_tax_year_config() -> TaxYearConfiguration:
    """Configuration for the tax year named by ``PAYE_DEFAULT_TAX_YEAR``."""
    return get_tax_year_config(get_settings().default_tax_year)


def create_default_ytd() -> EmployeeYTDData:
    """Zeroed YTD snapshot for an employee's first pay run of the year."""
    return EmployeeYTDData()
