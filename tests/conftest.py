"""Pytest fixtures for PAYE engine tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Callable

import pytest

from paye_engine.calculators.engine import PayrollEngine
from paye_engine.calculators.types import (
    AutoEnrolmentStatus,
    Employee,
    EmployeeYTDData,
    PayrollCalculationInput,
    PeriodType,
    TaxYearConfiguration,
)
from paye_engine.config import Settings, get_settings
from paye_engine.tax_years import TAX_YEAR_2024_25

PAY_DATE = date(2024, 4, 30)


@pytest.fixture
def config() -> TaxYearConfiguration:
    """2024-25 rates and thresholds."""
    return TAX_YEAR_2024_25


@pytest.fixture
def settings() -> Settings:
    return Settings(
        engine_version="1.0.0",
        default_tax_code="1257L",
        default_ni_category="A",
        default_tax_year="2024-25",
    )


@pytest.fixture
def engine(settings) -> PayrollEngine:
    return PayrollEngine(settings)


@pytest.fixture
def zero_ytd() -> EmployeeYTDData:
    return EmployeeYTDData()


@pytest.fixture
def make_employee() -> Callable[..., Employee]:
    """Factory for employees; keyword overrides replace the defaults."""

    def _make(**overrides) -> Employee:
        employee = Employee(
            employee_id="EMP001",
            first_name="Jane",
            last_name="Smith",
            national_insurance_number="AB123456C",
            tax_code="1257L",
            ni_category="A",
            date_of_birth=date(1990, 1, 1),
            auto_enrolment_status=AutoEnrolmentStatus.NOT_ELIGIBLE,
        )
        return replace(employee, **overrides)

    return _make


@pytest.fixture
def make_input(make_employee, config) -> Callable[..., PayrollCalculationInput]:
    """Factory for a monthly period-1 input of £3,000."""

    def _make(employee: Employee | None = None, **overrides) -> PayrollCalculationInput:
        calc_input = PayrollCalculationInput(
            employee=employee or make_employee(),
            gross_pay=Decimal("3000"),
            period_number=1,
            period_type=PeriodType.MONTHLY,
            tax_year_config=config,
            employee_ytd=EmployeeYTDData(),
            pay_period_start=date(2024, 4, 6),
            pay_period_end=date(2024, 5, 5),
        )
        return replace(calc_input, **overrides)

    return _make


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; tests that patch the env need a fresh read."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
