"""Pay period and tax year arithmetic."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from paye_engine.calculators.types import PeriodType

PERIODS_IN_YEAR: dict[PeriodType, int] = {
    PeriodType.WEEKLY: 52,
    PeriodType.FORTNIGHTLY: 26,
    PeriodType.FOUR_WEEKLY: 13,
    PeriodType.MONTHLY: 12,
}

# Highest period number HMRC allows (week 53 and its equivalents)
MAX_PERIOD_NUMBER: dict[PeriodType, int] = {
    PeriodType.WEEKLY: 53,
    PeriodType.FORTNIGHTLY: 27,
    PeriodType.FOUR_WEEKLY: 14,
    PeriodType.MONTHLY: 12,
}

_DAYS_PER_PERIOD: dict[PeriodType, int] = {
    PeriodType.WEEKLY: 7,
    PeriodType.FORTNIGHTLY: 14,
    PeriodType.FOUR_WEEKLY: 28,
}


def to_period_type(period_type: PeriodType | str) -> PeriodType:
    """Coerce a raw frequency string, falling back to weekly like HMRC tables do."""
    try:
        return PeriodType(period_type)
    except ValueError:
        return PeriodType.WEEKLY


def periods_in_year(period_type: PeriodType | str) -> int:
    return PERIODS_IN_YEAR[to_period_type(period_type)]


def annual_to_period(amount: Decimal, period_type: PeriodType | str) -> Decimal:
    """Pro-rate an annual figure to a single pay period."""
    return amount / periods_in_year(period_type)


def tax_year_start(on: date) -> date:
    """Return the 6 April that opens the tax year containing ``on``."""
    start = date(on.year, 4, 6)
    if on < start:
        return date(on.year - 1, 4, 6)
    return start


def tax_year_for(on: date) -> str:
    """Return the tax year label, e.g. ``2024-25``."""
    start_year = tax_year_start(on).year
    return f"{start_year}-{str(start_year + 1)[-2:]}"


def period_number_for(on: date, period_type: PeriodType | str) -> int:
    """Return the 1-based tax period that ``on`` falls in.

    Monthly periods run from the 6th to the 5th. Weekly-based periods count
    whole 7/14/28-day blocks from 6 April.
    """
    period_type = to_period_type(period_type)
    start = tax_year_start(on)

    if period_type == PeriodType.MONTHLY:
        months = (on.year - start.year) * 12 + (on.month - start.month)
        if on.day < 6:
            months -= 1
        number = months + 1
    else:
        days = (on - start).days
        number = days // _DAYS_PER_PERIOD[period_type] + 1

    return min(max(number, 1), MAX_PERIOD_NUMBER[period_type])


def age_on(date_of_birth: date, as_of: date | None = None) -> int:
    """Calendar-accurate age in whole years.

    ``as_of`` defaults to today.
    """
    as_of = as_of or date.today()
    age = as_of.year - date_of_birth.year
    if (as_of.month, as_of.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age
