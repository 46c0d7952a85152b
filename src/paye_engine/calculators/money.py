"""Money rounding helpers shared by every calculator.

Rounding:
- GBP to 2 decimals on every amount reported in a result
- Intermediate figures (pro-rated allowances, band widths) keep full precision
- YTD totals are built from already-rounded period amounts
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from paye_engine.calculators.types import ZERO

PENCE = Decimal("0.01")


def round_to_pence(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places, half away from zero."""
    return amount.quantize(PENCE, rounding=ROUND_HALF_UP)


def non_negative(amount: Decimal) -> Decimal:
    """Floor an amount at zero."""
    return amount if amount > 0 else ZERO


def as_percent(rate: Decimal) -> Decimal:
    """Express a decimal rate (0.2) as a percentage (20)."""
    return rate * 100


def fmt_rate(rate: Decimal) -> str:
    """Format a decimal rate for narratives, e.g. 0.138 -> "13.8%"."""
    return f"{rate * 100:.2f}".rstrip("0").rstrip(".") + "%"


def fmt(amount: Decimal) -> str:
    """Format an amount as pounds for calculation narratives."""
    return f"£{round_to_pence(amount):,.2f}"
