"""PAYE income tax calculation from UK tax codes.

Supported codes:
- Standard allowance codes (1257L, S1257L, C1257L, ...M/N/T)
- K suffix codes (negative allowance)
- BR, D0, D1 (flat rate on all pay)
- NT (no tax)
- 0T (no allowance, non-cumulative)

England/NI, Scottish (S prefix) and Welsh (C prefix) band sets are supported
on both the cumulative and the Week 1/Month 1 basis.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from decimal import Decimal

from paye_engine.calculators.money import (
    as_percent,
    fmt,
    fmt_rate,
    non_negative,
    round_to_pence,
)
from paye_engine.calculators.periods import periods_in_year
from paye_engine.calculators.types import (
    ZERO,
    Employee,
    EmployeeYTDData,
    PeriodType,
    TaxBandBreakdown,
    TaxCalculationResult,
    TaxCodeBasis,
    TaxRegion,
    TaxYearConfiguration,
    ValidationResult,
)

logger = logging.getLogger(__name__)

DEFAULT_TAX_CODE = "1257L"

FLAT_RATE_CODES = ("BR", "D0", "D1")
SPECIAL_CODES = FLAT_RATE_CODES + ("NT", "0T")

# Any single-letter prefix parses; only S and C select a non-default region
_CODE_PATTERN = re.compile(r"^([A-Z])?(\d+)([LMNTK])$")
_STRICT_CODE_PATTERN = re.compile(r"^(S|C)?(\d+)([LMNTK])$")

_REGION_PREFIXES = {"S": TaxRegion.SCOTLAND, "C": TaxRegion.WALES}


@dataclass(frozen=True)
class TaxBand:
    """One progressive band. ``limit`` is the band width; None = unlimited."""

    label: str
    rate: Decimal
    limit: Decimal | None


@dataclass(frozen=True)
class ParsedTaxCode:
    """A tax code split into its components."""

    code: str
    kind: str  # 'standard' or one of SPECIAL_CODES
    allowance: Decimal = ZERO
    region: TaxRegion = TaxRegion.ENGLAND_NI
    prefix: str = ""
    suffix: str = ""
    warning: str | None = None

    @property
    def is_special(self) -> bool:
        return self.kind != "standard"


class InvalidTaxCodeError(ValueError):
    """Raised by strict parsing when a tax code does not match the UK grammar."""

    def __init__(self, tax_code: str):
        self.tax_code = tax_code
        super().__init__(f"Invalid tax code format: {tax_code!r}")


def _parse_strict(tax_code: str) -> ParsedTaxCode:
    upper = tax_code.strip().upper()

    if upper in SPECIAL_CODES:
        return ParsedTaxCode(code=upper, kind=upper)

    match = _CODE_PATTERN.match(upper)
    if match is None:
        raise InvalidTaxCodeError(tax_code)

    prefix, digits, suffix = match.group(1) or "", match.group(2), match.group(3)
    allowance = Decimal(int(digits)) * 10
    if suffix == "K":
        allowance = -allowance

    return ParsedTaxCode(
        code=f"{prefix}{digits}{suffix}",
        kind="standard",
        allowance=allowance,
        region=_REGION_PREFIXES.get(prefix, TaxRegion.ENGLAND_NI),
        prefix=prefix,
        suffix=suffix,
    )


def parse_tax_code(tax_code: str | None, default: str = DEFAULT_TAX_CODE) -> ParsedTaxCode:
    """Parse a tax code, substituting ``default`` when it is missing or invalid.

    Never raises. A substitution is logged and recorded on the returned
    ``warning`` so it reaches the payslip narrative.
    """
    if tax_code is not None and tax_code.strip():
        try:
            return _parse_strict(tax_code)
        except InvalidTaxCodeError:
            pass

    try:
        parsed = _parse_strict(default)
    except InvalidTaxCodeError:
        parsed = _parse_strict(DEFAULT_TAX_CODE)

    if tax_code is None or not tax_code.strip():
        warning = f"No tax code provided, using default {parsed.code}"
    else:
        warning = f"Invalid tax code format: {tax_code}, using default {parsed.code}"
    logger.warning(warning)
    return replace(parsed, warning=warning)


def validate_tax_code(tax_code: str) -> ValidationResult:
    """Validate UK tax code format for data entry."""
    upper = (tax_code or "").strip().upper()

    if upper in SPECIAL_CODES:
        return ValidationResult(valid=True)

    if not _STRICT_CODE_PATTERN.match(upper):
        return ValidationResult(
            valid=False,
            error=(
                "Invalid tax code format. Expected: 1257L, S1257L, C1257L, "
                "BR, D0, D1, NT, or 0T"
            ),
        )

    return ValidationResult(valid=True)


class TaxCalculator:
    """Calculates PAYE income tax for one pay period.

    Stateless: one instance can serve every employee in a pay run.
    """

    def __init__(self, default_tax_code: str = DEFAULT_TAX_CODE):
        self.default_tax_code = default_tax_code

    def calculate_tax(
        self,
        employee: Employee,
        gross_pay: Decimal,
        period_number: int,
        period_type: PeriodType,
        config: TaxYearConfiguration,
        ytd: EmployeeYTDData,
    ) -> TaxCalculationResult:
        """Calculate tax due this period from the employee's tax code and basis."""
        parsed = parse_tax_code(employee.tax_code, self.default_tax_code)
        basis = (
            TaxCodeBasis.WEEK1_MONTH1
            if employee.tax_code_basis == TaxCodeBasis.WEEK1_MONTH1
            else TaxCodeBasis.CUMULATIVE
        )

        if parsed.kind in FLAT_RATE_CODES:
            result = self._calculate_flat_rate(parsed, gross_pay, basis, config, ytd)
        elif parsed.kind == "NT":
            result = self._calculate_no_tax(gross_pay, basis, ytd)
        elif parsed.kind == "0T":
            result = self._calculate_emergency(gross_pay, period_type, config, ytd)
        elif basis == TaxCodeBasis.CUMULATIVE:
            result = self._calculate_cumulative(
                parsed, gross_pay, period_number, period_type, config, ytd
            )
        else:
            result = self._calculate_week1_month1(parsed, gross_pay, period_type, config, ytd)

        if parsed.warning:
            result = replace(
                result,
                calculation=f"{result.calculation} [{parsed.warning}]",
                warnings=(parsed.warning,),
            )
        return result

    def _calculate_cumulative(
        self,
        parsed: ParsedTaxCode,
        gross_pay: Decimal,
        period_number: int,
        period_type: PeriodType,
        config: TaxYearConfiguration,
        ytd: EmployeeYTDData,
    ) -> TaxCalculationResult:
        """Cumulative basis: allowance and bands accrue linearly through the year.

        Tax this period is the difference between tax due to date and tax due
        to the end of the previous period, both recomputed here.
        """
        periods = periods_in_year(period_type)
        period_number = max(period_number, 1)

        allowance_per_period = parsed.allowance / periods
        allowance_to_date = allowance_per_period * period_number
        previous_allowance = allowance_per_period * (period_number - 1)

        pay_to_date = ytd.taxable_pay_ytd + gross_pay
        taxable_to_date = non_negative(pay_to_date - allowance_to_date)
        previous_taxable = non_negative(ytd.taxable_pay_ytd - previous_allowance)

        bands = self.bands_for_region(parsed.region, config)
        bands_to_date = self.scale_bands(bands, Decimal(period_number) / periods)
        previous_bands = self.scale_bands(bands, Decimal(period_number - 1) / periods)

        tax_due_to_date = self.calculate_progressive_tax(taxable_to_date, bands_to_date)
        previous_tax_due = self.calculate_progressive_tax(previous_taxable, previous_bands)
        tax_this_period = round_to_pence(non_negative(tax_due_to_date - previous_tax_due))

        return TaxCalculationResult(
            tax_code=parsed.code,
            tax_code_basis=TaxCodeBasis.CUMULATIVE,
            region=parsed.region,
            taxable_pay_this_period=gross_pay,
            tax_due_this_period=tax_this_period,
            tax_paid_ytd=ytd.tax_paid_ytd + tax_this_period,
            personal_allowance_used=round_to_pence(
                non_negative(min(pay_to_date, allowance_to_date))
            ),
            tax_bands=self.band_breakdown(taxable_to_date, bands_to_date),
            calculation=(
                f"Cumulative (Period {period_number}): Pay {fmt(pay_to_date)}, "
                f"Allowance {fmt(allowance_to_date)}, Taxable {fmt(taxable_to_date)}, "
                f"Tax {fmt(tax_this_period)}"
            ),
        )

    def _calculate_week1_month1(
        self,
        parsed: ParsedTaxCode,
        gross_pay: Decimal,
        period_type: PeriodType,
        config: TaxYearConfiguration,
        ytd: EmployeeYTDData,
    ) -> TaxCalculationResult:
        """Non-cumulative basis: every period is treated as period 1."""
        periods = periods_in_year(period_type)
        allowance_this_period = parsed.allowance / periods

        taxable = non_negative(gross_pay - allowance_this_period)
        bands = self.scale_bands(
            self.bands_for_region(parsed.region, config), Decimal(1) / periods
        )
        tax_this_period = round_to_pence(self.calculate_progressive_tax(taxable, bands))

        return TaxCalculationResult(
            tax_code=parsed.code,
            tax_code_basis=TaxCodeBasis.WEEK1_MONTH1,
            region=parsed.region,
            taxable_pay_this_period=gross_pay,
            tax_due_this_period=tax_this_period,
            tax_paid_ytd=ytd.tax_paid_ytd + tax_this_period,
            personal_allowance_used=round_to_pence(
                non_negative(min(gross_pay, allowance_this_period))
            ),
            tax_bands=self.band_breakdown(taxable, bands),
            calculation=(
                f"Week1/Month1: Pay {fmt(gross_pay)}, Allowance {fmt(allowance_this_period)}, "
                f"Taxable {fmt(taxable)}, Tax {fmt(tax_this_period)}"
            ),
        )

    def _calculate_flat_rate(
        self,
        parsed: ParsedTaxCode,
        gross_pay: Decimal,
        basis: TaxCodeBasis,
        config: TaxYearConfiguration,
        ytd: EmployeeYTDData,
    ) -> TaxCalculationResult:
        """BR, D0 and D1: one rate on all pay, no allowance."""
        label, rate = {
            "BR": ("Basic Rate", config.basic_rate),
            "D0": ("Higher Rate", config.higher_rate),
            "D1": ("Additional Rate", config.additional_rate),
        }[parsed.kind]

        taxable = non_negative(gross_pay)
        tax = round_to_pence(taxable * rate)

        return TaxCalculationResult(
            tax_code=parsed.code,
            tax_code_basis=basis,
            region=parsed.region,
            taxable_pay_this_period=gross_pay,
            tax_due_this_period=tax,
            tax_paid_ytd=ytd.tax_paid_ytd + tax,
            personal_allowance_used=ZERO,
            tax_bands=(
                TaxBandBreakdown(
                    band=label, rate=as_percent(rate), amount=taxable, tax_on_band=tax
                ),
            ),
            calculation=f"{parsed.code}: Flat {fmt_rate(rate)} on {fmt(taxable)} = {fmt(tax)}",
        )

    def _calculate_no_tax(
        self,
        gross_pay: Decimal,
        basis: TaxCodeBasis,
        ytd: EmployeeYTDData,
    ) -> TaxCalculationResult:
        return TaxCalculationResult(
            tax_code="NT",
            tax_code_basis=basis,
            region=TaxRegion.ENGLAND_NI,
            taxable_pay_this_period=gross_pay,
            tax_due_this_period=ZERO,
            tax_paid_ytd=ytd.tax_paid_ytd,
            personal_allowance_used=ZERO,
            tax_bands=(
                TaxBandBreakdown(
                    band="No Tax",
                    rate=ZERO,
                    amount=non_negative(gross_pay),
                    tax_on_band=ZERO,
                ),
            ),
            calculation="NT: No tax deducted",
        )

    def _calculate_emergency(
        self,
        gross_pay: Decimal,
        period_type: PeriodType,
        config: TaxYearConfiguration,
        ytd: EmployeeYTDData,
    ) -> TaxCalculationResult:
        """0T: no allowance, standard bands, always non-cumulative."""
        taxable = non_negative(gross_pay)
        bands = self.scale_bands(
            self.bands_for_region(TaxRegion.ENGLAND_NI, config),
            Decimal(1) / periods_in_year(period_type),
        )
        tax = round_to_pence(self.calculate_progressive_tax(taxable, bands))

        return TaxCalculationResult(
            tax_code="0T",
            tax_code_basis=TaxCodeBasis.WEEK1_MONTH1,
            region=TaxRegion.ENGLAND_NI,
            taxable_pay_this_period=gross_pay,
            tax_due_this_period=tax,
            tax_paid_ytd=ytd.tax_paid_ytd + tax,
            personal_allowance_used=ZERO,
            tax_bands=self.band_breakdown(taxable, bands),
            calculation=(
                f"0T Emergency: No allowances, {fmt(taxable)} at standard rates = {fmt(tax)}"
            ),
        )

    @staticmethod
    def bands_for_region(region: TaxRegion, config: TaxYearConfiguration) -> list[TaxBand]:
        """Annual band set for a region, widths derived from cumulative limits."""
        if region == TaxRegion.SCOTLAND:
            limits = config.scottish_bands
            return [
                TaxBand("Starter Rate", config.scottish_starter_rate, non_negative(limits.starter_limit)),
                TaxBand(
                    "Basic Rate",
                    config.scottish_basic_rate,
                    non_negative(limits.basic_limit - limits.starter_limit),
                ),
                TaxBand(
                    "Intermediate Rate",
                    config.scottish_intermediate_rate,
                    non_negative(limits.intermediate_limit - limits.basic_limit),
                ),
                TaxBand(
                    "Higher Rate",
                    config.scottish_higher_rate,
                    non_negative(limits.higher_limit - limits.intermediate_limit),
                ),
                TaxBand("Top Rate", config.scottish_top_rate, None),
            ]

        if region == TaxRegion.WALES:
            basic, higher, additional = (
                config.welsh_basic_rate,
                config.welsh_higher_rate,
                config.welsh_additional_rate,
            )
            prefix = "Welsh "
        else:
            basic, higher, additional = (
                config.basic_rate,
                config.higher_rate,
                config.additional_rate,
            )
            prefix = ""

        return [
            TaxBand(f"{prefix}Basic Rate", basic, non_negative(config.basic_rate_limit)),
            TaxBand(
                f"{prefix}Higher Rate",
                higher,
                non_negative(config.higher_rate_limit - config.basic_rate_limit),
            ),
            TaxBand(f"{prefix}Additional Rate", additional, None),
        ]

    @staticmethod
    def scale_bands(bands: list[TaxBand], factor: Decimal) -> list[TaxBand]:
        """Pro-rate band widths, e.g. to a period or to the year to date."""
        return [
            TaxBand(b.label, b.rate, None if b.limit is None else b.limit * factor)
            for b in bands
        ]

    @staticmethod
    def calculate_progressive_tax(amount: Decimal, bands: list[TaxBand]) -> Decimal:
        """Calculate tax using progressive bands, unrounded."""
        tax = ZERO
        remaining = amount

        for band in bands:
            if remaining <= 0:
                break
            in_band = remaining if band.limit is None else min(remaining, band.limit)
            tax += in_band * band.rate
            remaining -= in_band

        return tax

    @staticmethod
    def band_breakdown(amount: Decimal, bands: list[TaxBand]) -> tuple[TaxBandBreakdown, ...]:
        """Per-band amounts for the payslip; empty bands are omitted."""
        breakdown: list[TaxBandBreakdown] = []
        remaining = amount

        for band in bands:
            if remaining <= 0:
                break
            in_band = remaining if band.limit is None else min(remaining, band.limit)
            if in_band > 0:
                breakdown.append(
                    TaxBandBreakdown(
                        band=band.label,
                        rate=as_percent(band.rate),
                        amount=round_to_pence(in_band),
                        tax_on_band=round_to_pence(in_band * band.rate),
                    )
                )
            remaining -= in_band

        return tuple(breakdown)
