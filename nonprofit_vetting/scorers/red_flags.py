"""
Red flag detection - independent rules over the same profile data.

Red flags are orthogonal to the weighted checks: a condition can lower the
score through a check and also raise a flag. That overlap is expected. Any
HIGH flag forces a REJECT recommendation regardless of score.

Rules (default triggers):
- no_990_on_file (HIGH): no filings or no filing summary
- not_501c3 (HIGH): subsection is not "03"
- no_ruling_date (HIGH): ruling date or years operating unknown
- too_new (MEDIUM): years operating < 1
- stale_990 (HIGH): latest tax year more than 4 calendar years back
- very_high_overhead (HIGH): expense-to-revenue ratio > 120%
- low_fund_deployment (MEDIUM): expense-to-revenue ratio < 50%
- very_low_revenue (MEDIUM): revenue < $25K (zero counts, unknown does not)
- revenue_decline (MEDIUM): latest revenue fell > 50% versus the prior filing

Comparisons are strict: a value exactly at a trigger does not fire.
"""

import math
from datetime import date
from typing import Optional, Sequence

from ..constants import SUBSECTION_501C3
from ..schemas.propublica import ProPublicaFiling
from ..schemas.vetting import OrganizationProfile, RedFlag, RedFlagSeverity, RedFlagType
from .thresholds import VettingThresholds
from .tier1_checks import format_money, format_percent, parse_tax_period


def _flag(severity: RedFlagSeverity, flag_type: RedFlagType, detail: str) -> RedFlag:
    return RedFlag(severity=severity, type=flag_type, detail=detail)


def _revenue_decline_flag(
    filings: Sequence[ProPublicaFiling],
    thresholds: VettingThresholds,
) -> Optional[RedFlag]:
    """Compare the two most recent filings by tax period."""
    if len(filings) < 2:
        return None

    latest, previous = sorted(filings, key=lambda f: f.tax_prd, reverse=True)[:2]
    if latest.totrevenue is None or previous.totrevenue is None:
        return None
    # Zero or negative prior revenue has no meaningful decline
    if not previous.totrevenue > 0:
        return None

    decline = (previous.totrevenue - latest.totrevenue) / previous.totrevenue
    if not math.isfinite(decline) or decline <= thresholds.red_flag_revenue_decline_percent:
        return None

    return _flag(
        RedFlagSeverity.MEDIUM,
        RedFlagType.REVENUE_DECLINE,
        f"Revenue declined {format_percent(decline)} year-over-year "
        f"({format_money(previous.totrevenue)} → {format_money(latest.totrevenue)})",
    )


def detect_red_flags(
    profile: OrganizationProfile,
    filings: Optional[Sequence[ProPublicaFiling]] = None,
    thresholds: Optional[VettingThresholds] = None,
    as_of: Optional[date] = None,
) -> list[RedFlag]:
    """
    Evaluate every red-flag rule independently.

    Args:
        profile: Normalized organization profile
        filings: Raw filing history, used for trend rules
        thresholds: Resolved thresholds (defaults when None)
        as_of: Reference date for age rules (default today)

    Returns:
        Flags in rule order; multiple flags may share an underlying cause
    """
    thresholds = thresholds or VettingThresholds()
    as_of = as_of or date.today()
    flags: list[RedFlag] = []

    if profile.filing_count == 0 or profile.latest_990 is None:
        flags.append(
            _flag(RedFlagSeverity.HIGH, RedFlagType.NO_990_ON_FILE, "No 990 filings on record with ProPublica")
        )

    if profile.subsection != SUBSECTION_501C3:
        flags.append(
            _flag(
                RedFlagSeverity.HIGH,
                RedFlagType.NOT_501C3,
                f"Organization is 501(c)({profile.subsection or '?'}) - donations may not be tax-deductible",
            )
        )

    if not profile.ruling_date or profile.years_operating is None:
        flags.append(_flag(RedFlagSeverity.HIGH, RedFlagType.NO_RULING_DATE, "No IRS ruling date on record"))

    years = profile.years_operating
    if years is not None and years < thresholds.red_flag_too_new_years:
        flags.append(
            _flag(
                RedFlagSeverity.MEDIUM,
                RedFlagType.TOO_NEW,
                f"Organization is less than {thresholds.red_flag_too_new_years:g} year(s) old",
            )
        )

    latest = profile.latest_990
    if latest is not None:
        period_start = parse_tax_period(latest.tax_period)
        if period_start is not None:
            age = as_of.year - period_start.year
            if age > thresholds.red_flag_stale_990_years:
                flags.append(
                    _flag(
                        RedFlagSeverity.HIGH,
                        RedFlagType.STALE_990,
                        f"Most recent 990 is from {latest.tax_period} ({age} years old)",
                    )
                )

        ratio = latest.expense_ratio
        if ratio is not None and not math.isnan(ratio):
            if ratio > thresholds.red_flag_high_expense_ratio:
                flags.append(
                    _flag(
                        RedFlagSeverity.HIGH,
                        RedFlagType.VERY_HIGH_OVERHEAD,
                        f"Expense-to-revenue ratio is {format_percent(ratio)} - unsustainable spending, "
                        "far exceeds income",
                    )
                )
            elif ratio < thresholds.red_flag_low_expense_ratio:
                flags.append(
                    _flag(
                        RedFlagSeverity.MEDIUM,
                        RedFlagType.LOW_FUND_DEPLOYMENT,
                        f"Expense-to-revenue ratio is only {format_percent(ratio)} - low fund deployment",
                    )
                )

        revenue = latest.total_revenue
        if revenue is not None and revenue < thresholds.red_flag_very_low_revenue:
            flags.append(
                _flag(
                    RedFlagSeverity.MEDIUM,
                    RedFlagType.VERY_LOW_REVENUE,
                    f"Revenue is only {format_money(revenue)} - very small operation",
                )
            )

    decline_flag = _revenue_decline_flag(filings or [], thresholds)
    if decline_flag is not None:
        flags.append(decline_flag)

    return flags
