"""
Tier 1 check evaluators - five independent weighted checks.

Each check is a pure function of the profile and the resolved thresholds and
returns a graded Tier1Check (PASS / REVIEW / FAIL) with a detail string that
names the branch taken. "No data", "bad data" and "out of range" produce
different wording so the narrative summary can tell them apart.

Checks (default weights):
- 501c3_status (30): subsection must be "03"
- years_operating (15): years since IRS ruling date
- revenue_range (20): latest 990 total revenue
- expense_ratio (20): total expenses / total revenue (NOT administrative
  overhead; ProPublica does not split program vs admin spending)
- recent_990 (15): age of the most recent 990 tax period

Scoring: PASS = full weight, REVIEW = half weight, FAIL = 0.
"""

import math
import re
from datetime import date
from typing import Iterable, Optional

from ..constants import DAYS_PER_YEAR, SUBSECTION_501C3
from ..schemas.vetting import CheckResult, OrganizationProfile, Tier1Check
from .thresholds import VettingThresholds

_TAX_PERIOD_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


# =============================================================================
# Formatting helpers
# =============================================================================


def format_money(amount: float) -> str:
    """Compact dollar amount: $1.5M, $250K, $900."""
    sign = "-" if amount < 0 else ""
    value = abs(amount)
    if value >= 1_000_000:
        return f"{sign}${value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{sign}${value / 1_000:.0f}K"
    return f"{sign}${value:.0f}"


def format_percent(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"


def parse_tax_period(tax_period: Optional[str]) -> Optional[date]:
    """
    Parse a YYYY-MM tax period into the first day of that month.

    Returns None for empty or malformed periods (including months outside 1-12).
    """
    if not tax_period:
        return None
    match = _TAX_PERIOD_PATTERN.match(tax_period.strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        return None
    return date(year, month, 1)


def years_since(start: date, as_of: Optional[date] = None) -> float:
    """Fractional years elapsed from start to as_of (default today)."""
    as_of = as_of or date.today()
    return (as_of - start).days / DAYS_PER_YEAR


def _check(name: str, result: CheckResult, detail: str, weight: int) -> Tier1Check:
    return Tier1Check(
        name=name,
        passed=result == CheckResult.PASS,
        result=result,
        detail=detail,
        weight=weight,
    )


# =============================================================================
# Checks
# =============================================================================


def check_501c3_status(profile: OrganizationProfile, thresholds: VettingThresholds) -> Tier1Check:
    """PASS iff subsection is "03". There is no REVIEW tier."""
    if profile.subsection == SUBSECTION_501C3:
        return _check(
            "501c3_status",
            CheckResult.PASS,
            f"501(c)(3) public charity (subsection {profile.subsection})",
            thresholds.weight_501c3_status,
        )
    return _check(
        "501c3_status",
        CheckResult.FAIL,
        f"Not a 501(c)(3) - subsection {profile.subsection or 'unknown'}",
        thresholds.weight_501c3_status,
    )


def check_years_operating(profile: OrganizationProfile, thresholds: VettingThresholds) -> Tier1Check:
    """
    Years since the IRS ruling date.

    Rubric (defaults):
    - None = FAIL (no ruling date)
    - negative = FAIL (ruling date in the future)
    - < 1 = FAIL
    - 1 to < 3 = REVIEW
    - 3+ = PASS

    Boundary values belong to the higher tier.
    """
    years = profile.years_operating
    weight = thresholds.weight_years_operating
    since = profile.ruling_date or "unknown date"

    if years is None:
        return _check("years_operating", CheckResult.FAIL, "No ruling date available", weight)
    if years < 0:
        return _check(
            "years_operating",
            CheckResult.FAIL,
            f"Ruling date {since} is in the future - data anomaly requires investigation",
            weight,
        )
    if years < thresholds.years_review_min:
        return _check(
            "years_operating",
            CheckResult.FAIL,
            f"Less than {thresholds.years_review_min:g} year(s) operating ({years} years since {since})",
            weight,
        )
    if years < thresholds.years_pass_min:
        return _check(
            "years_operating",
            CheckResult.REVIEW,
            f"{years} years operating (since {since}) - newer organization",
            weight,
        )
    return _check("years_operating", CheckResult.PASS, f"{years} years operating (since {since})", weight)


def check_revenue_range(profile: OrganizationProfile, thresholds: VettingThresholds) -> Tier1Check:
    """
    Total revenue from the latest 990.

    Rubric (defaults):
    - missing, negative or zero = FAIL (each with its own message)
    - < $50K = FAIL
    - $50K to < $100K = REVIEW
    - $100K to $10M inclusive = PASS
    - > $10M to $50M inclusive = REVIEW
    - > $50M = FAIL
    """
    revenue = profile.latest_990.total_revenue if profile.latest_990 else None
    weight = thresholds.weight_revenue_range

    if revenue is None or math.isnan(revenue):
        return _check("revenue_range", CheckResult.FAIL, "No revenue data available", weight)
    if revenue < 0:
        return _check(
            "revenue_range",
            CheckResult.FAIL,
            f"Negative revenue ({format_money(revenue)}) - data anomaly requires investigation",
            weight,
        )
    if revenue == 0:
        return _check("revenue_range", CheckResult.FAIL, "Zero revenue reported", weight)

    amount = format_money(revenue)
    if revenue < thresholds.revenue_fail_min:
        return _check("revenue_range", CheckResult.FAIL, f"{amount} revenue - too small to assess reliably", weight)
    if revenue < thresholds.revenue_pass_min:
        return _check("revenue_range", CheckResult.REVIEW, f"{amount} revenue - small but viable", weight)
    if revenue <= thresholds.revenue_pass_max:
        return _check("revenue_range", CheckResult.PASS, f"{amount} revenue - appropriate size for impact", weight)
    if revenue <= thresholds.revenue_review_max:
        return _check(
            "revenue_range",
            CheckResult.REVIEW,
            f"{amount} revenue - larger organization, may have different needs",
            weight,
        )
    return _check(
        "revenue_range",
        CheckResult.FAIL,
        f"{amount} revenue - outside target scope (>{format_money(thresholds.revenue_review_max)})",
        weight,
    )


def check_expense_ratio(profile: OrganizationProfile, thresholds: VettingThresholds) -> Tier1Check:
    """
    Expense-to-revenue ratio of the latest 990.

    This is total expenses / total revenue, not administrative overhead.

    Rubric (defaults):
    - missing or NaN = REVIEW (absence is not disqualifying)
    - 70% to 100% = PASS
    - > 100% to 120% = REVIEW (spending exceeds revenue)
    - > 120% = FAIL (unsustainable)
    - 50% to < 70% = REVIEW (accumulating reserves?)
    - < 50% = FAIL (very low fund deployment)
    """
    ratio = profile.latest_990.expense_ratio if profile.latest_990 else None
    weight = thresholds.weight_expense_ratio

    if ratio is None or math.isnan(ratio):
        return _check(
            "expense_ratio",
            CheckResult.REVIEW,
            "Cannot calculate expense-to-revenue ratio - missing data",
            weight,
        )

    pct = format_percent(ratio)
    if thresholds.expense_ratio_pass_min <= ratio <= thresholds.expense_ratio_pass_max:
        return _check(
            "expense_ratio",
            CheckResult.PASS,
            f"{pct} expense-to-revenue ratio - healthy fund deployment",
            weight,
        )
    if ratio > thresholds.expense_ratio_pass_max:
        if ratio <= thresholds.expense_ratio_high_review:
            return _check(
                "expense_ratio",
                CheckResult.REVIEW,
                f"{pct} expense-to-revenue ratio - spending exceeds revenue (check reserves)",
                weight,
            )
        return _check(
            "expense_ratio",
            CheckResult.FAIL,
            f"{pct} expense-to-revenue ratio - potentially unsustainable",
            weight,
        )
    if ratio >= thresholds.expense_ratio_low_review:
        return _check(
            "expense_ratio",
            CheckResult.REVIEW,
            f"{pct} expense-to-revenue ratio - lower than typical (accumulating reserves?)",
            weight,
        )
    return _check(
        "expense_ratio",
        CheckResult.FAIL,
        f"{pct} expense-to-revenue ratio - very low fund deployment",
        weight,
    )


def check_recent_990(
    profile: OrganizationProfile,
    thresholds: VettingThresholds,
    as_of: Optional[date] = None,
) -> Tier1Check:
    """
    Age of the most recent 990, measured from the first day of its tax period month.

    Rubric (defaults):
    - no filings = FAIL
    - unreadable tax period = FAIL (treated as infinitely old)
    - <= 2 years = PASS
    - <= 3 years = REVIEW
    - older = FAIL
    """
    weight = thresholds.weight_recent_990
    latest = profile.latest_990

    if latest is None or profile.filing_count == 0:
        return _check("recent_990", CheckResult.FAIL, "No 990 filings on record", weight)

    period_start = parse_tax_period(latest.tax_period)
    if period_start is None:
        return _check(
            "recent_990",
            CheckResult.FAIL,
            f"Most recent 990 has an unreadable tax period ({latest.tax_period or 'blank'})",
            weight,
        )

    age = years_since(period_start, as_of)
    if age <= thresholds.filing_990_pass_max:
        form = f" ({latest.form_type})" if latest.form_type else ""
        return _check("recent_990", CheckResult.PASS, f"Most recent 990 from {latest.tax_period}{form}", weight)
    if age <= thresholds.filing_990_review_max:
        return _check(
            "recent_990",
            CheckResult.REVIEW,
            f"Most recent 990 from {latest.tax_period} - data is {age:.1f} years old",
            weight,
        )
    return _check(
        "recent_990",
        CheckResult.FAIL,
        f"Most recent 990 from {latest.tax_period} - data is {age:.1f} years old (too stale)",
        weight,
    )


def run_checks(
    profile: OrganizationProfile,
    thresholds: VettingThresholds,
    as_of: Optional[date] = None,
) -> list[Tier1Check]:
    """Run all five checks in fixed order. Every check always runs."""
    return [
        check_501c3_status(profile, thresholds),
        check_years_operating(profile, thresholds),
        check_revenue_range(profile, thresholds),
        check_expense_ratio(profile, thresholds),
        check_recent_990(profile, thresholds, as_of),
    ]


# =============================================================================
# Score
# =============================================================================


def calculate_score(checks: Iterable[Tier1Check]) -> int:
    """
    Weighted score: PASS = full weight, REVIEW = half, FAIL = 0.

    The sum is rounded half-up (7.5 -> 8). An empty list scores 0.
    """
    total = 0.0
    for check in checks:
        if check.result == CheckResult.PASS:
            total += check.weight
        elif check.result == CheckResult.REVIEW:
            total += check.weight * 0.5
    return int(math.floor(total + 0.5))
