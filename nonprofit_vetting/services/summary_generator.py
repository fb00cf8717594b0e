"""
Tier 1 summary generator - verdict, checks and flags rendered as text.

Produces a Tier1Summary with:
- headline: fixed per verdict
- justification: verdict template with {{score}}, {{name}}, {{years}} and
  {{issues_summary}} substituted literally (no format-string evaluation of
  organization names)
- key_factors: "+" positive / "-" negative / "~" neutral lines per check,
  then one "-" line per red flag
- next_steps: fixed per verdict, returned as a new list every call
"""

import re
from typing import Optional, Sequence

from ..constants import MAX_SUMMARY_ISSUES
from ..schemas.vetting import (
    CheckResult,
    Recommendation,
    RedFlag,
    RedFlagType,
    Tier1Check,
    Tier1Summary,
)

# =============================================================================
# Verdict configuration
# =============================================================================

VERDICT_CONFIG = {
    Recommendation.PASS: {
        "headline": "Approved for Tier 2 Vetting",
        "template": (
            "Organization meets Tier 1 criteria with a score of {{score}}/100. "
            "{{name}} is a verified 501(c)(3) with {{years}} years of operating history and healthy financials."
        ),
        "next_steps": (
            "Proceed to Tier 2 deep-dive vetting",
            "Review program effectiveness and impact metrics",
            "Verify leadership and governance structure",
        ),
    },
    Recommendation.REVIEW: {
        "headline": "Manual Review Required",
        "template": (
            "Organization scored {{score}}/100, requiring manual review. "
            "{{issues_summary}} Verify these concerns before proceeding."
        ),
        "next_steps": (
            "Review flagged items manually",
            "Request additional documentation if needed",
            "Re-evaluate after addressing concerns",
        ),
    },
    Recommendation.REJECT: {
        "headline": "Does Not Meet Criteria",
        "template": "Organization does not meet minimum Tier 1 criteria (score: {{score}}/100). {{issues_summary}}",
        "next_steps": (
            "Do not proceed with funding consideration",
            "Document rejection reason for records",
            "Consider alternative organizations in this space",
        ),
    },
}

NO_ISSUES_SENTINEL = "No specific concerns identified."
UNKNOWN_YEARS = "unknown"

# =============================================================================
# Check and red flag messages
# =============================================================================

# (factor text, "positive" | "negative" | "neutral")
CHECK_MESSAGES = {
    "501c3_status": {
        CheckResult.PASS: ("501(c)(3) tax-exempt status verified", "positive"),
        CheckResult.REVIEW: ("501(c)(3) status needs verification", "neutral"),
        CheckResult.FAIL: ("Not a 501(c)(3) organization", "negative"),
    },
    "years_operating": {
        CheckResult.PASS: ("Established track record", "positive"),
        CheckResult.REVIEW: ("Newer organization", "neutral"),
        CheckResult.FAIL: ("Insufficient operating history", "negative"),
    },
    "revenue_range": {
        CheckResult.PASS: ("Revenue in target range", "positive"),
        CheckResult.REVIEW: ("Revenue outside ideal range", "neutral"),
        CheckResult.FAIL: ("Revenue outside acceptable range", "negative"),
    },
    "expense_ratio": {
        CheckResult.PASS: ("Healthy expense-to-revenue ratio", "positive"),
        CheckResult.REVIEW: ("Expense ratio needs review", "neutral"),
        CheckResult.FAIL: ("Concerning expense ratio", "negative"),
    },
    "recent_990": {
        CheckResult.PASS: ("Recent financial data available", "positive"),
        CheckResult.REVIEW: ("Financial data slightly dated", "neutral"),
        CheckResult.FAIL: ("Financial data too old or missing", "negative"),
    },
}

FACTOR_PREFIX = {"positive": "+", "negative": "-", "neutral": "~"}

RED_FLAG_FACTORS = {
    RedFlagType.NO_990_ON_FILE: "No 990 filings on record",
    RedFlagType.STALE_990: "Financial data is severely outdated",
    RedFlagType.LOW_FUND_DEPLOYMENT: "Low fund deployment ratio",
    RedFlagType.VERY_HIGH_OVERHEAD: "Unsustainable expense-to-revenue ratio",
    RedFlagType.NO_RULING_DATE: "No IRS determination date",
    RedFlagType.VERY_LOW_REVENUE: "Very small operation",
    RedFlagType.REVENUE_DECLINE: "Significant revenue decline",
    RedFlagType.NOT_501C3: "Not tax-exempt under 501(c)(3)",
    RedFlagType.TOO_NEW: "Organization is less than 1 year old",
}


# =============================================================================
# Generator
# =============================================================================


_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def _render(template: str, values: dict[str, str]) -> str:
    """Replace {{key}} placeholders with literal values in a single pass."""
    return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def build_issues_summary(checks: Sequence[Tier1Check]) -> str:
    """Up to three non-passing check details, or the no-concerns sentinel."""
    issues = [check.detail for check in checks if check.result != CheckResult.PASS][:MAX_SUMMARY_ISSUES]
    if not issues:
        return NO_ISSUES_SENTINEL
    return f"Key concerns: {'; '.join(issues)}."


def build_key_factors(checks: Sequence[Tier1Check], red_flags: Sequence[RedFlag]) -> list[str]:
    """
    Prefixed factor lines for checks, then red flags.

    Checks without a message mapping are skipped. A flag is skipped only when
    its text already appears inside a check-derived line.
    """
    check_lines = []
    for check in checks:
        messages = CHECK_MESSAGES.get(check.name)
        if not messages:
            continue
        factor, weight = messages[check.result]
        check_lines.append(f"{FACTOR_PREFIX[weight]} {factor}")

    flag_lines = []
    for flag in red_flags:
        text = RED_FLAG_FACTORS.get(flag.type, flag.detail)
        if any(text in line for line in check_lines):
            continue
        flag_lines.append(f"- {text} ({flag.severity.value})")

    return check_lines + flag_lines


def generate_summary(
    name: str,
    score: int,
    recommendation: Recommendation,
    checks: Sequence[Tier1Check],
    red_flags: Sequence[RedFlag],
    years_operating: Optional[int],
) -> Tier1Summary:
    """
    Render the human-readable explanation of a Tier 1 verdict.

    Args:
        name: Organization display name
        score: Weighted 0-100 score
        recommendation: Final verdict
        checks: Check outcomes in evaluation order
        red_flags: Detected red flags
        years_operating: Years since ruling date; None or negative renders as "unknown"

    Returns:
        Tier1Summary; next_steps is a fresh list the caller may mutate
    """
    config = VERDICT_CONFIG[Recommendation(recommendation)]

    justification = _render(
        config["template"],
        {
            "score": str(score),
            "name": name,
            "years": str(years_operating) if years_operating is not None and years_operating >= 0 else UNKNOWN_YEARS,
            "issues_summary": build_issues_summary(checks),
        },
    )

    return Tier1Summary(
        headline=config["headline"],
        justification=justification,
        key_factors=build_key_factors(checks, red_flags),
        next_steps=list(config["next_steps"]),
    )
