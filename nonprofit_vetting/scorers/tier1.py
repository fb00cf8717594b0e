"""
Tier 1 evaluation - checks, score, red flags and verdict in one pass.

    checks ──► score ──┐
                       ├──► recommendation ──► summary
    red flags ─────────┘

Both entry points are total over well-formed inputs: data gaps show up as
FAIL/REVIEW outcomes or flags, never as exceptions.
"""

import logging
from datetime import date
from typing import Optional, Sequence

from ..schemas.propublica import ProPublicaFiling
from ..schemas.vetting import (
    CheckResult,
    OrganizationProfile,
    Recommendation,
    RedFlag,
    RedFlagResult,
    RedFlagSeverity,
    Tier1Result,
)
from ..services.summary_generator import generate_summary
from .red_flags import detect_red_flags
from .thresholds import VettingThresholds
from .tier1_checks import calculate_score, run_checks

logger = logging.getLogger(__name__)


def get_recommendation(
    score: float,
    red_flags: Sequence[RedFlag],
    thresholds: Optional[VettingThresholds] = None,
) -> Recommendation:
    """
    Resolve the final verdict.

    Any HIGH red flag rejects unconditionally. Otherwise the score decides:
    >= score_pass_min is PASS, >= score_review_min is REVIEW, else REJECT.
    """
    thresholds = thresholds or VettingThresholds()

    if any(flag.severity == RedFlagSeverity.HIGH for flag in red_flags):
        return Recommendation.REJECT

    if score >= thresholds.score_pass_min:
        return Recommendation.PASS
    elif score >= thresholds.score_review_min:
        return Recommendation.REVIEW
    else:
        return Recommendation.REJECT


def run_tier1_checks(
    profile: OrganizationProfile,
    filings: Optional[Sequence[ProPublicaFiling]] = None,
    thresholds: Optional[VettingThresholds] = None,
    as_of: Optional[date] = None,
) -> Tier1Result:
    """
    Run the full Tier 1 evaluation for one organization.

    Args:
        profile: Normalized organization profile
        filings: Raw filing history (for revenue trend flags)
        thresholds: Resolved (sector-adjusted) thresholds; defaults when None
        as_of: Reference date for age-based rules (default today)

    Returns:
        Tier1Result with five checks, score, flags, verdict and summary
    """
    thresholds = thresholds or VettingThresholds()

    checks = run_checks(profile, thresholds, as_of)
    score = calculate_score(checks)
    red_flags = detect_red_flags(profile, filings, thresholds, as_of)
    recommendation = get_recommendation(score, red_flags, thresholds)

    review_reasons = [check.detail for check in checks if check.result != CheckResult.PASS]

    summary = generate_summary(
        profile.name,
        score,
        recommendation,
        checks,
        red_flags,
        profile.years_operating,
    )

    logger.debug(
        f"Tier 1 {profile.ein}: score={score} recommendation={recommendation.value} red_flags={len(red_flags)}"
    )

    return Tier1Result(
        ein=profile.ein,
        name=profile.name,
        passed=recommendation == Recommendation.PASS,
        score=score,
        summary=summary,
        checks=checks,
        recommendation=recommendation,
        review_reasons=review_reasons,
        red_flags=red_flags,
    )


def run_red_flag_check(
    profile: OrganizationProfile,
    filings: Optional[Sequence[ProPublicaFiling]] = None,
    thresholds: Optional[VettingThresholds] = None,
    as_of: Optional[date] = None,
) -> RedFlagResult:
    """Red flag detection only; ``clean`` is True when nothing fired."""
    flags = detect_red_flags(profile, filings, thresholds, as_of)
    return RedFlagResult(ein=profile.ein, name=profile.name, flags=flags, clean=not flags)
