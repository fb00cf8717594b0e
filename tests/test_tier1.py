"""End-to-end Tier 1 evaluation: checks, score, flags, verdict, summary."""

import pytest
from conftest import AS_OF

from nonprofit_vetting.schemas.vetting import (
    CheckResult,
    Recommendation,
    RedFlag,
    RedFlagSeverity,
    RedFlagType,
)
from nonprofit_vetting.scorers.thresholds import VettingThresholds
from nonprofit_vetting.scorers.tier1 import get_recommendation, run_red_flag_check, run_tier1_checks


def _flag(severity: RedFlagSeverity) -> RedFlag:
    return RedFlag(severity=severity, type=RedFlagType.TOO_NEW, detail="test")


class TestGetRecommendation:
    """HIGH flags reject; otherwise the score cutoffs decide."""

    @pytest.mark.parametrize(
        "score,expected",
        [
            (100, Recommendation.PASS),
            (80, Recommendation.PASS),
            (79, Recommendation.REVIEW),
            (50, Recommendation.REVIEW),
            (49, Recommendation.REJECT),
            (0, Recommendation.REJECT),
        ],
    )
    def test_score_cutoffs(self, score, expected):
        assert get_recommendation(score, []) == expected

    def test_high_flag_forces_reject(self):
        assert get_recommendation(95, [_flag(RedFlagSeverity.HIGH)]) == Recommendation.REJECT

    def test_medium_flag_does_not_force_reject(self):
        assert get_recommendation(95, [_flag(RedFlagSeverity.MEDIUM)]) == Recommendation.PASS

    def test_custom_cutoffs(self):
        t = VettingThresholds(score_pass_min=70, score_review_min=40)
        assert get_recommendation(72, [], t) == Recommendation.PASS
        assert get_recommendation(45, [], t) == Recommendation.REVIEW


class TestRunTier1Checks:
    """Full Tier 1 evaluation."""

    def test_healthy_charity(self, make_profile, thresholds):
        result = run_tier1_checks(make_profile(), [], thresholds, AS_OF)

        assert result.score == 100
        assert result.recommendation == Recommendation.PASS
        assert result.passed is True
        assert result.red_flags == []
        assert result.review_reasons == []
        assert len(result.checks) == 5
        assert result.summary.headline == "Approved for Tier 2 Vetting"
        assert "15 years of operating history" in result.summary.justification

    def test_not_501c3_is_rejected(self, make_profile, thresholds):
        result = run_tier1_checks(make_profile(subsection="04"), [], thresholds, AS_OF)

        assert result.score == 70
        assert any(f.type == RedFlagType.NOT_501C3 and f.severity == RedFlagSeverity.HIGH for f in result.red_flags)
        assert result.recommendation == Recommendation.REJECT
        assert result.passed is False
        assert result.summary.headline == "Does Not Meet Criteria"

    def test_empty_profile(self, make_profile, thresholds):
        profile = make_profile(subsection="", ruling_date="", years_operating=None, latest_990=None, filing_count=0)
        result = run_tier1_checks(profile, [], thresholds, AS_OF)

        high = [f for f in result.red_flags if f.severity == RedFlagSeverity.HIGH]
        assert len(high) >= 3
        assert {f.type for f in high} >= {
            RedFlagType.NO_990_ON_FILE,
            RedFlagType.NOT_501C3,
            RedFlagType.NO_RULING_DATE,
        }
        # Only the missing expense ratio earns half credit
        assert result.score == 10
        assert result.recommendation == Recommendation.REJECT

    def test_review_reasons(self, make_profile, make_990, thresholds):
        """Non-passing check details only, in check order; flags stay in red_flags."""
        profile = make_profile(subsection="04", latest_990=make_990(expense_ratio=0.6))
        result = run_tier1_checks(profile, [], thresholds, AS_OF)

        details = {c.name: c.detail for c in result.checks}
        assert result.review_reasons == [details["501c3_status"], details["expense_ratio"]]
        assert [f.type for f in result.red_flags] == [RedFlagType.NOT_501C3]

    def test_future_ruling_date(self, make_profile, thresholds):
        """Years check fails and too_new fires, but neither disqualifies on its own."""
        profile = make_profile(ruling_date="2027-03-01", years_operating=-2)
        result = run_tier1_checks(profile, [], thresholds, AS_OF)

        assert result.checks[1].result == CheckResult.FAIL
        assert "in the future" in result.checks[1].detail
        assert [f.type for f in result.red_flags] == [RedFlagType.TOO_NEW]
        assert result.score == 85
        assert result.recommendation == Recommendation.PASS
        assert "with unknown years of operating history" in result.summary.justification
        assert "-2" not in result.summary.justification

    def test_review_verdict(self, make_profile, make_990, thresholds):
        profile = make_profile(years_operating=2, latest_990=make_990(total_revenue=75_000, expense_ratio=1.1))
        result = run_tier1_checks(profile, [], thresholds, AS_OF)

        # 30 + 7.5 + 10 + 10 + 15 = 72.5 -> 73
        assert result.score == 73
        assert result.recommendation == Recommendation.REVIEW
        assert result.summary.headline == "Manual Review Required"
        assert "Key concerns:" in result.summary.justification

    def test_sector_thresholds_change_outcome(self, make_profile, make_990, thresholds):
        from nonprofit_vetting.scorers.sector_thresholds import resolve_thresholds

        profile = make_profile(ntee_code="K31", latest_990=make_990(expense_ratio=1.25))
        generic = run_tier1_checks(profile, [], thresholds, AS_OF)
        food_bank = run_tier1_checks(profile, [], resolve_thresholds(thresholds, profile.ntee_code), AS_OF)

        assert generic.checks[3].result == CheckResult.FAIL
        assert RedFlagType.VERY_HIGH_OVERHEAD in [f.type for f in generic.red_flags]
        assert food_bank.checks[3].result == CheckResult.PASS
        assert food_bank.recommendation == Recommendation.PASS

    def test_revenue_decline_from_filings(self, make_profile, make_filing, thresholds):
        filings = [make_filing(202406, totrevenue=500_000), make_filing(202306, totrevenue=2_000_000)]
        result = run_tier1_checks(make_profile(), filings, thresholds, AS_OF)
        assert [f.type for f in result.red_flags] == [RedFlagType.REVENUE_DECLINE]
        assert result.recommendation == Recommendation.PASS

    def test_defaults_when_thresholds_omitted(self, make_profile):
        assert run_tier1_checks(make_profile(), as_of=AS_OF).score == 100


class TestRunRedFlagCheck:
    """Red flags only."""

    def test_clean(self, make_profile, thresholds):
        result = run_red_flag_check(make_profile(), [], thresholds, AS_OF)
        assert result.clean is True
        assert result.flags == []
        assert result.ein == "95-3135649"

    def test_flagged(self, make_profile, thresholds):
        result = run_red_flag_check(make_profile(subsection="04"), [], thresholds, AS_OF)
        assert result.clean is False
        assert [f.type for f in result.flags] == [RedFlagType.NOT_501C3]
