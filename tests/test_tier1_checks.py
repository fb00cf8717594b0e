"""Tests for the five Tier 1 check evaluators and the score aggregator."""

import math

import pytest
from conftest import AS_OF, tax_period_years_ago

from nonprofit_vetting.schemas.vetting import CheckResult, Tier1Check
from nonprofit_vetting.scorers.thresholds import VettingThresholds
from nonprofit_vetting.scorers.tier1_checks import (
    calculate_score,
    check_501c3_status,
    check_expense_ratio,
    check_recent_990,
    check_revenue_range,
    check_years_operating,
    format_money,
    parse_tax_period,
    run_checks,
)


def _check(name: str, result: CheckResult, weight: int) -> Tier1Check:
    return Tier1Check(name=name, passed=result == CheckResult.PASS, result=result, detail="", weight=weight)


# ─── 501(c)(3) status ───────────────────────────────────────────────────────


class TestCheck501c3Status:
    """PASS only for subsection 03."""

    def test_pass(self, make_profile, thresholds):
        check = check_501c3_status(make_profile(subsection="03"), thresholds)
        assert check.result == CheckResult.PASS
        assert check.passed is True
        assert check.weight == 30

    def test_other_subsection_fails(self, make_profile, thresholds):
        check = check_501c3_status(make_profile(subsection="04"), thresholds)
        assert check.result == CheckResult.FAIL
        assert "subsection 04" in check.detail

    def test_unknown_subsection(self, make_profile, thresholds):
        check = check_501c3_status(make_profile(subsection=""), thresholds)
        assert check.result == CheckResult.FAIL
        assert "unknown" in check.detail


# ─── Years operating ────────────────────────────────────────────────────────


class TestCheckYearsOperating:
    """FAIL < 1 year, REVIEW 1-3, PASS 3+."""

    @pytest.mark.parametrize(
        "years,expected",
        [
            (0, CheckResult.FAIL),
            (1, CheckResult.REVIEW),  # reviewMin boundary belongs to REVIEW
            (2, CheckResult.REVIEW),
            (3, CheckResult.PASS),  # passMin boundary belongs to PASS
            (15, CheckResult.PASS),
        ],
    )
    def test_tiers(self, make_profile, thresholds, years, expected):
        assert check_years_operating(make_profile(years_operating=years), thresholds).result == expected

    def test_none_fails_with_no_ruling_date(self, make_profile, thresholds):
        check = check_years_operating(make_profile(years_operating=None, ruling_date=""), thresholds)
        assert check.result == CheckResult.FAIL
        assert check.detail == "No ruling date available"

    def test_future_ruling_date_is_anomaly(self, make_profile, thresholds):
        """A ruling date after today gives negative years: FAIL, distinct from missing."""
        check = check_years_operating(make_profile(years_operating=-2, ruling_date="2027-01-01"), thresholds)
        assert check.result == CheckResult.FAIL
        assert "in the future" in check.detail
        assert check.detail != "No ruling date available"

    def test_detail_names_ruling_date(self, make_profile, thresholds):
        check = check_years_operating(make_profile(years_operating=15, ruling_date="2010-01-01"), thresholds)
        assert check.detail == "15 years operating (since 2010-01-01)"

    def test_custom_thresholds(self, make_profile):
        t = VettingThresholds(years_pass_min=5, years_review_min=2)
        assert check_years_operating(make_profile(years_operating=4), t).result == CheckResult.REVIEW
        assert check_years_operating(make_profile(years_operating=1), t).result == CheckResult.FAIL


# ─── Revenue range ──────────────────────────────────────────────────────────


class TestCheckRevenueRange:
    """Revenue bands, with distinct wording for missing and bad data."""

    @pytest.mark.parametrize(
        "revenue,expected",
        [
            (500_000, CheckResult.PASS),
            (100_000, CheckResult.PASS),  # lower boundary inclusive
            (10_000_000, CheckResult.PASS),  # upper boundary inclusive
            (75_000, CheckResult.REVIEW),
            (50_000, CheckResult.REVIEW),
            (25_000, CheckResult.FAIL),
            (20_000_000, CheckResult.REVIEW),
            (50_000_000, CheckResult.REVIEW),
            (60_000_000, CheckResult.FAIL),
        ],
    )
    def test_bands(self, make_profile, make_990, thresholds, revenue, expected):
        profile = make_profile(latest_990=make_990(total_revenue=revenue))
        assert check_revenue_range(profile, thresholds).result == expected

    def test_zero_has_zero_specific_message(self, make_profile, make_990, thresholds):
        check = check_revenue_range(make_profile(latest_990=make_990(total_revenue=0)), thresholds)
        assert check.result == CheckResult.FAIL
        assert check.detail == "Zero revenue reported"

    def test_negative_has_negative_specific_message(self, make_profile, make_990, thresholds):
        check = check_revenue_range(make_profile(latest_990=make_990(total_revenue=-5_000)), thresholds)
        assert check.result == CheckResult.FAIL
        assert check.detail.startswith("Negative revenue (-$5K)")

    def test_missing_has_missing_specific_message(self, make_profile, make_990, thresholds):
        check = check_revenue_range(make_profile(latest_990=make_990(total_revenue=None)), thresholds)
        assert check.result == CheckResult.FAIL
        assert check.detail == "No revenue data available"

    def test_no_filing_summary(self, make_profile, thresholds):
        check = check_revenue_range(make_profile(latest_990=None), thresholds)
        assert check.detail == "No revenue data available"

    def test_messages_are_distinct(self, make_profile, make_990, thresholds):
        details = {
            check_revenue_range(make_profile(latest_990=make_990(total_revenue=r)), thresholds).detail
            for r in (None, 0, -1, 10_000)
        }
        assert len(details) == 4

    def test_out_of_scope_names_ceiling(self, make_profile, make_990, thresholds):
        check = check_revenue_range(make_profile(latest_990=make_990(total_revenue=75_000_000)), thresholds)
        assert check.detail == "$75.0M revenue - outside target scope (>$50.0M)"


# ─── Expense ratio ──────────────────────────────────────────────────────────


class TestCheckExpenseRatio:
    """Expense-to-revenue bands. Missing data is REVIEW, not FAIL."""

    @pytest.mark.parametrize(
        "ratio,expected",
        [
            (0.8, CheckResult.PASS),
            (0.70, CheckResult.PASS),  # boundary
            (1.0, CheckResult.PASS),  # boundary
            (1.1, CheckResult.REVIEW),
            (1.2, CheckResult.REVIEW),  # high side inclusive to REVIEW
            (1.25, CheckResult.FAIL),
            (0.6, CheckResult.REVIEW),
            (0.5, CheckResult.REVIEW),  # low side inclusive to REVIEW
            (0.3, CheckResult.FAIL),
        ],
    )
    def test_bands(self, make_profile, make_990, thresholds, ratio, expected):
        profile = make_profile(latest_990=make_990(expense_ratio=ratio))
        assert check_expense_ratio(profile, thresholds).result == expected

    def test_nan_is_review_not_fail(self, make_profile, make_990, thresholds):
        check = check_expense_ratio(make_profile(latest_990=make_990(expense_ratio=math.nan)), thresholds)
        assert check.result == CheckResult.REVIEW
        assert "missing data" in check.detail

    def test_missing_is_review(self, make_profile, make_990, thresholds):
        check = check_expense_ratio(make_profile(latest_990=make_990(expense_ratio=None)), thresholds)
        assert check.result == CheckResult.REVIEW

    def test_no_filing_is_review(self, make_profile, thresholds):
        assert check_expense_ratio(make_profile(latest_990=None), thresholds).result == CheckResult.REVIEW

    def test_detail_says_expense_to_revenue(self, make_profile, make_990, thresholds):
        check = check_expense_ratio(make_profile(latest_990=make_990(expense_ratio=0.8)), thresholds)
        assert check.name == "expense_ratio"
        assert check.detail == "80.0% expense-to-revenue ratio - healthy fund deployment"

    def test_food_bank_band(self, make_profile, make_990):
        t = VettingThresholds(
            expense_ratio_pass_min=0.6,
            expense_ratio_pass_max=1.3,
            expense_ratio_high_review=1.5,
        )
        check = check_expense_ratio(make_profile(latest_990=make_990(expense_ratio=1.25)), t)
        assert check.result == CheckResult.PASS


# ─── Recent 990 ─────────────────────────────────────────────────────────────


class TestCheckRecent990:
    """Filing age measured from the first of the tax period month."""

    def test_one_year_old_passes(self, make_profile, make_990, thresholds):
        profile = make_profile(latest_990=make_990(tax_period=tax_period_years_ago(1)))
        check = check_recent_990(profile, thresholds, AS_OF)
        assert check.result == CheckResult.PASS
        assert "(990)" in check.detail

    def test_two_and_a_half_years_is_review(self, make_profile, make_990, thresholds):
        profile = make_profile(latest_990=make_990(tax_period=tax_period_years_ago(2.5)))
        check = check_recent_990(profile, thresholds, AS_OF)
        assert check.result == CheckResult.REVIEW
        assert "years old" in check.detail

    def test_five_years_old_fails(self, make_profile, make_990, thresholds):
        profile = make_profile(latest_990=make_990(tax_period=tax_period_years_ago(5)))
        check = check_recent_990(profile, thresholds, AS_OF)
        assert check.result == CheckResult.FAIL
        assert "too stale" in check.detail

    def test_zero_filings_fails(self, make_profile, thresholds):
        check = check_recent_990(make_profile(filing_count=0), thresholds, AS_OF)
        assert check.result == CheckResult.FAIL
        assert check.detail == "No 990 filings on record"

    def test_no_summary_fails(self, make_profile, thresholds):
        check = check_recent_990(make_profile(latest_990=None), thresholds, AS_OF)
        assert check.detail == "No 990 filings on record"

    @pytest.mark.parametrize("period", ["garbage", "2023", "2023-13", "", "20-06"])
    def test_malformed_period_fails_without_nan(self, make_profile, make_990, thresholds, period):
        check = check_recent_990(make_profile(latest_990=make_990(tax_period=period)), thresholds, AS_OF)
        assert check.result == CheckResult.FAIL
        assert "nan" not in check.detail.lower()
        assert "unreadable tax period" in check.detail

    def test_defaults_to_today(self, make_profile, make_990, thresholds):
        profile = make_profile(latest_990=make_990(tax_period="1990-01"))
        assert check_recent_990(profile, thresholds).result == CheckResult.FAIL


class TestParseTaxPeriod:
    def test_valid(self):
        assert parse_tax_period("2023-06").isoformat() == "2023-06-01"

    @pytest.mark.parametrize("period", [None, "", "2023", "2023-00", "abcd-ef"])
    def test_invalid(self, period):
        assert parse_tax_period(period) is None


class TestFormatMoney:
    @pytest.mark.parametrize(
        "amount,expected",
        [(1_500_000, "$1.5M"), (250_000, "$250K"), (900, "$900"), (-5_000, "-$5K")],
    )
    def test_format(self, amount, expected):
        assert format_money(amount) == expected


# ─── Score ──────────────────────────────────────────────────────────────────


class TestCalculateScore:
    """PASS = full weight, REVIEW = half, rounded half-up."""

    def test_empty(self):
        assert calculate_score([]) == 0

    def test_all_pass(self, thresholds):
        checks = [_check(n, CheckResult.PASS, w) for n, w in thresholds.weights().items()]
        assert calculate_score(checks) == 100

    def test_all_fail(self, thresholds):
        checks = [_check(n, CheckResult.FAIL, w) for n, w in thresholds.weights().items()]
        assert calculate_score(checks) == 0

    def test_review_is_half_weight(self):
        assert calculate_score([_check("a", CheckResult.REVIEW, 20)]) == 10

    def test_half_point_rounds_up(self):
        assert calculate_score([_check("a", CheckResult.REVIEW, 15)]) == 8

    def test_two_half_points(self):
        checks = [_check("a", CheckResult.REVIEW, 15), _check("b", CheckResult.REVIEW, 15)]
        assert calculate_score(checks) == 15

    @pytest.mark.parametrize("index", range(5))
    def test_monotonic_upgrade(self, thresholds, index):
        """Upgrading one outcome FAIL -> REVIEW -> PASS never lowers the score."""
        weights = list(thresholds.weights().items())
        baseline = [CheckResult.REVIEW, CheckResult.FAIL, CheckResult.PASS, CheckResult.REVIEW, CheckResult.FAIL]
        scores = []
        for result in (CheckResult.FAIL, CheckResult.REVIEW, CheckResult.PASS):
            outcomes = list(baseline)
            outcomes[index] = result
            scores.append(calculate_score([_check(n, r, w) for (n, w), r in zip(weights, outcomes)]))
        assert scores == sorted(scores)


class TestRunChecks:
    """All five checks, fixed order."""

    def test_five_checks_in_order(self, make_profile, thresholds):
        checks = run_checks(make_profile(), thresholds, AS_OF)
        assert [c.name for c in checks] == [
            "501c3_status",
            "years_operating",
            "revenue_range",
            "expense_ratio",
            "recent_990",
        ]

    def test_all_run_when_everything_missing(self, make_profile, thresholds):
        profile = make_profile(subsection="", years_operating=None, ruling_date="", latest_990=None, filing_count=0)
        checks = run_checks(profile, thresholds, AS_OF)
        assert len(checks) == 5
        assert [c.result for c in checks] == [
            CheckResult.FAIL,
            CheckResult.FAIL,
            CheckResult.FAIL,
            CheckResult.REVIEW,
            CheckResult.FAIL,
        ]

    def test_weights_follow_thresholds(self, make_profile):
        t = VettingThresholds(weight_501c3_status=40, weight_recent_990=5)
        checks = run_checks(make_profile(), t, AS_OF)
        assert [c.weight for c in checks] == [40, 15, 20, 20, 5]
