"""Tests for ProPublica -> OrganizationProfile normalization."""

from datetime import date

import pytest
from conftest import AS_OF

from nonprofit_vetting.parsers.propublica_profile import (
    build_profile,
    build_search_result,
    calculate_expense_ratio,
    calculate_years_operating,
    format_tax_period,
    get_form_type_name,
    get_most_recent_filing,
    get_subsection,
    parse_ruling_date,
)
from nonprofit_vetting.schemas.propublica import OrganizationDetail, ProPublicaOrganization


def _detail(organization: dict, filings=None) -> OrganizationDetail:
    return OrganizationDetail.model_validate({"organization": organization, "filings_with_data": filings})


class TestSubsection:
    """subsection_code (detail) vs subseccd (search)."""

    def test_detail_field(self):
        assert get_subsection(ProPublicaOrganization(ein=1, subsection_code=3)) == "03"

    def test_search_field(self):
        assert get_subsection(ProPublicaOrganization(ein=1, subseccd="4")) == "04"

    def test_detail_field_wins(self):
        assert get_subsection(ProPublicaOrganization(ein=1, subsection_code="03", subseccd=4)) == "03"

    def test_missing(self):
        assert get_subsection(ProPublicaOrganization(ein=1)) == ""


class TestExpenseRatio:
    """Total expenses over total revenue, None when not computable."""

    def test_ratio(self, make_filing):
        assert calculate_expense_ratio(make_filing(totrevenue=500_000, totfuncexpns=400_000)) == pytest.approx(0.8)

    @pytest.mark.parametrize("revenue", [None, 0, -100])
    def test_unusable_revenue(self, make_filing, revenue):
        assert calculate_expense_ratio(make_filing(totrevenue=revenue)) is None

    def test_missing_expenses(self, make_filing):
        assert calculate_expense_ratio(make_filing(totfuncexpns=None)) is None

    def test_zero_expenses(self, make_filing):
        assert calculate_expense_ratio(make_filing(totfuncexpns=0)) == 0


class TestRulingDate:
    """Ruling date parsing and whole years operating."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("2010-03-15", date(2010, 3, 15)),
            ("2010-03", date(2010, 3, 1)),
            ("201003", date(2010, 3, 1)),
            ("2010-13-01", None),
            ("2010-02-30", None),
            ("March 2010", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse(self, raw, expected):
        assert parse_ruling_date(raw) == expected

    def test_years_floor(self):
        assert calculate_years_operating("2022-06-16", AS_OF) == 2
        assert calculate_years_operating("2022-06-14", AS_OF) == 3

    def test_future_is_negative(self):
        assert calculate_years_operating("2026-01-01", AS_OF) == -1

    def test_unknown(self):
        assert calculate_years_operating("", AS_OF) is None


class TestFilingHelpers:
    def test_most_recent(self, make_filing):
        filings = [make_filing(202106), make_filing(202312), make_filing(202206)]
        assert get_most_recent_filing(filings).tax_prd == 202312

    def test_most_recent_empty(self):
        assert get_most_recent_filing([]) is None

    def test_tax_period(self):
        assert format_tax_period(202306) == "2023-06"

    @pytest.mark.parametrize("code,name", [(0, "990"), (1, "990"), (2, "990EZ"), (3, "990PF"), (7, "Form 7")])
    def test_form_type(self, code, name):
        assert get_form_type_name(code) == name


class TestBuildProfile:
    """Org detail -> OrganizationProfile, missing data stays None."""

    def test_full_profile(self):
        detail = _detail(
            {
                "ein": 953135649,
                "name": "Los Angeles Regional Food Bank",
                "city": "Los Angeles",
                "state": "CA",
                "ntee_code": "K31",
                "subsection_code": 3,
                "ruling_date": "1975-04-01",
            },
            [
                {"tax_prd": 202206, "tax_prd_yr": 2021, "formtype": 0, "totrevenue": 1_000_000, "totfuncexpns": 900_000},
                {"tax_prd": 202306, "tax_prd_yr": 2022, "formtype": 0, "totrevenue": 2_000_000, "totfuncexpns": 2_400_000},
            ],
        )
        profile = build_profile(detail, AS_OF)

        assert profile.ein == "95-3135649"
        assert profile.address.city == "Los Angeles"
        assert profile.subsection == "03"
        assert profile.is_501c3
        assert profile.years_operating == 50
        assert profile.ntee_code == "K31"
        assert profile.filing_count == 2
        assert profile.latest_990.tax_period == "2023-06"
        assert profile.latest_990.form_type == "990"
        assert profile.latest_990.expense_ratio == pytest.approx(1.2)

    def test_missing_data_stays_null(self):
        detail = _detail({"ein": 12345678, "name": "New Org"}, None)
        profile = build_profile(detail, AS_OF)

        assert profile.ein == "01-2345678"
        assert profile.subsection == ""
        assert profile.ruling_date == ""
        assert profile.years_operating is None
        assert profile.latest_990 is None
        assert profile.filing_count == 0

    def test_missing_revenue_is_not_zero(self):
        detail = _detail({"ein": 953135649, "name": "Org"}, [{"tax_prd": 202306, "totfuncexpns": 10}])
        latest = build_profile(detail, AS_OF).latest_990
        assert latest.total_revenue is None
        assert latest.expense_ratio is None


def test_build_search_result():
    result = build_search_result(ProPublicaOrganization(ein="12345678", name="Org", state="CA"))
    assert result.ein == "01-2345678"
    assert result.city == ""
    assert result.state == "CA"
