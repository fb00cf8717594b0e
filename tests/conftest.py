"""Shared fixtures for vetting tests.

Time-dependent rules take an explicit reference date, so every test pins
the clock to AS_OF instead of depending on today's date.
"""

import sys
from datetime import date
from pathlib import Path

import pytest

# Make the package importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))

from nonprofit_vetting.schemas.propublica import ProPublicaFiling  # noqa: E402
from nonprofit_vetting.schemas.vetting import (  # noqa: E402
    FilingSummary,
    NonprofitAddress,
    OrganizationProfile,
)
from nonprofit_vetting.scorers import sector_thresholds  # noqa: E402
from nonprofit_vetting.scorers.thresholds import VettingThresholds  # noqa: E402

AS_OF = date(2025, 6, 15)


@pytest.fixture(autouse=True)
def reset_sector_cache():
    """Each test loads the sector table fresh."""
    sector_thresholds.clear_cache()
    yield
    sector_thresholds.clear_cache()


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def thresholds() -> VettingThresholds:
    return VettingThresholds()


@pytest.fixture
def make_990():
    """Build a FilingSummary for a healthy recent filing, override any field."""

    def _make(**overrides) -> FilingSummary:
        defaults = dict(
            tax_period="2024-06",
            tax_year=2023,
            form_type="990",
            total_revenue=500_000,
            total_expenses=400_000,
            total_assets=1_000_000,
            total_liabilities=200_000,
            expense_ratio=0.8,
        )
        defaults.update(overrides)
        return FilingSummary(**defaults)

    return _make


@pytest.fixture
def make_profile(make_990):
    """Build an OrganizationProfile that passes every check, override any field."""

    def _make(**overrides) -> OrganizationProfile:
        defaults = dict(
            ein="95-3135649",
            name="Test Food Bank",
            address=NonprofitAddress(city="Los Angeles", state="CA"),
            ruling_date="2010-01-01",
            years_operating=15,
            subsection="03",
            ntee_code="",
            latest_990=make_990(),
            filing_count=1,
        )
        defaults.update(overrides)
        return OrganizationProfile(**defaults)

    return _make


@pytest.fixture
def make_filing():
    """Build a raw ProPublica filing record."""

    def _make(tax_prd: int = 202306, totrevenue=500_000, totfuncexpns=400_000, **overrides) -> ProPublicaFiling:
        return ProPublicaFiling(
            tax_prd=tax_prd,
            tax_prd_yr=tax_prd // 100,
            formtype=0,
            totrevenue=totrevenue,
            totfuncexpns=totfuncexpns,
            **overrides,
        )

    return _make


def tax_period_years_ago(years: float, as_of: date = AS_OF) -> str:
    """YYYY-MM period whose first day lies roughly `years` before as_of."""
    months = round(years * 12)
    total = as_of.year * 12 + (as_of.month - 1) - months
    return f"{total // 12:04d}-{total % 12 + 1:02d}"
