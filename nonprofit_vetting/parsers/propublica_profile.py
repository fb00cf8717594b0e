"""
ProPublica response -> OrganizationProfile normalizer.

Maps raw provider fields onto the domain shapes the scorers read:

- EINs come back as integers (leading zeros lost) and are re-padded
- the 501(c) subsection is `subsection_code` on org detail and `subseccd`
  on search results
- tax periods are YYYYMM integers and become YYYY-MM strings
- missing numbers stay None; nothing is defaulted to zero
"""

import math
import re
from datetime import date
from typing import Optional, Sequence, Union

from ..constants import DAYS_PER_YEAR
from ..schemas.propublica import OrganizationDetail, ProPublicaFiling, ProPublicaOrganization
from ..schemas.vetting import FilingSummary, NonprofitAddress, NonprofitSearchResult, OrganizationProfile
from ..utils import ein_utils

_RULING_FULL = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_RULING_MONTH = re.compile(r"^(\d{4})-(\d{2})$")
_RULING_COMPACT = re.compile(r"^(\d{4})(\d{2})$")


def format_ein(ein: Union[int, str]) -> str:
    """Canonical XX-XXXXXXX form, left-padded to 9 digits."""
    return ein_utils.format_ein(ein)


def get_subsection(org: ProPublicaOrganization) -> str:
    """
    Two-digit subsection code ("03" for 501(c)(3)).

    Org detail uses subsection_code, search uses subseccd. Returns "" when
    neither is present.
    """
    code = org.subsection_code if org.subsection_code is not None else org.subseccd
    if code is None or str(code).strip() == "":
        return ""
    return str(code).strip().zfill(2)


def get_most_recent_filing(filings: Sequence[ProPublicaFiling]) -> Optional[ProPublicaFiling]:
    """Filing with the greatest tax period; None for an empty list."""
    if not filings:
        return None
    return max(filings, key=lambda f: f.tax_prd)


def calculate_expense_ratio(filing: ProPublicaFiling) -> Optional[float]:
    """
    Total expenses / total revenue.

    NOTE: This is NOT administrative overhead. ProPublica summary data does
    not split program from admin/fundraising spending, so for pass-through
    organizations (food banks) a high ratio is normal.

    Returns None when revenue is missing, non-finite, zero or negative, or
    when expenses are missing or non-finite.
    """
    revenue = filing.totrevenue
    expenses = filing.totfuncexpns

    if revenue is None or not math.isfinite(revenue) or revenue <= 0:
        return None
    if expenses is None or not math.isfinite(expenses):
        return None

    ratio = expenses / revenue
    return ratio if math.isfinite(ratio) else None


def parse_ruling_date(ruling_date: Optional[str]) -> Optional[date]:
    """
    Parse an IRS ruling date.

    Handles YYYY-MM-DD (org detail), YYYY-MM and YYYYMM. Month-only forms
    resolve to the first of the month. Impossible dates return None.
    """
    if not ruling_date:
        return None
    text = ruling_date.strip()

    match = _RULING_FULL.match(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
    else:
        match = _RULING_MONTH.match(text) or _RULING_COMPACT.match(text)
        if not match:
            return None
        year, month = (int(g) for g in match.groups())
        day = 1

    try:
        return date(year, month, day)
    except ValueError:
        return None


def calculate_years_operating(ruling_date: Optional[str], as_of: Optional[date] = None) -> Optional[int]:
    """
    Whole years since the ruling date (floor of days / 365.25).

    A future ruling date gives a negative number, which the years check
    treats as a data anomaly. Unparseable dates give None.
    """
    start = parse_ruling_date(ruling_date)
    if start is None:
        return None
    as_of = as_of or date.today()
    return math.floor((as_of - start).days / DAYS_PER_YEAR)


def format_tax_period(tax_prd: Union[int, str]) -> str:
    """YYYYMM -> YYYY-MM."""
    text = str(tax_prd)
    return f"{text[:4]}-{text[4:6]}"


def get_form_type_name(formtype: Optional[int]) -> str:
    """ProPublica form codes: 0/1 = 990, 2 = 990EZ, 3 = 990PF."""
    if formtype in (0, 1, 990):
        return "990"
    if formtype == 2:
        return "990EZ"
    if formtype == 3:
        return "990PF"
    return f"Form {formtype}"


def build_filing_summary(filing: ProPublicaFiling) -> FilingSummary:
    return FilingSummary(
        tax_period=format_tax_period(filing.tax_prd),
        tax_year=filing.tax_prd_yr,
        form_type=get_form_type_name(filing.formtype),
        total_revenue=filing.totrevenue,
        total_expenses=filing.totfuncexpns,
        total_assets=filing.totassetsend,
        total_liabilities=filing.totliabend,
        expense_ratio=calculate_expense_ratio(filing),
        program_revenue=filing.totprgmrevnue,
        contributions=filing.totcntrbgfts,
    )


def build_profile(detail: OrganizationDetail, as_of: Optional[date] = None) -> OrganizationProfile:
    """
    Normalize an org-detail response into an OrganizationProfile.

    Unknown years operating and an uncomputable expense ratio stay None.
    """
    org = detail.organization
    filings = detail.filings_with_data
    latest = get_most_recent_filing(filings)

    return OrganizationProfile(
        ein=format_ein(org.ein),
        name=org.name,
        address=NonprofitAddress(city=org.city or "", state=org.state or ""),
        ruling_date=org.ruling_date or "",
        years_operating=calculate_years_operating(org.ruling_date, as_of),
        subsection=get_subsection(org),
        ntee_code=org.ntee_code or "",
        latest_990=build_filing_summary(latest) if latest is not None else None,
        filing_count=len(filings),
    )


def build_search_result(org: ProPublicaOrganization) -> NonprofitSearchResult:
    return NonprofitSearchResult(
        ein=format_ein(org.ein),
        name=org.name,
        city=org.city or "",
        state=org.state or "",
        ntee_code=org.ntee_code or "",
    )
