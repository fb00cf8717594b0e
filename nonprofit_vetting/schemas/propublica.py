"""
Pydantic models for raw ProPublica Nonprofit Explorer API responses.

API Docs: https://projects.propublica.org/nonprofits/api

These mirror the provider's field names exactly (totrevenue, tax_prd, ...).
Unknown keys are ignored: the API returns dozens of Form 990 line items we
never read, and it adds new ones without notice.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProPublicaOrganization(BaseModel):
    """Organization record from /organizations/{ein}.json or /search.json."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    ein: Union[int, str]
    name: str = ""
    city: Optional[str] = None
    state: Optional[str] = None
    ntee_code: Optional[str] = None

    # Search results use `subseccd`, org detail uses `subsection_code`
    subseccd: Optional[Union[int, str]] = None
    subsection_code: Optional[Union[int, str]] = None

    ruling_date: Optional[str] = None  # YYYY-MM-DD on org detail

    totrevenue: Optional[float] = None
    totfuncexpns: Optional[float] = None
    totassetsend: Optional[float] = None


class ProPublicaFiling(BaseModel):
    """
    One Form 990 filing from `filings_with_data` (a Raw Filing Record).

    tax_prd encodes the fiscal period end as YYYYMM (202306 = June 2023).
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    tax_prd: int
    tax_prd_yr: Optional[int] = None
    formtype: Optional[int] = None  # 0/1 = 990, 2 = 990EZ, 3 = 990PF

    totrevenue: Optional[float] = None
    totfuncexpns: Optional[float] = None
    totassetsend: Optional[float] = None
    totliabend: Optional[float] = None

    # Optional breakdowns
    totcntrbgfts: Optional[float] = None  # Contributions and grants
    totprgmrevnue: Optional[float] = None  # Program service revenue
    invstmntinc: Optional[float] = None
    totnetassetend: Optional[float] = None
    pct_compnsatncurrofcr: Optional[float] = None
    pdf_url: Optional[str] = None


class OrganizationDetail(BaseModel):
    """Response body of /organizations/{ein}.json."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    organization: ProPublicaOrganization
    filings_with_data: List[ProPublicaFiling] = Field(default_factory=list)

    @field_validator("filings_with_data", mode="before")
    @classmethod
    def default_missing_filings(cls, v):
        """New organizations come back with `filings_with_data: null`."""
        return [] if v is None else v


class ProPublicaSearchResponse(BaseModel):
    """Response body of /search.json (after optional client-side city filter)."""

    model_config = ConfigDict(extra="ignore")

    total_results: int = 0
    organizations: List[ProPublicaOrganization] = Field(default_factory=list)

    @field_validator("organizations", mode="before")
    @classmethod
    def default_missing_organizations(cls, v):
        return [] if v is None else v
