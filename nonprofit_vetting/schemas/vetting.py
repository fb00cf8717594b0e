"""
Domain models for Tier 1 vetting.

Every numeric field that the provider can omit is Optional: a missing value
(None) and a reported zero are different facts and are scored differently.
"""

from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Enums
# =============================================================================


class CheckResult(str, Enum):
    """Graded outcome of a single Tier 1 check."""

    PASS = "PASS"
    REVIEW = "REVIEW"
    FAIL = "FAIL"


class Recommendation(str, Enum):
    """Final Tier 1 verdict."""

    PASS = "PASS"
    REVIEW = "REVIEW"
    REJECT = "REJECT"


class RedFlagSeverity(str, Enum):
    """Severity of a red flag. Any HIGH flag forces REJECT."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class RedFlagType(str, Enum):
    """Fixed set of red-flag tags."""

    NO_990_ON_FILE = "no_990_on_file"
    NOT_501C3 = "not_501c3"
    NO_RULING_DATE = "no_ruling_date"
    TOO_NEW = "too_new"
    STALE_990 = "stale_990"
    # Expense-to-revenue above the burn-rate trigger. The tag predates the
    # switch away from "overhead" wording and is kept for API compatibility.
    VERY_HIGH_OVERHEAD = "very_high_overhead"
    LOW_FUND_DEPLOYMENT = "low_fund_deployment"
    VERY_LOW_REVENUE = "very_low_revenue"
    REVENUE_DECLINE = "revenue_decline"


# =============================================================================
# Organization Profile
# =============================================================================


class NonprofitAddress(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: str = ""
    state: str = ""


class FilingSummary(BaseModel):
    """Derived facts about the most recent Form 990 filing."""

    model_config = ConfigDict(frozen=True)

    tax_period: str = Field(description="Fiscal period end as YYYY-MM (may be malformed)")
    tax_year: Optional[int] = None
    form_type: str = ""
    total_revenue: Optional[float] = None
    total_expenses: Optional[float] = None
    total_assets: Optional[float] = None
    total_liabilities: Optional[float] = None
    expense_ratio: Optional[float] = Field(
        default=None,
        description="Total expenses / total revenue. None when not computable. NOT administrative overhead.",
    )
    program_revenue: Optional[float] = None
    contributions: Optional[float] = None


class OrganizationProfile(BaseModel):
    """Normalized view of one organization, built per request."""

    model_config = ConfigDict(frozen=True)

    ein: str = Field(description="EIN in XX-XXXXXXX format")
    name: str
    address: NonprofitAddress = Field(default_factory=NonprofitAddress)
    ruling_date: str = Field(default="", description="IRS ruling date as reported; empty when unknown")
    years_operating: Optional[int] = Field(
        default=None,
        description="Whole years since ruling date. None = unknown; negative = future ruling date (data anomaly)",
    )
    subsection: str = Field(default="", description="Two-digit IRS subsection code ('03' = 501(c)(3)); '' = unknown")
    ntee_code: str = ""
    latest_990: Optional[FilingSummary] = None
    filing_count: int = Field(default=0, ge=0)

    @property
    def is_501c3(self) -> bool:
        return self.subsection == "03"


# =============================================================================
# Checks, flags, results
# =============================================================================


class Tier1Check(BaseModel):
    """Outcome of one weighted Tier 1 check."""

    model_config = ConfigDict(frozen=True)

    name: str
    passed: bool
    result: CheckResult
    detail: str
    weight: int = Field(description="Points this check is worth under the active thresholds")


class RedFlag(BaseModel):
    """An independently triggered cautionary or disqualifying condition."""

    model_config = ConfigDict(frozen=True)

    severity: RedFlagSeverity
    type: RedFlagType
    detail: str


class Tier1Summary(BaseModel):
    """Human-readable explanation of a Tier 1 verdict."""

    headline: str
    justification: str
    key_factors: List[str] = Field(
        default_factory=list,
        description='Prefixed lines: "+" positive, "-" negative, "~" neutral/warning',
    )
    next_steps: List[str] = Field(default_factory=list)


class Tier1Result(BaseModel):
    """Aggregate output of a Tier 1 evaluation."""

    ein: str
    name: str
    passed: bool
    score: int = Field(ge=0, le=100)
    summary: Tier1Summary
    checks: List[Tier1Check]
    recommendation: Recommendation
    review_reasons: List[str] = Field(default_factory=list)
    red_flags: List[RedFlag] = Field(default_factory=list)


class RedFlagResult(BaseModel):
    """Output of a red-flag-only evaluation."""

    ein: str
    name: str
    flags: List[RedFlag] = Field(default_factory=list)
    clean: bool


# =============================================================================
# Service envelopes
# =============================================================================


class NonprofitSearchResult(BaseModel):
    ein: str
    name: str
    city: str = ""
    state: str = ""
    ntee_code: str = ""


class SearchNonprofitResponse(BaseModel):
    results: List[NonprofitSearchResult] = Field(default_factory=list)
    total: int = 0
    attribution: str


T = TypeVar("T")


class ToolResponse(BaseModel, Generic[T]):
    """Uniform envelope returned by every vetting operation."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    attribution: str
