"""
Vetting service - the four operations exposed to callers.

- search_nonprofit(query, state, city)
- get_nonprofit_profile(ein)
- check_tier1(ein)
- get_red_flags(ein)

Every operation returns a ToolResponse envelope carrying the ProPublica
attribution. Provider failures and bad input become ``success=False``
responses; nothing raises to the caller for a well-formed request.
"""

from datetime import date
from typing import Optional

from ..collectors.propublica import ProPublicaCollector, ProPublicaError
from ..constants import ATTRIBUTION
from ..parsers.propublica_profile import build_profile, build_search_result
from ..schemas.propublica import OrganizationDetail
from ..schemas.vetting import (
    OrganizationProfile,
    RedFlagResult,
    SearchNonprofitResponse,
    Tier1Result,
    ToolResponse,
)
from ..scorers.sector_thresholds import resolve_thresholds
from ..scorers.thresholds import VettingThresholds
from ..scorers.tier1 import run_red_flag_check, run_tier1_checks
from ..utils.ein_utils import validate_and_format
from ..utils.logger import PipelineLogger, get_logger
from ..utils.ntee_mapper import get_ntee_major_code


def _failure(error: str) -> ToolResponse:
    return ToolResponse(success=False, error=error, attribution=ATTRIBUTION)


class VettingService:
    """
    Tier 1 vetting operations over ProPublica data.

    Thresholds are the validated, process-wide base configuration; each
    evaluation specializes them by the organization's NTEE sector.
    """

    def __init__(
        self,
        collector: Optional[ProPublicaCollector] = None,
        thresholds: Optional[VettingThresholds] = None,
        logger: Optional[PipelineLogger] = None,
    ):
        self.logger = logger or get_logger()
        self.collector = collector or ProPublicaCollector(logger=self.logger)
        self.thresholds = thresholds or VettingThresholds()

    def _load_organization(self, ein: str) -> tuple[Optional[OrganizationDetail], Optional[str]]:
        """Fetch one organization: (detail, None), or (None, not-found message)."""
        detail = self.collector.get_organization(ein)
        if detail is None:
            self.logger.log_data_source_fetch(ein, "propublica", success=False, error="not found")
            return None, f"Organization not found with EIN: {ein}"
        self.logger.log_data_source_fetch(ein, "propublica", success=True)
        return detail, None

    def _thresholds_for(self, profile: OrganizationProfile) -> VettingThresholds:
        return resolve_thresholds(self.thresholds, profile.ntee_code)

    def search_nonprofit(
        self,
        query: Optional[str],
        state: Optional[str] = None,
        city: Optional[str] = None,
    ) -> ToolResponse[SearchNonprofitResponse]:
        """Search organizations by name; state and city narrow the results."""
        if not query or not query.strip():
            return _failure("Query parameter is required")

        self.logger.debug(f'Searching for nonprofits: "{query}"', state=state or "-", city=city or "-")
        try:
            response = self.collector.search(query.strip(), state, city)
        except (ProPublicaError, ValueError) as e:
            self.logger.error("search_nonprofit failed", exception=e, query=query)
            return _failure(f"Search failed: {e}")

        results = [build_search_result(org) for org in response.organizations]
        return ToolResponse[SearchNonprofitResponse](
            success=True,
            data=SearchNonprofitResponse(results=results, total=response.total_results, attribution=ATTRIBUTION),
            attribution=ATTRIBUTION,
        )

    def get_nonprofit_profile(
        self,
        ein: Optional[str],
        as_of: Optional[date] = None,
    ) -> ToolResponse[OrganizationProfile]:
        """Normalized organization profile with latest 990 summary."""
        valid, formatted, error = validate_and_format(ein)
        if not valid:
            return _failure(error)

        try:
            with self.logger.time_operation(formatted, "get_nonprofit_profile"):
                detail, error = self._load_organization(formatted)
                if detail is None:
                    return _failure(error)
                profile = build_profile(detail, as_of)
        except (ProPublicaError, ValueError) as e:
            return _failure(f"Failed to get profile: {e}")

        return ToolResponse[OrganizationProfile](success=True, data=profile, attribution=ATTRIBUTION)

    def check_tier1(
        self,
        ein: Optional[str],
        as_of: Optional[date] = None,
    ) -> ToolResponse[Tier1Result]:
        """Full Tier 1 evaluation: five checks, score, red flags, verdict, summary."""
        valid, formatted, error = validate_and_format(ein)
        if not valid:
            return _failure(error)

        try:
            with self.logger.time_operation(formatted, "check_tier1"):
                detail, error = self._load_organization(formatted)
                if detail is None:
                    return _failure(error)
                profile = build_profile(detail, as_of)
                result = run_tier1_checks(
                    profile,
                    detail.filings_with_data,
                    self._thresholds_for(profile),
                    as_of,
                )
        except (ProPublicaError, ValueError) as e:
            return _failure(f"Tier 1 check failed: {e}")

        self.logger.log_evaluation_complete(
            result.ein,
            result.recommendation.value,
            result.score,
            len(result.red_flags),
            sector=get_ntee_major_code(profile.ntee_code),
        )
        return ToolResponse[Tier1Result](success=True, data=result, attribution=ATTRIBUTION)

    def get_red_flags(
        self,
        ein: Optional[str],
        as_of: Optional[date] = None,
    ) -> ToolResponse[RedFlagResult]:
        """Red flag detection only."""
        valid, formatted, error = validate_and_format(ein)
        if not valid:
            return _failure(error)

        try:
            with self.logger.time_operation(formatted, "get_red_flags"):
                detail, error = self._load_organization(formatted)
                if detail is None:
                    return _failure(error)
                profile = build_profile(detail, as_of)
                result = run_red_flag_check(
                    profile,
                    detail.filings_with_data,
                    self._thresholds_for(profile),
                    as_of,
                )
        except (ProPublicaError, ValueError) as e:
            return _failure(f"Red flag check failed: {e}")

        return ToolResponse[RedFlagResult](success=True, data=result, attribution=ATTRIBUTION)
