"""
ProPublica Nonprofit Explorer collector.

Fetches organization profiles and Form 990 summaries from ProPublica's API.
No authentication is required, but every response shown to users must carry
the ProPublica attribution (see constants.ATTRIBUTION).
"""

import json
from typing import Any, Optional

import requests
from pydantic import ValidationError

from ..config import ProPublicaConfig
from ..constants import USER_AGENT
from ..schemas.propublica import OrganizationDetail, ProPublicaSearchResponse
from ..utils.ein_utils import ein_to_digits, format_ein
from ..utils.logger import PipelineLogger
from ..utils.rate_limiter import global_rate_limiter
from .base import BaseCollector, FetchResult, ParseResult


class ProPublicaError(RuntimeError):
    """ProPublica request failed for a reason other than "not found"."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProPublicaCollector(BaseCollector):
    """
    Collect organization and 990 data from the ProPublica Nonprofit Explorer API.

    API Docs: https://projects.propublica.org/nonprofits/api

    - fetch(): HTTP GET of /organizations/{ein}.json, returns raw JSON
    - parse(): validate the JSON into OrganizationDetail
    - get_organization(): fetch + parse, None when the EIN is unknown
    - search(): /search.json with optional state and client-side city filter
    """

    def __init__(
        self,
        config: Optional[ProPublicaConfig] = None,
        logger: Optional[PipelineLogger] = None,
    ):
        """
        Initialize ProPublica collector.

        Args:
            config: API base URL, rate limit and timeout (defaults when None)
            logger: Logger instance
        """
        config = config or ProPublicaConfig()
        self.base_url = config.api_base_url.rstrip("/")
        self.rate_limit_delay = config.rate_limit_seconds
        self.timeout = config.timeout
        self.logger = logger

    @property
    def source_name(self) -> str:
        return "propublica"

    @property
    def schema_key(self) -> str:
        return "propublica_organization"

    def _rate_limit(self):
        """Enforce rate limiting (global, thread-safe)."""
        global_rate_limiter.wait(self.source_name, self.rate_limit_delay)

    def _get(self, path: str, params: Optional[dict[str, str]] = None) -> requests.Response:
        self._rate_limit()
        url = f"{self.base_url}{path}"
        if self.logger:
            self.logger.debug(f"API Request: GET {url}", params=params or {})
        response = requests.get(
            url,
            params=params,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=self.timeout,
        )
        if self.logger:
            self.logger.debug(f"API Response: {response.status_code} {url}")
        return response

    def _fetch_failed(self, error: str, status_code: Optional[int] = None) -> FetchResult:
        return FetchResult(success=False, raw_data=None, content_type="json", error=error, status_code=status_code)

    def fetch(self, ein: str, **kwargs) -> FetchResult:
        """
        GET /organizations/{ein}.json and return the body unparsed.

        Never raises for HTTP or network problems: 404, 429, other statuses,
        timeouts and connection errors all come back as failed results with
        ``status_code`` set where there was a response. A malformed EIN fails
        before any request is made.
        """
        ein_clean = ein_to_digits(ein)
        if ein_clean is None:
            return self._fetch_failed(f"Invalid EIN format: {ein}")

        try:
            response = self._get(f"/organizations/{ein_clean}.json")
        except requests.Timeout:
            return self._fetch_failed(f"Request timeout after {self.timeout}s")
        except requests.RequestException as e:
            return self._fetch_failed(f"Request failed: {str(e)}")

        status = response.status_code
        if status == 404:
            return self._fetch_failed(f"Organization not found for EIN {format_ein(ein_clean)}", 404)
        if status == 429:
            retry_after = response.headers.get("Retry-After", "60")
            if self.logger:
                self.logger.warning(f"ProPublica rate limited (429). Retry-After: {retry_after}s")
            return self._fetch_failed(f"Rate limited (429). Retry after {retry_after}s", 429)
        if status != 200:
            return self._fetch_failed(f"HTTP {status}", status)

        return FetchResult(success=True, raw_data=response.text, content_type="json", status_code=200)

    def parse(self, raw_data: str, ein: str, **kwargs) -> ParseResult:
        """
        Parse ProPublica JSON into validated schema.

        Args:
            raw_data: Raw JSON string from fetch()
            ein: EIN that was requested

        Returns:
            ParseResult with {"propublica_organization": {...}}
        """
        try:
            data = json.loads(raw_data)
        except json.JSONDecodeError as e:
            return ParseResult(success=False, parsed_data=None, error=f"Invalid JSON: {e}")

        if not isinstance(data, dict) or not isinstance(data.get("organization"), dict):
            return ParseResult(success=False, parsed_data=None, error="Invalid API response structure")

        # The API must return the organization that was asked for
        api_ein = data["organization"].get("ein")
        requested = ein_to_digits(ein)
        if api_ein is not None and requested is not None and format_ein(api_ein) != format_ein(requested):
            return ParseResult(
                success=False,
                parsed_data=None,
                error=f"VALIDATION_ERROR: EIN mismatch: requested {format_ein(requested)} but API returned {api_ein}",
            )

        try:
            detail = OrganizationDetail.model_validate(data)
        except ValidationError as e:
            if self.logger:
                self.logger.error(f"Validation error: {e}")
            return ParseResult(success=False, parsed_data=None, error=f"Validation failed: {e}")

        if self.logger:
            self.logger.debug(
                "Parsed ProPublica organization",
                ein=format_ein(detail.organization.ein),
                filings=len(detail.filings_with_data),
            )

        return ParseResult(success=True, parsed_data={self.schema_key: detail.model_dump()}, error=None)

    def get_organization(self, ein: str) -> Optional[OrganizationDetail]:
        """
        Fetch and validate one organization with its filings.

        Returns:
            OrganizationDetail, or None when ProPublica has no such EIN

        Raises:
            ValueError: EIN is not 9 digits after removing dashes/whitespace
            ProPublicaError: any other fetch or parse failure
        """
        ein_clean = ein_to_digits(ein)
        if ein_clean is None:
            raise ValueError("Invalid EIN format: expected 9 digits")

        fetch_result = self.fetch(ein_clean)
        if not fetch_result.success:
            if fetch_result.status_code == 404:
                if self.logger:
                    self.logger.warning(f"Organization not found: {format_ein(ein_clean)}")
                return None
            raise ProPublicaError(fetch_result.error or "Request failed", fetch_result.status_code)

        parse_result = self.parse(fetch_result.raw_data, ein_clean)
        if not parse_result.success:
            raise ProPublicaError(parse_result.error or "Invalid API response")

        return OrganizationDetail.model_validate(parse_result.parsed_data[self.schema_key])

    def search(
        self,
        query: str,
        state: Optional[str] = None,
        city: Optional[str] = None,
    ) -> ProPublicaSearchResponse:
        """
        Search organizations by name or keyword.

        Args:
            query: Search text
            state: Optional two-letter state code (sent upper-cased)
            city: Optional city; the API has no city parameter, so results
                are filtered here (case-insensitive substring)

        Returns:
            ProPublicaSearchResponse; empty when ProPublica reports no matches

        Raises:
            ProPublicaError: on timeouts, request errors, non-404 HTTP errors
                or an unreadable body
        """
        params = {"q": query}
        if state:
            params["state[id]"] = state.strip().upper()

        try:
            response = self._get("/search.json", params=params)
        except requests.Timeout as e:
            raise ProPublicaError(f"Request timeout after {self.timeout}s") from e
        except requests.RequestException as e:
            raise ProPublicaError(f"Request failed: {str(e)}") from e

        if response.status_code == 404:
            return ProPublicaSearchResponse(total_results=0, organizations=[])
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "60")
            raise ProPublicaError(f"Rate limited (429). Retry after {retry_after}s", 429)
        if response.status_code != 200:
            raise ProPublicaError(f"HTTP {response.status_code}", response.status_code)

        try:
            payload: Any = response.json()
            data = ProPublicaSearchResponse.model_validate(payload)
        except (ValueError, ValidationError) as e:
            raise ProPublicaError(f"Invalid search response: {e}") from e

        results = list(data.organizations)
        if city and results:
            city_lower = city.strip().lower()
            results = [org for org in results if org.city and city_lower in org.city.lower()]

        return ProPublicaSearchResponse(total_results=len(results), organizations=results)
