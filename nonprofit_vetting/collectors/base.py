"""
Collector interface: network access kept apart from interpretation.

fetch() performs the HTTP call and hands back the body untouched; parse()
validates a body into provider models. Tests drive parse() with recorded
payloads, and a caller can log the raw body when parsing fails.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class FetchResult:
    """Outcome of fetch(): the unparsed body, or why there is none."""

    success: bool
    raw_data: Optional[str]
    content_type: str  # informational, always "json" for ProPublica
    error: Optional[str] = None
    status_code: Optional[int] = None  # None when no response arrived


@dataclass
class ParseResult:
    """Outcome of parse(): validated data under the collector's schema key."""

    success: bool
    parsed_data: Optional[dict[str, Any]]  # {schema_key: {...}}
    error: Optional[str] = None


class BaseCollector(ABC):
    """Data source with separate fetch and parse phases."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Short source identifier, also used as the rate-limiter key."""
        ...

    @property
    @abstractmethod
    def schema_key(self) -> str:
        """Key that wraps this source's data in ParseResult.parsed_data."""
        ...

    @abstractmethod
    def fetch(self, ein: str, **kwargs) -> FetchResult:
        """Request the source for one EIN. No parsing, no raising on HTTP errors."""
        ...

    @abstractmethod
    def parse(self, raw_data: str, ein: str, **kwargs) -> ParseResult:
        """Validate a fetched body; ``ein`` is the EIN that was requested."""
        ...
