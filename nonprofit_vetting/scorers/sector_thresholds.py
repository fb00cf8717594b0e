"""Sector thresholds: NTEE major-category overrides for Tier 1 scoring.

Financial norms differ by sector (food banks routinely spend more than their
booked revenue; arts groups run smaller). Sector entries are partial
VettingThresholds merged onto the base at evaluation time.

The table lives in sector_overrides.yaml next to this module and is loaded
and validated once. An entry that names an unknown field, or that produces an
invalid configuration once merged, raises ThresholdValidationError at load
time rather than on some later request.

Usage:
    from nonprofit_vetting.scorers.sector_thresholds import resolve_thresholds

    thresholds = resolve_thresholds(base, profile.ntee_code)  # "K31" -> food bank bands
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

import yaml

from ..utils.ntee_mapper import NTEE_MAJOR_CATEGORIES, get_ntee_major_code
from .thresholds import (
    ThresholdValidationError,
    VettingThresholds,
    apply_overrides,
    collect_threshold_errors,
)

logger = logging.getLogger(__name__)

# Used when the YAML file is missing from the installation
DEFAULT_SECTOR_OVERRIDES: dict[str, dict[str, Any]] = {
    "K": {
        "expense_ratio_pass_min": 0.6,
        "expense_ratio_pass_max": 1.3,
        "expense_ratio_high_review": 1.5,
        "red_flag_high_expense_ratio": 1.5,
        "red_flag_low_expense_ratio": 0.4,
    },
    "A": {
        "revenue_fail_min": 25_000,
        "revenue_pass_min": 50_000,
        "expense_ratio_pass_min": 0.6,
        "red_flag_very_low_revenue": 15_000,
    },
    "E": {
        "revenue_pass_max": 50_000_000,
        "revenue_review_max": 100_000_000,
    },
}


@dataclass(frozen=True)
class SectorOverride:
    """Named threshold delta for one NTEE major category."""

    code: str
    description: str = ""
    overrides: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


# Module-level cache
_registry_cache: Optional[Mapping[str, SectorOverride]] = None


def _get_config_path() -> Path:
    return Path(__file__).parent / "sector_overrides.yaml"


def _build_default_registry() -> dict[str, SectorOverride]:
    return {
        code: SectorOverride(
            code=code,
            description=NTEE_MAJOR_CATEGORIES.get(code, ""),
            overrides=MappingProxyType(dict(overrides)),
        )
        for code, overrides in DEFAULT_SECTOR_OVERRIDES.items()
    }


def _parse_registry(raw: Mapping[str, Any]) -> dict[str, SectorOverride]:
    sectors: dict[str, SectorOverride] = {}
    for code, data in (raw.get("sectors") or {}).items():
        code = str(code).strip().upper()
        data = data or {}
        sectors[code] = SectorOverride(
            code=code,
            description=data.get("description") or NTEE_MAJOR_CATEGORIES.get(code, ""),
            overrides=MappingProxyType(dict(data.get("overrides") or {})),
        )
    return sectors


def _collect_sector_errors(sectors: Mapping[str, SectorOverride], base: VettingThresholds) -> list[str]:
    """Validate every sector entry merged onto base; prefix errors with the sector code."""
    errors: list[str] = []
    for code, sector in sectors.items():
        if get_ntee_major_code(code) != code:
            errors.append(f"Sector {code!r}: key must be a single NTEE major category letter")
            continue
        try:
            merged = apply_overrides(base, sector.overrides)
        except ThresholdValidationError as e:
            errors.extend(f"Sector {code}: {msg}" for msg in e.errors)
            continue
        errors.extend(f"Sector {code}: {msg}" for msg in collect_threshold_errors(merged))
    return errors


def _load_registry() -> Mapping[str, SectorOverride]:
    """Load, validate and cache the sector table."""
    global _registry_cache
    if _registry_cache is not None:
        return _registry_cache

    config_path = _get_config_path()
    if not config_path.exists():
        logger.warning(f"Sector overrides not found at {config_path}, using built-in table")
        sectors = _build_default_registry()
    else:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        sectors = _parse_registry(raw)

    errors = _collect_sector_errors(sectors, VettingThresholds())
    if errors:
        raise ThresholdValidationError(errors)

    _registry_cache = MappingProxyType(sectors)
    logger.info(f"Loaded {len(sectors)} sector threshold overrides: {', '.join(sorted(sectors))}")
    return _registry_cache


def validate_sector_overrides(base: VettingThresholds) -> None:
    """
    Check every sector entry against the deployed base thresholds.

    The table is validated against the defaults when first loaded; this
    re-checks it against environment-adjusted thresholds at startup.

    Raises:
        ThresholdValidationError: listing every failing sector rule
    """
    errors = _collect_sector_errors(_load_registry(), base)
    if errors:
        raise ThresholdValidationError(errors)


def get_sector_override(ntee_code: Optional[str]) -> Optional[SectorOverride]:
    """Return the override entry for an NTEE code's major category, if any."""
    major = get_ntee_major_code(ntee_code)
    if major is None:
        return None
    return _load_registry().get(major)


def resolve_thresholds(base: VettingThresholds, ntee_code: Optional[str]) -> VettingThresholds:
    """
    Merge sector-specific overrides onto the base thresholds.

    Priority: base thresholds <- sector overrides (if the NTEE major
    category has an entry). Returns ``base`` itself when nothing applies.
    """
    sector = get_sector_override(ntee_code)
    if sector is None or not sector.overrides:
        return base
    return apply_overrides(base, sector.overrides)


def get_supported_sectors() -> list[str]:
    """List NTEE major categories that have sector overrides."""
    return sorted(_load_registry().keys())


def list_sectors() -> list[SectorOverride]:
    """All sector entries, sorted by code."""
    registry = _load_registry()
    return [registry[code] for code in sorted(registry)]


def clear_cache():
    """Clear the registry cache (useful for testing)."""
    global _registry_cache
    _registry_cache = None


def get_sector_name(ntee_code: Optional[str]) -> Optional[str]:
    """Human-readable label of the sector an NTEE code falls in, if known."""
    sector = get_sector_override(ntee_code)
    if sector is not None and sector.description:
        return sector.description
    major = get_ntee_major_code(ntee_code)
    return NTEE_MAJOR_CATEGORIES.get(major) if major else None
