"""
Central configuration for the vetting service.

Configuration is read once at process start from environment variables
(a .env file in the working directory is loaded first if present):

  - PROPUBLICA_API_BASE_URL (default: https://projects.propublica.org/nonprofits/api/v2)
  - PROPUBLICA_RATE_LIMIT_MS (default: 500)
  - PROPUBLICA_TIMEOUT_SECONDS (default: 30)
  - VETTING_<THRESHOLD_NAME> for any VettingThresholds field, e.g.
    VETTING_SCORE_PASS_MIN=75 or VETTING_WEIGHT_RECENT_990=10

Invalid thresholds abort startup with every problem listed at once.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .constants import (
    PROPUBLICA_API_BASE_URL,
    PROPUBLICA_RATE_LIMIT_MS,
    PROPUBLICA_TIMEOUT_SECONDS,
    THRESHOLD_ENV_PREFIX,
)
from .scorers.thresholds import (
    THRESHOLD_FIELDS,
    WEIGHT_FIELDS,
    ThresholdValidationError,
    VettingThresholds,
    apply_overrides,
    collect_threshold_errors,
)
from .scorers.sector_thresholds import validate_sector_overrides


@dataclass(frozen=True)
class ProPublicaConfig:
    """Settings for the ProPublica Nonprofit Explorer API client."""

    api_base_url: str = PROPUBLICA_API_BASE_URL
    rate_limit_seconds: float = PROPUBLICA_RATE_LIMIT_MS / 1000
    timeout: float = PROPUBLICA_TIMEOUT_SECONDS


@dataclass(frozen=True)
class AppConfig:
    propublica: ProPublicaConfig
    thresholds: VettingThresholds


def threshold_env_name(field_name: str) -> str:
    """VettingThresholds field -> environment variable name."""
    return f"{THRESHOLD_ENV_PREFIX}{field_name.upper()}"


def _parse_number(field_name: str, raw: str):
    value = float(raw.strip())
    if field_name in WEIGHT_FIELDS and value.is_integer():
        return int(value)
    return value


def load_thresholds(env: Optional[Mapping[str, str]] = None) -> VettingThresholds:
    """
    Build thresholds from defaults plus VETTING_* environment overrides.

    Args:
        env: Mapping to read instead of os.environ (tests pass a dict)

    Returns:
        Validated VettingThresholds

    Raises:
        ThresholdValidationError: listing unparseable values and every
            violated consistency rule together
    """
    if env is None:
        env = os.environ

    overrides = {}
    errors = []
    for field_name in THRESHOLD_FIELDS:
        env_name = threshold_env_name(field_name)
        raw = env.get(env_name)
        if raw is None or raw.strip() == "":
            continue
        try:
            overrides[field_name] = _parse_number(field_name, raw)
        except ValueError:
            errors.append(f"{env_name} must be a number (got {raw!r})")

    thresholds = apply_overrides(VettingThresholds(), overrides)
    errors.extend(collect_threshold_errors(thresholds))
    if errors:
        raise ThresholdValidationError(errors)
    return thresholds


def load_propublica_config(env: Optional[Mapping[str, str]] = None) -> ProPublicaConfig:
    """Read ProPublica client settings, falling back to defaults on bad values."""
    if env is None:
        env = os.environ

    base_url = env.get("PROPUBLICA_API_BASE_URL") or PROPUBLICA_API_BASE_URL

    try:
        rate_limit_ms = int(env.get("PROPUBLICA_RATE_LIMIT_MS") or PROPUBLICA_RATE_LIMIT_MS)
    except ValueError:
        rate_limit_ms = PROPUBLICA_RATE_LIMIT_MS

    try:
        timeout = float(env.get("PROPUBLICA_TIMEOUT_SECONDS") or PROPUBLICA_TIMEOUT_SECONDS)
    except ValueError:
        timeout = PROPUBLICA_TIMEOUT_SECONDS

    return ProPublicaConfig(
        api_base_url=base_url.rstrip("/"),
        rate_limit_seconds=max(rate_limit_ms, 0) / 1000,
        timeout=timeout,
    )


def load_config(env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> AppConfig:
    """
    Load full application config. Call once at startup.

    Args:
        env: Mapping to read instead of os.environ
        dotenv: Load a .env file into os.environ first (ignored when env is given)

    Raises:
        ThresholdValidationError: if thresholds are invalid, or a sector
            override is invalid once merged onto them
    """
    if env is None and dotenv:
        load_dotenv()

    thresholds = load_thresholds(env)
    validate_sector_overrides(thresholds)

    return AppConfig(
        propublica=load_propublica_config(env),
        thresholds=thresholds,
    )
