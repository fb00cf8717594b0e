"""Deterministic Tier 1 scoring: thresholds, checks, red flags, verdict."""

from .red_flags import detect_red_flags
from .sector_thresholds import (
    get_sector_name,
    get_supported_sectors,
    resolve_thresholds,
    validate_sector_overrides,
)
from .thresholds import (
    ThresholdValidationError,
    VettingThresholds,
    apply_overrides,
    collect_threshold_errors,
    validate_thresholds,
)
from .tier1 import get_recommendation, run_red_flag_check, run_tier1_checks
from .tier1_checks import (
    calculate_score,
    check_501c3_status,
    check_expense_ratio,
    check_recent_990,
    check_revenue_range,
    check_years_operating,
    run_checks,
)
