"""
Vetting thresholds - every tunable number behind Tier 1 scoring.

Thresholds are built once at startup (defaults + environment overrides, see
nonprofit_vetting.config), validated, and then only ever read. Sector
adjustments produce a new instance via dataclasses.replace().

Validation collects every violated rule before raising so that a bad
deployment config is fixed in one round trip, not one error at a time.
"""

import math
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Mapping


class ThresholdValidationError(ValueError):
    """Raised at startup when thresholds are internally inconsistent."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Invalid vetting thresholds:\n  - " + "\n  - ".join(self.errors))


@dataclass(frozen=True)
class VettingThresholds:
    """Immutable Tier 1 scoring parameters.

    Attributes are grouped by the rule that reads them. Boundary semantics
    (inclusive/exclusive) are documented on the check and red-flag functions.
    """

    # Check weights (must sum to 100)
    weight_501c3_status: int = 30  # Critical - must be tax-exempt
    weight_years_operating: int = 15  # Stability indicator
    weight_revenue_range: int = 20  # Size appropriateness
    weight_expense_ratio: int = 20  # Fund deployment
    weight_recent_990: int = 15  # Data freshness

    # Years operating
    years_pass_min: float = 3  # >= this = PASS
    years_review_min: float = 1  # >= this = REVIEW

    # Revenue range ($)
    revenue_fail_min: float = 50_000  # < this = FAIL
    revenue_pass_min: float = 100_000  # >= this = PASS lower bound
    revenue_pass_max: float = 10_000_000  # <= this = PASS upper bound
    revenue_review_max: float = 50_000_000  # <= this = REVIEW upper bound

    # Expense-to-revenue ratio
    expense_ratio_pass_min: float = 0.70
    expense_ratio_pass_max: float = 1.0
    expense_ratio_high_review: float = 1.2  # above pass_max, up to this = REVIEW
    expense_ratio_low_review: float = 0.5  # below pass_min, down to this = REVIEW

    # 990 filing recency (years)
    filing_990_pass_max: float = 2
    filing_990_review_max: float = 3

    # Score-based recommendation cutoffs
    score_pass_min: float = 80
    score_review_min: float = 50

    # Red flag triggers
    red_flag_stale_990_years: float = 4  # 990 older than this = HIGH
    red_flag_high_expense_ratio: float = 1.2  # above this = HIGH
    red_flag_low_expense_ratio: float = 0.5  # below this = MEDIUM
    red_flag_very_low_revenue: float = 25_000  # below this = MEDIUM
    red_flag_revenue_decline_percent: float = 0.5  # decline fraction above this = MEDIUM
    red_flag_too_new_years: float = 1  # operating < this = MEDIUM

    def weights(self) -> dict[str, int]:
        """Check name -> weight, in evaluation order."""
        return {
            "501c3_status": self.weight_501c3_status,
            "years_operating": self.weight_years_operating,
            "revenue_range": self.weight_revenue_range,
            "expense_ratio": self.weight_expense_ratio,
            "recent_990": self.weight_recent_990,
        }

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


THRESHOLD_FIELDS = [f.name for f in fields(VettingThresholds)]

WEIGHT_FIELDS = [
    "weight_501c3_status",
    "weight_years_operating",
    "weight_revenue_range",
    "weight_expense_ratio",
    "weight_recent_990",
]

WEIGHT_TOTAL = 100

# Each chain must be non-decreasing from left to right
ORDERED_CHAINS = [
    ["revenue_fail_min", "revenue_pass_min", "revenue_pass_max", "revenue_review_max"],
    ["expense_ratio_low_review", "expense_ratio_pass_min", "expense_ratio_pass_max", "expense_ratio_high_review"],
    ["years_review_min", "years_pass_min"],
    ["filing_990_pass_max", "filing_990_review_max"],
    ["score_review_min", "score_pass_min"],
]

NON_NEGATIVE_FIELDS = [
    "years_pass_min",
    "years_review_min",
    "revenue_fail_min",
    "revenue_pass_min",
    "revenue_pass_max",
    "revenue_review_max",
    "expense_ratio_pass_min",
    "expense_ratio_pass_max",
    "expense_ratio_high_review",
    "expense_ratio_low_review",
    "filing_990_pass_max",
    "filing_990_review_max",
    "red_flag_stale_990_years",
    "red_flag_high_expense_ratio",
    "red_flag_low_expense_ratio",
    "red_flag_very_low_revenue",
    "red_flag_too_new_years",
]

# (field, low, high) inclusive ranges
BOUNDED_FIELDS = [
    ("score_pass_min", 0, 100),
    ("score_review_min", 0, 100),
    ("red_flag_revenue_decline_percent", 0, 1),
]


def collect_threshold_errors(thresholds: VettingThresholds) -> list[str]:
    """Return every violated rule as a message naming the offending field(s)."""
    errors: list[str] = []
    values = thresholds.to_dict()

    # Non-finite values make every comparison below silently False
    non_finite = set()
    for name, value in values.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            errors.append(f"{name} must be a finite number (got {value!r})")
            non_finite.add(name)

    # Weights
    weights_ok = True
    for name in WEIGHT_FIELDS:
        if name in non_finite:
            weights_ok = False
            continue
        value = values[name]
        if value < 0:
            errors.append(f"{name} must be non-negative (got {value})")
        if not float(value).is_integer():
            errors.append(f"{name} must be a whole number of points (got {value})")
            weights_ok = False
    if weights_ok:
        total = sum(values[name] for name in WEIGHT_FIELDS)
        if total != WEIGHT_TOTAL:
            errors.append(f"Weights must sum to {WEIGHT_TOTAL} (got {total})")

    # Ordering invariants
    for chain in ORDERED_CHAINS:
        for low_name, high_name in zip(chain, chain[1:]):
            if low_name in non_finite or high_name in non_finite:
                continue
            if values[low_name] > values[high_name]:
                errors.append(
                    f"{low_name} ({values[low_name]}) must be <= {high_name} ({values[high_name]})"
                )

    for name in NON_NEGATIVE_FIELDS:
        if name not in non_finite and values[name] < 0:
            errors.append(f"{name} must be non-negative (got {values[name]})")

    for name, low, high in BOUNDED_FIELDS:
        if name not in non_finite and not (low <= values[name] <= high):
            errors.append(f"{name} must be between {low} and {high} (got {values[name]})")

    return errors


def validate_thresholds(thresholds: VettingThresholds) -> VettingThresholds:
    """
    Validate thresholds for internal consistency.

    Returns:
        The same thresholds, for chaining

    Raises:
        ThresholdValidationError: listing every violated rule
    """
    errors = collect_threshold_errors(thresholds)
    if errors:
        raise ThresholdValidationError(errors)
    return thresholds


def apply_overrides(base: VettingThresholds, overrides: Mapping[str, Any]) -> VettingThresholds:
    """
    Shallow-merge named overrides onto base thresholds.

    Raises:
        ThresholdValidationError: if an override names an unknown field
    """
    unknown = sorted(set(overrides) - set(THRESHOLD_FIELDS))
    if unknown:
        raise ThresholdValidationError([f"Unknown threshold field: {name}" for name in unknown])
    return replace(base, **dict(overrides))
