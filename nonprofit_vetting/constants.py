"""
Global constants for the vetting service.

Centralizes provider settings and naming conventions. Scoring defaults live
on VettingThresholds itself so there is exactly one source of truth.
"""

# ProPublica Nonprofit Explorer
PROPUBLICA_API_BASE_URL = "https://projects.propublica.org/nonprofits/api/v2"
PROPUBLICA_RATE_LIMIT_MS = 500  # Minimum gap between requests
PROPUBLICA_TIMEOUT_SECONDS = 30
USER_AGENT = "nonprofit-vetting/1.0"

# Attribution is a condition of using ProPublica data
ATTRIBUTION = "Data provided by ProPublica Nonprofit Explorer (https://projects.propublica.org/nonprofits/)"

# Environment variable prefix for threshold overrides: VETTING_SCORE_PASS_MIN=75
THRESHOLD_ENV_PREFIX = "VETTING_"

# Subsection code for 501(c)(3) public charities
SUBSECTION_501C3 = "03"

# Average year length used for elapsed-time calculations
DAYS_PER_YEAR = 365.25

# Maximum number of non-passing check details quoted in a justification
MAX_SUMMARY_ISSUES = 3
