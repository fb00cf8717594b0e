"""Nonprofit Tier 1 vetting on ProPublica Nonprofit Explorer data."""

__version__ = "1.0.0"
